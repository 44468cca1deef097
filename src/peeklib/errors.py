"""Error formatting utilities for logpeek."""

from __future__ import annotations

from .config import BASE_URL_MAP_FORMAT, ConfigError, ErrorKind


def format_config_error(error: ConfigError) -> str:
    """Format a startup configuration error for the operator."""
    error_str = str(error)

    if error.kind in (ErrorKind.BASE_URL_SELECTOR, ErrorKind.BASE_URL_MISSING):
        return f"{error_str}\n  got: {error.value!r}"

    if error.kind is ErrorKind.INVALID_INTERVAL:
        return f"{error_str} (got {error.value})"

    return f"Configuration error: {error_str}"


def suggest_fixes(error: ConfigError) -> list[str]:
    """Suggest corrections based on the kind of configuration error."""
    suggestions = []

    if error.kind is ErrorKind.BASE_URL_SELECTOR:
        suggestions.extend([
            "Start each -m token with one of: name, image, label",
            f"Use the format {BASE_URL_MAP_FORMAT}",
            "Example: -m 'name;my_app;http://localhost:8080'",
        ])

    elif error.kind is ErrorKind.BASE_URL_MISSING:
        suggestions.extend([
            "Add the url after the selector value, separated by ';'",
            "Example: -m 'image;nginx;http://localhost'",
            "Quote the whole token so the shell doesn't split it on ';'",
        ])

    elif error.kind is ErrorKind.INVALID_INTERVAL:
        suggestions.extend([
            "Pass the docker update interval in milliseconds, e.g. -d 1000",
            "Omit -d to use the default of 1000ms",
        ])

    return suggestions
