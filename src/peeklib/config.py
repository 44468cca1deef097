from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Tuple

log = logging.getLogger(__name__)

# Set by the Dockerfile of the published image
RUNTIME_ENV_KEY = "LOGPEEK_RUNTIME"
RUNTIME_ENV_VALUE = "container"

DEFAULT_DOCKER_INTERVAL = 1000
MAX_DOCKER_INTERVAL = 2**32 - 1

BASE_URL_MAP_FORMAT = "name|image|label;value;base_url"


class ErrorKind(Enum):
    """Categories of fatal startup configuration errors."""
    BASE_URL_SELECTOR = "base_url_selector"
    BASE_URL_MISSING = "base_url_missing"
    INVALID_INTERVAL = "invalid_interval"


class ConfigError(RuntimeError):
    def __init__(self, kind: ErrorKind, message: str, value: Any = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.value = value


class Selector(Enum):
    NAME = "name"
    IMAGE = "image"
    LABEL = "label"


@dataclass(frozen=True)
class RawOptions:
    """Flag values exactly as the user typed them, before any validation."""
    docker_interval: int = DEFAULT_DOCKER_INTERVAL
    timestamp: bool = False
    color: bool = False
    raw: bool = False
    show_self: bool = False
    gui: bool = False
    host: Optional[str] = None
    use_cli: bool = False
    save_dir: Optional[str] = None
    base_url_map: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class BaseUrlMapping:
    name: Optional[str] = None
    image: Optional[str] = None
    label: Optional[str] = None
    base_url: str = ""

    def __post_init__(self) -> None:
        selectors = [v for v in (self.name, self.image, self.label) if v is not None]
        if len(selectors) != 1:
            raise ValueError("exactly one of name, image or label must be set")

    @property
    def selector(self) -> Selector:
        if self.name is not None:
            return Selector.NAME
        if self.image is not None:
            return Selector.IMAGE
        return Selector.LABEL

    @property
    def value(self) -> str:
        return getattr(self, self.selector.value) or ""


@dataclass(frozen=True)
class Config:
    """Normalized startup configuration.

    ``timestamp``, ``show_self`` and ``gui`` use enable semantics: the matching
    command-line flags suppress the feature, so they are stored inverted.
    """
    docker_interval: int = DEFAULT_DOCKER_INTERVAL
    color: bool = False
    raw: bool = False
    timestamp: bool = True
    show_self: bool = True
    gui: bool = True
    host: Optional[str] = None
    in_container: bool = False
    save_dir: Optional[Path] = None
    use_cli: bool = False
    base_url_map: Optional[Tuple[BaseUrlMapping, ...]] = None

    def to_json(self) -> str:
        """Pretty JSON; ``save_dir`` becomes a string and each mapping an object
        with all three selector keys (unset ones as null)."""
        def _default(o: Any):
            if isinstance(o, Path):
                return str(o)
            if hasattr(o, "__dict__"):
                return o.__dict__
            return str(o)

        return json.dumps(self, default=_default, indent=2, sort_keys=True)


def parse_base_url_map(token: str) -> BaseUrlMapping:
    """Parse one ``selector;value;base_url`` token.

    The selector keyword is checked before the url segment, so ``bogus;a;b``
    reports a selector problem while ``name`` or ``name;a`` report the url.
    """
    parts = token.split(";", 2)
    try:
        selector = Selector(parts[0])
    except ValueError:
        raise ConfigError(
            ErrorKind.BASE_URL_SELECTOR,
            f"Couldn't parse type, \"-m\" argument needs to be in the format \"{BASE_URL_MAP_FORMAT}\"",
            token,
        ) from None

    if len(parts) < 3:
        raise ConfigError(
            ErrorKind.BASE_URL_MISSING,
            f"Couldn't parse url, \"-m\" argument needs to be in the format \"{BASE_URL_MAP_FORMAT}\"",
            token,
        )

    mapping = BaseUrlMapping(**{selector.value: parts[1]}, base_url=parts[2])
    log.debug("Parsed base url mapping %s=%r -> %s", selector.value, parts[1], parts[2])
    return mapping


def check_in_container(getenv: Callable[[str], Optional[str]] = os.environ.get) -> bool:
    """True when running from the project's own container image."""
    return getenv(RUNTIME_ENV_KEY) == RUNTIME_ENV_VALUE


def home_dir() -> Optional[Path]:
    try:
        home = Path.home()
    except RuntimeError:
        return None
    # expanduser leaves "~" alone when no home can be found
    if str(home) == "~":
        return None
    return home


def resolve_save_dir(
    save_dir: Optional[str],
    home: Callable[[], Optional[Path]] = home_dir,
) -> Optional[Path]:
    if save_dir is not None:
        return Path(save_dir)
    resolved = home()
    if resolved is None:
        log.info("No home directory found, saving logs is disabled")
    return resolved


def normalize_config(
    raw: RawOptions,
    getenv: Callable[[str], Optional[str]] = os.environ.get,
    home: Callable[[], Optional[Path]] = home_dir,
) -> Config:
    """Validate ``raw`` and build the immutable Config.

    Raises ConfigError on a malformed ``-m`` token or a ``-d`` value of 0.
    """
    save_dir = resolve_save_dir(raw.save_dir, home=home)

    base_url_map: Optional[Tuple[BaseUrlMapping, ...]] = None
    if raw.base_url_map is not None:
        base_url_map = tuple(parse_base_url_map(t) for t in raw.base_url_map)

    # Anything under ~1000ms is accepted but the poller can't go that fast
    if raw.docker_interval <= 0:
        raise ConfigError(
            ErrorKind.INVALID_INTERVAL,
            "\"-d\" argument needs to be greater than 0",
            raw.docker_interval,
        )

    in_container = check_in_container(getenv)
    log.info("Resolved save_dir=%s in_container=%s", save_dir, in_container)

    return Config(
        docker_interval=raw.docker_interval,
        color=raw.color,
        raw=raw.raw,
        timestamp=not raw.timestamp,
        show_self=not raw.show_self,
        gui=not raw.gui,
        host=raw.host,
        in_container=in_container,
        save_dir=save_dir,
        use_cli=raw.use_cli,
        base_url_map=base_url_map,
    )
