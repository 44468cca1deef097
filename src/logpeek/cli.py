from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import click
from tabulate import tabulate

from logpeek import __version__
from peeklib.config import (
    DEFAULT_DOCKER_INTERVAL,
    MAX_DOCKER_INTERVAL,
    Config,
    ConfigError,
    RawOptions,
    normalize_config,
)
from peeklib.errors import format_config_error, suggest_fixes


class GreedyOption(click.Option):
    """Repeatable option that also takes every following non-option argument.

    ``-m a b -m c`` collects ``("a", "b", "c")`` in command-line order.
    """

    def add_to_parser(self, parser, ctx):
        retval = super().add_to_parser(parser, ctx)
        for name in self.opts:
            opt = parser._long_opt.get(name) or parser._short_opt.get(name)
            if opt is not None:
                break
        else:
            return retval

        previous_process = opt.process

        def process(value, state):
            values = [value]
            while state.rargs and not any(state.rargs[0].startswith(p) for p in opt.prefixes):
                values.append(state.rargs.pop(0))
            for v in values:
                previous_process(v, state)

        opt.process = process
        return retval


def _split_tokens(values: Tuple[str, ...]) -> Optional[list[str]]:
    # each -m value is itself a space delimited list of tokens
    if not values:
        return None
    return [token for value in values for token in value.split(" ")]


def _config_rows(cfg: Config) -> list[list[str]]:
    rows = [
        ["docker_interval", f"{cfg.docker_interval}ms"],
        ["timestamp", "yes" if cfg.timestamp else "—"],
        ["color", "yes" if cfg.color else "—"],
        ["raw", "yes" if cfg.raw else "—"],
        ["show_self", "yes" if cfg.show_self else "—"],
        ["gui", "yes" if cfg.gui else "—"],
        ["host", cfg.host or "—"],
        ["use_cli", "yes" if cfg.use_cli else "—"],
        ["in_container", "yes" if cfg.in_container else "—"],
        ["save_dir", str(cfg.save_dir) if cfg.save_dir else "—"],
    ]
    for mapping in cfg.base_url_map or ():
        rows.append(["base_url_map", f"{mapping.selector.value}={mapping.value} -> {mapping.base_url}"])
    return rows


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="logpeek")
@click.option(
    "-d",
    "docker_interval",
    type=click.IntRange(0, MAX_DOCKER_INTERVAL),
    default=DEFAULT_DOCKER_INTERVAL,
    show_default=True,
    metavar="<ms>",
    help="Docker update interval in ms, minimum effectively 1000",
)
@click.option("-t", "timestamp", is_flag=True, help="Remove timestamps from Docker logs")
@click.option("-c", "color", is_flag=True, help='Attempt to colorize the logs, conflicts with "-r"')
@click.option(
    "-r",
    "raw",
    is_flag=True,
    help='Show raw logs, default is to remove ansi formatting, conflicts with "-c"',
)
@click.option("-s", "show_self", is_flag=True, help="Show self when running as a docker container")
@click.option("-g", "gui", is_flag=True, help="Don't draw gui - for debugging - mostly pointless")
@click.option("--host", help="Docker host, defaults to /var/run/docker.sock")
@click.option("--use-cli", "use_cli", is_flag=True, help="Force use of docker cli when execing into containers")
@click.option("--save-dir", "save_dir", help="Directory for saving exported logs, defaults to $HOME")
@click.option(
    "-m",
    "--base-url-map",
    "base_url_map",
    cls=GreedyOption,
    multiple=True,
    help='Base URL for opening a container in a browser, "name|image|label;value;base_url"',
)
@click.option("--show-config", "show_config", is_flag=True, help="Print the resolved configuration and exit")
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="With --show-config, output JSON instead of a table (pretty-printed)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging to stderr (what the startup is doing)",
)
def cli(
    docker_interval: int,
    timestamp: bool,
    color: bool,
    raw: bool,
    show_self: bool,
    gui: bool,
    host: Optional[str],
    use_cli: bool,
    save_dir: Optional[str],
    base_url_map: Tuple[str, ...],
    show_config: bool,
    json_output: bool,
    verbose: bool,
) -> Config:
    """View and follow Docker container logs.

    Options are validated once at startup; a bad -d or -m value stops the
    program with exit status 1.
    """
    # Configure logging once per process
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    log = logging.getLogger("logpeek.cli")

    if color and raw:
        raise click.UsageError("'-c' cannot be used with '-r'")

    raw_options = RawOptions(
        docker_interval=docker_interval,
        timestamp=timestamp,
        color=color,
        raw=raw,
        show_self=show_self,
        gui=gui,
        host=host,
        use_cli=use_cli,
        save_dir=save_dir,
        base_url_map=_split_tokens(base_url_map),
    )

    try:
        log.info("Normalizing options...")
        cfg = normalize_config(raw_options)
    except ConfigError as e:
        log.debug("Invalid configuration: %s", e)
        click.echo(format_config_error(e), err=True)
        if verbose:
            suggestions = suggest_fixes(e)
            if suggestions:
                click.echo("\nSuggestions:", err=True)
                for suggestion in suggestions:
                    click.echo(f"  • {suggestion}", err=True)
        raise SystemExit(1)

    if show_config:
        if json_output:
            click.echo(cfg.to_json())
        else:
            log.info("Rendering configuration")
            click.echo(tabulate(_config_rows(cfg), headers=["FIELD", "VALUE"]))

    return cfg


def load_config(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse ``argv`` (defaults to sys.argv) for the application's startup.

    Usage errors exit with status 2, invalid configuration with status 1.
    """
    try:
        result = cli.main(args=argv, prog_name="logpeek", standalone_mode=False)
    except click.ClickException as e:
        e.show()
        raise SystemExit(e.exit_code)
    if not isinstance(result, Config):
        # --help or --version was handled
        raise SystemExit(result or 0)
    return result


def main() -> None:  # entry point
    cli(standalone_mode=True)


if __name__ == "__main__":  # pragma: no cover
    main()
