"""Command-line entry point for sysmon."""

from pathlib import Path

import click

from sysmon.config import Config, parse_interval


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("interval", required=False)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/sysmon/config.toml).",
)
@click.version_option(package_name="sysmon")
def main(interval: str | None, config_path: Path | None) -> None:
    """Interactive process monitor.

    INTERVAL is the refresh period in whole seconds. Values that are not a
    number or are below 1 fall back to 2.
    """
    from sysmon.app import SysmonApp
    from sysmon.logging import configure

    try:
        config = Config.load(config_path)
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    if interval is not None:
        config.refresh.interval = parse_interval(interval)

    configure(config)
    SysmonApp(config).run()


if __name__ == "__main__":
    main()
