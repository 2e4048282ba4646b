"""CLI commands for uid-io-monitor."""

import click


def _parse_options(raw: tuple[str, ...]) -> dict[str, str]:
    """Turn repeated key=value arguments into a dict."""
    options: dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {item!r}", param_hint="--option")
        options[key.strip()] = value.strip()
    return options


def _load_config():
    from uid_io_monitor.config import Config

    try:
        return Config.load()
    except ValueError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(package_name="uid-io-monitor")
def main() -> None:
    """Report the heaviest per-UID disk readers and writers."""
    pass


@main.command()
@click.option(
    "--option",
    "-o",
    "raw_options",
    multiple=True,
    metavar="KEY=VALUE",
    help="Runtime option, e.g. iostats.min=1000000 (repeatable)",
)
def daemon(raw_options: tuple[str, ...]) -> None:
    """Run the background sampler."""
    import asyncio

    from uid_io_monitor.daemon import run_daemon

    options = _parse_options(raw_options)
    config = _load_config()
    asyncio.run(run_daemon(config, options))


@main.command()
@click.option("--interval", "-i", default=5.0, show_default=True, help="Seconds to sample over")
@click.option(
    "--option",
    "-o",
    "raw_options",
    multiple=True,
    metavar="KEY=VALUE",
    help="Runtime option, e.g. iostats.read.min=0 (repeatable)",
)
def sample(interval: float, raw_options: tuple[str, ...]) -> None:
    """Sample once over INTERVAL seconds and print the report."""
    import time

    from uid_io_monitor import logging as console
    from uid_io_monitor.usage import IoUsage

    if interval <= 0:
        raise click.BadParameter("must be > 0", param_hint="--interval")

    options = _parse_options(raw_options)
    usage = IoUsage.from_config(_load_config())
    for key, value in options.items():
        if not usage.set_option(key, value):
            raise click.BadParameter(f"invalid option {key}={value}", param_hint="--option")

    if usage.options.disabled:
        click.echo("Sampling is disabled (iostats.disabled).")
        return

    usage.refresh()  # Priming cycle, no report
    time.sleep(interval)
    report = usage.refresh()
    if report is None:
        click.echo(f"Error: unable to read {usage.source.path}", err=True)
        raise SystemExit(1)
    console.report(report)


@main.group()
def config() -> None:
    """Manage configuration."""
    pass


@config.command("show")
def config_show() -> None:
    """Display current configuration."""
    cfg = _load_config()

    click.echo(f"Config file: {cfg.config_path}")
    click.echo(f"Exists: {cfg.config_path.exists()}")
    click.echo()
    click.echo("[iostats]")
    click.echo(f"  read_min = {cfg.iostats.read_min}")
    click.echo(f"  write_min = {cfg.iostats.write_min}")
    click.echo(f"  debug = {cfg.iostats.debug}")
    click.echo(f"  disabled = {cfg.iostats.disabled}")
    click.echo()
    click.echo("[source]")
    click.echo(f"  stats_path = {cfg.source.stats_path}")
    click.echo(f"  proc_root = {cfg.source.proc_root}")
    click.echo(f"  app_uid_start = {cfg.source.app_uid_start}")
    click.echo()
    click.echo("[system]")
    click.echo(f"  sample_interval = {cfg.system.sample_interval}")


@config.command("reset")
@click.confirmation_option(prompt="Overwrite config with defaults?")
def config_reset() -> None:
    """Reset configuration to defaults."""
    from uid_io_monitor import logging as console
    from uid_io_monitor.config import Config

    cfg = Config()
    cfg.save()
    console.config_created(str(cfg.config_path))
