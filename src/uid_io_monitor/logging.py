"""Console output and log setup.

Two audiences:

- People at a terminal get short Rich-styled status lines from the helpers
  below (daemon lifecycle, option changes, rendered reports).
- The daemon log gets structlog events as JSON Lines, one object per line,
  written through a size-rotated file handler. configure() wires that up.
"""

from __future__ import annotations

import logging
import logging.handlers
from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from rich.console import Console

if TYPE_CHECKING:
    from uid_io_monitor.config import Config

_console = Console(highlight=False)


# ── Terminal vocabulary ──────────────────────────────────────────────────────


class Icon:
    """Glyphs prefixed to status lines."""

    OK = "[green]✓[/]"
    FAIL = "[red]✗[/]"
    WAIT = "…"
    SIGNAL = "[magenta]↯[/]"
    OPTION = "[cyan]⚙[/]"


_LEVEL_TAGS = {
    "info": "[blue]info [/]",
    "warn": "[yellow]warn [/]",
    "error": "[bold red]error[/]",
}


def log(level: str, msg: str, icon: str = "") -> None:
    """Print one status line: time, level tag, optional icon, then msg.

    msg may carry Rich markup.
    """
    stamp = datetime.now().strftime("%H:%M:%S")
    tag = _LEVEL_TAGS.get(level, level)
    parts = [f"[dim]{stamp}[/]", tag]
    if icon:
        parts.append(icon)
    parts.append(msg)
    _console.print(" ".join(parts))


def info(msg: str, icon: str = "") -> None:
    log("info", msg, icon)


def warn(msg: str, icon: str = "") -> None:
    log("warn", msg, icon)


def error(msg: str, icon: str = "") -> None:
    log("error", msg, icon)


def report(text: str) -> None:
    """Print a rendered I/O report exactly as rendered."""
    _console.print(text.rstrip("\n"), markup=False, soft_wrap=True)


# ── Status lines ─────────────────────────────────────────────────────────────


def daemon_started(interval: float) -> None:
    info(f"Sampling every {interval:g}s", Icon.OK)


def daemon_stopping() -> None:
    info("Shutting down", Icon.WAIT)


def daemon_stopped() -> None:
    info("Stopped", Icon.OK)


def signal_received(name: str) -> None:
    info(f"Got [bold]{name}[/]", Icon.SIGNAL)


def cycle_failed(error_msg: str) -> None:
    error(f"Sampling cycle raised: {error_msg}", Icon.FAIL)


def option_applied(key: str, value: str) -> None:
    info(f"[cyan]{key}[/] set to {value}", Icon.OPTION)


def option_rejected(key: str, value: str) -> None:
    warn(f"Ignoring [cyan]{key}[/] [dim]({value!r})[/]")


def config_created(path: str) -> None:
    info(f"Wrote default config to [cyan]{path}[/]", Icon.OK)


def thresholds_summary(read_min: int, write_min: int) -> None:
    """Show the byte thresholds below which a top list is skipped."""
    info(f"Top lists need ≥[cyan]{read_min:,}[/] read / ≥[cyan]{write_min:,}[/] written bytes")


# ── structlog wiring ─────────────────────────────────────────────────────────


def _shared_chain(timestamper: structlog.types.Processor) -> list[structlog.types.Processor]:
    """Processors applied to both structlog and plain stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        timestamper,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _json_file_handler(config: Config) -> logging.Handler:
    config.state_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        config.log_path,
        maxBytes=config.system.log_max_bytes,
        backupCount=config.system.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_shared_chain(
                structlog.processors.TimeStamper(fmt="iso", utc=False, key="ts")
            ),
        )
    )
    return handler


def _stderr_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(logging.WARNING)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(),
            foreign_pre_chain=_shared_chain(structlog.processors.TimeStamper(fmt="%H:%M:%S")),
        )
    )
    return handler


def configure(config: Config) -> None:
    """Route structlog events to the JSON daemon log and warnings to stderr.

    Replaces any handlers already on the stdlib root logger, so calling it
    twice does not duplicate output.
    """
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.INFO)
    root.addHandler(_json_file_handler(config))
    root.addHandler(_stderr_handler())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_chain(structlog.processors.TimeStamper(fmt="iso", utc=False)),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
