"""Per-cycle orchestration: read, diff, rank, resolve, render.

IoUsage is the unit a scheduler drives. Every instance owns independent
state; nothing here is shared between instances or threads.
"""

import time
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

import structlog

from uid_io_monitor.config import Config, IoStatsConfig
from uid_io_monitor.engine import DeltaEngine
from uid_io_monitor.procscan import ProcessNameIndex
from uid_io_monitor.report import ReportRenderer
from uid_io_monitor.resolver import IdentifierResolver
from uid_io_monitor.source import UidIoStatsSource, parse_uint
from uid_io_monitor.timing import scope_timer
from uid_io_monitor.topk import TopKTracker

log = structlog.get_logger()

OPTION_MIN = "iostats.min"
OPTION_READ_MIN = "iostats.read.min"
OPTION_WRITE_MIN = "iostats.write.min"
OPTION_DEBUG = "iostats.debug"
OPTION_DISABLED = "iostats.disabled"

OPTION_KEYS = (OPTION_MIN, OPTION_READ_MIN, OPTION_WRITE_MIN, OPTION_DEBUG, OPTION_DISABLED)


class IoUsage:
    """Runs sampling cycles and appends each report to a sink."""

    def __init__(
        self,
        source: UidIoStatsSource,
        resolver: IdentifierResolver,
        options: IoStatsConfig | None = None,
        sink: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.options = replace(options) if options is not None else IoStatsConfig()
        self.source = source
        self.resolver = resolver
        self.engine = DeltaEngine(resolver, clock=clock)
        self.tracker = TopKTracker()
        self.renderer = ReportRenderer(
            read_threshold=self.options.read_min,
            write_threshold=self.options.write_min,
        )
        self._sink = sink
        self._apply_debug(self.options.debug)

    @classmethod
    def from_config(cls, config: Config, sink: Callable[[str], None] | None = None) -> "IoUsage":
        """Build a fully wired instance from configuration."""
        index = ProcessNameIndex(proc_root=Path(config.source.proc_root))
        resolver = IdentifierResolver(index=index, app_uid_start=config.source.app_uid_start)
        return cls(
            source=UidIoStatsSource(config.source.stats_path),
            resolver=resolver,
            options=config.iostats,
            sink=sink,
        )

    def refresh(self) -> str | None:
        """Run one cycle.

        Returns the rendered report, or None when the cycle produced no
        report (disabled, unreadable stats, or the priming cycle).
        """
        if self.options.disabled:
            return None

        with scope_timer("refresh", enabled=self.options.debug):
            snapshot = self.source.read()
            if snapshot is None:
                return None
            if self.options.debug:
                log.info("uid_io_read", path=str(self.source.path), uids=len(snapshot))

            deltas = self.engine.apply(snapshot)
            if deltas is None:
                return None

            self.tracker.rebuild(deltas.values())
            report = self.renderer.render(
                self.tracker.total,
                self.tracker.read_top,
                self.tracker.write_top,
                self.engine.interval_ms,
                self.resolver.cache,
            )

        if self.options.debug:
            log.info("uid_io_report", length=len(report), report=report)
        if self._sink is not None:
            self._sink(report)
        return report

    def set_option(self, key: str, value: str) -> bool:
        """Apply one runtime option.

        Returns True if the option was applied. Malformed values leave the
        current configuration untouched.
        """
        if key not in OPTION_KEYS:
            log.warning("iostats_option_unknown", key=key, value=value)
            return False

        parsed = parse_uint(value)
        if parsed is None:
            log.error("iostats_option_invalid", key=key, value=value, reason="not_uint64")
            return False

        if key == OPTION_MIN:
            self.options.read_min = parsed
            self.options.write_min = parsed
            self.renderer.set_threshold(parsed)
        elif key == OPTION_READ_MIN:
            self.options.read_min = parsed
            self.renderer.set_read_threshold(parsed)
        elif key == OPTION_WRITE_MIN:
            self.options.write_min = parsed
            self.renderer.set_write_threshold(parsed)
        elif key == OPTION_DEBUG:
            self.options.debug = parsed != 0
            self._apply_debug(self.options.debug)
        elif key == OPTION_DISABLED:
            self.options.disabled = parsed != 0

        log.info("iostats_option_set", key=key, value=parsed)
        return True

    def _apply_debug(self, enabled: bool) -> None:
        self.resolver.debug = enabled
        self.resolver.index.debug = enabled
