"""Background daemon for uid-io-monitor."""

import asyncio
import signal
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from uid_io_monitor import logging as console
from uid_io_monitor.config import Config
from uid_io_monitor.usage import IoUsage

log = structlog.get_logger()


@dataclass
class DaemonState:
    """Counters describing what the daemon has done so far."""

    running: bool = False
    cycle_count: int = 0
    report_count: int = 0
    last_cycle_time: datetime | None = None

    def update_cycle(self, reported: bool) -> None:
        """Update state after a cycle."""
        self.cycle_count += 1
        if reported:
            self.report_count += 1
        self.last_cycle_time = datetime.now()


class ReportFile:
    """Append-only sink for rendered reports."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __call__(self, text: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            log.error("report_write_failed", path=str(self.path), error=str(e))


class Daemon:
    """Runs one IoUsage cycle per sample interval until shutdown."""

    def __init__(self, config: Config, usage: IoUsage | None = None):
        self.config = config
        self.state = DaemonState()
        self.usage = usage or IoUsage.from_config(config, sink=ReportFile(config.report_path))
        self._shutdown_event = asyncio.Event()

    def apply_options(self, options: dict[str, str]) -> None:
        """Apply runtime options (key -> raw value) before or while running."""
        for key, value in options.items():
            if self.usage.set_option(key, value):
                console.option_applied(key, value)
            else:
                console.option_rejected(key, value)

    async def start(self) -> None:
        """Start the daemon and run until shutdown is requested."""
        from importlib.metadata import version

        log.info("daemon_starting", version=version("uid-io-monitor"))
        options = self.usage.options
        log.info(
            "daemon_config",
            sample_interval=self.config.system.sample_interval,
            stats_path=str(self.usage.source.path),
            read_min=options.read_min,
            write_min=options.write_min,
            debug=options.debug,
        )
        console.thresholds_summary(options.read_min, options.write_min)

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: self._handle_signal(s))

        self.state.running = True
        log.info("daemon_started")
        console.daemon_started(self.config.system.sample_interval)

        await self._main_loop()

    async def stop(self) -> None:
        """Mark the daemon stopped and wake the loop if it is sleeping."""
        log.info("daemon_stopping")
        console.daemon_stopping()
        self.state.running = False
        self._shutdown_event.set()
        log.info("daemon_stopped")
        console.daemon_stopped()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    def _handle_signal(self, sig: signal.Signals) -> None:
        """SIGTERM/SIGINT: finish the current cycle, then exit the loop."""
        log.info("signal_received", signal=sig.name)
        console.signal_received(sig.name)
        self._shutdown_event.set()

    def run_cycle(self) -> str | None:
        """Run a single sampling cycle and record it in daemon state."""
        report = self.usage.refresh()
        self.state.update_cycle(report is not None)
        return report

    async def _main_loop(self) -> None:
        """Run cycles at the configured interval until shutdown.

        Cycles run synchronously on the loop thread, so two cycles never
        overlap. A failing cycle is logged and the loop carries on.
        """
        sample_interval = self.config.system.sample_interval

        while not self._shutdown_event.is_set():
            iteration_start = asyncio.get_running_loop().time()
            try:
                self.run_cycle()
            except Exception as e:
                log.exception("cycle_failed", error=str(e))
                console.cycle_failed(str(e))

            # Sleep for remaining interval (maintains consistent sample rate)
            elapsed = asyncio.get_running_loop().time() - iteration_start
            sleep_time = sample_interval - elapsed
            if sleep_time <= 0:
                continue
            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=sleep_time)
                break  # Shutdown requested during sleep
            except asyncio.TimeoutError:
                pass  # Normal timeout, continue to next cycle


async def run_daemon(config: Config | None = None, options: dict[str, str] | None = None) -> None:
    """Run the daemon until shutdown.

    Args:
        config: Optional config, loads from file if not provided
        options: Runtime options to apply before the first cycle
    """
    if config is None:
        config = Config.load()

    # JSON Lines to daemon.log, warnings to stderr
    console.configure(config)

    daemon = Daemon(config)
    if options:
        daemon.apply_options(options)

    try:
        await daemon.start()
    except Exception as e:
        log.exception("daemon_crashed", error=str(e))
        raise
    finally:
        await daemon.stop()
