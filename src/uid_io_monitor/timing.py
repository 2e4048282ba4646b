"""Scoped wall-clock timing for debug diagnostics."""

import time
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

log = structlog.get_logger()


@contextmanager
def scope_timer(name: str, enabled: bool = True) -> Iterator[None]:
    """Log how long the wrapped block took, in milliseconds.

    Nothing is logged when enabled is False, so callers can pass their
    debug flag straight through.
    """
    start = time.monotonic()
    try:
        yield
    finally:
        if enabled:
            elapsed_ms = int((time.monotonic() - start) * 1000)
            log.info("scope_duration", scope=name, ms=elapsed_ms)
