"""Number and duration formatting for I/O reports."""

import structlog

log = structlog.get_logger()

# Widest grouped number the report layout accommodates
GROUPED_MAX_WIDTH = 31


def format_grouped(value: int, *, max_width: int = GROUPED_MAX_WIDTH) -> str:
    """Format an integer with comma thousands separators.

    Example: 10000 -> "10,000"

    Values wider than max_width are still returned in full; the overflow is
    logged as an error so a misbehaving counter shows up in the daemon log.
    """
    text = f"{value:,}"
    if len(text) > max_width:
        log.error("grouped_number_overflow", value=value, width=len(text), max_width=max_width)
    return text


def format_interval(interval_ms: int) -> str:
    """Format a millisecond interval as seconds with a millisecond fraction.

    Example: 10160 -> "10.160s"
    """
    interval_ms = max(0, interval_ms)
    return f"{interval_ms // 1000}.{interval_ms % 1000:03d}s"


def format_megabytes(size: int) -> str:
    """Whole decimal megabytes, truncated. Example: 50_000_000 -> "50"."""
    return str(size // 1_000_000)
