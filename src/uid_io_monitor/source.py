"""Reader for the kernel per-UID I/O accounting table.

Each line of /proc/uid_io/stats is one UID:

    uid fg_rchar fg_wchar fg_read fg_write bg_rchar bg_wchar bg_read bg_write fg_fsync bg_fsync

Only the storage byte counters (fields 3/4/7/8) and fsync counts (9/10) are
used. Malformed lines are skipped with a warning.
"""

from pathlib import Path

import structlog

from uid_io_monitor.sample import Snapshot, UidIoSample

log = structlog.get_logger()

UID_IO_STATS_PATH = Path("/proc/uid_io/stats")

UINT64_MAX = 2**64 - 1

# Field positions within a stats line
_FIELD_UID = 0
_FIELD_FG_READ = 3
_FIELD_FG_WRITE = 4
_FIELD_BG_READ = 7
_FIELD_BG_WRITE = 8
_FIELD_FG_FSYNC = 9
_FIELD_BG_FSYNC = 10
_MIN_FIELDS = 11


def parse_uint(text: str) -> int | None:
    """Parse an unsigned 64-bit decimal integer.

    Returns None for empty strings, signs, non-digits, or values above
    UINT64_MAX.
    """
    text = text.strip()
    if not text or not text.isascii() or not text.isdigit():
        return None
    value = int(text)
    if value > UINT64_MAX:
        return None
    return value


def parse_line(line: str) -> UidIoSample | None:
    """Parse one stats line into a sample, or None if the line is invalid."""
    fields = line.split()
    if len(fields) < _MIN_FIELDS:
        log.warning("invalid_uid_io_line", line=line, reason="too_few_fields")
        return None

    values = [
        parse_uint(fields[i])
        for i in (
            _FIELD_UID,
            _FIELD_FG_READ,
            _FIELD_FG_WRITE,
            _FIELD_BG_READ,
            _FIELD_BG_WRITE,
            _FIELD_FG_FSYNC,
            _FIELD_BG_FSYNC,
        )
    ]
    if any(v is None for v in values):
        log.warning("invalid_uid_io_line", line=line, reason="non_numeric_field")
        return None

    uid, fg_read, fg_write, bg_read, bg_write, fg_fsync, bg_fsync = values
    return UidIoSample(
        uid=uid,
        fg_read=fg_read,
        bg_read=bg_read,
        fg_write=fg_write,
        bg_write=bg_write,
        fg_fsync=fg_fsync,
        bg_fsync=bg_fsync,
    )


def parse_stats(text: str) -> Snapshot:
    """Parse the whole stats table. Blank and invalid lines are skipped."""
    snapshot: Snapshot = {}
    for line in text.splitlines():
        if not line.strip():
            continue
        sample = parse_line(line)
        if sample is None:
            continue
        snapshot[sample.uid] = sample
    return snapshot


class UidIoStatsSource:
    """Reads and parses the per-UID stats file once per cycle."""

    def __init__(self, path: Path | str = UID_IO_STATS_PATH) -> None:
        self.path = Path(path)

    def read(self) -> Snapshot | None:
        """Return the current snapshot, or None if the file can't be read."""
        try:
            text = self.path.read_text()
        except OSError as e:
            log.error("uid_io_read_failed", path=str(self.path), error=str(e))
            return None
        return parse_stats(text)
