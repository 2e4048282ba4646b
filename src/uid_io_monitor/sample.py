"""Per-UID I/O counter record.

One UidIoSample holds the cumulative (or, after subtraction, per-interval)
counters the kernel exposes for a single UID in /proc/uid_io/stats.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UidIoSample:
    """I/O counters for one UID.

    This is THE canonical record for per-UID counters. Totals, deltas and
    top-K slots are all UidIoSample values.
    """

    uid: int
    fg_read: int = 0  # Foreground read bytes
    bg_read: int = 0  # Background read bytes
    fg_write: int = 0  # Foreground write bytes
    bg_write: int = 0  # Background write bytes
    fg_fsync: int = 0  # Foreground fsync count
    bg_fsync: int = 0  # Background fsync count

    @classmethod
    def empty(cls, uid: int = 0) -> "UidIoSample":
        """Return an all-zero sample (the neutral value for addition)."""
        return cls(uid=uid)

    @property
    def total_read(self) -> int:
        return self.fg_read + self.bg_read

    @property
    def total_write(self) -> int:
        return self.fg_write + self.bg_write

    @property
    def total_fsync(self) -> int:
        return self.fg_fsync + self.bg_fsync

    @property
    def is_active(self) -> bool:
        """True if the sample moved any bytes."""
        return self.total_read > 0 or self.total_write > 0

    def __add__(self, other: "UidIoSample") -> "UidIoSample":
        if not isinstance(other, UidIoSample):
            return NotImplemented
        return UidIoSample(
            uid=self.uid,
            fg_read=self.fg_read + other.fg_read,
            bg_read=self.bg_read + other.bg_read,
            fg_write=self.fg_write + other.fg_write,
            bg_write=self.bg_write + other.bg_write,
            fg_fsync=self.fg_fsync + other.fg_fsync,
            bg_fsync=self.bg_fsync + other.bg_fsync,
        )

    def __sub__(self, other: "UidIoSample") -> "UidIoSample":
        """Component-wise difference, clamped at zero.

        Kernel counters are monotonic per process lifetime. When a UID's
        processes churn a counter can go backwards; that component reads as 0.
        """
        if not isinstance(other, UidIoSample):
            return NotImplemented
        return UidIoSample(
            uid=self.uid,
            fg_read=_clamped_sub(self.fg_read, other.fg_read),
            bg_read=_clamped_sub(self.bg_read, other.bg_read),
            fg_write=_clamped_sub(self.fg_write, other.fg_write),
            bg_write=_clamped_sub(self.bg_write, other.bg_write),
            fg_fsync=_clamped_sub(self.fg_fsync, other.fg_fsync),
            bg_fsync=_clamped_sub(self.bg_fsync, other.bg_fsync),
        )


def _clamped_sub(a: int, b: int) -> int:
    return a - b if a > b else 0


# uid -> counters for one sampling cycle
Snapshot = dict[int, UidIoSample]
