"""Fixed-layout text report of one cycle's I/O usage.

Sample output:

    [IO_TOTAL: 10.160s] RD:371,703,808 WR:15,929,344 fsync:567
    [IO_TOP    ]    fg bytes,    bg bytes,fgsyn,bgsyn :  UID   PKG_NAME
    [R1: 54.53%]           0,    73240576,    0,  240 : 10016 .android.gms.ui
    [R2: 45.47%]    16039936,    45027328,    1,   21 : 10082 -
    [W1: 75.67%]           0,     7655424,    0,  240 : 10016 .android.gms.ui
    [W2: 24.33%]     1486848,      974848,   58,    0 :  1000 system
"""

from collections.abc import Callable, Mapping, Sequence

from uid_io_monitor.formatting import format_grouped, format_interval, format_megabytes
from uid_io_monitor.resolver import PLACEHOLDER
from uid_io_monitor.sample import UidIoSample

# Default minimum interval volume before top lists are printed (50 MB)
DEFAULT_THRESHOLD = 50_000_000

TOP_HEADER = "[IO_TOP    ]    fg bytes,    bg bytes,fgsyn,bgsyn :  UID   PKG_NAME"


def _row(
    tag: str,
    rank: int,
    percent: float,
    fg: int,
    bg: int,
    sample: UidIoSample,
    name: str,
) -> str:
    return (
        f"[{tag}{rank}:{percent:6.2f}%]{fg:12d},{bg:12d},"
        f"{sample.fg_fsync:5d},{sample.bg_fsync:5d} :{sample.uid:6d} {name}"
    )


class ReportRenderer:
    """Renders totals and top lists, skipping lists for quiet cycles.

    Each direction is suppressed on its own when its interval total is below
    that direction's threshold.
    """

    def __init__(
        self,
        read_threshold: int = DEFAULT_THRESHOLD,
        write_threshold: int = DEFAULT_THRESHOLD,
    ) -> None:
        self.read_threshold = read_threshold
        self.write_threshold = write_threshold

    def set_read_threshold(self, size: int) -> None:
        self.read_threshold = size

    def set_write_threshold(self, size: int) -> None:
        self.write_threshold = size

    def set_threshold(self, size: int) -> None:
        """Set both the read and write thresholds."""
        self.read_threshold = size
        self.write_threshold = size

    def render(
        self,
        total: UidIoSample,
        read_top: Sequence[UidIoSample],
        write_top: Sequence[UidIoSample],
        interval_ms: int,
        names: Mapping[int, str],
    ) -> str:
        """Return the report text for one cycle (newline terminated)."""
        lines = [
            f"[IO_TOTAL: {format_interval(interval_ms)}] "
            f"RD:{format_grouped(total.total_read)} "
            f"WR:{format_grouped(total.total_write)} "
            f"fsync:{total.total_fsync}"
        ]

        show_read = total.total_read >= self.read_threshold
        show_write = total.total_write >= self.write_threshold
        if show_read or show_write:
            lines.append(TOP_HEADER)

        if show_read:
            lines.extend(
                self._top_rows(
                    "R", read_top, names, lambda s: s.total_read, lambda s: (s.fg_read, s.bg_read)
                )
            )
        else:
            lines.append(
                f"({total.total_read}<{format_megabytes(self.read_threshold)}MB)skip RD"
            )

        if show_write:
            lines.extend(
                self._top_rows(
                    "W",
                    write_top,
                    names,
                    lambda s: s.total_write,
                    lambda s: (s.fg_write, s.bg_write),
                )
            )
        else:
            lines.append(
                f"({total.total_write}<{format_megabytes(self.write_threshold)}MB)skip WR"
            )

        return "\n".join(lines) + "\n"

    def _top_rows(
        self,
        tag: str,
        top: Sequence[UidIoSample],
        names: Mapping[int, str],
        metric: Callable[[UidIoSample], int],
        split: Callable[[UidIoSample], tuple[int, int]],
    ) -> list[str]:
        # Percentages are relative to the listed entries, not the grand total
        top_sum = sum(metric(s) for s in top)
        rows: list[str] = []
        if top_sum == 0:
            return rows
        for rank, sample in enumerate(top, start=1):
            value = metric(sample)
            if value == 0:
                break
            fg, bg = split(sample)
            percent = 100.0 * value / top_sum
            name = names.get(sample.uid, PLACEHOLDER)
            rows.append(_row(tag, rank, percent, fg, bg, sample, name))
        return rows
