"""Fixed-size top-K lists of the heaviest readers and writers."""

from collections.abc import Callable, Iterable

from uid_io_monitor.sample import UidIoSample

TOP_COUNT = 5


def _cascade_insert(
    slots: list[UidIoSample],
    candidate: UidIoSample,
    metric: Callable[[UidIoSample], int],
) -> None:
    """Insert candidate into a descending list, dropping whatever falls off the end.

    Walks every slot; whenever the candidate beats the slot (strictly), the two
    swap and the displaced entry carries on down the list. Equal values never
    displace, so the earlier-seen entry keeps its rank.
    """
    for i in range(len(slots)):
        if metric(candidate) > metric(slots[i]):
            slots[i], candidate = candidate, slots[i]


def _read_metric(sample: UidIoSample) -> int:
    return sample.total_read


def _write_metric(sample: UidIoSample) -> int:
    return sample.total_write


class TopKTracker:
    """Per-cycle totals plus top-K read and write lists.

    Lists are rebuilt from scratch every cycle; nothing carries over.
    """

    def __init__(self, size: int = TOP_COUNT) -> None:
        self.size = size
        self.total = UidIoSample.empty()
        self.read_top: list[UidIoSample] = []
        self.write_top: list[UidIoSample] = []
        self.reset()

    def reset(self) -> None:
        """Zero the total and empty both lists."""
        self.total = UidIoSample.empty()
        self.read_top = [UidIoSample.empty() for _ in range(self.size)]
        self.write_top = [UidIoSample.empty() for _ in range(self.size)]

    def consider_read(self, sample: UidIoSample) -> None:
        _cascade_insert(self.read_top, sample, _read_metric)

    def consider_write(self, sample: UidIoSample) -> None:
        _cascade_insert(self.write_top, sample, _write_metric)

    def add(self, sample: UidIoSample) -> None:
        """Account one delta: add to the total and offer it to both lists."""
        self.total = self.total + sample
        self.consider_read(sample)
        self.consider_write(sample)

    def rebuild(self, deltas: Iterable[UidIoSample]) -> None:
        """Reset, then add every delta in iteration order."""
        self.reset()
        for sample in deltas:
            self.add(sample)
