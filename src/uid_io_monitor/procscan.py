"""UID to process-name index built from the live process table.

App UIDs have no account database entry, so their names come from the
processes running under them. Each refresh parses /proc/<pid>/status only
for PIDs that were not present in the previous listing.
"""

from collections.abc import Callable, Iterable
from functools import partial
from pathlib import Path

import psutil
import structlog

from uid_io_monitor.source import parse_uint

log = structlog.get_logger()

PROC_ROOT = Path("/proc")


def _token_after(text: str, label: str, start: int = 0) -> tuple[str, int] | None:
    """Return the first whitespace-delimited token after label, and its end offset."""
    pos = text.find(label, start)
    if pos < 0:
        return None
    rest = text[pos + len(label) :]
    stripped = rest.lstrip()
    if not stripped:
        return None
    token = stripped.split(maxsplit=1)[0]
    end = pos + len(label) + (len(rest) - len(stripped)) + len(token)
    return token, end


def parse_status(text: str) -> tuple[str, int] | None:
    """Extract (name, uid) from the contents of a /proc/<pid>/status file.

    The name is the first token after "Name:". The uid is the first token
    (the real uid) on the line starting with "Uid:".
    """
    name_match = _token_after(text, "Name:")
    if name_match is None:
        return None
    name, end = name_match

    uid_match = _token_after(text, "\nUid:", end)
    if uid_match is None:
        return None
    uid = parse_uint(uid_match[0])
    if uid is None:
        return None
    return name, uid


def _list_pid_dirs(proc_root: Path) -> list[int]:
    """PIDs of the numeric entries directly under proc_root."""
    pids = (parse_uint(entry.name) for entry in proc_root.iterdir())
    return [pid for pid in pids if pid is not None]


class ProcessNameIndex:
    """Incrementally maintained uid -> process name mapping.

    Entries are never removed: a UID keeps the last name seen for it even
    after its processes exit.
    """

    def __init__(
        self,
        proc_root: Path | str = PROC_ROOT,
        list_pids: Callable[[], Iterable[int]] | None = None,
        debug: bool = False,
    ) -> None:
        self.proc_root = Path(proc_root)
        self.debug = debug
        if list_pids is None:
            # psutil only knows the host process table; any other root is listed directly
            if self.proc_root == PROC_ROOT:
                list_pids = psutil.pids
            else:
                list_pids = partial(_list_pid_dirs, self.proc_root)
        self._list_pids = list_pids
        self._prev_pids: set[int] = set()
        self._curr_pids: set[int] = set()
        self._uid_names: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._uid_names)

    def name_for_uid(self, uid: int) -> str | None:
        """Return the process name recorded for uid, if any."""
        return self._uid_names.get(uid)

    def update(self, force_all: bool = False) -> int:
        """Scan processes that appeared since the last update.

        Args:
            force_all: Forget the previous listing and parse every process.

        Returns:
            Number of status files successfully parsed.
        """
        self._prev_pids = set() if force_all else self._curr_pids
        try:
            self._curr_pids = set(self._list_pids())
        except OSError as e:
            log.error("process_list_failed", error=str(e))
            self._curr_pids = self._prev_pids
            return 0

        # Sorted so repeated names for the same uid resolve deterministically
        new_pids = sorted(self._curr_pids - self._prev_pids)
        parsed = 0
        for pid in new_pids:
            status_path = self.proc_root / str(pid) / "status"
            try:
                text = status_path.read_text(errors="replace")
            except OSError:
                if self.debug:
                    log.info("process_status_unreadable", pid=pid, path=str(status_path))
                continue

            entry = parse_status(text)
            if entry is None:
                continue
            name, uid = entry
            if self.debug:
                log.info("process_name_indexed", pid=pid, name=name, uid=uid)
            self._uid_names[uid] = name
            parsed += 1
        return parsed
