"""Shared test fixtures for uid-io-monitor."""

import shutil
from pathlib import Path

import pytest

STATUS_TEMPLATE = """Name:\t{name}
Umask:\t0077
State:\tS (sleeping)
Tgid:\t{pid}
Ngid:\t0
Pid:\t{pid}
PPid:\t1
TracerPid:\t0
Uid:\t{uid}\t{uid}\t{uid}\t{uid}
Gid:\t{uid}\t{uid}\t{uid}\t{uid}
FDSize:\t64
Threads:\t4
"""


class FakeProcTable:
    """A /proc-like directory tree with one status file per PID."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.pids: set[int] = set()

    def add(self, pid: int, name: str, uid: int) -> None:
        pid_dir = self.root / str(pid)
        pid_dir.mkdir(parents=True, exist_ok=True)
        (pid_dir / "status").write_text(STATUS_TEMPLATE.format(name=name, pid=pid, uid=uid))
        self.pids.add(pid)

    def remove(self, pid: int) -> None:
        shutil.rmtree(self.root / str(pid), ignore_errors=True)
        self.pids.discard(pid)

    def list_pids(self) -> list[int]:
        return sorted(self.pids)


@pytest.fixture
def proc_table(tmp_path: Path) -> FakeProcTable:
    """Empty fake process table rooted under tmp_path."""
    root = tmp_path / "proc"
    root.mkdir()
    return FakeProcTable(root)


def stats_line(
    uid: int,
    fg_read: int = 0,
    fg_write: int = 0,
    bg_read: int = 0,
    bg_write: int = 0,
    fg_fsync: int = 0,
    bg_fsync: int = 0,
) -> str:
    """Build one /proc/uid_io/stats line (rchar/wchar columns are filler)."""
    return (
        f"{uid} 111 222 {fg_read} {fg_write} 333 444 {bg_read} {bg_write} {fg_fsync} {bg_fsync}"
    )


@pytest.fixture
def stats_file(tmp_path: Path) -> Path:
    """Path for a fake uid_io stats file (not created)."""
    return tmp_path / "uid_io_stats"

