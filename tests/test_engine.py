"""Tests for delta computation between snapshots."""

import itertools

import pytest
from conftest import FakeProcTable

from uid_io_monitor.engine import DeltaEngine
from uid_io_monitor.procscan import ProcessNameIndex
from uid_io_monitor.resolver import IdentifierResolver
from uid_io_monitor.sample import UidIoSample


def stepping_clock(start: float = 1000.0, step: float = 10.25):
    """Clock returning start, start+step, start+2*step, ..."""
    counter = itertools.count()
    return lambda: start + step * next(counter)


@pytest.fixture
def resolver(proc_table: FakeProcTable) -> IdentifierResolver:
    index = ProcessNameIndex(proc_root=proc_table.root, list_pids=proc_table.list_pids)
    return IdentifierResolver(index=index, account_lookup={0: "root", 1000: "system"}.get)


@pytest.fixture
def engine(resolver: IdentifierResolver) -> DeltaEngine:
    return DeltaEngine(resolver, clock=stepping_clock())


def test_first_apply_primes_and_returns_none(engine: DeltaEngine):
    snapshot = {1000: UidIoSample(uid=1000, fg_read=500)}
    assert engine.primed is False
    assert engine.apply(snapshot) is None
    assert engine.primed is True
    assert engine.previous == snapshot


def test_priming_resolves_every_uid(engine: DeltaEngine, resolver: IdentifierResolver):
    """Priming seeds names for all uids, active or not."""
    engine.apply({0: UidIoSample(uid=0), 1000: UidIoSample(uid=1000)})
    assert resolver.cache == {0: "root", 1000: "system"}


def test_priming_scans_whole_process_table(
    proc_table: FakeProcTable, engine: DeltaEngine, resolver: IdentifierResolver
):
    proc_table.add(500, "com.android.gms", 10016)
    engine.apply({10016: UidIoSample(uid=10016)})
    assert resolver.resolve(10016) == "com.android.gms"


def test_delta_is_current_minus_previous(engine: DeltaEngine):
    engine.apply({1000: UidIoSample(uid=1000, fg_read=100, bg_write=50, fg_fsync=3)})
    deltas = engine.apply({1000: UidIoSample(uid=1000, fg_read=160, bg_write=80, fg_fsync=5)})
    assert deltas == {1000: UidIoSample(uid=1000, fg_read=60, bg_write=30, fg_fsync=2)}


def test_counter_reset_clamps_to_zero(engine: DeltaEngine):
    engine.apply({1000: UidIoSample(uid=1000, fg_read=100)})
    deltas = engine.apply({1000: UidIoSample(uid=1000, fg_read=40)})
    assert deltas is not None
    assert deltas[1000].fg_read == 0


def test_new_uid_counts_full_counters(engine: DeltaEngine):
    engine.apply({1000: UidIoSample(uid=1000)})
    new = UidIoSample(uid=10123, fg_read=22241280, bg_read=1318912)
    deltas = engine.apply({1000: UidIoSample(uid=1000), 10123: new})
    assert deltas is not None
    assert deltas[10123] == new


def test_vanished_uid_is_dropped(engine: DeltaEngine):
    engine.apply({1000: UidIoSample(uid=1000, fg_read=1), 0: UidIoSample(uid=0, fg_read=1)})
    deltas = engine.apply({0: UidIoSample(uid=0, fg_read=5)})
    assert deltas is not None
    assert set(deltas) == {0}
    assert set(engine.previous) == {0}


def test_current_becomes_previous(engine: DeltaEngine):
    engine.apply({1000: UidIoSample(uid=1000, fg_read=100)})
    engine.apply({1000: UidIoSample(uid=1000, fg_read=150)})
    deltas = engine.apply({1000: UidIoSample(uid=1000, fg_read=175)})
    assert deltas is not None
    assert deltas[1000].fg_read == 25


def test_interval_tracks_clock(resolver: IdentifierResolver):
    engine = DeltaEngine(resolver, clock=stepping_clock(start=50.0, step=10.25))
    engine.apply({})
    assert engine.interval_ms == 0
    engine.apply({})
    assert engine.interval_ms == 10250
    engine.apply({})
    assert engine.interval_ms == 10250


def test_active_unknown_uid_becomes_pending_and_resolves(
    proc_table: FakeProcTable, engine: DeltaEngine, resolver: IdentifierResolver
):
    engine.apply({})
    proc_table.add(42, "com.example.app", 10500)
    engine.apply({10500: UidIoSample(uid=10500, bg_write=4096)})
    assert resolver.resolve(10500) == "com.example.app"


def test_inactive_uid_is_not_resolved(
    proc_table: FakeProcTable, engine: DeltaEngine, resolver: IdentifierResolver
):
    engine.apply({10500: UidIoSample(uid=10500, fg_read=100)})
    proc_table.add(42, "com.example.idle", 10500)
    # No bytes moved this interval, so no lookup is attempted
    engine.apply({10500: UidIoSample(uid=10500, fg_read=100)})
    assert resolver.resolve(10500) is None


def test_unresolved_app_uid_retried_while_active(
    proc_table: FakeProcTable, engine: DeltaEngine, resolver: IdentifierResolver
):
    """An app uid with no live process shows as unresolved, then resolves later."""
    engine.apply({})
    engine.apply({10082: UidIoSample(uid=10082, fg_read=16039936)})
    assert resolver.resolve(10082) is None

    proc_table.add(900, "com.example.back", 10082)
    engine.apply({10082: UidIoSample(uid=10082, fg_read=20000000)})
    assert resolver.resolve(10082) == "com.example.back"


def test_pending_cleared_after_apply(engine: DeltaEngine, resolver: IdentifierResolver):
    engine.apply({})
    engine.apply({10082: UidIoSample(uid=10082, fg_read=1)})
    assert resolver.pending == []
