"""Tests for the load-then-debounced-save sync engine."""
import logging
import threading

import pytest

from academia.serialization import dumps, state_from_document, state_to_document
from academia.store import Store
from academia.sync import SyncEngine, SyncState, TimerScheduler


def make_engine(store, remote, scheduler, debounce=2.0):
    return SyncEngine(store, remote, defaults=store.snapshot(), debounce_seconds=debounce, scheduler=scheduler)


def test_load_replaces_state_with_remote_document(store, scheduler, remote):
    store.add_note("Saved elsewhere")
    remote.record = state_to_document(store.snapshot())
    fresh = Store()
    engine = SyncEngine(fresh, remote, defaults=store.snapshot(), scheduler=scheduler)
    engine.load()
    assert remote.fetches == 1
    assert fresh.snapshot() == store.snapshot()
    assert engine.state is SyncState.CLEAN


def test_load_does_not_schedule_a_save(store, scheduler, remote):
    remote.record = state_to_document(store.snapshot())
    engine = make_engine(store, remote, scheduler)
    engine.load()
    assert scheduler.live == []
    scheduler.advance(10)
    assert remote.saves == []
    assert not engine.has_pending_save


def test_missing_bin_keeps_defaults(store, scheduler, remote):
    before = store.snapshot()
    engine = make_engine(store, remote, scheduler)
    engine.load()
    assert store.snapshot() == before
    assert engine.state is SyncState.CLEAN


def test_fetch_failure_is_logged_and_defaults_kept(store, scheduler, remote, caplog):
    remote.fail_fetch = True
    before = store.snapshot()
    engine = make_engine(store, remote, scheduler)
    with caplog.at_level(logging.ERROR, logger="academia.sync"):
        engine.load()
    assert store.snapshot() == before
    assert "Error loading state" in caplog.text
    assert engine.state is SyncState.CLEAN


def test_partial_document_falls_back_per_key(store, scheduler, remote):
    defaults = store.snapshot()
    remote.record = {"tasks": [], "notes": [{"id": "n-x", "title": "Only note"}]}
    engine = make_engine(store, remote, scheduler)
    engine.load()
    state = store.snapshot()
    assert state.tasks == ()
    assert [n.id for n in state.notes] == ["n-x"]
    assert state.decks == defaults.decks
    assert state.timetable == defaults.timetable


def test_unconfigured_remote_never_fetches_or_saves(store, scheduler, remote, caplog):
    remote.is_configured = False
    engine = make_engine(store, remote, scheduler)
    with caplog.at_level(logging.WARNING, logger="academia.sync"):
        engine.load()
    assert "will not be persisted" in caplog.text
    store.add_task("Local only")
    scheduler.advance(5)
    assert remote.fetches == 0
    assert remote.saves == []
    assert engine.state is SyncState.CLEAN


def test_burst_of_changes_results_in_one_save_of_final_state(store, scheduler, remote):
    engine = make_engine(store, remote, scheduler)
    engine.load()
    for i in range(5):
        store.add_task(f"Task {i}")
        scheduler.advance(0.5)
    assert remote.saves == []
    assert engine.state is SyncState.DIRTY
    scheduler.advance(2.0)
    assert len(remote.saves) == 1
    assert remote.saves[0] == state_to_document(store.snapshot())
    assert engine.state is SyncState.CLEAN


def test_change_after_quiet_period_schedules_another_save(store, scheduler, remote):
    engine = make_engine(store, remote, scheduler)
    engine.load()
    store.add_task("First")
    scheduler.advance(2.0)
    store.add_task("Second")
    scheduler.advance(1.9)
    assert len(remote.saves) == 1
    scheduler.advance(0.5)
    assert len(remote.saves) == 2
    assert remote.saves[1]["tasks"][0]["title"] == "Second"


def test_save_failure_is_logged_not_retried(store, scheduler, remote, caplog):
    remote.fail_save = True
    engine = make_engine(store, remote, scheduler)
    engine.load()
    store.add_task("Lost")
    with caplog.at_level(logging.ERROR, logger="academia.sync"):
        scheduler.advance(2.0)
    assert "Error saving state" in caplog.text
    assert engine.state is SyncState.CLEAN
    assert scheduler.live == []


def test_flush_runs_pending_save_immediately(store, scheduler, remote):
    engine = make_engine(store, remote, scheduler)
    engine.load()
    assert engine.flush() is False
    store.add_task("Before exit")
    assert engine.flush() is True
    assert len(remote.saves) == 1
    # The cancelled timer does not save a second time
    scheduler.advance(5)
    assert len(remote.saves) == 1


def test_close_drops_pending_save_and_unsubscribes(store, scheduler, remote):
    engine = make_engine(store, remote, scheduler)
    engine.load()
    store.add_task("Pending")
    engine.close()
    scheduler.advance(5)
    store.add_task("After close")
    scheduler.advance(5)
    assert remote.saves == []


def test_saved_document_reloads_identically(store, scheduler, remote):
    engine = make_engine(store, remote, scheduler)
    engine.load()
    store.add_course("Physics", "PHY 101")
    store.delete_deck("deck-2")
    scheduler.advance(2.0)
    saved = remote.saves[-1]
    reloaded = state_from_document(saved, store.snapshot())
    assert reloaded == store.snapshot()
    assert dumps(state_to_document(reloaded)) == dumps(saved)


@pytest.mark.parametrize("record", [
    {"courses": [{"id": "c1", "name": "X", "code": "X1", "color": "orange"}]},
    {"notes": [{"id": "n1"}]},
    {"tasks": "not a list"},
    ["not", "a", "mapping"],
])
def test_malformed_document_keeps_defaults_and_still_saves(store, scheduler, remote, record, caplog):
    before = store.snapshot()
    remote.record = record
    engine = make_engine(store, remote, scheduler)
    with caplog.at_level(logging.ERROR, logger="academia.sync"):
        engine.load()
    assert "malformed" in caplog.text
    assert store.snapshot() == before
    assert engine.state is SyncState.CLEAN
    store.add_task("After a bad load")
    scheduler.advance(5)
    assert len(remote.saves) == 1


class BlockingRemote:
    """Remote whose save blocks until released."""

    is_configured = True

    def __init__(self):
        self.started = threading.Event()
        self.release = threading.Event()
        self.saves = []

    def fetch_latest(self):
        return None

    def save(self, document):
        self.started.set()
        self.release.wait(5)
        self.saves.append(document)


def test_close_waits_for_a_save_already_running(store):
    remote = BlockingRemote()
    engine = SyncEngine(store, remote, defaults=store.snapshot(), debounce_seconds=0.01, scheduler=TimerScheduler())
    engine.load()
    store.add_task("In flight")
    assert remote.started.wait(5)

    closer = threading.Thread(target=engine.close)
    closer.start()
    closer.join(0.1)
    assert closer.is_alive()

    remote.release.set()
    closer.join(5)
    assert not closer.is_alive()
    assert len(remote.saves) == 1
