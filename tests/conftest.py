import random

import pytest

from academia.errors import RemoteStoreError
from academia.seed import default_state
from academia.store import Store


class ManualHandle:
    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by advance() instead of wall-clock time."""

    def __init__(self):
        self.now = 0.0
        self.handles = []

    def schedule(self, delay, callback):
        handle = ManualHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds):
        self.now += seconds
        due = [h for h in self.handles if not h.cancelled and h.due <= self.now]
        self.handles = [h for h in self.handles if h not in due]
        for handle in due:
            handle.callback()

    @property
    def live(self):
        return [h for h in self.handles if not h.cancelled]


class FakeRemote:
    """In-memory stand-in for JsonBinClient."""

    def __init__(self, record=None, configured=True, fail_fetch=False, fail_save=False):
        self.record = record
        self.is_configured = configured
        self.fail_fetch = fail_fetch
        self.fail_save = fail_save
        self.fetches = 0
        self.saves = []

    def fetch_latest(self):
        self.fetches += 1
        if self.fail_fetch:
            raise RemoteStoreError("boom")
        return self.record

    def save(self, document):
        if self.fail_save:
            raise RemoteStoreError("boom")
        self.saves.append(document)
        self.record = document


@pytest.fixture
def store():
    """Store pre-filled with the built-in defaults."""
    return Store(default_state(), rng=random.Random(7))


@pytest.fixture
def empty_store():
    return Store(rng=random.Random(7))


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def remote():
    return FakeRemote()
