"""Sync engine: one load at startup, then debounced full-state saves."""
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from academia.errors import RemoteStoreError
from academia.models import AppState
from academia.remote import JsonBinClient
from academia.seed import default_state
from academia.serialization import state_from_document, state_to_document
from academia.store import Store

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 2.0


class SyncState(str, Enum):
    LOADING = "loading"
    CLEAN = "clean"
    DIRTY = "dirty"


class TimerScheduler:
    """Runs a callback once after a delay on a daemon threading.Timer."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class SyncEngine:
    """Mirrors the store to the remote document.

    load() runs once and replaces the store's collections with what the
    remote holds. After that every store change marks the engine dirty and
    reschedules a single save; when the quiet period ends the current
    snapshot is uploaded in full. Failures are logged and never retried.
    """

    def __init__(
        self,
        store: Store,
        remote: JsonBinClient,
        defaults: Optional[AppState] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        scheduler=None,
    ):
        self.store = store
        self.remote = remote
        self.defaults = defaults if defaults is not None else default_state()
        self.debounce_seconds = debounce_seconds
        self.scheduler = scheduler or TimerScheduler()
        self.persistent = remote.is_configured
        self._state = SyncState.LOADING
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()
        self._pending = None
        self._generation = 0
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def has_pending_save(self) -> bool:
        return self._pending is not None

    def load(self) -> None:
        """Fetch the remote document once and adopt it, falling back to defaults."""
        self._state = SyncState.LOADING
        try:
            if not self.persistent:
                logger.warning("jsonbin.io API key or bin id not set. Data will not be persisted.")
                return
            self._load_remote()
        finally:
            self._state = SyncState.CLEAN

    def _load_remote(self) -> None:
        try:
            record = self.remote.fetch_latest()
        except RemoteStoreError as e:
            logger.error("Error loading state from jsonbin.io: %s", e)
            return

        if not record:
            logger.info("No stored document; starting from defaults")
            return
        try:
            if not isinstance(record, dict):
                raise TypeError(f"expected a mapping, got {type(record).__name__}")
            state = state_from_document(record, self.defaults)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error("Stored document is malformed, keeping defaults: %r", e)
            return
        # The change this emits arrives while LOADING and is not treated as an edit.
        self.store.replace(state)
        logger.info("Loaded state from jsonbin.io")

    def _on_change(self, _state: AppState) -> None:
        if self._state is SyncState.LOADING or not self.persistent:
            return
        with self._lock:
            self._state = SyncState.DIRTY
            self._cancel_pending()
            self._generation += 1
            generation = self._generation
            self._pending = self.scheduler.schedule(
                self.debounce_seconds, lambda: self._fire(generation)
            )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return  # superseded by a newer change
            self._pending = None
        self._save()

    def _save(self) -> None:
        # One upload at a time; close() waits on this lock for an in-flight save.
        with self._save_lock:
            document = state_to_document(self.store.snapshot())
            try:
                self.remote.save(document)
            except RemoteStoreError as e:
                logger.error("Error saving state to jsonbin.io: %s", e)
        with self._lock:
            if self._pending is None:
                self._state = SyncState.CLEAN

    def flush(self) -> bool:
        """Run a pending save now. Returns True when a save was issued."""
        with self._lock:
            if self._pending is None:
                return False
            self._cancel_pending()
            self._generation += 1
        self._save()
        return True

    def close(self) -> None:
        """Drop any pending save, wait for a running one and stop observing the store."""
        with self._lock:
            self._cancel_pending()
            self._generation += 1
        with self._save_lock:
            self._unsubscribe()
