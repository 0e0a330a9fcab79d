"""Debounced autosave with a bounded ring of recovery slots.

Two records live in storage:
- the latest autosave (`{nodes, edges, tree, timestamp}`), and
- the save history, a list of SaveSlot records, most recent first.

Storage may be shared by several sessions. When a session starts and finds a
latest record older than `conflict_age_ms`, it belongs to an earlier session;
the caller is asked what to do with it instead of it being applied.
"""

from __future__ import annotations

import copy
import functools
import json
import logging
import threading
import time
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from .config import (
    AUTOSAVE_HISTORY_KEY,
    AUTOSAVE_INTERVAL_MS,
    AUTOSAVE_KEY,
    CONFLICT_AGE_MS,
    MAX_SAVE_SLOTS,
)
from .converter import flow_to_tree
from .errors import MindflowError, StorageError
from .models import GraphEdge, GraphNode, SaveSlot
from .storage import Storage

logger = logging.getLogger(__name__)


class SaveStatus(Enum):
    SAVED = "saved"
    UNSAVED = "unsaved"
    SAVING = "saving"


class TimerScheduler:
    """Runs callbacks after a delay on daemon `threading.Timer` threads.

    Any object with the same `call_later` signature works in its place,
    including an asyncio event loop.
    """

    def call_later(self, delay: float, callback: Callable[[], Any]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


def format_timestamp(timestamp: int, now: int) -> str:
    """Label a save time: 'Today at 14:05', 'Yesterday at 09:30' or a full date."""
    moment = datetime.fromtimestamp(timestamp / 1000)
    today = datetime.fromtimestamp(now / 1000).date()
    time_text = moment.strftime("%H:%M")
    if moment.date() == today:
        return f"Today at {time_text}"
    if moment.date() == today - timedelta(days=1):
        return f"Yesterday at {time_text}"
    return f"{moment.strftime('%Y-%m-%d')} {time_text}"


def format_age(age: int) -> str:
    """Describe an age in milliseconds as '2 hours ago', '5 minutes ago' or 'just now'."""
    hours = age // 3_600_000
    minutes = (age % 3_600_000) // 60_000
    if hours > 0:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    if minutes > 0:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    return "just now"


def _fingerprint(nodes: list[GraphNode], edges: list[GraphEdge]) -> str:
    return json.dumps(
        [[n.to_dict() for n in nodes], [e.to_dict() for e in edges]],
        sort_keys=True,
        default=repr,
    )


class AutoSaveSession:
    """Owns the autosave timer and save history for one editing session.

    Call `start()` once (or use the session as a context manager), feed every
    graph mutation to `update()`, and `close()` on teardown.
    """

    def __init__(
        self,
        storage: Storage,
        *,
        interval_ms: int = AUTOSAVE_INTERVAL_MS,
        max_slots: int = MAX_SAVE_SLOTS,
        conflict_age_ms: int = CONFLICT_AGE_MS,
        on_status_change: Optional[Callable[[SaveStatus], None]] = None,
        on_conflict: Optional[Callable[[SaveSlot], None]] = None,
        scheduler: Any = None,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.interval_ms = interval_ms
        self.max_slots = max_slots
        self.conflict_age_ms = conflict_age_ms
        self.on_status_change = on_status_change
        self.on_conflict = on_conflict
        self.scheduler = scheduler if scheduler is not None else TimerScheduler()
        self._clock = clock

        self._lock = threading.RLock()
        self._nodes: list[GraphNode] = []
        self._edges: list[GraphEdge] = []
        self._last_saved = _fingerprint([], [])
        self._timer: Any = None
        self._generation = 0
        self._history: list[SaveSlot] = []
        self._started = False
        self._closed = False
        self._saved_since_start = False

        self.status = SaveStatus.SAVED
        self.pending_conflict: Optional[SaveSlot] = None

    def _now(self) -> int:
        return int(self._clock() * 1000)

    def _set_status(self, status: SaveStatus) -> None:
        if status is self.status:
            return
        self.status = status
        if self.on_status_change is not None:
            self.on_status_change(status)

    @property
    def save_history(self) -> list[SaveSlot]:
        with self._lock:
            return list(self._history)

    @property
    def has_pending_save(self) -> bool:
        return self._timer is not None

    # --- lifecycle ---

    def start(self) -> Optional[SaveSlot]:
        """Load the save history and check the latest record.

        Returns:
            The latest record when it is recent enough to be a continuation
            of this session, otherwise None. An older record is reported
            through `on_conflict` and kept in `pending_conflict`.
        """
        with self._lock:
            if self._started:
                return None
            self._started = True
            self._history = self._load_history()

            latest = self._load_latest()
            if latest is None:
                return None

            age = self._now() - latest.timestamp
            latest.label = f"Auto-save from {format_age(age)}"
            if age > self.conflict_age_ms:
                logger.info("Found auto-save from a previous session (%s)", format_age(age))
                self.pending_conflict = latest
                if self.on_conflict is not None:
                    self.on_conflict(latest)
                return None

            logger.info("Found recent auto-saved mind map from %s", format_age(age))
            self._nodes = latest.nodes
            self._edges = latest.edges
            self._last_saved = _fingerprint(latest.nodes, latest.edges)
            return latest

    def close(self) -> None:
        """Cancel any pending save and make one final save if needed."""
        with self._lock:
            if self._closed:
                return
            self._cancel_timer()
            if self._nodes and _fingerprint(self._nodes, self._edges) != self._last_saved:
                self.save()
            self._closed = True

    def __enter__(self) -> AutoSaveSession:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- conflicts ---

    def resolve_conflict(self, restore: bool) -> Optional[SaveSlot]:
        """Settle a pending conflict by the user's choice.

        Restoring returns the old record so the caller can apply it.
        Discarding drops the old latest record from storage.
        """
        with self._lock:
            slot = self.pending_conflict
            if slot is None:
                return None
            self.pending_conflict = None

            if restore:
                self._nodes = slot.nodes
                self._edges = slot.edges
                self._last_saved = _fingerprint(slot.nodes, slot.edges)
                return slot

            if not self._saved_since_start:
                try:
                    self.storage.remove(AUTOSAVE_KEY)
                except StorageError as e:
                    logger.error("Failed to discard old auto-save: %s", e)
            return None

    # --- saving ---

    def update(self, nodes: list[GraphNode], edges: list[GraphEdge]) -> None:
        """Record a graph mutation and (re)schedule the debounced save."""
        with self._lock:
            self._nodes = copy.deepcopy(nodes)
            self._edges = copy.deepcopy(edges)
            if _fingerprint(nodes, edges) == self._last_saved:
                # Back to the saved state, e.g. an edit followed by its undo
                self._cancel_timer()
                self._set_status(SaveStatus.SAVED)
                return
            self._set_status(SaveStatus.UNSAVED)
            self._cancel_timer()
            self._generation += 1
            self._timer = self.scheduler.call_later(
                self.interval_ms / 1000, functools.partial(self._on_timer, self._generation)
            )

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # A timer that was replaced while waiting for the lock must not save
            if generation != self._generation or self._closed:
                return
            self._timer = None
            self.save()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
            self._generation += 1

    def save_now(self) -> bool:
        """Cancel the pending timer and save immediately."""
        with self._lock:
            self._cancel_timer()
            return self.save()

    def save(self) -> bool:
        """Write the latest record and push a slot onto the save history.

        Returns:
            True if the latest record was written. Storage failures are
            logged and leave the status at 'unsaved' for the next attempt.
        """
        with self._lock:
            if not self._nodes:
                logger.debug("Nothing to save: empty mind map")
                return False

            self._set_status(SaveStatus.SAVING)
            timestamp = self._now()
            tree = flow_to_tree(self._nodes, self._edges)
            if tree is None:
                logger.warning("Graph is not a single tree; saving without a tree")

            slot = SaveSlot(
                nodes=copy.deepcopy(self._nodes),
                edges=copy.deepcopy(self._edges),
                tree=tree,
                timestamp=timestamp,
                label=format_timestamp(timestamp, self._now()),
            )
            try:
                payload = self._encode_record(slot)
            except (TypeError, ValueError, RecursionError) as e:
                logger.error("Failed to encode auto-save: %s", e)
                self._set_status(SaveStatus.UNSAVED)
                return False

            try:
                self.storage.set(AUTOSAVE_KEY, payload)
            except StorageError as e:
                logger.error("Failed to auto-save: %s", e)
                self._set_status(SaveStatus.UNSAVED)
                return False

            self._last_saved = _fingerprint(self._nodes, self._edges)
            self._saved_since_start = True
            self._history = [slot] + self._history[:self.max_slots - 1]
            self._store_history()
            self._set_status(SaveStatus.SAVED)
            logger.debug("Auto-saved %d nodes (%s)", len(slot.nodes), slot.label)
            return True

    @staticmethod
    def _encode_record(slot: SaveSlot) -> str:
        """JSON for the latest record; a tree too deep for JSON is left out.

        The tree can always be rebuilt from `nodes` and `edges`.
        """
        record = slot.to_dict()
        del record["label"]
        try:
            return json.dumps(record)
        except RecursionError:
            logger.warning("Tree of %d nodes is too deep to store; saving without a tree",
                           len(slot.nodes))
            slot.tree = None
            record["tree"] = None
            return json.dumps(record)

    # --- save history ---

    def restore_from_history(self, index: int) -> Optional[SaveSlot]:
        """Return the slot at `index` without touching storage."""
        with self._lock:
            if not 0 <= index < len(self._history):
                return None
            slot = copy.deepcopy(self._history[index])
            self._nodes = copy.deepcopy(slot.nodes)
            self._edges = copy.deepcopy(slot.edges)
            self._last_saved = _fingerprint(slot.nodes, slot.edges)
            return slot

    def delete_history_slot(self, index: int) -> bool:
        """Remove one slot and persist the rest in their original order."""
        with self._lock:
            if not 0 <= index < len(self._history):
                return False
            remaining = self._history[:index] + self._history[index + 1:]
            if not self._store_history(remaining):
                return False
            self._history = remaining
            return True

    def clear_autosave(self) -> None:
        """Drop both records from storage and forget the save history."""
        with self._lock:
            self._cancel_timer()
            for key in (AUTOSAVE_KEY, AUTOSAVE_HISTORY_KEY):
                try:
                    self.storage.remove(key)
                except StorageError as e:
                    logger.error("Failed to clear %s: %s", key, e)
            self._history = []
            self._last_saved = _fingerprint([], [])

    def _store_history(self, history: Optional[list[SaveSlot]] = None) -> bool:
        slots = self._history if history is None else history
        try:
            self.storage.set(AUTOSAVE_HISTORY_KEY, json.dumps([s.to_dict() for s in slots]))
        except (StorageError, TypeError, ValueError, RecursionError) as e:
            logger.error("Failed to save history: %s", e)
            return False
        return True

    def _load_history(self) -> list[SaveSlot]:
        try:
            raw = self.storage.get(AUTOSAVE_HISTORY_KEY)
            if not raw:
                return []
            return [SaveSlot.from_dict(d) for d in json.loads(raw)][:self.max_slots]
        except StorageError as e:
            logger.error("Failed to load save history: %s", e)
        except (ValueError, KeyError, TypeError, AttributeError, RecursionError, MindflowError) as e:
            logger.warning("Ignoring corrupt save history: %s", e)
        return []

    def _load_latest(self) -> Optional[SaveSlot]:
        try:
            raw = self.storage.get(AUTOSAVE_KEY)
            if not raw:
                return None
            data = json.loads(raw)
            if not all(data.get(k) is not None for k in ("nodes", "edges", "timestamp")):
                logger.warning("Ignoring incomplete auto-save record")
                return None
            return SaveSlot.from_dict(data)
        except StorageError as e:
            logger.error("Failed to load auto-saved data: %s", e)
        except (ValueError, KeyError, TypeError, AttributeError, RecursionError, MindflowError) as e:
            logger.warning("Ignoring corrupt auto-save record: %s", e)
        return None
