from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

logger = logging.getLogger(__name__)

Snapshot = Any
SnapshotCallback = Callable[[Snapshot], None]


def enquiry_channel(enquiry_key: str) -> str:
    return f"enquiry:{enquiry_key}"


def enquiries_channel(role: str, participant_id: str) -> str:
    return f"enquiries:{role}:{participant_id}"


def orders_channel(role: str, participant_id: str) -> str:
    return f"orders:{role}:{participant_id}"


def session_channel(user_id: str) -> str:
    return f"session:{user_id}"


class SnapshotHub:
    """Live query fan-out: every publish delivers the full latest state of a channel.

    Callbacks run on the publishing thread and must not block.
    """

    def __init__(self) -> None:
        self._subscribers: DefaultDict[str, List[SnapshotCallback]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, channel: str, callback: SnapshotCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers[channel].append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(channel)
                if not callbacks:
                    return
                try:
                    callbacks.remove(callback)
                except ValueError:
                    return
                if not callbacks:
                    del self._subscribers[channel]

        return _unsubscribe

    def has_subscribers(self, channel: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(channel))

    def publish(self, channel: str, snapshot: Snapshot) -> int:
        with self._lock:
            callbacks = list(self._subscribers.get(channel, []))
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Snapshot subscriber failed for %s", channel)
        return len(callbacks)


snapshot_hub = SnapshotHub()
