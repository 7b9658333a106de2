"""
src/data/broadcast.py
─────────────────────
In-process publish/subscribe hub for live events.

Every subscriber owns a bounded queue; ``publish`` fans a message out to all
of them without waiting for acknowledgement. When a slow subscriber's queue
is full the oldest message is dropped.

Message shape (also the JSON sent over the push stream):
    {"type": "sensorData" | "alert" | "connection", "data": {...}}
"""
from __future__ import annotations

import json
import logging
import threading
from collections import deque
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class MessageKind(str, Enum):
    SENSOR_DATA = "sensorData"
    ALERT = "alert"
    CONNECTION = "connection"


def make_message(kind: MessageKind | str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"type": MessageKind(kind).value, "data": payload}


def encode_message(message: dict[str, Any]) -> str:
    return json.dumps(message, separators=(",", ":"))


class Subscription:
    """A subscriber's mailbox."""

    def __init__(self, max_queue: int) -> None:
        self._queue: deque[dict[str, Any]] = deque(maxlen=max_queue)
        self._cond = threading.Condition()
        self.closed = False
        self.dropped = 0

    def put(self, message: dict[str, Any]) -> None:
        with self._cond:
            if len(self._queue) == self._queue.maxlen:
                self.dropped += 1
            self._queue.append(message)
            self._cond.notify()

    def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next message, or None on timeout / close."""
        with self._cond:
            if not self._queue and not self.closed:
                self._cond.wait(timeout)
            if not self._queue:
                return None
            return self._queue.popleft()

    def drain(self) -> list[dict[str, Any]]:
        with self._cond:
            messages = list(self._queue)
            self._queue.clear()
        return messages

    def close(self) -> None:
        with self._cond:
            self.closed = True
            self._cond.notify_all()

    def __len__(self) -> int:
        return len(self._queue)


class Broadcaster:
    def __init__(self, max_queue: int = 500) -> None:
        self._max_queue = max_queue
        self._subscribers: set[Subscription] = set()
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> Subscription:
        sub = Subscription(self._max_queue)
        with self._lock:
            self._subscribers.add(sub)
        logger.info("Subscriber connected (%d total)", self.subscriber_count)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        sub.close()
        with self._lock:
            self._subscribers.discard(sub)
        logger.info("Subscriber disconnected (%d total)", self.subscriber_count)

    def publish(self, kind: MessageKind | str, payload: dict[str, Any]) -> int:
        """Fan a message out to every live subscriber. Returns the number reached."""
        message = make_message(kind, payload)
        with self._lock:
            targets = [s for s in self._subscribers if not s.closed]
        for sub in targets:
            sub.put(message)
        return len(targets)
