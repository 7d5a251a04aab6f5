"""
In-process change feed.

Every successful write through the gateway publishes a (table, event, row)
notification. Subscribers receive the notification synchronously; they are
expected to treat it as "something changed" and re-fetch what they show.
"""

import threading
from itertools import count
from typing import Callable, Optional

from app_logger import get_logger

logger = get_logger(__name__)

EVENTS = ("INSERT", "UPDATE", "DELETE")


class Subscription:

    def __init__(self, feed: "ChangeFeed", key: int, table: str):
        self._feed = feed
        self._key = key
        self.table = table
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._feed._remove(self._key)
            self.active = False


class ChangeFeed:

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = count(1)
        self._subscribers = {}

    def subscribe(
        self,
        table: str,
        on_change: Callable[[dict], None],
        event: str = "*",
        row_filter: Optional[dict] = None,
    ) -> Subscription:
        if event != "*" and event not in EVENTS:
            raise ValueError(f"Unknown change event: {event}")

        key = next(self._ids)
        with self._lock:
            self._subscribers[key] = (table, event, row_filter or {}, on_change)
        return Subscription(self, key, table)

    def publish(self, table: str, event: str, row: dict):
        with self._lock:
            targets = [
                (flt, callback)
                for (tbl, evt, flt, callback) in self._subscribers.values()
                if tbl == table and evt in ("*", event)
            ]

        payload = {"table": table, "event": event, "row": row}
        for flt, callback in targets:
            if any(row.get(field) != value for field, value in flt.items()):
                continue
            try:
                callback(payload)
            except Exception:
                # A broken subscriber must not fail the write that triggered it
                logger.exception("Change subscriber for %s raised", table)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        with self._lock:
            if table is None:
                return len(self._subscribers)
            return sum(1 for (tbl, _, _, _) in self._subscribers.values() if tbl == table)

    def _remove(self, key: int):
        with self._lock:
            self._subscribers.pop(key, None)


change_feed = ChangeFeed()
