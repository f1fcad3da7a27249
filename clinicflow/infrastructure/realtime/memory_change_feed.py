import threading
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ...application.ports.change_feed import ChangeCallback, ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

_Subscription = Tuple[ChangeCallback, Dict[str, Any]]


class InMemoryChangeFeed(ChangeFeed):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subs: Dict[str, List[_Subscription]] = {}

    def subscribe(self, table: str, callback: ChangeCallback, filters: Optional[Dict[str, Any]] = None) -> Callable[[], None]:
        sub = (callback, dict(filters or {}))
        with self._lock:
            self._subs.setdefault(table, []).append(sub)

        def unsubscribe() -> None:
            with self._lock:
                subs = self._subs.get(table, [])
                if sub in subs:
                    subs.remove(sub)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            subs = list(self._subs.get(event.table, []))
        for callback, filters in subs:
            if any(event.row.get(k) != v for k, v in filters.items()):
                continue
            try:
                callback(event)
            except Exception:
                # Keep delivering to the remaining listeners
                logger.exception(f"Change listener failed for {event.table} {event.event}")
