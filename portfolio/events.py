from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = ['ENTRIES_CHANGED', 'ACCOUNTS_CHANGED', 'FILTER_CHANGED', 'Event', 'EventBus']

ENTRIES_CHANGED = "ENTRIES_CHANGED"
ACCOUNTS_CHANGED = "ACCOUNTS_CHANGED"
FILTER_CHANGED = "FILTER_CHANGED"


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    """Change-notification channel between the working set and its readers."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._subscribers: Dict[str, List[Handler]] = {}
        self._clock = clock

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []
        event = Event(name=name, ts=self._clock().isoformat(), payload=payload)
        return [handler(event, payload) for handler in handlers]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, ()):
            self._subscribers[name].remove(handler)
