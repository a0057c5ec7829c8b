from __future__ import annotations

from collections import defaultdict
from typing import Callable, DefaultDict

from bassball.contracts import MatchEvent, Side

MatchEventHandler = Callable[[MatchEvent], None]


class EventBus:
    """Fans match events out to subscribers and keeps a per-type tally."""

    def __init__(self) -> None:
        self._handlers: list[tuple[frozenset[str] | None, MatchEventHandler]] = []
        self._counter: DefaultDict[str, int] = defaultdict(int)
        self._by_side: DefaultDict[tuple[Side, str], int] = defaultdict(int)

    def subscribe(self, handler: MatchEventHandler, *event_types: str) -> None:
        """Register ``handler``; with ``event_types`` it only sees events of those types."""
        self._handlers.append((frozenset(event_types) or None, handler))

    def publish(self, event: MatchEvent) -> None:
        self._counter[event.event_type] += 1
        if event.side is not None:
            self._by_side[(event.side, event.event_type)] += 1
        for event_types, handler in self._handlers:
            if event_types is None or event.event_type in event_types:
                handler(event)

    def emitted_count(self, event_type: str | None = None) -> int:
        if event_type is None:
            return sum(self._counter.values())
        return self._counter[event_type]

    def side_count(self, side: Side, event_type: str) -> int:
        return self._by_side[(side, event_type)]
