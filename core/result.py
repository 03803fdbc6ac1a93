from __future__ import annotations

import threading
from typing import Iterable, Iterator, List, Optional, Set

from core.errors import Failure
from core.models import BettingEvent


class ScrapeResult:
    """
    Append-only buffer of events captured during one scrape call.

    Response callbacks may append from whichever thread the browser driver
    dispatches them on, so every mutation goes through a lock. Order is the
    arrival order of qualifying responses. Events are not deduplicated unless
    deduplicate is set, in which case a second event with an already seen
    event_id is dropped (events without an id are always kept).
    """

    def __init__(self, deduplicate: bool = False, target_url: Optional[str] = None):
        self.deduplicate = deduplicate
        self.target_url = target_url
        self.endpoint_observed = False
        self._events: List[BettingEvent] = []
        self._failures: List[Failure] = []
        self._seen_ids: Set[str] = set()
        self._lock = threading.Lock()

    def extend(self, events: Iterable[BettingEvent]) -> int:
        """Append events, returning how many were actually kept."""
        added = 0
        with self._lock:
            for event in events:
                if self.deduplicate and event.event_id is not None:
                    if event.event_id in self._seen_ids:
                        continue
                    self._seen_ids.add(event.event_id)
                self._events.append(event)
                added += 1
        return added

    def record_failure(self, failure: Optional[Failure]) -> None:
        if failure is None:
            return
        with self._lock:
            self._failures.append(failure)

    @property
    def events(self) -> List[BettingEvent]:
        with self._lock:
            return list(self._events)

    @property
    def failures(self) -> List[Failure]:
        with self._lock:
            return list(self._failures)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def __iter__(self) -> Iterator[BettingEvent]:
        return iter(self.events)

    def __getitem__(self, index: int) -> BettingEvent:
        with self._lock:
            return self._events[index]

    def __repr__(self) -> str:
        return f"ScrapeResult(events={len(self)}, failures={len(self.failures)}, endpoint_observed={self.endpoint_observed})"
