from __future__ import annotations

import bisect
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional

from .errors import CapacityExceeded, EmptyQueue
from .models import ProcessRun


class EventKind(Enum):
    ARRIVAL = "arrival"
    DISPATCH = "dispatch"
    BURST_COMPLETE = "burst-complete"
    PREEMPT = "preempt"
    REQUEUE = "requeue"
    IO_COMPLETE = "io-complete"
    TERMINATE = "terminate"
    CPU_IDLE = "cpu-idle"

    @property
    def priority(self) -> int:
        return EVENT_PRIORITY[self]

    @property
    def ends_cpu_run(self) -> bool:
        return self in CPU_COMPLETIONS


# Lower is processed first at the same timestamp.
EVENT_PRIORITY = {
    EventKind.BURST_COMPLETE: 0,
    EventKind.PREEMPT: 0,
    EventKind.TERMINATE: 0,
    EventKind.DISPATCH: 1,
    EventKind.IO_COMPLETE: 2,
    EventKind.ARRIVAL: 3,
    EventKind.REQUEUE: 4,
    EventKind.CPU_IDLE: 5,
}

CPU_COMPLETIONS = frozenset({EventKind.BURST_COMPLETE, EventKind.PREEMPT, EventKind.TERMINATE})


@dataclass(order=True)
class Event:
    """A pending simulation event, ordered by time, kind priority, pid, then insertion."""

    time: int
    rank: int
    pid: str
    order: int
    kind: EventKind = field(compare=False)
    run: Optional[ProcessRun] = field(compare=False, default=None)

    @classmethod
    def create(cls, time: int, kind: EventKind, run: Optional[ProcessRun] = None, order: int = 0) -> "Event":
        pid = run.pid if run is not None else ""
        return cls(time=time, rank=kind.priority, pid=pid, order=order, kind=kind, run=run)

    def __repr__(self) -> str:
        return f"Event(t={self.time}, kind={self.kind.name}, pid={self.pid or None})"


class EventQueue:
    """
    Capacity-bounded list of pending events kept in due order.

    Backed by a sorted list; every operation is linear at worst, which is
    fine for populations of a few hundred processes.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._events: List[Event] = []
        self._counter = itertools.count()

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def insert(self, event: Event) -> Event:
        if len(self._events) >= self.capacity:
            raise CapacityExceeded(
                f"Event queue is full ({self.capacity}); cannot insert {event!r}"
            )
        bisect.insort(self._events, event)
        return event

    def schedule(self, time: int, kind: EventKind, run: Optional[ProcessRun] = None) -> Event:
        """Build an event stamped with the next insertion number and insert it."""
        return self.insert(Event.create(time, kind, run, order=next(self._counter)))

    def pop(self) -> Event:
        if not self._events:
            raise EmptyQueue("Event queue is empty")
        return self._events.pop(0)

    def peek_tail(self) -> Event:
        if not self._events:
            raise EmptyQueue("Event queue is empty")
        return self._events[-1]

    def find_last(self, predicate: Callable[[Event], bool]) -> Optional[Event]:
        """Scan from the tail and return the latest event matching ``predicate``."""
        for event in reversed(self._events):
            if predicate(event):
                return event
        return None

    def remove(self, event: Event) -> None:
        try:
            self._events.remove(event)
        except ValueError:
            raise EmptyQueue(f"{event!r} is not pending") from None
