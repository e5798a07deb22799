from __future__ import annotations

from typing import Callable, Iterator, List, Optional

from .errors import CapacityExceeded, EmptyQueue
from .models import ProcessRun

EstimateKey = Callable[[ProcessRun], int]


class ReadyQueue:
    """
    Processes waiting for the CPU.

    Without a ``key`` the queue is FIFO. With a ``key`` it stays sorted by
    ``(key(run), pid)``; equal estimates keep identifier order.
    """

    def __init__(self, capacity: int, key: Optional[EstimateKey] = None):
        self.capacity = capacity
        self.key = key
        self._procs: List[ProcessRun] = []

    def __len__(self) -> int:
        return len(self._procs)

    def __iter__(self) -> Iterator[ProcessRun]:
        return iter(list(self._procs))

    def __contains__(self, run: ProcessRun) -> bool:
        return run in self._procs

    def enqueue(self, run: ProcessRun) -> bool:
        """
        Add ``run`` and report whether it landed strictly before the tail.

        FIFO queues always append, so they always report False.
        """
        if len(self._procs) >= self.capacity:
            raise CapacityExceeded(f"Ready queue is full ({self.capacity}); cannot enqueue {run.pid}")

        if self.key is None:
            self._procs.append(run)
            return False

        new_key = (self.key(run), run.pid)
        index = len(self._procs)
        for i, queued in enumerate(self._procs):
            if (self.key(queued), queued.pid) > new_key:
                index = i
                break
        self._procs.insert(index, run)
        return index < len(self._procs) - 1

    def dequeue(self) -> ProcessRun:
        if not self._procs:
            raise EmptyQueue("Ready queue is empty")
        return self._procs.pop(0)

    def peek(self) -> ProcessRun:
        if not self._procs:
            raise EmptyQueue("Ready queue is empty")
        return self._procs[0]

    def pids(self) -> List[str]:
        return [run.pid for run in self._procs]
