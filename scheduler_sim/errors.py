from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every error raised by the simulator."""


class CapacityExceeded(SchedulerError):
    """
    A bounded queue was asked to hold more than its configured capacity.

    The bounds are derived from the process population, so hitting one
    means the run is broken and must stop.
    """


class EmptyQueue(SchedulerError, IndexError):
    """pop/dequeue/peek on a queue with nothing in it."""


class InvalidConfiguration(SchedulerError, ValueError):
    """Parameters or workload data the simulator refuses to run with."""
