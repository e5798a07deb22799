from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .errors import InvalidConfiguration


class ProcessState(Enum):
    ARRIVED = "arrived"
    READY = "ready"
    RUNNING = "running"
    PREEMPTED = "preempted"
    WAITING = "waiting"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Process:
    """
    Workload template for one process. Never mutated by a scheduler run.
    """

    pid: str
    arrival_time: int
    cpu_bursts: Tuple[int, ...]
    io_bursts: Tuple[int, ...] = ()
    cpu_bound: bool = False

    def __post_init__(self) -> None:
        # Accept lists from loaders but store tuples.
        object.__setattr__(self, "cpu_bursts", tuple(self.cpu_bursts))
        object.__setattr__(self, "io_bursts", tuple(self.io_bursts))

        if self.arrival_time < 0:
            raise InvalidConfiguration(f"Process {self.pid}: negative arrival time")
        if not self.cpu_bursts:
            raise InvalidConfiguration(f"Process {self.pid}: needs at least one CPU burst")
        if len(self.io_bursts) != len(self.cpu_bursts) - 1:
            raise InvalidConfiguration(
                f"Process {self.pid}: expected {len(self.cpu_bursts) - 1} I/O bursts, "
                f"got {len(self.io_bursts)}"
            )
        if any(b <= 0 for b in self.cpu_bursts) or any(b < 0 for b in self.io_bursts):
            raise InvalidConfiguration(f"Process {self.pid}: CPU bursts must be positive and I/O bursts non-negative")

    @property
    def num_bursts(self) -> int:
        return len(self.cpu_bursts)


@dataclass
class ProcessRun:
    """
    Mutable state of one process for the duration of one scheduler run.
    """

    process: Process
    tau: int
    state: ProcessState = ProcessState.ARRIVED
    bursts_left: int = 0
    remaining: int = 0
    wait_time: int = 0
    turnaround_time: int = 0
    context_switches: int = 0
    preemptions: int = 0
    bursts_within_slice: int = 0
    completion_time: int = 0
    ready_since: int = 0
    burst_entered: int = 0
    segment_start: int = 0
    segment_end: int = 0

    @classmethod
    def start(cls, process: Process, initial_tau: int) -> "ProcessRun":
        return cls(
            process=process,
            tau=initial_tau,
            bursts_left=process.num_bursts,
            remaining=process.cpu_bursts[0],
        )

    @property
    def pid(self) -> str:
        return self.process.pid

    @property
    def burst_index(self) -> int:
        return self.process.num_bursts - self.bursts_left

    @property
    def current_burst(self) -> int:
        return self.process.cpu_bursts[self.burst_index]

    @property
    def used(self) -> int:
        """CPU time already consumed in the current burst."""
        return self.current_burst - self.remaining

    @property
    def predicted_remaining(self) -> int:
        return self.tau - self.used

    def __repr__(self) -> str:
        return f"ProcessRun(pid={self.pid}, state={self.state.name}, left={self.bursts_left}, tau={self.tau})"


@dataclass(frozen=True)
class SimulationConfig:
    """
    Numeric parameters shared by every policy run.

    ``lam`` is the arrival-rate parameter; the starting tau of every process
    is derived from it.
    """

    context_switch: int
    alpha: float = 0.5
    quantum: Optional[int] = None
    lam: float = 0.01

    def __post_init__(self) -> None:
        if self.context_switch < 0:
            raise InvalidConfiguration("Context switch time must not be negative")
        if not 0.0 <= self.alpha <= 1.0:
            raise InvalidConfiguration("Alpha must be in the range 0 to 1")
        if self.quantum is not None and self.quantum < 0:
            raise InvalidConfiguration("Time slice must not be negative")
        if self.lam <= 0:
            raise InvalidConfiguration("Lambda must be positive")

    @property
    def half_switch(self) -> int:
        return self.context_switch // 2

    @property
    def initial_tau(self) -> int:
        return math.ceil(1.0 / self.lam)


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: str
    start_time: int
    end_time: int


@dataclass
class ProcessMetrics:
    pid: str
    cpu_bound: bool
    arrival_time: int
    num_bursts: int
    cpu_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    context_switches: int
    preemptions: int
    bursts_within_slice: int = 0


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int]
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    log: List[str] = field(default_factory=list)
    end_time: int = 0
    system: Optional[SystemMetrics] = None

    def by_pid(self) -> Dict[str, ProcessMetrics]:
        return {p.pid: p for p in self.processes}
