from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List, Optional

from rich.console import Console

from .errors import InvalidConfiguration, SchedulerError
from .eventlog import EventLog
from .events import Event, EventKind, EventQueue
from .metrics import compute_system_metrics
from .models import (
    Process,
    ProcessMetrics,
    ProcessRun,
    ProcessState,
    ScheduledSlice,
    ScheduleResult,
    SimulationConfig,
)
from .ready_queue import EstimateKey, ReadyQueue

# Each process is named by at most one pending event at a time; the bound
# allows two. The queue also holds the single CpuIdle event.
EVENTS_PER_PROCESS = 2


class Scheduler:
    """
    First-Come First-Serve (non-preemptive), and the event loop every other
    policy builds on.

    The CPU is "claimed" from the moment a CpuIdle selection is pending
    until the switch-out that follows a burst or a preemption. Exactly one
    CpuIdle event is pending while the CPU is claimed and not running.
    """

    algorithm = "FCFS"
    shows_tau = False

    def __init__(self, processes: Iterable[Process], config: SimulationConfig, console: Optional[Console] = None):
        self.config = config
        self.half_switch = config.half_switch

        templates = sorted(processes, key=lambda p: p.pid)
        pids = [p.pid for p in templates]
        if len(set(pids)) != len(pids):
            raise InvalidConfiguration("Process identifiers must be unique")
        self.runs: List[ProcessRun] = [ProcessRun.start(p, config.initial_tau) for p in templates]

        n = len(self.runs)
        self.events = EventQueue(capacity=EVENTS_PER_PROCESS * n + 1)
        self.ready = ReadyQueue(capacity=n, key=self.ready_key())
        self.log = EventLog(console)

        self.time = 0
        self.terminated = 0
        self.cpu_claimed = False
        self.running: Optional[ProcessRun] = None
        self.timeline: List[ScheduledSlice] = []

        self._handlers: Dict[EventKind, Callable[[ProcessRun], None]] = {
            EventKind.ARRIVAL: self.on_arrival,
            EventKind.DISPATCH: self.on_dispatch,
            EventKind.BURST_COMPLETE: self.on_burst_complete,
            EventKind.PREEMPT: self.on_preempt,
            EventKind.REQUEUE: self.on_requeue,
            EventKind.IO_COMPLETE: self.on_io_complete,
            EventKind.TERMINATE: self.on_terminate,
            EventKind.CPU_IDLE: self.on_cpu_idle,
        }

    def ready_key(self) -> Optional[EstimateKey]:
        return None

    @property
    def reported_quantum(self) -> Optional[int]:
        return None

    # main loop
    def run(self) -> ScheduleResult:
        self.start()
        while self.terminated < len(self.runs):
            self.step()

        if self.runs:
            # The last process still has to switch out.
            self.time += self.half_switch
        self.emit(f"Simulator ended for {self.algorithm}")
        return self._result()

    def start(self) -> None:
        self.emit(f"Simulator started for {self.algorithm}")
        for run in self.runs:
            self.events.schedule(run.process.arrival_time, EventKind.ARRIVAL, run)

    def step(self) -> Event:
        """Advance the clock to the next pending event and handle it."""
        event = self.events.pop()
        self.time = event.time
        self._handlers[event.kind](event.run)
        return event

    # logging helpers
    def emit(self, message: str) -> None:
        self.log.emit(self.time, message, self.ready.pids())

    def describe(self, run: ProcessRun) -> str:
        if self.shows_tau:
            return f"Process {run.pid} (tau {run.tau}ms)"
        return f"Process {run.pid}"

    # handlers
    def on_arrival(self, run: ProcessRun) -> None:
        run.burst_entered = run.ready_since = self.time
        self.make_ready(run, "arrived")

    def on_io_complete(self, run: ProcessRun) -> None:
        run.remaining = run.current_burst
        run.burst_entered = run.ready_since = self.time
        self.make_ready(run, "completed I/O")

    def on_requeue(self, run: ProcessRun) -> None:
        run.state = ProcessState.READY
        run.ready_since = self.time
        self.ready.enqueue(run)
        self.wake_cpu()

    def on_cpu_idle(self, _run: Optional[ProcessRun]) -> None:
        if not self.ready:
            self.cpu_claimed = False
            return
        run = self.ready.dequeue()
        run.wait_time += self.time - run.ready_since
        run.context_switches += 1
        self.events.schedule(self.time + self.half_switch, EventKind.DISPATCH, run)

    def on_dispatch(self, run: ProcessRun) -> None:
        self.start_running(run)
        self.run_slice(run)

    def on_burst_complete(self, run: ProcessRun) -> None:
        burst = self.finish_burst(run)
        left = run.bursts_left
        self.emit(f"{self.describe(run)} completed a CPU burst; {left} burst{'' if left == 1 else 's'} to go")
        self.after_burst(run, burst)

        io_done = self.time + run.process.io_bursts[run.burst_index - 1] + self.half_switch
        self.emit(f"Process {run.pid} switching out of CPU; blocking on I/O until time {io_done}ms")
        run.state = ProcessState.WAITING
        self.events.schedule(io_done, EventKind.IO_COMPLETE, run)

    def on_terminate(self, run: ProcessRun) -> None:
        self.finish_burst(run)
        run.state = ProcessState.TERMINATED
        run.completion_time = self.time
        self.terminated += 1
        self.emit(f"Process {run.pid} terminated")

    def on_preempt(self, run: ProcessRun) -> None:
        raise SchedulerError(f"{self.algorithm} never schedules time-slice expiry (process {run.pid})")

    # transitions shared by the policies
    def make_ready(self, run: ProcessRun, how: str) -> None:
        run.state = ProcessState.READY
        self.ready.enqueue(run)
        self.emit(f"{self.describe(run)} {how}; added to ready queue")
        self.wake_cpu()

    def wake_cpu(self) -> None:
        if not self.cpu_claimed:
            self.cpu_claimed = True
            self.events.schedule(self.time, EventKind.CPU_IDLE)

    def start_running(self, run: ProcessRun) -> None:
        run.state = ProcessState.RUNNING
        run.segment_start = self.time
        self.running = run
        burst = run.current_burst
        if run.remaining < burst:
            self.emit(f"{self.describe(run)} started using the CPU for remaining {run.remaining}ms of {burst}ms burst")
        else:
            self.emit(f"{self.describe(run)} started using the CPU for {burst}ms burst")

    def run_slice(self, run: ProcessRun) -> None:
        self.schedule_cpu_end(run, run.remaining)

    def schedule_cpu_end(self, run: ProcessRun, length: int) -> None:
        if self.pending_cpu_end(run) is not None:
            raise SchedulerError(f"Process {run.pid} already has a CPU completion pending")
        if length < run.remaining:
            kind = EventKind.PREEMPT
        elif run.bursts_left == 1:
            kind = EventKind.TERMINATE
        else:
            kind = EventKind.BURST_COMPLETE
        run.segment_end = self.time + length
        self.events.schedule(run.segment_end, kind, run)

    def pending_cpu_end(self, run: ProcessRun) -> Optional[Event]:
        return self.events.find_last(lambda e: e.run is run and e.kind.ends_cpu_run)

    def finish_burst(self, run: ProcessRun) -> int:
        burst = run.current_burst
        self.close_slice(run)
        run.turnaround_time += self.time + self.half_switch - run.burst_entered
        run.remaining = 0
        run.bursts_left -= 1
        self.running = None
        self.switch_out()
        return burst

    def after_burst(self, run: ProcessRun, burst: int) -> None:
        pass

    def preempt(self, run: ProcessRun) -> None:
        """Take ``run`` off the CPU; it rejoins the ready queue once switched out."""
        self.close_slice(run)
        run.preemptions += 1
        run.state = ProcessState.PREEMPTED
        self.running = None
        self.events.schedule(self.time + self.half_switch, EventKind.REQUEUE, run)
        self.switch_out()

    def switch_out(self) -> None:
        # The CPU stays claimed until the outgoing process is off it.
        self.events.schedule(self.time + self.half_switch, EventKind.CPU_IDLE)

    def close_slice(self, run: ProcessRun) -> None:
        if self.time > run.segment_start:
            self.timeline.append(ScheduledSlice(pid=run.pid, start_time=run.segment_start, end_time=self.time))

    def _result(self) -> ScheduleResult:
        metrics = [
            ProcessMetrics(
                pid=run.pid,
                cpu_bound=run.process.cpu_bound,
                arrival_time=run.process.arrival_time,
                num_bursts=run.process.num_bursts,
                cpu_time=sum(run.process.cpu_bursts),
                completion_time=run.completion_time,
                waiting_time=run.wait_time,
                turnaround_time=run.turnaround_time,
                context_switches=run.context_switches,
                preemptions=run.preemptions,
                bursts_within_slice=run.bursts_within_slice,
            )
            for run in self.runs
        ]
        result = ScheduleResult(
            algorithm=self.algorithm,
            quantum=self.reported_quantum,
            processes=metrics,
            timeline=self.timeline,
            log=self.log.lines,
            end_time=self.time,
        )
        compute_system_metrics(result)
        return result


FCFSScheduler = Scheduler


class SJFScheduler(Scheduler):
    """
    Shortest Job First (non-preemptive) on the exponentially averaged
    estimate ``tau``.
    """

    algorithm = "SJF"
    shows_tau = True

    def ready_key(self) -> Optional[EstimateKey]:
        return lambda run: run.tau

    def after_burst(self, run: ProcessRun, burst: int) -> None:
        alpha = self.config.alpha
        old = run.tau
        run.tau = math.ceil(alpha * burst + (1 - alpha) * old)
        self.emit(f"Recalculated tau for process {run.pid}: old tau {old}ms ==> new tau {run.tau}ms")


class SRTScheduler(SJFScheduler):
    """
    Shortest Remaining Time (preemptive SJF).

    A process reaching the ready queue with a tau below the running
    process's predicted remaining time takes the CPU at once. Queued
    processes are ordered by their own predicted remaining time.
    """

    algorithm = "SRT"

    def ready_key(self) -> Optional[EstimateKey]:
        return lambda run: run.predicted_remaining

    def make_ready(self, run: ProcessRun, how: str) -> None:
        run.state = ProcessState.READY
        self.ready.enqueue(run)

        current = self.running
        if current is not None:
            left = current.segment_end - self.time
            predicted = current.tau - (current.current_burst - left)
            if run.predicted_remaining < predicted:
                self.emit(f"{self.describe(run)} {how}; preempting {current.pid} (predicted remaining time {predicted}ms)")
                self.cancel_cpu_end(current)
                current.remaining = left
                self.preempt(current)
                return

        self.emit(f"{self.describe(run)} {how}; added to ready queue")
        self.wake_cpu()

    def on_dispatch(self, run: ProcessRun) -> None:
        self.start_running(run)
        if self.ready and self.ready.peek().predicted_remaining < run.predicted_remaining:
            self.emit(f"{self.describe(self.ready.peek())} will preempt {run.pid}")
            self.preempt(run)
            return
        self.run_slice(run)

    def cancel_cpu_end(self, run: ProcessRun) -> None:
        pending = self.pending_cpu_end(run)
        if pending is None:
            raise SchedulerError(f"Process {run.pid} is running without a pending completion")
        self.events.remove(pending)


class RRScheduler(Scheduler):
    """
    Round Robin with a fixed time slice.

    When a slice expires and nobody is waiting, the process keeps the CPU
    without a context switch.
    """

    algorithm = "RR"

    def __init__(self, processes: Iterable[Process], config: SimulationConfig, console: Optional[Console] = None):
        if not config.quantum:
            raise InvalidConfiguration("Round Robin requires a positive time slice (use --quantum)")
        self.quantum = config.quantum
        super().__init__(processes, config, console)

    @property
    def reported_quantum(self) -> Optional[int]:
        return self.quantum

    def run_slice(self, run: ProcessRun) -> None:
        self.schedule_cpu_end(run, min(run.remaining, self.quantum))

    def on_preempt(self, run: ProcessRun) -> None:
        run.remaining -= self.quantum
        if not self.ready:
            self.emit("Time slice expired; no preemption because ready queue is empty")
            self.run_slice(run)
            return
        self.emit(f"Time slice expired; preempting process {run.pid} with {run.remaining}ms remaining")
        self.preempt(run)

    def finish_burst(self, run: ProcessRun) -> int:
        burst = super().finish_burst(run)
        if burst <= self.quantum:
            run.bursts_within_slice += 1
        return burst


def schedule_fcfs(processes: List[Process], config: SimulationConfig, console: Optional[Console] = None) -> ScheduleResult:
    """
    First-Come First-Serve (non-preemptive) scheduling.
    """
    return FCFSScheduler(processes, config, console).run()


def schedule_sjf(processes: List[Process], config: SimulationConfig, console: Optional[Console] = None) -> ScheduleResult:
    """
    Shortest Job First (non-preemptive), ordered by estimated burst length.
    """
    return SJFScheduler(processes, config, console).run()


def schedule_srt(processes: List[Process], config: SimulationConfig, console: Optional[Console] = None) -> ScheduleResult:
    """Shortest Remaining Time (preemptive SJF) scheduling."""
    return SRTScheduler(processes, config, console).run()


def schedule_rr(processes: List[Process], config: SimulationConfig, console: Optional[Console] = None) -> ScheduleResult:
    """
    Round Robin scheduling with ``config.quantum`` as the time slice.
    """
    return RRScheduler(processes, config, console).run()


ALGORITHMS = {
    "fcfs": schedule_fcfs,
    "sjf": schedule_sjf,
    "srt": schedule_srt,
    "rr": schedule_rr,
}


def run_algorithm(
    name: str,
    processes: List[Process],
    config: SimulationConfig,
    console: Optional[Console] = None,
) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. Each call builds fresh per-run
    state, so the same process list can be reused across algorithms.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise InvalidConfiguration(f"Unknown algorithm '{name}'")

    func = ALGORITHMS[name]
    return func(processes, config, console=console)
