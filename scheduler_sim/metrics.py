from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List

from .models import ProcessMetrics, ScheduleResult, SystemMetrics

CLASSES = ("overall", "cpu", "io")


@dataclass
class ClassSummary:
    """
    Per-burst averages and totals for one class of processes.
    """

    processes: int
    bursts: int
    avg_burst_time: float
    avg_waiting: float
    avg_turnaround: float
    context_switches: int
    preemptions: int
    within_slice_pct: float


def ceil3(value: float) -> float:
    """Round up to three decimals, ignoring float noise below 1e-6 ms."""
    return math.ceil(round(value * 1000, 6)) / 1000


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute CPU utilization and throughput from the timeline and the
    simulated run length.
    """
    makespan = result.end_time
    cpu_busy_time = sum(slice_.end_time - slice_.start_time for slice_ in result.timeline)

    throughput = len(result.processes) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
    )
    result.system = system
    return system


def summarize_process_metrics(processes: List[ProcessMetrics]) -> ClassSummary:
    """
    Averages are taken over CPU bursts, not over processes.
    """
    bursts = sum(p.num_bursts for p in processes)
    if not bursts:
        return ClassSummary(len(processes), 0, 0.0, 0.0, 0.0, 0, 0, 0.0)

    return ClassSummary(
        processes=len(processes),
        bursts=bursts,
        avg_burst_time=ceil3(sum(p.cpu_time for p in processes) / bursts),
        avg_waiting=ceil3(sum(p.waiting_time for p in processes) / bursts),
        avg_turnaround=ceil3(sum(p.turnaround_time for p in processes) / bursts),
        context_switches=sum(p.context_switches for p in processes),
        preemptions=sum(p.preemptions for p in processes),
        within_slice_pct=ceil3(100 * sum(p.bursts_within_slice for p in processes) / bursts),
    )


def summarize_by_class(result: ScheduleResult) -> Dict[str, ClassSummary]:
    return {
        "overall": summarize_process_metrics(result.processes),
        "cpu": summarize_process_metrics([p for p in result.processes if p.cpu_bound]),
        "io": summarize_process_metrics([p for p in result.processes if not p.cpu_bound]),
    }


def format_statistics(result: ScheduleResult) -> str:
    """
    Render one algorithm's block of the statistics file. Values in
    parentheses are CPU-bound/I/O-bound.
    """
    system = result.system or compute_system_metrics(result)
    s = summarize_by_class(result)
    overall, cpu, io = (s[c] for c in CLASSES)

    lines = [
        f"Algorithm {result.algorithm}",
        f"-- CPU utilization: {ceil3(system.cpu_utilization * 100):.3f}%",
        f"-- average CPU burst time: {overall.avg_burst_time:.3f} ms "
        f"({cpu.avg_burst_time:.3f} ms/{io.avg_burst_time:.3f} ms)",
        f"-- average wait time: {overall.avg_waiting:.3f} ms ({cpu.avg_waiting:.3f} ms/{io.avg_waiting:.3f} ms)",
        f"-- average turnaround time: {overall.avg_turnaround:.3f} ms "
        f"({cpu.avg_turnaround:.3f} ms/{io.avg_turnaround:.3f} ms)",
        f"-- number of context switches: {overall.context_switches} "
        f"({cpu.context_switches}/{io.context_switches})",
        f"-- number of preemptions: {overall.preemptions} ({cpu.preemptions}/{io.preemptions})",
    ]
    if result.quantum is not None:
        lines.append(
            f"-- percentage of CPU bursts completed within one time slice: {overall.within_slice_pct:.3f}% "
            f"({cpu.within_slice_pct:.3f}%/{io.within_slice_pct:.3f}%)"
        )
    return "\n".join(lines) + "\n"
