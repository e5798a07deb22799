from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS, run_algorithm
from .errors import InvalidConfiguration
from .gantt import build_rich_gantt
from .generator import GeneratorConfig, describe_workload, generate_workload
from .metrics import format_statistics, summarize_by_class
from .models import Process, ScheduleResult, SimulationConfig
from .workload_io import load_workload, save_workload

DEFAULT_ORDER = ["fcfs", "sjf", "srt", "rr"]


def _add_policy_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tcs",
        type=int,
        default=4,
        help="Context switch time in ms; half to switch out, half to switch in (default: 4).",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=0.5,
        help="Weight of the last burst in the tau estimate for SJF/SRT (default: 0.5).",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time slice in ms for RR (required when rr is selected).",
    )
    parser.add_argument(
        "--lam",
        type=float,
        default=0.01,
        help="Arrival-rate parameter; starting tau is ceil(1/lambda) (default: 0.01).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scheduler-sim",
        description="Discrete-event single-CPU scheduling simulator (FCFS, SJF, SRT, RR).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sim_parser = subparsers.add_parser(
        "simulate",
        help="Generate a random workload and run every algorithm on it.",
    )
    sim_parser.add_argument("n", type=int, help="Number of processes (1-260).")
    sim_parser.add_argument("ncpu", type=int, help="How many of them are CPU-bound.")
    sim_parser.add_argument("seed", type=int, help="Seed for the drand48 generator.")
    sim_parser.add_argument("lam", type=float, help="Lambda for the exponential distribution.")
    sim_parser.add_argument("bound", type=int, help="Upper bound for generated values.")
    sim_parser.add_argument("tcs", type=int, help="Context switch time in ms.")
    sim_parser.add_argument("alpha", type=float, help="Tau weight for SJF/SRT (0-1).")
    sim_parser.add_argument("quantum", type=int, help="RR time slice in ms.")
    sim_parser.add_argument(
        "--stats",
        default="simout.txt",
        help="File for the per-algorithm statistics (default: simout.txt).",
    )
    sim_parser.add_argument(
        "--save-workload",
        default=None,
        help="Also write the generated workload to this JSON file.",
    )
    sim_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=DEFAULT_ORDER,
        help="Algorithms to run (default: fcfs sjf srt rr).",
    )

    run_parser = subparsers.add_parser("run", help="Run one algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm to use (fcfs, sjf, srt, rr).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    _add_policy_options(run_parser)
    run_parser.add_argument(
        "--gantt",
        action="store_true",
        help="Show a Gantt chart of the CPU timeline after the log.",
    )
    run_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the event log.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=DEFAULT_ORDER,
        help="Algorithms to compare (default: fcfs sjf srt rr).",
    )
    _add_policy_options(compare_parser)

    return parser


def _print_result(result: ScheduleResult, console: Console, gantt: bool = False) -> None:
    console.print()
    if gantt:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks, highlight=False)
        console.print()

    headers = ["PID", "Class", "Arrive", "Bursts", "CPU", "Wait", "Turnaround", "Switches", "Preempt"]

    proc_table = Table(title=f"Per-process metrics ({result.algorithm})", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Class"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            p.pid,
            "CPU" if p.cpu_bound else "I/O",
            str(p.arrival_time),
            str(p.num_bursts),
            str(p.cpu_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.context_switches),
            str(p.preemptions),
        )

    console.print(proc_table)
    console.print()

    if result.system:
        sys = result.system
        summary = summarize_by_class(result)["overall"]
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Simulated time", f"{sys.makespan}ms")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.3f}%")
        sys_table.add_row("Throughput (proc/ms)", f"{sys.throughput:.5f}")
        sys_table.add_row("Avg wait per burst", f"{summary.avg_waiting:.3f}")
        sys_table.add_row("Avg turnaround per burst", f"{summary.avg_turnaround:.3f}")
        sys_table.add_row("Context switches", str(summary.context_switches))
        sys_table.add_row("Preemptions", str(summary.preemptions))

        console.print(sys_table)


def _comparison_table(results: List[ScheduleResult], title: str) -> Table:
    summary_table = Table(title=title, box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("CPU util", justify="right")
    summary_table.add_column("Avg wait", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Switches", justify="right")
    summary_table.add_column("Preemptions", justify="right")

    for result in results:
        summary = summarize_by_class(result)["overall"]
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{result.system.cpu_utilization*100:.3f}%",
            f"{summary.avg_waiting:.3f}",
            f"{summary.avg_turnaround:.3f}",
            str(summary.context_switches),
            str(summary.preemptions),
        )
    return summary_table


def _check_algorithms(names: List[str], config: SimulationConfig) -> List[str]:
    """Reject unknown names and a missing RR slice before anything runs."""
    names = [n.lower() for n in names]
    unknown = [n for n in names if n not in ALGORITHMS]
    if unknown:
        raise InvalidConfiguration(f"Unknown algorithm(s): {', '.join(unknown)}")
    if "rr" in names and not config.quantum:
        raise InvalidConfiguration(f"Round Robin requires a positive time slice (got {config.quantum})")
    return names


def _simulate(args: argparse.Namespace, console: Console) -> None:
    gen_config = GeneratorConfig(n=args.n, ncpu=args.ncpu, seed=args.seed, lam=args.lam, bound=args.bound)
    config = SimulationConfig(context_switch=args.tcs, alpha=args.alpha, quantum=args.quantum, lam=args.lam)
    algorithms = _check_algorithms(args.algorithms, config)

    processes = generate_workload(gen_config)
    console.print(describe_workload(gen_config, processes), markup=False, highlight=False, soft_wrap=True)
    if args.save_workload:
        save_workload(processes, args.save_workload)

    console.print("<<< PROJECT SIMULATIONS", markup=False, highlight=False, soft_wrap=True)
    console.print(
        f"<<< -- t_cs={config.context_switch}ms; alpha={config.alpha:.2f}; t_slice={config.quantum}ms",
        markup=False,
        highlight=False,
        soft_wrap=True,
    )

    blocks: List[str] = []
    for i, alg in enumerate(algorithms):
        if i:
            console.print()
        result = run_algorithm(alg, processes, config, console=console)
        blocks.append(format_statistics(result))

    Path(args.stats).write_text("\n".join(blocks), encoding="utf-8")


def _run(args: argparse.Namespace, console: Console) -> None:
    config = SimulationConfig(context_switch=args.tcs, alpha=args.alpha, quantum=args.quantum, lam=args.lam)
    processes: List[Process] = load_workload(Path(args.workload))
    result = run_algorithm(args.algorithm, processes, config, console=None if args.quiet else console)
    _print_result(result, console, gantt=args.gantt)


def _compare(args: argparse.Namespace, console: Console) -> None:
    config = SimulationConfig(context_switch=args.tcs, alpha=args.alpha, quantum=args.quantum, lam=args.lam)
    processes = load_workload(Path(args.workload))
    results = [run_algorithm(alg, processes, config) for alg in _check_algorithms(args.algorithms, config)]
    console.print(_comparison_table(results, title=f"Algorithm comparison: {args.workload}"))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    err_console = Console(stderr=True)

    commands = {"simulate": _simulate, "run": _run, "compare": _compare}
    try:
        commands[args.command](args, console)
    except InvalidConfiguration as exc:
        err_console.print(f"[red]ERROR: {escape(str(exc))}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
