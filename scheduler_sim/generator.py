from __future__ import annotations

import math
import string
from dataclasses import dataclass
from typing import List

from .errors import InvalidConfiguration
from .models import Process

MAX_PROCESSES = 260
MAX_BURSTS = 32
CPU_BOUND_CPU_FACTOR = 4
IO_BOUND_IO_FACTOR = 8


class Rand48:
    """
    The POSIX ``srand48``/``drand48`` generator, so a seed produces the same
    workload as the C library would.
    """

    A = 0x5DEECE66D
    C = 0xB
    MASK = (1 << 48) - 1

    def __init__(self, seed: int):
        self.srand(seed)

    def srand(self, seed: int) -> None:
        self.state = ((seed & 0xFFFFFFFF) << 16) | 0x330E

    def drand(self) -> float:
        self.state = (self.A * self.state + self.C) & self.MASK
        return self.state / (1 << 48)


def next_exp(rng: Rand48, lam: float, bound: float) -> float:
    """
    Exponentially distributed value with rate ``lam``, resampled until it
    does not exceed ``bound``.
    """
    while True:
        r = rng.drand()
        if r == 0.0:
            continue
        x = -math.log(r) / lam
        if x <= bound:
            return x


def process_id(index: int) -> str:
    return f"{string.ascii_uppercase[index // 10]}{index % 10}"


@dataclass(frozen=True)
class GeneratorConfig:
    n: int
    ncpu: int
    seed: int
    lam: float
    bound: int

    def __post_init__(self) -> None:
        if not 1 <= self.n <= MAX_PROCESSES:
            raise InvalidConfiguration(f"Number of processes must be between 1 and {MAX_PROCESSES}")
        if not 0 <= self.ncpu <= self.n:
            raise InvalidConfiguration("Number of CPU-bound processes must be between 0 and n")
        if self.lam <= 0:
            raise InvalidConfiguration("Lambda must be positive")
        if self.bound <= 0:
            raise InvalidConfiguration("Upper bound must be positive")


def generate_workload(config: GeneratorConfig) -> List[Process]:
    """
    Draw arrival times and burst lengths for every process.

    The draw order per process is: arrival, burst count, then for each burst
    its CPU length followed by its I/O length (none after the last burst).
    """
    rng = Rand48(config.seed)
    processes: List[Process] = []

    for i in range(config.n):
        cpu_bound = i < config.ncpu
        arrival_time = math.floor(next_exp(rng, config.lam, config.bound))
        num_bursts = math.ceil(rng.drand() * MAX_BURSTS)

        cpu_bursts: List[int] = []
        io_bursts: List[int] = []
        for j in range(num_bursts):
            cpu_burst = math.ceil(next_exp(rng, config.lam, config.bound))
            if cpu_bound:
                cpu_burst *= CPU_BOUND_CPU_FACTOR
            cpu_bursts.append(cpu_burst)
            if j < num_bursts - 1:
                io_burst = math.ceil(next_exp(rng, config.lam, config.bound))
                if not cpu_bound:
                    io_burst *= IO_BOUND_IO_FACTOR
                io_bursts.append(io_burst)

        processes.append(
            Process(
                pid=process_id(i),
                arrival_time=arrival_time,
                cpu_bursts=tuple(cpu_bursts),
                io_bursts=tuple(io_bursts),
                cpu_bound=cpu_bound,
            )
        )

    return processes


def describe_workload(config: GeneratorConfig, processes: List[Process]) -> str:
    """
    Text header listing the generated process set and each burst.
    """
    noun = "process" if config.ncpu == 1 else "processes"
    lines = [
        f"<<< -- process set (n={config.n}) with {config.ncpu} CPU-bound {noun}",
        f"<<< -- seed={config.seed}; lambda={config.lam:.6f}; bound={config.bound}",
        "",
    ]
    for p in processes:
        kind = "CPU-bound" if p.cpu_bound else "I/O-bound"
        bursts = "burst" if p.num_bursts == 1 else "bursts"
        lines.append(f"{kind} process {p.pid}: arrival time {p.arrival_time}ms; {p.num_bursts} CPU {bursts}:")
        for j, cpu_burst in enumerate(p.cpu_bursts):
            if j < len(p.io_bursts):
                lines.append(f"==> CPU burst {cpu_burst}ms ==> I/O burst {p.io_bursts[j]}ms")
            else:
                lines.append(f"==> CPU burst {cpu_burst}ms")
        lines.append("")
    return "\n".join(lines)
