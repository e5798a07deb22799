import pytest

from scheduler_sim.models import Process, ProcessRun


def make_run(pid: str, tau: int = 10, bursts=(1,)) -> ProcessRun:
    io = tuple(1 for _ in bursts[1:])
    return ProcessRun.start(Process(pid, arrival_time=0, cpu_bursts=tuple(bursts), io_bursts=io), tau)


@pytest.fixture
def run_factory():
    return make_run
