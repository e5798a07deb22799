import pytest

from scheduler_sim.errors import InvalidConfiguration
from scheduler_sim.generator import (
    GeneratorConfig,
    Rand48,
    describe_workload,
    generate_workload,
    next_exp,
    process_id,
)


def test_rand48_matches_libc_sequence():
    rng = Rand48(0)
    assert rng.drand() == 48083817484545 / 2**48


def test_srand_resets_sequence():
    rng = Rand48(7)
    first = [rng.drand() for _ in range(3)]
    rng.srand(7)
    assert [rng.drand() for _ in range(3)] == first


def test_next_exp_respects_bound():
    rng = Rand48(2)
    values = [next_exp(rng, 0.01, 300) for _ in range(200)]
    assert all(0 <= v <= 300 for v in values)


def test_process_ids():
    assert [process_id(i) for i in (0, 9, 10, 259)] == ["A0", "A9", "B0", "Z9"]


def test_generated_workload_shape():
    config = GeneratorConfig(n=12, ncpu=3, seed=32, lam=0.001, bound=1024)
    procs = generate_workload(config)

    assert [p.pid for p in procs][:3] == ["A0", "A1", "A2"]
    assert [p.cpu_bound for p in procs] == [True] * 3 + [False] * 9
    for p in procs:
        assert 1 <= p.num_bursts <= 32
        assert len(p.io_bursts) == p.num_bursts - 1
        assert p.arrival_time <= 1024
        if p.cpu_bound:
            assert all(b % 4 == 0 for b in p.cpu_bursts)
        else:
            assert all(b % 8 == 0 for b in p.io_bursts)


def test_generation_is_deterministic():
    config = GeneratorConfig(n=5, ncpu=1, seed=19, lam=0.01, bound=4096)
    assert generate_workload(config) == generate_workload(config)
    other = GeneratorConfig(n=5, ncpu=1, seed=20, lam=0.01, bound=4096)
    assert generate_workload(config) != generate_workload(other)


def test_describe_workload_header():
    config = GeneratorConfig(n=2, ncpu=1, seed=2, lam=0.01, bound=3000)
    text = describe_workload(config, generate_workload(config))
    lines = text.splitlines()
    assert lines[0] == "<<< -- process set (n=2) with 1 CPU-bound process"
    assert lines[1] == "<<< -- seed=2; lambda=0.010000; bound=3000"
    assert lines[3].startswith("CPU-bound process A0: arrival time ")
    assert any(line.startswith("I/O-bound process A1: ") for line in lines)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(n=0, ncpu=0, seed=1, lam=0.01, bound=10),
        dict(n=261, ncpu=0, seed=1, lam=0.01, bound=10),
        dict(n=3, ncpu=4, seed=1, lam=0.01, bound=10),
        dict(n=3, ncpu=1, seed=1, lam=0.0, bound=10),
        dict(n=3, ncpu=1, seed=1, lam=0.01, bound=0),
    ],
)
def test_generator_config_validation(kwargs):
    with pytest.raises(InvalidConfiguration):
        GeneratorConfig(**kwargs)
