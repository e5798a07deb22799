from pathlib import Path

import pytest

from scheduler_sim.errors import InvalidConfiguration
from scheduler_sim.models import Process
from scheduler_sim.workload_io import load_workload, save_workload


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A0","arrival_time":0,"cpu_bursts":[5,3],"io_bursts":[10],"cpu_bound":true},'
                 '{"pid":"B0","arrival_time":1,"cpu_bursts":[4]}]')
    procs = load_workload(p)
    assert isinstance(procs[0], Process)
    assert procs[0].cpu_bursts == (5, 3)
    assert procs[0].cpu_bound is True
    assert procs[1].io_bursts == ()
    assert procs[1].cpu_bound is False


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival_time,cpu_bursts,io_bursts,cpu_bound\nA0,0,5 3,10,yes\nB0,1,4,,\n")
    procs = load_workload(p)
    assert procs[0].pid == "A0"
    assert procs[0].io_bursts == (10,)
    assert procs[0].cpu_bound is True
    assert procs[1].cpu_bursts == (4,)
    assert procs[1].cpu_bound is False


def test_save_round_trip(tmp_path: Path):
    procs = [Process("A0", 3, (5, 6, 7), (1, 2), cpu_bound=True)]
    path = tmp_path / "out.json"
    save_workload(procs, path)
    assert load_workload(path) == procs


def test_mismatched_io_bursts_rejected(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A0","arrival_time":0,"cpu_bursts":[5,3],"io_bursts":[]}]')
    with pytest.raises(InvalidConfiguration):
        load_workload(p)


def test_missing_field_rejected(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":"A0","cpu_bursts":[5]}]')
    with pytest.raises(ValueError):
        load_workload(p)


def test_unsupported_suffix(tmp_path: Path):
    with pytest.raises(InvalidConfiguration):
        load_workload(tmp_path / "w.yaml")
