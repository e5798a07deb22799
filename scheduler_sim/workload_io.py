from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, List

from .errors import InvalidConfiguration
from .models import Process


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise InvalidConfiguration(f"Unsupported workload format: {suffix} (use .json or .csv)")


def save_workload(processes: Iterable[Process], path: str | Path) -> None:
    """
    Write processes as a JSON list that load_workload reads back.
    """
    data = [
        {
            "pid": p.pid,
            "arrival_time": p.arrival_time,
            "cpu_bursts": list(p.cpu_bursts),
            "io_bursts": list(p.io_bursts),
            "cpu_bound": p.cpu_bound,
        }
        for p in processes
    ]
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise InvalidConfiguration("JSON workload must be a list of process objects")

    return [_process_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _bursts(value) -> List[int]:
    # CSV cells hold space-separated lengths; JSON holds lists.
    if value is None:
        return []
    if isinstance(value, str):
        return [int(v) for v in value.split()]
    return [int(v) for v in value]


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "cpu"}
    return bool(value)


def _process_from_mapping(mapping) -> Process:
    try:
        pid = str(mapping["pid"])
        arrival_time = int(mapping["arrival_time"])
        cpu_bursts = _bursts(mapping["cpu_bursts"])
        io_bursts = _bursts(mapping.get("io_bursts"))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise InvalidConfiguration(f"Invalid process entry: {mapping!r}") from exc

    return Process(
        pid=pid,
        arrival_time=arrival_time,
        cpu_bursts=tuple(cpu_bursts),
        io_bursts=tuple(io_bursts),
        cpu_bound=_flag(mapping.get("cpu_bound", False)),
    )
