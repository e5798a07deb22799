from __future__ import annotations

import math
from typing import Dict, List, Optional

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice

MAX_WIDTH = 100


def chart_scale(slices: List[ScheduledSlice], width: int = MAX_WIDTH) -> int:
    """
    Milliseconds per character so the whole timeline fits in ``width`` columns.
    """
    if not slices:
        return 1
    end = max(s.end_time for s in slices)
    return max(1, math.ceil(end / width))


def build_rich_gantt(slices: List[ScheduledSlice], scale: Optional[int] = None) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.

    Each character covers ``scale`` ms; a slice shorter than that still gets one
    cell. Gaps are idle CPU, including context switches.
    """
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    slices = sorted(slices, key=lambda s: (s.start_time, s.end_time))
    if scale is None:
        scale = chart_scale(slices)

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(colors)
            pid_to_color[pid] = colors[idx]
        return pid_to_color[pid]

    timeline = Text()
    labels = Text()
    marks = [0]
    column = 0

    for sl in slices:
        start_col = sl.start_time // scale
        if start_col > column:
            gap = start_col - column
            timeline.append(" " * gap)
            labels.append(" " * gap)
            column = start_col

        width = max(1, math.ceil(sl.end_time / scale) - column)
        color = pid_color(sl.pid)

        timeline.append(" " * width, style=f"on {color}")
        labels.append(sl.pid[:width].ljust(width), style="bold")

        column += width
        marks.append(sl.end_time)

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    if scale > 1:
        marks = [0, max(s.end_time for s in slices)]
    title = "Gantt Chart" if scale == 1 else f"Gantt Chart (1 col = {scale}ms)"
    panel = Panel.fit(table, title=title)
    return panel, " ".join(str(m) for m in marks)
