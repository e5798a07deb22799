from __future__ import annotations

from typing import Iterable, List, Optional

from rich.console import Console


def format_queue(pids: Iterable[str]) -> str:
    pids = list(pids)
    return "[Q " + (" ".join(pids) if pids else "empty") + "]"


def format_line(time: int, message: str, pids: Iterable[str]) -> str:
    return f"time {time}ms: {message} {format_queue(pids)}"


class EventLog:
    """
    Collects the per-transition log of one run and optionally echoes each
    line to a Rich console as it is produced.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console
        self.lines: List[str] = []

    def emit(self, time: int, message: str, pids: Iterable[str]) -> str:
        line = format_line(time, message, pids)
        self.lines.append(line)
        if self.console is not None:
            # Log text contains brackets; never let Rich read it as markup.
            self.console.print(line, markup=False, highlight=False, emoji=False, soft_wrap=True)
        return line
