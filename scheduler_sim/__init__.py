"""
Scheduler simulator package.

Discrete-event simulation of single-CPU scheduling policies (FCFS, SJF,
SRT, RR) over processes made of alternating CPU and I/O bursts.
"""

__all__ = ["cli"]

