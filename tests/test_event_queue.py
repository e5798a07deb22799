import pytest

from scheduler_sim.errors import CapacityExceeded, EmptyQueue
from scheduler_sim.events import EVENT_PRIORITY, Event, EventKind, EventQueue


def test_pops_in_time_order(run_factory):
    q = EventQueue(capacity=10)
    a, b, c = run_factory("A0"), run_factory("B0"), run_factory("C0")
    q.schedule(30, EventKind.ARRIVAL, a)
    q.schedule(10, EventKind.ARRIVAL, b)
    q.schedule(20, EventKind.ARRIVAL, c)
    assert [q.pop().time for _ in range(3)] == [10, 20, 30]


def test_equal_times_follow_kind_priority(run_factory):
    q = EventQueue(capacity=10)
    q.schedule(5, EventKind.CPU_IDLE)
    q.schedule(5, EventKind.REQUEUE, run_factory("A0"))
    q.schedule(5, EventKind.ARRIVAL, run_factory("B0"))
    q.schedule(5, EventKind.IO_COMPLETE, run_factory("A1"))
    q.schedule(5, EventKind.DISPATCH, run_factory("C0"))
    q.schedule(5, EventKind.BURST_COMPLETE, run_factory("D0"))

    kinds = [q.pop().kind for _ in range(6)]
    assert kinds == [
        EventKind.BURST_COMPLETE,
        EventKind.DISPATCH,
        EventKind.IO_COMPLETE,
        EventKind.ARRIVAL,
        EventKind.REQUEUE,
        EventKind.CPU_IDLE,
    ]


def test_residual_ties_break_on_pid(run_factory):
    q = EventQueue(capacity=10)
    for pid in ["B0", "A1", "A0"]:
        q.schedule(0, EventKind.ARRIVAL, run_factory(pid))
    assert [q.pop().pid for _ in range(3)] == ["A0", "A1", "B0"]


def test_every_kind_has_a_priority():
    assert set(EVENT_PRIORITY) == set(EventKind)


def test_cpu_completions_share_top_priority():
    assert EventKind.BURST_COMPLETE.priority == EventKind.PREEMPT.priority == EventKind.TERMINATE.priority
    assert EventKind.TERMINATE.ends_cpu_run
    assert not EventKind.DISPATCH.ends_cpu_run


def test_insert_at_capacity_raises(run_factory):
    q = EventQueue(capacity=2)
    q.schedule(1, EventKind.ARRIVAL, run_factory("A0"))
    q.schedule(2, EventKind.ARRIVAL, run_factory("A1"))
    with pytest.raises(CapacityExceeded):
        q.schedule(3, EventKind.ARRIVAL, run_factory("A2"))
    assert len(q) == 2


def test_pop_empty_raises_typed_error():
    q = EventQueue(capacity=1)
    with pytest.raises(EmptyQueue):
        q.pop()
    with pytest.raises(IndexError):
        q.peek_tail()


def test_find_last_scans_from_tail(run_factory):
    q = EventQueue(capacity=10)
    a, b = run_factory("A0"), run_factory("B0")
    q.schedule(4, EventKind.DISPATCH, a)
    late = q.schedule(9, EventKind.DISPATCH, b)
    q.schedule(12, EventKind.IO_COMPLETE, a)

    assert q.find_last(lambda e: e.kind is EventKind.DISPATCH) is late
    assert q.find_last(lambda e: e.kind is EventKind.PREEMPT) is None
    assert q.peek_tail().kind is EventKind.IO_COMPLETE
    assert len(q) == 3


def test_remove_cancels_only_that_event(run_factory):
    q = EventQueue(capacity=10)
    a = run_factory("A0")
    stale = q.schedule(20, EventKind.BURST_COMPLETE, a)
    q.schedule(20, EventKind.ARRIVAL, run_factory("B0"))
    q.remove(stale)

    assert [e.kind for e in q] == [EventKind.ARRIVAL]
    with pytest.raises(EmptyQueue):
        q.remove(stale)


def test_insert_accepts_prebuilt_events(run_factory):
    q = EventQueue(capacity=3)
    a = run_factory("A0")
    q.insert(Event.create(7, EventKind.ARRIVAL, a, order=1))
    q.insert(Event.create(7, EventKind.ARRIVAL, a, order=0))
    assert [e.order for e in q] == [0, 1]
