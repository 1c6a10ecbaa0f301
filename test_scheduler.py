"""Timer facility: ordering, cancellation, single timeline"""

import threading

from strike_trainer.ft_scheduler import ThreadedScheduler, VirtualScheduler


def test_virtual_fires_in_due_order():
    sched = VirtualScheduler()
    fired = []
    sched.call_later(2.0, lambda: fired.append(("b", sched.now())))
    sched.call_later(1.0, lambda: fired.append(("a", sched.now())))
    sched.call_later(2.0, lambda: fired.append(("c", sched.now())))

    assert sched.advance(1.5) == 1
    assert fired == [("a", 1.0)]
    sched.advance(1.0)
    assert fired == [("a", 1.0), ("b", 2.0), ("c", 2.0)]
    assert sched.now() == 2.5


def test_virtual_cancel_and_pending():
    sched = VirtualScheduler()
    fired = []
    keep = sched.call_later(1.0, lambda: fired.append("keep"), name="tick")
    drop = sched.call_later(0.5, lambda: fired.append("drop"), name="call")
    drop.cancel()
    drop.cancel()

    assert sched.pending() == [keep]
    assert sched.pending("call") == []
    sched.advance(2)
    assert fired == ["keep"]
    assert not keep.pending and keep.fired


def test_virtual_chained_timers_run_within_one_advance():
    sched = VirtualScheduler()
    ticks = []

    def tick():
        ticks.append(sched.now())
        if len(ticks) < 3:
            sched.call_later(1.0, tick)

    sched.call_later(1.0, tick)
    sched.advance(10)
    assert ticks == [1.0, 2.0, 3.0]


def test_callback_error_does_not_stop_the_timeline():
    sched = VirtualScheduler()
    fired = []

    def boom():
        raise RuntimeError("bad callback")

    sched.call_later(1.0, boom)
    sched.call_later(2.0, lambda: fired.append("after"))
    sched.advance(3)
    assert fired == ["after"]


def test_run_until_idle_and_shutdown():
    sched = VirtualScheduler()
    fired = []
    sched.call_later(5.0, lambda: fired.append(1))
    assert sched.run_until_idle() == 5.0
    assert fired == [1]

    sched.call_later(1.0, lambda: fired.append(2))
    sched.shutdown()
    sched.advance(5)
    assert fired == [1]


def test_threaded_scheduler_runs_serially_and_honours_cancel():
    sched = ThreadedScheduler()
    try:
        order = []
        threads = set()
        done = threading.Event()

        def record(tag):
            def _cb():
                order.append(tag)
                threads.add(threading.current_thread().name)
                if tag == "last":
                    done.set()
            return _cb

        sched.call_later(0.05, record("second"))
        sched.call_later(0.01, record("first"))
        cancelled = sched.call_later(0.03, record("never"))
        sched.call_later(0.1, record("last"))
        cancelled.cancel()

        assert done.wait(timeout=2.0)
        assert order == ["first", "second", "last"]
        assert threads == {"strike-trainer-timers"}
    finally:
        sched.shutdown()


def test_threaded_shutdown_drops_pending():
    sched = ThreadedScheduler()
    fired = []
    sched.call_later(0.2, lambda: fired.append(1))
    sched.shutdown()
    assert sched.pending() == []
    assert fired == []
