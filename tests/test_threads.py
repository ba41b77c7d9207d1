import threading

import pytest

from nekovm.threads import Local, Lock, create_thread, run_blocking


def test_create_thread_init_before_return():
    events = []
    release = threading.Event()
    done = threading.Event()

    def init(p):
        events.append(("init", p, threading.get_ident()))

    def main(p):
        release.wait(5)
        events.append(("main", p))
        done.set()

    thread = create_thread(init, main, "param")
    assert events[0][:2] == ("init", "param")
    assert events[0][2] != threading.get_ident()
    assert len(events) == 1
    release.set()
    assert done.wait(5)
    thread.join(5)
    assert thread.is_alive() is False
    assert events[1] == ("main", "param")


def test_create_thread_init_failure():
    ran = []

    def init(p):
        raise ValueError("bad init")

    with pytest.raises(ValueError, match="bad init"):
        create_thread(init, ran.append, 1)
    assert ran == []


def test_lock_recursive():
    lock = Lock()
    lock.acquire()
    assert lock.try_acquire() is True
    lock.release()
    lock.release()
    assert lock.try_acquire() is True
    lock.release()


def test_lock_try_from_other_thread():
    lock = Lock()
    results = []

    def probe():
        got = lock.try_acquire()
        results.append(got)
        if got:
            lock.release()

    with lock:
        t = threading.Thread(target=probe)
        t.start()
        t.join(5)
    assert results == [False]

    t = threading.Thread(target=probe)
    t.start()
    t.join(5)
    assert results == [False, True]

    assert lock.try_acquire() is True
    lock.release()


def test_local_per_thread():
    local = Local()
    assert local.get() is None
    local.set(42)
    seen = []

    def worker():
        seen.append(local.get())
        local.set("other")
        seen.append(local.get())

    t = threading.Thread(target=worker)
    t.start()
    t.join(5)
    assert seen == [None, "other"]
    assert local.get() == 42


def test_run_blocking_returns_result():
    assert run_blocking(lambda p: p * 2, 21) == 42