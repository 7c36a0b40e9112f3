import threading

import pytest

from xvkit.locks import Cpu, LockPanic, SleepLock, SpinLock, mycpu


def test_push_pop_nesting_restores_interrupts():
    cpu = Cpu()
    cpu.push_cli()
    assert cpu.ncli == 1 and cpu.intena and not cpu.interrupts
    cpu.push_cli()
    cpu.pop_cli()
    assert cpu.ncli == 1 and not cpu.interrupts
    cpu.pop_cli()
    assert cpu.ncli == 0 and cpu.interrupts


def test_push_pop_keeps_interrupts_off():
    cpu = Cpu(interrupts=False)
    cpu.push_cli()
    cpu.pop_cli()
    assert cpu.ncli == 0 and not cpu.interrupts


def test_pop_while_interruptible_panics():
    with pytest.raises(LockPanic, match="popcli - interruptible"):
        Cpu().pop_cli()


def test_pop_without_push_panics():
    with pytest.raises(LockPanic, match="^popcli$"):
        Cpu(interrupts=False).pop_cli()


def test_mycpu_is_per_thread():
    here = mycpu()
    seen = []
    t = threading.Thread(target=lambda: seen.append(mycpu()))
    t.start()
    t.join()
    assert mycpu() is here
    assert seen[0] is not here and seen[0].id != here.id


def test_acquire_release_state():
    lock = SpinLock("time")
    cpu = mycpu()
    start = cpu.ncli
    lock.acquire()
    assert lock.name == "time"
    assert lock.holding() and lock.locked and lock.cpu is cpu
    assert cpu.ncli == start + 1 and not cpu.interrupts
    assert 0 < len(lock.pcs) <= 10
    lock.release()
    assert not lock.holding() and not lock.locked
    assert lock.cpu is None and lock.pcs == ()
    assert cpu.ncli == start


def test_context_manager():
    lock = SpinLock("ctx")
    with lock as held:
        assert held is lock and lock.holding()
    assert not lock.locked


def test_double_acquire_panics():
    lock = SpinLock("twice")
    cpu = mycpu()
    lock.acquire()
    depth = cpu.ncli
    with pytest.raises(LockPanic, match="acquire"):
        lock.acquire()
    assert cpu.ncli == depth and lock.holding()
    lock.release()
    assert not lock.locked


def test_release_unheld_panics():
    with pytest.raises(LockPanic, match="release"):
        SpinLock("free").release()


def test_other_cpu_does_not_hold():
    lock = SpinLock("shared")
    with lock:
        seen = []
        t = threading.Thread(target=lambda: seen.append(lock.holding()))
        t.start()
        t.join()
        assert seen == [False]
        assert lock.holding()


def test_other_cpu_waits_for_release():
    lock = SpinLock("contended")
    lock.acquire()
    got = threading.Event()

    def worker():
        lock.acquire()
        got.set()
        lock.release()

    t = threading.Thread(target=worker)
    t.start()
    assert not got.wait(0.05)
    lock.release()
    assert got.wait(2)
    t.join(2)
    assert not lock.locked


def test_sleeplock_owner():
    lock = SleepLock("inode")
    lock.acquire(7)
    assert lock.locked and lock.pid == 7
    assert lock.holding(7)
    assert not lock.holding(8)
    lock.release()
    assert not lock.locked and lock.pid == 0
    assert not lock.holding(7)


def test_sleeplock_wakes_waiter():
    lock = SleepLock("buf")
    lock.acquire(1)
    got = threading.Event()

    def worker():
        lock.acquire(2)
        got.set()

    t = threading.Thread(target=worker)
    t.start()
    assert not got.wait(0.05)
    lock.release()
    assert got.wait(2)
    t.join(2)
    assert lock.holding(2)