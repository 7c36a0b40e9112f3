"""Spin locks with per-CPU interrupt nesting, and sleeping locks."""

from __future__ import annotations

import itertools
import threading
import traceback
from dataclasses import dataclass, field

_NPCS = 10
_cpu_ids = itertools.count()
_local = threading.local()


class LockPanic(RuntimeError):
    """A lock was misused; the kernel would halt."""


@dataclass(eq=False)
class Cpu:
    """Interrupt state of one CPU."""

    id: int = field(default_factory=_cpu_ids.__next__)
    ncli: int = 0
    intena: bool = False
    interrupts: bool = True

    def push_cli(self) -> None:
        """Disable interrupts, remembering whether they were on at the first level."""
        enabled = self.interrupts
        self.interrupts = False
        if self.ncli == 0:
            self.intena = enabled
        self.ncli += 1

    def pop_cli(self) -> None:
        """Undo one push_cli; the last one restores the saved interrupt state."""
        if self.interrupts:
            raise LockPanic("popcli - interruptible")
        if self.ncli == 0:
            raise LockPanic("popcli")
        self.ncli -= 1
        if self.ncli == 0 and self.intena:
            self.interrupts = True


def mycpu() -> Cpu:
    """The CPU of the calling thread."""
    cpu = getattr(_local, "cpu", None)
    if cpu is None:
        cpu = _local.cpu = Cpu()
    return cpu


class SpinLock:
    """A mutual exclusion lock held by a CPU with interrupts off."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.cpu: Cpu | None = None
        self.pcs: tuple[traceback.FrameSummary, ...] = ()
        self._lock = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    def acquire(self) -> None:
        """Wait until the lock is free and take it."""
        cpu = mycpu()
        cpu.push_cli()
        if self.holding():
            cpu.pop_cli()
            raise LockPanic("acquire")
        self._lock.acquire()
        self.cpu = cpu
        self.pcs = tuple(traceback.extract_stack(limit=_NPCS + 1)[:-1])

    def release(self) -> None:
        if not self.holding():
            raise LockPanic("release")
        self.pcs = ()
        self.cpu = None
        self._lock.release()
        mycpu().pop_cli()

    def holding(self) -> bool:
        """Whether the calling CPU holds the lock."""
        cpu = mycpu()
        cpu.push_cli()
        held = self.locked and self.cpu is cpu
        cpu.pop_cli()
        return held

    def __enter__(self) -> SpinLock:
        self.acquire()
        return self

    def __exit__(self, *args) -> None:
        self.release()


class SleepLock:
    """A long-term lock; waiters sleep instead of spinning."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.locked = False
        self.pid = 0
        self._cond = threading.Condition()

    def acquire(self, pid: int) -> None:
        """Sleep until the lock is free, then take it for process pid."""
        with self._cond:
            while self.locked:
                self._cond.wait()
            self.locked = True
            self.pid = pid

    def release(self) -> None:
        with self._cond:
            self.locked = False
            self.pid = 0
            self._cond.notify_all()

    def holding(self, pid: int) -> bool:
        """Whether process pid holds the lock."""
        with self._cond:
            return self.locked and self.pid == pid