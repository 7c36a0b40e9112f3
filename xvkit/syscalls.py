"""Fetching system call arguments from user memory and dispatching calls."""

from __future__ import annotations

import struct
from collections.abc import Callable

from xvkit.params import Syscall

_INT = struct.Struct("<i")
_MASK32 = 0xFFFFFFFF


class SyscallError(Exception):
    """A system call failed: a bad argument or an unknown call number."""


class UserMemory:
    """The memory of a process, from address 0 up to its size."""

    def __init__(self, data: bytes) -> None:
        self.data = bytearray(data)

    @property
    def sz(self) -> int:
        return len(self.data)

    def fetch_int(self, addr: int) -> int:
        """The 32-bit integer at addr."""
        if addr < 0 or addr >= self.sz or addr + 4 > self.sz:
            raise SyscallError(f"int at {addr:#x} lies outside the process")
        return _INT.unpack_from(self.data, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at addr, without its NUL."""
        if addr < 0 or addr >= self.sz:
            raise SyscallError(f"string at {addr:#x} lies outside the process")
        end = self.data.find(0, addr)
        if end < 0:
            raise SyscallError(f"string at {addr:#x} is not terminated")
        return bytes(self.data[addr:end])

    def arg_int(self, esp: int, n: int) -> int:
        """The nth 32-bit argument above the saved user stack pointer."""
        return self.fetch_int((esp + 4 + 4 * n) & _MASK32)

    def arg_ptr(self, esp: int, n: int, size: int) -> int:
        """The nth argument as the address of size bytes inside the process."""
        addr = self.arg_int(esp, n) & _MASK32
        if size < 0 or addr >= self.sz or addr + size > self.sz:
            raise SyscallError(f"buffer at {addr:#x} of {size} bytes lies outside the process")
        return addr

    def arg_str(self, esp: int, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.fetch_str(self.arg_int(esp, n) & _MASK32)


class SyscallTable:
    """Handlers indexed by system call number."""

    def __init__(self) -> None:
        self._handlers: dict[Syscall, Callable[[], int]] = {}

    def register(self, num: int, handler: Callable[[], int]) -> Callable[[], int]:
        """Install handler for call num; num must be a known call number."""
        self._handlers[Syscall(num)] = handler
        return handler

    def dispatch(self, num: int) -> int:
        """Run the handler for num and return its result."""
        try:
            call = Syscall(num)
        except ValueError:
            raise SyscallError(f"unknown sys call {num}") from None
        handler = self._handlers.get(call)
        if handler is None:
            raise SyscallError(f"unknown sys call {num}")
        return handler()