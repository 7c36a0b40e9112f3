"""First-fit allocator with a circular, address-ordered free list over an sbrk heap."""

from __future__ import annotations

_UNIT = 8  # size of a block header; every block is a whole number of units
_MIN_UNITS = 4096  # smallest amount the heap grows by, in units
_BASE = -_UNIT  # address of the zero-sized anchor block, below the heap


class Heap:
    """A process heap that grows with sbrk up to limit bytes."""

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.limit = limit
        self._memory = bytearray()
        self._size: dict[int, int] = {}
        self._next: dict[int, int] = {}
        self._freep: int | None = None

    @property
    def brk(self) -> int:
        """Current end of the heap."""
        return len(self._memory)

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return the old break."""
        old = len(self._memory)
        new = old + n
        if new < 0 or new > self.limit:
            raise MemoryError(f"cannot move break from {old} by {n}")
        if n >= 0:
            self._memory.extend(bytes(n))
        else:
            del self._memory[new:]
        return old

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the block."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        nunits = (nbytes + _UNIT - 1) // _UNIT + 1
        if self._freep is None:
            self._next[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * _UNIT
                    self._size[p] = nunits
                self._freep = prevp
                return p + _UNIT
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free(self, addr: int) -> None:
        """Return a block obtained from malloc."""
        bp = addr - _UNIT
        if bp == _BASE or bp not in self._size or bp in self._next:
            raise ValueError(f"{addr} is not an allocated block")
        self._release(bp)

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, _MIN_UNITS)
        addr = self.sbrk(nunits * _UNIT)
        self._size[addr] = nunits
        self._release(addr)
        return self._freep

    def _release(self, bp: int) -> None:
        size, nxt = self._size, self._next
        p = self._freep
        while not p < bp < nxt[p]:
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        q = nxt[p]
        if bp + size[bp] * _UNIT == q:
            size[bp] += size.pop(q)
            nxt[bp] = nxt.pop(q)
        else:
            nxt[bp] = q
        if p + size[p] * _UNIT == bp:
            size[p] += size.pop(bp)
            nxt[p] = nxt.pop(bp)
        else:
            nxt[p] = bp
        self._freep = p

    def _check(self, addr: int, n: int) -> None:
        if addr < 0 or n < 0 or addr + n > len(self._memory):
            raise IndexError(f"range [{addr}, {addr + n}) outside the heap")

    def read(self, addr: int, n: int) -> bytes:
        """Read n bytes of heap memory."""
        self._check(addr, n)
        return bytes(self._memory[addr:addr + n])

    def write(self, addr: int, data: bytes) -> None:
        """Write data into heap memory."""
        data = bytes(data)
        self._check(addr, len(data))
        self._memory[addr:addr + len(data)] = data