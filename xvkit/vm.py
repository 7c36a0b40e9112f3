"""Two-level x86 page tables over a simulated pool of physical pages."""

from __future__ import annotations

import struct

from xvkit.mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_MASK32 = 0xFFFFFFFF
_WORD = struct.Struct("<I")
# First physical page handed out by the allocator, above the kernel image.
_FRAME_BASE = 0x400000


class VmPanic(RuntimeError):
    """An invariant of the page tables was broken; the kernel would halt."""


class PhysicalMemory:
    """A fixed pool of physical pages, handed out one page at a time."""

    def __init__(self, npages: int) -> None:
        if npages < 0:
            raise ValueError("npages must not be negative")
        self._frames: dict[int, bytearray] = {}
        self._allocated: set[int] = set()
        self._free = [_FRAME_BASE + i * PGSIZE for i in reversed(range(npages))]

    @property
    def free_pages(self) -> int:
        """Number of pages not currently allocated."""
        return len(self._free)

    def kalloc(self) -> int:
        """Allocate one page and return its physical address."""
        if not self._free:
            raise MemoryError("out of physical pages")
        pa = self._free.pop()
        self._frames.setdefault(pa, bytearray(PGSIZE))
        self._allocated.add(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Return a page to the pool, filling it with junk."""
        if pa % PGSIZE or pa not in self._allocated:
            raise VmPanic("kfree")
        self._allocated.remove(pa)
        self._frames[pa][:] = b"\x01" * PGSIZE
        self._free.append(pa)

    def _spans(self, pa: int, n: int):
        if n < 0:
            raise ValueError("length must not be negative")
        while n > 0:
            page = pa & ~(PGSIZE - 1)
            if page not in self._allocated:
                raise ValueError(f"physical address {pa:#x} is not in an allocated page")
            start = pa - page
            count = min(PGSIZE - start, n)
            yield self._frames[page], start, count
            pa += count
            n -= count

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at physical address pa."""
        out = bytearray()
        for frame, start, count in self._spans(pa, n):
            out += frame[start:start + count]
        return bytes(out)

    def write(self, pa: int, data: bytes) -> None:
        """Write data starting at physical address pa."""
        data = bytes(data)
        pos = 0
        for frame, start, count in self._spans(pa, len(data)):
            frame[start:start + count] = data[pos:pos + count]
            pos += count

    def _word(self, pa: int) -> int:
        page = pa & ~(PGSIZE - 1)
        if page not in self._allocated:
            raise ValueError(f"physical address {pa:#x} is not in an allocated page")
        return _WORD.unpack_from(self._frames[page], pa - page)[0]

    def _set_word(self, pa: int, value: int) -> None:
        page = pa & ~(PGSIZE - 1)
        if page not in self._allocated:
            raise ValueError(f"physical address {pa:#x} is not in an allocated page")
        _WORD.pack_into(self._frames[page], pa - page, value & _MASK32)


def _kernel_map(data_addr: int) -> list[tuple[int, int, int, int]]:
    return [
        (KERNBASE, 0, EXTMEM, PTE_W),
        (KERNLINK, v2p(KERNLINK), v2p(data_addr), 0),
        (data_addr, v2p(data_addr), PHYSTOP, PTE_W),
        (DEVSPACE, DEVSPACE, 0, PTE_W),
    ]


class AddressSpace:
    """A page directory and the page tables and user pages under it."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.pgdir: int | None = memory.kalloc()
        memory.write(self.pgdir, bytes(PGSIZE))
        self._data_addr: int | None = None

    @classmethod
    def setup_kernel(cls, memory: PhysicalMemory, data_addr: int) -> AddressSpace:
        """A new address space holding the kernel's mappings."""
        if not KERNLINK < data_addr < p2v(PHYSTOP) or data_addr % PGSIZE:
            raise ValueError(f"bad kernel data address {data_addr:#x}")
        if p2v(PHYSTOP) > DEVSPACE:
            raise VmPanic("PHYSTOP too high")
        space = cls(memory)
        space._data_addr = data_addr
        try:
            for virt, start, end, perm in _kernel_map(data_addr):
                space.map_pages(virt, (end - start) & _MASK32, start, perm)
        except MemoryError:
            space.free()
            raise
        return space

    def _directory(self) -> int:
        if self.pgdir is None:
            raise VmPanic("address space already freed")
        return self.pgdir

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the PTE for va, creating its page table if alloc."""
        mem = self.memory
        pde_at = self._directory() + 4 * pdx(va)
        pde = mem._word(pde_at)
        if pde & PTE_P:
            pgtab = pte_addr(pde)
        else:
            if not alloc:
                return None
            pgtab = mem.kalloc()
            mem.write(pgtab, bytes(PGSIZE))
            mem._set_word(pde_at, pgtab | PTE_P | PTE_W | PTE_U)
        return pgtab + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va + size) to physical memory from pa."""
        if size <= 0 or va + size > 1 << 32:
            raise ValueError("mapping range is empty or beyond 4 GiB")
        mem = self.memory
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            pte = self.walk(a, True)
            if mem._word(pte) & PTE_P:
                raise VmPanic("remap")
            mem._set_word(pte, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_user(self, code: bytes) -> None:
        """Load code, smaller than a page, at user address 0."""
        if len(code) >= PGSIZE:
            raise VmPanic("inituvm: more than a page")
        page = self.memory.kalloc()
        self.memory.write(page, bytes(PGSIZE))
        self.map_pages(0, PGSIZE, page, PTE_W | PTE_U)
        self.memory.write(page, code)

    def load_user(self, addr: int, data: bytes, offset: int, sz: int) -> None:
        """Copy sz bytes of data from offset into already-mapped pages at addr."""
        if addr % PGSIZE:
            raise VmPanic("loaduvm: addr must be page aligned")
        for i in range(0, sz, PGSIZE):
            pte = self.walk(addr + i, False)
            if pte is None:
                raise VmPanic("loaduvm: address should exist")
            pa = pte_addr(self.memory._word(pte))
            n = min(sz - i, PGSIZE)
            chunk = data[offset + i:offset + i + n]
            if len(chunk) != n:
                raise ValueError("segment runs past the end of the file")
            self.memory.write(pa, chunk)

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow the user part from oldsz to newsz bytes; return the new size."""
        if newsz >= KERNBASE:
            raise ValueError("user memory would reach the kernel")
        if newsz < oldsz:
            return oldsz
        mem = self.memory
        a = pg_round_up(oldsz)
        while a < newsz:
            try:
                page = mem.kalloc()
            except MemoryError:
                self.dealloc_user(newsz, oldsz)
                raise MemoryError("allocuvm out of memory") from None
            mem.write(page, bytes(PGSIZE))
            try:
                self.map_pages(a, PGSIZE, page, PTE_W | PTE_U)
            except MemoryError:
                self.dealloc_user(newsz, oldsz)
                mem.kfree(page)
                raise MemoryError("allocuvm out of memory (2)") from None
            a += PGSIZE
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Shrink the user part from oldsz to newsz bytes; return the new size."""
        if newsz >= oldsz:
            return oldsz
        mem = self.memory
        a = pg_round_up(newsz)
        while a < oldsz:
            pte = self.walk(a, False)
            if pte is None:
                a = ((pdx(a) + 1) << PDXSHIFT) - PGSIZE
            else:
                entry = mem._word(pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VmPanic("kfree")
                    mem.kfree(pa)
                    mem._set_word(pte, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release every user page, every page table and the directory."""
        if self.pgdir is None:
            raise VmPanic("freevm: no pgdir")
        self.dealloc_user(KERNBASE, 0)
        mem = self.memory
        for i in range(NPDENTRIES):
            pde = mem._word(self.pgdir + 4 * i)
            if pde & PTE_P:
                mem.kfree(pte_addr(pde))
        mem.kfree(self.pgdir)
        self.pgdir = None

    def clear_user(self, uva: int) -> None:
        """Make the page at uva inaccessible to user code."""
        pte = self.walk(uva, False)
        if pte is None:
            raise VmPanic("clearpteu")
        self.memory._set_word(pte, self.memory._word(pte) & ~PTE_U)

    def copy(self, sz: int) -> AddressSpace:
        """A new address space with a private copy of the first sz user bytes."""
        mem = self.memory
        if self._data_addr is not None:
            child = AddressSpace.setup_kernel(mem, self._data_addr)
        else:
            child = AddressSpace(mem)
        try:
            for i in range(0, sz, PGSIZE):
                pte = self.walk(i, False)
                if pte is None:
                    raise VmPanic("copyuvm: pte should exist")
                entry = mem._word(pte)
                if not entry & PTE_P:
                    raise VmPanic("copyuvm: page not present")
                page = mem.kalloc()
                mem.write(page, mem.read(pte_addr(entry), PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, page, pte_flags(entry))
                except MemoryError:
                    mem.kfree(page)
                    raise
        except MemoryError:
            child.free()
            raise
        return child

    def user_to_kernel(self, uva: int) -> int | None:
        """Kernel virtual address of the user page at uva, or None."""
        pte = self.walk(uva, False)
        if pte is None:
            return None
        entry = self.memory._word(pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def copy_out(self, va: int, data: bytes) -> None:
        """Copy data to user address va, page by page."""
        data = bytes(data)
        pos = 0
        while pos < len(data):
            va0 = pg_round_down(va)
            ka = self.user_to_kernel(va0)
            if ka is None:
                raise ValueError(f"user address {va0:#x} is not mapped")
            n = min(PGSIZE - (va - va0), len(data) - pos)
            self.memory.write(v2p(ka) + (va - va0), data[pos:pos + n])
            pos += n
            va = va0 + PGSIZE