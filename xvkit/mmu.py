"""x86 paging arithmetic, memory layout and segment/gate descriptors."""

from __future__ import annotations

from dataclasses import astuple, dataclass, fields

FL_IF = 0x00000200

CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

_MASK32 = 0xFFFFFFFF


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return (va >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return (va >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _MASK32


def pg_round_up(sz: int) -> int:
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _MASK32


def pg_round_down(a: int) -> int:
    return a & ~(PGSIZE - 1) & _MASK32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _MASK32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _MASK32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _MASK32


def _pack_bits(obj) -> bytes:
    value = 0
    shift = 0
    for f, field_value in zip(fields(obj), astuple(obj)):
        width = f.metadata["bits"]
        if not 0 <= field_value < (1 << width):
            raise ValueError(f"{f.name}={field_value} does not fit in {width} bits")
        value |= field_value << shift
        shift += width
    return value.to_bytes(shift // 8, "little")


def _bits(width: int):
    from dataclasses import field

    return field(default=0, metadata={"bits": width})


@dataclass
class SegmentDescriptor:
    """An 8-byte x86 segment descriptor."""

    lim_15_0: int = _bits(16)
    base_15_0: int = _bits(16)
    base_23_16: int = _bits(8)
    type: int = _bits(4)
    s: int = _bits(1)
    dpl: int = _bits(2)
    p: int = _bits(1)
    lim_19_16: int = _bits(4)
    avl: int = _bits(1)
    rsv1: int = _bits(1)
    db: int = _bits(1)
    g: int = _bits(1)
    base_31_24: int = _bits(8)

    def pack(self) -> bytes:
        """Return the descriptor as it sits in the GDT."""
        return _pack_bits(self)


@dataclass
class GateDescriptor:
    """An 8-byte x86 interrupt or trap gate descriptor."""

    off_15_0: int = _bits(16)
    cs: int = _bits(16)
    args: int = _bits(5)
    rsv1: int = _bits(3)
    type: int = _bits(4)
    s: int = _bits(1)
    dpl: int = _bits(2)
    p: int = _bits(1)
    off_31_16: int = _bits(16)

    def pack(self) -> bytes:
        """Return the descriptor as it sits in the IDT."""
        return _pack_bits(self)


def segment(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A normal 32-bit segment with 4 KiB granularity."""
    base &= _MASK32
    limit &= _MASK32
    return SegmentDescriptor(
        lim_15_0=(limit >> 12) & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=(limit >> 28) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_31_24=(base >> 24) & 0xFF,
    )


def segment16(type_: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A segment with byte granularity, as used for the task state segment."""
    base &= _MASK32
    limit &= _MASK32
    return SegmentDescriptor(
        lim_15_0=limit & 0xFFFF,
        base_15_0=base & 0xFFFF,
        base_23_16=(base >> 16) & 0xFF,
        type=type_,
        s=1,
        dpl=dpl,
        p=1,
        lim_19_16=(limit >> 16) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_31_24=(base >> 24) & 0xFF,
    )


def gate(istrap: bool, selector: int, offset: int, dpl: int) -> GateDescriptor:
    """An interrupt gate, or a trap gate when istrap is true."""
    offset &= _MASK32
    return GateDescriptor(
        off_15_0=offset & 0xFFFF,
        cs=selector,
        args=0,
        rsv1=0,
        type=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=dpl,
        p=1,
        off_31_16=offset >> 16,
    )


def asm_segment(type_: int, base: int, limit: int) -> bytes:
    """Bytes of a flat 32-bit segment as the boot assembler lays it out."""
    base &= _MASK32
    limit &= _MASK32
    return bytes(
        [
            (limit >> 12) & 0xFF,
            (limit >> 20) & 0xFF,
            base & 0xFF,
            (base >> 8) & 0xFF,
            (base >> 16) & 0xFF,
            0x90 | type_,
            0xC0 | ((limit >> 28) & 0xF),
            (base >> 24) & 0xFF,
        ]
    )


def null_asm_segment() -> bytes:
    """The all-zero null descriptor."""
    return bytes(8)