"""Reading and writing ELF executable and program headers."""

from __future__ import annotations

import struct
from collections.abc import Iterator
from dataclasses import dataclass

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELF_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROG_HEADER = struct.Struct("<8I")


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


@dataclass
class ElfHeader:
    """ELF file header."""

    magic: int = ELF_MAGIC
    ident: bytes = bytes(12)
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = _ELF_HEADER.size
    phentsize: int = _PROG_HEADER.size
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    SIZE = _ELF_HEADER.size

    @classmethod
    def parse(cls, data: bytes) -> ElfHeader:
        """Parse the header at the start of data; the magic must match."""
        if len(data) < _ELF_HEADER.size:
            raise ElfFormatError("truncated ELF header")
        header = cls(*_ELF_HEADER.unpack_from(data, 0))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError(f"bad ELF magic 0x{header.magic:08x}")
        return header

    def pack(self) -> bytes:
        if len(self.ident) != 12:
            raise ValueError("ident must be exactly 12 bytes")
        return _ELF_HEADER.pack(
            self.magic,
            self.ident,
            self.type,
            self.machine,
            self.version,
            self.entry,
            self.phoff,
            self.shoff,
            self.flags,
            self.ehsize,
            self.phentsize,
            self.phnum,
            self.shentsize,
            self.shnum,
            self.shstrndx,
        )


@dataclass
class ProgramHeader:
    """ELF program section header."""

    type: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    flags: int = 0
    align: int = 0

    SIZE = _PROG_HEADER.size

    @classmethod
    def parse(cls, data: bytes, offset: int = 0) -> ProgramHeader:
        if offset < 0 or offset + _PROG_HEADER.size > len(data):
            raise ElfFormatError(f"program header at {offset} lies outside the image")
        return cls(*_PROG_HEADER.unpack_from(data, offset))

    def pack(self) -> bytes:
        return _PROG_HEADER.pack(
            self.type,
            self.off,
            self.vaddr,
            self.paddr,
            self.filesz,
            self.memsz,
            self.flags,
            self.align,
        )


def program_headers(data: bytes) -> Iterator[ProgramHeader]:
    """Yield every program header of an ELF image, in table order."""
    header = ElfHeader.parse(data)
    for i in range(header.phnum):
        yield ProgramHeader.parse(data, header.phoff + i * _PROG_HEADER.size)


def loadable_segments(data: bytes) -> list[ProgramHeader]:
    """Program headers of type LOAD."""
    return [ph for ph in program_headers(data) if ph.type == ELF_PROG_LOAD]