"""Models of a small teaching kernel's paging, locks, syscall arguments, ELF headers, shell parser and utilities."""

__version__ = "0.1.0"

__all__ = [
    "params",
    "mmu",
    "elf",
    "cstring",
    "vm",
    "umalloc",
    "wc",
    "sh",
    "locks",
    "syscalls",
]