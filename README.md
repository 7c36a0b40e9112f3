# xvkit

Small, self-contained models of the core pieces of a teaching operating
system kernel and its user library, written as plain Python with no
dependencies outside the standard library.

## What is inside

- `xvkit.params` – system limits (`NPROC`, `NOFILE`, `MAXARG`, ...), open
  flags (`O_RDONLY`, `O_WRONLY`, `O_RDWR`, `O_CREATE`), `access_mode(omode)`
  which returns `(readable, writable)` for an open mode, and the `Syscall`,
  `Trap` and `FileType` enumerations.
- `xvkit.mmu` – x86 paging arithmetic (`pdx`, `ptx`, `pgaddr`,
  `pg_round_up`, `pg_round_down`, `pte_addr`, `pte_flags`, `v2p`, `p2v`),
  the memory layout constants, and `SegmentDescriptor` / `GateDescriptor`
  built by `segment`, `segment16` and `gate`; their `pack()` returns the
  8-byte hardware form. `asm_segment` and `null_asm_segment` give the bytes
  of boot-time descriptors.
- `xvkit.elf` – `ElfHeader.parse` / `pack` and `ProgramHeader.parse` /
  `pack`, plus `program_headers(data)` and `loadable_segments(data)`.
  Malformed images raise `ElfFormatError`.
- `xvkit.cstring` – C-style routines over bytes: `memcmp`, `memmove`,
  `memset` (in place on a `bytearray`), `strncmp`, `strcmp`, `strncpy`,
  `safestrcpy`, `strlen`, `strchr` (returns an index or `None`), `atoi`, and
  `gets(stream, max)` which reads a line from a binary stream.
- `xvkit.vm` – two-level page tables over a simulated page pool.
  `PhysicalMemory(npages)` hands out pages with `kalloc` / `kfree` and
  exposes `read`, `write` and `free_pages`. `AddressSpace` offers
  `setup_kernel`, `walk`, `map_pages`, `init_user`, `load_user`,
  `alloc_user`, `dealloc_user`, `free`, `clear_user`, `copy`,
  `user_to_kernel` and `copy_out`. Broken invariants raise `VmPanic`;
  running out of pages raises `MemoryError`.
- `xvkit.umalloc` – `Heap(limit)`: a first-fit, address-ordered free-list
  allocator over a break moved with `sbrk`, with `malloc`, `free`, `read`,
  `write` and the current `brk`.
- `xvkit.wc` – `count_bytes`, `count_stream` returning a `WordCount`
  (`lines`, `words`, `chars`), `format_count`, and the `main` command.
- `xvkit.sh` – the shell's tokenizer and parser: `tokens(line)`,
  `parse_command(line)` producing trees of `ExecCommand`, `RedirCommand`,
  `PipeCommand`, `ListCommand` and `BackCommand`, and `parse_cd(line)`.
  Bad input raises `ShellSyntaxError`.
- `xvkit.locks` – `SpinLock` (usable as a context manager) and
  `SleepLock` (`acquire(pid)`, `release()`, `holding(pid)`), with per-thread
  `Cpu` interrupt nesting through `push_cli` / `pop_cli` and `mycpu()`.
  Misuse raises `LockPanic`.
- `xvkit.syscalls` – `UserMemory` fetches integers, strings and buffer
  arguments from a process image (`fetch_int`, `fetch_str`, `arg_int`,
  `arg_ptr`, `arg_str`); `SyscallTable` maps call numbers to handlers with
  `register` and `dispatch`. Failures raise `SyscallError`.

## Install

```
pip install .
```

## Examples

Parse a shell line:

```python
from xvkit.sh import parse_command

cmd = parse_command("cat < in.txt | wc > out.txt")
# PipeCommand(left=RedirCommand(ExecCommand(['cat']), 'in.txt', 0, 0),
#             right=RedirCommand(ExecCommand(['wc']), 'out.txt', 0x201, 1))
```

Grow an address space and write into it:

```python
from xvkit.vm import PhysicalMemory, AddressSpace

memory = PhysicalMemory(64)
space = AddressSpace(memory)
size = space.alloc_user(0, 8192)
space.copy_out(100, b"hello")
```

Allocate from a heap:

```python
from xvkit.umalloc import Heap

heap = Heap(1 << 20)
addr = heap.malloc(100)
heap.write(addr, b"data")
heap.free(addr)
```

Count lines, words and bytes:

```python
from xvkit.wc import count_bytes, format_count

print(format_count(count_bytes(b"one two\nthree\n"), "sample"))
# 2 3 14 sample
```

## Command line

The word counter is installed as a command:

```
xvkit-wc FILE...
```

For each file it prints `lines words bytes name`. With no file names it
reads standard input and prints the counts with an empty name. If a file
cannot be opened it prints `wc: cannot open NAME` and exits with status 1.

## What it does not do

These are models of separate pieces, not a running system. There is no
kernel to boot, no process scheduler, no file system or disk, and no
console. The shell module parses command lines but does not run them, and
`SyscallTable` only calls handlers that you register.

## Tests

```
pip install .[test]
pytest
```