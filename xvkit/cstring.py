"""C string and memory routines over bytes and bytearrays."""

from __future__ import annotations

from typing import BinaryIO, Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _bytes(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _cstr(s: BytesLike) -> bytes:
    """The bytes of s up to, not including, the first NUL."""
    data = _bytes(s)
    end = data.find(0)
    return data if end < 0 else data[:end]


def _byte_value(c: Union[int, str, bytes]) -> int:
    if isinstance(c, str):
        return ord(c) & 0xFF
    if isinstance(c, (bytes, bytearray)):
        if len(c) != 1:
            raise ValueError("expected a single byte")
        return c[0]
    return c & 0xFF


def _check_range(buf: bytearray, start: int, n: int) -> None:
    if start < 0 or n < 0 or start + n > len(buf):
        raise IndexError(f"range [{start}, {start + n}) outside buffer of {len(buf)}")


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Compare the first n bytes; negative, zero or positive like C."""
    a, b = _bytes(a), _bytes(b)
    if n < 0 or len(a) < n or len(b) < n:
        raise ValueError("memcmp length exceeds an operand")
    for x, y in zip(a[:n], b[:n]):
        if x != y:
            return x - y
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy n bytes within buf from offset src to offset dst; overlap is safe."""
    _check_range(buf, dst, n)
    _check_range(buf, src, n)
    buf[dst:dst + n] = buf[src:src + n]
    return buf


def memset(buf: bytearray, dst: int, c: Union[int, str, bytes], n: int) -> bytearray:
    """Fill n bytes of buf at offset dst with the low byte of c."""
    _check_range(buf, dst, n)
    buf[dst:dst + n] = bytes([_byte_value(c)]) * n
    return buf


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most n bytes of two NUL-terminated strings."""
    p, q = _bytes(p), _bytes(q)
    for i in range(n):
        a = p[i] if i < len(p) else 0
        b = q[i] if i < len(q) else 0
        if a != b or a == 0:
            return a - b
    return 0


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two NUL-terminated strings."""
    p, q = _bytes(p), _bytes(q)
    return strncmp(p, q, max(len(p), len(q)) + 1)


def strncpy(t: BytesLike, n: int) -> bytes:
    """The n-byte result of copying t: NUL padded, not NUL terminated if t is long."""
    if n <= 0:
        return b""
    s = _cstr(t)[:n]
    return s + bytes(n - len(s))


def safestrcpy(t: BytesLike, n: int) -> bytes:
    """Copy at most n - 1 bytes of t and always end with a NUL."""
    if n <= 0:
        return b""
    return _cstr(t)[:n - 1] + b"\0"


def strlen(s: BytesLike) -> int:
    return len(_cstr(s))


def strchr(s: BytesLike, c: Union[int, str, bytes]) -> int | None:
    """Index of the first c in the string, or None; the NUL is never found."""
    index = _cstr(s).find(_byte_value(c))
    return None if index < 0 else index


def atoi(s: BytesLike) -> int:
    """Value of the leading decimal digits; no sign and no leading blanks."""
    n = 0
    for ch in _bytes(s):
        if not 0x30 <= ch <= 0x39:
            break
        n = n * 10 + ch - 0x30
    return n


def gets(stream: BinaryIO, max: int) -> bytes:
    """Read up to max - 1 bytes, stopping after a newline or carriage return."""
    out = bytearray()
    while len(out) + 1 < max:
        c = stream.read(1)
        if not c:
            break
        out += c
        if c in (b"\n", b"\r"):
            break
    return bytes(out)