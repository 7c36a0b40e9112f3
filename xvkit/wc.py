"""Count lines, words and bytes."""

from __future__ import annotations

import io
import sys
from dataclasses import dataclass
from typing import BinaryIO

_WHITESPACE = frozenset(b" \r\t\n\v")
_CHUNK = 512


@dataclass(frozen=True)
class WordCount:
    """Lines, words and bytes of some input."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def count_stream(stream: BinaryIO) -> WordCount:
    """Count a binary stream, reading it to its end."""
    lines = words = chars = 0
    inword = False
    while chunk := stream.read(_CHUNK):
        chars += len(chunk)
        lines += chunk.count(b"\n")
        for byte in chunk:
            if byte in _WHITESPACE:
                inword = False
            elif not inword:
                words += 1
                inword = True
    return WordCount(lines, words, chars)


def count_bytes(data: bytes) -> WordCount:
    """Count a bytes object."""
    return count_stream(io.BytesIO(bytes(data)))


def format_count(counts: WordCount, name: str) -> str:
    return f"{counts.lines} {counts.words} {counts.chars} {name}"


def main(argv: list[str] | None = None) -> int:
    """Print counts for each named file, or for standard input."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print(format_count(count_stream(sys.stdin.buffer), ""))
        return 0
    for name in args:
        try:
            f = open(name, "rb")
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        with f:
            try:
                counts = count_stream(f)
            except OSError:
                print("wc: read error")
                return 1
        print(format_count(counts, name))
    return 0


if __name__ == "__main__":
    sys.exit(main())