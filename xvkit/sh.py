"""Parsing shell command lines into command trees."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Union

from xvkit.params import O_CREATE, O_RDONLY, O_WRONLY

MAXARGS = 10
WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """A command line that the shell cannot parse."""


@dataclass
class ExecCommand:
    """Run a program with its arguments."""

    argv: list[str] = field(default_factory=list)


@dataclass
class RedirCommand:
    """Run cmd with file opened in mode on descriptor fd."""

    cmd: Command
    file: str
    mode: int
    fd: int


@dataclass
class PipeCommand:
    """Connect the output of left to the input of right."""

    left: Command
    right: Command


@dataclass
class ListCommand:
    """Run left to completion, then right."""

    left: Command
    right: Command


@dataclass
class BackCommand:
    """Run cmd without waiting for it."""

    cmd: Command


Command = Union[ExecCommand, RedirCommand, PipeCommand, ListCommand, BackCommand]


class _Parser:
    def __init__(self, line: str) -> None:
        self.line = line
        self.pos = 0

    def _skip(self) -> None:
        line = self.line
        while self.pos < len(line) and line[self.pos] in WHITESPACE:
            self.pos += 1

    def peek(self, toks: str) -> bool:
        """Skip blanks; report whether the next character is one of toks."""
        self._skip()
        return self.pos < len(self.line) and self.line[self.pos] in toks

    def next(self) -> tuple[str, str] | None:
        """Consume one token and return (kind, text), or None at the end."""
        self._skip()
        line, start = self.line, self.pos
        if start >= len(line):
            return None
        ch = line[start]
        if ch in "|();&<":
            kind, end = ch, start + 1
        elif ch == ">":
            if line.startswith(">>", start):
                kind, end = "+", start + 2
            else:
                kind, end = ">", start + 1
        else:
            end = start
            while end < len(line) and line[end] not in WHITESPACE and line[end] not in SYMBOLS:
                end += 1
            kind = "a"
        self.pos = end
        self._skip()
        return kind, line[start:end]

    def parse_line(self) -> Command:
        cmd = self.parse_pipe()
        while self.peek("&"):
            self.next()
            cmd = BackCommand(cmd)
        if self.peek(";"):
            self.next()
            cmd = ListCommand(cmd, self.parse_line())
        return cmd

    def parse_pipe(self) -> Command:
        cmd = self.parse_exec()
        if self.peek("|"):
            self.next()
            cmd = PipeCommand(cmd, self.parse_pipe())
        return cmd

    def parse_redirs(self, cmd: Command) -> Command:
        while self.peek("<>"):
            kind, _ = self.next()
            target = self.next()
            if target is None or target[0] != "a":
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                cmd = RedirCommand(cmd, target[1], O_RDONLY, 0)
            else:  # '>' and '>>' open the file the same way
                cmd = RedirCommand(cmd, target[1], O_WRONLY | O_CREATE, 1)
        return cmd

    def parse_block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.next()
        cmd = self.parse_line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.next()
        return self.parse_redirs(cmd)

    def parse_exec(self) -> Command:
        if self.peek("("):
            return self.parse_block()
        exec_cmd = ExecCommand()
        cmd = self.parse_redirs(exec_cmd)
        while not self.peek("|)&;"):
            tok = self.next()
            if tok is None:
                break
            kind, text = tok
            if kind != "a":
                raise ShellSyntaxError("syntax")
            exec_cmd.argv.append(text)
            if len(exec_cmd.argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            cmd = self.parse_redirs(cmd)
        return cmd


def tokens(line: str) -> Iterator[tuple[str, str]]:
    """Yield (kind, text) for each token; kind is 'a' for a word, '+' for '>>'."""
    parser = _Parser(line)
    while (tok := parser.next()) is not None:
        yield tok


def parse_command(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(line)
    cmd = parser.parse_line()
    parser.peek("")
    if parser.pos != len(line):
        raise ShellSyntaxError(f"leftovers: {line[parser.pos:]}")
    return cmd


def parse_cd(line: str) -> str | None:
    """The directory of a 'cd ' line as read with its line ending, else None.

    The last character of the line, normally its newline, is dropped.
    """
    if not line.startswith("cd "):
        return None
    return line[:-1][3:]