import io

import pytest

from xvkit.cstring import (
    atoi,
    gets,
    memcmp,
    memmove,
    memset,
    safestrcpy,
    strchr,
    strcmp,
    strlen,
    strncmp,
    strncpy,
)


def test_memcmp_sign():
    assert memcmp(b"abc", b"abc", 3) == 0
    assert memcmp(b"abc", b"abd", 3) < 0
    assert memcmp(b"abd", b"abc", 3) > 0
    assert memcmp(b"abX", b"abY", 2) == 0


def test_memcmp_too_long():
    with pytest.raises(ValueError):
        memcmp(b"ab", b"abc", 3)


def test_memmove_forward_overlap():
    buf = bytearray(b"abcdef")
    assert memmove(buf, 2, 0, 4) == bytearray(b"ababcd")


def test_memmove_backward_overlap():
    buf = bytearray(b"abcdef")
    memmove(buf, 0, 2, 4)
    assert buf == bytearray(b"cdefef")


def test_memmove_out_of_range():
    with pytest.raises(IndexError):
        memmove(bytearray(4), 2, 0, 3)


def test_memset():
    buf = bytearray(4)
    memset(buf, 1, "x", 2)
    assert buf == bytearray(b"\0" + b"x" * 2 + b"\0")
    memset(buf, 0, 0x141, 1)
    assert buf[0] == 0x41


def test_strncmp_and_strcmp():
    assert strncmp(b"hello", b"help", 3) == 0
    assert strncmp(b"hello", b"help", 4) < 0
    assert strncmp(b"abc", b"abc\0zzz", 10) == 0
    assert strcmp("abc", "abc") == 0
    assert strcmp("ab", "abc") < 0
    assert strcmp("b", "a") > 0
    assert strncmp(b"x", b"y", 0) == 0


def test_strncpy_pads_and_truncates():
    assert strncpy(b"ab", 4) == b"ab" + bytes(2)
    assert strncpy(b"abcdef", 3) == b"abcdef"[:3]
    assert strncpy(b"ab", 0) == b""


def test_safestrcpy_always_terminates():
    assert safestrcpy(b"hello", 3) == b"hello"[:2] + b"\0"
    assert safestrcpy(b"hi", 10) == b"hi\0"
    assert safestrcpy(b"hi", 0) == b""


def test_strlen_stops_at_nul():
    assert strlen(b"hello\0world") == len(b"hello")
    assert strlen(b"") == 0


def test_strchr():
    assert strchr(b"hello", "l") == b"hello".find(b"l")
    assert strchr(b"hello", "z") is None
    assert strchr(b"ab\0c", "c") is None
    assert strchr(b"abc", 0) is None


def test_atoi():
    assert atoi(b"123abc") == 123
    assert atoi(b"-5") == 0
    assert atoi(" 42") == 0
    assert atoi(b"007") == 7


def test_gets_stops_at_newline():
    stream = io.BytesIO(b"line one\nrest")
    assert gets(stream, 100) == b"line one\n"
    assert gets(stream, 100) == b"rest"
    assert gets(stream, 100) == b""


def test_gets_respects_max():
    assert gets(io.BytesIO(b"abcdef"), 4) == b"abc"
    assert gets(io.BytesIO(b"a\rb"), 10) == b"a\r"