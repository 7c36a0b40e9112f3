import pytest

from xvkit.params import O_CREATE, O_RDONLY, O_WRONLY
from xvkit.sh import (
    BackCommand,
    ExecCommand,
    ListCommand,
    PipeCommand,
    RedirCommand,
    ShellSyntaxError,
    parse_cd,
    parse_command,
    tokens,
)


def test_tokens_of_pipeline():
    assert list(tokens("ls | wc")) == [("a", "ls"), ("|", "|"), ("a", "wc")]


def test_tokens_append_redirect():
    assert list(tokens("echo hi >>out")) == [
        ("a", "echo"),
        ("a", "hi"),
        ("+", ">>"),
        ("a", "out"),
    ]


def test_tokens_symbols_split_words():
    assert [text for _, text in tokens("a;b&(c)<d")] == ["a", ";", "b", "&", "(", "c", ")", "<", "d"]


def test_tokens_empty():
    assert list(tokens(" \t\n")) == []


def test_simple_exec():
    assert parse_command("echo hello world\n") == ExecCommand(["echo", "hello", "world"])


def test_empty_line_is_empty_exec():
    assert parse_command("\n") == ExecCommand([])


def test_redirections_nest_in_order():
    cmd = parse_command("cat < in > out")
    assert cmd == RedirCommand(
        RedirCommand(ExecCommand(["cat"]), "in", O_RDONLY, 0),
        "out",
        O_WRONLY | O_CREATE,
        1,
    )


def test_append_opens_like_write():
    cmd = parse_command("echo x >> log")
    assert cmd == RedirCommand(ExecCommand(["echo", "x"]), "log", O_WRONLY | O_CREATE, 1)


def test_redirect_before_words():
    cmd = parse_command("< in cat")
    assert cmd == RedirCommand(ExecCommand(["cat"]), "in", O_RDONLY, 0)


def test_pipe_is_right_nested():
    cmd = parse_command("ls | grep x | wc")
    assert cmd == PipeCommand(
        ExecCommand(["ls"]),
        PipeCommand(ExecCommand(["grep", "x"]), ExecCommand(["wc"])),
    )


def test_list_and_background():
    cmd = parse_command("a & ; b")
    assert cmd == ListCommand(BackCommand(ExecCommand(["a"])), ExecCommand(["b"]))


def test_double_background():
    assert parse_command("a &&") == BackCommand(BackCommand(ExecCommand(["a"])))


def test_block_with_redirect():
    cmd = parse_command("(a ; b) > out")
    assert cmd == RedirCommand(
        ListCommand(ExecCommand(["a"]), ExecCommand(["b"])),
        "out",
        O_WRONLY | O_CREATE,
        1,
    )


def test_leftovers():
    with pytest.raises(ShellSyntaxError, match="leftovers"):
        parse_command("a )")


def test_missing_close_paren():
    with pytest.raises(ShellSyntaxError, match="missing \\)"):
        parse_command("(a")


def test_missing_redirect_file():
    with pytest.raises(ShellSyntaxError, match="missing file for redirection"):
        parse_command("cat <")


def test_open_paren_inside_command():
    with pytest.raises(ShellSyntaxError, match="syntax"):
        parse_command("a (")


def test_argument_limit():
    words = [f"w{i}" for i in range(9)]
    assert parse_command(" ".join(words)) == ExecCommand(words)
    with pytest.raises(ShellSyntaxError, match="too many args"):
        parse_command(" ".join(words + ["extra"]))


def test_parse_cd():
    assert parse_cd("cd /dir\n") == "/dir"
    assert parse_cd("cd \n") == ""
    assert parse_cd("ls\n") is None