import io

from xvkit.wc import WordCount, count_bytes, count_stream, format_count, main


def test_simple_counts():
    data = b"hello world\nsecond line here\n"
    counts = count_bytes(data)
    assert counts.chars == len(data)
    assert counts.lines == data.count(b"\n")
    assert counts.words == 5


def test_empty_input():
    assert count_bytes(b"") == WordCount()


def test_words_join_across_read_chunks():
    assert count_bytes(b"a" * 1000).words == count_bytes(b"a").words


def test_concatenation_with_separator_adds_words():
    x = b"one two\tthree\r\n"
    y = b"\vfour  five"
    assert count_bytes(x + b" " + y).words == count_bytes(x).words + count_bytes(y).words


def test_form_feed_and_nul_do_not_split_words():
    assert count_bytes(b"a\fb").words == count_bytes(b"ab").words
    assert count_bytes(b"a\0b").words == count_bytes(b"ab").words


def test_count_stream_matches_count_bytes():
    data = b"x y z\n" * 300
    assert count_stream(io.BytesIO(data)) == count_bytes(data)


def test_format_count():
    assert format_count(WordCount(1, 2, 3), "f") == "1 2 3 f"
    assert format_count(WordCount(4, 5, 6), "") == "4 5 6 "


def test_main_counts_files(tmp_path, capsys):
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_bytes(b"alpha beta\n")
    second.write_bytes(b"gamma\ndelta epsilon\n")
    assert main([str(first), str(second)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        format_count(count_bytes(first.read_bytes()), str(first)),
        format_count(count_bytes(second.read_bytes()), str(second)),
    ]


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "nope"
    assert main([str(missing)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"