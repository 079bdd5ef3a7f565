import pytest

from polokit.line_diff import (
    Diff,
    DiffOp,
    Line,
    TextMismatchError,
    assert_same_text,
    diff,
    format_differences,
    line_diff,
)

TEXT_ABC = "\na\nb\nc\n"


def test_equal():
    assert line_diff(TEXT_ABC, TEXT_ABC) == []


def test_diff():
    result = line_diff(TEXT_ABC, "\na\nb2\nc\n")
    assert len(result) == 1
    item = result[0]
    assert item.op is DiffOp.REPLACE
    assert item.in_lines == [Line(2, "b")]
    assert item.de_lines == [Line(2, "b2")]


def test_insert():
    result = line_diff("\na\nc\n", TEXT_ABC)
    assert len(result) == 1
    assert result[0].op is DiffOp.INSERT
    assert result[0].in_lines == [Line(2, "b")]


def test_delete():
    result = line_diff(TEXT_ABC, "\na\nc\n")
    assert len(result) == 1
    assert result[0].op is DiffOp.DELETE
    assert result[0].de_lines == [Line(2, "b")]


def test_replace_rendering():
    result = line_diff(TEXT_ABC, "\na\nb2\nc\n")
    assert str(result[0]) == "@@ 3\n\x1b[32m+ b\x1b[0m\n\x1b[31m- b2\x1b[0m\n"


def test_insert_rendering():
    result = line_diff("\na\nc\n", TEXT_ABC)
    assert format_differences(result) == "@@ 3\n\x1b[32m+ b\x1b[0m\n"


def test_preserve_rendering():
    assert str(Diff(DiffOp.PRESERVE)) == "Preserve\n"


def test_consecutive_inserts_are_merged():
    result = line_diff("\na\nd\n", "\na\nb\nc\nd\n")
    assert len(result) == 1
    assert [line.content for line in result[0].in_lines] == ["b", "c"]


def test_custom_splitter():
    result = diff("x,y,z", "x,q,z", ",")
    assert len(result) == 1
    assert result[0].op is DiffOp.REPLACE


def test_empty_splitter_rejected():
    with pytest.raises(ValueError):
        diff("a", "b", "")


def test_assert_same_text_passes_for_equal_text():
    assert assert_same_text(TEXT_ABC, TEXT_ABC) is None


def test_assert_same_text_raises():
    with pytest.raises(TextMismatchError) as info:
        assert_same_text(TEXT_ABC, "\na\nb2\nc\n")
    assert len(info.value.differences) == 1
    assert "+ b" in str(info.value)