"""Line-oriented text difference based on edit distance."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

_GREEN = "\x1b[32m"
_RED = "\x1b[31m"
_RESET = "\x1b[0m"


class DiffOp(enum.Enum):
    """Edit operation chosen for a cell of the distance matrix."""

    PRESERVE = "preserve"
    DELETE = "delete"
    INSERT = "insert"
    REPLACE = "replace"


@dataclass(frozen=True)
class Line:
    """A line of text together with its zero-based index."""

    index: int
    content: str


@dataclass
class Diff:
    """A run of consecutive lines affected by the same operation."""

    op: DiffOp
    in_lines: list[Line] = field(default_factory=list)
    de_lines: list[Line] = field(default_factory=list)

    def __str__(self) -> str:
        if self.op is DiffOp.PRESERVE:
            return "Preserve\n"

        if self.op is DiffOp.DELETE:
            header = self.de_lines[0].index + 1
        else:
            header = self.in_lines[0].index + 1

        parts = [f"@@ {header}\n"]
        if self.op in (DiffOp.INSERT, DiffOp.REPLACE):
            parts.extend(f"{_GREEN}+ {line.content}{_RESET}\n" for line in self.in_lines)
        if self.op in (DiffOp.DELETE, DiffOp.REPLACE):
            parts.extend(f"{_RED}- {line.content}{_RESET}\n" for line in self.de_lines)
        return "".join(parts)


class TextMismatchError(AssertionError):
    """Raised when two texts that should be identical differ."""

    def __init__(self, differences: list[Diff]) -> None:
        self.differences = differences
        super().__init__(format_differences(differences))


def _minimum(a: int, b: int, c: int) -> tuple[int, str]:
    if a < b:
        return (a, "a") if a < c else (c, "c")
    return (b, "b") if b < c else (c, "c")


def diff(a: str, b: str, splitter: str) -> list[Diff]:
    """Compute the differences between ``a`` and ``b`` split by ``splitter``."""
    if not splitter:
        raise ValueError("splitter must not be empty")

    a_lines = a.split(splitter)
    b_lines = b.split(splitter)
    n, m = len(a_lines), len(b_lines)

    distance = [[0] * (m + 1) for _ in range(n + 1)]
    ops = [[DiffOp.PRESERVE] * (m + 1) for _ in range(n + 1)]

    for i in range(n + 1):
        distance[i][0] = i
    for j in range(m + 1):
        distance[0][j] = j

    for i, line1 in enumerate(a_lines, start=1):
        for j, line2 in enumerate(b_lines, start=1):
            cost = 0 if line1 == line2 else 1
            dis, choice = _minimum(
                distance[i - 1][j] + 1,
                distance[i][j - 1] + 1,
                distance[i - 1][j - 1] + cost,
            )
            if choice == "a":
                op = DiffOp.DELETE
            elif choice == "b":
                op = DiffOp.INSERT
            else:
                op = DiffOp.PRESERVE if cost == 0 else DiffOp.REPLACE
            distance[i][j] = dis
            ops[i][j] = op

    return _backtrack(ops, a_lines, b_lines)


def _backtrack(ops: list[list[DiffOp]], a_lines: list[str], b_lines: list[str]) -> list[Diff]:
    result: list[Diff] = []
    i, j = len(a_lines), len(b_lines)

    while i > 0 and j > 0:
        op = ops[i][j]
        last = result[-1] if result else None

        if op is DiffOp.PRESERVE:
            i -= 1
            j -= 1
        elif op is DiffOp.REPLACE:
            in_line = Line(i - 1, a_lines[i - 1])
            de_line = Line(j - 1, b_lines[j - 1])
            if last is not None and last.op is DiffOp.REPLACE:
                last.in_lines.insert(0, in_line)
                last.de_lines.insert(0, de_line)
            else:
                result.append(Diff(DiffOp.REPLACE, [in_line], [de_line]))
            i -= 1
            j -= 1
        elif op is DiffOp.INSERT:
            in_line = Line(j - 1, b_lines[j - 1])
            if last is not None and last.op is DiffOp.INSERT:
                last.in_lines.insert(0, in_line)
            else:
                result.append(Diff(DiffOp.INSERT, [in_line], []))
            j -= 1
        else:
            de_line = Line(i - 1, a_lines[i - 1])
            if last is not None and last.op is DiffOp.DELETE:
                last.de_lines.insert(0, de_line)
            else:
                result.append(Diff(DiffOp.DELETE, [], [de_line]))
            i -= 1

    result.reverse()
    return result


def line_diff(a: str, b: str) -> list[Diff]:
    """Compute the differences between two texts line by line."""
    return diff(a, b, "\n")


def format_differences(diffs: list[Diff]) -> str:
    """Render a list of differences as coloured text."""
    return "".join(str(item) for item in diffs)


def assert_same_text(left: str, right: str) -> None:
    """Raise :class:`TextMismatchError` if the two texts differ by line."""
    differences = line_diff(left, right)
    if differences:
        raise TextMismatchError(differences)