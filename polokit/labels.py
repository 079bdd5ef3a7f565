"""Jump labels and their resolution records."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Label:
    """Identifier of a jump target inside a program."""

    pos: int


@dataclass(frozen=True)
class JumpTableRecord:
    """A jump operand at ``begin_loc + offset`` waiting for ``label_id``'s location."""

    begin_loc: int
    offset: int
    label_id: int


@dataclass(frozen=True)
class LabelSlot:
    """Where a label was placed, if it has been, and its optional name."""

    location: int | None = None
    name: str | None = None

    def position(self) -> int:
        """Return the instruction offset the label points to."""
        if self.location is None:
            raise ValueError("label has not been emitted")
        return self.location

    def is_empty(self) -> bool:
        return self.location is None