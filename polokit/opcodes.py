"""Instruction set of the query virtual machine."""

from __future__ import annotations

import enum


class DbOp(enum.IntEnum):
    """One-byte operation codes; operands follow as little-endian u32 values."""

    EOF = 0
    LABEL = 1
    INC_R2 = 2
    GOTO = 3
    IF_TRUE = 4
    IF_FALSE = 5
    REWIND = 6
    FIND_BY_PRIMARY_KEY = 7
    NEXT = 8
    PUSH_VALUE = 9
    PUSH_R0 = 10
    STORE_R0 = 11
    GET_FIELD = 12
    UNSET_FIELD = 13
    INC_FIELD = 14
    MUL_FIELD = 15
    SET_FIELD = 16
    ARRAY_SIZE = 17
    ARRAY_PUSH = 18
    ARRAY_POP_FIRST = 19
    ARRAY_POP_LAST = 20
    UPDATE_CURRENT = 21
    POP = 22
    POP2 = 23
    EQUAL = 24
    GREATER = 25
    GREATER_EQUAL = 26
    LESS = 27
    LESS_EQUAL = 28
    IN = 29
    OPEN_READ = 30
    OPEN_WRITE = 31
    RESULT_ROW = 32
    CLOSE = 33
    SAVE_STACK_POS = 34
    RECOVER_STACK_POS = 35
    HALT = 36


_ONE_OPERAND = frozenset(
    {
        DbOp.LABEL,
        DbOp.GOTO,
        DbOp.IF_TRUE,
        DbOp.IF_FALSE,
        DbOp.REWIND,
        DbOp.FIND_BY_PRIMARY_KEY,
        DbOp.NEXT,
        DbOp.PUSH_VALUE,
        DbOp.UNSET_FIELD,
        DbOp.INC_FIELD,
        DbOp.MUL_FIELD,
        DbOp.SET_FIELD,
        DbOp.POP2,
        DbOp.OPEN_READ,
        DbOp.OPEN_WRITE,
    }
)

_TWO_OPERANDS = frozenset({DbOp.GET_FIELD})


def instruction_size(op: DbOp | int) -> int:
    """Return the encoded length in bytes of an instruction starting with ``op``."""
    op = DbOp(op)
    if op in _TWO_OPERANDS:
        return 9
    if op in _ONE_OPERAND:
        return 5
    return 1