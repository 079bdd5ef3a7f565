import pytest

from polokit.opcodes import DbOp, instruction_size


def test_codes_are_consecutive_from_zero():
    assert [DbOp(code) for code in range(len(DbOp))] == list(DbOp)


def test_fixed_codes():
    assert DbOp(0) is DbOp.EOF
    assert DbOp(1) is DbOp.LABEL


def test_get_field_has_two_operands():
    assert instruction_size(DbOp.GET_FIELD) == 9


@pytest.mark.parametrize(
    "op",
    [DbOp.LABEL, DbOp.GOTO, DbOp.IF_FALSE, DbOp.PUSH_VALUE, DbOp.POP2, DbOp.OPEN_READ],
)
def test_single_operand_instructions(op):
    assert instruction_size(op) == 5


@pytest.mark.parametrize("op", [DbOp.POP, DbOp.EQUAL, DbOp.HALT, DbOp.RESULT_ROW, DbOp.IN])
def test_bare_instructions(op):
    assert instruction_size(op) == 1


def test_accepts_raw_byte():
    assert instruction_size(int(DbOp.NEXT)) == instruction_size(DbOp.NEXT)


def test_unknown_code_rejected():
    with pytest.raises(ValueError):
        instruction_size(250)