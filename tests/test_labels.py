import pytest

from polokit.labels import JumpTableRecord, Label, LabelSlot


def test_label_position():
    assert Label(3).pos == 3


def test_labels_compare_by_position():
    assert Label(4) == Label(4)
    assert Label(4) != Label(5)


def test_jump_table_record_fields():
    record = JumpTableRecord(10, 5, 2)
    assert (record.begin_loc, record.offset, record.label_id) == (10, 5, 2)


def test_empty_slot():
    slot = LabelSlot()
    assert slot.is_empty() is True
    with pytest.raises(ValueError):
        slot.position()


def test_unnamed_slot():
    slot = LabelSlot(37)
    assert slot.is_empty() is False
    assert slot.position() == 37
    assert slot.name is None


def test_named_slot():
    slot = LabelSlot(30, "Close")
    assert slot.position() == 30
    assert slot.name == "Close"