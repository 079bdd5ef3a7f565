"""Emits virtual machine code for query documents."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from .labels import JumpTableRecord, Label, LabelSlot
from .opcodes import DbOp

_UNRESOLVED = 0xFFFFFFFF


class DbError(Exception):
    """Base class for database errors."""


class InvalidFieldError(DbError):
    """A query field or operator is not acceptable."""

    def __init__(self, field_name: str, path: str) -> None:
        self.field_name = field_name
        self.path = path
        super().__init__(f"the '{field_name}' field is invalid, path: {path}")


class FieldTypeUnexpectedError(DbError):
    """A field holds a value of the wrong type."""

    def __init__(self, field_name: str, expected_type: str, value: Any) -> None:
        self.field_name = field_name
        self.expected_type = expected_type
        self.actual_type = _type_name(value)
        super().__init__(
            f"the '{field_name}' field should be {expected_type}, "
            f"but it's {self.actual_type}"
        )


class UnknownUpdateOperationError(DbError):
    """An update document uses an operator that is not supported."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"unknown update operation: {operation}")


class UnableToUpdatePrimaryKeyError(DbError):
    """An update tries to change the primary key."""

    def __init__(self) -> None:
        super().__init__("it's not allowed to update primary key")


class Int64(int):
    """An integer stored as a 64-bit value; plain ints are 32-bit."""

    def __repr__(self) -> str:
        return f"Int64({int(self)})"


def _type_name(value: Any) -> str:
    if isinstance(value, Mapping):
        return "Document"
    if isinstance(value, list):
        return "Array"
    if isinstance(value, str):
        return "String"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, Int64):
        return "Int64"
    if isinstance(value, int):
        return "Int32"
    if isinstance(value, float):
        return "Double"
    if value is None:
        return "Null"
    return type(value).__name__


def is_valid_key_type(value: Any) -> bool:
    """Whether ``value`` may be used for a primary-key lookup."""
    return isinstance(value, (str, Int64))


@dataclass
class CompiledProgram:
    """Instruction bytes, their constants and the label table."""

    static_values: list[Any] = field(default_factory=list)
    instructions: bytearray = field(default_factory=bytearray)
    label_slots: list[LabelSlot] = field(default_factory=list)


_QUERY_OPERATORS: dict[str, tuple[DbOp, DbOp]] = {
    "$eq": (DbOp.EQUAL, DbOp.IF_FALSE),
    "$gt": (DbOp.GREATER, DbOp.IF_FALSE),
    "$gte": (DbOp.GREATER_EQUAL, DbOp.IF_FALSE),
    "$in": (DbOp.IN, DbOp.IF_FALSE),
    "$lt": (DbOp.LESS, DbOp.IF_FALSE),
    "$lte": (DbOp.LESS_EQUAL, DbOp.IF_FALSE),
    "$ne": (DbOp.EQUAL, DbOp.IF_FALSE),
    "$nin": (DbOp.IN, DbOp.IF_TRUE),
}

_ARRAY_OPERATORS = frozenset({"$in", "$nin"})


class Codegen:
    """Builds a program instruction by instruction, resolving forward jumps at the end."""

    def __init__(self, skip_annotation: bool) -> None:
        self._program = CompiledProgram()
        self._jump_table: list[JumpTableRecord] = []
        self._skip_annotation = skip_annotation
        self._paths: list[str] = []

    def _unify_labels(self) -> None:
        for record in self._jump_table:
            pos = record.begin_loc + record.offset
            target = self._program.label_slots[record.label_id].position()
            self._program.instructions[pos:pos + 4] = target.to_bytes(4, "little")

    def take(self) -> CompiledProgram:
        """Resolve all jumps and return the finished program."""
        self._unify_labels()
        return self._program

    def new_label(self) -> Label:
        label = Label(len(self._program.label_slots))
        self._program.label_slots.append(LabelSlot())
        return label

    def _place_label(self, label: Label, name: str | None) -> None:
        if not self._program.label_slots[label.pos].is_empty():
            raise RuntimeError(f"label {label.pos} has already been emitted")
        self.emit(DbOp.LABEL)
        self.emit_u32(label.pos)
        self._program.label_slots[label.pos] = LabelSlot(self.current_location(), name)

    def emit_label(self, label: Label) -> None:
        self._place_label(label, None)

    def emit_label_with_name(self, label: Label, name: str) -> None:
        self._place_label(label, None if self._skip_annotation else name)

    def _emit_query_layout_has_pkey(
        self,
        pkey: Any,
        query: Mapping[str, Any],
        result_callback: Callable[["Codegen"], None],
    ) -> None:
        close_label = self.new_label()
        result_label = self.new_label()

        self.emit_push_value(self.push_static(pkey))
        self.emit_goto(DbOp.FIND_BY_PRIMARY_KEY, close_label)
        self.emit_goto(DbOp.GOTO, result_label)

        self.emit_label(close_label)
        self.emit(DbOp.POP)
        self.emit(DbOp.CLOSE)
        self.emit(DbOp.HALT)

        self.emit_label(result_label)
        for key, value in query.items():
            if key == "_id":
                continue
            key_id = self.push_static(key)
            value_id = self.push_static(value)
            self.emit_goto2(DbOp.GET_FIELD, key_id, close_label)
            self.emit_push_value(value_id)
            self.emit(DbOp.EQUAL)
            self.emit_goto(DbOp.IF_FALSE, close_label)
            self.emit(DbOp.POP)
            self.emit(DbOp.POP)

        result_callback(self)
        self.emit_goto(DbOp.GOTO, close_label)

    def emit_query_layout(
        self,
        query: Mapping[str, Any],
        result_callback: Callable[["Codegen"], None],
        is_many: bool,
    ) -> None:
        """Emit a scan over the cursor that runs ``result_callback`` on each match."""
        if "_id" in query and is_valid_key_type(query["_id"]):
            self._emit_query_layout_has_pkey(query["_id"], query, result_callback)
            return

        compare_label = self.new_label()
        next_label = self.new_label()
        result_label = self.new_label()
        get_field_failed_label = self.new_label()
        not_found_label = self.new_label()
        close_label = self.new_label()

        self.emit_goto(DbOp.REWIND, close_label)
        self.emit_goto(DbOp.GOTO, compare_label)

        self.emit_label(next_label)
        self.emit_goto(DbOp.NEXT, compare_label)

        self.emit_label_with_name(close_label, "Close")
        self.emit(DbOp.CLOSE)
        self.emit(DbOp.HALT)

        self.emit_label_with_name(not_found_label, "Not this item")
        self.emit(DbOp.RECOVER_STACK_POS)
        self.emit(DbOp.POP)
        self.emit_goto(DbOp.GOTO, next_label)

        self.emit_label_with_name(get_field_failed_label, "Get field failed")
        self.emit(DbOp.RECOVER_STACK_POS)
        self.emit(DbOp.POP)
        self.emit_goto(DbOp.GOTO, next_label)

        self.emit_label_with_name(result_label, "Result")
        result_callback(self)
        self.emit_goto(DbOp.GOTO, next_label if is_many else close_label)

        self.emit_label_with_name(compare_label, "Compare")
        self.emit(DbOp.SAVE_STACK_POS)
        self._emit_standard_query_doc(
            query, result_label, get_field_failed_label, not_found_label
        )
        self.emit_goto(DbOp.GOTO, result_label)

    def _emit_standard_query_doc(
        self,
        query_doc: Mapping[str, Any],
        result_label: Label,
        get_field_failed_label: Label,
        not_found_label: Label,
    ) -> None:
        for key, value in query_doc.items():
            with self.path_hint(key):
                self._emit_query_tuple(
                    key, value, result_label, get_field_failed_label, not_found_label
                )

    def gen_path(self) -> str:
        """Slash-separated path of the keys currently being compiled."""
        return "".join(f"/{item}" for item in self._paths)

    def last_key(self) -> str:
        return self._paths[-1]

    @contextmanager
    def path_hint(self, key: str) -> Iterator[None]:
        """Record ``key`` in the current path while the block runs."""
        self._paths.append(key)
        try:
            yield
        finally:
            self._paths.pop()

    def _invalid_field(self) -> InvalidFieldError:
        return InvalidFieldError(self.last_key(), self.gen_path())

    @staticmethod
    def _expect_document(name: str, value: Any) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise FieldTypeUnexpectedError(name, "Document", value)
        return value

    @staticmethod
    def _expect_array(name: str, value: Any) -> list[Any]:
        if not isinstance(value, list):
            raise FieldTypeUnexpectedError(name, "Array", value)
        return value

    def _emit_logic_and(
        self,
        items: list[Any],
        result_label: Label,
        get_field_failed_label: Label,
        not_found_label: Label,
    ) -> None:
        for index, item in enumerate(items):
            with self.path_hint(f"[{index}]"):
                item_doc = self._expect_document("$and", item)
                self._emit_standard_query_doc(
                    item_doc, result_label, get_field_failed_label, not_found_label
                )

    def _emit_logic_or(
        self,
        items: list[Any],
        result_label: Label,
        global_get_field_failed_label: Label,
        not_found_label: Label,
    ) -> None:
        last_index = len(items) - 1
        for index, item in enumerate(items):
            with self.path_hint(f"[{index}]"):
                item_doc = self._expect_document("$or", item)
                if index == last_index:
                    for key, value in item_doc.items():
                        self._emit_query_tuple(
                            key, value, result_label,
                            global_get_field_failed_label, not_found_label,
                        )
                    continue

                go_next_label = self.new_label()
                local_failed_label = self.new_label()
                query_label = self.new_label()
                self.emit_goto(DbOp.GOTO, query_label)

                self.emit_label(local_failed_label)
                self.emit(DbOp.RECOVER_STACK_POS)
                self.emit_goto(DbOp.GOTO, go_next_label)

                self.emit_label(query_label)
                self._emit_standard_query_doc(
                    item_doc, result_label, local_failed_label, local_failed_label
                )
                self.emit_goto(DbOp.GOTO, result_label)
                self.emit_label(go_next_label)

    def _emit_query_tuple(
        self,
        key: str,
        value: Any,
        result_label: Label,
        get_field_failed_label: Label,
        not_found_label: Label,
    ) -> None:
        if key.startswith("$"):
            if key == "$and":
                self._emit_logic_and(
                    self._expect_array("$and", value),
                    result_label, get_field_failed_label, not_found_label,
                )
            elif key == "$or":
                self._emit_logic_or(
                    self._expect_array("$or", value),
                    result_label, get_field_failed_label, not_found_label,
                )
            elif key == "$not":
                sub_doc = self._expect_document("$not", value)
                self._emit_query_tuple_document(
                    key, sub_doc, not_found_label, get_field_failed_label
                )
            else:
                raise self._invalid_field()
            return

        if isinstance(value, Mapping):
            self._emit_query_tuple_document(
                key, value, get_field_failed_label, not_found_label
            )
            return
        if isinstance(value, list):
            raise self._invalid_field()

        key_id = self.push_static(key)
        self.emit_goto2(DbOp.GET_FIELD, key_id, get_field_failed_label)
        self.emit_push_value(self.push_static(value))
        self.emit(DbOp.EQUAL)
        self.emit_goto(DbOp.IF_FALSE, not_found_label)
        self.emit(DbOp.POP)
        self.emit(DbOp.POP)

    def _recursively_get_field(self, key: str, get_field_failed_label: Label) -> int:
        parts = key.split(".")
        for part in parts:
            self.emit_goto2(DbOp.GET_FIELD, self.push_static(part), get_field_failed_label)
        return len(parts)

    def _emit_query_tuple_document_kv(
        self,
        key: str,
        get_field_failed_label: Label,
        not_found_label: Label,
        sub_key: str,
        sub_value: Any,
    ) -> None:
        if sub_key == "$size":
            if not isinstance(sub_value, Int64):
                raise self._invalid_field()
            field_size = self._recursively_get_field(key, get_field_failed_label)
            self.emit(DbOp.ARRAY_SIZE)
            self.emit_push_value(self.push_static(Int64(sub_value)))
            self.emit(DbOp.EQUAL)
            self.emit_goto(DbOp.IF_FALSE, not_found_label)
        else:
            ops = _QUERY_OPERATORS.get(sub_key)
            if ops is None:
                raise self._invalid_field()
            if sub_key in _ARRAY_OPERATORS and not isinstance(sub_value, list):
                raise self._invalid_field()
            compare_op, jump_op = ops
            field_size = self._recursively_get_field(key, get_field_failed_label)
            self.emit_push_value(self.push_static(sub_value))
            self.emit(compare_op)
            self.emit_goto(jump_op, not_found_label)

        self.emit(DbOp.POP2)
        self.emit_u32(field_size + 1)

    def _emit_query_tuple_document(
        self,
        key: str,
        value: Mapping[str, Any],
        get_field_failed_label: Label,
        not_found_label: Label,
    ) -> None:
        for sub_key, sub_value in value.items():
            with self.path_hint(sub_key):
                self._emit_query_tuple_document_kv(
                    key, get_field_failed_label, not_found_label, sub_key, sub_value
                )

    def emit_u32(self, value: int) -> None:
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"operand out of u32 range: {value}")
        self._program.instructions += value.to_bytes(4, "little")

    def emit_open_read(self, root_pid: int) -> None:
        self.emit(DbOp.OPEN_READ)
        self.emit_u32(root_pid)

    def emit_open_write(self, root_pid: int) -> None:
        self.emit(DbOp.OPEN_WRITE)
        self.emit_u32(root_pid)

    def emit(self, op: DbOp) -> None:
        self._program.instructions.append(int(op))

    def current_location(self) -> int:
        return len(self._program.instructions)

    def push_static(self, value: Any) -> int:
        """Store a constant and return its index."""
        self._program.static_values.append(copy.deepcopy(value))
        return len(self._program.static_values) - 1

    def emit_push_value(self, static_id: int) -> None:
        self.emit(DbOp.PUSH_VALUE)
        self.emit_u32(static_id)

    def _emit_target(self, label: Label, record_loc: int, offset: int) -> None:
        slot = self._program.label_slots[label.pos]
        if not slot.is_empty():
            self.emit_u32(slot.position())
            return
        self.emit_u32(_UNRESOLVED)
        self._jump_table.append(JumpTableRecord(record_loc, offset, label.pos))

    def emit_goto(self, op: DbOp, label: Label) -> None:
        """Emit a jump instruction whose only operand is ``label``'s location."""
        record_loc = self.current_location()
        self.emit(op)
        self._emit_target(label, record_loc, 1)

    def emit_goto2(self, op: DbOp, op1: int, label: Label) -> None:
        """Emit an instruction with operand ``op1`` followed by ``label``'s location."""
        record_loc = self.current_location()
        self.emit(op)
        self.emit_u32(op1)
        self._emit_target(label, record_loc, 5)