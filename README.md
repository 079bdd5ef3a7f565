# polokit

Core pieces of a small embedded document database, in pure Python with no
runtime dependencies:

- `polokit.codegen` turns query filter documents into bytecode for the
  database's virtual machine (`Codegen`, producing a `CompiledProgram`).
- `polokit.labels` holds jump labels (`Label`, `LabelSlot`) and the records
  used to patch forward jumps (`JumpTableRecord`).
- `polokit.opcodes` defines the instruction set (`DbOp`) and
  `instruction_size()`, the encoded length of each instruction.
- `polokit.pagecache` is a fixed-size LRU cache of database pages (`PageCache`).
- `polokit.data_page_allocator` tracks data pages with free space, with
  transactional start / commit / rollback (`DataPageAllocator`).
- `polokit.transaction` models transaction types (`TransactionType`) and the
  reference-counted automatic transaction state (`TransactionState`).
- `polokit.line_diff` computes line-oriented edit scripts between two texts.

## Installation

```
pip install .
```

## Generating query bytecode

```python
from polokit.codegen import Codegen, Int64
from polokit.opcodes import DbOp

def on_match(codegen):
    codegen.emit(DbOp.RESULT_ROW)
    codegen.emit(DbOp.POP)

codegen = Codegen(False)
codegen.emit_open_read(100)
codegen.emit_query_layout({"name": "Vincent Chan", "age": 32}, on_match, True)
program = codegen.take()

program.instructions   # bytearray of opcodes and little-endian u32 operands
program.static_values  # constants referenced by PushValue / GetField
program.label_slots    # where each label was placed, with optional names
```

Each instruction is one `DbOp` byte followed by zero, one or two 4-byte
operands; `instruction_size(op)` gives the total length (1, 5 or 9). Jumps to
labels that are not placed yet are patched when `take()` is called.

Query filters support plain equality, dotted paths, `$eq`, `$ne`, `$gt`,
`$gte`, `$lt`, `$lte`, `$in`, `$nin`, `$size`, `$and`, `$or` and `$not`.
A query whose `_id` is a string or an `Int64` is compiled as a primary-key
lookup. Plain Python `int` values stand for 32-bit integers; wrap a value in
`Int64` where a 64-bit integer is meant (for example the operand of `$size`).

Malformed documents raise subclasses of `polokit.codegen.DbError`:
`InvalidFieldError` (carrying the offending key and its path, such as
`/age/$foo`) and `FieldTypeUnexpectedError`. `UnknownUpdateOperationError` and
`UnableToUpdatePrimaryKeyError` are also defined there.

## Page cache and allocator

```python
from polokit.pagecache import PageCache
from polokit.data_page_allocator import DataPageAllocator

cache = PageCache(3, 4096)
cache.insert_to_cache(7, bytes(4096))   # data must be exactly page_size bytes
cache.get_from_cache(7)                 # returns the bytes, or None if evicted

allocator = DataPageAllocator()
allocator.start_transaction()
allocator.add_tuple(5, 200)
allocator.try_allocate_data_page(100)   # (5, 200)
allocator.commit()
```

Using the allocator outside a transaction raises `NoTransactionError`.

## Comparing texts

```python
from polokit.line_diff import line_diff, format_differences, assert_same_text

changes = line_diff("a\nb\nc\n", "a\nb2\nc\n")
print(format_differences(changes))   # ANSI-coloured "+" and "-" lines

assert_same_text("x\ny", "x\ny")     # raises TextMismatchError on difference
```

## What the package does not do

polokit generates bytecode for query filters only. It has no compiler for
update documents (`$set`, `$inc` and the like), no readable listing of a
compiled program, no virtual machine that executes the bytecode, and no
storage: pages, files, sessions and collections are not provided.

## Running the tests

```
pip install .[test]
pytest
```