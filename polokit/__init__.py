"""Query bytecode generator, page cache, page allocator, transaction state and line diffing."""

__version__ = "0.1.0"