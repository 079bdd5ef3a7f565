"""Transaction kinds and the state machine used for automatic transactions."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TransactionType(enum.IntEnum):
    """Whether a transaction reads or writes."""

    READ = 1
    WRITE = 2


class TransactionKind(enum.Enum):
    """Who started the current transaction, if anyone."""

    NO_TRANS = enum.auto()
    USER = enum.auto()
    USER_AUTO = enum.auto()
    DB_AUTO = enum.auto()


@dataclass
class TransactionState:
    """Current transaction state; database-started ones carry a reference count."""

    kind: TransactionKind = TransactionKind.NO_TRANS
    counter: int = 0

    @classmethod
    def new_db_auto(cls) -> "TransactionState":
        """Create a database-started state holding one reference."""
        return cls(TransactionKind.DB_AUTO, 1)

    def is_no_trans(self) -> bool:
        return self.kind is TransactionKind.NO_TRANS

    def acquire(self) -> None:
        """Add a reference to a database-started transaction."""
        if self.kind is TransactionKind.DB_AUTO:
            self.counter += 1

    def release(self) -> bool:
        """Drop a reference; return True when the last one is gone."""
        if self.kind is not TransactionKind.DB_AUTO:
            return False
        self.counter -= 1
        return self.counter == 0