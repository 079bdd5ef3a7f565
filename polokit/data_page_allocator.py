"""Tracks data pages with free space, with transactional staging."""

from __future__ import annotations


class NoTransactionError(RuntimeError):
    """Raised when the allocator is used outside a transaction."""


class DataPageAllocator:
    """Keeps (page id, remaining size) pairs; changes are staged per transaction."""

    def __init__(self) -> None:
        self._free_pages: list[tuple[int, int]] = []
        self._stash: list[tuple[int, int]] | None = None

    def _staged(self) -> list[tuple[int, int]]:
        if self._stash is None:
            raise NoTransactionError("no transaction")
        return self._stash

    @property
    def in_transaction(self) -> bool:
        return self._stash is not None

    @property
    def free_pages(self) -> list[tuple[int, int]]:
        """Committed (page id, remaining size) pairs."""
        return list(self._free_pages)

    def add_tuple(self, pid: int, remain_size: int) -> None:
        self._staged().append((pid, remain_size))

    def try_allocate_data_page(self, need_size: int) -> tuple[int, int] | None:
        """Take the first page with at least ``need_size`` bytes free."""
        staged = self._staged()
        for position, (pid, remain_size) in enumerate(staged):
            if remain_size >= need_size:
                del staged[position]
                return pid, remain_size
        return None

    def free_page(self, pid: int) -> None:
        staged = self._staged()
        for position, (page_id, _) in enumerate(staged):
            if page_id == pid:
                del staged[position]
                return

    def start_transaction(self) -> None:
        self._stash = list(self._free_pages)

    def commit(self) -> None:
        if self._stash is not None:
            self._free_pages = self._stash
            self._stash = None

    def rollback(self) -> None:
        self._stash = None