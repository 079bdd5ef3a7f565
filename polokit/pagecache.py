"""Fixed-capacity least-recently-used cache of page contents."""

from __future__ import annotations

from collections import OrderedDict

DEFAULT_PAGE_COUNT = 1024


class PageCache:
    """Caches up to ``page_count`` pages of ``page_size`` bytes each."""

    def __init__(self, page_count: int, page_size: int) -> None:
        if page_count <= 0:
            raise ValueError("page_count must be positive")
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.page_count = page_count
        self.page_size = page_size
        self._pages: OrderedDict[int, bytes] = OrderedDict()

    @classmethod
    def new_default(cls, page_size: int) -> "PageCache":
        return cls(DEFAULT_PAGE_COUNT, page_size)

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, page_id: object) -> bool:
        return page_id in self._pages

    def get_from_cache(self, page_id: int) -> bytes | None:
        """Return a page's content and mark it most recently used."""
        data = self._pages.get(page_id)
        if data is None:
            return None
        self._pages.move_to_end(page_id)
        return data

    def insert_to_cache(self, page_id: int, data: bytes) -> None:
        """Store a page, evicting the least recently used one when full."""
        if len(data) != self.page_size:
            raise ValueError(
                f"page data must be {self.page_size} bytes, got {len(data)}"
            )
        if page_id in self._pages:
            self._pages.move_to_end(page_id)
        elif len(self._pages) >= self.page_count:
            self._pages.popitem(last=False)
        self._pages[page_id] = bytes(data)