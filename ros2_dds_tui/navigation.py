"""Row selection shared by every table view."""

from typing import Optional

from .config import PAGE_SIZE


class ListCursor:
    """Selected row and scroll offset of one table.

    ``row_count`` is only changed by ``sync()``, called once per render with
    the number of rows just built. Navigation methods never raise: they are
    no-ops while the table is empty and clamp against the last rendered
    ``row_count`` otherwise.
    """

    def __init__(self, page_size: int = PAGE_SIZE):
        self.page_size = page_size
        self.selected: Optional[int] = None
        self.row_count = 0
        self.offset = 0

    def sync(self, row_count: int) -> None:
        """Adopt the row count of the current frame and re-clamp the cursor."""
        self.row_count = max(0, row_count)
        if self.row_count == 0:
            self.selected = None
            self.offset = 0
        elif self.selected is not None and self.selected >= self.row_count:
            self.selected = self.row_count - 1

    def scroll_into_view(self, visible_rows: int) -> int:
        """Adjust the scroll offset so the selected row is visible; return it."""
        if visible_rows <= 0:
            return self.offset
        max_offset = max(0, self.row_count - visible_rows)
        if self.selected is not None:
            if self.selected < self.offset:
                self.offset = self.selected
            elif self.selected >= self.offset + visible_rows:
                self.offset = self.selected - visible_rows + 1
        self.offset = min(max(self.offset, 0), max_offset)
        return self.offset

    def _step(self, delta: int) -> None:
        if self.row_count <= 0:
            return
        if self.selected is None:
            self.selected = 0
            return
        last = self.row_count - 1
        self.selected = min(max(self.selected + delta, 0), last)

    def previous_item(self) -> None:
        self._step(-1)

    def next_item(self) -> None:
        self._step(1)

    def previous_page(self) -> None:
        self._step(-self.page_size)

    def next_page(self) -> None:
        self._step(self.page_size)

    def first_item(self) -> None:
        if self.row_count > 0:
            self.selected = 0

    def last_item(self) -> None:
        if self.row_count > 0:
            self.selected = self.row_count - 1
