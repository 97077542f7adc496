"""Table views over a state snapshot, and the curses drawing helpers they use."""

import curses
from dataclasses import dataclass
from operator import attrgetter
from typing import Any, Callable, List, Optional, Sequence

from .config import PAGE_SIZE
from .navigation import ListCursor
from .state import Abnormality, EndpointInfo, Guid, Snapshot, TopicInfo

# Placeholder for optional fields that do not apply to a record
NONE_PLACEHOLDER = "<none>"

HIGHLIGHT_SYMBOL = ">"
COLUMN_SPACING = 1


# =============================================================================
# Drawing Helpers
# =============================================================================


def safe_addstr(win, y: int, x: int, text: str, attr=0):
    """Safely add string, handling screen boundaries."""
    max_y, max_x = win.getmaxyx()
    if y < 0 or y >= max_y or x < 0:
        return
    available = max_x - x - 1
    if available <= 0:
        return
    try:
        win.addstr(y, x, text[:available], attr)
    except curses.error:
        # Writing the bottom-right cell moves the cursor off screen
        pass


def draw_box(win, y: int, x: int, h: int, w: int, title: str = ""):
    """Draw a box with optional title using ASCII characters."""
    if h < 2 or w < 2:
        return
    safe_addstr(win, y, x, "+" + "-" * (w - 2) + "+")
    if title:
        safe_addstr(win, y, x + 2, f" {title} "[: max(0, w - 4)], curses.A_BOLD)
    for i in range(1, h - 1):
        safe_addstr(win, y + i, x, "|")
        safe_addstr(win, y + i, x + w - 1, "|")
    safe_addstr(win, y + h - 1, x, "+" + "-" * (w - 2) + "+")


# =============================================================================
# Cell Formatting
# =============================================================================


def format_guid(guid: Optional[Guid]) -> str:
    return guid.display() if guid is not None else NONE_PLACEHOLDER


def format_optional(value: Optional[str]) -> str:
    return value if value is not None else NONE_PLACEHOLDER


def format_when(when) -> str:
    """Millisecond precision ISO 8601 timestamp."""
    return when.isoformat(timespec="milliseconds")


def compute_widths(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> List[int]:
    """Width of each column: its longest cell, and never narrower than its header."""
    return [
        max([len(header)] + [len(row[idx]) for row in rows])
        for idx, header in enumerate(headers)
    ]


def format_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    return (" " * COLUMN_SPACING).join(
        cell.ljust(width) for cell, width in zip(cells, widths)
    )


# =============================================================================
# Tabular View
# =============================================================================


@dataclass(frozen=True)
class Column:
    """Header label and the function producing this column's cell for a record."""

    header: str
    cell: Callable[[Any], str]


class TabularView:
    """One entity collection rendered as a table with its own cursor.

    Rows and column widths are rebuilt from the snapshot every frame; the
    cursor is re-synced to the new row count each time.
    """

    def __init__(
        self,
        title: str,
        columns: Sequence[Column],
        records: Callable[[Snapshot], Sequence[Any]],
        page_size: int = PAGE_SIZE,
    ):
        self.title = title
        self.columns = list(columns)
        self._records = records
        self.cursor = ListCursor(page_size=page_size)

    @property
    def headers(self) -> List[str]:
        return [column.header for column in self.columns]

    def build_rows(self, snapshot: Snapshot) -> List[List[str]]:
        return [
            [column.cell(record) for column in self.columns]
            for record in self._records(snapshot)
        ]

    def render(self, snapshot: Snapshot):
        """Build this frame's rows and widths, and sync the cursor to them."""
        rows = self.build_rows(snapshot)
        widths = compute_widths(self.headers, rows)
        self.cursor.sync(len(rows))
        return rows, widths

    def draw(self, win, snapshot: Snapshot, y: int, x: int, h: int, w: int):
        """Draw the bordered table into the given rectangle."""
        rows, widths = self.render(snapshot)
        draw_box(win, y, x, h, w, self.title)

        inner_w = w - 2
        if h < 3 or inner_w <= 0:
            return
        pad = " " * (len(HIGHLIGHT_SYMBOL) + COLUMN_SPACING)
        header = pad + format_row(self.headers, widths)
        safe_addstr(win, y + 1, x + 1, header[:inner_w], curses.A_UNDERLINE)

        visible = h - 3
        offset = self.cursor.scroll_into_view(visible)
        selected = self.cursor.selected
        for i, cells in enumerate(rows[offset : offset + visible]):
            idx = offset + i
            line = format_row(cells, widths)
            if idx == selected:
                line = HIGHLIGHT_SYMBOL + " " * COLUMN_SPACING + line
                attr = curses.A_BOLD
            else:
                line = pad + line
                attr = curses.A_NORMAL
            safe_addstr(win, y + 2 + i, x + 1, line[:inner_w], attr)

    def text_lines(self, snapshot: Snapshot) -> List[str]:
        """Plain text rendering for simple mode."""
        rows, widths = self.render(snapshot)
        lines = [f"[{self.title.upper()}] ({len(rows)})"]
        lines.append("  " + format_row(self.headers, widths).rstrip())
        for cells in rows:
            lines.append("  " + format_row(cells, widths).rstrip())
        return lines


# =============================================================================
# View Definitions
# =============================================================================


def _endpoint_columns() -> List[Column]:
    return [
        Column("guid", lambda e: e.guid.display()),
        Column("topic", attrgetter("topic_name")),
        Column("type", attrgetter("type_name")),
        Column("node", lambda e: e.node_name or NONE_PLACEHOLDER),
        Column("reliability", attrgetter("reliability")),
        Column("durability", attrgetter("durability")),
    ]


def _sorted_endpoints(endpoints: Sequence[EndpointInfo]) -> List[EndpointInfo]:
    return sorted(endpoints, key=attrgetter("guid"))


def writers_view(page_size: int = PAGE_SIZE) -> TabularView:
    return TabularView(
        "Writers",
        _endpoint_columns(),
        lambda snapshot: _sorted_endpoints(snapshot.writers),
        page_size=page_size,
    )


def readers_view(page_size: int = PAGE_SIZE) -> TabularView:
    return TabularView(
        "Readers",
        _endpoint_columns(),
        lambda snapshot: _sorted_endpoints(snapshot.readers),
        page_size=page_size,
    )


def _topic_records(snapshot: Snapshot) -> List[TopicInfo]:
    return sorted(snapshot.topics, key=attrgetter("name"))


def topics_view(page_size: int = PAGE_SIZE) -> TabularView:
    return TabularView(
        "Topics",
        [
            Column("name", attrgetter("name")),
            Column("type", attrgetter("type_name")),
            Column("writers", lambda t: str(len(t.writers))),
            Column("readers", lambda t: str(len(t.readers))),
        ],
        _topic_records,
        page_size=page_size,
    )


def _abnormality_records(snapshot: Snapshot) -> List[Abnormality]:
    # Stable sort: equal timestamps keep insertion order
    return sorted(snapshot.abnormalities, key=attrgetter("when"), reverse=True)


def abnormalities_view(page_size: int = PAGE_SIZE) -> TabularView:
    return TabularView(
        "Abnormalities",
        [
            Column("when", lambda a: format_when(a.when)),
            Column("writer", lambda a: format_guid(a.writer_id)),
            Column("reader", lambda a: format_guid(a.reader_id)),
            Column("topic", lambda a: format_optional(a.topic_name)),
            Column("desc", attrgetter("desc")),
        ],
        _abnormality_records,
        page_size=page_size,
    )
