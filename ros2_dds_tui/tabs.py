"""Tab selection and key dispatch to the active view."""

import curses
from enum import Enum
from typing import Dict, Optional

from .config import PAGE_SIZE
from .views import (
    TabularView,
    abnormalities_view,
    draw_box,
    readers_view,
    safe_addstr,
    topics_view,
    writers_view,
)

TAB_DIVIDER = " | "


class Tab(Enum):
    WRITERS = 0
    READER = 1
    TOPICS = 2
    ABNORMALITIES = 3

    @property
    def title(self) -> str:
        return _TAB_TITLES[self]

    def next(self) -> "Tab":
        members = list(Tab)
        return members[(self.value + 1) % len(members)]

    def previous(self) -> "Tab":
        members = list(Tab)
        return members[(self.value + len(members) - 1) % len(members)]


_TAB_TITLES = {
    Tab.WRITERS: "Writers",
    Tab.READER: "Reader",
    Tab.TOPICS: "Topics",
    Tab.ABNORMALITIES: "Abnormalities",
}

# Names of ListCursor methods a navigation key may trigger
NAVIGATION_ACTIONS = (
    "previous_item",
    "next_item",
    "previous_page",
    "next_page",
    "first_item",
    "last_item",
)


class TabController:
    """Owns the active tab and one view per tab."""

    def __init__(self, page_size: int = PAGE_SIZE, views: Optional[Dict[Tab, TabularView]] = None):
        self.active = Tab.WRITERS
        self.views: Dict[Tab, TabularView] = views or {
            Tab.WRITERS: writers_view(page_size),
            Tab.READER: readers_view(page_size),
            Tab.TOPICS: topics_view(page_size),
            Tab.ABNORMALITIES: abnormalities_view(page_size),
        }

    @property
    def active_view(self) -> TabularView:
        return self.views[self.active]

    def next_tab(self):
        self.active = self.active.next()

    def previous_tab(self):
        self.active = self.active.previous()

    def navigate(self, action: str):
        """Apply a navigation action to the active view's cursor only."""
        if action not in NAVIGATION_ACTIONS:
            raise ValueError(f"unknown navigation action: {action}")
        getattr(self.active_view.cursor, action)()

    def draw_tabs(self, win, y: int, x: int, w: int):
        """Draw the bordered tab strip (3 rows) with the active title highlighted."""
        draw_box(win, y, x, 3, w, "Tabs")
        col = x + 2
        for i, tab in enumerate(Tab):
            if i > 0:
                safe_addstr(win, y + 1, col, TAB_DIVIDER)
                col += len(TAB_DIVIDER)
            attr = curses.A_REVERSE | curses.A_BOLD if tab is self.active else curses.A_NORMAL
            safe_addstr(win, y + 1, col, tab.title, attr)
            col += len(tab.title)
