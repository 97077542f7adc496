"""Curses dashboard: terminal session, tick loop and simple text mode."""

import curses
import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from .config import DEFAULTS, STATUS_MSG_TIMEOUT
from .state import Snapshot, StateStore, StoreError
from .tabs import Tab, TabController
from .views import safe_addstr

logger = logging.getLogger(__name__)

KEY_TAB = 9
NO_KEY = -1

NAVIGATION_KEYS = {
    curses.KEY_UP: "previous_item",
    curses.KEY_DOWN: "next_item",
    curses.KEY_PPAGE: "previous_page",
    curses.KEY_NPAGE: "next_page",
    curses.KEY_HOME: "first_item",
    curses.KEY_END: "last_item",
}

# Reserved for horizontal scrolling
INERT_KEYS = (curses.KEY_LEFT, curses.KEY_RIGHT)

HELP_TEXT = "q:quit Tab/S-Tab:tabs Up/Down PgUp/PgDn Home/End +/-:tick"


# =============================================================================
# Terminal Session
# =============================================================================


def _setup_terminal(stdscr):
    curses.raw()
    curses.noecho()
    stdscr.keypad(True)
    curses.mousemask(curses.ALL_MOUSE_EVENTS | curses.REPORT_MOUSE_POSITION)
    curses.curs_set(0)  # Hide cursor


def restore_terminal(stdscr) -> Optional[Exception]:
    """Undo terminal setup in reverse order, attempting every step.

    Returns the first failure instead of raising it so that the caller can
    decide whether another exception takes precedence.
    """
    steps = [
        ("release mouse capture", lambda: curses.mousemask(0)),
        ("show cursor", lambda: curses.curs_set(1)),
        ("disable keypad", lambda: stdscr.keypad(False)),
        ("enable echo", curses.echo),
        ("leave raw mode", curses.noraw),
        ("leave alternate screen", curses.endwin),
    ]
    first_error: Optional[Exception] = None
    for name, step in steps:
        try:
            step()
        except curses.error as e:
            logger.warning(f"Terminal restore step '{name}' failed: {e}")
            if first_error is None:
                first_error = e
    return first_error


@contextmanager
def terminal_session() -> Iterator[Any]:
    """Enter raw mode, the alternate screen and mouse capture for the body.

    The terminal is restored on every exit path. A restore failure is raised
    only when the body itself finished without an exception.
    """
    stdscr = curses.initscr()
    try:
        _setup_terminal(stdscr)
        yield stdscr
    except BaseException:
        restore_terminal(stdscr)
        raise
    else:
        error = restore_terminal(stdscr)
        if error is not None:
            raise error


# =============================================================================
# Dashboard
# =============================================================================


class DdsTUI:
    """Curses-based dashboard over a ``StateStore``."""

    def __init__(
        self,
        store: StateStore,
        settings: Optional[Dict[str, Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        out=None,
    ):
        settings = settings or DEFAULTS["settings"]
        self.store = store
        self.running = True
        self.tabs = TabController(page_size=settings["page_size"])
        self.tick_ms = settings["tick_ms"]
        self.TICK_MIN_MS = settings["tick_min_ms"]
        self.TICK_MAX_MS = settings["tick_max_ms"]
        self.TICK_STEP_MS = settings["tick_step_ms"]
        self._clock = clock
        self._out = out if out is not None else sys.stdout
        self.frames_drawn = 0
        self.frames_skipped = 0
        self._status_msg = ""
        self._status_msg_time = 0.0

    @property
    def tick_duration(self) -> float:
        return self.tick_ms / 1000.0

    def set_status(self, msg: str):
        self._status_msg = msg
        self._status_msg_time = self._clock()

    # -- main loop -----------------------------------------------------------

    def run_loop(self, stdscr):
        """Poll input up to the next tick and redraw whenever a tick elapses."""
        last_tick = self._clock()
        while self.running:
            timeout = max(0.0, self.tick_duration - (self._clock() - last_tick))
            if not self.process_events(stdscr, timeout):
                break

            if self._clock() - last_tick >= self.tick_duration:
                self.draw(stdscr)
                last_tick = self._clock()

    def process_events(self, stdscr, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for one key. False means quit."""
        stdscr.timeout(int(timeout * 1000))
        key = stdscr.getch()
        return self.handle_key(key)

    def handle_key(self, key: int) -> bool:
        if key == NO_KEY:
            return True
        if key == ord("q"):
            return False
        if key == KEY_TAB:
            self.tabs.next_tab()
        elif key == curses.KEY_BTAB:
            self.tabs.previous_tab()
        elif key in NAVIGATION_KEYS:
            self.tabs.navigate(NAVIGATION_KEYS[key])
        elif key in INERT_KEYS:
            pass
        elif key == ord("+") or key == ord("="):
            # Slower redraws
            self.tick_ms = min(self.tick_ms + self.TICK_STEP_MS, self.TICK_MAX_MS)
            self.set_status(f"tick {self.tick_ms}ms")
        elif key == ord("-") or key == ord("_"):
            # Faster redraws
            self.tick_ms = max(self.tick_ms - self.TICK_STEP_MS, self.TICK_MIN_MS)
            self.set_status(f"tick {self.tick_ms}ms")
        return True

    # -- drawing ---------------------------------------------------------------

    def draw(self, stdscr):
        """Render one frame against the latest snapshot."""
        try:
            snapshot: Optional[Snapshot] = self.store.try_read_snapshot()
        except StoreError as e:
            logger.error(f"Skipping frame, state unavailable: {e}")
            self.frames_skipped += 1
            self.set_status(f"state unavailable: {e}")
            snapshot = None

        stdscr.erase()
        max_y, max_x = stdscr.getmaxyx()

        title = f" ROS2 DDS TUI - {HELP_TEXT} "
        safe_addstr(stdscr, 0, 0, title.center(max_x), curses.A_REVERSE | curses.A_BOLD)

        if snapshot is not None:
            self.tabs.draw_tabs(stdscr, 1, 0, max_x)
            self.tabs.active_view.draw(stdscr, snapshot, 4, 0, max_y - 5, max_x)
            self.frames_drawn += 1

        self.draw_status_bar(stdscr, max_y, max_x, snapshot)
        stdscr.refresh()

    def draw_status_bar(self, stdscr, max_y: int, max_x: int, snapshot: Optional[Snapshot]):
        now_t = self._clock()
        if self._status_msg and (now_t - self._status_msg_time < STATUS_MSG_TIMEOUT):
            safe_addstr(
                stdscr,
                max_y - 1,
                0,
                f" {self._status_msg} ".ljust(max_x),
                curses.A_REVERSE | curses.A_BOLD,
            )
            return

        self._status_msg = ""
        status = f" {time.strftime('%H:%M:%S')}"
        status += f" | DOM:{os.environ.get('ROS_DOMAIN_ID', '0')}"
        status += f" | {self.tick_ms}ms"
        if snapshot is not None:
            status += (
                f" | W:{len(snapshot.writers)} R:{len(snapshot.readers)}"
                f" T:{len(snapshot.topics)} A:{len(snapshot.abnormalities)}"
            )
        safe_addstr(stdscr, max_y - 1, 0, status.ljust(max_x), curses.A_REVERSE)

    # -- entry points --------------------------------------------------------

    def run_curses(self):
        with terminal_session() as stdscr:
            self.run_loop(stdscr)

    def run_simple(self, max_frames: Optional[int] = None):
        """Simple text output mode for non-TTY environments."""
        print("ROS2 DDS TUI - Simple Mode (no TTY detected)", file=self._out)
        print("Press Ctrl+C to exit\n", file=self._out)

        frames = 0
        while self.running:
            try:
                try:
                    snapshot = self.store.try_read_snapshot()
                except StoreError as e:
                    logger.error(f"Skipping frame, state unavailable: {e}")
                    self.frames_skipped += 1
                    print(f"state unavailable: {e}", file=self._out)
                else:
                    print("=" * 70, file=self._out)
                    for tab in Tab:
                        print(file=self._out)
                        for line in self.tabs.views[tab].text_lines(snapshot):
                            print(line, file=self._out)
                    print(f"\nUpdated: {time.strftime('%H:%M:%S')}", file=self._out)
                    self.frames_drawn += 1

                frames += 1
                if max_frames is not None and frames >= max_frames:
                    break
                time.sleep(self.tick_duration)
            except KeyboardInterrupt:
                self.running = False

    def run(self, simple: bool = False):
        """Run the TUI - uses curses if TTY available, otherwise simple text."""
        if not simple and os.isatty(sys.stdout.fileno()):
            self.run_curses()
        else:
            self.run_simple()

    def stop(self):
        """Stop the TUI."""
        self.running = False
