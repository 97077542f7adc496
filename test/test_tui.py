# Copyright 2025 Nigel Hayward-Smith
#
# Licensed under the MIT License.

import curses
import io

import pytest

from conftest import FakeWindow, make_guid, make_writer
from ros2_dds_tui import tui as tui_module
from ros2_dds_tui.config import DEFAULTS
from ros2_dds_tui.tabs import Tab
from ros2_dds_tui.tui import DdsTUI, terminal_session


def settings(**overrides):
    values = dict(DEFAULTS["settings"])
    values.update(overrides)
    return values


class StepClock:
    """Clock advancing by a fixed step on every read."""

    def __init__(self, step):
        self.step = step
        self.now = -step

    def __call__(self):
        self.now += self.step
        return self.now


# -- key handling ---------------------------------------------------------------


def test_q_quits(store):
    assert DdsTUI(store).handle_key(ord("q")) is False


def test_no_key_keeps_running(store):
    assert DdsTUI(store).handle_key(-1) is True


def test_tab_keys_cycle(store):
    tui = DdsTUI(store)
    tui.handle_key(9)
    assert tui.tabs.active is Tab.READER
    tui.handle_key(curses.KEY_BTAB)
    tui.handle_key(curses.KEY_BTAB)
    assert tui.tabs.active is Tab.ABNORMALITIES


def test_left_right_are_inert(populated_store):
    tui = DdsTUI(populated_store)
    tui.tabs.active_view.render(populated_store.try_read_snapshot())
    for key in (curses.KEY_LEFT, curses.KEY_RIGHT):
        assert tui.handle_key(key) is True
    assert tui.tabs.active is Tab.WRITERS
    assert tui.tabs.active_view.cursor.selected is None


@pytest.mark.parametrize(
    "key,expected",
    [
        (curses.KEY_DOWN, 0),
        (curses.KEY_UP, 0),
        (curses.KEY_NPAGE, 0),
        (curses.KEY_PPAGE, 0),
        (curses.KEY_HOME, 0),
        (curses.KEY_END, 0),
    ],
)
def test_navigation_keys_on_single_row(populated_store, key, expected):
    tui = DdsTUI(populated_store)
    tui.tabs.active_view.render(populated_store.try_read_snapshot())
    tui.handle_key(key)
    assert tui.tabs.active_view.cursor.selected == expected


def test_end_key_selects_last_row(store):
    with store.write() as state:
        for n in range(5):
            writer = make_writer(n)
            state.writers[writer.guid] = writer
    tui = DdsTUI(store)
    tui.tabs.active_view.render(store.try_read_snapshot())
    tui.handle_key(curses.KEY_END)
    assert tui.tabs.active_view.cursor.selected == 4
    tui.handle_key(curses.KEY_HOME)
    assert tui.tabs.active_view.cursor.selected == 0


def test_plus_minus_adjust_tick_within_bounds(store):
    tui = DdsTUI(store, settings(tick_ms=150, tick_min_ms=100, tick_max_ms=200, tick_step_ms=50))
    tui.handle_key(ord("+"))
    tui.handle_key(ord("+"))
    assert tui.tick_ms == 200
    for _ in range(4):
        tui.handle_key(ord("-"))
    assert tui.tick_ms == 100


# -- tick loop -------------------------------------------------------------------


def test_loop_consumes_one_key_per_iteration(populated_store):
    window = FakeWindow(keys=[-1, curses.KEY_DOWN, curses.KEY_DOWN, ord("q"), curses.KEY_DOWN])
    tui = DdsTUI(populated_store, settings(tick_ms=0))
    tui.run_loop(window)

    assert tui.frames_drawn == 3
    assert window.keys == [curses.KEY_DOWN]
    assert tui.tabs.active_view.cursor.selected == 0
    assert all(ms == 0 for ms in window.timeouts)


def test_loop_redraws_only_on_tick(populated_store):
    window = FakeWindow(keys=[-1, -1, ord("q")])
    tui = DdsTUI(populated_store, settings(tick_ms=1000), clock=StepClock(0.25))
    tui.run_loop(window)

    assert tui.frames_drawn == 1
    assert window.timeouts[0] == 750
    assert window.timeouts[1] == 250
    assert all(0 <= ms <= 1000 for ms in window.timeouts)


def test_loop_stops_when_stopped(store):
    window = FakeWindow()
    tui = DdsTUI(store, settings(tick_ms=0))
    tui.stop()
    tui.run_loop(window)
    assert window.timeouts == []


def test_draw_renders_tabs_table_and_status(populated_store):
    window = FakeWindow(height=24, width=140)
    tui = DdsTUI(populated_store)
    tui.handle_key(curses.KEY_BTAB)
    tui.draw(window)

    screen = window.text()
    assert "ROS2 DDS TUI" in window.lines[0]
    assert "Writers | Reader | Topics | Abnormalities" in screen
    assert " Abnormalities " in window.lines[4]
    assert make_guid(1).display() in screen
    assert "W:1 R:1 T:1 A:1" in window.lines[23]
    assert window.refreshes == 1


def test_poisoned_store_skips_frame_and_keeps_running(populated_store, caplog):
    with pytest.raises(RuntimeError):
        with populated_store.write():
            raise RuntimeError("producer crashed")

    window = FakeWindow(keys=[-1, -1, ord("q")])
    tui = DdsTUI(populated_store, settings(tick_ms=0))
    with caplog.at_level("ERROR"):
        tui.run_loop(window)

    assert tui.frames_drawn == 0
    assert tui.frames_skipped == 2
    assert "state unavailable" in window.lines[23]
    assert "Skipping frame" in caplog.text


def test_simple_mode_prints_every_view(populated_store):
    out = io.StringIO()
    tui = DdsTUI(populated_store, out=out)
    tui.run_simple(max_frames=1)

    text = out.getvalue()
    for title in ("[WRITERS] (1)", "[READERS] (1)", "[TOPICS] (1)", "[ABNORMALITIES] (1)"):
        assert title in text
    assert "<none>" in text
    assert tui.frames_drawn == 1


# -- terminal session ---------------------------------------------------------


@pytest.fixture
def fake_curses(monkeypatch):
    calls = []
    window = FakeWindow()

    def record(name, result=None):
        def fn(*args):
            calls.append(name)
            return result

        return fn

    monkeypatch.setattr(tui_module.curses, "initscr", record("initscr", window))
    for name in ("raw", "noraw", "noecho", "echo", "mousemask", "curs_set", "endwin"):
        monkeypatch.setattr(tui_module.curses, name, record(name))
    return calls, window, monkeypatch


def test_session_sets_up_and_restores(fake_curses):
    calls, window, _ = fake_curses
    with terminal_session() as stdscr:
        assert stdscr is window
        assert window.keypad_enabled is True
    assert calls == [
        "initscr",
        "raw",
        "noecho",
        "mousemask",
        "curs_set",
        "mousemask",
        "curs_set",
        "echo",
        "noraw",
        "endwin",
    ]
    assert window.keypad_enabled is False


def test_session_restores_when_body_fails(fake_curses):
    calls, _, _ = fake_curses
    with pytest.raises(curses.error):
        with terminal_session():
            raise curses.error("draw failed")
    assert calls[-1] == "endwin"


def test_restore_failure_raised_after_clean_exit(fake_curses):
    calls, _, monkeypatch = fake_curses

    def broken_noraw():
        calls.append("noraw")
        raise curses.error("noraw failed")

    monkeypatch.setattr(tui_module.curses, "noraw", broken_noraw)
    with pytest.raises(curses.error, match="noraw failed"):
        with terminal_session():
            pass
    # Later steps still ran
    assert calls[-1] == "endwin"


def test_body_error_wins_over_restore_failure(fake_curses):
    calls, _, monkeypatch = fake_curses

    def broken_endwin():
        raise curses.error("endwin failed")

    monkeypatch.setattr(tui_module.curses, "endwin", broken_endwin)
    with pytest.raises(ValueError):
        with terminal_session():
            raise ValueError("loop failed")
