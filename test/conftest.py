# Copyright 2025 Nigel Hayward-Smith
#
# Licensed under the MIT License.

from datetime import datetime, timedelta, timezone

import pytest

from ros2_dds_tui.state import Abnormality, EndpointInfo, Guid, StateStore, TopicInfo

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def pytest_configure(config):
    config.addinivalue_line("markers", "linter: static analysis checks")
    config.addinivalue_line("markers", "pep257: docstring style checks")


class FakeWindow:
    """In-memory stand-in for a curses window."""

    def __init__(self, height=24, width=120, keys=()):
        self.height = height
        self.width = width
        self.keys = list(keys)
        self.lines = {}
        self.attrs = {}
        self.timeouts = []
        self.refreshes = 0

    def getmaxyx(self):
        return self.height, self.width

    def addstr(self, y, x, text, attr=0):
        line = self.lines.get(y, "")
        line = line.ljust(x)
        self.lines[y] = line[:x] + text + line[x + len(text):]
        self.attrs[(y, x)] = attr

    def erase(self):
        self.lines.clear()
        self.attrs.clear()

    def refresh(self):
        self.refreshes += 1

    def keypad(self, flag):
        self.keypad_enabled = flag

    def timeout(self, ms):
        self.timeouts.append(ms)

    def getch(self):
        if self.keys:
            return self.keys.pop(0)
        return -1

    def text(self):
        return "\n".join(self.lines.get(y, "") for y in range(self.height))


def make_guid(n: int) -> Guid:
    return Guid(prefix=bytes([1] * 11 + [n]), entity_id=bytes([0, 0, n, 3]))


def make_writer(n: int, topic: str = "/chatter") -> EndpointInfo:
    return EndpointInfo(
        guid=make_guid(n),
        topic_name=topic,
        type_name="std_msgs/msg/String",
        node_name="/talker",
        reliability="reliable",
        durability="volatile",
    )


@pytest.fixture
def window():
    return FakeWindow()


@pytest.fixture
def store():
    return StateStore()


@pytest.fixture
def populated_store():
    store = StateStore()
    writer = make_writer(1)
    reader = make_writer(2)
    with store.write() as state:
        state.writers[writer.guid] = writer
        state.readers[reader.guid] = reader
        state.topics["/chatter"] = TopicInfo(
            name="/chatter",
            type_name="std_msgs/msg/String",
            writers=frozenset([writer.guid]),
            readers=frozenset([reader.guid]),
        )
        state.add_abnormality(
            Abnormality(when=T0, desc="writer lost", writer_id=writer.guid)
        )
    return store


def abnormality_at(seconds: int, desc: str = "event") -> Abnormality:
    return Abnormality(when=T0 + timedelta(seconds=seconds), desc=desc)
