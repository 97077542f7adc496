"""Shared state between the discovery node and the dashboard.

The discovery node is the only writer; the dashboard reads one snapshot
per frame through ``StateStore.try_read_snapshot``.
"""

import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict, FrozenSet, Iterator, Optional, Sequence, Tuple

from .config import ABNORMALITY_LIMIT

# =============================================================================
# Entity Identity
# =============================================================================


@dataclass(frozen=True, order=True)
class Guid:
    """DDS GUID: 12-byte participant prefix plus 4-byte entity id."""

    prefix: bytes
    entity_id: bytes

    @classmethod
    def from_gid(cls, gid: Sequence[int]) -> "Guid":
        """Build a GUID from an rmw endpoint gid (16 or 24 bytes, zero padded)."""
        raw = bytes(gid)
        if len(raw) < 16:
            raise ValueError(f"endpoint gid too short: {len(raw)} bytes")
        return cls(prefix=raw[:12], entity_id=raw[12:16])

    def display(self) -> str:
        return f"{self.prefix.hex()}|{self.entity_id.hex()}"

    def __str__(self) -> str:
        return self.display()


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class EndpointInfo:
    """A discovered writer or reader."""

    guid: Guid
    topic_name: str
    type_name: str
    node_name: str = ""
    reliability: str = "unknown"
    durability: str = "unknown"


@dataclass(frozen=True)
class TopicInfo:
    """A discovered topic and the endpoints currently attached to it."""

    name: str
    type_name: str
    writers: FrozenSet[Guid] = frozenset()
    readers: FrozenSet[Guid] = frozenset()


@dataclass(frozen=True)
class Abnormality:
    """A single observed irregularity. Absent ids mean "not applicable"."""

    when: datetime
    desc: str
    writer_id: Optional[Guid] = None
    reader_id: Optional[Guid] = None
    topic_name: Optional[str] = None


@dataclass
class State:
    """Mutable store contents, only touched inside ``StateStore.write()``."""

    writers: Dict[Guid, EndpointInfo] = field(default_factory=dict)
    readers: Dict[Guid, EndpointInfo] = field(default_factory=dict)
    topics: Dict[str, TopicInfo] = field(default_factory=dict)
    abnormalities: Deque[Abnormality] = field(
        default_factory=lambda: deque(maxlen=ABNORMALITY_LIMIT)
    )

    def add_abnormality(self, abnormality: Abnormality) -> None:
        self.abnormalities.append(abnormality)


@dataclass(frozen=True)
class Snapshot:
    """Read-only copy of the store contents taken under one lock acquisition."""

    writers: Tuple[EndpointInfo, ...] = ()
    readers: Tuple[EndpointInfo, ...] = ()
    topics: Tuple[TopicInfo, ...] = ()
    abnormalities: Tuple[Abnormality, ...] = ()


# =============================================================================
# Store
# =============================================================================


class StoreError(RuntimeError):
    """The store cannot be read because a writer failed while holding it."""


class StateStore:
    """Mutually exclusive region shared by the producer and the dashboard.

    An exception escaping ``write()`` leaves the contents in an unknown state,
    so the store is marked poisoned and every later read fails with
    ``StoreError``.
    """

    def __init__(self, abnormality_limit: int = ABNORMALITY_LIMIT):
        self._lock = threading.Lock()
        self._state = State(abnormalities=deque(maxlen=abnormality_limit))
        self._poison: Optional[BaseException] = None

    @property
    def poisoned(self) -> bool:
        return self._poison is not None

    @contextmanager
    def write(self) -> Iterator[State]:
        with self._lock:
            if self._poison is not None:
                raise StoreError(f"state store is poisoned: {self._poison!r}")
            try:
                yield self._state
            except BaseException as e:
                self._poison = e
                raise

    def try_read_snapshot(self) -> Snapshot:
        """Copy the current contents; raises StoreError if poisoned."""
        with self._lock:
            if self._poison is not None:
                raise StoreError(f"state store is poisoned: {self._poison!r}")
            return Snapshot(
                writers=tuple(self._state.writers.values()),
                readers=tuple(self._state.readers.values()),
                topics=tuple(self._state.topics.values()),
                abnormalities=tuple(self._state.abnormalities),
            )
