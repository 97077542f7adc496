"""Conversion of ROS graph query results into state records."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

from .state import Abnormality, EndpointInfo, Guid, StateStore, TopicInfo

logger = logging.getLogger(__name__)


def _policy_name(policy) -> str:
    """Lower-case name of a QoS policy enum, e.g. ReliabilityPolicy.RELIABLE."""
    name = getattr(policy, "name", None)
    return name.lower() if name else str(policy)


def endpoint_from_info(topic_name: str, info) -> EndpointInfo:
    """Convert an rclpy TopicEndpointInfo into an EndpointInfo."""
    node = info.node_name
    if info.node_namespace and info.node_namespace != "/":
        node = f"{info.node_namespace}/{info.node_name}"
    qos = info.qos_profile
    return EndpointInfo(
        guid=Guid.from_gid(info.endpoint_gid),
        topic_name=topic_name,
        type_name=info.topic_type,
        node_name=node,
        reliability=_policy_name(qos.reliability),
        durability=_policy_name(qos.durability),
    )


def diff_endpoints(
    kind: str,
    previous: Dict[Guid, EndpointInfo],
    current: Dict[Guid, EndpointInfo],
    when: datetime,
) -> List[Abnormality]:
    """One abnormality per endpoint present in ``previous`` but gone from ``current``."""
    lost = []
    for guid in sorted(set(previous) - set(current)):
        lost.append(
            Abnormality(
                when=when,
                desc=f"{kind} lost",
                writer_id=guid if kind == "writer" else None,
                reader_id=guid if kind == "reader" else None,
                topic_name=previous[guid].topic_name,
            )
        )
    return lost


def type_conflicts(
    names_and_types: List[Tuple[str, List[str]]],
    reported: Set[str],
    when: datetime,
) -> List[Abnormality]:
    """Report topics advertised with more than one type, once per conflict.

    ``reported`` is updated in place: topics enter it when reported and
    leave it once they are back to a single type.
    """
    found = []
    for topic_name, types in names_and_types:
        if len(types) > 1:
            if topic_name not in reported:
                reported.add(topic_name)
                found.append(
                    Abnormality(
                        when=when,
                        desc=f"conflicting types: {', '.join(types)}",
                        topic_name=topic_name,
                    )
                )
        else:
            reported.discard(topic_name)
    return found


def build_topics(
    names_and_types: List[Tuple[str, List[str]]],
    writers: Dict[Guid, EndpointInfo],
    readers: Dict[Guid, EndpointInfo],
) -> Dict[str, TopicInfo]:
    topics = {}
    for name, types in names_and_types:
        topics[name] = TopicInfo(
            name=name,
            type_name=", ".join(types),
            writers=frozenset(g for g, e in writers.items() if e.topic_name == name),
            readers=frozenset(g for g, e in readers.items() if e.topic_name == name),
        )
    return topics


class GraphPoller:
    """Queries a ROS graph and swaps the results into a StateStore.

    ``graph`` is anything with the rclpy Node graph queries:
    ``get_topic_names_and_types``, ``get_publishers_info_by_topic`` and
    ``get_subscriptions_info_by_topic``.
    """

    def __init__(self, store: StateStore):
        self.store = store
        self.failed_polls = 0
        self._known_writers: Dict[Guid, EndpointInfo] = {}
        self._known_readers: Dict[Guid, EndpointInfo] = {}
        self._reported_conflicts: Set[str] = set()

    def _query(self, graph):
        names_and_types = graph.get_topic_names_and_types()
        writers: Dict[Guid, EndpointInfo] = {}
        readers: Dict[Guid, EndpointInfo] = {}
        for topic_name, _types in names_and_types:
            for info in graph.get_publishers_info_by_topic(topic_name):
                endpoint = endpoint_from_info(topic_name, info)
                writers[endpoint.guid] = endpoint
            for info in graph.get_subscriptions_info_by_topic(topic_name):
                endpoint = endpoint_from_info(topic_name, info)
                readers[endpoint.guid] = endpoint
        return names_and_types, writers, readers

    def poll(self, graph, now: Optional[datetime] = None) -> bool:
        """Run one poll. A failed query is logged and leaves the store untouched."""
        try:
            names_and_types, writers, readers = self._query(graph)
        except Exception as e:
            self.failed_polls += 1
            logger.error(f"Graph poll failed, keeping previous state: {e!r}")
            return False

        now = now or datetime.now(timezone.utc)
        abnormalities = diff_endpoints("writer", self._known_writers, writers, now)
        abnormalities += diff_endpoints("reader", self._known_readers, readers, now)
        abnormalities += type_conflicts(names_and_types, self._reported_conflicts, now)
        topics = build_topics(names_and_types, writers, readers)

        # Only plain assignments under the lock
        with self.store.write() as state:
            state.writers = writers
            state.readers = readers
            state.topics = topics
            for abnormality in abnormalities:
                state.add_abnormality(abnormality)

        for abnormality in abnormalities:
            logger.info(f"{abnormality.desc} (topic {abnormality.topic_name})")
        self._known_writers = writers
        self._known_readers = readers
        return True
