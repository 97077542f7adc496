"""ROS2 node polling the graph and feeding the dashboard's state store."""

from rclpy.node import Node

from .config import DISCOVERY_INTERVAL
from .graph import GraphPoller
from .state import StateStore


class DiscoveryNode(Node):
    """ROS2 node that polls the graph and publishes what it finds to a StateStore."""

    def __init__(self, store: StateStore, discovery_interval: float = DISCOVERY_INTERVAL):
        super().__init__("ros2_dds_tui")
        self.store = store
        self.poller = GraphPoller(store)

        self.discovery_timer = self.create_timer(discovery_interval, self.poll_graph)
        self.get_logger().info("ROS2 DDS discovery node started")

    def poll_graph(self):
        """Timer callback; changes and failures go to the log file, not the console."""
        self.poller.poll(self)
