"""Curses dashboard for DDS writers, readers, topics and abnormalities on a ROS2 graph."""

__version__ = "1.0.0"
