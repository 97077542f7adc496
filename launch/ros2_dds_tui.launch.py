"""Launch file for the ROS2 DDS TUI."""

from launch import LaunchDescription
from launch_ros.actions import Node


def generate_launch_description():
    """Generate launch description for the ROS2 DDS TUI."""
    return LaunchDescription(
        [
            Node(
                package="ros2_dds_tui",
                executable="dds_tui",
                name="ros2_dds_tui",
                output="screen",
                emulate_tty=True,
            ),
        ]
    )
