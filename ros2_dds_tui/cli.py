"""Command-line entry point: starts discovery in the background and runs the TUI."""

import argparse
import logging
import os
import signal
import sys
import threading

import rclpy
from rclpy.executors import MultiThreadedExecutor

from .config import PACKAGE_NAME, load_config, validate_settings
from .discovery import DiscoveryNode
from .state import StateStore
from .tui import DdsTUI

logger = logging.getLogger(__name__)


def default_log_file() -> str:
    log_dir = os.environ.get("ROS_LOG_DIR") or os.path.join(
        os.path.expanduser("~"), ".ros", "log"
    )
    return os.path.join(log_dir, f"{PACKAGE_NAME}.log")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="ROS2 DDS discovery dashboard")
    parser.add_argument(
        "-d",
        "--domain-id",
        type=int,
        default=None,
        metavar="ID",
        help="Set the ROS_DOMAIN_ID (0-232). Overrides the environment variable.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help="YAML config file. Defaults to config/default.yaml in the package.",
    )
    parser.add_argument(
        "--tick-ms",
        type=int,
        default=None,
        metavar="MS",
        help="Redraw cadence in milliseconds. Overrides the config file.",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        metavar="ROWS",
        help="Rows moved by PageUp/PageDown. Overrides the config file.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        metavar="PATH",
        help=f"Log file (default: {default_log_file()}).",
    )
    parser.add_argument(
        "--simple",
        action="store_true",
        default=False,
        help="Print plain text tables instead of starting curses.",
    )
    # Parse only known args so ROS args (e.g. --ros-args) pass through
    known, _ = parser.parse_known_args()
    return known


def setup_logging(log_file: str):
    """Send log records to a file; curses owns the terminal."""
    os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
    logging.basicConfig(
        filename=log_file,
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(args=None):
    """Main entry point."""
    cli_args = parse_args()

    if cli_args.domain_id is not None:
        if not 0 <= cli_args.domain_id <= 232:
            print(f"Error: domain-id must be 0-232, got {cli_args.domain_id}")
            sys.exit(1)
        os.environ["ROS_DOMAIN_ID"] = str(cli_args.domain_id)

    setup_logging(cli_args.log_file or default_log_file())

    try:
        config = load_config(cli_args.config)
        settings = config["settings"]
        if cli_args.tick_ms is not None:
            settings["tick_ms"] = cli_args.tick_ms
        if cli_args.page_size is not None:
            settings["page_size"] = cli_args.page_size
        validate_settings(settings)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    store = StateStore(abnormality_limit=settings["abnormality_limit"])

    rclpy.init(args=args)
    node = DiscoveryNode(store, discovery_interval=settings["discovery_interval"])
    tui = DdsTUI(store, settings)

    # Handle SIGINT and SIGTERM for clean shutdown
    def signal_handler(sig, frame):
        tui.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Run ROS spinner in background
    executor = MultiThreadedExecutor()
    executor.add_node(node)
    spin_thread = threading.Thread(target=executor.spin, daemon=True)
    spin_thread.start()

    logger.info(f"Dashboard started, tick {settings['tick_ms']}ms")
    try:
        tui.run(simple=cli_args.simple)
    finally:
        tui.stop()
        executor.shutdown()
        node.destroy_node()
        rclpy.shutdown()
        logger.info("Dashboard stopped")


if __name__ == "__main__":
    main()
