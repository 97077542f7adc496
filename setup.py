from setuptools import find_packages, setup
import os
from glob import glob

package_name = "ros2_dds_tui"

setup(
    name=package_name,
    version="1.0.0",
    packages=find_packages(exclude=["test"]),
    data_files=[
        ("share/ament_index/resource_index/packages", ["resource/" + package_name]),
        ("share/" + package_name, ["package.xml"]),
        (os.path.join("share", package_name, "launch"), glob("launch/*.launch.py")),
        (os.path.join("share", package_name, "config"), glob("config/*.yaml")),
    ],
    install_requires=["setuptools", "PyYAML"],
    extras_require={"test": ["pytest"]},
    zip_safe=True,
    maintainer="Nigel_H-S",
    maintainer_email="1388693+DingoOz@users.noreply.github.com",
    description="A curses-based TUI dashboard for DDS discovery state and abnormalities",
    license="MIT",
    tests_require=["pytest"],
    entry_points={
        "console_scripts": [
            "dds_tui = ros2_dds_tui.cli:main",
        ],
    },
)
