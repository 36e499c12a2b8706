# environment.py
# Builds the Node a harness converges against.
#
# Automatic attributes describe the host the tests run on. They are read,
# never written, and caller-supplied attributes override them.

import os
import platform
from typing import Any

from converge_harness.cookbooks import normalize_run_list_item
from converge_harness.models import Node


def system_attributes() -> dict[str, Any]:
    hostname = platform.node() or "localhost"
    return {
        "platform": platform.system().lower() or "unknown",
        "platform_version": platform.release(),
        "os": os.name,
        "machine": platform.machine(),
        "hostname": hostname.split(".")[0],
        "fqdn": hostname,
        "python_version": platform.python_version(),
    }


def build_node(
    name: str,
    attributes: dict[str, Any] | None = None,
    run_list: list[str] | None = None,
) -> Node:
    """Node named `name` with automatic attributes overlaid by `attributes`."""
    merged = system_attributes()
    merged.update(attributes or {})
    node = Node(name=name, attributes=merged)
    for item in run_list or []:
        node.add_to_run_list(normalize_run_list_item(item))
    return node
