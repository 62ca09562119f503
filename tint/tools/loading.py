"""Loading of provisioners and query runners from entry points."""

import logging
from importlib.metadata import entry_points
from typing import Any

from tint.tools.base import Provisioner, QueryRunner
from tint.tools.manifest import ToolManifest

log = logging.getLogger(__name__)

PROVISIONER_GROUP = "tint.provisioners"
QUERY_RUNNER_GROUP = "tint.query_runners"


class ToolNotFoundError(Exception):
    """Raised when no plugin is registered under the requested key."""


def load_tool_manifest(group: str, key: str) -> ToolManifest[Any, Any]:
    """Load the manifest registered under ``key`` in an entry point group.

    Args:
        group: Entry point group, one of ``PROVISIONER_GROUP`` or
            ``QUERY_RUNNER_GROUP``
        key: Entry point name (e.g. "terraform", "steampipe")

    Returns:
        The manifest object the entry point refers to

    Raises:
        ToolNotFoundError: If ``group`` has no entry point named ``key``

    """
    registered = entry_points(group=group)
    matches = registered.select(name=key)

    if not matches:
        available = sorted(registered.names)
        raise ToolNotFoundError(
            f"Tool '{key}' not found. Available tools: {available}"
        )

    entry = next(iter(matches))
    log.debug("Loading %s tool %s from %s", group, key, entry.value)
    manifest: ToolManifest[Any, Any] = entry.load()
    return manifest


def load_provisioner_manifest(key: str) -> ToolManifest[Any, Provisioner]:
    """Manifest of the provisioner plugin named ``key``."""
    return load_tool_manifest(PROVISIONER_GROUP, key)


def load_query_runner_manifest(key: str) -> ToolManifest[Any, QueryRunner]:
    """Manifest of the query runner plugin named ``key``."""
    return load_tool_manifest(QUERY_RUNNER_GROUP, key)
