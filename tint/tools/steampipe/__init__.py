"""Steampipe query runner module."""

from tint.tools.steampipe.config import SteampipeConfig
from tint.tools.steampipe.manifest import steampipe_manifest
from tint.tools.steampipe.runner import SteampipeQueryRunner

__all__ = ["SteampipeConfig", "SteampipeQueryRunner", "steampipe_manifest"]
