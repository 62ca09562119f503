"""Steampipe query runner manifest."""

from tint.tools.manifest import ToolManifest
from tint.tools.steampipe.config import SteampipeConfig
from tint.tools.steampipe.runner import SteampipeQueryRunner

steampipe_manifest = ToolManifest(
    config_cls=SteampipeConfig,
    tool_factory=SteampipeQueryRunner.from_config,
)
