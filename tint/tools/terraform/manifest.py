"""Terraform provisioner manifest."""

from tint.tools.manifest import ToolManifest
from tint.tools.terraform.config import TerraformConfig
from tint.tools.terraform.provisioner import TerraformProvisioner

terraform_manifest = ToolManifest(
    config_cls=TerraformConfig,
    tool_factory=TerraformProvisioner.from_config,
)
