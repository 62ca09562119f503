"""Terraform provisioner module."""

from tint.tools.terraform.config import TerraformConfig
from tint.tools.terraform.manifest import terraform_manifest
from tint.tools.terraform.provisioner import TerraformProvisioner

__all__ = ["TerraformConfig", "TerraformProvisioner", "terraform_manifest"]
