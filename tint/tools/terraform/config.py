"""Configuration for the Terraform provisioner."""

from pydantic import BaseModel


class TerraformConfig(BaseModel):
    """Configuration for the Terraform provisioner."""

    # Any Terraform-compatible CLI works here, e.g. "tofu".
    binary: str = "terraform"
