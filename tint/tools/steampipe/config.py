"""Configuration for the Steampipe query runner."""

from pydantic import BaseModel


class SteampipeConfig(BaseModel):
    """Configuration for the Steampipe query runner."""

    binary: str = "steampipe"
