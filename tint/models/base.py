"""Base model configuration for all data structures."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Base model with standard configuration.

    Models are frozen: every update produces a new snapshot via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True)
