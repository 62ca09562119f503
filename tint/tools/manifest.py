"""Tool manifest definition for the plugin system."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

ConfigT = TypeVar("ConfigT", bound=BaseModel)
ToolT = TypeVar("ToolT")


@dataclass(frozen=True, kw_only=True)
class ToolManifest(Generic[ConfigT, ToolT]):
    """Manifest describing a provisioner or query runner plugin.

    The manifest contains references to the configuration class and the tool
    factory so that tools can be loaded lazily based on their key.
    """

    config_cls: type[ConfigT]
    tool_factory: Callable[[ConfigT], ToolT]

    def create(self, config: dict[str, object] | None = None) -> ToolT:
        """Validate ``config`` and build the tool from it."""
        return self.tool_factory(self.config_cls.model_validate(config or {}))
