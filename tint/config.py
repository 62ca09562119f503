"""Run configuration assembled from the environment and CLI options."""

import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

ENVIRONMENT_FIELDS: Mapping[str, str] = {
    "TINT_TESTS_ROOT": "tests_root",
    "TINT_SCRATCH_ROOT": "scratch_root",
    "TINT_RESOURCE_PREFIX": "resource_prefix",
    "TINT_ENV_FILE": "env_file",
}


class RunConfig(BaseModel):
    """Configuration for one test run."""

    base_dir: Path = Field(default_factory=Path.cwd)
    tests_root: str = "tests"
    scratch_root: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    resource_prefix: str = "tinttest"
    env_file: str = ".env"
    provisioner: str = "terraform"
    provisioner_config: dict[str, Any] = Field(default_factory=dict)
    query_runner: str = "steampipe"
    query_runner_config: dict[str, Any] = Field(default_factory=dict)
    log_level: Literal["debug", "info"] = "info"
    color: bool = True

    @property
    def debug(self) -> bool:
        return self.log_level == "debug"

    @classmethod
    def from_environ(
        cls, environ: Mapping[str, str], **overrides: Any
    ) -> "RunConfig":
        """Build a config from ``TINT_*`` variables; ``overrides`` win.

        ``TINT_LOG_LEVEL=debug`` turns on debug output and ``TINT_COLOR_LEVEL=0``
        disables colors. Overrides set to ``None`` are ignored.
        """
        values: dict[str, Any] = {
            name: environ[variable]
            for variable, name in ENVIRONMENT_FIELDS.items()
            if environ.get(variable)
        }
        if environ.get("TINT_LOG_LEVEL", "").lower() == "debug":
            values["log_level"] = "debug"
        if environ.get("TINT_COLOR_LEVEL") == "0":
            values["color"] = False

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
