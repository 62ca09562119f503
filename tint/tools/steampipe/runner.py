"""Steampipe query runner implementation."""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from tint.models.result import StepResult
from tint.tools.base import QueryRunner
from tint.tools.process import run_command
from tint.tools.steampipe.config import SteampipeConfig

log = logging.getLogger(__name__)


def fold_query(query: str) -> str:
    """Collapse a query file into the single line passed on the command line."""
    return query.replace("\r", "").replace("\n", " ").strip()


@dataclass(frozen=True, kw_only=True)
class SteampipeQueryRunner(QueryRunner):
    """Query runner driving ``steampipe query``."""

    config: SteampipeConfig

    @classmethod
    def from_config(cls, config: SteampipeConfig) -> "SteampipeQueryRunner":
        return cls(config=config)

    async def run(
        self,
        query: str,
        variables: Mapping[str, Any],
        environment: Mapping[str, str],
    ) -> StepResult:
        """Run the query and parse its JSON output.

        Steampipe takes no bind variables, so ``variables`` only reach the
        rendered scratch files.
        """
        result = await run_command(
            [self.config.binary, "query", "--output", "json", fold_query(query)],
            environment=environment,
        )
        try:
            output = json.loads(result.stdout)
        except json.JSONDecodeError:
            log.debug("Query output is not JSON: %r", result.stdout[:200])
            output = {}

        return StepResult(
            status=result.status,
            stdout=result.stdout,
            stderr=result.stderr,
            output=output,
        )
