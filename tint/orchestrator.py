"""Run orchestrator driving the execution plan through the lifecycle."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tint.executor import PhaseAbortedError, PhaseExecutor
from tint.models.setup import SetupData
from tint.models.unit import PROVISIONED_PHASES, TestUnit

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class RunOrchestrator:
    """Runs every unit of a plan forward, then tears all of them down.

    Units are brought up one at a time in plan order. A fatal error stops the
    forward pass; teardown then runs for every unit in reverse plan order,
    and a failing teardown never prevents the next one.
    """

    executor: PhaseExecutor
    resource_prefix: str = "tinttest"

    async def run(self, plan: Sequence[TestUnit]) -> dict[str, TestUnit]:
        """Run the plan and return the final state of each unit by identity."""
        results = {unit.dir: unit for unit in plan}
        generated = SetupData.generate(self.resource_prefix)

        log.info("Test names: %s", list(results))

        try:
            await self._bring_up(results, generated)
        except Exception as exc:
            if isinstance(exc, PhaseAbortedError):
                results[exc.unit.dir] = exc.unit
            self.executor.reporter.fatal_error(exc)
            log.debug("Forward pass aborted", exc_info=exc)

        await self._tear_down(results)
        return results

    async def _bring_up(
        self, results: dict[str, TestUnit], generated: SetupData
    ) -> None:
        setup_data: SetupData | None = None

        for identity in list(results):
            unit = await self.executor.setup(results[identity])
            results[identity] = unit

            # Established once from the first unit, read-only afterwards.
            if setup_data is None:
                setup_data = self.executor.establish_setup_data(unit, generated)

            for phase in PROVISIONED_PHASES:
                results[identity] = await self.executor.run_phase(
                    results[identity], phase, setup_data
                )

    async def _tear_down(self, results: dict[str, TestUnit]) -> None:
        for identity in reversed(list(results)):
            try:
                results[identity] = await self.executor.teardown(results[identity])
            except Exception:
                log.exception("Teardown of %s failed", identity)
