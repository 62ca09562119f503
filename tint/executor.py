"""Execution of a single lifecycle phase for a single test unit."""

import json
import logging
import re
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from tint.diffing import compare_json
from tint.models.result import StepResult
from tint.models.setup import SetupData
from tint.models.unit import PROVISIONED_PHASES, Phase, ProvisionedPhase, TestUnit
from tint.reporting import ConsoleReporter
from tint.templating import TemplateRenderer, TemplateRenderError
from tint.tools.base import Provisioner, QueryRunner

log = logging.getLogger(__name__)

CONFIG_EXTENSIONS = frozenset({".tf", ".tfvars"})
NON_TEST_PREFIX = re.compile(r"^(setup|pretest|posttest|teardown)-")
QUERY_SUFFIX = "-query.sql"
DEFAULT_QUERY = ""
ENV_PREFIX = "TINT_"

INIT_STEP = "terraform.init"
APPLY_STEP = "terraform.apply"
OUTPUT_STEP = "terraform.output"


class PhaseAbortedError(Exception):
    """Raised when a phase hits a fatal error.

    ``unit`` is the last snapshot of the unit, marked failed, including every
    step recorded before the error so that teardown can still clean up.
    """

    def __init__(self, unit: TestUnit, phase: Phase, cause: Exception) -> None:
        super().__init__(f"{phase} phase of {unit.dir} aborted: {cause}")
        self.unit = unit
        self.phase = phase


@dataclass(frozen=True, kw_only=True)
class QueryFiles:
    """Source files making up one query of a phase."""

    name: str
    query: Path
    variables: Path
    expected: Path


def config_files(test_dir: Path, phase: ProvisionedPhase) -> Sequence[Path]:
    """Provisioner configuration files of a phase, sorted by name.

    The ``test`` phase owns every recognized file without another phase's
    prefix; other phases own files named ``<phase>-*``.
    """
    files: list[Path] = []
    for path in sorted(test_dir.iterdir()):
        if path.suffix not in CONFIG_EXTENSIONS or not path.is_file():
            continue
        if phase == "test":
            if not NON_TEST_PREFIX.match(path.name):
                files.append(path)
        elif path.name.startswith(f"{phase}-"):
            files.append(path)
    return files


def query_files(test_dir: Path, phase: ProvisionedPhase) -> Sequence[QueryFiles]:
    """Queries of a phase, sorted by file name.

    ``query.sql`` is the default query of the ``test`` phase and is keyed by
    the empty name. Named queries follow ``<phase>-<name>-query.sql`` with
    ``-variables.json`` and ``-expected.json`` siblings; a file whose name part
    is empty is ignored.
    """
    prefix = f"{phase}-"
    queries: list[QueryFiles] = []
    for path in sorted(test_dir.iterdir()):
        if phase == "test" and path.name == "query.sql":
            queries.append(
                QueryFiles(
                    name=DEFAULT_QUERY,
                    query=path,
                    variables=test_dir / "variables.json",
                    expected=test_dir / "expected.json",
                )
            )
        elif path.name.startswith(prefix) and path.name.endswith(QUERY_SUFFIX):
            name = path.name[len(prefix) : -len(QUERY_SUFFIX)]
            if not name:
                log.warning("Ignoring unnamed query file %s", path)
                continue
            queries.append(
                QueryFiles(
                    name=name,
                    query=path,
                    variables=test_dir / f"{prefix}{name}-variables.json",
                    expected=test_dir / f"{prefix}{name}-expected.json",
                )
            )
    return queries


def _output_value(outputs: Mapping[str, Any], key: str) -> str | None:
    entry = outputs.get(key)
    if isinstance(entry, Mapping) and "value" in entry:
        return str(entry["value"])
    return None


@dataclass(kw_only=True)
class PhaseBuilder:
    """Accumulates the results of one phase on top of a unit snapshot."""

    unit: TestUnit
    phase: Phase

    def record(self, name: str, result: StepResult) -> None:
        self.unit = self.unit.with_step(self.phase, name, result)

    def merge_output(self, values: Mapping[str, Any]) -> None:
        self.unit = self.unit.with_output(values)

    def set_resource(self, resource_id: str | None, resource_name: str | None) -> None:
        self.unit = self.unit.with_resource(
            resource_id if resource_id is not None else self.unit.resource_id,
            resource_name if resource_name is not None else self.unit.resource_name,
        )

    def fail(self) -> None:
        self.unit = self.unit.mark_failed()

    def status(self, name: str) -> int:
        """Recorded status of a step, ``0`` when the step never ran."""
        result = self.unit.results(self.phase).get(name)
        return result.status if result is not None else 0


@dataclass(frozen=True, kw_only=True)
class PhaseExecutor:
    """Runs the lifecycle phases of a test unit against the external tools."""

    provisioner: Provisioner
    query_runner: QueryRunner
    renderer: TemplateRenderer = field(default_factory=TemplateRenderer)
    reporter: ConsoleReporter = field(default_factory=ConsoleReporter)
    base_dir: Path = field(default_factory=Path.cwd)
    env_file: str = ".env"
    environ: Mapping[str, str] = field(default_factory=dict, repr=False)

    def test_dir(self, unit: TestUnit) -> Path:
        return self.base_dir / unit.dir

    def effective_environment(self, unit: TestUnit) -> dict[str, str]:
        """External environment with the unit's custom values layered under it."""
        return {**unit.environment, **self.environ}

    async def setup(self, unit: TestUnit) -> TestUnit:
        """Load custom environment values and create the scratch directory."""
        builder = PhaseBuilder(unit=unit, phase="setup")
        try:
            custom = self._load_environment(unit)
            builder.unit = builder.unit.with_environment(custom)
            environment = self.effective_environment(builder.unit)
            for name, value in sorted(environment.items()):
                if name.startswith(ENV_PREFIX):
                    self.reporter.custom_environment(name, value)

            if builder.unit.failed:
                return builder.unit

            self.reporter.phase_started("setup", unit.dir, unit.prereqs)
            unit.tmp_dir.mkdir(parents=True, exist_ok=True)
            builder.record(
                "environment",
                StepResult(status=0, output={"variables": sorted(custom)}),
            )
        except Exception as exc:
            builder.fail()
            raise PhaseAbortedError(builder.unit, "setup", exc) from exc

        return builder.unit

    def _load_environment(self, unit: TestUnit) -> dict[str, str]:
        """Values from the unit's env file that are not already set externally."""
        path = self.test_dir(unit) / self.env_file
        if not path.is_file():
            return {}

        return {
            name: value
            for name, value in dotenv_values(path).items()
            if value is not None and name not in self.environ
        }

    def establish_setup_data(self, unit: TestUnit, generated: SetupData) -> SetupData:
        """Pin the run-wide resource names, preferring externally supplied ones."""
        setup_data = generated.resolve(self.effective_environment(unit))
        log.info("Resource names: %s", setup_data.as_variables())
        return setup_data

    async def run_phase(
        self, unit: TestUnit, phase: ProvisionedPhase, setup_data: SetupData
    ) -> TestUnit:
        """Run pretest, test or posttest for a unit.

        A unit that has already failed is returned untouched. Unit failures
        (nonzero provisioner status, query mismatch) are recorded in the
        returned snapshot; anything else aborts the phase.

        Raises:
            PhaseAbortedError: On a fatal error such as a rendering failure
                or a tool that cannot be started

        """
        if unit.failed:
            return unit

        self.reporter.phase_started(phase, unit.dir)
        builder = PhaseBuilder(unit=unit, phase=phase)

        try:
            provisioned = await self._provision(builder, phase, setup_data)
            if not provisioned:
                builder.fail()
            await self._run_queries(builder, phase, setup_data, provisioned)
        except Exception as exc:
            log.error("Error running %s phase of %s: %s", phase, unit.dir, exc)
            builder.fail()
            raise PhaseAbortedError(builder.unit, phase, exc) from exc

        return builder.unit

    async def _provision(
        self, builder: PhaseBuilder, phase: ProvisionedPhase, setup_data: SetupData
    ) -> bool:
        """Render the phase config and apply it; return whether it succeeded."""
        unit = builder.unit
        files = config_files(self.test_dir(unit), phase)
        if not files:
            log.debug("No %s configuration for %s", phase, unit.dir)
            return True

        workdir = unit.phase_dir(phase)
        workdir.mkdir(parents=True, exist_ok=True)
        context = unit.template_context(setup_data)
        for path in files:
            self.renderer.render_to(path, workdir, context)

        self.reporter.provisioning_started()
        init = await self.provisioner.init(workdir, unit.environment)
        builder.record(INIT_STEP, init)
        builder.record(
            APPLY_STEP,
            await self.provisioner.apply(
                workdir, unit.environment, setup_data.as_variables()
            ),
        )

        output = await self.provisioner.output(workdir, unit.environment)
        builder.record(OUTPUT_STEP, output)
        if isinstance(output.output, Mapping) and output.output:
            builder.merge_output(output.output)
            builder.set_resource(
                _output_value(output.output, "resource_id"),
                _output_value(output.output, "resource_name"),
            )

        return builder.status(INIT_STEP) == 0 and builder.status(APPLY_STEP) == 0

    async def _run_queries(
        self,
        builder: PhaseBuilder,
        phase: ProvisionedPhase,
        setup_data: SetupData,
        provisioned: bool,
    ) -> None:
        for query in query_files(self.test_dir(builder.unit), phase):
            if not provisioned:
                self.reporter.provisioning_failed()
                result = StepResult.skipped_failure("provisioning failed")
            elif builder.unit.failed:
                log.info("Skipping query %s of %s", query.name, builder.unit.dir)
                skipped = StepResult.skipped_failure("earlier failure")
                builder.record(query.name, skipped)
                continue
            else:
                result = await self._run_query(builder.unit, query, setup_data)

            if result.succeeded:
                if phase == "test":
                    self.reporter.query_passed()
            else:
                builder.fail()
                self.reporter.query_failed()

            builder.record(query.name, result)
            if isinstance(result.output, Mapping):
                builder.merge_output(result.output)

    async def _run_query(
        self, unit: TestUnit, query: QueryFiles, setup_data: SetupData
    ) -> StepResult:
        scratch = unit.tmp_dir
        scratch.mkdir(parents=True, exist_ok=True)
        context = unit.template_context(setup_data)

        query_path = self.renderer.render_to(query.query, scratch, context)
        variables_path = self.renderer.render_to(
            query.variables, scratch, context, default="{}"
        )
        expected_path = self.renderer.render_to(query.expected, scratch, context)

        try:
            expected = json.loads(expected_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise TemplateRenderError(query.expected, f"invalid JSON: {exc}") from exc
        try:
            variables = json.loads(variables_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            log.warning("Ignoring invalid variables in %s", query.variables)
            variables = {}

        self.reporter.query_started(query.query.name)
        result = await self.query_runner.run(
            query_path.read_text(encoding="utf-8"), variables, unit.environment
        )

        comparison = compare_json(result.output, expected)
        if comparison.matches:
            return result

        self.reporter.query_diff(comparison.lines)
        return result.model_copy(update={"status": result.status or 1})

    async def teardown(self, unit: TestUnit) -> TestUnit:
        """Destroy whatever each phase provisioned and remove the scratch space.

        Runs whether or not the unit failed. Phases without recorded results
        or without a scratch directory are skipped. A destroy that raises is
        recorded as a failed step and the remaining phases are still destroyed.
        """
        self.reporter.phase_started("teardown", unit.dir)
        try:
            for phase in PROVISIONED_PHASES:
                if not unit.results(phase):
                    continue
                workdir = unit.phase_dir(phase)
                if not workdir.is_dir():
                    log.warning(
                        "Scratch directory for the %s phase of %s does not exist",
                        phase,
                        unit.dir,
                    )
                    continue

                step = f"terraform.destroy.{phase}"
                try:
                    result = await self.provisioner.destroy(workdir, unit.environment)
                except Exception as exc:
                    log.exception("Destroy of %s phase of %s failed", phase, unit.dir)
                    unit = unit.with_step(
                        "teardown", step, StepResult.skipped_failure(str(exc))
                    )
                    continue

                unit = unit.with_step("teardown", step, result)
                if not result.succeeded:
                    log.warning(
                        "Destroy of %s phase of %s exited with %d",
                        phase,
                        unit.dir,
                        result.status,
                    )
        finally:
            shutil.rmtree(unit.tmp_dir, ignore_errors=True)

        return unit
