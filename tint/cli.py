"""CLI entry point for the integration test runner."""

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from tint.config import RunConfig
from tint.dependencies import build_plan
from tint.executor import PhaseExecutor
from tint.models.unit import TestUnit
from tint.orchestrator import RunOrchestrator
from tint.reporting import ConsoleReporter
from tint.resolver import resolve_targets
from tint.summary import summarize
from tint.templating import TemplateRenderer
from tint.tools.loading import load_provisioner_manifest, load_query_runner_manifest

# Process exit statuses wrap modulo 256.
MAX_EXIT_STATUS = 255


def format_output(results: Mapping[str, TestUnit]) -> dict[str, Any]:
    """Format the final unit states for the JSON debug dump."""
    return {
        identity: unit.model_dump(mode="json") for identity, unit in results.items()
    }


async def run(
    config: RunConfig,
    targets: Sequence[str],
    reporter: ConsoleReporter,
    environ: Mapping[str, str],
) -> int:
    """Run the selected tests and return the exit code."""
    log = logging.getLogger("tint")

    selected = resolve_targets(config.base_dir, targets, config.tests_root)
    plan = build_plan(selected, config.base_dir, config.scratch_root)

    if not plan:
        reporter.no_targets()
        return 0

    log.info("Loading provisioner: %s", config.provisioner)
    provisioner = load_provisioner_manifest(config.provisioner).create(
        config.provisioner_config
    )
    log.info("Loading query runner: %s", config.query_runner)
    query_runner = load_query_runner_manifest(config.query_runner).create(
        config.query_runner_config
    )

    executor = PhaseExecutor(
        provisioner=provisioner,
        query_runner=query_runner,
        renderer=TemplateRenderer(),
        reporter=reporter,
        base_dir=config.base_dir,
        env_file=config.env_file,
        environ=environ,
    )
    orchestrator = RunOrchestrator(
        executor=executor, resource_prefix=config.resource_prefix
    )
    results = await orchestrator.run(plan)

    if config.debug:
        print(json.dumps(format_output(results), indent=2))

    summary = summarize(results)
    reporter.summary(summary)
    return summary.exit_code


def parse_tool_config(value: str | None) -> dict[str, Any] | None:
    """Parse a JSON object given on the command line."""
    if value is None:
        return None
    parsed = json.loads(value)
    if not isinstance(parsed, dict):
        raise argparse.ArgumentTypeError("tool configuration must be a JSON object")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run provisioning and query integration tests"
    )
    parser.add_argument(
        "targets",
        nargs="*",
        help="Test names or glob patterns (default: every test under the tests root)",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        help="Directory test paths are relative to (default: current directory)",
    )
    parser.add_argument(
        "--tests-root", help="Root for bare test names (default: tests)"
    )
    parser.add_argument(
        "--scratch-root",
        type=Path,
        help="Directory for per-test scratch space (default: system temp dir)",
    )
    parser.add_argument("--env-file", help="Per-test env file name (default: .env)")
    parser.add_argument(
        "--resource-prefix", help="Prefix of generated resource names"
    )
    parser.add_argument("--provisioner", help="Provisioner key (default: terraform)")
    parser.add_argument(
        "--provisioner-config",
        type=parse_tool_config,
        help="JSON configuration for the provisioner",
    )
    parser.add_argument("--query-runner", help="Query runner key (default: steampipe)")
    parser.add_argument(
        "--query-runner-config",
        type=parse_tool_config,
        help="JSON configuration for the query runner",
    )
    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    config = RunConfig.from_environ(
        os.environ,
        base_dir=args.base_dir,
        tests_root=args.tests_root,
        scratch_root=args.scratch_root,
        env_file=args.env_file,
        resource_prefix=args.resource_prefix,
        provisioner=args.provisioner,
        provisioner_config=args.provisioner_config,
        query_runner=args.query_runner,
        query_runner_config=args.query_runner_config,
    )

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            config=config,
            targets=args.targets,
            reporter=ConsoleReporter.create(color=config.color),
            environ=dict(os.environ),
        )
    )
    sys.exit(min(exit_code, MAX_EXIT_STATUS))


if __name__ == "__main__":  # pragma: no cover
    main()
