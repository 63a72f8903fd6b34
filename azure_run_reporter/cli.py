"""CLI entry point for creating and completing Azure DevOps test runs.

Useful when the run is created and completed by separate CI steps, with the
tests reporting into it through the pytest plugin in between.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from azure_run_reporter.client import TestRunClient
from azure_run_reporter.config import load_config
from azure_run_reporter.service import TestRunService

log = logging.getLogger("azure_run_reporter")


async def create_run(config_path: Path, suite_name: str | None = None) -> int:
    """Create a test run and print its id; return exit code."""
    config = load_config(config_path)

    async with TestRunClient.from_config(config) as client:
        service = TestRunService.from_config(config, client)
        context = await service.on_prepare(suite_name)

    if context is None:
        log.error("No test run created")
        return 1

    log.info("Test run %s stored in %s", context.run_id, config.meta_path)
    print(json.dumps({"testRunId": context.run_id, "name": context.name}))
    return 0


async def complete_run(config_path: Path) -> int:
    """Complete the stored test run; return exit code."""
    config = load_config(config_path)

    async with TestRunClient.from_config(config) as client:
        service = TestRunService.from_config(config, client)
        await service.on_complete()

    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Create and complete Azure DevOps test runs"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser(
        "create-run", help="Create a test run and store its id"
    )
    create_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the JSON reporter configuration",
    )
    create_parser.add_argument(
        "--suite",
        default=None,
        help="Suite name looked up in suiteMapping (default: e2e)",
    )

    complete_parser = subparsers.add_parser(
        "complete-run", help="Attach the report and complete the stored test run"
    )
    complete_parser.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the JSON reporter configuration",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "create-run":
        exit_code = asyncio.run(create_run(args.config, args.suite))
    else:
        exit_code = asyncio.run(complete_run(args.config))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
