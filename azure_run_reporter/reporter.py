"""Mirror test lifecycle events into Azure DevOps test results."""

import base64
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

from azure_run_reporter.aggregator import ResultAggregator
from azure_run_reporter.client import TestRunClient
from azure_run_reporter.config import ReporterConfig
from azure_run_reporter.identifiers import extract_case_id, extract_step_ids
from azure_run_reporter.models.events import RunnerStats, TestEvent
from azure_run_reporter.models.results import (
    IterationRecord,
    Outcome,
    TestResultRecord,
)
from azure_run_reporter.models.run import ResultHandle, RunContext
from azure_run_reporter.store import RunContextStore

log = logging.getLogger(__name__)

STARTED_COMMENT = "Test started using Automation."
SKIPPED_COMMENT = "Test was skipped by Automation."
PASSED_COMMENT = "Test passed."
STEP_FAILURE_COMMENT = "Test failed due to one or more failing steps."
SCREENSHOT_COMMENT = "Failure Screenshot"
UNSAFE_FILE_CHARS = re.compile(r"[\s/\\]+")


def failure_comment(event: TestEvent) -> str:
    """Build the result comment for a failed test."""
    if event.error is None:
        return "Test failed."
    return f"Test failed: {event.error.message}\nStack: {event.error.stack}"


def screenshot_file_name(title: str) -> str:
    """Turn a test title into a screenshot file name."""
    return f"{UNSAFE_FILE_CHARS.sub('_', title.strip())}.png"


@dataclass(kw_only=True)
class TestRunReporter:
    """Reports individual tests into the active test run.

    Lifecycle hooks must be awaited one at a time: the reporter keeps the
    last resolved result handle between hooks and does no locking.
    """

    __test__ = False

    client: TestRunClient
    store: RunContextStore
    screenshot_path: Path
    results: ResultAggregator = field(default_factory=ResultAggregator)
    context: RunContext | None = None
    handle: ResultHandle | None = None

    @classmethod
    def from_config(
        cls, config: ReporterConfig, client: TestRunClient
    ) -> "TestRunReporter":
        """Create a reporter sharing the configured run id file."""
        return cls(
            client=client,
            store=RunContextStore(path=config.meta_path),
            screenshot_path=config.screenshot_path,
        )

    async def on_test_start(self, event: TestEvent) -> None:
        """Resolve the result slot of the test and mark it in progress."""
        if (stored := self.store.load()) is not None:
            self.context = stored
        self.handle = None

        case_id = extract_case_id(event.title) or extract_case_id(event.parent)
        if case_id is None:
            log.debug("No test case id in '%s', not reporting it", event.title)
            return
        if self.context is None:
            log.info(
                "Test run ID not set. Skipping result upload for test: %s", event.title
            )
            return

        handle = await self.client.get_result_handle(self.context, case_id)
        if handle is None:
            return
        self.handle = handle

        previous = self.results.get(handle.result_id)
        step_ids = extract_step_ids(event.title)
        if step_ids:
            iterations = [IterationRecord.for_steps(step_ids, "InProgress")]
        elif previous is not None:
            iterations = previous.iteration_details
            for iteration in iterations:
                iteration.apply_outcome("InProgress")
        else:
            iterations = []

        if previous is not None:
            log.info("Updated existing test result with ID: %s", handle.result_id)
        self.results.upsert(
            TestResultRecord(
                id=handle.result_id,
                outcome="InProgress",
                state="Pending",
                comment=STARTED_COMMENT,
                duration_in_ms=previous.duration_in_ms if previous else 0.0,
                iteration_details=iterations,
            )
        )
        await self._upload()

    async def on_test_skip(self, event: TestEvent) -> None:
        """Mark the current test result as not applicable."""
        if self.context is None:
            log.info(
                "Test run ID not set. Skipping result upload for skipped test: %s",
                event.full_title or event.title,
            )
            return
        if self.handle is None:
            log.info("No test result resolved for skipped test: %s", event.title)
            return

        previous = self.results.get(self.handle.result_id)
        iterations = previous.iteration_details if previous else []
        for iteration in iterations:
            iteration.apply_outcome("NotApplicable")

        self.results.upsert(
            TestResultRecord(
                id=self.handle.result_id,
                outcome="NotApplicable",
                state="Completed",
                comment=SKIPPED_COMMENT,
                duration_in_ms=previous.duration_in_ms if previous else 0.0,
                iteration_details=iterations,
            )
        )
        await self._upload()

    async def on_test_end(self, event: TestEvent) -> None:
        """Record the final outcome of the current test.

        Step outcomes follow the test outcome, and a failed step fails the
        whole result.
        """
        if self.context is None or self.handle is None:
            log.info(
                "Test run ID not set. Skipping result upload for test: %s", event.title
            )
            return

        passed = event.state == "passed"
        outcome: Outcome = "Passed" if passed else "Failed"
        comment = PASSED_COMMENT if passed else failure_comment(event)
        result_id = self.handle.result_id

        record = self.results.get(result_id)
        if record is None:
            step_ids = extract_step_ids(event.title)
            record = TestResultRecord(
                id=result_id,
                outcome=outcome,
                iteration_details=(
                    [IterationRecord.for_steps(step_ids, outcome)] if step_ids else []
                ),
            )
            log.info("Added new test result with ID: %s", result_id)

        for iteration in record.iteration_details:
            iteration.apply_outcome(outcome, comment, keep_failed=True)
        if any(iteration.has_failed_steps for iteration in record.iteration_details):
            if passed:
                comment = STEP_FAILURE_COMMENT
            outcome = "Failed"

        record.outcome = outcome
        record.state = "Completed"
        record.comment = comment
        record.duration_in_ms += max(event.duration_ms, 0.0)
        self.results.upsert(record)
        await self._upload()

        if not passed and event.screenshot is not None:
            await self._attach_screenshot(event.title, event.screenshot, result_id)

    async def on_runner_end(self, stats: RunnerStats) -> None:
        """Flush pending results and forget the run."""
        await self._upload()
        log.info(
            "Test run finished: %d test(s), %d failure(s), %d skipped",
            stats.total,
            stats.failures,
            stats.skipped,
        )
        self.results.clear()
        self.handle = None
        self.context = None

    async def _upload(self) -> None:
        changes = self.results.take_changes()
        if not await self.client.bulk_update_results(self.context, changes):
            self.results.mark_changed(record.id for record in changes)

    async def _attach_screenshot(
        self, title: str, screenshot: bytes, result_id: int
    ) -> None:
        file_name = screenshot_file_name(title)
        file_path = self.screenshot_path / file_name
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(screenshot)
        except OSError as exc:
            log.error("Failed to save screenshot to %s: %s", file_path, exc)
            return

        await self.client.add_result_attachment(
            self.context,
            result_id,
            file_name,
            base64.b64encode(screenshot).decode("ascii"),
            SCREENSHOT_COMMENT,
        )
