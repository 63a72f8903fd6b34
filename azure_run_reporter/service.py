"""Create the Azure DevOps test run before tests and close it afterwards."""

import base64
import logging
from dataclasses import dataclass

from azure_run_reporter.client import TRANSPORT_ERRORS, TestRunClient
from azure_run_reporter.config import (
    DEFAULT_SUITE_NAME,
    ReportAttachmentConfig,
    ReporterConfig,
)
from azure_run_reporter.models.run import RunContext
from azure_run_reporter.store import RunContextStore

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class TestRunService:
    """Owns the lifetime of the remote test run."""

    __test__ = False

    config: ReporterConfig
    client: TestRunClient
    store: RunContextStore
    context: RunContext | None = None

    @classmethod
    def from_config(
        cls, config: ReporterConfig, client: TestRunClient
    ) -> "TestRunService":
        """Create a service writing the configured run id file."""
        return cls(
            config=config,
            client=client,
            store=RunContextStore(path=config.meta_path),
        )

    async def on_prepare(self, suite_name: str | None = None) -> RunContext | None:
        """Create the run for the resolved suite and publish its id.

        Returns None when no suite id can be resolved. API failures propagate.
        """
        suite_name = suite_name or DEFAULT_SUITE_NAME
        suite_id = self.config.resolve_suite_id(suite_name)
        if suite_id is None:
            log.error("Suite ID not found for suite '%s'", suite_name)
            return None

        run_name = self.config.run_name or f"Automated run for suite: {suite_name}"
        context = await self.client.create_run(self.config.plan_id, suite_id, run_name)
        self.store.save(context)
        self.context = context
        return context

    async def on_complete(self, exit_code: int = 0) -> None:
        """Attach the configured report and complete the run.

        Failures are logged; nothing propagates to the caller.
        """
        context = self.context or self.store.load()
        if context is None:
            log.warning("No active test run to complete")
            return

        log.info("Test session finished with exit code %s", exit_code)
        if self.config.attach_report is not None:
            await self._attach_report(context, self.config.attach_report)

        try:
            await self.client.complete_run(context, "Completed")
        except TRANSPORT_ERRORS as exc:
            log.error("Error completing test run %s: %s", context.run_id, exc)
        finally:
            self.store.clear()
            self.context = None

    async def _attach_report(
        self, context: RunContext, report: ReportAttachmentConfig
    ) -> None:
        if not report.path.exists():
            log.warning("Report file not found at path: %s", report.path)
            return
        try:
            content = base64.b64encode(report.path.read_bytes()).decode("ascii")
            await self.client.add_run_attachment(
                context,
                report.name,
                content,
                report.comment or f"{report.type} Report",
                report.iteration_id,
            )
        except (OSError, *TRANSPORT_ERRORS) as exc:
            log.error("Failed to attach report: %s", exc)
            return
        log.info("Attached %s report (%s)", report.type, report.name)
