"""Azure DevOps test run client implementation."""

import base64
import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from azure_run_reporter.client.models import (
    TestCaseResultList,
    TestPointList,
    TestRun,
)
from azure_run_reporter.config import ReporterConfig
from azure_run_reporter.models.results import TestResultRecord
from azure_run_reporter.models.run import ResultHandle, RunContext

log = logging.getLogger(__name__)

API_VERSION = "7.1"


class AzureDevOpsApiError(RuntimeError):
    """Raised when the Azure DevOps API answers with an error status."""


TRANSPORT_ERRORS = (aiohttp.ClientError, TimeoutError, AzureDevOpsApiError)


@dataclass(frozen=True, kw_only=True)
class TestRunClient:
    """Client for the Azure DevOps test run and test result API.

    The client holds no run state: every run-scoped operation takes the
    ``RunContext`` to act on, and does nothing but warn when it is None.
    """

    __test__ = False

    config: ReporterConfig
    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ReporterConfig
    ) -> AsyncGenerator["TestRunClient", None]:
        """Create client with managed session lifecycle."""
        # Azure DevOps uses Basic Auth with empty username and PAT as password
        auth_string = f":{config.pat.get_secret_value()}"
        auth_bytes = base64.b64encode(auth_string.encode("ascii")).decode("ascii")
        headers = {
            "Authorization": f"Basic {auth_bytes}",
            "Content-Type": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_origin,
            headers=headers,
        ) as session:
            yield cls(config=config, session=session)

    async def list_test_points(
        self, plan_id: int | str, suite_id: int | str
    ) -> Sequence[int]:
        """Return the ids of all test points of a plan suite."""
        log.info("Fetching test points for plan %s suite %s", plan_id, suite_id)
        data = await self._request(
            "GET", f"/test/Plans/{plan_id}/Suites/{suite_id}/points", "list test points"
        )
        point_ids = [point.id for point in TestPointList.model_validate(data).value]
        log.info("Fetched %d test points: %s", len(point_ids), point_ids)
        return point_ids

    async def create_run(
        self, plan_id: int | str, suite_id: int | str, name: str | None = None
    ) -> RunContext:
        """Create an automated run covering every point of the suite."""
        point_ids = await self.list_test_points(plan_id, suite_id)
        payload = {
            "name": name,
            "plan": {"id": int(plan_id)},
            "pointIds": list(point_ids),
            "automated": True,
        }
        data = await self._request(
            "POST", "/test/runs", "create test run", json=payload
        )
        run = TestRun.model_validate(data)

        log.info("Test run created with ID: %s", run.id)
        return RunContext(
            run_id=run.id,
            name=run.name or name,
            plan_id=int(plan_id),
            point_ids=tuple(point_ids),
        )

    async def get_result_handle(
        self, context: RunContext | None, case_id: str
    ) -> ResultHandle | None:
        """Find the result slot of a test case inside the run."""
        if context is None:
            log.warning("No active test run. Cannot get test results.")
            return None

        data = await self._request(
            "GET", f"/test/runs/{context.run_id}/results", "get test results"
        )
        for result in TestCaseResultList.model_validate(data).value:
            if result.test_case is not None and str(result.test_case.id) == case_id:
                return ResultHandle(case_id=case_id, result_id=result.id)

        log.warning(
            "No test result found for test case %s in run %s", case_id, context.run_id
        )
        return None

    async def bulk_update_results(
        self, context: RunContext | None, records: Sequence[TestResultRecord]
    ) -> bool:
        """Send the given result records to the run.

        Transport failures are logged and swallowed. Returns False when the
        records did not reach the run.
        """
        if context is None:
            log.warning("No active test run. Cannot update test results.")
            return False
        if not records:
            return True

        log.info("Updating %d result(s) for test run %s", len(records), context.run_id)
        payload = [record.to_payload() for record in records]
        try:
            await self._request(
                "PATCH",
                f"/test/runs/{context.run_id}/results",
                "update test results",
                json=payload,
            )
        except TRANSPORT_ERRORS as exc:
            log.error("Updating test results failed: %s", exc)
            return False
        log.info("Test results updated successfully")
        return True

    async def add_result_attachment(
        self,
        context: RunContext | None,
        result_id: int,
        file_name: str,
        content_base64: str,
        comment: str = "Test attachment",
        iteration_id: int | None = None,
    ) -> None:
        """Attach base64 encoded content to a single test result."""
        if context is None:
            log.warning("No active test run. Cannot add attachment.")
            return
        log.info("Adding attachment for test result %s", result_id)
        await self._attach(
            f"/test/runs/{context.run_id}/results/{result_id}/attachments",
            file_name,
            content_base64,
            comment,
            iteration_id,
        )

    async def add_run_attachment(
        self,
        context: RunContext | None,
        file_name: str,
        content_base64: str,
        comment: str = "Test attachment",
        iteration_id: int | None = None,
    ) -> None:
        """Attach base64 encoded content to the run as a whole."""
        if context is None:
            log.warning("No active test run. Cannot add attachment.")
            return
        log.info("Adding attachment for test run %s", context.run_id)
        await self._attach(
            f"/test/runs/{context.run_id}/attachments",
            file_name,
            content_base64,
            comment,
            iteration_id,
        )

    async def complete_run(
        self, context: RunContext | None, state: str = "Completed"
    ) -> None:
        """Move the run to a terminal state.

        The caller should drop ``context`` afterwards; nothing else refers to it.
        """
        if context is None:
            log.warning("No active test run. Cannot complete test run.")
            return

        log.info("Completing test run %s", context.run_id)
        await self._request(
            "PATCH",
            f"/test/runs/{context.run_id}",
            "complete test run",
            json={"state": state},
        )
        log.info("Test run %s set to %s", context.run_id, state)

    async def _attach(
        self,
        path: str,
        file_name: str,
        content_base64: str,
        comment: str,
        iteration_id: int | None,
    ) -> None:
        payload = {
            "attachmentType": "GeneralAttachment",
            "comment": comment,
            "fileName": file_name,
            "stream": content_base64,
        }
        params = {"iterationId": str(iteration_id)} if iteration_id is not None else {}
        try:
            await self._request(
                "POST", path, "add attachment", json=payload, params=params
            )
        except TRANSPORT_ERRORS as exc:
            log.error("Adding attachment '%s' failed: %s", file_name, exc)
            return
        log.info("Attachment '%s' added successfully", file_name)

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        *,
        json: Any = None,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        url = (
            f"{self.config.api_path_prefix}/{self.config.organization}"
            f"/{self.config.project}/_apis{path}"
        )
        query = {"api-version": API_VERSION, **(params or {})}

        async with self.session.request(
            method, url, json=json, params=query
        ) as response:
            if not response.ok:
                text = await response.text()
                raise AzureDevOpsApiError(
                    f"Failed to {action}: {response.status} {text}"
                )
            return await response.json(content_type=None)
