"""Identifiers of the active test run and of results inside it."""

from collections.abc import Sequence

from azure_run_reporter.models.base import Model


class RunContext(Model):
    """The test run results are currently reported against."""

    run_id: int
    name: str | None = None
    plan_id: int | None = None
    point_ids: Sequence[int] = ()


class ResultHandle(Model):
    """Slot of a test case inside a run."""

    case_id: str
    result_id: int
