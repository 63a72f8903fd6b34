"""Test result records mirrored into an Azure DevOps test run."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Literal

from pydantic import Field

from azure_run_reporter.identifiers import to_eight_digit_hex
from azure_run_reporter.models.base import ApiModel

type Outcome = Literal[
    "NotStarted",
    "InProgress",
    "Passed",
    "Failed",
    "NotApplicable",
]

type ResultState = Literal["Pending", "Completed"]

OUTCOME_SEVERITY: Mapping[Outcome, int] = {
    "Passed": 0,
    "NotApplicable": 1,
    "NotStarted": 2,
    "InProgress": 3,
    "Failed": 4,
}


def worst_outcome(
    outcomes: Iterable[Outcome], default: Outcome = "NotStarted"
) -> Outcome:
    """Return the most severe outcome, or ``default`` when there are none."""
    return max(outcomes, key=OUTCOME_SEVERITY.__getitem__, default=default)


class ActionResult(ApiModel):
    """Outcome of a single manual test step within an iteration."""

    action_path: str
    iteration_id: int = 1
    step_identifier: int
    outcome: Outcome
    error_message: str | None = None

    @classmethod
    def for_step(cls, step_id: str, outcome: Outcome) -> "ActionResult":
        """Create an action result for a zero-based step id taken from a title."""
        step_identifier = int(step_id) + 1
        return cls(
            action_path=to_eight_digit_hex(step_identifier),
            step_identifier=step_identifier,
            outcome=outcome,
        )


class IterationRecord(ApiModel):
    """Single iteration of a test result, composed of ordered step results."""

    id: int = 1
    outcome: Outcome
    action_results: list[ActionResult] = Field(default_factory=list)

    @classmethod
    def for_steps(cls, step_ids: Sequence[str], outcome: Outcome) -> "IterationRecord":
        """Create the iteration scaffolding for the given step ids."""
        return cls(
            outcome=outcome,
            action_results=[ActionResult.for_step(step, outcome) for step in step_ids],
        )

    def apply_outcome(
        self,
        outcome: Outcome,
        error_message: str | None = None,
        *,
        keep_failed: bool = False,
    ) -> None:
        """Set every step to ``outcome`` and derive the iteration outcome.

        With ``keep_failed`` steps that already failed stay failed.
        """
        for action in self.action_results:
            if keep_failed and action.outcome == "Failed":
                continue
            action.outcome = outcome
            action.error_message = error_message if outcome == "Failed" else None
        self.outcome = worst_outcome(
            (action.outcome for action in self.action_results), default=outcome
        )

    @property
    def has_failed_steps(self) -> bool:
        """Whether any step of this iteration failed."""
        return any(action.outcome == "Failed" for action in self.action_results)


class TestResultRecord(ApiModel):
    """Local copy of a test result inside the active Azure DevOps run."""

    __test__ = False

    id: int
    outcome: Outcome
    state: ResultState = "Pending"
    comment: str | None = None
    duration_in_ms: float = 0.0
    iteration_details: list[IterationRecord] = Field(default_factory=list)

    @property
    def has_steps(self) -> bool:
        """Whether the record carries step scaffolding."""
        return bool(self.iteration_details)
