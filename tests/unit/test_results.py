"""Tests for result record models."""

import pytest

from azure_run_reporter.models.results import (
    ActionResult,
    IterationRecord,
    Outcome,
    TestResultRecord,
    worst_outcome,
)


@pytest.mark.parametrize(
    ("outcomes", "expected"),
    [
        (["Passed", "Passed"], "Passed"),
        (["Passed", "Failed", "Passed"], "Failed"),
        (["Passed", "InProgress"], "InProgress"),
        (["NotApplicable", "Passed"], "NotApplicable"),
        ([], "NotStarted"),
    ],
)
def test_worst_outcome(outcomes: list[Outcome], expected: Outcome) -> None:
    """Picks the most severe outcome."""
    assert worst_outcome(outcomes) == expected


def test_action_result_for_step_is_one_based() -> None:
    """Step ids from titles are shifted to one-based identifiers."""
    action = ActionResult.for_step("1", "InProgress")

    assert action.step_identifier == 2
    assert action.action_path == "00000002"
    assert action.iteration_id == 1


class TestIterationRecord:
    """Tests for IterationRecord."""

    def test_apply_outcome_sets_all_steps(self) -> None:
        """Applies outcome and message to every step."""
        iteration = IterationRecord.for_steps(["1", "2"], "InProgress")

        iteration.apply_outcome("Failed", "boom")

        assert iteration.outcome == "Failed"
        assert [a.outcome for a in iteration.action_results] == ["Failed", "Failed"]
        assert [a.error_message for a in iteration.action_results] == ["boom", "boom"]

    def test_apply_passed_outcome_clears_messages(self) -> None:
        """Passing steps carry no error message."""
        iteration = IterationRecord.for_steps(["1"], "Failed")
        iteration.apply_outcome("Failed", "boom")

        iteration.apply_outcome("Passed", "ignored")

        assert iteration.outcome == "Passed"
        assert iteration.action_results[0].error_message is None

    def test_apply_outcome_keeps_failed_steps(self) -> None:
        """Failed steps stay failed and fail the iteration."""
        iteration = IterationRecord.for_steps(["1", "2"], "InProgress")
        iteration.action_results[1].outcome = "Failed"

        iteration.apply_outcome("Passed", keep_failed=True)

        assert [a.outcome for a in iteration.action_results] == ["Passed", "Failed"]
        assert iteration.outcome == "Failed"
        assert iteration.has_failed_steps


class TestTestResultRecord:
    """Tests for TestResultRecord serialization."""

    def test_payload_without_steps(self) -> None:
        """Serializes with camelCase names and empty iteration details."""
        record = TestResultRecord(
            id=100000,
            outcome="Passed",
            state="Completed",
            comment="Test passed.",
            duration_in_ms=1500.0,
        )

        assert record.to_payload() == {
            "id": 100000,
            "outcome": "Passed",
            "state": "Completed",
            "comment": "Test passed.",
            "durationInMs": 1500.0,
            "iterationDetails": [],
        }
        assert not record.has_steps

    def test_payload_with_steps(self) -> None:
        """Serializes iteration details and omits unset error messages."""
        record = TestResultRecord(
            id=100000,
            outcome="InProgress",
            iteration_details=[IterationRecord.for_steps(["1"], "InProgress")],
        )

        payload = record.to_payload()

        assert record.has_steps
        assert payload["state"] == "Pending"
        assert payload["iterationDetails"] == [
            {
                "id": 1,
                "outcome": "InProgress",
                "actionResults": [
                    {
                        "actionPath": "00000002",
                        "iterationId": 1,
                        "stepIdentifier": 2,
                        "outcome": "InProgress",
                    }
                ],
            }
        ]
