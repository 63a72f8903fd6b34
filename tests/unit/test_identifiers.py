"""Tests for test case and step id extraction."""

import pytest

from azure_run_reporter.identifiers import (
    extract_case_id,
    extract_step_ids,
    to_eight_digit_hex,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("C123 Login works", "123"),
        ("Login works C123", "123"),
        ("Suite C42 [S1][S2]", "42"),
        ("(C7) checkout", "7"),
        ("C1 then C2", "1"),
        ("XC123Y", None),
        ("C123abc", None),
        ("C", None),
        ("c123 lower case", None),
        ("C123é login", "123"),
        ("C١٢٣ login", None),
        ("no id here", None),
        ("", None),
        (None, None),
        (123, None),
    ],
)
def test_extract_case_id(text: object, expected: str | None) -> None:
    """Extracts the first whole-word C<digits> token."""
    assert extract_case_id(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Suite C42 [S1][S2]", ["1", "2"]),
        ("[S3] first [S1] second", ["3", "1"]),
        ("[S2][S2]", ["2", "2"]),
        ("[s1] [S] [SX1] S1", []),
        ("[S١] [S2]", ["2"]),
        ("no steps", []),
        ("", []),
        (None, []),
        (["[S1]"], []),
    ],
)
def test_extract_step_ids(text: object, expected: list[str]) -> None:
    """Extracts all bracketed step ids in order."""
    assert extract_step_ids(text) == expected


@pytest.mark.parametrize(
    ("number", "expected"),
    [
        (0, "00000000"),
        (1, "00000001"),
        (255, "000000ff"),
        ("16", "00000010"),
        (0xFFFFFFFF, "ffffffff"),
    ],
)
def test_to_eight_digit_hex(number: int | str, expected: str) -> None:
    """Pads hex representation to eight digits."""
    assert to_eight_digit_hex(number) == expected
    assert len(to_eight_digit_hex(number)) == 8
