"""Extract Azure DevOps test case and step identifiers from test titles."""

import re

CASE_ID_PATTERN = re.compile(r"\bC(\d+)\b", re.ASCII)
STEP_ID_PATTERN = re.compile(r"\[S(\d+)\]", re.ASCII)


def extract_case_id(text: object) -> str | None:
    """Return the numeric part of the first whole-word ``C<digits>`` token.

    Example: ``"C2370 Login works"`` yields ``"2370"``; ``"XC2370Y"`` yields None.
    """
    if not text or not isinstance(text, str):
        return None
    if match := CASE_ID_PATTERN.search(text):
        return match.group(1)
    return None


def extract_step_ids(text: object) -> list[str]:
    """Return every ``[S<digits>]`` step id in left-to-right order."""
    if not text or not isinstance(text, str):
        return []
    return STEP_ID_PATTERN.findall(text)


def to_eight_digit_hex(number: int | str) -> str:
    """Format a number as lowercase hex, zero padded to eight digits."""
    return format(int(number), "08x")
