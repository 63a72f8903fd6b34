"""Runner-neutral lifecycle events consumed by the reporter."""

from dataclasses import dataclass, field
from typing import Literal

type TestState = Literal["passed", "failed", "skipped", "pending"]


@dataclass(frozen=True, kw_only=True)
class TestError:
    """Failure details of a test."""

    __test__ = False

    message: str
    stack: str = ""


@dataclass(frozen=True, kw_only=True)
class TestEvent:
    """A test as seen by the runner at one point of its lifecycle.

    ``title`` is the test's own title, ``parent`` the title of the enclosing
    suite. Case and step identifiers are parsed from these.
    """

    __test__ = False

    title: str
    parent: str | None = None
    full_title: str = ""
    state: TestState = "pending"
    duration_ms: float = 0.0
    error: TestError | None = None
    screenshot: bytes | None = field(default=None, repr=False)


@dataclass(frozen=True, kw_only=True)
class RunnerStats:
    """Totals reported by the runner when it finishes."""

    total: int = 0
    failures: int = 0
    skipped: int = 0
