"""Tests for the pytest plugin helpers."""

from types import ModuleType, SimpleNamespace
from unittest.mock import Mock

import pytest

from azure_run_reporter.plugin import (
    capture_screenshot,
    docstring_summary,
    item_title,
    parent_title,
)


class FakePage:
    """Playwright page lookalike."""

    def screenshot(self) -> bytes:
        """Return PNG bytes."""
        return b"page-png"


class FakeDriver:
    """Selenium driver lookalike."""

    def get_screenshot_as_png(self) -> bytes:
        """Return PNG bytes."""
        return b"driver-png"


class BrokenDriver:
    """Driver whose session is gone."""

    def get_screenshot_as_png(self) -> bytes:
        """Fail like a closed session."""
        raise RuntimeError("session deleted")


def tracked() -> None:
    """C42 Pay by card [S1]

    More details.
    """


def untracked() -> None:
    pass


class Checkout:
    """C1200 Checkout"""


class Plain:
    pass


@pytest.mark.parametrize(
    ("obj", "expected"),
    [
        (tracked, "C42 Pay by card [S1]"),
        (untracked, None),
        (Checkout, "C1200 Checkout"),
        (Plain, None),
        (None, None),
    ],
)
def test_docstring_summary(obj: object, expected: str | None) -> None:
    """Returns the first line of the object's own docstring."""
    assert docstring_summary(obj) == expected


def test_item_title_prefers_docstring() -> None:
    """Uses the test docstring, falling back to the test name."""
    assert item_title(SimpleNamespace(name="test_x", function=tracked)) == (
        "C42 Pay by card [S1]"
    )
    assert item_title(SimpleNamespace(name="test_x", function=untracked)) == "test_x"


def test_parent_title_uses_class_then_module() -> None:
    """Uses the class docstring or name, else the module docstring."""
    module = ModuleType("test_mod", "C7 Checkout module")

    assert parent_title(SimpleNamespace(cls=Checkout, module=module)) == (
        "C1200 Checkout"
    )
    assert parent_title(SimpleNamespace(cls=Plain, module=module)) == "Plain"
    assert parent_title(SimpleNamespace(cls=None, module=module)) == (
        "C7 Checkout module"
    )
    assert parent_title(SimpleNamespace(cls=None, module=ModuleType("m"))) is None


class TestCaptureScreenshot:
    """Tests for capture_screenshot."""

    def test_uses_playwright_page(self) -> None:
        """Takes the screenshot from the page fixture."""
        assert capture_screenshot(Mock(funcargs={"page": FakePage()})) == b"page-png"

    def test_uses_selenium_driver(self) -> None:
        """Takes the screenshot from a driver fixture."""
        item = Mock(funcargs={"driver": FakeDriver()})

        assert capture_screenshot(item) == b"driver-png"

    def test_ignores_fixtures_without_screenshot_support(self) -> None:
        """A Playwright browser or unrelated fixtures give no screenshot."""
        item = Mock(funcargs={"browser": object(), "tmp_path": "/tmp"})

        assert capture_screenshot(item) is None

    def test_logs_capture_errors(self, caplog: pytest.LogCaptureFixture) -> None:
        """Capture errors are logged and give no screenshot."""
        item = Mock(funcargs={"driver": BrokenDriver()})

        assert capture_screenshot(item) is None
        assert "Failed to capture screenshot from 'driver'" in caplog.text
