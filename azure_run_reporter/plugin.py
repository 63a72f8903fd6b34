"""Pytest plugin reporting test outcomes to an Azure DevOps test run.

Enabled with ``--azure-devops-config=PATH`` (or the ``azure_devops_config``
ini option). Test case ids are read from the first docstring line of a test,
falling back to its name, then from the enclosing class or module::

    class TestCheckout:
        \"\"\"C1200 Checkout\"\"\"

        def test_pay_by_card(self, page):
            \"\"\"C1234 Pay by card [S1][S2]\"\"\"
"""

import asyncio
import inspect
import logging
from collections.abc import Coroutine, Generator
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any

import pytest

from azure_run_reporter.client import TestRunClient
from azure_run_reporter.config import ReporterConfig, load_config
from azure_run_reporter.models.events import RunnerStats, TestError, TestEvent
from azure_run_reporter.reporter import TestRunReporter
from azure_run_reporter.service import TestRunService

log = logging.getLogger(__name__)

PLUGIN_NAME = "azure-devops-reporter"

# Fixtures that may hold a browser able to take a screenshot
SCREENSHOT_FIXTURES = ("page", "driver", "selenium", "browser")


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register Azure DevOps reporting options."""
    group = parser.getgroup("azure-devops", "Azure DevOps test run reporting")
    group.addoption(
        "--azure-devops-config",
        dest="azure_devops_config",
        metavar="PATH",
        default=None,
        help="JSON configuration file; enables reporting to Azure DevOps",
    )
    group.addoption(
        "--azure-devops-suite",
        dest="azure_devops_suite",
        metavar="NAME",
        default=None,
        help="Suite name looked up in suiteMapping (default: e2e)",
    )
    parser.addini(
        "azure_devops_config",
        "JSON configuration file; enables reporting to Azure DevOps",
        default="",
    )
    parser.addini(
        "azure_devops_suite", "Suite name looked up in suiteMapping", default=""
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the reporting plugin when a configuration is given."""
    if option := config.getoption("azure_devops_config"):
        config_path = Path(option)
    elif ini_value := config.getini("azure_devops_config"):
        config_path = config.rootpath / ini_value
    else:
        return

    suite_name = (
        config.getoption("azure_devops_suite")
        or config.getini("azure_devops_suite")
        or None
    )
    plugin = AzureDevOpsPlugin(
        config=load_config(config_path),
        suite_name=suite_name,
        is_worker=hasattr(config, "workerinput"),
    )
    config.pluginmanager.register(plugin, PLUGIN_NAME)


def pytest_unconfigure(config: pytest.Config) -> None:
    """Release the plugin's event loop and HTTP session."""
    plugin = config.pluginmanager.get_plugin(PLUGIN_NAME)
    if isinstance(plugin, AzureDevOpsPlugin):
        plugin.close()
        config.pluginmanager.unregister(plugin)


class AzureDevOpsPlugin:
    """Binds pytest hooks to the test run service and reporter.

    Every hook runs its coroutine to completion on a private event loop before
    returning, so lifecycle events reach the reporter strictly in order.
    Reporting failures are logged and never fail the test session.
    """

    def __init__(
        self, *, config: ReporterConfig, suite_name: str | None, is_worker: bool
    ) -> None:
        self.config = config
        self.suite_name = suite_name
        self.is_worker = is_worker
        self.reporter: TestRunReporter | None = None
        self.service: TestRunService | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stack = AsyncExitStack()
        self._skipped = 0

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        """Open the API session and, in the controller, create the run."""
        self._loop = asyncio.new_event_loop()
        client = self._loop.run_until_complete(
            self._stack.enter_async_context(TestRunClient.from_config(self.config))
        )
        self.reporter = TestRunReporter.from_config(self.config, client)
        self.service = TestRunService.from_config(self.config, client)

        if self._owns_run:
            self._run(self.service.on_prepare(self.suite_name))

    @pytest.hookimpl(tryfirst=True)
    def pytest_runtest_protocol(
        self, item: pytest.Item, nextitem: pytest.Item | None
    ) -> None:
        """Report the test as started."""
        if self.reporter is not None:
            self._run(self.reporter.on_test_start(build_event(item)))

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_makereport(
        self, item: pytest.Item, call: pytest.CallInfo[None]
    ) -> Generator[None, pytest.TestReport, pytest.TestReport]:
        """Report skips, failed setups and test call outcomes."""
        report = yield
        if self.reporter is None:
            return report

        if report.skipped:
            self._skipped += 1
            self._run(self.reporter.on_test_skip(build_event(item, report, call)))
        elif report.when == "call" or (report.when == "setup" and report.failed):
            screenshot = capture_screenshot(item) if report.failed else None
            event = build_event(item, report, call, screenshot=screenshot)
            self._run(self.reporter.on_test_end(event))
        return report

    @pytest.hookimpl(trylast=True)
    def pytest_sessionfinish(
        self, session: pytest.Session, exitstatus: int | pytest.ExitCode
    ) -> None:
        """Flush results and, in the controller, complete the run."""
        if self.reporter is not None:
            stats = RunnerStats(
                total=session.testscollected,
                failures=session.testsfailed,
                skipped=self._skipped,
            )
            self._run(self.reporter.on_runner_end(stats))
        if self.service is not None and self._owns_run:
            self._run(self.service.on_complete(int(exitstatus)))
        self.close()

    @property
    def _owns_run(self) -> bool:
        return self.config.manage_run and not self.is_worker

    def close(self) -> None:
        """Close the HTTP session and the event loop."""
        if self._loop is None:
            return
        loop, self._loop = self._loop, None
        try:
            loop.run_until_complete(self._stack.aclose())
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            loop.close()
        self.reporter = None
        self.service = None

    def _run(self, coro: Coroutine[Any, Any, Any]) -> None:
        if self._loop is None:
            coro.close()
            return
        try:
            self._loop.run_until_complete(coro)
        except Exception:
            log.exception("Azure DevOps reporting failed")


def build_event(
    item: pytest.Item,
    report: pytest.TestReport | None = None,
    call: pytest.CallInfo[None] | None = None,
    *,
    screenshot: bytes | None = None,
) -> TestEvent:
    """Describe a pytest item as a lifecycle event."""
    state = "pending"
    duration_ms = 0.0
    error = None
    if report is not None:
        duration_ms = report.duration * 1000
        if report.passed:
            state = "passed"
        elif report.skipped:
            state = "skipped"
        else:
            state = "failed"
            message = (
                call.excinfo.exconly()
                if call is not None and call.excinfo is not None
                else "Test failed"
            )
            error = TestError(message=message, stack=report.longreprtext)

    return TestEvent(
        title=item_title(item),
        parent=parent_title(item),
        full_title=item.nodeid,
        state=state,
        duration_ms=duration_ms,
        error=error,
        screenshot=screenshot,
    )


def item_title(item: pytest.Item) -> str:
    """First docstring line of the test function, else the test name."""
    return docstring_summary(getattr(item, "function", None)) or item.name


def parent_title(item: pytest.Item) -> str | None:
    """First docstring line or name of the test class, else the module docstring."""
    cls = getattr(item, "cls", None)
    if cls is not None:
        return docstring_summary(cls) or cls.__name__
    return docstring_summary(getattr(item, "module", None))


def docstring_summary(obj: object) -> str | None:
    """Return the first line of the object's own docstring."""
    doc = getattr(obj, "__doc__", None) if obj is not None else None
    if not doc or not isinstance(doc, str):
        return None
    return inspect.cleandoc(doc).splitlines()[0].strip() or None


def capture_screenshot(item: pytest.Item) -> bytes | None:
    """Take a PNG screenshot from a Playwright page or Selenium driver fixture."""
    funcargs: dict[str, Any] = getattr(item, "funcargs", {})
    for name in SCREENSHOT_FIXTURES:
        target = funcargs.get(name)
        if target is None:
            continue
        try:
            if callable(getattr(target, "get_screenshot_as_png", None)):
                data = target.get_screenshot_as_png()
            elif name == "page" and callable(getattr(target, "screenshot", None)):
                data = target.screenshot()
            else:
                continue
        except Exception:
            log.warning("Failed to capture screenshot from '%s'", name, exc_info=True)
            return None
        if isinstance(data, bytes):
            return data
        if inspect.iscoroutine(data):
            data.close()
    return None
