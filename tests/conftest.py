"""Shared fixtures."""

from pathlib import Path

import pytest
from pydantic import SecretStr

from azure_run_reporter.config import ReporterConfig


@pytest.fixture
def config(tmp_path: Path) -> ReporterConfig:
    """Create reporter configuration writing into a temporary directory."""
    return ReporterConfig(
        organization="test-org",
        project="test-project",
        pat=SecretStr("test-pat-token"),
        plan_id=7,
        suite_id=11,
        screenshot_path=tmp_path / "screenshots",
        meta_path=tmp_path / "test-run-meta.json",
        api_base_url="http://azure.test",
    )
