"""Configuration for the Azure DevOps test run reporter."""

import json
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel
from yarl import URL

PAT_ENV_VAR = "AZURE_DEVOPS_PAT"
DEFAULT_SUITE_NAME = "e2e"


class _CamelConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportAttachmentConfig(_CamelConfig):
    """Report file attached to the run when it completes."""

    type: str = "HTML"
    path: Path
    name: str
    comment: str | None = None
    iteration_id: int | None = None


class ReporterConfig(_CamelConfig):
    """Configuration shared by the reporter and the run service."""

    organization: str = Field(min_length=1)
    project: str = Field(min_length=1)
    pat: SecretStr
    plan_id: int
    suite_id: int | None = None
    suite_mapping: Mapping[str, int] = Field(default_factory=dict)
    run_name: str | None = None
    attach_report: ReportAttachmentConfig | None = None
    screenshot_path: Path = Path(".artifacts", "screenshots")
    meta_path: Path = Path("test-run-meta.json")
    manage_run: bool = True
    api_base_url: str = "https://dev.azure.com"

    @field_validator("pat")
    @classmethod
    def _pat_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("personal access token must not be empty")
        return value

    @field_validator("api_base_url")
    @classmethod
    def _base_url_absolute(cls, value: str) -> str:
        url = URL(value)
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("API base URL must be an absolute http(s) URL")
        return value

    @property
    def api_origin(self) -> str:
        """Scheme, host and port of the API base URL."""
        return str(URL(self.api_base_url).origin())

    @property
    def api_path_prefix(self) -> str:
        """Path of the API base URL, e.g. ``/tfs`` for an on-premises server."""
        return URL(self.api_base_url).path.rstrip("/")

    def resolve_suite_id(self, suite_name: str | None = None) -> int | None:
        """Return the explicit suite id, or look ``suite_name`` up in the mapping."""
        if self.suite_id is not None:
            return self.suite_id
        return self.suite_mapping.get(suite_name or DEFAULT_SUITE_NAME)


def load_config(
    path: Path, environ: Mapping[str, str] | None = None
) -> ReporterConfig:
    """Load reporter configuration from a JSON file.

    The personal access token may be left out of the file and supplied through
    the ``AZURE_DEVOPS_PAT`` environment variable instead.
    """
    environ = os.environ if environ is None else environ
    data = json.loads(path.read_text())
    if "pat" not in data and PAT_ENV_VAR in environ:
        data["pat"] = environ[PAT_ENV_VAR]
    return ReporterConfig.model_validate(data)
