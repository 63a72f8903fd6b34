"""Azure DevOps test run client module."""

from azure_run_reporter.client.client import (
    TRANSPORT_ERRORS,
    AzureDevOpsApiError,
    TestRunClient,
)

__all__ = ["TRANSPORT_ERRORS", "AzureDevOpsApiError", "TestRunClient"]
