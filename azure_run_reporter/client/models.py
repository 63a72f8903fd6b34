"""Pydantic models for Azure DevOps Test Plans API responses."""

from pydantic import BaseModel, Field


class TestPoint(BaseModel):
    """A test point of a suite."""

    __test__ = False

    id: int


class TestPointList(BaseModel):
    """Response of the suite points listing."""

    value: list[TestPoint] = Field(default_factory=list)
    count: int | None = None


class TestRun(BaseModel):
    """A test run from the Azure DevOps API."""

    __test__ = False

    id: int
    name: str | None = None
    state: str | None = None
    web_access_url: str | None = Field(default=None, alias="webAccessUrl")


class ShallowReference(BaseModel):
    """Reference to another Azure DevOps resource."""

    id: int | str
    name: str | None = None


class TestCaseResult(BaseModel):
    """A result slot inside a test run."""

    __test__ = False

    id: int
    test_case: ShallowReference | None = Field(default=None, alias="testCase")
    outcome: str | None = None


class TestCaseResultList(BaseModel):
    """Response of the run results listing."""

    value: list[TestCaseResult] = Field(default_factory=list)
