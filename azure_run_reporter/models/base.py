"""Base model configuration for all data structures."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Model(BaseModel):
    """Base model with standard configuration."""

    model_config = ConfigDict(frozen=True)


class ApiModel(BaseModel):
    """Mutable model serialized with Azure DevOps camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_payload(self) -> dict[str, object]:
        """Dump the model as an API request body."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
