"""Base DTO classes."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DTO(BaseModel):
    """Base class for application DTOs."""

    model_config = ConfigDict(frozen=True)


class WireDTO(DTO):
    """DTO exchanged with collaborators as camelCase JSON."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_json_body(self, exclude_none: bool = True) -> dict:
        """Serialize to a JSON request body using camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=exclude_none)
