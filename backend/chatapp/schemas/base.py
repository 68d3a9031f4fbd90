"""
Base schemas for the chat API.

Wire fields are camelCase (`senderUserId`, `roomName`); Python attributes
stay snake_case. Both spellings are accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StandardizedModel(BaseModel):
    """Base model with camelCase aliases for every field."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        from_attributes=True,
    )

    def to_wire(self) -> dict:
        """JSON-ready dict using the wire (alias) names."""
        return self.model_dump(by_alias=True, mode="json")
