from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for payloads whose JSON keys are the camelCase form of the field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


__all__ = ["WireModel"]
