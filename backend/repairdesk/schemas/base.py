from __future__ import annotations
from typing import Annotated
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Positive integer primary key as sent by API clients.
EntityId = Annotated[int, Field(gt=0, strict=True)]


class Payload(BaseModel):
    """Request body base: camelCase on the wire, snake_case accepted too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')
