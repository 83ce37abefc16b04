"""Shared response model helpers."""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal in Python, number in JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase JSON (model_dump(by_alias=True))."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
