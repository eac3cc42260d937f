"""Base model with camelCase serialization for API input/output."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for all wire models: accepts and emits camelCase, populates by field name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
