from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

SCHEMA_CONFIG = ConfigDict(
    frozen=True,
    from_attributes=True,
    populate_by_name=True,
    extra="ignore",
)

CAMEL_SCHEMA_CONFIG = ConfigDict(
    frozen=True,
    from_attributes=True,
    populate_by_name=False,
    extra="ignore",
    alias_generator=to_camel,
    serialize_by_alias=True,
)


class BaseSchema(BaseModel):
    """Base schema with shared configuration."""

    model_config = SCHEMA_CONFIG


class CamelSchema(BaseModel):
    """Schema whose wire representation uses camelCase keys."""

    model_config = CAMEL_SCHEMA_CONFIG


__all__ = ["CAMEL_SCHEMA_CONFIG", "CamelSchema", "BaseSchema", "SCHEMA_CONFIG"]
