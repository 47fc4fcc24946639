from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire model: camelCase JSON keys, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StrictShapeModel(CamelModel):
    """Model for LLM output.

    Unknown keys are rejected, numbers in string fields are stringified, and an
    explicit ``null`` on a field with a default factory becomes that default, so
    every array is present after validation.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        coerce_numbers_to_str=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            factory = cls.model_fields[info.field_name].default_factory
            if factory is not None:
                return factory()
        return value
