"""Base model and enum for vendor API responses.

Every vendor DTO inherits from :class:`HomePollBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase API keys map
  automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops ``None`` values so
  the field's "undefined" default is used instead.
* An optional ``raw`` dict capturing the original payload, filled for
  models that declare a ``raw`` field.

String enums inherit from :class:`HomePollStrEnum` which resolves any
value without a mapped member to ``UNKNOWN``.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class HomePollStrEnum(str, enum.Enum):
    """Base for vendor string enums.

    Every subclass **must** define ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> HomePollStrEnum:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.upper():
                    return member
        unknown: HomePollStrEnum = cls["UNKNOWN"]
        return unknown


class HomePollBaseModel(BaseModel):
    """Base for vendor response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        """Drop ``None`` values and stash the raw payload where supported."""
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        if "raw" in cls.model_fields and "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
