# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for tailbench."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TailbenchBaseModel(BaseModel):
    """Base model with shared config for tailbench schemas.

    Fields serialize with camelCase aliases (``by_alias=True``) for the
    view layer and accept either spelling on input.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class TailbenchRecord(TailbenchBaseModel):
    """Immutable entity record. Updates go through ``model_copy``."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        frozen=True,
    )
