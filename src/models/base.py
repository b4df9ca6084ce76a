"""Declarative base and shared column types."""

from __future__ import annotations

from enum import Enum as PyEnum

from sqlalchemy import JSON, Enum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase

JSONType = JSON().with_variant(JSONB(), "postgresql")


def enum_column(enum_class: type[PyEnum], name: str) -> Enum:
    """Store a Python enum by value in a portable VARCHAR column."""
    return Enum(
        enum_class,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )


class Base(DeclarativeBase):
    """Root declarative class for all ranking tables."""


__all__ = ["Base", "JSONType", "enum_column"]
