"""
Category schemas for API.
"""

from datetime import datetime
from ninja import Schema
from pydantic import Field, HttpUrl


class SourceUrlOut(Schema):
    url: str
    description: str | None = None
    priority: int = 0


class CategoryOut(Schema):
    """Category output - camelCase for frontend."""

    id: str
    name: str
    slug: str
    description: str | None = None
    color: str
    isActive: bool
    sourceUrls: list[SourceUrlOut] = []
    postCount: int = 0
    createdAt: datetime
    updatedAt: datetime


class CategoryIn(Schema):
    """Category create input."""

    name: str = Field(min_length=1, max_length=100)
    slug: str | None = None
    description: str | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    isActive: bool = True


class CategoryUpdateIn(Schema):
    """Category update input."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = None
    description: str | None = None
    color: str | None = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    isActive: bool | None = None


class SourceUrlIn(Schema):
    """Source site to add to a category."""

    url: HttpUrl
    description: str | None = None
    priority: int = Field(default=0, ge=0)
