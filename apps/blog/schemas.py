"""
Blog schemas for API.
"""

from datetime import datetime
from typing import Any
from ninja import Schema
from pydantic import Field


class AuthorOut(Schema):
    """Tagged author: kind "role" carries role, kind "named" carries name/avatarUrl."""

    kind: str
    role: str | None = None
    name: str | None = None
    avatarUrl: str | None = None


class PostOut(Schema):
    """Post output - camelCase for frontend."""

    id: str
    slug: str
    title: str
    excerpt: str = ""
    content: str = ""
    sourceUrl: str | None = None
    imageUrl: str | None = None
    category: str
    tags: list[str] = []
    author: AuthorOut
    status: str
    publishDate: datetime
    featured: bool = False


class PaginationOut(Schema):
    """Pagination info."""

    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int


class PostsListOut(Schema):
    """Paginated posts list response."""

    posts: list[PostOut]
    pagination: PaginationOut


class PostCreateIn(Schema):
    """Post create input."""

    title: str
    category: str
    slug: str | None = None
    excerpt: str | None = None
    content: str | None = None
    sourceUrl: str | None = None
    imageUrl: str | None = None
    tags: list[str] = []
    author: dict[str, Any] | str | None = None
    status: str = "draft"
    publishDate: datetime | None = None
    featured: bool = False


class PostUpdateIn(Schema):
    """Post update input. Only fields present in the body are applied."""

    title: str | None = None
    category: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content: str | None = None
    sourceUrl: str | None = None
    imageUrl: str | None = None
    tags: list[str] | None = None
    author: dict[str, Any] | str | None = None
    status: str | None = None
    publishDate: datetime | None = None
    featured: bool | None = None


class CardOut(Schema):
    """Card view model for listing, home and category pages."""

    id: str
    slug: str
    title: str
    excerpt: str = ""
    imageUrl: str | None = None
    authorName: str
    authorAvatarUrl: str | None = None
    date: str
    publishDate: datetime
    category: str
    tags: list[str] = []
    featured: bool = False


class ListingOut(Schema):
    """Public listing page: cards plus pagination."""

    cards: list[CardOut]
    pagination: PaginationOut


class HomeOut(Schema):
    featured: list[CardOut]
    recent: list[CardOut]


class SummarizeIn(Schema):
    content: str = Field(min_length=1)


class SummaryOut(Schema):
    title: str
    body: str
    tags: list[str]
    category: str


class GeneratePostIn(Schema):
    keyword: str = Field(min_length=1)
    category: str
    sourceUrl: str | None = None
    instruction: str | None = None
    provider: str | None = None
    model: str | None = None


class PostDraftOut(Schema):
    """Unsaved post-like draft produced by the generator."""

    slug: str
    title: str
    excerpt: str
    content: str
    sourceUrl: str | None = None
    category: str
    tags: list[str] = []
    author: AuthorOut
    status: str


class ModelProviderOut(Schema):
    provider: str
    models: list[str]
    default: str
