"""
Post domain records - framework-free, shared by every collection source.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Union


class PostStatus:
    DRAFT = "draft"
    PUBLISHED = "published"

    ALL = (DRAFT, PUBLISHED)


class AuthorRole:
    ADMIN = "admin"
    AI = "ai"

    ALL = (ADMIN, AI)


@dataclass(frozen=True)
class RoleAuthor:
    """Author identified only by role (admin-written or AI-written)."""

    role: str
    kind: str = field(default="role", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "role": self.role}


@dataclass(frozen=True)
class NamedAuthor:
    """Author embedded as a named record."""

    name: str
    avatar_url: str | None = None
    kind: str = field(default="named", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "name": self.name, "avatarUrl": self.avatar_url}


Author = Union[RoleAuthor, NamedAuthor]


def parse_author(value: Any) -> Author:
    """
    Build an Author from any of the shapes found in stored or submitted posts.

    Accepts an Author instance, a tagged dict ({"kind": "role"|"named", ...}),
    a legacy dict ({"name", "avatarUrl"}) or a bare string, where "admin"
    and "ai" are roles and anything else is a name.
    """
    if isinstance(value, (RoleAuthor, NamedAuthor)):
        return value
    if isinstance(value, str):
        if value in AuthorRole.ALL:
            return RoleAuthor(role=value)
        return NamedAuthor(name=value)
    if isinstance(value, dict):
        kind = value.get("kind")
        if kind == "role" or (kind is None and "role" in value and "name" not in value):
            role = value.get("role")
            if role not in AuthorRole.ALL:
                raise ValueError(f"Unknown author role: {role!r}")
            return RoleAuthor(role=role)
        name = value.get("name")
        if not name:
            raise ValueError("Named author requires a name")
        return NamedAuthor(
            name=name,
            avatar_url=value.get("avatarUrl", value.get("avatar_url")),
        )
    if value is None:
        return RoleAuthor(role=AuthorRole.ADMIN)
    raise ValueError(f"Unsupported author value: {value!r}")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PostRecord:
    """A single article with content, classification and publication metadata."""

    id: str
    slug: str
    title: str
    category: str
    excerpt: str = ""
    content: str = ""
    source_url: str | None = None
    tags: list[str] = field(default_factory=list)
    image_url: str | None = None
    author: Author = field(default_factory=lambda: RoleAuthor(role=AuthorRole.ADMIN))
    status: str = PostStatus.DRAFT
    publish_date: datetime = field(default_factory=utcnow)
    featured: bool = False

    @property
    def is_published(self) -> bool:
        return self.status == PostStatus.PUBLISHED

    def copy(self, **changes: Any) -> "PostRecord":
        """Return a new record with the given fields replaced."""
        if "tags" not in changes:
            changes["tags"] = list(self.tags)
        return replace(self, **changes)


# Fields a caller may set on create/update, in domain (snake_case) naming.
EDITABLE_FIELDS = (
    "slug",
    "title",
    "excerpt",
    "content",
    "source_url",
    "category",
    "tags",
    "image_url",
    "author",
    "status",
    "publish_date",
    "featured",
)


@dataclass(frozen=True)
class PostCriteria:
    """Filter criteria for the post pipeline. Empty or None values are inactive."""

    search: str | None = None
    category: str | None = None
    tag: str | None = None
    status: str | None = None
    featured: bool | None = None

    def with_changes(self, **changes: Any) -> "PostCriteria":
        return replace(self, **changes)

    @property
    def search_term(self) -> str:
        return (self.search or "").strip()
