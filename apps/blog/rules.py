"""
Post editing rules shared by every collection source.

Covers slug derivation and uniqueness, field normalisation, category
validation and the draft -> published publish-date stamp.
"""

import re
from collections.abc import Callable, Collection
from datetime import datetime, timezone
from typing import Any

from utils.exceptions import ValidationError
from .domain import EDITABLE_FIELDS, PostRecord, PostStatus, parse_author, utcnow


def slugify(text: str) -> str:
    """Generate slug from text."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[-\s]+", "-", text)
    return text.strip("-")


def derive_slug(title: str, post_id: str) -> str:
    """Slug from the title, or post-<id> when the title has no word characters."""
    return slugify(title or "") or f"post-{post_id}"


def unique_slug(base: str, is_taken: Callable[[str], bool]) -> str:
    """Append -2, -3, ... to base until it is free."""
    slug = base
    suffix = 2
    while is_taken(slug):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def parse_publish_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError.for_field("publishDate", f"Invalid ISO date-time: {value!r}")
    else:
        raise ValidationError.for_field("publishDate", "publishDate must be an ISO date-time")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_tags(tags: Any) -> list[str]:
    """Trim, drop empties and de-duplicate while keeping order. Accepts 'a, b' strings."""
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    if not isinstance(tags, (list, tuple)):
        raise ValidationError.for_field("tags", "tags must be a list of strings")
    result: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError.for_field("tags", "tags must be a list of strings")
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def normalize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and coerce a dict of editable fields in domain naming."""
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(
            f"Unknown post fields: {', '.join(sorted(unknown))}",
            errors=[{"field": name, "message": "Unknown field"} for name in sorted(unknown)],
        )

    normalized = dict(fields)
    if "status" in normalized and normalized["status"] not in PostStatus.ALL:
        raise ValidationError.for_field(
            "status", f"status must be one of: {', '.join(PostStatus.ALL)}"
        )
    if "tags" in normalized:
        normalized["tags"] = normalize_tags(normalized["tags"])
    if "author" in normalized:
        try:
            normalized["author"] = parse_author(normalized["author"])
        except ValueError as e:
            raise ValidationError.for_field("author", str(e))
    if "publish_date" in normalized:
        if normalized["publish_date"] is None:
            del normalized["publish_date"]
        else:
            normalized["publish_date"] = parse_publish_date(normalized["publish_date"])
    for name in ("title", "excerpt", "content"):
        if name in normalized and normalized[name] is None:
            normalized[name] = ""
    if "slug" in normalized:
        normalized["slug"] = (normalized["slug"] or "").strip()
    if "featured" in normalized:
        normalized["featured"] = bool(normalized["featured"])
    return normalized


def check_category(category: Any, known_categories: Collection[str]) -> None:
    if not category or category not in known_categories:
        raise ValidationError.for_field("category", f"Unknown category: {category!r}")


def resolve_slug(
    requested: str,
    title: str,
    post_id: str,
    is_taken: Callable[[str], bool],
) -> str:
    """
    Explicit slugs must already be in slug form and free; empty ones are
    derived from the title and de-duplicated with a numeric suffix.
    """
    if requested:
        if slugify(requested) != requested:
            raise ValidationError.for_field(
                "slug", f"Slug must be lowercase words joined by hyphens: {requested!r}"
            )
        if is_taken(requested):
            raise ValidationError.for_field("slug", f"Slug already in use: {requested}")
        return requested
    return unique_slug(derive_slug(title, post_id), is_taken)


def build_post(
    post_id: str,
    draft: dict[str, Any],
    known_categories: Collection[str],
    is_slug_taken: Callable[[str], bool],
    now: datetime | None = None,
) -> PostRecord:
    """Create a new record from a draft. Status defaults to draft, publish date to now."""
    fields = normalize_fields(draft)
    check_category(fields.get("category"), known_categories)
    fields["slug"] = resolve_slug(
        fields.get("slug", ""), fields.get("title", ""), post_id, is_slug_taken
    )
    fields.setdefault("title", "")
    fields.setdefault("status", PostStatus.DRAFT)
    fields.setdefault("publish_date", now or utcnow())
    return PostRecord(id=post_id, **fields)


def apply_changes(
    post: PostRecord,
    changes: dict[str, Any],
    known_categories: Collection[str],
    is_slug_taken: Callable[[str], bool],
    now: datetime | None = None,
) -> PostRecord:
    """
    Merge partial changes into a copy of post.

    A draft -> published transition stamps the current time as publish date
    unless the changes carry their own publish date.
    """
    fields = normalize_fields(changes)
    if "category" in fields:
        check_category(fields["category"], known_categories)

    if (
        fields.get("status") == PostStatus.PUBLISHED
        and post.status == PostStatus.DRAFT
        and "publish_date" not in fields
    ):
        fields["publish_date"] = now or utcnow()

    if "slug" in fields and fields["slug"] != post.slug:
        fields["slug"] = resolve_slug(
            fields["slug"], fields.get("title", post.title), post.id, is_slug_taken
        )

    return post.copy(**fields)
