"""
Presentation adapter - maps post records to card and list-row view models.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from .domain import Author, AuthorRole, NamedAuthor, PostStatus, RoleAuthor
from .pipeline import sort_posts

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

ROLE_DISPLAY_NAMES = {
    AuthorRole.ADMIN: "Administrator",
    AuthorRole.AI: "AI Writer",
}

CARD_TAG_LIMIT = 3
HOME_FEATURED_LIMIT = 2
HOME_RECENT_LIMIT = 6


def author_display_name(author: Author) -> str:
    if isinstance(author, RoleAuthor):
        return ROLE_DISPLAY_NAMES.get(author.role, author.role.title())
    return author.name


def author_avatar_url(author: Author) -> str | None:
    if isinstance(author, NamedAuthor):
        return author.avatar_url
    return None


def format_publish_date(value: datetime) -> str:
    """Format as 'Month D, YYYY' without going through the process locale."""
    return f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def to_card(post: Any, compact: bool = True) -> dict[str, Any]:
    """
    Build the card view model for the listing, home and category pages.

    The excerpt is shown as stored. Compact cards show at most three tags.
    """
    tags = list(post.tags or [])
    if compact:
        tags = tags[:CARD_TAG_LIMIT]
    return {
        "id": post.id,
        "slug": post.slug,
        "title": post.title,
        "excerpt": post.excerpt,
        "imageUrl": post.image_url,
        "authorName": author_display_name(post.author),
        "authorAvatarUrl": author_avatar_url(post.author),
        "date": format_publish_date(post.publish_date),
        "publishDate": post.publish_date,
        "category": post.category,
        "tags": tags,
        "featured": bool(post.featured),
    }


def to_list_row(post: Any) -> dict[str, Any]:
    """Row for the admin post list sidebar."""
    return {
        "id": post.id,
        "title": post.title,
        "status": post.status,
        "category": post.category,
        "date": format_publish_date(post.publish_date),
    }


def home_sections(posts: Iterable[Any]) -> dict[str, list[dict[str, Any]]]:
    """
    Home page highlights.

    Featured: up to two featured published posts, or the two most recent
    when nothing is featured. Recent: the six most recent published posts.
    """
    published = sort_posts(post for post in posts if post.status == PostStatus.PUBLISHED)
    recent = published[:HOME_RECENT_LIMIT]
    featured = [post for post in published if post.featured] or recent
    return {
        "featured": [to_card(post, compact=False) for post in featured[:HOME_FEATURED_LIMIT]],
        "recent": [to_card(post) for post in recent],
    }
