"""
Post query pipeline: filter -> sort -> paginate.

Every stage is a pure function over a sequence of PostRecord-like objects
(anything exposing title, excerpt, category, tags, status, featured and
publish_date). Inputs are never mutated; each call builds new lists.
"""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .domain import PostCriteria

T = TypeVar("T")

# Posts per page on the public listing.
PUBLIC_PAGE_SIZE = 9


@dataclass(frozen=True)
class Page(Generic[T]):
    """One slice of a sorted, filtered collection."""

    items: list[T]
    current_page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    def pagination(self) -> dict[str, int]:
        """Pagination block in API shape."""
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.page_size,
        }


def matches_search(post: Any, term: str) -> bool:
    """Case-insensitive substring match against title OR excerpt."""
    needle = term.casefold()
    return needle in (post.title or "").casefold() or needle in (post.excerpt or "").casefold()


def matches(post: Any, criteria: PostCriteria) -> bool:
    """True if the post passes every active criterion."""
    if criteria.status and post.status != criteria.status:
        return False
    if criteria.category and post.category != criteria.category:
        return False
    if criteria.tag and criteria.tag not in (post.tags or []):
        return False
    if criteria.featured is not None and bool(post.featured) != criteria.featured:
        return False
    term = criteria.search_term
    if term and not matches_search(post, term):
        return False
    return True


def filter_posts(posts: Iterable[T], criteria: PostCriteria | None = None) -> list[T]:
    """Keep the posts that satisfy all active criteria, in source order."""
    if criteria is None:
        return list(posts)
    return [post for post in posts if matches(post, criteria)]


def sort_posts(posts: Iterable[T]) -> list[T]:
    """Order by publish date, most recent first. Ties keep their source order."""
    # reverse=True keeps equal keys in source order
    return sorted(posts, key=lambda post: post.publish_date, reverse=True)


def count_pages(total_items: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be positive")
    return math.ceil(total_items / page_size)


def paginate(posts: Sequence[T], page_size: int, page: int) -> Page[T]:
    """
    Slice [(page-1)*page_size, page*page_size) out of posts.

    The page number is not clamped: asking for a page beyond the last one
    yields an empty slice. Navigation code decides which pages are valid.
    """
    total_items = len(posts)
    total_pages = count_pages(total_items, page_size)
    start = (page - 1) * page_size
    items = list(posts[start : start + page_size]) if page >= 1 else []
    return Page(
        items=items,
        current_page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
    )


def run_pipeline(
    posts: Iterable[T],
    criteria: PostCriteria | None = None,
    page: int = 1,
    page_size: int = PUBLIC_PAGE_SIZE,
) -> Page[T]:
    """Filter, sort and paginate in one call."""
    return paginate(sort_posts(filter_posts(posts, criteria)), page_size, page)
