"""
Collection source contract and the in-memory variant.

A collection source owns the authoritative list of posts and the known
category names. The pipeline only ever reads what list() returns.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import Any, Protocol

from utils.exceptions import NotFound, ValidationError
from .domain import PostCriteria, PostRecord
from .pipeline import filter_posts, sort_posts
from .rules import apply_changes, build_post

logger = logging.getLogger(__name__)


class CollectionSource(Protocol):
    """Protocol for anything that can serve and mutate the post collection.

    Implementations:
    - InMemoryPostSource: process-local list, used for previews and tests
    - DjangoPostSource: ORM-backed, used by the REST API
    - RemotePostSource: REST client against the API
    """

    def list(self, criteria: PostCriteria | None = None) -> list[PostRecord]:
        """Return posts matching the criteria the source can apply itself.

        Callers re-run the pipeline on the result, so a source may return a
        superset of the matching posts.
        """
        ...

    def get(self, post_id: str) -> PostRecord:
        """Return one post or raise NotFound."""
        ...

    def get_by_slug(self, slug: str) -> PostRecord:
        """Return the post with this slug or raise NotFound."""
        ...

    def create(self, draft: dict[str, Any]) -> PostRecord:
        """Create a post with a fresh id and status draft unless given."""
        ...

    def update(self, post_id: str, changes: dict[str, Any]) -> PostRecord:
        """Merge changes into a post or raise NotFound."""
        ...

    def delete(self, post_id: str) -> None:
        """Remove a post or raise NotFound."""
        ...

    def categories(self) -> list[str]:
        """Names of the known categories."""
        ...


def new_post_id() -> str:
    return str(uuid.uuid4())


class InMemoryPostSource:
    """
    Collection source backed by a list owned by the instance.

    New posts go to the head of the list, which is then stable-sorted by
    publish date. Categories change only through add_category and
    remove_category; saving a post never extends them.
    """

    def __init__(
        self,
        posts: Iterable[PostRecord] = (),
        categories: Iterable[str] = (),
    ):
        self._posts: list[PostRecord] = [post.copy() for post in posts]
        self._categories: list[str] = []
        for name in categories:
            self.add_category(name)

        ids = [post.id for post in self._posts]
        if len(ids) != len(set(ids)):
            raise ValidationError("Duplicate post ids in initial collection")

    def __len__(self) -> int:
        return len(self._posts)

    # ---- reads ----

    def list(self, criteria: PostCriteria | None = None) -> list[PostRecord]:
        return [post.copy() for post in filter_posts(self._posts, criteria)]

    def get(self, post_id: str) -> PostRecord:
        return self._find(post_id).copy()

    def get_by_slug(self, slug: str) -> PostRecord:
        for post in self._posts:
            if post.slug == slug:
                return post.copy()
        raise NotFound(f"Post not found: {slug}")

    def categories(self) -> list[str]:
        return list(self._categories)

    # ---- writes ----

    def create(self, draft: dict[str, Any]) -> PostRecord:
        post = build_post(
            new_post_id(),
            draft,
            known_categories=self._categories,
            is_slug_taken=self._slug_taken_by(None),
        )
        self._posts.insert(0, post)
        self._posts = sort_posts(self._posts)
        logger.info(f"[InMemorySource] Created post {post.id} ({post.slug})")
        return post.copy()

    def update(self, post_id: str, changes: dict[str, Any]) -> PostRecord:
        current = self._find(post_id)
        updated = apply_changes(
            current,
            changes,
            known_categories=self._categories,
            is_slug_taken=self._slug_taken_by(post_id),
        )
        self._posts[self._posts.index(current)] = updated
        self._posts = sort_posts(self._posts)
        logger.info(f"[InMemorySource] Updated post {post_id}")
        return updated.copy()

    def delete(self, post_id: str) -> None:
        current = self._find(post_id)
        self._posts.remove(current)
        logger.info(f"[InMemorySource] Deleted post {post_id}")

    def add_category(self, name: str) -> None:
        """Explicit category management; the only way the category set grows."""
        name = (name or "").strip()
        if not name:
            raise ValidationError.for_field("name", "Category name is required")
        if name in self._categories:
            raise ValidationError.for_field("name", f"Category already exists: {name}")
        self._categories.append(name)

    def remove_category(self, name: str) -> None:
        if name not in self._categories:
            raise NotFound(f"Category not found: {name}")
        in_use = sum(1 for post in self._posts if post.category == name)
        if in_use:
            raise ValidationError.for_field(
                "name", f"Category {name} is used by {in_use} post(s)"
            )
        self._categories.remove(name)

    # ---- helpers ----

    def _find(self, post_id: str) -> PostRecord:
        for post in self._posts:
            if post.id == post_id:
                return post
        raise NotFound(f"Post not found: {post_id}")

    def _slug_taken_by(self, own_id: str | None):
        def is_taken(slug: str) -> bool:
            return any(post.slug == slug and post.id != own_id for post in self._posts)

        return is_taken
