"""
ORM-backed collection source used by the REST API.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from django.db import transaction

from apps.categories.models import Category
from utils.exceptions import NotFound
from .domain import PostCriteria, PostRecord, RoleAuthor, AuthorRole, parse_author
from .models import Post
from .pipeline import filter_posts
from .rules import apply_changes, build_post

logger = logging.getLogger(__name__)


def record_from_model(post: Post) -> PostRecord:
    """Convert Post model to a PostRecord."""
    tags = post.tags
    if isinstance(tags, str):
        # Legacy rows stored tags as "a,b,c"
        tags = [t.strip() for t in tags.split(",") if t.strip()]

    try:
        author = parse_author(post.author)
    except ValueError:
        logger.warning(f"[PostSource] Unreadable author on post {post.id}: {post.author!r}")
        author = RoleAuthor(role=AuthorRole.ADMIN)

    return PostRecord(
        id=str(post.id),
        slug=post.slug,
        title=post.title,
        category=post.category,
        excerpt=post.excerpt or "",
        content=post.content or "",
        source_url=post.source_url,
        tags=list(tags or []),
        image_url=post.image_url,
        author=author,
        status=post.status,
        publish_date=post.publish_date,
        featured=post.is_featured,
    )


def copy_record_to_model(record: PostRecord, post: Post) -> Post:
    post.title = record.title
    post.slug = record.slug
    post.excerpt = record.excerpt
    post.content = record.content
    post.source_url = record.source_url
    post.image_url = record.image_url
    post.category = record.category
    post.tags = list(record.tags)
    post.author = record.author.to_dict()
    post.status = record.status
    post.is_featured = record.featured
    post.publish_date = record.publish_date
    return post


class DjangoPostSource:
    """Collection source over the posts table."""

    def list(self, criteria: PostCriteria | None = None) -> list[PostRecord]:
        queryset = Post.objects.all().order_by("-created_at")

        if criteria is not None:
            if criteria.status:
                queryset = queryset.filter(status=criteria.status)
            if criteria.category:
                queryset = queryset.filter(category=criteria.category)
            if criteria.featured is not None:
                queryset = queryset.filter(is_featured=criteria.featured)

        # Search (casefolded) and tag membership are applied by the pipeline.
        return filter_posts((record_from_model(p) for p in queryset), criteria)

    def get(self, post_id: str) -> PostRecord:
        return record_from_model(self._get_model(post_id))

    def get_by_slug(self, slug: str) -> PostRecord:
        post = Post.objects.filter(slug=slug).first()
        if post is None:
            raise NotFound(f"Post not found: {slug}")
        return record_from_model(post)

    def categories(self) -> list[str]:
        return list(Category.objects.values_list("name", flat=True))

    @transaction.atomic
    def create(self, draft: dict[str, Any]) -> PostRecord:
        post_id = str(uuid.uuid4())
        record = build_post(
            post_id,
            draft,
            known_categories=self.categories(),
            is_slug_taken=self._slug_taken_by(None),
        )
        post = copy_record_to_model(record, Post(id=uuid.UUID(post_id)))
        post.save(force_insert=True)
        logger.info(f"[PostSource] Created post {post.id} ({post.slug})")
        return record_from_model(post)

    @transaction.atomic
    def update(self, post_id: str, changes: dict[str, Any]) -> PostRecord:
        post = self._get_model(post_id)
        record = apply_changes(
            record_from_model(post),
            changes,
            known_categories=self.categories(),
            is_slug_taken=self._slug_taken_by(post.id),
        )
        copy_record_to_model(record, post).save()
        logger.info(f"[PostSource] Updated post {post.id}")
        return record_from_model(post)

    def delete(self, post_id: str) -> None:
        post = self._get_model(post_id)
        post.delete()
        logger.info(f"[PostSource] Deleted post {post_id}")

    def _get_model(self, post_id: str) -> Post:
        try:
            pk = uuid.UUID(str(post_id))
        except ValueError:
            raise NotFound(f"Post not found: {post_id}")
        try:
            return Post.objects.get(id=pk)
        except Post.DoesNotExist:
            raise NotFound(f"Post not found: {post_id}")

    def _slug_taken_by(self, own_id: uuid.UUID | None):
        def is_taken(slug: str) -> bool:
            queryset = Post.objects.filter(slug=slug)
            if own_id is not None:
                queryset = queryset.exclude(id=own_id)
            return queryset.exists()

        return is_taken
