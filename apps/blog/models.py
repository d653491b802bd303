"""
Post model - ORM storage for the post collection.
"""

import uuid
from django.db import models
from django.utils import timezone

from .domain import AuthorRole


class PostStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    PUBLISHED = "published", "Published"


def default_author() -> dict:
    return {"kind": "role", "role": AuthorRole.ADMIN}


class Post(models.Model):
    """Blog post model."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255, blank=True, default="")
    slug = models.SlugField(max_length=255, unique=True, allow_unicode=True)
    excerpt = models.TextField(blank=True, default="")
    content = models.TextField(blank=True, default="")
    source_url = models.URLField(max_length=500, null=True, blank=True, db_column="sourceUrl")
    image_url = models.URLField(max_length=500, null=True, blank=True, db_column="imageUrl")
    category = models.CharField(max_length=100, db_index=True)
    tags = models.JSONField(default=list, blank=True)
    # Tagged author: {"kind": "role", "role": ...} or {"kind": "named", "name": ..., "avatarUrl": ...}
    author = models.JSONField(default=default_author)
    status = models.CharField(max_length=20, choices=PostStatus.choices, default=PostStatus.DRAFT)
    is_featured = models.BooleanField(default=False, db_column="isFeatured")
    publish_date = models.DateTimeField(default=timezone.now, db_index=True, db_column="publishDate")
    created_at = models.DateTimeField(auto_now_add=True, db_column="createdAt")
    updated_at = models.DateTimeField(auto_now=True, db_column="updatedAt")

    class Meta:
        db_table = "posts"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title or self.slug
