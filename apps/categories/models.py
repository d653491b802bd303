"""
Category model - managed vocabulary for post classification.
"""

import uuid
from django.db import models


DEFAULT_COLOR = "#3B82F6"


class Category(models.Model):
    """Post category with display metadata and prioritized source sites."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=120, unique=True)
    description = models.TextField(null=True, blank=True)
    color = models.CharField(max_length=20, default=DEFAULT_COLOR)
    is_active = models.BooleanField(default=True, db_column="isActive")
    # [{"url": str, "description": str | None, "priority": int}], kept sorted by priority
    source_urls = models.JSONField(default=list, blank=True, db_column="sourceUrls")
    created_at = models.DateTimeField(auto_now_add=True, db_column="createdAt")
    updated_at = models.DateTimeField(auto_now=True, db_column="updatedAt")

    class Meta:
        db_table = "categories"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def top_source_url(self) -> str | None:
        """Highest-priority source site, if any."""
        if not self.source_urls:
            return None
        return min(self.source_urls, key=lambda s: s.get("priority", 0)).get("url")
