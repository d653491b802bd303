"""
Category API endpoints - managed category vocabulary and source sites.
"""

import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.http import HttpRequest
from ninja import Router

from apps.blog.models import Post
from apps.blog.rules import slugify
from utils.auth import AuthBearer, require_admin
from utils.exceptions import NotFound, ValidationError
from .models import Category, DEFAULT_COLOR
from .schemas import CategoryIn, CategoryOut, CategoryUpdateIn, SourceUrlIn

logger = logging.getLogger(__name__)

router = Router()


def category_to_out(category: Category, post_count: int | None = None) -> dict:
    """Convert Category model to output dict."""
    if post_count is None:
        post_count = Post.objects.filter(category=category.name).count()
    return {
        "id": str(category.id),
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "color": category.color,
        "isActive": category.is_active,
        "sourceUrls": category.source_urls or [],
        "postCount": post_count,
        "createdAt": category.created_at,
        "updatedAt": category.updated_at,
    }


def get_category(category_id: str) -> Category:
    try:
        return Category.objects.get(id=category_id)
    except (Category.DoesNotExist, DjangoValidationError):
        raise NotFound(f"Category not found: {category_id}")


def check_name_free(name: str, exclude_id=None) -> None:
    queryset = Category.objects.filter(name__iexact=name)
    if exclude_id is not None:
        queryset = queryset.exclude(id=exclude_id)
    if queryset.exists():
        raise ValidationError.for_field("name", f"Category already exists: {name}")


def check_slug_free(slug: str, exclude_id=None) -> None:
    queryset = Category.objects.filter(slug=slug)
    if exclude_id is not None:
        queryset = queryset.exclude(id=exclude_id)
    if queryset.exists():
        raise ValidationError.for_field("slug", f"Slug already in use: {slug}")


@router.get("/", response=list[CategoryOut])
def list_categories(request: HttpRequest, active: bool | None = None):
    """List categories."""
    queryset = Category.objects.all()
    if active is not None:
        queryset = queryset.filter(is_active=active)
    return [category_to_out(c) for c in queryset]


@router.get("/{category_id}", response=CategoryOut)
def get_category_detail(request: HttpRequest, category_id: str):
    return category_to_out(get_category(category_id))


@router.post("/", response={201: CategoryOut}, auth=AuthBearer())
def create_category(request: HttpRequest, data: CategoryIn):
    """Create a category (admin only)."""
    require_admin(request)

    name = data.name.strip()
    if not name:
        raise ValidationError.for_field("name", "name must not be blank")
    slug = slugify(data.slug or name)
    if not slug:
        raise ValidationError.for_field("slug", "slug must contain word characters")

    check_name_free(name)
    check_slug_free(slug)

    try:
        category = Category.objects.create(
            name=name,
            slug=slug,
            description=data.description,
            color=data.color or DEFAULT_COLOR,
            is_active=data.isActive,
        )
    except IntegrityError:
        raise ValidationError.for_field("name", f"Category already exists: {name}")

    logger.info(f"[Categories] Created {category.name}")
    return 201, category_to_out(category, post_count=0)


@router.put("/{category_id}", response=CategoryOut, auth=AuthBearer())
def update_category(request: HttpRequest, category_id: str, data: CategoryUpdateIn):
    """
    Update a category (admin only).

    Renaming a category renames it on every post that uses it.
    """
    require_admin(request)
    category = get_category(category_id)

    with transaction.atomic():
        if data.name is not None and data.name.strip() != category.name:
            new_name = data.name.strip()
            check_name_free(new_name, exclude_id=category.id)
            renamed = Post.objects.filter(category=category.name).update(category=new_name)
            logger.info(f"[Categories] Renamed {category.name} -> {new_name} on {renamed} posts")
            category.name = new_name
        if data.slug is not None:
            slug = slugify(data.slug)
            if not slug:
                raise ValidationError.for_field("slug", "slug must contain word characters")
            check_slug_free(slug, exclude_id=category.id)
            category.slug = slug
        if data.description is not None:
            category.description = data.description
        if data.color is not None:
            category.color = data.color
        if data.isActive is not None:
            category.is_active = data.isActive
        category.save()

    return category_to_out(category)


@router.delete("/{category_id}", response={204: None}, auth=AuthBearer())
def delete_category(request: HttpRequest, category_id: str):
    """Delete a category (admin only). Categories still used by posts cannot be deleted."""
    require_admin(request)
    category = get_category(category_id)

    in_use = Post.objects.filter(category=category.name).count()
    if in_use:
        raise ValidationError(
            f"Category {category.name} is used by {in_use} posts",
            errors=[{"field": "category", "message": "Category is in use"}],
        )

    category.delete()
    logger.info(f"[Categories] Deleted {category.name}")
    return 204, None


# ============ Source sites ============


@router.post("/{category_id}/sources", response=CategoryOut, auth=AuthBearer())
def add_source(request: HttpRequest, category_id: str, data: SourceUrlIn):
    """Add a source site to a category (admin only). Sources stay sorted by priority."""
    require_admin(request)
    category = get_category(category_id)

    url = str(data.url)
    sources = list(category.source_urls or [])
    if any(s.get("url") == url for s in sources):
        raise ValidationError.for_field("url", f"Source already added: {url}")

    sources.append({"url": url, "description": data.description, "priority": data.priority})
    category.source_urls = sorted(sources, key=lambda s: s.get("priority", 0))
    category.save(update_fields=["source_urls", "updated_at"])
    return category_to_out(category)


@router.delete("/{category_id}/sources", response=CategoryOut, auth=AuthBearer())
def remove_source(request: HttpRequest, category_id: str, url: str):
    """Remove a source site from a category (admin only)."""
    require_admin(request)
    category = get_category(category_id)

    sources = [s for s in (category.source_urls or []) if s.get("url") != url]
    if len(sources) == len(category.source_urls or []):
        raise NotFound(f"Source not found: {url}")

    category.source_urls = sources
    category.save(update_fields=["source_urls", "updated_at"])
    return category_to_out(category)
