"""
Blog API endpoints - posts, public listing pages and AI drafting.
"""

import logging
from typing import Any

from django.http import HttpRequest
from ninja import Router

from agents import available_models, generate_post, summarize
from apps.categories.models import Category
from utils.auth import AuthBearer, get_optional_user, is_admin, require_admin
from utils.exceptions import NotFound, ValidationError
from .domain import NamedAuthor, PostCriteria, PostRecord, PostStatus
from .pipeline import PUBLIC_PAGE_SIZE, run_pipeline
from .presentation import home_sections, to_card
from .repository import DjangoPostSource
from .schemas import (
    GeneratePostIn,
    HomeOut,
    ListingOut,
    ModelProviderOut,
    PostCreateIn,
    PostDraftOut,
    PostOut,
    PostsListOut,
    PostUpdateIn,
    SummarizeIn,
    SummaryOut,
)

logger = logging.getLogger(__name__)

router = Router()

source = DjangoPostSource()

MAX_PAGE_SIZE = 100

# camelCase wire names -> PostRecord fields
FIELD_MAP = {
    "title": "title",
    "slug": "slug",
    "excerpt": "excerpt",
    "content": "content",
    "sourceUrl": "source_url",
    "imageUrl": "image_url",
    "category": "category",
    "tags": "tags",
    "author": "author",
    "status": "status",
    "publishDate": "publish_date",
    "featured": "featured",
}

# Fields that may be cleared with an explicit null
NULLABLE_FIELDS = {"source_url", "image_url"}


def post_to_out(post: PostRecord) -> dict[str, Any]:
    """Convert a PostRecord to its camelCase wire form."""
    return {
        "id": post.id,
        "slug": post.slug,
        "title": post.title,
        "excerpt": post.excerpt,
        "content": post.content,
        "sourceUrl": post.source_url,
        "imageUrl": post.image_url,
        "category": post.category,
        "tags": list(post.tags),
        "author": post.author.to_dict(),
        "status": post.status,
        "publishDate": post.publish_date,
        "featured": post.featured,
    }


def to_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {FIELD_MAP[key]: value for key, value in data.items() if key in FIELD_MAP}


def check_paging(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError.for_field("page", "page must be >= 1")
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError.for_field("limit", f"limit must be between 1 and {MAX_PAGE_SIZE}")


# ============ Posts ============


@router.get("/posts", response=PostsListOut)
def list_posts(
    request: HttpRequest,
    category: str | None = None,
    status: str | None = None,
    search: str | None = None,
    tag: str | None = None,
    featured: bool | None = None,
    page: int = 1,
    limit: int = PUBLIC_PAGE_SIZE,
):
    """List posts. Anonymous and non-admin callers only see published posts."""
    check_paging(page, limit)

    if not is_admin(get_optional_user(request)):
        status = PostStatus.PUBLISHED
    elif status in (None, "", "all"):
        status = None
    elif status not in PostStatus.ALL:
        raise ValidationError.for_field("status", f"status must be one of: {', '.join(PostStatus.ALL)}")

    criteria = PostCriteria(
        search=search,
        category=category,
        tag=tag,
        status=status,
        featured=featured,
    )
    result = run_pipeline(source.list(criteria), criteria, page=page, page_size=limit)
    return {
        "posts": [post_to_out(p) for p in result.items],
        "pagination": result.pagination(),
    }


@router.get("/posts/slug/{slug}", response=PostOut)
def get_post_by_slug(request: HttpRequest, slug: str):
    """Get a published post by slug."""
    post = source.get_by_slug(slug)
    if not post.is_published and not is_admin(get_optional_user(request)):
        raise NotFound(f"Post not found: {slug}")
    return post_to_out(post)


@router.get("/posts/{post_id}", response=PostOut)
def get_post(request: HttpRequest, post_id: str):
    """Get a post by id. Drafts are only visible to admins."""
    post = source.get(post_id)
    if not post.is_published and not is_admin(get_optional_user(request)):
        raise NotFound(f"Post not found: {post_id}")
    return post_to_out(post)


@router.post("/posts", response={201: PostOut}, auth=AuthBearer())
def create_post(request: HttpRequest, data: PostCreateIn):
    """Create a new post (admin only)."""
    user = require_admin(request)

    fields = to_fields(data.model_dump(exclude_unset=True))
    fields["title"] = data.title
    fields["category"] = data.category
    if fields.get("author") is None:
        fields["author"] = NamedAuthor(name=user.name or user.email, avatar_url=user.avatar_url)

    post = source.create(fields)
    logger.info(f"[Blog] {user.email} created post {post.id}")
    return 201, post_to_out(post)


@router.put("/posts/{post_id}", response=PostOut, auth=AuthBearer())
def update_post(request: HttpRequest, post_id: str, data: PostUpdateIn):
    """Update a post (admin only). Only fields present in the body change."""
    user = require_admin(request)

    changes = {
        name: value
        for name, value in to_fields(data.model_dump(exclude_unset=True)).items()
        if value is not None or name in NULLABLE_FIELDS
    }
    post = source.update(post_id, changes)
    logger.info(f"[Blog] {user.email} updated post {post.id}")
    return post_to_out(post)


@router.delete("/posts/{post_id}", response={204: None}, auth=AuthBearer())
def delete_post(request: HttpRequest, post_id: str):
    """Delete a post (admin only)."""
    user = require_admin(request)
    source.delete(post_id)
    logger.info(f"[Blog] {user.email} deleted post {post_id}")
    return 204, None


# ============ Public pages ============


@router.get("/listing", response=ListingOut)
def listing(
    request: HttpRequest,
    search: str | None = None,
    category: str | None = None,
    tag: str | None = None,
    page: int = 1,
):
    """Public blog listing: published posts as cards, nine per page."""
    check_paging(page, PUBLIC_PAGE_SIZE)
    criteria = PostCriteria(
        search=search,
        category=category,
        tag=tag,
        status=PostStatus.PUBLISHED,
    )
    result = run_pipeline(source.list(criteria), criteria, page=page, page_size=PUBLIC_PAGE_SIZE)
    return {
        "cards": [to_card(p) for p in result.items],
        "pagination": result.pagination(),
    }


@router.get("/tags", response=list[str])
def list_tags(request: HttpRequest):
    """Distinct tags of published posts, sorted, for the listing's tag filter."""
    posts = source.list(PostCriteria(status=PostStatus.PUBLISHED))
    return sorted({tag for post in posts for tag in post.tags}, key=lambda tag: (tag.casefold(), tag))


@router.get("/home", response=HomeOut)
def home(request: HttpRequest):
    """Featured and recent sections of the home page."""
    return home_sections(source.list(PostCriteria(status=PostStatus.PUBLISHED)))


# ============ AI helpers ============


@router.post("/summarize", response=SummaryOut, auth=AuthBearer())
def summarize_article(request: HttpRequest, data: SummarizeIn):
    """Summarize an article or URL into a draft news post (admin only)."""
    require_admin(request)
    return summarize(data.content).to_dict()


@router.post("/generate-post", response=PostDraftOut, auth=AuthBearer())
def generate_post_draft(request: HttpRequest, data: GeneratePostIn):
    """
    Generate an unsaved post draft (admin only).

    Without an explicit sourceUrl, the category's top-priority source site is
    suggested to the model.
    """
    user = require_admin(request)

    category = Category.objects.filter(name=data.category).first()
    if category is None:
        raise ValidationError.for_field("category", f"Unknown category: {data.category!r}")

    source_url = data.sourceUrl or category.top_source_url()
    logger.info(f"[Blog] {user.email} generating post for {data.keyword!r}")
    return generate_post(
        data.keyword,
        category.name,
        source_url=source_url,
        instruction=data.instruction,
        provider=data.provider,
        model=data.model,
    )


@router.get("/models", response=list[ModelProviderOut])
def list_models(request: HttpRequest):
    """Available LLM providers and models."""
    return available_models()
