"""
Admin API endpoints - dashboard stats and post list sidebar.
"""

import logging

from django.http import HttpRequest
from ninja import Router

from utils.auth import AuthBearer, require_admin
from utils.exceptions import ValidationError
from apps.users.models import User
from apps.categories.models import Category
from apps.blog.api import post_to_out, source
from apps.blog.domain import PostCriteria, PostStatus
from apps.blog.models import Post
from apps.blog.pipeline import filter_posts, sort_posts
from apps.blog.presentation import to_list_row
from apps.blog.schemas import PostOut
from .schemas import AdminStatsOut, PostRowOut

logger = logging.getLogger(__name__)

router = Router(auth=AuthBearer())


@router.get("/stats", response=AdminStatsOut)
def get_stats(request: HttpRequest):
    """Get admin dashboard stats."""
    require_admin(request)

    total_posts = Post.objects.count()
    published_posts = Post.objects.filter(status=PostStatus.PUBLISHED).count()

    return AdminStatsOut(
        totalPosts=total_posts,
        publishedPosts=published_posts,
        draftPosts=total_posts - published_posts,
        featuredPosts=Post.objects.filter(is_featured=True).count(),
        totalCategories=Category.objects.count(),
        totalUsers=User.objects.count(),
    )


@router.get("/posts", response=list[PostRowOut])
def list_post_rows(request: HttpRequest, search: str | None = None, status: str = "all"):
    """Post list sidebar: every post, newest first, filtered by search and status."""
    require_admin(request)

    if status == "all":
        status = None
    elif status not in PostStatus.ALL:
        raise ValidationError.for_field("status", "status must be one of: all, draft, published")

    criteria = PostCriteria(search=search, status=status)
    posts = sort_posts(filter_posts(source.list(criteria), criteria))
    return [to_list_row(p) for p in posts]


@router.post("/posts/{post_id}/publish", response=PostOut)
def publish_post(request: HttpRequest, post_id: str):
    """Publish a post. A first publish stamps the publish date."""
    user = require_admin(request)
    post = source.update(post_id, {"status": PostStatus.PUBLISHED})
    logger.info(f"[Admin] {user.email} published {post.id}")
    return post_to_out(post)


@router.post("/posts/{post_id}/unpublish", response=PostOut)
def unpublish_post(request: HttpRequest, post_id: str):
    """Move a post back to draft."""
    user = require_admin(request)
    post = source.update(post_id, {"status": PostStatus.DRAFT})
    logger.info(f"[Admin] {user.email} unpublished {post.id}")
    return post_to_out(post)
