"""
Admin schemas for API.
"""

from ninja import Schema


class AdminStatsOut(Schema):
    """Dashboard stats for admin."""

    totalPosts: int
    publishedPosts: int
    draftPosts: int
    featuredPosts: int
    totalCategories: int
    totalUsers: int


class PostRowOut(Schema):
    """Admin post list sidebar row."""

    id: str
    title: str
    status: str
    category: str
    date: str
