"""
Pytest configuration and fixtures.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest
from django.test import Client

from apps.blog.models import Post, PostStatus
from apps.categories.models import Category
from apps.users.models import User, UserRole
from utils.auth import create_token


class APIClient:
    """Wrapper around Django test client for API testing."""

    def __init__(self):
        self.client = Client()

    def _make_request(self, method, path, data=None, headers=None):
        """Make HTTP request."""
        kwargs = {"content_type": "application/json"}

        if headers:
            kwargs.update(headers)

        if data is not None:
            kwargs["data"] = json.dumps(data)

        # Prepend /api if not present
        if not path.startswith("/api"):
            path = f"/api{path}"

        response = getattr(self.client, method.lower())(path, **kwargs)
        return APIResponse(response)

    def get(self, path, headers=None, **kwargs):
        return self._make_request("GET", path, headers=headers)

    def post(self, path, json=None, headers=None, **kwargs):
        return self._make_request("POST", path, data=json, headers=headers)

    def put(self, path, json=None, headers=None, **kwargs):
        return self._make_request("PUT", path, data=json, headers=headers)

    def delete(self, path, headers=None, **kwargs):
        return self._make_request("DELETE", path, headers=headers)


class APIResponse:
    """Wrapper around Django response for easier testing."""

    def __init__(self, response):
        self._response = response
        self.status_code = response.status_code
        self.content = response.content

    def json(self):
        return json.loads(self._response.content)


BASE_DATE = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def api_client():
    """API test client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    """Create admin user for testing."""
    return User.objects.create_user(
        email="admin@test.com",
        name="Admin User",
        role=UserRole.ADMIN,
        avatar_url="https://example.com/admin.png",
    )


@pytest.fixture
def regular_user(db):
    """Create regular user for testing."""
    return User.objects.create_user(
        email="user@test.com",
        name="Regular User",
        role=UserRole.USER,
    )


@pytest.fixture
def auth_headers(admin_user):
    """Get auth headers for admin user."""
    return {"HTTP_AUTHORIZATION": f"Bearer {create_token(admin_user)}"}


@pytest.fixture
def user_auth_headers(regular_user):
    """Get auth headers for regular user."""
    return {"HTTP_AUTHORIZATION": f"Bearer {create_token(regular_user)}"}


@pytest.fixture
def categories(db):
    """Technology and News categories."""
    return [
        Category.objects.create(name="Technology", slug="technology"),
        Category.objects.create(
            name="News",
            slug="news",
            source_urls=[
                {"url": "https://wire.example.com/", "description": "Wire", "priority": 1},
                {"url": "https://backup.example.com/", "description": None, "priority": 5},
            ],
        ),
    ]


@pytest.fixture
def make_post(db):
    """Factory for Post rows; day offsets keep publish dates distinct."""
    counter = {"n": 0}

    def factory(**fields):
        counter["n"] += 1
        n = counter["n"]
        defaults = {
            "title": f"Post {n}",
            "slug": f"post-{n}",
            "excerpt": f"Excerpt {n}",
            "content": f"<p>Body {n}</p>",
            "category": "Technology",
            "tags": [],
            "status": PostStatus.PUBLISHED,
            "publish_date": BASE_DATE + timedelta(days=n),
        }
        defaults.update(fields)
        return Post.objects.create(**defaults)

    return factory
