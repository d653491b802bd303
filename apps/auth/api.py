"""
Auth API endpoints - identity provider token exchange and profile.
"""

import logging

from django.conf import settings
from django.http import HttpRequest
from ninja import Router

from apps.users.models import User, UserRole
from apps.users.schemas import UserProfileOut, UserUpdateIn
from utils.auth import AuthBearer, create_token, get_current_user
from utils.exceptions import AuthError
from .schemas import AuthOut, VerifyTokenIn

logger = logging.getLogger(__name__)

router = Router()


def verify_id_token(token: str) -> dict:
    """Verify a Firebase ID token and return its claims."""
    from google.auth.exceptions import GoogleAuthError
    from google.oauth2 import id_token
    from google.auth.transport import requests as google_requests

    try:
        return id_token.verify_firebase_token(
            token,
            google_requests.Request(),
            audience=settings.FIREBASE_PROJECT_ID or None,
        )
    except (ValueError, GoogleAuthError) as e:
        logger.error(f"[FirebaseAuth] Token verification failed: {e}")
        raise AuthError("Invalid ID token")


@router.post("/verify-token", response=AuthOut)
def verify_token(request: HttpRequest, data: VerifyTokenIn):
    """Exchange an identity provider ID token for an application token."""
    claims = verify_id_token(data.idToken)

    email = (claims.get("email") or "").lower().strip()
    if not email:
        raise AuthError("No email in ID token")

    uid = claims.get("user_id") or claims.get("sub") or None
    name = claims.get("name") or ""
    picture = claims.get("picture") or None
    wants_admin = email in settings.ADMIN_EMAILS

    user = User.objects.filter(email=email).first()

    if not user:
        user = User.objects.create_user(
            email=email,
            name=name,
            firebase_uid=uid,
            avatar_url=picture,
            role=UserRole.ADMIN if wants_admin else UserRole.USER,
        )
        logger.info(f"[FirebaseAuth] Created new user: {email}")
    else:
        if not user.is_active:
            raise AuthError("Account is disabled")

        # Fill in identity details the provider knows and we don't
        update_fields = []
        if not user.firebase_uid and uid:
            user.firebase_uid = uid
            update_fields.append("firebase_uid")
        if not user.name and name:
            user.name = name
            update_fields.append("name")
        if not user.avatar_url and picture:
            user.avatar_url = picture
            update_fields.append("avatar_url")
        if wants_admin and user.role != UserRole.ADMIN:
            user.role = UserRole.ADMIN
            update_fields.append("role")
        if update_fields:
            user.save(update_fields=update_fields)

    token = create_token(user)
    return AuthOut(user=UserProfileOut.model_validate(user), token=token)


@router.get("/profile", response=UserProfileOut, auth=AuthBearer())
def get_profile(request: HttpRequest):
    """Get current user profile."""
    return get_current_user(request)


@router.put("/profile", response=UserProfileOut, auth=AuthBearer())
def update_profile(request: HttpRequest, data: UserUpdateIn):
    """Update current user profile."""
    user = get_current_user(request)
    if data.name is not None:
        user.name = data.name
    if data.avatarUrl is not None:
        user.avatar_url = data.avatarUrl or None
    user.save()
    return user
