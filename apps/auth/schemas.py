"""
Auth schemas for API.
"""

from ninja import Schema
from pydantic import Field
from apps.users.schemas import UserProfileOut


class VerifyTokenIn(Schema):
    idToken: str = Field(min_length=1)


class AuthOut(Schema):
    user: UserProfileOut
    token: str
