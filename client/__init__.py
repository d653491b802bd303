"""
Client module - REST client and UI session state for the blog API.

Structure:
- config.py: Client settings from the environment
- api_client.py: BlogAPI over httpx and the remote collection source
- session.py: Listing and editor sessions, debouncing, notifications
"""

from .api_client import BlogAPI, RemotePostSource
from .session import Debouncer, EditorSession, ListingSession, Notification

__all__ = [
    "BlogAPI",
    "RemotePostSource",
    "Debouncer",
    "EditorSession",
    "ListingSession",
    "Notification",
]
