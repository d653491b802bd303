"""
UI session state for the public listing page and the admin post editor.

Sessions talk to any collection source (usually RemotePostSource) and run
the post pipeline locally. I/O failures never escape: they are logged and
turned into notifications while the previous state is kept.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from apps.blog.domain import PostCriteria, PostRecord, PostStatus
from apps.blog.pipeline import PUBLIC_PAGE_SIZE, Page, filter_posts, paginate, sort_posts
from apps.blog.presentation import to_card
from apps.blog.rules import normalize_tags
from utils.exceptions import AIServiceError, InklingError
from .config import get_client_config

logger = logging.getLogger(__name__)

AI_EXCERPT_LENGTH = 150


@dataclass(frozen=True)
class Notification:
    """Toast shown to the user."""

    title: str
    message: str
    level: str = "info"

    @property
    def is_error(self) -> bool:
        return self.level == "error"


class Debouncer:
    """Run fn once calls have stopped arriving for delay seconds."""

    def __init__(self, delay: float, fn: Callable[..., Any], timer_factory=threading.Timer):
        self.delay = delay
        self.fn = fn
        self.timer_factory = timer_factory
        self._timer = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def call(self, *args, **kwargs) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = self.timer_factory(self.delay, self._fire, args, kwargs)
            timer.daemon = True
            self._timer = timer
        timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self, *args, **kwargs) -> None:
        with self._lock:
            self._timer = None
        self.fn(*args, **kwargs)


class ListingSession:
    """
    Page state for a filtered, paginated post listing.

    Criteria changes reset the page to 1 and reload from the source. Page
    changes re-slice the last loaded result. Each reload takes a generation
    number; a reload that finishes after a newer one started is dropped.
    """

    def __init__(
        self,
        source,
        page_size: int = PUBLIC_PAGE_SIZE,
        status: str | None = PostStatus.PUBLISHED,
        search_delay: float | None = None,
        timer_factory=threading.Timer,
    ):
        if search_delay is None:
            search_delay = get_client_config().search_debounce
        self.source = source
        self.page_size = page_size
        self.criteria = PostCriteria(status=status)
        self.page = 1
        self.result: Page[PostRecord] | None = None
        self.loading = False
        self.notifications: list[Notification] = []
        self._posts: list[PostRecord] = []
        self._generation = 0
        self._lock = threading.RLock()
        self._search_debouncer = Debouncer(search_delay, self.set_search, timer_factory)

    # ============ Criteria ============

    def set_search(self, term: str | None) -> bool:
        return self._change_criteria(search=term)

    def set_category(self, category: str | None) -> bool:
        return self._change_criteria(category=category)

    def set_tag(self, tag: str | None) -> bool:
        return self._change_criteria(tag=tag)

    def clear_filters(self) -> bool:
        return self._change_criteria(search=None, category=None, tag=None)

    def type_search(self, term: str) -> None:
        """Search-as-you-type: applies term once typing pauses."""
        self._search_debouncer.call(term)

    def _change_criteria(self, **changes) -> bool:
        with self._lock:
            criteria = self.criteria.with_changes(**changes)
            if criteria == self.criteria:
                return False
            self.criteria = criteria
            self.page = 1
        return self.refresh()

    # ============ Loading ============

    def refresh(self) -> bool:
        """Reload from the source and recompute the current page."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            criteria = self.criteria
            self.loading = True

        try:
            posts = self.source.list(criteria)
        except InklingError as e:
            logger.warning(f"[ListingSession] Load failed: {e.message}")
            with self._lock:
                if generation == self._generation:
                    self.loading = False
                    self.notifications.append(Notification("Error", e.message or "Failed to load posts.", "error"))
            return False

        with self._lock:
            if generation != self._generation:
                logger.debug(f"[ListingSession] Dropped superseded load {generation}")
                return False
            self._posts = sort_posts(filter_posts(posts, criteria))
            self.result = paginate(self._posts, self.page_size, self.page)
            self.loading = False
        return True

    def go_to_page(self, page: int) -> bool:
        """Move to page; pages outside [1, total_pages] are ignored."""
        with self._lock:
            if self.result is None or not 1 <= page <= self.result.total_pages:
                return False
            self.page = page
            self.result = paginate(self._posts, self.page_size, page)
        return True

    # ============ View ============

    @property
    def total_pages(self) -> int:
        return self.result.total_pages if self.result else 0

    @property
    def cards(self) -> list[dict[str, Any]]:
        return [to_card(p) for p in self.result.items] if self.result else []

    def pop_notifications(self) -> list[Notification]:
        with self._lock:
            notifications, self.notifications = self.notifications, []
        return notifications


def body_to_html(body: str) -> str:
    return "<p>" + body.replace("\n", "</p><p>") + "</p>"


class EditorSession:
    """
    Form state for creating or editing one post.

    summarizer is any callable taking the article text and returning a
    summary (a dict or an object with to_dict()) with title, body, tags and
    category.
    """

    FORM_FIELDS = (
        "title",
        "slug",
        "excerpt",
        "content",
        "category",
        "tags",
        "status",
        "image_url",
        "source_url",
        "featured",
    )

    def __init__(self, source, summarizer: Callable[[str], Any] | None = None, post: PostRecord | None = None):
        self.source = source
        self.summarizer = summarizer
        self.post_id = post.id if post else None
        self.form = self._form_from(post)
        self.generating = False
        self.notifications: list[Notification] = []
        self._ai_input: str | None = None
        self._retry_available = False

    @property
    def is_new(self) -> bool:
        return self.post_id is None

    @property
    def can_retry(self) -> bool:
        return self._retry_available

    def _form_from(self, post: PostRecord | None) -> dict[str, Any]:
        if post is None:
            return {
                "title": "",
                "slug": "",
                "excerpt": "",
                "content": "",
                "category": "",
                "tags": [],
                "status": PostStatus.DRAFT,
                "image_url": None,
                "source_url": None,
                "featured": False,
            }
        return {name: getattr(post, name) for name in self.FORM_FIELDS} | {"tags": list(post.tags)}

    def set_field(self, name: str, value: Any) -> None:
        if name not in self.FORM_FIELDS:
            raise KeyError(name)
        self.form[name] = normalize_tags(value) if name == "tags" else value

    def _notify(self, title: str, message: str, level: str = "info") -> None:
        self.notifications.append(Notification(title, message, level))

    # ============ AI ============

    def generate_with_ai(self, text: str) -> bool:
        """Fill the form from an AI summary of text. Failures leave the form untouched."""
        if not text or not text.strip():
            self._notify("Error", "Please enter content or a URL for AI generation.", "error")
            return False
        self._ai_input = text
        self._retry_available = False
        return self._generate(text, is_retry=False)

    def retry_generation(self) -> bool:
        """Retry the last failed generation once."""
        if not self._retry_available or self._ai_input is None:
            return False
        self._retry_available = False
        return self._generate(self._ai_input, is_retry=True)

    def _generate(self, text: str, is_retry: bool) -> bool:
        if self.summarizer is None:
            self._notify("AI Error", "AI generation is not configured.", "error")
            return False

        self.generating = True
        try:
            fields = self._fields_from_summary(self.summarizer(text), self.source.categories())
        except InklingError as e:
            logger.error(f"[EditorSession] AI generation failed: {e.message}")
            self._retry_available = not is_retry
            self._notify("AI Error", "Failed to generate content.", "error")
            return False
        finally:
            self.generating = False

        self.form.update(fields)
        self._notify("Content Generated", "AI has populated the fields.")
        return True

    @staticmethod
    def _fields_from_summary(result: Any, known: list[str]) -> dict[str, Any]:
        """Form fields from a summary. Malformed replies raise AIServiceError."""
        summary = result.to_dict() if hasattr(result, "to_dict") else result
        if not isinstance(summary, dict):
            raise AIServiceError("AI reply is not an object")
        title = summary.get("title") or ""
        body = summary.get("body") or ""
        if not isinstance(title, str) or not isinstance(body, str):
            raise AIServiceError("AI reply title and body must be text")
        category = summary.get("category")
        return {
            "title": title,
            "content": body_to_html(body),
            "excerpt": body[:AI_EXCERPT_LENGTH] + "...",
            "category": category if category in known else (known[0] if known else ""),
            "tags": normalize_tags(summary.get("tags")),
        }

    # ============ Persistence ============

    def save(self) -> PostRecord | None:
        """Create or update through the source. Failures keep the form as is."""
        fields = dict(self.form)
        try:
            if self.post_id is None:
                record = self.source.create(fields)
            else:
                record = self.source.update(self.post_id, fields)
        except InklingError as e:
            logger.warning(f"[EditorSession] Save failed: {e.message}")
            self._notify("Save failed", e.message or "Failed to save post.", "error")
            return None

        self.post_id = record.id
        self.form = self._form_from(record)
        self._notify("Post saved", f"{record.title or record.slug} was saved.")
        return record

    def delete(self) -> bool:
        if self.post_id is None:
            return False
        try:
            self.source.delete(self.post_id)
        except InklingError as e:
            logger.warning(f"[EditorSession] Delete failed: {e.message}")
            self._notify("Delete failed", e.message or "Failed to delete post.", "error")
            return False

        self.post_id = None
        self.form = self._form_from(None)
        self._notify("Post deleted", "The post was deleted.")
        return True
