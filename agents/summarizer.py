"""
AI content helpers: news summaries and keyword-driven post drafts.

Both calls are slow and may fail; callers surface failures and keep their
own form state. Nothing here retries.
"""

import logging
import re
from dataclasses import asdict, dataclass

from apps.blog.domain import AuthorRole, PostStatus, RoleAuthor
from apps.blog.rules import normalize_tags, slugify
from utils.exceptions import AIServiceError, ValidationError
from .builder import get_prompt_builder
from .llm import call_llm_api, parse_json_reply

logger = logging.getLogger(__name__)

SUMMARY_CATEGORY = "News"
EXCERPT_LENGTH = 150

_TAG_RE = re.compile(r"<[^>]+>")


@dataclass
class Summary:
    title: str
    body: str
    tags: list[str]
    category: str = SUMMARY_CATEGORY

    def to_dict(self) -> dict:
        return asdict(self)


def plain_text(html: str) -> str:
    """Strip markup and collapse whitespace."""
    return " ".join(_TAG_RE.sub(" ", html or "").split())


def make_excerpt(body: str) -> str:
    return plain_text(body)[:EXCERPT_LENGTH] + "..."


def _required_text(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise AIServiceError(f"AI reply is missing '{key}'")
    return value.strip()


def _user_prompt(builder, **values) -> str:
    try:
        return builder.build_user_prompt(**values)
    except ValueError as e:
        raise ValidationError(str(e))


def summarize(content: str, provider: str | None = None, model: str | None = None) -> Summary:
    """
    Summarize an article (raw text or a URL) into a draft news post.

    The category is always "News", whatever the model answers.
    """
    builder = get_prompt_builder("news_editor")
    messages = builder.build_messages(_user_prompt(builder, content=content))

    logger.info(f"[Summarize] Summarizing {len(content)} chars")
    data = parse_json_reply(call_llm_api(messages, provider=provider, model=model))

    summary = Summary(
        title=_required_text(data, "title"),
        body=_required_text(data, "body"),
        tags=normalize_tags(data.get("tags")),
    )
    if data.get("category") != SUMMARY_CATEGORY:
        logger.debug(f"[Summarize] Coerced category {data.get('category')!r} to News")
    return summary


def generate_post(
    keyword: str,
    category: str,
    source_url: str | None = None,
    instruction: str | None = None,
    provider: str | None = None,
    model: str | None = None,
) -> dict:
    """
    Write a post-like draft for keyword in category.

    The draft is not saved: status is draft, the author is the AI role, the
    slug comes from the generated title.
    """
    builder = get_prompt_builder("post_writer")
    prompt = _user_prompt(
        builder,
        keyword=keyword,
        category=category,
        source_url=source_url,
        instruction=instruction,
    )

    logger.info(f"[GeneratePost] keyword={keyword!r} category={category!r} source={source_url}")
    data = parse_json_reply(
        call_llm_api(builder.build_messages(prompt), provider=provider, model=model)
    )

    title = _required_text(data, "title")
    content = _required_text(data, "content")

    return {
        "slug": slugify(title) or slugify(keyword),
        "title": title,
        "excerpt": make_excerpt(content),
        "content": content,
        "sourceUrl": source_url,
        "category": category,
        "tags": normalize_tags(data.get("tags")),
        "author": RoleAuthor(role=AuthorRole.AI).to_dict(),
        "status": PostStatus.DRAFT,
    }
