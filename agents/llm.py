"""
LLM provider registry and chat-completion calls.

Every provider is reached through its OpenAI-compatible chat completions
endpoint, so one request shape serves all of them.
"""

import json
import logging
import re

import httpx
from django.conf import settings

from utils.exceptions import AIServiceError, TransportError, ValidationError

logger = logging.getLogger(__name__)

# LLM API configurations
LLM_CONFIGS = {
    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "get_key": lambda: settings.OPENAI_API_KEY,
        "models": ["gpt-4o-mini", "gpt-4o", "gpt-4.1-mini"],
        "default": "gpt-4o-mini",
    },
    "gemini": {
        "url": "https://generativelanguage.googleapis.com/v1beta/openai/chat/completions",
        "get_key": lambda: settings.GEMINI_API_KEY,
        "models": ["gemini-2.0-flash", "gemini-1.5-flash", "gemini-1.5-pro"],
        "default": "gemini-2.0-flash",
    },
    "groq": {
        "url": "https://api.groq.com/openai/v1/chat/completions",
        "get_key": lambda: settings.GROQ_API_KEY,
        "models": ["llama-3.3-70b-versatile", "llama-3.1-8b-instant", "mixtral-8x7b-32768"],
        "default": "llama-3.3-70b-versatile",
    },
}


def available_models() -> list[dict]:
    """Provider registry as [{provider, models, default}]."""
    return [
        {"provider": name, "models": list(config["models"]), "default": config["default"]}
        for name, config in LLM_CONFIGS.items()
    ]


def get_llm_config(provider: str | None = None, model: str | None = None) -> dict:
    """Resolve provider and model, falling back to LLM_PROVIDER and the provider default."""
    provider = provider or getattr(settings, "LLM_PROVIDER", "gemini")
    config = LLM_CONFIGS.get(provider)
    if config is None:
        raise ValidationError.for_field(
            "provider", f"provider must be one of: {', '.join(LLM_CONFIGS)}"
        )
    model = model or config["default"]
    if model not in config["models"]:
        raise ValidationError.for_field("model", f"Unknown model for {provider}: {model}")

    logger.info(f"[LLM] Using provider: {provider} ({model})")
    return {
        "provider": provider,
        "url": config["url"],
        "api_key": config["get_key"](),
        "model": model,
    }


def call_llm_api(
    messages: list[dict],
    provider: str | None = None,
    model: str | None = None,
    temperature: float = 0.7,
) -> str:
    """
    Call the chat completions endpoint and return the assistant message text.

    Raises:
        TransportError: network failure, timeout or a 5xx from the provider
        AIServiceError: missing key, rejected request or an empty answer
    """
    llm_config = get_llm_config(provider, model)
    if not llm_config["api_key"]:
        raise AIServiceError(f"No API key configured for {llm_config['provider']}")

    request_body = {
        "model": llm_config["model"],
        "messages": messages,
        "temperature": temperature,
        "stream": False,
    }

    logger.debug(f"[LLM] Calling {llm_config['provider']} API: {llm_config['url']}")

    try:
        with httpx.Client() as client:
            response = client.post(
                llm_config["url"],
                headers={
                    "Authorization": f"Bearer {llm_config['api_key']}",
                    "Content-Type": "application/json",
                },
                json=request_body,
                timeout=getattr(settings, "LLM_TIMEOUT", 60.0),
            )
    except httpx.HTTPError as e:
        logger.error(f"[LLM] Request to {llm_config['provider']} failed: {e}")
        raise TransportError(f"AI provider unreachable: {e}")

    if response.status_code >= 500:
        logger.error(f"[LLM] API error {response.status_code}: {response.text}")
        raise TransportError(f"AI provider error ({response.status_code})")
    if response.status_code != 200:
        logger.error(f"[LLM] API error {response.status_code}: {response.text}")
        raise AIServiceError(f"AI request rejected ({response.status_code})")

    try:
        data = response.json()
        content = data["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error(f"[LLM] Unexpected response shape: {response.text[:500]}")
        raise AIServiceError("AI returned an unexpected response")

    if not content or not content.strip():
        raise AIServiceError("AI returned an empty response")

    usage = data.get("usage", {})
    logger.info(f"[LLM] Completed, tokens: {usage.get('total_tokens', 0)}")
    return content


_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_reply(content: str) -> dict:
    """Parse a JSON object out of a model reply, tolerating ``` fences."""
    text = _FENCE_RE.sub("", content.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # Some models wrap the object in prose
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise AIServiceError("AI reply was not valid JSON")
        try:
            data = json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            raise AIServiceError("AI reply was not valid JSON")
    if not isinstance(data, dict):
        raise AIServiceError("AI reply was not a JSON object")
    return data
