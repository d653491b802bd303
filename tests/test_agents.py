"""
Tests for the AI content helpers.
"""

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest
from django.test import override_settings

from agents import PromptBuilder, available_models, generate_post, summarize
from agents.llm import call_llm_api, get_llm_config, parse_json_reply
from utils.exceptions import AIServiceError, TransportError, ValidationError


def completion(content: str) -> dict:
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"total_tokens": 42},
    }


def mock_http_client(response=None, error=None):
    """Patch target for httpx.Client used as a context manager."""
    client = MagicMock()
    if error is not None:
        client.post.side_effect = error
    else:
        client.post.return_value = response
    client_cm = MagicMock()
    client_cm.__enter__.return_value = client
    client_cm.__exit__.return_value = False
    return client_cm, client


def http_response(status_code: int, payload) -> httpx.Response:
    request = httpx.Request("POST", "https://llm.example.com")
    if isinstance(payload, (dict, list)):
        return httpx.Response(status_code, json=payload, request=request)
    return httpx.Response(status_code, text=payload, request=request)


class TestPromptBuilder:
    def test_system_prompt_from_yaml(self):
        builder = PromptBuilder("news_editor")
        prompt = builder.build_system_prompt()
        assert "news editor" in prompt
        assert "JSON" in prompt

    def test_messages(self):
        messages = PromptBuilder("post_writer").build_messages("Keyword: solar")
        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[1]["content"] == "Keyword: solar"

    def test_user_prompt_skips_empty_inputs(self):
        prompt = PromptBuilder("post_writer").build_user_prompt(
            instruction="Be brief", keyword="solar", category="Technology", source_url=None
        )
        assert prompt == "Keyword: solar\nCategory: Technology\nEditor instruction: Be brief"

    def test_user_prompt_required_input(self):
        with pytest.raises(ValueError):
            PromptBuilder("news_editor").build_user_prompt(content="  ")

    def test_missing_config(self):
        with pytest.raises(FileNotFoundError):
            PromptBuilder("does_not_exist")


class TestProviders:
    def test_available_models(self):
        registry = {p["provider"]: p for p in available_models()}
        assert set(registry) == {"openai", "gemini", "groq"}
        for provider in registry.values():
            assert provider["default"] in provider["models"]

    @override_settings(LLM_PROVIDER="groq", GROQ_API_KEY="gk")
    def test_default_provider_from_settings(self):
        config = get_llm_config()
        assert config["provider"] == "groq"
        assert config["api_key"] == "gk"
        assert "api.groq.com" in config["url"]

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            get_llm_config("claude-bot")

    def test_unknown_model(self):
        with pytest.raises(ValidationError):
            get_llm_config("openai", "gpt-0")


class TestCallLLM:
    @pytest.fixture(autouse=True)
    def openai_settings(self, settings):
        settings.OPENAI_API_KEY = "sk-test"
        settings.LLM_PROVIDER = "openai"

    def test_returns_content(self):
        client_cm, client = mock_http_client(http_response(200, completion("hello")))
        with patch("agents.llm.httpx.Client", return_value=client_cm):
            assert call_llm_api([{"role": "user", "content": "hi"}]) == "hello"

        url = client.post.call_args.args[0]
        body = client.post.call_args.kwargs["json"]
        assert url == "https://api.openai.com/v1/chat/completions"
        assert body["model"] == "gpt-4o-mini"
        assert client.post.call_args.kwargs["headers"]["Authorization"] == "Bearer sk-test"

    def test_network_error_is_transport_error(self):
        client_cm, client = mock_http_client(error=httpx.ConnectTimeout("timed out"))
        with patch("agents.llm.httpx.Client", return_value=client_cm):
            with pytest.raises(TransportError):
                call_llm_api([{"role": "user", "content": "hi"}])
        assert client.post.call_count == 1

    def test_server_error_is_transport_error(self):
        client_cm, _ = mock_http_client(http_response(503, "unavailable"))
        with patch("agents.llm.httpx.Client", return_value=client_cm):
            with pytest.raises(TransportError):
                call_llm_api([{"role": "user", "content": "hi"}])

    def test_rejected_request_is_ai_error(self):
        client_cm, _ = mock_http_client(http_response(400, {"error": "bad"}))
        with patch("agents.llm.httpx.Client", return_value=client_cm):
            with pytest.raises(AIServiceError):
                call_llm_api([{"role": "user", "content": "hi"}])

    def test_empty_answer_is_ai_error(self):
        client_cm, _ = mock_http_client(http_response(200, completion("   ")))
        with patch("agents.llm.httpx.Client", return_value=client_cm):
            with pytest.raises(AIServiceError):
                call_llm_api([{"role": "user", "content": "hi"}])

    def test_missing_key(self, settings):
        settings.OPENAI_API_KEY = ""
        with pytest.raises(AIServiceError):
            call_llm_api([{"role": "user", "content": "hi"}])


class TestParseReply:
    def test_plain_json(self):
        assert parse_json_reply('{"title": "x"}') == {"title": "x"}

    def test_fenced_json(self):
        assert parse_json_reply('```json\n{"title": "x"}\n```') == {"title": "x"}

    def test_json_inside_prose(self):
        assert parse_json_reply('Sure! {"title": "x"} Enjoy.') == {"title": "x"}

    def test_not_json(self):
        with pytest.raises(AIServiceError):
            parse_json_reply("no json here")


class TestSummarize:
    def test_category_forced_to_news(self):
        reply = json.dumps(
            {"title": "Rates rise", "body": "Central bank acts.", "tags": "economy, rates", "category": "Finance"}
        )
        with patch("agents.summarizer.call_llm_api", return_value=reply) as mock_call:
            summary = summarize("https://news.example.com/rates")

        assert summary.title == "Rates rise"
        assert summary.body == "Central bank acts."
        assert summary.tags == ["economy", "rates"]
        assert summary.category == "News"
        messages = mock_call.call_args.args[0]
        assert messages[1]["content"] == "Content: https://news.example.com/rates"

    def test_tags_as_list(self):
        reply = json.dumps({"title": "T", "body": "B", "tags": ["a", "b"]})
        with patch("agents.summarizer.call_llm_api", return_value=reply):
            assert summarize("text").tags == ["a", "b"]

    def test_missing_title(self):
        reply = json.dumps({"body": "B", "tags": []})
        with patch("agents.summarizer.call_llm_api", return_value=reply):
            with pytest.raises(AIServiceError):
                summarize("text")


class TestGeneratePost:
    def test_draft_shape(self):
        body = "<p>" + "Solar output doubled this year. " * 10 + "</p>"
        reply = json.dumps({"title": "Solar Power, Explained!", "content": body, "tags": ["Energy", "solar"]})
        with patch("agents.summarizer.call_llm_api", return_value=reply) as mock_call:
            draft = generate_post(
                "solar",
                "Technology",
                source_url="https://energy.example.com/",
                instruction="Keep it short",
                provider="gemini",
            )

        assert draft["slug"] == "solar-power-explained"
        assert draft["status"] == "draft"
        assert draft["author"] == {"kind": "role", "role": "ai"}
        assert draft["category"] == "Technology"
        assert draft["sourceUrl"] == "https://energy.example.com/"
        assert draft["excerpt"].endswith("...")
        assert len(draft["excerpt"]) == 153
        assert "<p>" not in draft["excerpt"]
        assert draft["tags"] == ["Energy", "solar"]

        prompt = mock_call.call_args.args[0][1]["content"]
        assert "Source URL: https://energy.example.com/" in prompt
        assert "Editor instruction: Keep it short" in prompt
        assert mock_call.call_args.kwargs["provider"] == "gemini"

    def test_failure_propagates(self):
        with patch("agents.summarizer.call_llm_api", side_effect=TransportError("down")):
            with pytest.raises(TransportError):
                generate_post("solar", "Technology")
