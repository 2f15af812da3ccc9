# tests/test_providers.py
# ============================================================
# Unit Tests — OCR Providers
# ============================================================
# Every provider is exercised against httpx.MockTransport, so
# request shapes and response parsing are checked without any
# network access.
# ============================================================

import asyncio
import json

import httpx
import pytest

from docsense.errors import ProviderError
from docsense.models import ConfidenceState
from docsense.ocr.providers import (
    GeminiProvider,
    HuggingFaceChatProvider,
    HuggingFaceImageToTextProvider,
    ProviderConfig,
    RecognitionServiceProvider,
    create_provider,
)

CONFIG = ProviderConfig(hf_token="hf-test", gemini_api_key="gm-test", timeout=5.0)
IMAGE = b"\x89PNG fake image"


def run_provider(provider_cls, handler, config=CONFIG):
    """Run one extract() call against a mock transport; return result and requests."""
    requests = []

    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        provider = provider_cls(config, client=client)
        try:
            return await provider.extract(IMAGE, "image/png")
        finally:
            await provider.aclose()

    return asyncio.run(run()), requests


def run_failing(provider_cls, handler, config=CONFIG) -> ProviderError:
    with pytest.raises(ProviderError) as excinfo:
        run_provider(provider_cls, handler, config)
    return excinfo.value


# ============================================================
# Configuration
# ============================================================

class TestProviderConfig:

    def test_model_with_provider_suffix(self):
        config = ProviderConfig(hf_model="google/gemma-3-27b-it:featherless-ai")
        assert config.hf_chat_model == "google/gemma-3-27b-it:featherless-ai"

    def test_explicit_provider_overrides_suffix(self):
        config = ProviderConfig(hf_model="org/model:novita", hf_provider="together")
        assert config.hf_chat_model == "org/model:together"

    def test_plain_model(self):
        assert ProviderConfig(hf_model="org/model").hf_chat_model == "org/model"

    def test_create_provider_by_name(self):
        assert isinstance(create_provider("Gemini", CONFIG), GeminiProvider)

    def test_create_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported OCR provider"):
            create_provider("tesseract", CONFIG)


# ============================================================
# Hugging Face chat (primary)
# ============================================================

class TestHuggingFaceChatProvider:

    def test_string_content(self):
        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": "  Hello  "}}]})

        result, requests = run_provider(HuggingFaceChatProvider, handler)
        assert result.text == "Hello"
        assert result.boxes == ()
        assert result.confidence.state is ConfidenceState.NOT_PROVIDED

        body = json.loads(requests[0].content)
        assert requests[0].url.path.endswith("/chat/completions")
        assert requests[0].headers["authorization"] == "Bearer hf-test"
        assert body["model"] == CONFIG.hf_chat_model
        image_part = body["messages"][0]["content"][1]
        assert image_part["image_url"]["url"].startswith("data:image/png;base64,")

    def test_list_content(self):
        def handler(request):
            content = [{"type": "image"}, {"type": "text", "text": "From parts"}]
            return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})

        result, _ = run_provider(HuggingFaceChatProvider, handler)
        assert result.text == "From parts"

    def test_empty_text_is_a_failure(self):
        def handler(request):
            return httpx.Response(200, json={"choices": [{"message": {"content": "   "}}]})

        error = run_failing(HuggingFaceChatProvider, handler)
        assert error.provider == "huggingface"
        assert "empty" in str(error)

    def test_malformed_body_is_a_failure(self):
        error = run_failing(HuggingFaceChatProvider, lambda r: httpx.Response(200, json={"error": "x"}))
        assert "malformed" in str(error)

    def test_non_json_body_is_a_failure(self):
        error = run_failing(HuggingFaceChatProvider, lambda r: httpx.Response(200, text="<html>"))
        assert "not JSON" in str(error)

    def test_http_error_status(self):
        error = run_failing(HuggingFaceChatProvider, lambda r: httpx.Response(503, text="overloaded"))
        assert "HTTP 503" in str(error)

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        error = run_failing(HuggingFaceChatProvider, handler)
        assert "timed out" in str(error)

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        error = run_failing(HuggingFaceChatProvider, handler)
        assert "request failed" in str(error)

    def test_missing_token(self):
        requests_made = []
        error = run_failing(
            HuggingFaceChatProvider,
            lambda r: requests_made.append(r),
            config=ProviderConfig(hf_token=None),
        )
        assert "HF_TOKEN" in str(error)
        assert requests_made == []


# ============================================================
# Gemini (primary)
# ============================================================

class TestGeminiProvider:

    def test_parts_are_joined(self):
        def handler(request):
            parts = [{"text": "Line one\n"}, {"text": "Line two"}]
            return httpx.Response(200, json={"candidates": [{"content": {"parts": parts}}]})

        result, requests = run_provider(GeminiProvider, handler)
        assert result.text == "Line one\nLine two"
        assert requests[0].url.path.endswith("/models/gemini-1.5-flash:generateContent")
        assert requests[0].headers["x-goog-api-key"] == "gm-test"
        inline = json.loads(requests[0].content)["contents"][0]["parts"][1]["inline_data"]
        assert inline["mime_type"] == "image/png"

    def test_blocked_prompt_is_a_failure(self):
        def handler(request):
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        error = run_failing(GeminiProvider, handler)
        assert "SAFETY" in str(error)

    def test_missing_key(self):
        error = run_failing(GeminiProvider, lambda r: None, config=ProviderConfig())
        assert "GEMINI_API_KEY" in str(error)


# ============================================================
# Hugging Face image-to-text (fallback)
# ============================================================

class TestHuggingFaceImageToTextProvider:

    def test_list_response(self):
        def handler(request):
            return httpx.Response(200, json=[{"generated_text": " TOTAL 42 "}])

        result, requests = run_provider(HuggingFaceImageToTextProvider, handler)
        assert result.text == "TOTAL 42"
        assert requests[0].url.path.endswith("/microsoft/trocr-base-printed")
        assert requests[0].content == IMAGE
        assert requests[0].headers["content-type"] == "image/png"

    def test_dict_response(self):
        result, _ = run_provider(
            HuggingFaceImageToTextProvider,
            lambda r: httpx.Response(200, json={"generated_text": "dict shape"}),
        )
        assert result.text == "dict shape"

    def test_empty_generated_text_is_accepted(self):
        result, _ = run_provider(
            HuggingFaceImageToTextProvider,
            lambda r: httpx.Response(200, json=[{"generated_text": ""}]),
        )
        assert result.text == ""

    def test_missing_generated_text_is_a_failure(self):
        error = run_failing(
            HuggingFaceImageToTextProvider,
            lambda r: httpx.Response(200, json=[{"label": "cat"}]),
        )
        assert "generated_text" in str(error)


# ============================================================
# Recognition service
# ============================================================

class TestRecognitionServiceProvider:

    def test_text_boxes_and_confidence(self):
        payload = {
            "text": "Invoice 42",
            "boxes": [
                {"text": "Invoice", "coordinates": [[0, 0], [50, 0], [50, 10], [0, 10]], "confidence": 0.97},
                {"text": "42", "polygon": [[60, 0], [70, 0], [70, 10], [60, 10]], "confidence": 0.91},
            ],
            "confidence": 0.94,
        }
        result, requests = run_provider(RecognitionServiceProvider, lambda r: httpx.Response(200, json=payload))

        assert result.text == "Invoice 42"
        assert [box.text for box in result.boxes] == ["Invoice", "42"]
        assert result.boxes[0].polygon[1] == (50.0, 0.0)
        assert result.confidence.is_measured
        assert result.confidence.value == pytest.approx(0.94)
        assert requests[0].url.path == "/ocr"
        assert b'name="file"' in requests[0].content

    def test_missing_confidence_is_not_provided(self):
        result, _ = run_provider(RecognitionServiceProvider, lambda r: httpx.Response(200, json={"text": "x"}))
        assert result.confidence.state is ConfidenceState.NOT_PROVIDED

    def test_bad_confidence_is_a_failure(self):
        error = run_failing(
            RecognitionServiceProvider,
            lambda r: httpx.Response(200, json={"text": "x", "confidence": "high"}),
        )
        assert "confidence" in str(error)
