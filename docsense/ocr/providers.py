# docsense/ocr/providers.py
# ============================================================
# OCR Providers — "extract text from one image"
# ============================================================
# Each provider wraps one remote service behind the same async
# contract:
#
#   await provider.extract(image_bytes, mime_type) -> ExtractedText
#
# Wire responses are parsed exactly once, here, into ExtractedText.
# Every failure (network, timeout, HTTP status, missing credential,
# empty or malformed body) is raised as ProviderError so the
# fallback chain can decide what to do next.
#
# Providers:
#   - HuggingFaceChatProvider        multimodal chat (primary)
#   - GeminiProvider                 multimodal generateContent (primary)
#   - HuggingFaceImageToTextProvider dedicated OCR model (fallback)
#   - RecognitionServiceProvider     self-hosted /ocr with boxes + confidence
# ============================================================

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from docsense.errors import ProviderError
from docsense.models import BoundingBox, ExtractedText, PageConfidence
from docsense.utils.image import encode_image_base64, to_data_url
from docsense.utils.logger import get_logger

logger = get_logger(__name__)

EXTRACTION_PROMPT = (
    "Extract all visible text from this image. Preserve natural reading order "
    "and spacing. Return only plain text with no extra commentary."
)


# ============================================================
# Configuration
# ============================================================

@dataclass(frozen=True)
class ProviderConfig:
    """
    Everything the providers need to reach their services.

    Built once from settings and injected into each provider, so tests
    can construct providers with explicit values and no environment.
    """
    hf_token: Optional[str] = None
    hf_model: str = "google/gemma-3-27b-it:featherless-ai"
    hf_provider: Optional[str] = None
    hf_ocr_model: str = "microsoft/trocr-base-printed"
    hf_base_url: str = "https://router.huggingface.co/v1"
    hf_inference_url: str = "https://router.huggingface.co/hf-inference/models"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    recognition_service_url: str = "http://localhost:8000"
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "ProviderConfig":
        return cls(
            hf_token=settings.hf_token,
            hf_model=settings.hf_model,
            hf_provider=settings.hf_provider,
            hf_ocr_model=settings.hf_ocr_model,
            hf_base_url=settings.hf_base_url,
            hf_inference_url=settings.hf_inference_url,
            gemini_api_key=settings.gemini_api_key,
            gemini_model=settings.gemini_model,
            gemini_base_url=settings.gemini_base_url,
            recognition_service_url=settings.recognition_service_url,
            timeout=settings.ocr_request_timeout,
        )

    @property
    def hf_chat_model(self) -> str:
        """
        Router model id for chat completions.

        ``hf_model`` may be "org/model" or "org/model:provider"; an explicit
        ``hf_provider`` wins over the suffix.
        """
        model, _, suffix = self.hf_model.partition(":")
        provider = self.hf_provider or suffix
        return f"{model}:{provider}" if provider else model


# ============================================================
# Base class
# ============================================================

class OCRCapability(ABC):
    """
    Abstract "extract text from one image" capability.

    Subclasses build the HTTP request and parse the JSON body; this class
    owns the client, the timing and the translation of transport errors.
    """

    name: str = "ocr"

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.config.timeout))
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedText:
        """
        Extract text from one image.

        Args:
            image_bytes: Encoded image content.
            mime_type: MIME type of ``image_bytes``.

        Returns:
            The parsed provider answer.

        Raises:
            ProviderError: On any transport, status or response-shape failure.
        """
        start = time.perf_counter()
        try:
            response = await self._request(self._get_client(), image_bytes, mime_type)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, f"request timed out ({e.__class__.__name__})") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                self.name, f"HTTP {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(self.name, f"request failed: {e}") from e
        except ValueError as e:
            raise ProviderError(self.name, f"response is not JSON: {e}") from e

        extracted = self._parse(payload)
        latency_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"{self.name} extracted {len(extracted.text)} chars in {latency_ms:.0f}ms")
        return extracted

    def _fail(self, message: str) -> ProviderError:
        return ProviderError(self.name, message)

    @abstractmethod
    async def _request(
        self, client: httpx.AsyncClient, image_bytes: bytes, mime_type: str
    ) -> httpx.Response:
        """Send the provider request."""

    @abstractmethod
    def _parse(self, payload: Any) -> ExtractedText:
        """Turn the decoded JSON body into ExtractedText."""


# ============================================================
# Primary providers
# ============================================================

class HuggingFaceChatProvider(OCRCapability):
    """Multimodal chat completion on the Hugging Face router."""

    name = "huggingface"

    async def _request(self, client, image_bytes, mime_type):
        if not self.config.hf_token:
            raise self._fail("HF_TOKEN is not set")

        payload = {
            "model": self.config.hf_chat_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": to_data_url(image_bytes, mime_type)}},
                    ],
                }
            ],
            "temperature": 0.0,
        }
        return await client.post(
            f"{self.config.hf_base_url}/chat/completions",
            json=payload,
            headers={"Authorization": f"Bearer {self.config.hf_token}"},
        )

    def _parse(self, payload):
        try:
            message = payload["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._fail(f"malformed chat response: {e!r}") from e

        # content is either a string or a list of typed parts
        if isinstance(message, str):
            text = message
        elif isinstance(message, dict) and isinstance(message.get("content"), str):
            text = message["content"]
        elif isinstance(message, dict) and isinstance(message.get("content"), list):
            parts = [
                part.get("text", "")
                for part in message["content"]
                if isinstance(part, dict) and part.get("type") == "text"
            ]
            text = next((p for p in parts if p), "")
        else:
            raise self._fail("chat response has no text content")

        text = text.strip()
        if not text:
            raise self._fail("empty response")
        return ExtractedText(text=text)


class GeminiProvider(OCRCapability):
    """Gemini ``generateContent`` with an inline image."""

    name = "gemini"

    async def _request(self, client, image_bytes, mime_type):
        if not self.config.gemini_api_key:
            raise self._fail("GEMINI_API_KEY is not set")

        payload = {
            "contents": [
                {
                    "parts": [
                        {"text": EXTRACTION_PROMPT},
                        {"inline_data": {"mime_type": mime_type, "data": encode_image_base64(image_bytes)}},
                    ]
                }
            ]
        }
        return await client.post(
            f"{self.config.gemini_base_url}/models/{self.config.gemini_model}:generateContent",
            json=payload,
            headers={"x-goog-api-key": self.config.gemini_api_key},
        )

    def _parse(self, payload):
        if not isinstance(payload, dict):
            raise self._fail("malformed generateContent response")

        block_reason = (payload.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise self._fail(f"request blocked: {block_reason}")

        try:
            parts = payload["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._fail(f"malformed generateContent response: {e!r}") from e

        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict)).strip()
        if not text:
            raise self._fail("empty response")
        return ExtractedText(text=text)


# ============================================================
# Fallback providers
# ============================================================

class HuggingFaceImageToTextProvider(OCRCapability):
    """
    Dedicated image-to-text model (TrOCR by default).

    An empty ``generated_text`` is a valid answer for a blank image and
    is returned as empty text rather than raised.
    """

    name = "huggingface_ocr"

    async def _request(self, client, image_bytes, mime_type):
        if not self.config.hf_token:
            raise self._fail("HF_TOKEN is not set")

        return await client.post(
            f"{self.config.hf_inference_url}/{self.config.hf_ocr_model}",
            content=image_bytes,
            headers={
                "Authorization": f"Bearer {self.config.hf_token}",
                "Content-Type": mime_type,
            },
        )

    def _parse(self, payload):
        # Serverless inference answers with a list, some providers with a dict
        item = payload[0] if isinstance(payload, list) and payload else payload
        if not isinstance(item, dict) or "generated_text" not in item:
            raise self._fail("response has no generated_text")

        text = item["generated_text"]
        if not isinstance(text, str):
            raise self._fail("generated_text is not a string")
        return ExtractedText(text=text.strip())


class RecognitionServiceProvider(OCRCapability):
    """
    Self-hosted recognition service.

    ``POST {url}/ocr`` with a multipart ``file`` field; the service answers
    ``{"text": ..., "boxes": [...], "confidence": ...}``. This is the only
    provider that reports bounding boxes and a confidence.
    """

    name = "recognition_service"

    async def _request(self, client, image_bytes, mime_type):
        extension = mime_type.rsplit("/", 1)[-1]
        return await client.post(
            f"{self.config.recognition_service_url.rstrip('/')}/ocr",
            files={"file": (f"page.{extension}", image_bytes, mime_type)},
        )

    def _parse(self, payload):
        if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
            raise self._fail("response has no text")

        try:
            boxes = tuple(BoundingBox.from_dict(box) for box in payload.get("boxes") or [])
        except (TypeError, ValueError, AttributeError) as e:
            raise self._fail(f"malformed boxes: {e}") from e

        raw_confidence = payload.get("confidence")
        if raw_confidence is None:
            confidence = PageConfidence.not_provided()
        elif isinstance(raw_confidence, (int, float)) and not isinstance(raw_confidence, bool):
            confidence = PageConfidence.measured(raw_confidence)
        else:
            raise self._fail(f"confidence is not a number: {raw_confidence!r}")

        return ExtractedText(text=payload["text"].strip(), boxes=boxes, confidence=confidence)


PROVIDERS: dict[str, type[OCRCapability]] = {
    HuggingFaceChatProvider.name: HuggingFaceChatProvider,
    GeminiProvider.name: GeminiProvider,
    HuggingFaceImageToTextProvider.name: HuggingFaceImageToTextProvider,
    RecognitionServiceProvider.name: RecognitionServiceProvider,
}


def create_provider(
    name: str,
    config: ProviderConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> OCRCapability:
    """
    Create a provider by name.

    Raises:
        ValueError: If ``name`` is not a known provider.
    """
    key = name.lower().strip()
    if key not in PROVIDERS:
        raise ValueError(f"Unsupported OCR provider: {name}. Available: {sorted(PROVIDERS)}")
    return PROVIDERS[key](config, client=client)
