# config/settings.py
# ============================================================
# Centralized Configuration for the docsense OCR Pipeline
# ============================================================
# All settings are loaded from environment variables (or .env file).
# Pydantic validates types and provides sensible defaults.
#
# Provider credentials are read here once and handed to the OCR
# providers through docsense.ocr.providers.ProviderConfig; nothing
# below this layer reads the environment directly.
#
# Usage:
#   from config.settings import settings
#   config = ProviderConfig.from_settings(settings)
# ============================================================

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application-wide settings. Values are loaded from environment variables
    or a .env file. Every setting has a typed default so the pipeline can be
    constructed with zero configuration; providers that need a credential
    fail at call time, not at import time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Provider chain ---
    ocr_primary_provider: str = Field(
        default="huggingface",
        description="Primary OCR provider: huggingface | gemini | recognition_service.",
    )
    ocr_fallback_provider: str = Field(
        default="huggingface_ocr",
        description="Fallback OCR provider: huggingface_ocr | recognition_service.",
    )
    ocr_request_timeout: float = Field(
        default=30.0,
        description="Timeout (seconds) for a single provider call.",
    )

    # --- Hugging Face ---
    hf_token: Optional[str] = Field(
        default=None,
        description="Hugging Face access token used by both Hugging Face providers.",
    )
    hf_model: str = Field(
        default="google/gemma-3-27b-it:featherless-ai",
        description="Chat model for primary extraction. Accepts 'org/model' or 'org/model:provider'.",
    )
    hf_provider: Optional[str] = Field(
        default=None,
        description="Inference provider. Overrides the ':provider' suffix of hf_model.",
    )
    hf_ocr_model: str = Field(
        default="microsoft/trocr-base-printed",
        description="Dedicated image-to-text model used as the fallback.",
    )
    hf_base_url: str = Field(
        default="https://router.huggingface.co/v1",
        description="OpenAI-compatible base URL for chat completions.",
    )
    hf_inference_url: str = Field(
        default="https://router.huggingface.co/hf-inference/models",
        description="Base URL for serverless image-to-text inference.",
    )

    # --- Gemini ---
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Google Generative Language API key.",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model used when it is the primary provider.",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Generative Language API.",
    )

    # --- Self-hosted recognition service ---
    recognition_service_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of a recognition service exposing POST /ocr.",
    )

    # --- Document handling ---
    selectable_text_min_chars: int = Field(
        default=50,
        description="A PDF whose trimmed text layer is longer than this is treated as selectable.",
    )
    max_batch_size: int = Field(
        default=8,
        description="Maximum number of pages sent to OCR providers concurrently.",
    )
    max_image_dim: int = Field(
        default=4096,
        description="Maximum image dimension (px). Larger pages are downscaled before OCR.",
    )
    pdf_render_dpi: int = Field(
        default=200,
        description="DPI for rendering scanned PDF pages to images.",
    )

    # --- Output ---
    results_dir: Path = Field(
        default=Path("output"),
        description="Directory used by the JSON result store.",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG | INFO | WARNING | ERROR.",
    )


# ============================================================
# Singleton instance — import this everywhere:
#   from config.settings import settings
# ============================================================
settings = Settings()
