# docsense/language/identifier.py
# ============================================================
# Language Identifier
# ============================================================
# Labels extracted text with one of the supported languages using
# langdetect's statistical n-gram profiles. The answer is coarse:
#
#   empty / whitespace text      → Unknown, confidence 0.0
#   sample shorter than 3 chars  → Unknown, confidence 0.3
#   no letter features (digits)  → Unknown, confidence 0.3
#   detector commits to a code   → mapped name, confidence 0.8
#                                  (Unknown if not in the allow-list)
#   detector raises otherwise    → Unknown, confidence 0.0
#
# Identification never fails the pipeline.
# ============================================================

from dataclasses import dataclass
from typing import Optional

from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import ErrorCode, LangDetectException

from docsense.errors import LanguageIdentificationError
from docsense.utils.logger import get_logger

logger = get_logger(__name__)

# langdetect is randomized; a fixed seed keeps labels stable between runs
DetectorFactory.seed = 0

MIN_SAMPLE_LENGTH = 3
COMMITTED_CONFIDENCE = 0.8
UNDETERMINED_CONFIDENCE = 0.3


@dataclass(frozen=True)
class LanguageInfo:
    name: str
    code: str
    confidence: float


UNKNOWN_NAME = "Unknown"
UNKNOWN_CODE = "unknown"

SUPPORTED_LANGUAGES: dict[str, str] = {
    "en": "English",
    "ta": "Tamil",
    "hi": "Hindi",
}


def language_name(code: str) -> str:
    """Return the display name for a language code, or "Unknown"."""
    return SUPPORTED_LANGUAGES.get(code, UNKNOWN_NAME)


class LanguageIdentifier:
    """
    Maps raw text to a supported language label.

    Example:
        >>> LanguageIdentifier().identify("The quick brown fox jumps over the lazy dog")
        LanguageInfo(name='English', code='en', confidence=0.8)
    """

    def __init__(self, supported: Optional[dict[str, str]] = None):
        self.supported = supported or SUPPORTED_LANGUAGES

    def identify(self, text: str) -> LanguageInfo:
        if not text or not text.strip():
            return LanguageInfo(UNKNOWN_NAME, UNKNOWN_CODE, 0.0)

        try:
            detected = self._detect(text)
        except LanguageIdentificationError as e:
            logger.warning(f"Language detection failed: {e}")
            return LanguageInfo(UNKNOWN_NAME, UNKNOWN_CODE, 0.0)

        if detected is None:
            return LanguageInfo(UNKNOWN_NAME, UNKNOWN_CODE, UNDETERMINED_CONFIDENCE)

        name = self.supported.get(detected)
        if name is None:
            logger.debug(f"Detected unsupported language '{detected}'")
            return LanguageInfo(UNKNOWN_NAME, UNKNOWN_CODE, COMMITTED_CONFIDENCE)
        return LanguageInfo(name, detected, COMMITTED_CONFIDENCE)

    def _detect(self, text: str) -> Optional[str]:
        """Return the detected code, or None when the sample is undetermined."""
        sample = text.strip()
        if len(sample) < MIN_SAMPLE_LENGTH:
            return None
        try:
            return detect(sample)
        except LangDetectException as e:
            # digits or punctuation only
            if e.code == ErrorCode.CantDetectError:
                return None
            raise LanguageIdentificationError(str(e)) from e
