from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ASR_MODEL_ALIASES: dict[str, str] = {
    "small": "small",
    "medium": "medium",
    "large": "large-v3",
}

DEVICES = ("auto", "cuda", "cpu")


class Language(str, Enum):
    AUTO = "auto"
    ENGLISH = "english"
    TURKISH = "turkish"
    SPANISH = "spanish"
    FRENCH = "french"
    GERMAN = "german"
    ITALIAN = "italian"
    PORTUGUESE = "portuguese"
    RUSSIAN = "russian"
    ARABIC = "arabic"
    HINDI = "hindi"
    JAPANESE = "japanese"
    KOREAN = "korean"

    @property
    def code(self) -> str | None:
        """ISO 639-1 code for the backend, or None to let it detect the language."""
        return LANGUAGE_CODES.get(self)


LANGUAGE_CODES: dict[Language, str] = {
    Language.ENGLISH: "en",
    Language.TURKISH: "tr",
    Language.SPANISH: "es",
    Language.FRENCH: "fr",
    Language.GERMAN: "de",
    Language.ITALIAN: "it",
    Language.PORTUGUESE: "pt",
    Language.RUSSIAN: "ru",
    Language.ARABIC: "ar",
    Language.HINDI: "hi",
    Language.JAPANESE: "ja",
    Language.KOREAN: "ko",
}


def parse_language(value: str | Language | None) -> Language:
    if value is None:
        return Language.AUTO
    if isinstance(value, Language):
        return value
    key = value.strip().lower()
    for language in Language:
        if key in (language.value, language.code):
            return language
    allowed = ", ".join(item.value for item in Language)
    raise ValueError(f"Unsupported language '{value}'. Allowed: {allowed}")


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    models_dir: Path | None = None
    default_asr_model: str = "small"
    default_language: str = "auto"
    device: str = "auto"
    gpu_compute_type: str = "float16"
    cpu_compute_type: str = "int8"

    sample_rate: int = 16_000
    window_length_s: float = 30.0
    stride_s: float = 5.0
    min_window_s: float = 1.0

    # Empirical tuning for 30 s windows with 5 s stride; re-tune if those change.
    merge_epsilon_s: float = 0.35
    max_gram_size: int = 20
    min_gram_size: int = 3
    min_words: int = 6

    model_config = SettingsConfigDict(env_prefix="WINDOWSCRIBE_", extra="ignore")

    @model_validator(mode="after")
    def _derive_and_check(self) -> "Settings":
        if "models_dir" not in self.model_fields_set or self.models_dir is None:
            self.models_dir = Path.cwd() / "models"
        if self.device.strip().lower() not in DEVICES:
            raise ValueError(f"Unsupported device '{self.device}'. Allowed: {', '.join(DEVICES)}")
        if self.window_length_s - 2 * self.stride_s <= 0:
            raise ValueError(
                "window_length_s must be larger than twice stride_s "
                f"(got window={self.window_length_s}, stride={self.stride_s})"
            )
        if self.min_gram_size < 1 or self.max_gram_size < self.min_gram_size:
            raise ValueError("Gram size bounds must satisfy 1 <= min_gram_size <= max_gram_size")
        return self

    @property
    def jump_s(self) -> float:
        return self.window_length_s - 2 * self.stride_s

    def resolve_asr_model_path(self, model_name: str) -> Path:
        key = model_name.lower().strip()
        if key not in ASR_MODEL_ALIASES:
            allowed = ", ".join(sorted(ASR_MODEL_ALIASES))
            raise ValueError(f"Unsupported ASR model '{model_name}'. Allowed: {allowed}")
        return self.models_dir / "faster-whisper" / ASR_MODEL_ALIASES[key]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
