from functools import lru_cache
from typing import Any, List
import json

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATEGORIES = [
    "عام",
    "امتحانات",
    "إجازات",
    "مسابقات",
    "مذكرات وزارية",
    "تنبيهات مهمة",
]


def _strip_wrapping_quotes(value: str) -> str:
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'"}:
        return text[1:-1].strip()
    return text


def _unwrap_singleton_brackets(value: str) -> str:
    text = _strip_wrapping_quotes(value)
    if text.startswith("[") and text.endswith("]"):
        inner = text[1:-1].strip()
        if inner and "," not in inner:
            return _strip_wrapping_quotes(inner)
    return text


def _parse_string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if str(item).strip()]
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(item).strip() for item in parsed if str(item).strip()]
        if isinstance(parsed, str):
            text = parsed.strip()
        else:
            text = _unwrap_singleton_brackets(text)
        return [part.strip() for part in text.replace(";", ",").split(",") if part.strip()]
    return [str(value).strip()] if str(value).strip() else []


class Settings(BaseSettings):
    backend_url: str = "http://localhost:54321"
    anon_key: str = "anon-key"
    request_timeout: float = 30.0
    upload_timeout: float = 60.0
    max_upload_bytes: int = 10 * 1024 * 1024
    gallery_max_image_bytes: int = 5 * 1024 * 1024
    max_image_width: int = 1200
    max_image_height: int = 1200
    image_quality: float = 0.8
    # Signs the client-side session token; it never authorizes backend calls.
    session_secret: str = "change-me"
    session_ttl_hours: int = 24
    # Empty keeps session state in memory only.
    session_store_path: str = ""
    page_size: int = 20
    max_page_size: int = 100
    # Keep Any here so env parser doesn't force JSON for list fields.
    announcement_categories: Any = DEFAULT_CATEGORIES
    log_level: str = "INFO"
    retry_attempts: int = 3
    retry_delay: float = 1.0

    @field_validator("announcement_categories", mode="before")
    @classmethod
    def _split_categories(cls, value: Any) -> List[str]:
        categories = _parse_string_list(value)
        return categories or list(DEFAULT_CATEGORIES)

    @field_validator("backend_url", "anon_key", "session_secret", "session_store_path", mode="before")
    @classmethod
    def _normalize_scalar_settings(cls, value: Any) -> str:
        if value is None:
            return ""
        return _unwrap_singleton_brackets(str(value))

    @field_validator("backend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        text = _unwrap_singleton_brackets(str(value or "")).strip().upper()
        return text or "INFO"

    @field_validator("page_size")
    @classmethod
    def _positive_page_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("page_size must be at least 1")
        return value

    @property
    def list_page_size(self) -> int:
        """Items per page on paginated lists, capped by ``max_page_size``."""
        return max(1, min(self.page_size, self.max_page_size))

    @property
    def default_category(self) -> str:
        return self.announcement_categories[0]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SCHOOL_PORTAL_",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
