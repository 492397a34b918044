from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]  # project root, next to src/
load_dotenv(dotenv_path=ROOT_DIR / ".env")

DEFAULT_API_BASE_URL = "https://koi.eventzone.id.vn/api/v1/"


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        raise RuntimeError(f"{keys[0]} must be an integer, got {v!r}") from None


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    image_upload_url: str | None
    image_upload_key: str | None
    local_store_path: str
    page_size: int
    currency_symbol: str


def load_settings() -> Settings:
    """Build settings from the environment (and .env, already loaded)."""
    return Settings(
        api_base_url=_with_trailing_slash(
            _get_env("KOI_API_BASE_URL", "API_BASE_URL", default=DEFAULT_API_BASE_URL)
            or DEFAULT_API_BASE_URL
        ),
        image_upload_url=_get_env("KOI_IMAGE_UPLOAD_URL"),
        image_upload_key=_get_env("KOI_IMAGE_UPLOAD_KEY"),
        local_store_path=_get_env(
            "KOI_LOCAL_STORE", default=str(ROOT_DIR / "data" / "local_storage.sqlite")
        )
        or "",
        page_size=_get_int("KOI_PAGE_SIZE", default=8),
        currency_symbol=_get_env("KOI_CURRENCY_SYMBOL", default="₫") or "₫",
    )


settings = load_settings()

if settings.page_size < 1:
    raise RuntimeError("KOI_PAGE_SIZE must be at least 1")
