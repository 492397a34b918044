"""
Image uploads to the third-party host configured by KOI_IMAGE_UPLOAD_URL.

The host receives a multipart form with an `image` field (plus `key` when
KOI_IMAGE_UPLOAD_KEY is set) and answers with the public URL, either as
`data.url` or top-level `url`. The resulting URL is what gets sent to the
backend.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any, Optional

import aiohttp

from api.client import ApiResult
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

UPLOAD_URL = settings.image_upload_url
UPLOAD_KEY = settings.image_upload_key


def _extract_url(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    data = payload.get("data")
    if isinstance(data, dict) and data.get("url"):
        return data["url"]
    return payload.get("url") or None


async def upload_image(path: str) -> ApiResult[str]:
    if not UPLOAD_URL:
        return ApiResult.fail("Image upload is not configured (KOI_IMAGE_UPLOAD_URL).")
    if not os.path.isfile(path):
        return ApiResult.fail(f"File not found: {path}")

    params = {"key": UPLOAD_KEY} if UPLOAD_KEY else None
    try:
        with open(path, "rb") as fh:
            form = aiohttp.FormData()
            form.add_field("image", fh, filename=os.path.basename(path))
            async with aiohttp.ClientSession() as sess:
                async with sess.post(UPLOAD_URL, data=form, params=params) as response:
                    payload = await response.json(content_type=None)
                    if response.status >= 400:
                        _logger.error(f"Image upload failed with HTTP {response.status}")
                        return ApiResult.fail("Image upload failed.")
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        _logger.error(f"Image upload failed: {e!r}")
        return ApiResult.fail("Image upload failed.")

    url = _extract_url(payload)
    if not url:
        _logger.error("Image host answered without a URL.")
        return ApiResult.fail("Image upload failed.")
    return ApiResult.ok(url)
