"""
HTTP transport for the koi backend.

Every call opens its own aiohttp session (mirroring the short-lived database
connections of the local store), attaches the stored bearer token and decodes
JSON. Two calling styles sit on top of `request()`:

- `call()` for REST endpoints answering with the `{data, message, isSuccess}`
  envelope. Failures never raise; they come back as a failed ApiResult.
- `odata()` / `odata_entity()` for OData endpoints. Failures raise ApiError.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar
from urllib.parse import urljoin

import aiohttp

from api.odata import ODataQuery
from api.statuses import UnknownStatusError
from db import local_storage
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

BASE_URL = settings.api_base_url

T = TypeVar("T")

# raised while turning a decoded body into models
MAPPING_ERRORS = (UnknownStatusError, KeyError, TypeError, ValueError, AttributeError)


class ApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    @property
    def server_message(self) -> Optional[str]:
        """The message the backend put in its error body, if any."""
        if isinstance(self.payload, dict):
            msg = self.payload.get("message") or self.payload.get("title")
            if isinstance(msg, str) and msg.strip():
                return msg
        if isinstance(self.payload, str) and self.payload.strip():
            return self.payload.strip()
        return None


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    is_success: bool
    data: Optional[T] = None
    message: str = ""

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "") -> "ApiResult[T]":
        return cls(True, data, message)

    @classmethod
    def fail(cls, message: str) -> "ApiResult[T]":
        return cls(False, None, message)


@dataclass(frozen=True)
class ODataPage(Generic[T]):
    value: List[T] = field(default_factory=list)
    count: Optional[int] = None

    @property
    def total(self) -> int:
        """Server count when requested, else the page length."""
        return self.count if self.count is not None else len(self.value)


def _url(path: str) -> str:
    return urljoin(BASE_URL, path.lstrip("/"))


@asynccontextmanager
async def session():
    headers = {"Accept": "application/json"}
    token = await local_storage.get_item(local_storage.JWT_KEY)
    if token:
        headers["Authorization"] = f"Bearer {token}"
    async with aiohttp.ClientSession(headers=headers) as sess:
        yield sess


async def _decode(response: aiohttp.ClientResponse) -> Any:
    text = await response.text()
    if not text:
        return None
    if "json" in (response.content_type or ""):
        try:
            return await response.json(content_type=None)
        except ValueError:
            return text
    return text


async def request(
    method: str,
    path: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    body: Any = None,
    data: Any = None,
) -> Any:
    """
    Perform one HTTP call and return the decoded body.

    `body` is sent as JSON, `data` as-is (form or multipart). Raises ApiError on
    transport failures and on HTTP status >= 400.
    """
    url = _url(path)
    kwargs: Dict[str, Any] = {}
    if params:
        kwargs["params"] = {k: str(v) for k, v in params.items() if v is not None}
    if data is not None:
        kwargs["data"] = data
    elif body is not None:
        kwargs["json"] = body
    try:
        async with session() as sess:
            async with sess.request(method, url, **kwargs) as response:
                payload = await _decode(response)
                if response.status >= 400:
                    err = ApiError(
                        f"{method} {path} failed with HTTP {response.status}",
                        status=response.status,
                        payload=payload,
                    )
                    _logger.error(f"{err.message}: {err.server_message or '-'}")
                    raise err
                return payload
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        _logger.error(f"{method} {path} could not reach the backend: {e!r}")
        raise ApiError(f"Could not reach the server ({e.__class__.__name__})") from e


async def call(
    method: str,
    path: str,
    *,
    failure: str,
    mapper: Optional[Callable[[Any], T]] = None,
    params: Optional[Dict[str, Any]] = None,
    body: Any = None,
    data: Any = None,
    enveloped: bool = True,
) -> ApiResult[T]:
    """
    Call a REST endpoint and fold the outcome into an ApiResult.

    `failure` is the message shown when the backend gives none. With
    `enveloped=False` the whole body is treated as `data` (a few endpoints
    answer with a bare list or object).
    """
    try:
        payload = await request(method, path, params=params, body=body, data=data)
    except ApiError as e:
        return ApiResult.fail(e.server_message or failure)

    if enveloped and isinstance(payload, dict) and "isSuccess" in payload:
        message = payload.get("message") or ""
        if not payload.get("isSuccess"):
            _logger.error(f"{method} {path} rejected: {message or '-'}")
            return ApiResult.fail(message or failure)
        raw = payload.get("data")
    else:
        message = ""
        raw = payload

    try:
        mapped = mapper(raw) if mapper is not None and raw is not None else raw
    except MAPPING_ERRORS as e:
        _logger.error(f"{method} {path} returned data that could not be read: {e}")
        return ApiResult.fail(failure)
    return ApiResult.ok(mapped, message)


def many(fn: Callable[[Dict[str, Any]], T]) -> Callable[[Any], List[T]]:
    """Lift a per-item mapper to a list mapper."""

    def _map(raw: Any) -> List[T]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise TypeError(f"expected a list, got {type(raw).__name__}")
        return [fn(x) for x in raw]

    return _map


async def odata(
    path: str, query: Optional[ODataQuery], mapper: Callable[[Dict[str, Any]], T]
) -> ODataPage[T]:
    """GET an OData collection. Raises ApiError, including on unreadable rows."""
    params = query.to_params() if query is not None else None
    payload = await request("GET", path, params=params)
    if isinstance(payload, list):
        rows, count = payload, None
    elif isinstance(payload, dict):
        rows, count = payload.get("value") or [], payload.get("@odata.count")
    else:
        raise ApiError(f"GET {path} returned no OData collection", payload=payload)
    try:
        value = [mapper(row) for row in rows]
    except MAPPING_ERRORS as e:
        _logger.error(f"GET {path} returned rows that could not be read: {e}")
        raise ApiError(f"GET {path} returned unreadable data", payload=payload) from e
    return ODataPage(value=value, count=int(count) if count is not None else None)


async def odata_entity(path: str, mapper: Callable[[Dict[str, Any]], T]) -> T:
    payload = await request("GET", path)
    # single entities come back bare or wrapped in a one-row collection
    if isinstance(payload, dict) and isinstance(payload.get("value"), list):
        rows = payload["value"]
        if not rows:
            raise ApiError(f"GET {path} found nothing", status=404, payload=payload)
        payload = rows[0]
    if not isinstance(payload, dict):
        raise ApiError(f"GET {path} returned no entity", payload=payload)
    try:
        return mapper(payload)
    except MAPPING_ERRORS as e:
        _logger.error(f"GET {path} returned an entity that could not be read: {e}")
        raise ApiError(f"GET {path} returned unreadable data", payload=payload) from e
