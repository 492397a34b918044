# login, registration and the cached profile of the current user
from __future__ import annotations

from typing import Any, Dict, Optional

from api.client import MAPPING_ERRORS, ApiResult, call
from api.models import LoginTokens, User
from db import local_storage
from utils.logger import get_logger

_logger = get_logger(__name__)


async def _store_tokens(tokens: LoginTokens) -> None:
    await local_storage.set_item(local_storage.JWT_KEY, tokens.access_token)
    if tokens.refresh_token:
        await local_storage.set_item(local_storage.REFRESH_TOKEN_KEY, tokens.refresh_token)
    if tokens.user_id is not None:
        await local_storage.set_item(local_storage.USER_ID_KEY, str(tokens.user_id))


async def login(email: str, password: str) -> ApiResult[LoginTokens]:
    """Authenticate and persist the returned tokens."""
    result = await call(
        "POST",
        "users/login",
        body={"email": email, "password": password},
        mapper=LoginTokens.from_api,
        failure="Invalid email or password.",
    )
    if result.is_success and result.data is not None:
        await _store_tokens(result.data)
        _logger.info(f"Logged in as {email}.")
    return result


async def register(email: str, password: str, full_name: Optional[str] = None) -> ApiResult[Any]:
    body: Dict[str, Any] = {"email": email, "password": password}
    if full_name:
        body["fullName"] = full_name
    return await call("POST", "users/register", body=body, failure="Registration failed.")


async def refresh() -> ApiResult[LoginTokens]:
    token = await local_storage.get_item(local_storage.REFRESH_TOKEN_KEY)
    if not token:
        return ApiResult.fail("You need to log in again.")
    result = await call(
        "POST",
        "users/refresh",
        body={"refreshToken": token},
        mapper=LoginTokens.from_api,
        failure="Session expired, please log in again.",
    )
    if result.is_success and result.data is not None:
        await _store_tokens(result.data)
    return result


async def get_me() -> ApiResult[User]:
    """Fetch the current profile and cache it under the `user` key."""
    result = await call("GET", "users/me", failure="Could not load your profile.")
    if not result.is_success:
        return result
    raw = result.data
    try:
        user = User.from_api(raw)
    except MAPPING_ERRORS as e:
        _logger.error(f"Profile could not be read: {e}")
        return ApiResult.fail("Could not load your profile.")
    await local_storage.set_json(local_storage.USER_KEY, raw)
    await local_storage.set_item(local_storage.USER_ID_KEY, str(user.id))
    return ApiResult.ok(user, result.message)


async def cached_user() -> Optional[User]:
    raw = await local_storage.get_json(local_storage.USER_KEY)
    if not isinstance(raw, dict):
        return None
    try:
        return User.from_api(raw)
    except MAPPING_ERRORS:
        _logger.debug("Dropping unreadable cached profile.")
        return None


async def is_logged_in() -> bool:
    return bool(await local_storage.get_item(local_storage.JWT_KEY))


async def logout() -> None:
    """Forget tokens and profile. The cart survives a logout."""
    await local_storage.remove_items(local_storage.AUTH_KEYS)
    _logger.info("Logged out.")
