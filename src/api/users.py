# user administration
from __future__ import annotations

from typing import Any, Dict, List

from api.client import ApiResult, call, many
from api.models import User
from api.statuses import Role


async def list_users() -> ApiResult[List[User]]:
    return await call("GET", "users", mapper=many(User.from_api), failure="Failed to load users.")


async def get_user(user_id: int) -> ApiResult[User]:
    return await call("GET", f"users/{user_id}", mapper=User.from_api, failure="User not found.")


async def create_user(data: Dict[str, Any]) -> ApiResult[Any]:
    """`data` uses the backend field names (email, password, fullName, roleName...)."""
    return await call("POST", "users", body=data, failure="Failed to create user.")


async def update_user(user_id: int, data: Dict[str, Any]) -> ApiResult[Any]:
    return await call("PUT", f"users/{user_id}", body=data, failure="Failed to update user.")


async def delete_user(user_id: int) -> ApiResult[Any]:
    return await call("DELETE", f"users/{user_id}", failure="Failed to delete user.")


async def list_staff() -> ApiResult[List[User]]:
    """Staff members are the users whose role is STAFF."""
    result = await list_users()
    if not result.is_success:
        return result
    staff = [u for u in result.data or [] if u.role is Role.STAFF]
    return ApiResult.ok(staff, result.message)
