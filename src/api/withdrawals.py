# wallet withdrawal requests
from __future__ import annotations

from typing import Any, List

from api.client import ApiResult, call, many
from api.models import WithdrawnRequest


async def get_all() -> ApiResult[List[WithdrawnRequest]]:
    return await call(
        "GET",
        "WithdrawnRequest",
        mapper=many(WithdrawnRequest.from_api),
        failure="Failed to fetch withdrawn requests. Please try again.",
    )


async def get_by_user() -> ApiResult[List[WithdrawnRequest]]:
    """Requests of the logged in user."""
    return await call(
        "GET",
        "WithdrawnRequest/GetListByUserId",
        mapper=many(WithdrawnRequest.from_api),
        failure="Failed to fetch withdrawn requests for the user. Please try again.",
    )


async def create(bank_note: str, amount: int) -> ApiResult[Any]:
    if amount <= 0:
        return ApiResult.fail("Amount must be positive.")
    if not bank_note.strip():
        return ApiResult.fail("Bank details are required.")
    return await call(
        "POST",
        "WithdrawnRequest/CreateRequest",
        body={"bankNote": bank_note, "amount": str(amount)},
        failure="Failed to create withdrawn request. Please try again.",
    )


async def approve(request_id: int, approval_note: str) -> ApiResult[Any]:
    # the note (usually the uploaded receipt URL) is the whole JSON body
    return await call(
        "POST",
        f"WithdrawnRequest/ApproveRequest/{request_id}",
        body=approval_note,
        failure="Failed to approve withdrawn request. Please try again.",
    )


async def reject(request_id: int, rejection_note: str) -> ApiResult[Any]:
    return await call(
        "POST",
        f"WithdrawnRequest/RejectRequest/{request_id}",
        body={"rejectionNote": rejection_note},
        failure="Failed to reject withdrawn request. Please try again.",
    )
