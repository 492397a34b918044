# requests from customers to sell their koi back to the shop
from __future__ import annotations

from typing import Any, Optional

from api.client import ApiResult, ODataPage, call, odata
from api.models import RequestForSale
from api.odata import ODataQuery, contains, eq
from api.statuses import SaleRequestStatus

DEFAULT_ORDER = "ModifiedAt desc"


def build_query(
    page_number: int = 1,
    page_size: int = 8,
    koi_fish_id: Optional[int] = None,
    status: Optional[SaleRequestStatus] = None,
    search_term: Optional[str] = None,
    sort_by: Optional[str] = DEFAULT_ORDER,
) -> ODataQuery:
    term = (search_term or "").strip()
    return (
        ODataQuery()
        .expand_with("KoiFish")
        .where(
            eq("KoiFishId", koi_fish_id) if koi_fish_id else None,
            eq("RequestStatus", status.value) if status else None,
            contains("KoiFish/Name", term) if term else None,
        )
        .order_by(sort_by)
        .page(page_number, page_size)
        .with_count()
    )


async def create(
    user_id: int, koi_fish_id: int, price_dealed: int, note: Optional[str] = None
) -> ApiResult[Any]:
    if price_dealed <= 0:
        return ApiResult.fail("Price must be positive.")
    body = {"userId": user_id, "koiFishId": koi_fish_id, "priceDealed": price_dealed}
    if note:
        body["note"] = note
    return await call("POST", "RequestForSale", body=body, failure="Failed to create request for sale.")


async def get_my_request_for_sales(query: ODataQuery) -> ODataPage[RequestForSale]:
    """Raises ApiError."""
    return await odata("odata/my-request-for-sales", query, RequestForSale.from_odata)


async def get_all(query: ODataQuery) -> ODataPage[RequestForSale]:
    """Raises ApiError."""
    return await odata("odata/request-for-sales", query, RequestForSale.from_odata)


async def cancel(request_id: int) -> ApiResult[Any]:
    return await call("PUT", f"RequestForSale/{request_id}/cancel", failure="Failed to cancel request.")


async def approve(request_id: int) -> ApiResult[Any]:
    return await call("PUT", f"RequestForSale/{request_id}/approve", failure="Failed to approve request.")


async def reject(request_id: int, reason: str) -> ApiResult[Any]:
    return await call(
        "PUT",
        f"RequestForSale/{request_id}/reject",
        body={"rejectionReason": reason},
        failure="Failed to reject request.",
    )
