# nurture consignments of owned koi
from __future__ import annotations

from datetime import date
from typing import Any, Optional

from api.client import ApiResult, call
from api.models import Consignment
from utils.pure import iso_timestamp


async def get_details(consignment_id: int) -> ApiResult[Consignment]:
    return await call(
        "GET",
        f"nurture-consignments/{consignment_id}",
        mapper=Consignment.from_api,
        failure="Failed to fetch consignment details. Please try again.",
    )


async def create(
    koi_fish_id: int,
    diet_id: int,
    start: date | str,
    end: date | str,
    note: Optional[str] = None,
) -> ApiResult[Any]:
    body = {
        "koiFishId": koi_fish_id,
        "dietId": diet_id,
        "startDate": iso_timestamp(start),
        "endDate": iso_timestamp(end),
    }
    if note:
        body["note"] = note
    return await call("POST", "nurture-consignments", body=body, failure="Failed to create consignment.")


async def cancel(consignment_id: int) -> ApiResult[Any]:
    return await call(
        "PUT",
        f"nurture-consignments/{consignment_id}/cancel",
        failure="Failed to cancel consignment.",
    )
