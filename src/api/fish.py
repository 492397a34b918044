"""
Koi fish catalogue and owned koi.

The public catalogue is searched through OData (`odata/koi-fishes`); single
fish and writes go through REST (`KoiFish`). A customer's own koi live under
`users/me/koi-fishes`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from api.client import ApiError, ApiResult, ODataPage, call, many, odata
from api.models import KoiFish
from api.odata import ODataQuery, any_eq, contains, eq, ge, le
from utils.logger import get_logger

_logger = get_logger(__name__)

# label -> $orderby
SORT_OPTIONS = {
    "Newest": "CreatedAt desc",
    "Price: low to high": "Price asc",
    "Price: high to low": "Price desc",
    "Name": "Name asc",
}


@dataclass(frozen=True)
class FishSearch:
    page_number: int = 1
    page_size: int = 8
    search_term: Optional[str] = None
    koi_breed_id: Optional[int] = None
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    sort_by: Optional[str] = None
    only_available: bool = True

    def to_query(self) -> ODataQuery:
        term = (self.search_term or "").strip()
        return (
            ODataQuery()
            .where(
                eq("IsAvailableForSale", True) if self.only_available else None,
                eq("IsDeleted", False),
                contains("Name", term) if term else None,
                any_eq("KoiBreeds", "Id", self.koi_breed_id) if self.koi_breed_id else None,
                ge("Price", self.min_price) if self.min_price is not None else None,
                le("Price", self.max_price) if self.max_price is not None else None,
            )
            .expand_with("KoiBreeds", "KoiFishImages")
            .order_by(self.sort_by)
            .page(self.page_number, self.page_size)
            .with_count()
        )


def fish_payload(koi: KoiFish, **changes: Any) -> Dict[str, Any]:
    """REST body for KoiFish writes; `changes` use the backend (camelCase) names."""
    payload = {
        "name": koi.name,
        "origin": koi.origin,
        "gender": koi.gender,
        "dob": koi.dob,
        "length": koi.length or 0,
        "weight": koi.weight or 0,
        "personalityTraits": koi.personality_traits or "",
        "dailyFeedAmount": koi.daily_feed_amount or 0,
        "lastHealthCheck": koi.last_health_check,
        "isAvailableForSale": bool(koi.is_available_for_sale),
        "isSold": bool(koi.is_sold),
        "price": koi.price,
        "koiBreedIds": [b.id for b in koi.breeds],
        "imageUrls": [i.image_url for i in koi.images],
    }
    payload.update(changes)
    return payload


async def list_available(search: FishSearch) -> ODataPage[KoiFish]:
    """Raises ApiError; callers render the failure themselves."""
    return await odata("odata/koi-fishes", search.to_query(), KoiFish.from_odata)


async def get_by_id(fish_id: int) -> ApiResult[KoiFish]:
    return await call("GET", f"KoiFish/{fish_id}", mapper=KoiFish.from_api, failure="Koi not found.")


async def get_many(fish_ids: Iterable[int]) -> Dict[int, KoiFish]:
    """
    Fetch several fish at once. Fish that could not be loaded are left out
    of the result.
    """
    ids = list(dict.fromkeys(fish_ids))
    results = await asyncio.gather(*(get_by_id(i) for i in ids))
    found = {}
    for fish_id, result in zip(ids, results):
        if result.is_success and result.data is not None:
            found[fish_id] = result.data
        else:
            _logger.debug(f"Koi {fish_id} could not be refreshed: {result.message}")
    return found


async def create(data: Dict[str, Any]) -> ApiResult[Any]:
    return await call("POST", "KoiFish", body=data, failure="Failed to create koi.")


async def update(fish_id: int, data: Dict[str, Any]) -> ApiResult[Any]:
    return await call("PUT", f"KoiFish/{fish_id}", body=data, failure="Failed to update koi.")


async def delete(fish_id: int) -> ApiResult[Any]:
    return await call("DELETE", f"KoiFish/{fish_id}", failure="Failed to delete koi.")


async def list_mine() -> ApiResult[List[KoiFish]]:
    return await call(
        "GET", "users/me/koi-fishes", mapper=many(KoiFish.from_api), failure="Failed to load your koi."
    )


async def get_mine(fish_id: int) -> ApiResult[KoiFish]:
    return await call(
        "GET", f"users/me/koi-fishes/{fish_id}", mapper=KoiFish.from_api, failure="Koi not found."
    )


async def create_by_user(data: Dict[str, Any]) -> ApiResult[Any]:
    return await call("POST", "users/me/koi-fishes", body=data, failure="Failed to add your koi.")


async def update_by_user(fish_id: int, data: Dict[str, Any]) -> ApiResult[Any]:
    return await call(
        "PUT", f"users/me/koi-fishes/{fish_id}", body=data, failure="Failed to update your koi."
    )


async def search_or_fail(search: FishSearch) -> ApiResult[ODataPage[KoiFish]]:
    """list_available folded into an ApiResult, for screens."""
    try:
        return ApiResult.ok(await list_available(search))
    except ApiError as e:
        return ApiResult.fail(e.server_message or "Failed to load koi.")
