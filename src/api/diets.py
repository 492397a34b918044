"""
Nurture diets. Reads go through OData, writes through REST.
"""

from __future__ import annotations

from typing import Any, Dict, List

from api.client import ApiError, ApiResult, call, odata, odata_entity
from api.models import Diet
from api.odata import ODataQuery, eq
from utils.logger import get_logger

_logger = get_logger(__name__)


async def get_diet_list(include_deleted: bool = False) -> ApiResult[List[Diet]]:
    query = ODataQuery() if include_deleted else ODataQuery().where(eq("IsDeleted", False))
    try:
        page = await odata("odata/diets", query, Diet.from_odata)
    except ApiError as e:
        return ApiResult.fail(e.server_message or "Failed to load diets.")
    return ApiResult.ok(page.value)


async def get_diet_by_id(diet_id: int) -> ApiResult[Diet]:
    try:
        diet = await odata_entity(f"odata/diets({diet_id})", Diet.from_odata)
    except ApiError as e:
        return ApiResult.fail(e.server_message or "Diet not found.")
    return ApiResult.ok(diet)


def _payload(name: str, diet_cost: int, description: str) -> Dict[str, Any]:
    return {"name": name, "dietCost": diet_cost, "description": description}


async def create_diet(name: str, diet_cost: int, description: str = "") -> ApiResult[Any]:
    return await call(
        "POST", "diets", body=_payload(name, diet_cost, description), failure="Failed to create diet."
    )


async def update_diet(diet_id: int, name: str, diet_cost: int, description: str = "") -> ApiResult[Any]:
    return await call(
        "PUT",
        f"diets/{diet_id}",
        body=_payload(name, diet_cost, description),
        failure="Failed to update diet.",
    )


async def delete_diet(diet_id: int) -> ApiResult[Any]:
    return await call("DELETE", f"diets/{diet_id}", failure="Failed to delete diet.")
