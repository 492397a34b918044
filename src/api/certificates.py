# koi certificates (birth, breed, award)
from __future__ import annotations

from typing import Any, List

from api.client import ApiError, ApiResult, call, odata
from api.models import CERTIFICATE_TYPES, KoiCertificate
from api.odata import ODataQuery, eq


async def get_by_koi_fish_id(koi_fish_id: int) -> ApiResult[List[KoiCertificate]]:
    query = ODataQuery().where(eq("KoiFishId", koi_fish_id), eq("IsDeleted", False))
    try:
        page = await odata("odata/koi-certificates", query, KoiCertificate.from_odata)
    except ApiError as e:
        return ApiResult.fail(e.server_message or "Failed to load certificates.")
    return ApiResult.ok(page.value)


async def create(koi_fish_id: int, certificate_type: str, certificate_url: str) -> ApiResult[Any]:
    if certificate_type not in CERTIFICATE_TYPES:
        return ApiResult.fail(f"Unknown certificate type: {certificate_type}")
    return await call(
        "POST",
        "koi-certificates",
        body={
            "koiFishId": koi_fish_id,
            "certificateType": certificate_type,
            "certificateUrl": certificate_url,
        },
        failure="Failed to add certificate.",
    )


async def update(
    certificate_id: int, koi_fish_id: int, certificate_type: str, certificate_url: str
) -> ApiResult[Any]:
    if certificate_type not in CERTIFICATE_TYPES:
        return ApiResult.fail(f"Unknown certificate type: {certificate_type}")
    return await call(
        "PUT",
        f"koi-certificates/{certificate_id}",
        body={
            "koiFishId": koi_fish_id,
            "certificateType": certificate_type,
            "certificateUrl": certificate_url,
        },
        failure="Failed to update certificate.",
    )


async def delete(certificate_id: int) -> ApiResult[Any]:
    return await call(
        "DELETE", f"koi-certificates/{certificate_id}", failure="Failed to delete certificate."
    )
