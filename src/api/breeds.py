# koi breed catalogue
from __future__ import annotations

from typing import Any, Dict, List, Optional

from api.client import ApiResult, call, many
from api.models import KoiBreed


def _payload(name: str, content: str, image_url: Optional[str]) -> Dict[str, Any]:
    return {"name": name, "content": content, "imageUrl": image_url}


async def get_all() -> ApiResult[List[KoiBreed]]:
    return await call(
        "GET", "koi-breeds", mapper=many(KoiBreed.from_api), failure="Failed to load breeds."
    )


async def get_list(search_term: Optional[str] = None) -> ApiResult[List[KoiBreed]]:
    params = {"SearchTerm": search_term} if search_term else None
    return await call(
        "GET",
        "koi-breeds",
        params=params,
        mapper=many(KoiBreed.from_api),
        failure="Failed to load breeds.",
    )


async def get_by_id(breed_id: int) -> ApiResult[KoiBreed]:
    return await call(
        "GET", f"koi-breeds/{breed_id}", mapper=KoiBreed.from_api, failure="Breed not found."
    )


async def create(name: str, content: str = "", image_url: Optional[str] = None) -> ApiResult[Any]:
    return await call(
        "POST", "koi-breeds", body=_payload(name, content, image_url), failure="Failed to create breed."
    )


async def update(
    breed_id: int, name: str, content: str = "", image_url: Optional[str] = None
) -> ApiResult[Any]:
    return await call(
        "PUT",
        f"koi-breeds/{breed_id}",
        body=_payload(name, content, image_url),
        failure="Failed to update breed.",
    )


async def delete(breed_id: int) -> ApiResult[Any]:
    return await call("DELETE", f"koi-breeds/{breed_id}", failure="Failed to delete breed.")
