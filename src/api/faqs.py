from __future__ import annotations

from typing import Any, List

from api.client import ApiResult, call, many
from api.models import Faq


async def get_all() -> ApiResult[List[Faq]]:
    # answered with a bare list
    return await call(
        "GET", "faqs", mapper=many(Faq.from_api), enveloped=False, failure="Failed to load FAQs."
    )


async def create(question: str, answer: str) -> ApiResult[Any]:
    return await call(
        "POST", "faqs", body={"question": question, "answer": answer}, failure="Failed to add FAQ."
    )


async def update(faq_id: int, question: str, answer: str) -> ApiResult[Any]:
    return await call(
        "PUT",
        f"faqs/{faq_id}",
        body={"question": question, "answer": answer},
        failure="Failed to update FAQ.",
    )


async def delete(faq_id: int) -> ApiResult[Any]:
    return await call("DELETE", f"faqs/{faq_id}", failure="Failed to delete FAQ.")
