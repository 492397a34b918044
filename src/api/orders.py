"""
Orders and their per-fish details.

Customers create and cancel orders; managers assign staff and approve or
reject details; staff walk a detail through get-fish, ship, nurture and
complete. Which action is offered is decided by the status enums, the
backend validates every transition.
"""

from __future__ import annotations

from typing import Any, List

from api.client import ApiResult, call, many
from api.models import CreateOrderRequest, Order, OrderDetail
from api.statuses import STAFF_ACTION_LABELS


async def create_order(order: CreateOrderRequest) -> ApiResult[Any]:
    return await call(
        "POST",
        "payment/purchase",
        body=order.to_payload(),
        failure="Failed to create order. Please try again.",
    )


async def list_orders() -> ApiResult[List[Order]]:
    return await call("GET", "orders", mapper=many(Order.from_api), failure="Failed to load orders.")


async def get_order(order_id: int) -> ApiResult[Order]:
    return await call("GET", f"orders/{order_id}", mapper=Order.from_api, failure="Order not found.")


async def cancel_pending_order(order_id: int) -> ApiResult[Any]:
    return await call("PUT", f"orders/{order_id}/cancel", failure="Failed to cancel order.")


async def assign_staff(order_detail_id: int, staff_id: int) -> ApiResult[Any]:
    # the staff id is the whole JSON body
    return await call(
        "PUT",
        f"order-detail/{order_detail_id}/assign",
        body=staff_id,
        failure="Failed to assign staff.",
    )


async def _detail_action(order_detail_id: int, action: str, failure: str) -> ApiResult[Any]:
    return await call("PUT", f"order-details/{order_detail_id}/{action}", failure=failure)


async def approve_detail(order_detail_id: int) -> ApiResult[Any]:
    return await _detail_action(order_detail_id, "approve", "Failed to approve order detail.")


async def reject_detail(order_detail_id: int) -> ApiResult[Any]:
    return await _detail_action(order_detail_id, "reject", "Failed to reject order detail.")


async def ship_detail(order_detail_id: int) -> ApiResult[Any]:
    return await _detail_action(order_detail_id, "ship", "Failed to mark as shipping.")


async def complete_detail(order_detail_id: int) -> ApiResult[Any]:
    return await _detail_action(order_detail_id, "complete", "Failed to complete order detail.")


async def list_staff_tasks(staff_id: int) -> ApiResult[List[OrderDetail]]:
    return await call(
        "GET",
        f"staffs/{staff_id}/order-details",
        mapper=many(OrderDetail.from_api),
        failure="Failed to load your tasks.",
    )


async def run_staff_action(order_detail_id: int, action: str) -> ApiResult[Any]:
    """`action` is one of get-fish, ship, nurture, complete."""
    if action not in STAFF_ACTION_LABELS:
        return ApiResult.fail(f"Unknown action: {action}")
    return await _detail_action(
        order_detail_id, action, f"Failed to {STAFF_ACTION_LABELS[action].lower()}."
    )
