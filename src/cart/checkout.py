"""
Turning the cart into an order.

`create_order_data_from_cart` is a pure assembler. `submit_order` adds the
local checks, the request and the cart cleanup around it.
"""

from __future__ import annotations

from typing import Any, List, Optional

from api import orders
from api.client import ApiResult
from api.models import CreateOrderRequest, PurchaseFish
from cart import store
from cart.consignment import is_config_complete
from cart.errors import CheckoutBlockedError
from cart.models import CartItem
from utils.logger import get_logger
from utils.pure import iso_timestamp

_logger = get_logger(__name__)


def _purchase(item: CartItem) -> PurchaseFish:
    config = item.consignment
    if not item.consign or config is None:
        return PurchaseFish(fish_id=item.id, is_nuture=item.consign)
    rng = config.date_range
    return PurchaseFish(
        fish_id=item.id,
        is_nuture=True,
        diet_id=config.diet_id,
        start_date=iso_timestamp(rng.start) if rng and rng.start else None,
        end_date=iso_timestamp(rng.end) if rng and rng.end else None,
        note=config.note,
    )


def create_order_data_from_cart(
    items: List[CartItem], shipping_address: str, note: Optional[str] = None
) -> CreateOrderRequest:
    return CreateOrderRequest(
        purchase_fishes=[_purchase(item) for item in items],
        shipping_address=shipping_address,
        note=note or None,
    )


def find_invalid_items(items: List[CartItem]) -> List[CartItem]:
    """Consigned lines whose configuration is not complete yet."""
    return [i for i in items if i.consign and not is_config_complete(i.consignment)]


async def submit_order(
    items: List[CartItem], shipping_address: str, note: Optional[str] = None
) -> ApiResult[Any]:
    """
    Validate locally, send the order, and clear the cart once the backend
    accepted it. Raises CheckoutBlockedError without contacting the backend
    when the cart is empty, an address is missing or a consignment is
    incomplete.
    """
    if not items:
        raise CheckoutBlockedError("Your cart is empty.")
    if not (shipping_address or "").strip():
        raise CheckoutBlockedError("Please enter a shipping address.")
    invalid = find_invalid_items(items)
    if invalid:
        names = ", ".join(i.name for i in invalid)
        raise CheckoutBlockedError(
            f"Please complete the consignment settings for: {names}", invalid
        )

    order = create_order_data_from_cart(items, shipping_address.strip(), note)
    result = await orders.create_order(order)
    if result.is_success:
        _logger.info(f"Order placed for {len(items)} koi.")
        await store.clear_cart()
    return result
