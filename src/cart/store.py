"""
The persisted shopping cart.

Every mutation is a pure function over the current item list, applied with a
versioned read-modify-write against the local store: read (value, revision),
apply, compare-and-set on the revision. When another writer got there first
the mutation is re-applied to the fresh cart, so concurrent adds are never
lost. Listeners registered with `subscribe` receive the new cart after each
successful write.
"""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Union

from cart.errors import CartConflictError
from cart.models import CartItem, ConsignmentConfig, cart_from_json, cart_to_json
from db import local_storage
from utils.logger import get_logger

_logger = get_logger(__name__)

MAX_ATTEMPTS = 5

Listener = Callable[[List[CartItem]], Union[None, Awaitable[None]]]
Mutation = Callable[[List[CartItem]], List[CartItem]]
ItemEdit = Callable[[CartItem], CartItem]

_listeners: List[Listener] = []


def _decode(raw: Optional[str]) -> List[CartItem]:
    if raw is None:
        return []
    try:
        return cart_from_json(json.loads(raw))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        _logger.debug(f"Ignoring malformed cart content: {e}")
        return []


def _encode(items: List[CartItem]) -> str:
    return json.dumps(cart_to_json(items), ensure_ascii=False)


async def get_cart() -> List[CartItem]:
    entry = await local_storage.get_entry(local_storage.CART_KEY)
    return _decode(entry[0] if entry else None)


async def _notify(items: List[CartItem]) -> None:
    for listener in list(_listeners):
        outcome = listener(list(items))
        if outcome is not None:
            await outcome


async def _mutate(mutation: Mutation) -> List[CartItem]:
    for _ in range(MAX_ATTEMPTS):
        entry = await local_storage.get_entry(local_storage.CART_KEY)
        value, revision = entry if entry else (None, 0)
        updated = mutation(_decode(value))
        if await local_storage.compare_and_set(local_storage.CART_KEY, _encode(updated), revision):
            await _notify(updated)
            return updated
        _logger.debug("Cart changed during write, re-applying.")
    raise CartConflictError(MAX_ATTEMPTS)


# ---------------------------
# Mutations
# ---------------------------


async def add_to_cart(item: CartItem) -> List[CartItem]:
    """Add a fish; a fish already in the cart gets its quantity bumped instead."""

    def apply(items: List[CartItem]) -> List[CartItem]:
        if any(i.id == item.id for i in items):
            return [
                replace(i, quantity=i.quantity + 1) if i.id == item.id else i
                for i in items
            ]
        return items + [replace(item, quantity=1, consign=False, consignment=None)]

    return await _mutate(apply)


async def remove_from_cart(item_id: int) -> List[CartItem]:
    return await _mutate(lambda items: [i for i in items if i.id != item_id])


async def update_cart_item_quantity(item_id: int, quantity: int) -> List[CartItem]:
    if quantity < 1:
        raise ValueError("quantity must be at least 1")

    def apply(items: List[CartItem]) -> List[CartItem]:
        return [
            replace(i, quantity=quantity) if i.id == item_id else i
            for i in items
        ]

    return await _mutate(apply)


async def update_cart_item_consignment(
    item_id: int, consign: bool, config: Optional[ConsignmentConfig]
) -> List[CartItem]:
    def apply(items: List[CartItem]) -> List[CartItem]:
        return [
            replace(i, consign=consign, consignment=config)
            if i.id == item_id
            else i
            for i in items
        ]

    return await _mutate(apply)


async def update_items(edit: ItemEdit) -> List[CartItem]:
    """
    Apply `edit` to every line of the stored cart.

    The edit receives the line as currently stored, never a copy held by the
    caller, so it composes with concurrent writes. It must keep the id.
    """
    return await _mutate(lambda items: [edit(i) for i in items])


async def update_item(item_id: int, edit: ItemEdit) -> List[CartItem]:
    """Apply `edit` to the stored line with `item_id`, e.g. one from cart.consignment."""
    return await update_items(lambda i: edit(i) if i.id == item_id else i)


async def clear_cart() -> None:
    await local_storage.remove_item(local_storage.CART_KEY)
    await _notify([])


# ---------------------------
# Listeners
# ---------------------------


def subscribe(listener: Listener) -> Callable[[], None]:
    """Register a listener (sync or async); returns the matching unsubscribe."""
    _listeners.append(listener)

    def unsubscribe() -> None:
        if listener in _listeners:
            _listeners.remove(listener)

    return unsubscribe
