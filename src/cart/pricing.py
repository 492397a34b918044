# derived prices of a cart, in whole đồng
from __future__ import annotations

from datetime import date
from typing import Iterable, List, Mapping, Optional, Union

from cart.models import UNSET_DIET, CartItem, DateRange
from utils.pure import format_vnd

__all__ = ["days_between", "duration", "consignment_price", "subtotal", "format_vnd"]

Diets = Union[Iterable, Mapping[int, object]]


def days_between(start: date, end: date) -> int:
    """Signed whole days from start to end."""
    return (end - start).days


def duration(date_range: Optional[DateRange]) -> int:
    """Inclusive day count; 0 when an endpoint is missing or end < start."""
    if date_range is None or not date_range.is_complete:
        return 0
    days = days_between(date_range.start, date_range.end) + 1
    return days if days > 0 else 0


def _diet_cost(diets: Diets, diet_id: int) -> Optional[int]:
    if isinstance(diets, Mapping):
        diet = diets.get(diet_id)
        return diet.diet_cost if diet is not None else None
    for diet in diets:
        if diet.id == diet_id:
            return diet.diet_cost
    return None


def consignment_price(item: CartItem, diets: Diets) -> int:
    config = item.consignment
    if config is None or config.diet_id == UNSET_DIET:
        return 0
    cost = _diet_cost(diets, config.diet_id)
    if cost is None:
        return 0
    return cost * duration(config.date_range)


def subtotal(cart: List[CartItem], diets: Diets) -> int:
    # materialize once, an iterator would be exhausted after the first item
    if not isinstance(diets, Mapping):
        diets = list(diets)
    return sum(
        item.price + (consignment_price(item, diets) if item.consign else 0) for item in cart
    )
