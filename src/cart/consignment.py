"""
Per-item consignment (nurture) configuration.

Everything here returns a new CartItem and accepts incomplete input: a draft
ConsignmentConfig may lack a diet or dates until checkout. `finalize` is the
single place a draft is promoted to a CompleteConsignment.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import List, Optional

from cart.errors import IncompleteConsignmentError
from cart.models import UNSET_DIET, CartItem, ConsignmentConfig, DateRange
from cart.pricing import duration

# nurture starts the day after ordering and lasts at most this long
DEFAULT_NURTURE_DAYS = 2
MAX_NURTURE_DAYS = 30


@dataclass(frozen=True)
class CompleteConsignment:
    diet_id: int
    start: date
    end: date
    duration: int
    note: Optional[str] = None


def nurture_start(today: date) -> date:
    return today + timedelta(days=1)


def default_range(today: date) -> DateRange:
    start = nurture_start(today)
    return DateRange(start, start + timedelta(days=DEFAULT_NURTURE_DAYS))


def clamp_range(date_range: Optional[DateRange], today: date) -> Optional[DateRange]:
    """
    Pin the start to tomorrow and keep the end between tomorrow and
    tomorrow + MAX_NURTURE_DAYS. A missing end stays missing.
    """
    if date_range is None:
        return None
    start = nurture_start(today)
    end = date_range.end
    if end is not None:
        end = min(max(end, start), start + timedelta(days=MAX_NURTURE_DAYS))
    return DateRange(start, end)


def toggle_consignment(item: CartItem, today: Optional[date] = None) -> CartItem:
    """Switch nurture off, or on with an empty draft (the default range when `today` is given)."""
    if item.consign:
        return replace(item, consign=False, consignment=None)
    rng = default_range(today) if today else None
    return replace(item, consign=True, consignment=ConsignmentConfig(date_range=rng))


def _config(item: CartItem) -> ConsignmentConfig:
    return item.consignment or ConsignmentConfig()


def set_diet(item: CartItem, diet_id: int) -> CartItem:
    return replace(item, consignment=replace(_config(item), diet_id=diet_id))


def set_date_range(item: CartItem, date_range: Optional[DateRange]) -> CartItem:
    return replace(item, consignment=replace(_config(item), date_range=date_range))


def set_end_date(item: CartItem, end: Optional[date], today: date) -> CartItem:
    return set_date_range(item, clamp_range(DateRange(None, end), today))


def set_note(item: CartItem, note: Optional[str]) -> CartItem:
    return replace(item, consignment=replace(_config(item), note=(note or None)))


def missing_fields(config: Optional[ConsignmentConfig]) -> List[str]:
    if config is None:
        return ["diet", "date range"]
    missing = []
    if config.diet_id == UNSET_DIET:
        missing.append("diet")
    if config.date_range is None or not config.date_range.is_complete:
        missing.append("date range")
    elif duration(config.date_range) <= 0:
        missing.append("end date on or after start date")
    return missing


def is_config_complete(config: Optional[ConsignmentConfig]) -> bool:
    return not missing_fields(config)


def finalize(config: Optional[ConsignmentConfig]) -> CompleteConsignment:
    missing = missing_fields(config)
    if missing:
        raise IncompleteConsignmentError(missing)
    rng = config.date_range
    return CompleteConsignment(
        diet_id=config.diet_id,
        start=rng.start,
        end=rng.end,
        duration=duration(rng),
        note=config.note,
    )
