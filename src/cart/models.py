"""
Cart data as kept in the local store under the `cart` key.

The JSON layout is the one the web storefront writes, so a cart survives
either client:

    {"id", "name", "price", "koiFishImages": [{"imageUrl"}],
     "koiBreeds": [{"name"}], "quantity", "consign",
     "consignmentConfig": {"dietId", "dateRange": {"from", "to"}, "note"}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from utils.pure import iso_timestamp

UNSET_DIET = 0


def _object(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{what} is not an object")
    return value


def parse_day(value: Any) -> Optional[date]:
    """Accept a date, a datetime, or an ISO date/timestamp string (trailing Z allowed)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return date.fromisoformat(text[:10])


@dataclass(frozen=True)
class DateRange:
    start: Optional[date] = None
    end: Optional[date] = None

    @property
    def is_complete(self) -> bool:
        return self.start is not None and self.end is not None

    def to_json(self) -> Dict[str, Any]:
        return {
            "from": iso_timestamp(self.start) if self.start else None,
            "to": iso_timestamp(self.end) if self.end else None,
        }

    @classmethod
    def from_json(cls, d: Optional[Dict[str, Any]]) -> Optional["DateRange"]:
        if not d:
            return None
        d = _object(d, "dateRange")
        return cls(start=parse_day(d.get("from")), end=parse_day(d.get("to")))


@dataclass(frozen=True)
class ConsignmentConfig:
    """Draft nurture settings of a cart line. Nothing is validated here."""

    diet_id: int = UNSET_DIET
    date_range: Optional[DateRange] = None
    note: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "dietId": self.diet_id,
            "dateRange": self.date_range.to_json() if self.date_range else None,
        }
        if self.note:
            out["note"] = self.note
        return out

    @classmethod
    def from_json(cls, d: Optional[Dict[str, Any]]) -> Optional["ConsignmentConfig"]:
        if d is None:
            return None
        d = _object(d, "consignmentConfig")
        return cls(
            diet_id=int(d.get("dietId") or UNSET_DIET),
            date_range=DateRange.from_json(d.get("dateRange")),
            note=d.get("note") or None,
        )


@dataclass(frozen=True)
class CartItem:
    id: int
    name: str
    price: int
    images: Tuple[str, ...] = ()
    breeds: Tuple[str, ...] = ()
    quantity: int = 1
    consign: bool = False
    consignment: Optional[ConsignmentConfig] = field(default=None)

    @property
    def image_url(self) -> Optional[str]:
        return self.images[0] if self.images else None

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "koiFishImages": [{"imageUrl": url} for url in self.images],
            "koiBreeds": [{"name": name} for name in self.breeds],
            "quantity": self.quantity,
            "consign": self.consign,
            "consignmentConfig": self.consignment.to_json() if self.consignment else None,
        }

    @classmethod
    def from_json(cls, d: Dict[str, Any]) -> "CartItem":
        d = _object(d, "cart item")
        return cls(
            id=int(d["id"]),
            name=d.get("name") or "",
            price=int(d.get("price") or 0),
            images=tuple(
                i["imageUrl"]
                for i in (_object(i, "image") for i in d.get("koiFishImages") or [])
                if i.get("imageUrl")
            ),
            breeds=tuple(
                b["name"]
                for b in (_object(b, "breed") for b in d.get("koiBreeds") or [])
                if b.get("name")
            ),
            quantity=int(d.get("quantity") or 1),
            consign=bool(d.get("consign", False)),
            consignment=ConsignmentConfig.from_json(d.get("consignmentConfig")),
        )

    @classmethod
    def from_fish(cls, fish) -> "CartItem":
        """New cart line for an api.models.KoiFish."""
        return cls(
            id=fish.id,
            name=fish.name,
            price=fish.price,
            images=tuple(i.image_url for i in fish.images if i.image_url),
            breeds=tuple(fish.breed_names),
        )


def cart_to_json(items: List[CartItem]) -> List[Dict[str, Any]]:
    return [item.to_json() for item in items]


def cart_from_json(raw: Any) -> List[CartItem]:
    """Raises ValueError (or KeyError/TypeError) on content that is not a cart."""
    if not isinstance(raw, list):
        raise ValueError("cart content is not a list")
    return [CartItem.from_json(d) for d in raw]
