"""
Closed status sets mirrored from the backend.

The backend owns every transition; these enums only decide what the UI shows
(which badge, which action buttons). Raw strings are decoded once, at the API
boundary, and anything unrecognized is rejected with UnknownStatusError.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class UnknownStatusError(ValueError):
    def __init__(self, kind: str, raw: object) -> None:
        super().__init__(f"Unrecognized {kind} value: {raw!r}")
        self.kind = kind
        self.raw = raw


# spellings the backend is known to use interchangeably
_ALIASES: Dict[str, Dict[str, str]] = {
    "OrderStatus": {"CANCELED": "CANCELLED"},
    "OrderDetailStatus": {"CANCELLED": "CANCELED"},
    "ConsignmentStatus": {"CANCELED": "CANCELLED", "INPROGRESS": "IN_PROGRESS"},
    "SaleRequestStatus": {"CANCELLED": "CANCELED"},
    "WithdrawalStatus": {"REJECT": "REJECTED", "APPROVE": "APPROVED"},
    "Role": {},
}


class _BackendEnum(str, Enum):
    @classmethod
    def decode(cls, raw: object):
        """Map a backend string (any case) onto a member, or raise UnknownStatusError."""
        if isinstance(raw, cls):
            return raw
        if raw is None:
            raise UnknownStatusError(cls.__name__, raw)
        key = str(raw).strip().upper().replace(" ", "_")
        key = _ALIASES.get(cls.__name__, {}).get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnknownStatusError(cls.__name__, raw) from None

    @classmethod
    def decode_optional(cls, raw: object):
        if raw is None or raw == "":
            return None
        return cls.decode(raw)

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    def __str__(self) -> str:
        return self.value


class OrderStatus(_BackendEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"

    @property
    def is_pending(self) -> bool:
        return self is OrderStatus.PENDING


class OrderDetailStatus(_BackendEnum):
    PENDING = "PENDING"
    GETTINGFISH = "GETTINGFISH"
    ISSHIPPING = "ISSHIPPING"
    ISNUTURING = "ISNUTURING"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    @property
    def is_pending(self) -> bool:
        return self is OrderDetailStatus.PENDING

    @property
    def next_staff_action(self) -> Optional[str]:
        """The single action a staff member may trigger from this status."""
        return _STAFF_ACTIONS.get(self)


_STAFF_ACTIONS = {
    OrderDetailStatus.PENDING: "get-fish",
    OrderDetailStatus.GETTINGFISH: "ship",
    OrderDetailStatus.ISSHIPPING: "nurture",
    OrderDetailStatus.ISNUTURING: "complete",
}

STAFF_ACTION_LABELS = {
    "get-fish": "Get Fish",
    "ship": "Ship",
    "nurture": "Nurture",
    "complete": "Complete",
}


class ConsignmentStatus(_BackendEnum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_pending(self) -> bool:
        return self is ConsignmentStatus.PENDING

    @property
    def is_open(self) -> bool:
        # an owned koi has at most one of these at a time
        return self in (
            ConsignmentStatus.PENDING,
            ConsignmentStatus.IN_PROGRESS,
            ConsignmentStatus.ACTIVE,
        )


class SaleRequestStatus(_BackendEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"

    @property
    def is_pending(self) -> bool:
        return self is SaleRequestStatus.PENDING


class WithdrawalStatus(_BackendEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_pending(self) -> bool:
        return self is WithdrawalStatus.PENDING


class Role(_BackendEnum):
    CUSTOMER = "CUSTOMER"
    STAFF = "STAFF"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"

    @property
    def is_back_office(self) -> bool:
        return self in (Role.MANAGER, Role.ADMIN)
