from __future__ import annotations

from typing import List, Sequence


class CartConflictError(Exception):
    """The cart kept changing underneath a write, even after retrying."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Cart was modified concurrently {attempts} times in a row")
        self.attempts = attempts


class IncompleteConsignmentError(ValueError):
    def __init__(self, missing: Sequence[str]) -> None:
        super().__init__("Consignment is missing: " + ", ".join(missing))
        self.missing: List[str] = list(missing)


class CheckoutBlockedError(Exception):
    """Checkout refused locally, before any request was sent."""

    def __init__(self, message: str, invalid_items=()) -> None:
        super().__init__(message)
        self.message = message
        self.invalid_items = list(invalid_items)
