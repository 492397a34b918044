"""
OData query construction.

Builds the `$filter` / `$expand` / `$orderby` / `$skip` / `$top` / `$count`
query options the backend's OData endpoints accept. Nothing here touches the
network; `to_params()` feeds aiohttp and `to_query_string()` is the exact
wire text.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote


def literal(value: Any) -> str:
    """Render a Python value as an OData literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).replace("'", "''")
    return f"'{text}'"


def _compare(op: str, field: str, value: Any) -> str:
    return f"{field} {op} {literal(value)}"


def eq(field: str, value: Any) -> str:
    return _compare("eq", field, value)


def ne(field: str, value: Any) -> str:
    return _compare("ne", field, value)


def ge(field: str, value: Any) -> str:
    return _compare("ge", field, value)


def le(field: str, value: Any) -> str:
    return _compare("le", field, value)


def contains(field: str, text: str) -> str:
    return f"contains({field}, {literal(text)})"


def any_eq(collection: str, field: str, value: Any) -> str:
    """Lambda filter over a navigation collection, e.g. KoiBreeds/any(x: x/Id eq 3)."""
    return f"{collection}/any(x: x/{field} eq {literal(value)})"


def and_(*clauses: Optional[str]) -> Optional[str]:
    """Join non-empty clauses with `and`; None when nothing is left."""
    parts = [c for c in clauses if c]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return " and ".join(_group(p) for p in parts)


def or_(*clauses: Optional[str]) -> Optional[str]:
    parts = [c for c in clauses if c]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return "(" + " or ".join(parts) + ")"


def _group(clause: str) -> str:
    # top-level `or` must not bind across an enclosing `and`
    if " or " in clause and not (clause.startswith("(") and clause.endswith(")")):
        return f"({clause})"
    return clause


@dataclass(frozen=True)
class ODataQuery:
    filter: Optional[str] = None
    expand: Tuple[str, ...] = ()
    select: Tuple[str, ...] = ()
    orderby: Optional[str] = None
    skip: Optional[int] = None
    top: Optional[int] = None
    count: bool = False

    def where(self, *clauses: Optional[str]) -> "ODataQuery":
        return replace(self, filter=and_(self.filter, *clauses))

    def expand_with(self, *names: str) -> "ODataQuery":
        merged = self.expand + tuple(n for n in names if n not in self.expand)
        return replace(self, expand=merged)

    def selecting(self, *fields: str) -> "ODataQuery":
        return replace(self, select=self.select + fields)

    def order_by(self, expr: Optional[str]) -> "ODataQuery":
        return replace(self, orderby=expr or None)

    def page(self, number: int, size: int) -> "ODataQuery":
        """1-based page number."""
        if number < 1 or size < 1:
            raise ValueError("page number and size must be positive")
        return replace(self, skip=(number - 1) * size, top=size)

    def with_count(self) -> "ODataQuery":
        return replace(self, count=True)

    def to_params(self) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self.filter:
            params["$filter"] = self.filter
        if self.expand:
            params["$expand"] = ",".join(self.expand)
        if self.select:
            params["$select"] = ",".join(self.select)
        if self.orderby:
            params["$orderby"] = self.orderby
        if self.skip is not None:
            params["$skip"] = str(self.skip)
        if self.top is not None:
            params["$top"] = str(self.top)
        if self.count:
            params["$count"] = "true"
        return params

    def to_query_string(self) -> str:
        return "&".join(
            f"{key}={quote(value, safe=_SAFE_CHARS)}"
            for key, value in self.to_params().items()
        )


# left readable in filter expressions, everything else is percent-encoded
_SAFE_CHARS = "',()/:"
