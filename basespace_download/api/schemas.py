"""Typed views of the BaseSpace ``v1pre3`` JSON envelopes.

Every response is wrapped as ``{"Response": {...}}``. Decoding is strict: a
missing key, a wrong type or a non-object root raises :class:`DecodeError`
instead of surfacing later as a ``KeyError`` or ``TypeError``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .errors import DecodeError


@dataclass(frozen=True)
class ListingItem:
    """A sample under a project or a file under a sample."""

    id: str
    name: str
    size: Optional[int] = None


@dataclass(frozen=True)
class ListingPage:
    items: list[ListingItem]
    total_count: int
    displayed_count: int


def _require(obj: dict, key: str, kind: type, where: str) -> Any:
    if key not in obj:
        raise DecodeError(f"missing '{key}' in {where}")
    value = obj[key]
    # bool is an int subclass; never accept it for numeric fields
    if isinstance(value, bool) or not isinstance(value, kind):
        raise DecodeError(f"'{key}' in {where} is {type(value).__name__}, expected {kind.__name__}")
    return value


def _require_int(obj: dict, key: str, where: str) -> int:
    if key not in obj:
        raise DecodeError(f"missing '{key}' in {where}")
    value = obj[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"'{key}' in {where} is {type(value).__name__}, expected a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise DecodeError(f"'{key}' in {where} is not a whole number: {value}")
        value = int(value)
    if value < 0:
        raise DecodeError(f"'{key}' in {where} is negative: {value}")
    return value


def decode_response(body: bytes) -> dict:
    """Parse ``body`` and return the ``Response`` object it wraps."""
    try:
        root = json.loads(body)
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeError(f"invalid JSON ({exc})", body) from exc
    if not isinstance(root, dict):
        raise DecodeError(f"expected a JSON object, got {type(root).__name__}", body)
    try:
        return _require(root, "Response", dict, "envelope")
    except DecodeError as exc:
        exc.body = body
        raise


def decode_name(body: bytes) -> str:
    """Decode ``{"Response": {"Name": str}}``."""
    response = decode_response(body)
    return _require(response, "Name", str, "Response")


def decode_sample_item(raw: Any) -> ListingItem:
    if not isinstance(raw, dict):
        raise DecodeError(f"sample item is {type(raw).__name__}, expected object")
    return ListingItem(
        id=_require(raw, "Id", str, "sample item"),
        name=_require(raw, "Name", str, "sample item"),
    )


def decode_file_item(raw: Any) -> ListingItem:
    if not isinstance(raw, dict):
        raise DecodeError(f"file item is {type(raw).__name__}, expected object")
    return ListingItem(
        id=_require(raw, "Id", str, "file item"),
        name=_require(raw, "Name", str, "file item"),
        size=_require_int(raw, "Size", "file item"),
    )


def decode_page(body: bytes, decode_item: Callable[[Any], ListingItem]) -> ListingPage:
    """Decode one listing page, converting each entry with ``decode_item``."""
    response = decode_response(body)
    raw_items = _require(response, "Items", list, "Response")
    return ListingPage(
        items=[decode_item(raw) for raw in raw_items],
        total_count=_require_int(response, "TotalCount", "Response"),
        displayed_count=_require_int(response, "DisplayedCount", "Response"),
    )
