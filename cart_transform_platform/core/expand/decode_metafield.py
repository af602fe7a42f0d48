from __future__ import annotations

import json
from typing import Any, Optional

from cart_transform_platform.core.errors import MetafieldDecodeError


def decode_id_list(value: str, *, path: Optional[str] = None) -> list[str]:
    """Decode a metafield holding a JSON array of merchandise ids."""
    items = _decode_list(value, path=path)
    for i, item in enumerate(items):
        if not isinstance(item, str) or not item.strip():
            raise MetafieldDecodeError(
                code="E_METAFIELD_INVALID_ITEM",
                message=f"item {i} must be a non-empty string id, got {item!r}",
                path=path,
            )
    return items


def decode_quantity_list(value: str, *, path: Optional[str] = None) -> list[int]:
    """Decode a metafield holding a JSON array of integer quantities."""
    items = _decode_list(value, path=path)
    for i, item in enumerate(items):
        # bool is an int subclass; JSON true/false are not quantities.
        if isinstance(item, bool) or not isinstance(item, int):
            raise MetafieldDecodeError(
                code="E_METAFIELD_INVALID_ITEM",
                message=f"item {i} must be an integer quantity, got {item!r}",
                path=path,
            )
    return items


def _decode_list(value: str, *, path: Optional[str]) -> list[Any]:
    if not isinstance(value, str):
        raise MetafieldDecodeError(
            code="E_METAFIELD_DECODE",
            message=f"metafield value must be a string, got {type(value).__name__}",
            path=path,
        )

    try:
        data = json.loads(value)
    except (json.JSONDecodeError, RecursionError) as e:
        # Deeply nested arrays exhaust the parser stack; still a malformed value.
        raise MetafieldDecodeError(
            code="E_METAFIELD_DECODE",
            message=f"metafield value is not valid JSON: {e}",
            path=path,
        ) from e

    if not isinstance(data, list):
        raise MetafieldDecodeError(
            code="E_METAFIELD_NOT_A_LIST",
            message=f"metafield value must be a JSON array, got {type(data).__name__}",
            path=path,
        )
    return data
