from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from cart_transform_platform.core.model import FunctionResult


def result_to_dict(result: FunctionResult) -> dict[str, Any]:
    """Render a result in the host's wire shape (camelCase, expand-tagged operations)."""
    return {
        "operations": [
            {
                "expand": {
                    "cartLineId": op.cart_line_id,
                    "expandedCartItems": [
                        {"merchandiseId": item.merchandise_id, "quantity": item.quantity}
                        for item in op.expanded_cart_items
                    ],
                }
            }
            for op in result.operations
        ]
    }


def result_to_json(result: FunctionResult) -> str:
    return json.dumps(result_to_dict(result), indent=2)


def dump_result_json(result: FunctionResult, path: str) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(result_to_json(result) + "\n", encoding="utf-8")
