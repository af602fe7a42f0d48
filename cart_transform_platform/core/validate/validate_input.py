from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Optional, cast

from cart_transform_platform.core.errors import CartValidationError
from cart_transform_platform.core.expand.expand_cart import can_expand
from cart_transform_platform.core.expand.metafield_config import MetafieldFields, merged_fields
from cart_transform_platform.core.model import (
    Cart,
    CartLine,
    Merchandise,
    Metafield,
    OtherMerchandise,
    ProductVariant,
)


PRODUCT_VARIANT = "ProductVariant"


def validate_input(
    data: dict[str, Any], *, fields: MetafieldFields | None = None
) -> tuple[Optional[Cart], list[CartValidationError]]:
    """Validate the function input shape and build a Cart.

    Returns (cart, errors). Cart is None when errors exist.
    Metafield values are not decoded here; the expander owns decoding.
    """

    fields = fields or merged_fields()
    file = cast(Optional[str], data.get("__file__"))
    errors: list[CartValidationError] = []

    cart = data.get("cart")
    if not isinstance(cart, dict):
        errors.append(
            CartValidationError(
                code="E_REQUIRED_FIELD",
                message="cart is required and must be an object",
                file=file,
                path="cart",
            )
        )
        return None, _sorted(errors)

    raw_lines = cart.get("lines")
    if not isinstance(raw_lines, list):
        errors.append(
            CartValidationError(
                code="E_REQUIRED_FIELD",
                message="cart.lines is required and must be an array",
                file=file,
                path="cart.lines",
            )
        )
        return None, _sorted(errors)

    lines: list[CartLine] = []
    seen_ids: set[str] = set()

    for i, raw in enumerate(raw_lines):
        line_path = f"cart.lines[{i}]"
        if not isinstance(raw, dict):
            errors.append(
                CartValidationError(
                    code="E_INVALID_TYPE",
                    message="line must be an object",
                    file=file,
                    path=line_path,
                )
            )
            continue

        lid = raw.get("id")
        if not isinstance(lid, str) or not lid.strip():
            errors.append(
                CartValidationError(
                    code="E_REQUIRED_FIELD",
                    message="id is required and must be a non-empty string",
                    file=file,
                    path=f"{line_path}.id",
                )
            )
            continue

        if lid in seen_ids:
            errors.append(
                CartValidationError(
                    code="E_DUPLICATE_LINE_ID",
                    message=f"duplicate cart line id: {lid}",
                    file=file,
                    path=f"{line_path}.id",
                )
            )
            continue
        seen_ids.add(lid)

        quantity = raw.get("quantity", 1)
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            errors.append(
                CartValidationError(
                    code="E_INVALID_TYPE",
                    message="quantity must be an integer",
                    file=file,
                    path=f"{line_path}.quantity",
                )
            )
            continue

        merchandise, merch_errors = _validate_merchandise(
            raw.get("merchandise"), fields=fields, file=file, path=f"{line_path}.merchandise"
        )
        if merch_errors:
            errors.extend(merch_errors)
            continue
        assert merchandise is not None

        lines.append(CartLine(id=lid, merchandise=merchandise, quantity=quantity))

    if errors:
        return None, _sorted(errors)
    return Cart(lines=lines), []


def summarize_cart(cart: Cart) -> str:
    counts = Counter(
        "bundle"
        if can_expand(line.merchandise)
        else "variant"
        if isinstance(line.merchandise, ProductVariant)
        else "other"
        for line in cart.lines
    )
    return (
        f"OK: {len(cart.lines)} lines ("
        f"bundles={counts.get('bundle', 0)}, "
        f"product_variants={counts.get('variant', 0)}, "
        f"other={counts.get('other', 0)})"
    )


def _validate_merchandise(
    raw: Any, *, fields: MetafieldFields, file: Optional[str], path: str
) -> tuple[Optional[Merchandise], list[CartValidationError]]:
    if not isinstance(raw, dict):
        return None, [
            CartValidationError(
                code="E_REQUIRED_FIELD",
                message="merchandise is required and must be an object",
                file=file,
                path=path,
            )
        ]

    typename = raw.get("__typename")
    if not isinstance(typename, str) or not typename.strip():
        return None, [
            CartValidationError(
                code="E_REQUIRED_FIELD",
                message="__typename is required and must be a non-empty string",
                file=file,
                path=f"{path}.__typename",
            )
        ]

    if typename != PRODUCT_VARIANT:
        return OtherMerchandise(typename=typename), []

    errors: list[CartValidationError] = []

    vid = raw.get("id")
    if vid is not None and not isinstance(vid, str):
        errors.append(
            CartValidationError(
                code="E_INVALID_TYPE",
                message="id must be a string",
                file=file,
                path=f"{path}.id",
            )
        )

    metafields: dict[str, Optional[Metafield]] = {}
    for key in (fields.components, fields.quantities):
        metafield, error = _validate_metafield(raw.get(key), file=file, path=f"{path}.{key}")
        if error is not None:
            errors.append(error)
        metafields[key] = metafield

    if errors:
        return None, errors

    return (
        ProductVariant(
            id=cast(Optional[str], vid),
            expand_bundle_components=metafields[fields.components],
            expand_bundle_component_quantities=metafields[fields.quantities],
        ),
        [],
    )


def _validate_metafield(
    raw: Any, *, file: Optional[str], path: str
) -> tuple[Optional[Metafield], Optional[CartValidationError]]:
    if raw is None:
        return None, None
    if not isinstance(raw, dict) or not isinstance(raw.get("value"), str):
        return None, CartValidationError(
            code="E_INVALID_TYPE",
            message="metafield must be null or an object with a string value",
            file=file,
            path=path,
        )
    return Metafield(value=raw["value"]), None


def _sorted(errors: Iterable[CartValidationError]) -> list[CartValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )
