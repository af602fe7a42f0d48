from __future__ import annotations

from collections import Counter
from typing import Any, Optional

from cart_transform_platform.core.errors import CartValidationError, MetafieldDecodeError
from cart_transform_platform.core.expand.decode_metafield import (
    decode_id_list,
    decode_quantity_list,
)
from cart_transform_platform.core.expand.metafield_config import MetafieldFields, merged_fields


# Bundle lint rules:
# - L_DUPLICATE_LINE_ID: duplicate cart line ids
# - L_PARTIAL_BUNDLE_METAFIELDS: variant has only one of the two bundle metafields (never expands)
# - L_DUPLICATE_COMPONENT: bundle lists the same component id more than once
# - L_NON_POSITIVE_QUANTITY: bundle component quantity <= 0
# - L_NESTED_BUNDLE_COMPONENT: component is itself a bundle in this cart (expanded one level only)


def lint_cart(data: dict[str, Any], *, fields: MetafieldFields | None = None) -> list[CartValidationError]:
    """Lint a function input.

    Lint runs *in addition to* shape validation and works on partially-invalid
    inputs (best effort). Undecodable metafields are skipped here; `run`
    reports them as decode errors.
    """

    fields = fields or merged_fields()
    file = _cast_optional_str(data.get("__file__"))

    cart = data.get("cart")
    if not isinstance(cart, dict) or not isinstance(cart.get("lines"), list):
        # Let validator handle shape.
        return []
    lines: list[Any] = cart["lines"]

    errors: list[CartValidationError] = []

    # Rule: duplicate line ids
    ids = [raw.get("id") for raw in lines if isinstance(raw, dict) and isinstance(raw.get("id"), str)]
    dupes = {k: v for k, v in Counter(ids).items() if v > 1}
    seen: set[str] = set()
    for i, raw in enumerate(lines):
        if not isinstance(raw, dict):
            continue
        lid = raw.get("id")
        if not isinstance(lid, str) or lid not in dupes:
            continue
        if lid not in seen:
            seen.add(lid)
            continue
        errors.append(
            CartValidationError(
                code="L_DUPLICATE_LINE_ID",
                message=f"duplicate cart line id: {lid} (count={dupes[lid]})",
                file=file,
                path=f"cart.lines[{i}].id",
            )
        )

    # Collect bundle variants (best effort).
    bundles: list[tuple[int, dict[str, Any]]] = []
    for i, raw in enumerate(lines):
        merch = raw.get("merchandise") if isinstance(raw, dict) else None
        if not isinstance(merch, dict) or merch.get("__typename") != "ProductVariant":
            continue

        has_components = merch.get(fields.components) is not None
        has_quantities = merch.get(fields.quantities) is not None
        if has_components and has_quantities:
            bundles.append((i, merch))
        elif has_components or has_quantities:
            present, missing = (
                (fields.components, fields.quantities)
                if has_components
                else (fields.quantities, fields.components)
            )
            errors.append(
                CartValidationError(
                    code="L_PARTIAL_BUNDLE_METAFIELDS",
                    message=f"variant has {present} but no {missing}; line will not be expanded",
                    file=file,
                    path=f"cart.lines[{i}].merchandise",
                )
            )

    bundle_variant_ids = {
        merch["id"] for _, merch in bundles if isinstance(merch.get("id"), str)
    }

    for i, merch in bundles:
        merch_path = f"cart.lines[{i}].merchandise"
        component_ids = _try_decode_ids(merch.get(fields.components))
        quantities = _try_decode_quantities(merch.get(fields.quantities))

        # Rule: duplicate component ids
        if component_ids is not None:
            for cid, count in sorted(Counter(component_ids).items()):
                if count > 1:
                    errors.append(
                        CartValidationError(
                            code="L_DUPLICATE_COMPONENT",
                            message=f"component {cid} is listed {count} times",
                            file=file,
                            path=f"{merch_path}.{fields.components}",
                        )
                    )

            # Rule: nested bundles
            for cid in sorted(set(component_ids) & bundle_variant_ids):
                errors.append(
                    CartValidationError(
                        code="L_NESTED_BUNDLE_COMPONENT",
                        message=f"component {cid} is itself a bundle in this cart; it will not be expanded",
                        file=file,
                        path=f"{merch_path}.{fields.components}",
                    )
                )

        # Rule: non-positive quantities
        if quantities is not None:
            for qi, qty in enumerate(quantities):
                if qty <= 0:
                    errors.append(
                        CartValidationError(
                            code="L_NON_POSITIVE_QUANTITY",
                            message=f"component quantity must be positive, got {qty}",
                            file=file,
                            path=f"{merch_path}.{fields.quantities}[{qi}]",
                        )
                    )

    return _sorted(errors)


def _try_decode_ids(raw: Any) -> Optional[list[str]]:
    if not isinstance(raw, dict) or not isinstance(raw.get("value"), str):
        return None
    try:
        return decode_id_list(raw["value"])
    except MetafieldDecodeError:
        return None


def _try_decode_quantities(raw: Any) -> Optional[list[int]]:
    if not isinstance(raw, dict) or not isinstance(raw.get("value"), str):
        return None
    try:
        return decode_quantity_list(raw["value"])
    except MetafieldDecodeError:
        return None


def _sorted(errors: list[CartValidationError]) -> list[CartValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None
