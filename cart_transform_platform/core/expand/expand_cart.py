from __future__ import annotations

from typing import Optional

from cart_transform_platform.core.errors import BundleCompositionError
from cart_transform_platform.core.expand.decode_metafield import (
    decode_id_list,
    decode_quantity_list,
)
from cart_transform_platform.core.expand.metafield_config import MetafieldFields, merged_fields
from cart_transform_platform.core.model import (
    NO_CHANGES,
    Cart,
    CartLine,
    ExpandedCartItem,
    ExpandOperation,
    FunctionResult,
    Merchandise,
    ProductVariant,
)


def can_expand(merchandise: Merchandise) -> bool:
    return (
        isinstance(merchandise, ProductVariant)
        and merchandise.expand_bundle_components is not None
        and merchandise.expand_bundle_component_quantities is not None
    )


def expand_cart(cart: Cart, *, fields: MetafieldFields | None = None) -> FunctionResult:
    """Return one expand operation per expandable bundle line.

    Operations follow the order of the cart lines. Lines that cannot expand
    contribute nothing. Any decode or composition error aborts the whole call;
    there is no partial result.

    `fields` only names the input keys in error paths; it does not change
    which lines expand.
    """

    fields = fields or merged_fields()
    operations: list[ExpandOperation] = []
    for i, line in enumerate(cart.lines):
        if can_expand(line.merchandise):
            operations.append(expand_line(line, path=f"cart.lines[{i}]", fields=fields))

    if not operations:
        return NO_CHANGES
    return FunctionResult(operations=tuple(operations))


def expand_line(
    line: CartLine,
    *,
    path: Optional[str] = None,
    fields: MetafieldFields | None = None,
) -> ExpandOperation:
    fields = fields or merged_fields()
    merchandise = line.merchandise
    if not isinstance(merchandise, ProductVariant):
        raise ValueError(f"cart line {line.id} is not an expandable bundle")
    components = merchandise.expand_bundle_components
    quantities = merchandise.expand_bundle_component_quantities
    if components is None or quantities is None:
        raise ValueError(f"cart line {line.id} is not an expandable bundle")

    base = path or f"line[{line.id}]"
    component_ids = decode_id_list(
        components.value,
        path=f"{base}.merchandise.{fields.components}",
    )
    component_quantities = decode_quantity_list(
        quantities.value,
        path=f"{base}.merchandise.{fields.quantities}",
    )

    if len(component_ids) != len(component_quantities):
        raise BundleCompositionError(
            code="E_INVALID_BUNDLE_COMPOSITION",
            message=(
                f"invalid expand bundle composition for line {line.id}: "
                f"{len(component_ids)} components but {len(component_quantities)} quantities"
            ),
            path=base,
        )

    return ExpandOperation(
        cart_line_id=line.id,
        expanded_cart_items=tuple(
            ExpandedCartItem(merchandise_id=merchandise_id, quantity=quantity)
            for merchandise_id, quantity in zip(component_ids, component_quantities)
        ),
    )
