from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class Metafield:
    value: str


@dataclass(frozen=True)
class ProductVariant:
    id: Optional[str] = None
    expand_bundle_components: Optional[Metafield] = None
    expand_bundle_component_quantities: Optional[Metafield] = None


@dataclass(frozen=True)
class OtherMerchandise:
    """Any merchandise that is not a product variant (e.g. CustomProduct)."""

    typename: str


Merchandise = Union[ProductVariant, OtherMerchandise]


@dataclass(frozen=True)
class CartLine:
    id: str
    merchandise: Merchandise
    quantity: int = 1


@dataclass(frozen=True)
class Cart:
    lines: list[CartLine] = field(default_factory=list)


@dataclass(frozen=True)
class ExpandedCartItem:
    merchandise_id: str
    quantity: int


@dataclass(frozen=True)
class ExpandOperation:
    cart_line_id: str
    expanded_cart_items: tuple[ExpandedCartItem, ...]


@dataclass(frozen=True)
class FunctionResult:
    operations: tuple[ExpandOperation, ...]


NO_CHANGES = FunctionResult(operations=())
