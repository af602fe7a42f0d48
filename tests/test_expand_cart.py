import pytest

from cart_transform_platform.core.errors import BundleCompositionError, MetafieldDecodeError
from cart_transform_platform.core.expand.expand_cart import can_expand, expand_cart, expand_line
from cart_transform_platform.core.expand.metafield_config import MetafieldFields
from cart_transform_platform.core.model import (
    NO_CHANGES,
    Cart,
    CartLine,
    ExpandedCartItem,
    ExpandOperation,
    FunctionResult,
    Metafield,
    OtherMerchandise,
    ProductVariant,
)


def _bundle(line_id: str, components: str, quantities: str) -> CartLine:
    return CartLine(
        id=line_id,
        merchandise=ProductVariant(
            id=f"V-{line_id}",
            expand_bundle_components=Metafield(components),
            expand_bundle_component_quantities=Metafield(quantities),
        ),
    )


def _plain(line_id: str) -> CartLine:
    return CartLine(id=line_id, merchandise=ProductVariant(id=f"V-{line_id}"))


def test_scenario_single_bundle_and_plain_line():
    cart = Cart(lines=[_bundle("L1", '["C1","C2"]', "[2,3]"), _plain("L2")])

    assert expand_cart(cart) == FunctionResult(
        operations=(
            ExpandOperation(
                cart_line_id="L1",
                expanded_cart_items=(
                    ExpandedCartItem(merchandise_id="C1", quantity=2),
                    ExpandedCartItem(merchandise_id="C2", quantity=3),
                ),
            ),
        )
    )


def test_empty_cart_has_no_changes():
    result = expand_cart(Cart(lines=[]))
    assert result.operations == ()
    assert result == NO_CHANGES


def test_ineligible_cart_has_no_changes():
    cart = Cart(
        lines=[
            _plain("L1"),
            CartLine(id="L2", merchandise=OtherMerchandise(typename="CustomProduct")),
        ]
    )
    assert expand_cart(cart) == NO_CHANGES


def test_operations_follow_cart_order():
    cart = Cart(
        lines=[
            _bundle("L1", '["A"]', "[1]"),
            _plain("L2"),
            _bundle("L3", '["B"]', "[1]"),
            CartLine(id="L4", merchandise=OtherMerchandise(typename="CustomProduct")),
            _bundle("L5", '["C"]', "[1]"),
        ]
    )
    assert [op.cart_line_id for op in expand_cart(cart).operations] == ["L1", "L3", "L5"]


def test_pairs_components_with_quantities_by_position():
    op = expand_line(_bundle("L1", '["a","b","c"]', "[1,2,3]"))
    assert [(i.merchandise_id, i.quantity) for i in op.expanded_cart_items] == [
        ("a", 1),
        ("b", 2),
        ("c", 3),
    ]


@pytest.mark.parametrize(
    "components, quantities",
    [('["A","B"]', "[1]"), ('["A"]', "[1,2]")],
)
def test_length_mismatch_aborts_whole_cart(components, quantities):
    cart = Cart(lines=[_bundle("L1", '["OK"]', "[1]"), _bundle("L2", components, quantities)])
    with pytest.raises(BundleCompositionError) as exc:
        expand_cart(cart)
    assert exc.value.code == "E_INVALID_BUNDLE_COMPOSITION"
    assert exc.value.path == "cart.lines[1]"


def test_malformed_metafield_aborts_whole_cart():
    cart = Cart(lines=[_bundle("L1", '["OK"]', "[1]"), _bundle("L2", "{not json}", "[1]")])
    with pytest.raises(MetafieldDecodeError) as exc:
        expand_cart(cart)
    assert exc.value.path == "cart.lines[1].merchandise.expandBundleComponents"


def test_variant_with_one_metafield_is_not_expandable():
    only_components = ProductVariant(id="V1", expand_bundle_components=Metafield('["A"]'))
    only_quantities = ProductVariant(id="V2", expand_bundle_component_quantities=Metafield("[1]"))

    assert not can_expand(only_components)
    assert not can_expand(only_quantities)
    cart = Cart(
        lines=[
            CartLine(id="L1", merchandise=only_components),
            CartLine(id="L2", merchandise=only_quantities),
        ]
    )
    assert expand_cart(cart) == NO_CHANGES


def test_other_merchandise_is_never_expandable():
    assert not can_expand(OtherMerchandise(typename="CustomProduct"))


def test_components_are_expanded_one_level_only():
    # V-L2 is itself a bundle variant in the cart; its components are not inlined.
    cart = Cart(
        lines=[
            _bundle("L1", '["V-L2"]', "[1]"),
            _bundle("L2", '["X"]', "[4]"),
        ]
    )
    result = expand_cart(cart)
    assert result.operations[0].expanded_cart_items == (
        ExpandedCartItem(merchandise_id="V-L2", quantity=1),
    )


def test_empty_component_lists_expand_to_no_items():
    op = expand_line(_bundle("L1", "[]", "[]"))
    assert op == ExpandOperation(cart_line_id="L1", expanded_cart_items=())


def test_expand_line_rejects_non_bundle():
    with pytest.raises(ValueError):
        expand_line(_plain("L1"))


def test_expand_is_deterministic():
    cart = Cart(lines=[_bundle("L1", '["A","B"]', "[1,2]"), _bundle("L2", '["C"]', "[3]")])
    assert expand_cart(cart) == expand_cart(cart)


def test_empty_result_cannot_be_mutated_by_callers():
    first = expand_cart(Cart(lines=[_plain("L1")]))
    with pytest.raises(AttributeError):
        first.operations.append(  # type: ignore[attr-defined]
            ExpandOperation(cart_line_id="LEAK", expanded_cart_items=())
        )
    assert expand_cart(Cart(lines=[])).operations == ()


def test_error_paths_use_configured_keys():
    fields = MetafieldFields(components="bundleComponents", quantities="bundleQuantities")
    cart = Cart(lines=[_bundle("L1", '["A"]', "{not json}")])
    with pytest.raises(MetafieldDecodeError) as exc:
        expand_cart(cart, fields=fields)
    assert exc.value.path == "cart.lines[0].merchandise.bundleQuantities"


def test_expand_line_rejects_variant_missing_a_metafield():
    line = CartLine(
        id="L1",
        merchandise=ProductVariant(id="V1", expand_bundle_components=Metafield('["A"]')),
    )
    with pytest.raises(ValueError):
        expand_line(line)
