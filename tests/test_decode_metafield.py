import pytest

from cart_transform_platform.core.errors import MetafieldDecodeError
from cart_transform_platform.core.expand.decode_metafield import (
    decode_id_list,
    decode_quantity_list,
)


def test_decode_id_list():
    assert decode_id_list('["A", "B"]') == ["A", "B"]
    assert decode_id_list("[]") == []


def test_decode_quantity_list():
    assert decode_quantity_list("[1, 2, 3]") == [1, 2, 3]


def test_malformed_value_is_a_decode_error():
    with pytest.raises(MetafieldDecodeError) as exc:
        decode_id_list("{not json}", path="cart.lines[0]")
    assert exc.value.code == "E_METAFIELD_DECODE"
    assert exc.value.path == "cart.lines[0]"


def test_empty_string_is_a_decode_error_not_an_empty_list():
    with pytest.raises(MetafieldDecodeError) as exc:
        decode_quantity_list("")
    assert exc.value.code == "E_METAFIELD_DECODE"


def test_non_array_json_is_rejected():
    with pytest.raises(MetafieldDecodeError) as exc:
        decode_id_list('{"a": 1}')
    assert exc.value.code == "E_METAFIELD_NOT_A_LIST"


@pytest.mark.parametrize("value", ['[1]', '[""]', '[null]'])
def test_id_items_must_be_strings(value):
    with pytest.raises(MetafieldDecodeError) as exc:
        decode_id_list(value)
    assert exc.value.code == "E_METAFIELD_INVALID_ITEM"


@pytest.mark.parametrize("value", ['["1"]', "[1.5]", "[true]"])
def test_quantity_items_must_be_integers(value):
    with pytest.raises(MetafieldDecodeError) as exc:
        decode_quantity_list(value)
    assert exc.value.code == "E_METAFIELD_INVALID_ITEM"


@pytest.mark.parametrize("value", ["[" * 100000, "[" * 100000 + "]" * 100000])
def test_deeply_nested_value_is_a_decode_error(value):
    with pytest.raises(MetafieldDecodeError) as exc:
        decode_quantity_list(value)
    assert exc.value.code == "E_METAFIELD_DECODE"
