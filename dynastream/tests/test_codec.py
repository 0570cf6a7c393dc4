"""
Tests for attribute value encoding and the expression builder.
"""

from decimal import Decimal

import pytest

from dynastream.core.codec import from_attribute, to_attribute
from dynastream.store.expressions import ExpressionBuilder


@pytest.mark.parametrize("value", ["hello", "", 0, 42, -7, 10 ** 19, b"\x00\xffraw"])
def test_round_trip(value):
    """Strings, integers and bytes decode to the value that was encoded."""
    decoded = from_attribute(to_attribute(value))
    assert decoded == value
    assert type(decoded) is type(value)


def test_fractional_numbers_stay_decimal():
    assert from_attribute({"N": "1.5"}) == Decimal("1.5")


def test_float_is_rejected():
    with pytest.raises(TypeError):
        to_attribute(1.5)


def test_condition_and_update_use_separate_placeholders():
    """Comparing and setting the same attribute uses two value placeholders."""
    b = ExpressionBuilder()
    b.condition_compare("val", "<", "b")
    b.set("val", "b")
    params = b.params()

    assert params["ConditionExpression"] == "#val < :cond_val"
    assert params["UpdateExpression"] == "SET #val = :val"
    assert params["ExpressionAttributeNames"] == {"#val": "val"}
    assert set(params["ExpressionAttributeValues"]) == {":cond_val", ":val"}


def test_set_and_add_clauses():
    b = ExpressionBuilder()
    b.condition_exists("cnk")
    b.condition_compare("ldk", "<=", 10)
    b.set("ldk", 20)
    b.add("dck", 1)
    params = b.params()

    assert params["ConditionExpression"] == "attribute_exists(#cnk) AND #ldk <= :cond_ldk"
    assert params["UpdateExpression"] == "SET #ldk = :ldk ADD #dck :add_dck"


def test_key_condition_field():
    b = ExpressionBuilder()
    b.condition_compare("pk", "=", "orders")
    b.condition_between("sk", "a", "z")
    params = b.params("KeyConditionExpression")

    assert params["KeyConditionExpression"] == "#pk = :cond_pk AND #sk BETWEEN :low_sk AND :high_sk"
    assert "ConditionExpression" not in params
    assert "UpdateExpression" not in params


def test_empty_builder_has_no_params():
    assert ExpressionBuilder().params() == {}


def test_unknown_comparator():
    with pytest.raises(ValueError):
        ExpressionBuilder().condition_compare("val", "LIKE", "x")
