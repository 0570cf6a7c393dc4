"""
Value encoding between Python values and DynamoDB attribute values.

Strings, integers and bytes round-trip. DynamoDB returns numbers as Decimal;
integral numbers come back as int.
"""

from decimal import Decimal
from typing import Any, Dict, Mapping

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def to_attribute(value: Any) -> Dict[str, Any]:
    """
    Encode a Python value as a DynamoDB attribute value.

    Raises:
        TypeError: If the value type is not supported (floats must be Decimal)
    """
    return _serializer.serialize(value)


def from_attribute(av: Mapping[str, Any]) -> Any:
    """Decode a DynamoDB attribute value."""
    value = _deserializer.deserialize(av)
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    if isinstance(value, Binary):
        return bytes(value.value)
    return value
