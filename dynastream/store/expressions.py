"""
DynamoDB expression builder.

Collects condition, update and key-condition clauses together with their
attribute-name and attribute-value placeholders, so callers never splice raw
attribute names or values into expression strings.
"""

from typing import Any, Dict, List, Optional

from ..core.codec import to_attribute

COMPARATORS = ("=", "<>", "<", "<=", ">", ">=")


class ExpressionBuilder:
    """
    Builder for ConditionExpression / UpdateExpression / KeyConditionExpression.

    Placeholders are derived from attribute names (#name, :name), so attribute
    names must be alphanumeric. Condition and update values live in separate
    placeholder namespaces, which lets one expression compare an attribute
    against one value and set it to another.

    Example:
        b = ExpressionBuilder()
        b.condition_compare("val", "<", new_id)
        b.set("val", new_id)
        client.update_item(**b.params(), ...)
    """

    def __init__(self) -> None:
        self.names: Dict[str, str] = {}
        self.values: Dict[str, Dict[str, Any]] = {}
        self.conditions: List[str] = []
        self.set_clauses: List[str] = []
        self.add_clauses: List[str] = []

    def _name(self, attr: str) -> str:
        placeholder = f"#{attr}"
        self.names[placeholder] = attr
        return placeholder

    def _value(self, placeholder: str, value: Any) -> str:
        self.values[placeholder] = to_attribute(value)
        return placeholder

    def condition_exists(self, attr: str) -> "ExpressionBuilder":
        self.conditions.append(f"attribute_exists({self._name(attr)})")
        return self

    def condition_not_exists(self, attr: str) -> "ExpressionBuilder":
        self.conditions.append(f"attribute_not_exists({self._name(attr)})")
        return self

    def condition_compare(self, attr: str, op: str, value: Any) -> "ExpressionBuilder":
        """
        Add "#attr <op> :cond_attr".

        Raises:
            ValueError: If op is not a DynamoDB comparator
        """
        if op not in COMPARATORS:
            raise ValueError(f"unsupported comparator: {op}")
        name = self._name(attr)
        placeholder = self._value(f":cond_{attr}", value)
        self.conditions.append(f"{name} {op} {placeholder}")
        return self

    def condition_between(self, attr: str, low: Any, high: Any) -> "ExpressionBuilder":
        name = self._name(attr)
        lo = self._value(f":low_{attr}", low)
        hi = self._value(f":high_{attr}", high)
        self.conditions.append(f"{name} BETWEEN {lo} AND {hi}")
        return self

    def set(self, attr: str, value: Any) -> "ExpressionBuilder":
        name = self._name(attr)
        placeholder = self._value(f":{attr}", value)
        self.set_clauses.append(f"{name} = {placeholder}")
        return self

    def add(self, attr: str, delta: int) -> "ExpressionBuilder":
        """Atomic numeric add; a missing attribute counts as zero."""
        name = self._name(attr)
        placeholder = self._value(f":add_{attr}", delta)
        self.add_clauses.append(f"{name} {placeholder}")
        return self

    def condition_expression(self) -> Optional[str]:
        if not self.conditions:
            return None
        return " AND ".join(self.conditions)

    def update_expression(self) -> Optional[str]:
        parts = []
        if self.set_clauses:
            parts.append("SET " + ", ".join(self.set_clauses))
        if self.add_clauses:
            parts.append("ADD " + ", ".join(self.add_clauses))
        if not parts:
            return None
        return " ".join(parts)

    def params(self, condition_field: str = "ConditionExpression") -> Dict[str, Any]:
        """
        Request parameters for this expression, omitting empty members.

        Args:
            condition_field: Request field for the joined conditions
                (ConditionExpression, KeyConditionExpression or FilterExpression)
        """
        out: Dict[str, Any] = {}
        if self.names:
            out["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            out["ExpressionAttributeValues"] = dict(self.values)
        condition = self.condition_expression()
        if condition:
            out[condition_field] = condition
        update = self.update_expression()
        if update:
            out["UpdateExpression"] = update
        return out
