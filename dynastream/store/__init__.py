"""
Keyed store access.

This module provides:
- KeyedStore: Abstract interface the stream layer is written against
- DynamoKeyedStore: DynamoDB implementation (boto3)
- ExpressionBuilder: Condition/update expression assembly
"""

from .base import KeyDef, KeyedStore, Page, Put, Record, Update, WriteAction
from .dynamodb import DynamoKeyedStore, is_condition_failure
from .expressions import ExpressionBuilder

__all__ = [
    "KeyDef",
    "KeyedStore",
    "Page",
    "Put",
    "Record",
    "Update",
    "WriteAction",
    "DynamoKeyedStore",
    "is_condition_failure",
    "ExpressionBuilder",
]
