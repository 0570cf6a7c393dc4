"""
KeyedStore abstract interface.

Defines the contract stream operations need from the underlying keyed store:
single-item reads and conditional writes, sorted range queries with a
pagination cursor, and small all-or-nothing transactions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .expressions import ExpressionBuilder


@dataclass(frozen=True)
class KeyDef:
    """Primary key: partition key + sort key."""

    pk: str
    sk: str


@dataclass(frozen=True)
class Record:
    """
    A stored item.

    Fields:
        key: Primary key
        attributes: Non-key attributes, decoded to Python values
    """

    key: KeyDef
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Page:
    """
    One page of query results.

    When cursor is not None, more results may follow; pass it back to query().
    """

    records: List[Record]
    count: int
    cursor: Optional[Any] = None


@dataclass(frozen=True)
class Put:
    """Transaction action: write a whole item."""

    key: KeyDef
    attributes: Dict[str, Any]
    expression: Optional[ExpressionBuilder] = None


@dataclass(frozen=True)
class Update:
    """Transaction action: update an item (upserts when no condition forbids it)."""

    key: KeyDef
    expression: ExpressionBuilder


WriteAction = Union[Put, Update]


class KeyedStore(ABC):
    """
    Abstract keyed store.

    All implementations must guarantee:
    - Atomic single-item conditional writes
    - Sort-key ordered queries within one partition
    - All-or-nothing transact_write across up to max_transaction_items items

    Conditional failures raise ConditionNotMet; every other backend failure
    raises TransportFailure.
    """

    max_transaction_items: int = 25

    @abstractmethod
    def get_item(self, key: KeyDef, consistent: Optional[bool] = None) -> Optional[Record]:
        """
        Fetch one item.

        Returns:
            Record, or None if the item does not exist
        """
        ...

    @abstractmethod
    def put_item(
        self,
        key: KeyDef,
        attributes: Dict[str, Any],
        expression: Optional[ExpressionBuilder] = None,
    ) -> None:
        """
        Write a whole item, optionally conditioned.

        Raises:
            ConditionNotMet: If the condition fails
        """
        ...

    @abstractmethod
    def update_item(
        self,
        key: KeyDef,
        expression: ExpressionBuilder,
        return_new: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Update (or create) an item.

        Args:
            key: Item key
            expression: SET/ADD clauses plus optional condition
            return_new: Return all attributes after the update

        Returns:
            Updated attributes if return_new, else None

        Raises:
            ConditionNotMet: If the condition fails
        """
        ...

    @abstractmethod
    def delete_item(self, key: KeyDef) -> Optional[Record]:
        """
        Delete an item unconditionally.

        Returns:
            The deleted record, or None if nothing existed at key
        """
        ...

    @abstractmethod
    def query(
        self,
        partition: str,
        start: str,
        stop: str,
        forward: bool = True,
        limit: Optional[int] = None,
        cursor: Optional[Any] = None,
        consistent: Optional[bool] = None,
        count_only: bool = False,
        keys_only: bool = False,
        filter_equals: Optional[Dict[str, Any]] = None,
    ) -> Page:
        """
        Query one page of a partition for sort keys in [start, stop].

        Args:
            partition: Partition key value
            start: Lowest sort key (inclusive)
            stop: Highest sort key (inclusive)
            forward: Ascending sort-key order if True, descending otherwise
            limit: Maximum items evaluated in this page
            cursor: Cursor from a previous page
            consistent: Strongly consistent read (None = store default)
            count_only: Return only the count, no records
            keys_only: Return records without non-key attributes
            filter_equals: Post-read attribute equality filter

        Returns:
            Page of records
        """
        ...

    @abstractmethod
    def transact_write(self, actions: Sequence[WriteAction]) -> None:
        """
        Apply all actions atomically.

        Raises:
            ConditionNotMet: If any action's condition fails (nothing applied)
            TransactionTooLarge: If len(actions) > max_transaction_items
        """
        ...

    @abstractmethod
    def transact_get(self, keys: Sequence[KeyDef]) -> List[Optional[Record]]:
        """
        Read several items as one consistent snapshot.

        Returns:
            Records in key order (None where an item does not exist)
        """
        ...
