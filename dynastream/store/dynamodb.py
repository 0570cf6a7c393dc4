"""
DynamoDB-backed keyed store.

Every item lives in one table with a string partition key and a string sort
key. Attribute names for the two keys are configurable (default: pk, sk).

This provides:
- Per-item conditional writes (ConditionExpression)
- Sorted range queries within a partition (KeyConditionExpression BETWEEN)
- TransactWriteItems / TransactGetItems for small atomic groups
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.codec import from_attribute, to_attribute
from ..core.errors import ConditionNotMet, TransactionTooLarge, TransportFailure
from .base import KeyDef, KeyedStore, Page, Put, Record, Update, WriteAction
from .expressions import ExpressionBuilder


# Cancellation reasons that mean another writer got there first
LOST_RACE_REASONS = ("ConditionalCheckFailed", "TransactionConflict")


def error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


def is_condition_failure(err: BaseException) -> bool:
    """
    Whether err is a rejected conditional write.

    Single-item writes fail with ConditionalCheckFailedException. Transactions
    fail with TransactionCanceledException and report per-item codes in
    CancellationReasons; a transaction counts as a condition failure when any
    item reports ConditionalCheckFailed or TransactionConflict. The latter is
    how DynamoDB cancels the loser of two transactions racing on one item.
    """
    if isinstance(err, ConditionNotMet):
        return True
    if not isinstance(err, ClientError):
        return False
    code = error_code(err)
    if code == "ConditionalCheckFailedException":
        return True
    if code == "TransactionCanceledException":
        reasons = err.response.get("CancellationReasons") or []
        return any(reason.get("Code") in LOST_RACE_REASONS for reason in reasons)
    return False


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Map botocore failures onto ConditionNotMet / TransportFailure."""
    try:
        yield
    except ClientError as e:
        if is_condition_failure(e):
            raise ConditionNotMet(f"{operation}: condition not met") from e
        raise TransportFailure(f"{operation} failed (code: {error_code(e) or 'Unknown'})") from e
    except BotoCoreError as e:
        raise TransportFailure(f"{operation} failed: {e}") from e


class DynamoKeyedStore(KeyedStore):
    """
    KeyedStore on a single DynamoDB table.

    Table schema:
    - partition key: string attribute (default "pk"), HASH
    - sort key: string attribute (default "sk"), RANGE

    Query pages: DynamoDB returns at most 1MB per call and a LastEvaluatedKey
    when more results remain; it is surfaced as Page.cursor.
    """

    def __init__(
        self,
        table: str,
        client: Optional[Any] = None,
        endpoint_url: Optional[str] = None,
        region: str = "us-east-1",
        partition_key: str = "pk",
        sort_key: str = "sk",
        consistent_reads: bool = True,
        max_transaction_items: int = 25,
    ) -> None:
        """
        Initialize DynamoDB store.

        Args:
            table: Table name
            client: Existing boto3 DynamoDB client (created if None)
            endpoint_url: DynamoDB endpoint URL (for DynamoDB Local, localstack, etc.)
            region: AWS region (default: us-east-1)
            partition_key: Partition key attribute name
            sort_key: Sort key attribute name
            consistent_reads: Default read consistency for get/query
            max_transaction_items: Upper bound on items per transaction

        Raises:
            TransportFailure: If the client cannot be created
        """
        self.table = table
        self.partition_key = partition_key
        self.sort_key = sort_key
        self.consistent_reads = consistent_reads
        self.max_transaction_items = max_transaction_items

        # Credentials come from the environment / default AWS chain
        if client is None:
            try:
                client = boto3.client(
                    "dynamodb",
                    endpoint_url=endpoint_url,
                    region_name=region,
                )
            except (BotoCoreError, ValueError) as e:
                raise TransportFailure(f"Failed to create DynamoDB client: {e}") from e
        self.client = client

    def _key_av(self, key: KeyDef) -> Dict[str, Any]:
        return {
            self.partition_key: to_attribute(key.pk),
            self.sort_key: to_attribute(key.sk),
        }

    def _item_av(self, key: KeyDef, attributes: Dict[str, Any]) -> Dict[str, Any]:
        item = {k: to_attribute(v) for k, v in attributes.items()}
        item.update(self._key_av(key))
        return item

    def _record(self, item: Dict[str, Any]) -> Record:
        key = KeyDef(
            pk=from_attribute(item[self.partition_key]),
            sk=from_attribute(item[self.sort_key]),
        )
        attributes = {
            k: from_attribute(v)
            for k, v in item.items()
            if k not in (self.partition_key, self.sort_key)
        }
        return Record(key=key, attributes=attributes)

    def _consistent(self, consistent: Optional[bool]) -> bool:
        return self.consistent_reads if consistent is None else consistent

    def get_item(self, key: KeyDef, consistent: Optional[bool] = None) -> Optional[Record]:
        with translate_errors("GetItem"):
            resp = self.client.get_item(
                TableName=self.table,
                Key=self._key_av(key),
                ConsistentRead=self._consistent(consistent),
            )
        item = resp.get("Item")
        if not item:
            return None
        return self._record(item)

    def put_item(
        self,
        key: KeyDef,
        attributes: Dict[str, Any],
        expression: Optional[ExpressionBuilder] = None,
    ) -> None:
        params = expression.params() if expression is not None else {}
        with translate_errors("PutItem"):
            self.client.put_item(
                TableName=self.table,
                Item=self._item_av(key, attributes),
                **params,
            )

    def update_item(
        self,
        key: KeyDef,
        expression: ExpressionBuilder,
        return_new: bool = False,
    ) -> Optional[Dict[str, Any]]:
        with translate_errors("UpdateItem"):
            resp = self.client.update_item(
                TableName=self.table,
                Key=self._key_av(key),
                ReturnValues="ALL_NEW" if return_new else "NONE",
                **expression.params(),
            )
        if not return_new:
            return None
        return {
            k: from_attribute(v)
            for k, v in resp.get("Attributes", {}).items()
            if k not in (self.partition_key, self.sort_key)
        }

    def delete_item(self, key: KeyDef) -> Optional[Record]:
        with translate_errors("DeleteItem"):
            resp = self.client.delete_item(
                TableName=self.table,
                Key=self._key_av(key),
                ReturnValues="ALL_OLD",
            )
        old = resp.get("Attributes")
        if not old:
            return None
        return self._record(old)

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
        key_condition = ExpressionBuilder()
        key_condition.condition_compare(self.partition_key, "=", partition)
        key_condition.condition_between(self.sort_key, start, stop)
        params = key_condition.params("KeyConditionExpression")

        if filter_equals:
            flt = ExpressionBuilder()
            for attr, value in filter_equals.items():
                flt.condition_compare(attr, "=", value)
            flt_params = flt.params("FilterExpression")
            params["ExpressionAttributeNames"].update(flt_params["ExpressionAttributeNames"])
            params["ExpressionAttributeValues"].update(flt_params["ExpressionAttributeValues"])
            params["FilterExpression"] = flt_params["FilterExpression"]

        if count_only:
            params["Select"] = "COUNT"
        elif keys_only:
            params["ProjectionExpression"] = "#{0}, #{1}".format(self.partition_key, self.sort_key)
        if limit is not None:
            params["Limit"] = limit
        if cursor:
            params["ExclusiveStartKey"] = cursor

        with translate_errors("Query"):
            resp = self.client.query(
                TableName=self.table,
                ConsistentRead=self._consistent(consistent),
                ScanIndexForward=forward,
                **params,
            )

        records = [self._record(item) for item in resp.get("Items", [])]
        return Page(
            records=records,
            count=resp.get("Count", len(records)),
            cursor=resp.get("LastEvaluatedKey") or None,
        )

    def _action_av(self, action: WriteAction) -> Dict[str, Any]:
        if isinstance(action, Put):
            put: Dict[str, Any] = {
                "TableName": self.table,
                "Item": self._item_av(action.key, action.attributes),
            }
            if action.expression is not None:
                put.update(action.expression.params())
            return {"Put": put}
        if isinstance(action, Update):
            update: Dict[str, Any] = {
                "TableName": self.table,
                "Key": self._key_av(action.key),
            }
            update.update(action.expression.params())
            return {"Update": update}
        raise TypeError(f"unsupported transaction action: {type(action).__name__}")

    def transact_write(self, actions: Sequence[WriteAction]) -> None:
        if len(actions) > self.max_transaction_items:
            raise TransactionTooLarge(len(actions), self.max_transaction_items)
        items = [self._action_av(action) for action in actions]
        with translate_errors("TransactWriteItems"):
            self.client.transact_write_items(TransactItems=items)

    def transact_get(self, keys: Sequence[KeyDef]) -> List[Optional[Record]]:
        if len(keys) > self.max_transaction_items:
            raise TransactionTooLarge(len(keys), self.max_transaction_items)
        items = [{"Get": {"TableName": self.table, "Key": self._key_av(key)}} for key in keys]
        with translate_errors("TransactGetItems"):
            resp = self.client.transact_get_items(TransactItems=items)
        found = {}
        for entry in resp.get("Responses", []):
            item = entry.get("Item")
            if item:
                record = self._record(item)
                found[record.key] = record
        return [found.get(key) for key in keys]
