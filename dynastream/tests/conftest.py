"""
Shared fixtures: a moto-backed DynamoDB table and clients on top of it.
"""

import boto3
import pytest
from moto import mock_aws

from dynastream.client import StreamClient
from dynastream.core.clock import ManualClock
from dynastream.store.dynamodb import DynamoKeyedStore

TABLE = "dynastream-test"
REGION = "us-east-1"

# 2023-11-14T22:13:20Z
T0 = 1_700_000_000


def create_table(client, table: str = TABLE) -> None:
    client.create_table(
        TableName=table,
        KeySchema=[
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def aws_env(monkeypatch):
    """Fake credentials so boto3 never reaches real AWS."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def dynamodb(aws_env):
    with mock_aws():
        client = boto3.client("dynamodb", region_name=REGION)
        create_table(client)
        yield client


@pytest.fixture
def store(dynamodb):
    return DynamoKeyedStore(TABLE, client=dynamodb)


@pytest.fixture
def clock():
    return ManualClock(current=T0)


@pytest.fixture
def client(store, clock):
    return StreamClient(store, clock=clock)
