"""
CLI smoke tests (Typer CliRunner against a moto-backed table).
"""

import json
import logging

import pytest
from typer.testing import CliRunner

from dynastream.cli.main import app

from .conftest import REGION, TABLE

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(dynamodb, monkeypatch):
    """Point the CLI at the mocked table and keep the root logger intact."""
    monkeypatch.setenv("DYNASTREAM_TABLE", TABLE)
    monkeypatch.setenv("DYNASTREAM_REGION", REGION)
    monkeypatch.setenv("DYNASTREAM_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("DYNASTREAM_LOG_FORMAT", "text")
    monkeypatch.delenv("DYNASTREAM_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("DYNASTREAM_METRICS_PORT", raising=False)

    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def invoke(*args):
    return runner.invoke(app, list(args))


def invoke_json(*args):
    result = invoke(*args, "--json")
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_version():
    result = invoke("version")
    assert result.exit_code == 0
    assert "dynastream" in result.stdout
    assert TABLE in result.stdout


def test_add_and_range():
    first = invoke_json("add", "orders", "sku=A-1", "qty=2")["id"]
    second = invoke_json("add", "orders", "sku=B-7")["id"]
    assert second > first

    out = invoke_json("range", "orders")
    assert out["count"] == 2
    assert [item["id"] for item in out["items"]] == [first, second]
    assert out["items"][0]["fields"] == {"sku": "A-1", "qty": "2"}

    out = invoke_json("range", "orders", "--reverse", "-n", "1")
    assert [item["id"] for item in out["items"]] == [second]


def test_add_with_explicit_short_id():
    out = invoke_json("add", "orders", "--id", "100-1", "a=1")
    assert out["id"] == "00000000000000000100-00000000000000000001"

    result = invoke("add", "orders", "--id", "100-1", "a=2", "--json")
    assert result.exit_code == 2
    assert json.loads(result.stdout)["type"] == "AppendRejected"


def test_add_rejects_malformed_field():
    result = invoke("add", "orders", "no-equals-sign")
    assert result.exit_code == 2


def test_read_len_trim_del_info():
    ids = [invoke_json("add", "s", f"n={i}")["id"] for i in range(4)]

    out = invoke_json("read", "s", "--from", ids[1])
    assert [item["id"] for item in out["items"]] == ids[2:]

    assert invoke_json("len", "s")["length"] == 4

    out = invoke_json("del", "s", ids[0], "100-1")
    assert out["deleted"] == [ids[0]]

    assert invoke_json("trim", "s", "--maxlen", "1")["deleted"] == 2

    info = invoke_json("info", "s")
    assert info["last_id"] == ids[-1]
    assert info["length"] == 1
    assert info["last_sequence"] == 4
    assert info["exists"] is True


def test_info_on_missing_stream():
    info = invoke_json("info", "nothing")
    assert info["exists"] is False
    assert info["length"] == 0
    assert info["last_id"] == "00000000000000000000-00000000000000000000"


def test_group_workflow():
    ids = [invoke_json("add", "s", f"n={i}")["id"] for i in range(2)]

    invoke_json("group", "create", "s", "g")

    out = invoke_json("group", "read", "s", "g", "c1")
    assert [item["id"] for item in out["items"]] == [ids[0]]

    out = invoke_json("group", "read", "s", "g", "c1", "--mode", "PENDING", "-n", "10")
    assert [item["id"] for item in out["items"]] == [ids[0]]

    out = invoke_json("group", "pending", "s", "g")
    assert out["count"] == 1
    assert out["pending"][0]["consumer"] == "c1"
    assert out["pending"][0]["delivery_count"] == 2

    out = invoke_json("group", "claim", "s", "g", "c2", ids[0], "--min-idle", "0")
    assert [item["id"] for item in out["items"]] == [ids[0]]
    assert invoke_json("group", "pending", "s", "g")["pending"][0]["consumer"] == "c2"

    out = invoke_json("group", "ack", "s", "g", ids[0], ids[1])
    assert out["acknowledged"] == [ids[0]]
    assert invoke_json("group", "pending", "s", "g")["count"] == 0


def test_group_read_without_create_fails():
    invoke_json("add", "s", "n=1")

    result = invoke("group", "read", "s", "missing", "c1", "--json")

    assert result.exit_code == 2
    assert json.loads(result.stdout)["type"] == "GroupNotInitialized"


def test_table_output():
    invoke_json("add", "s", "n=1")

    result = invoke("range", "s")

    assert result.exit_code == 0
    assert "Total items:" in result.stdout
