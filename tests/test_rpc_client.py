from __future__ import annotations

import json
from typing import Any

import pytest
import requests

from olga_stamps.config import RPCConfig
from olga_stamps.rpc_client import BitcoinRPCClient, RPCError, RPCTransportError


class DummyResponse:
    def __init__(self, body: Any, status_code: int = 200) -> None:
        self._body = body
        self.status_code = status_code
        self.ok = status_code < 400
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self) -> Any:
        if isinstance(self._body, str):
            raise ValueError("not json")
        return self._body


class DummySession:
    def __init__(self, response: DummyResponse | Exception) -> None:
        self.response = response
        self.requests: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> DummyResponse:
        self.requests.append({"url": url, **kwargs})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(response: DummyResponse | Exception, wallet: str | None = None) -> tuple[BitcoinRPCClient, DummySession]:
    session = DummySession(response)
    config = RPCConfig(user="u", password="p", wallet=wallet)
    return BitcoinRPCClient(config, session=session), session


def test_getrawtransaction_posts_json_rpc() -> None:
    client, session = _client(DummyResponse({"result": "0200", "error": None}), wallet="w1")

    assert client.getrawtransaction("ab" * 32) == "0200"

    request = session.requests[0]
    assert request["url"] == "http://127.0.0.1:8332/wallet/w1"
    assert request["auth"] == ("u", "p")
    payload = json.loads(request["data"])
    assert payload["method"] == "getrawtransaction"
    assert payload["params"] == ["ab" * 32, 0]


def test_rpc_error_is_raised_with_code() -> None:
    client, _ = _client(
        DummyResponse({"result": None, "error": {"code": -5, "message": "No such transaction"}}, 500)
    )

    with pytest.raises(RPCError) as excinfo:
        client.getrawtransaction("00" * 32)

    assert excinfo.value.code == -5


def test_connection_failure_is_a_transport_error() -> None:
    client, _ = _client(requests.ConnectionError("refused"))

    with pytest.raises(RPCTransportError):
        client.getrawtransaction("00" * 32)


def test_unauthorized_response() -> None:
    client, _ = _client(DummyResponse("", 401))

    with pytest.raises(RPCTransportError) as excinfo:
        client.getrawtransaction("00" * 32)

    assert excinfo.value.status_code == 401


def test_malformed_json_response() -> None:
    client, _ = _client(DummyResponse("<html>", 200))

    with pytest.raises(RPCTransportError):
        client.decoderawtransaction("00")


def test_from_env_reads_bitcoin_rpc_variables(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setattr("olga_stamps.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yaml")
    for name in ("BITCOIN_RPC_ENDPOINT", "BITCOIN_RPC_URL", "BITCOIN_RPC_HOST", "BITCOIN_RPC_USE_HTTPS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("BITCOIN_RPC_USER", "alice")
    monkeypatch.setenv("BITCOIN_RPC_PASSWORD", "secret")
    monkeypatch.setenv("BITCOIN_RPC_PORT", "18443")
    monkeypatch.setenv("BITCOIN_RPC_WALLET", "stamps")

    client = BitcoinRPCClient.from_env()

    assert client.config.user == "alice"
    assert client.config.port == 18443
    assert client.config.base_url == "http://127.0.0.1:18443"
    assert client.config.wallet == "stamps"
