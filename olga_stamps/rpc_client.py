"""JSON-RPC client for a Bitcoin Core compatible node.

Only the read paths needed to fetch transactions for decoding are exposed.
Connection details come from :func:`~olga_stamps.config.load_rpc_config`.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Dict, Optional

import requests
from requests import RequestException, Response

from .config import RPCConfig, load_rpc_config

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class RPCError(RuntimeError):
    """Raised when the node responds with an RPC error."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message


class RPCTransportError(RuntimeError):
    """Raised when the RPC endpoint is unreachable or returns malformed data."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BitcoinRPCClient:
    """Thin JSON-RPC client; each helper maps to one node method."""

    def __init__(self, config: RPCConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self._session = session or requests.Session()

    @classmethod
    def from_env(cls) -> "BitcoinRPCClient":
        return cls(load_rpc_config())

    @property
    def _url(self) -> str:
        if self.config.wallet:
            return f"{self.config.base_url}/wallet/{self.config.wallet}"
        return self.config.base_url

    def call(self, method: str, params: Optional[list[Any]] = None) -> Any:
        """Perform a JSON-RPC request and return its ``result``."""

        payload = {
            "jsonrpc": "1.0",
            "id": str(uuid.uuid4()),
            "method": method,
            "params": params or [],
        }
        logger.debug("RPC call %s params=%s", method, params)
        try:
            response = self._session.post(
                self._url,
                data=json.dumps(payload),
                headers={"content-type": "application/json"},
                auth=(self.config.user, self.config.password),
                timeout=DEFAULT_TIMEOUT,
            )
        except RequestException as exc:
            logger.error(
                "RPC connection failed: %s",
                exc,
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )
            raise RPCTransportError(
                "RPC connection failed. Check BITCOIN_RPC_* settings or ~/.olga_stamps.yaml."
            ) from exc

        body = self._parse_body(response)
        if body.get("error"):
            error = body["error"]
            raise RPCError(error.get("code", -1), error.get("message", "unknown"))
        return body.get("result")

    def _parse_body(self, response: Response) -> Dict[str, Any]:
        # Bitcoin Core reports JSON-RPC errors with HTTP 500 and a JSON body.
        try:
            body = response.json()
        except ValueError as exc:
            if response.status_code == 401:
                raise RPCTransportError(
                    "Unauthorized (401). Check the RPC user and password.",
                    status_code=response.status_code,
                ) from exc
            if not response.ok:
                raise RPCTransportError(
                    f"RPC server returned HTTP {response.status_code}",
                    status_code=response.status_code,
                ) from exc
            logger.debug("RPC JSON parse error: %s", response.text, exc_info=True)
            raise RPCTransportError("RPC server returned malformed JSON") from exc
        if not isinstance(body, dict):
            raise RPCTransportError("RPC server returned an unexpected payload")
        return body

    def getrawtransaction(self, txid: str, verbose: bool = False) -> Any:
        return self.call("getrawtransaction", [txid, int(verbose)])

    def decoderawtransaction(self, raw_tx: str) -> Dict[str, Any]:
        return self.call("decoderawtransaction", [raw_tx])
