"""
Ethereum JSON-RPC client (hardhat/anvil dev node ready).
"""

from __future__ import annotations

import importlib
import itertools
import time
from typing import Any, Dict, List, Optional

from config import settings
from infra.logger import get_logger
from infra.retry import retry

requests = importlib.import_module("requests")


class RpcError(Exception):
    """Raised when the node is unreachable or answers with a JSON-RPC error."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.code = code


class JsonRpcClient:
    """Thin JSON-RPC 2.0 wrapper over a requests session."""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[Any] = None,
    ) -> None:
        self.url = url or settings.RPC_URL
        if not self.url:
            raise RpcError("RPC_URL is not configured")
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        self._ids = itertools.count(1)
        self.logger = get_logger("JsonRpcClient")
        self.logger.info("JSON-RPC client initialized for %s", self.url)

    def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        return self.call("eth_call", [{"to": to, "data": data}, block])

    def send_transaction(self, sender: str, to: str, data: str) -> str:
        """
        Submit a transaction signed by the node (unlocked or impersonated sender).

        Not retried: a resubmission after a lost response could execute twice.
        """
        return self._post({"method": "eth_sendTransaction", "params": [{"from": sender, "to": to, "data": data}]})

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.call("eth_getTransactionReceipt", [tx_hash])

    def wait_for_receipt(
        self,
        tx_hash: str,
        attempts: Optional[int] = None,
        interval: Optional[float] = None,
    ) -> Dict[str, Any]:
        attempts = attempts if attempts is not None else settings.RPC_RECEIPT_ATTEMPTS
        interval = interval if interval is not None else settings.RPC_RECEIPT_INTERVAL_SEC
        for _ in range(max(1, attempts)):
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt:
                return receipt
            time.sleep(interval)
        raise RpcError(f"No receipt for {tx_hash} after {attempts} polls")

    @retry(max_retries=3, backoff_factor=0.5, retry_on=(requests.RequestException,))
    def call(self, method: str, params: List[Any]) -> Any:
        """Read-only call; retried on transport errors."""
        return self._post({"method": method, "params": params})

    def _post(self, payload: Dict[str, Any]) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._ids), **payload}
        response = self.session.post(self.url, json=body, timeout=self.timeout)
        return self._handle_response(response, payload["method"])

    def _handle_response(self, response: Any, method: str) -> Any:
        if response.status_code >= 400:
            self.logger.error("RPC HTTP error (%s) on %s: %s", response.status_code, method, response.text)
            raise RpcError(f"HTTP {response.status_code} on {method}")
        try:
            body = response.json()
        except ValueError as exc:
            self.logger.error("Failed to decode JSON-RPC response for %s", method)
            raise RpcError("Invalid JSON response") from exc
        if not isinstance(body, dict):
            raise RpcError(f"{method} returned a non-object response")
        error = body.get("error")
        if error:
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            code = error.get("code") if isinstance(error, dict) else None
            self.logger.error("RPC error on %s (%s): %s", method, code, message)
            raise RpcError(f"{method} failed: {message}", code)
        if "result" not in body:
            raise RpcError(f"{method} returned no result")
        return body["result"]
