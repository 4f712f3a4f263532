"""Minimal Solana JSON-RPC client for fetching blocks and account data."""
from __future__ import annotations

import base64
import random
import time
from dataclasses import dataclass
from typing import Any, Optional

import base58
import httpx

from sasdecode.account.records import Identifier
from sasdecode.config import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_COMMITMENT,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_MS,
    DEFAULT_TIMEOUT_SECONDS,
    RETRYABLE_STATUS_CODES,
)


@dataclass
class RetryConfig:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_ms: int = DEFAULT_BASE_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS


class RpcError(Exception):
    """JSON-RPC error object, bad HTTP status, or unusable response."""

    def __init__(self, code: Optional[int], message: str):
        super().__init__(message if code is None else f"RPC error {code}: {message}")
        self.code = code
        self.message = message


def account_data_bytes(data: Any) -> bytes:
    """Normalize an RPC account `data` field to raw bytes.

    Accepts [payload, "base64"], [payload, "base58"], or a bytes-like value.
    """
    if not data:
        raise ValueError("account data is missing")
    if isinstance(data, (list, tuple)) and len(data) == 2 and isinstance(data[0], str):
        payload, encoding = data
        if encoding == "base64":
            return base64.b64decode(payload, validate=True)
        if encoding == "base58":
            return base58.b58decode(payload)
        raise ValueError(f"Unsupported account data encoding: {encoding!r}")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise ValueError("Unsupported account data format")


class SolanaRpcClient:
    """Synchronous JSON-RPC 2.0 client over httpx with retry on transient failures."""

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        retry: Optional[RetryConfig] = None,
        commitment: str = DEFAULT_COMMITMENT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.retry = retry or RetryConfig()
        self.commitment = commitment
        self.http = httpx.Client(timeout=timeout_seconds, transport=transport)
        self._next_id = 1

    def __enter__(self) -> SolanaRpcClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def get_account_info(self, address: Identifier) -> Optional[bytes]:
        """Raw account data, or None if the account doesn't exist."""
        result = self._call("getAccountInfo", [
            str(address),
            {"encoding": "base64", "commitment": self.commitment},
        ])
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            return None
        return account_data_bytes(value.get("data"))

    def get_block(self, slot: int) -> dict:
        """Fetch a block with jsonParsed transactions (inner instructions included)."""
        result = self._call("getBlock", [
            slot,
            {
                "encoding": "jsonParsed",
                "transactionDetails": "full",
                "maxSupportedTransactionVersion": 0,
                "rewards": False,
                "commitment": self.commitment,
            },
        ])
        if result is None:
            raise RpcError(None, f"Block {slot} not available")
        return result

    def _call(self, method: str, params: list) -> Any:
        request_id = self._next_id
        self._next_id += 1
        payload = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}

        attempts = max(1, self.retry.max_attempts)
        for attempt in range(1, attempts + 1):
            try:
                resp = self.http.post(self.rpc_url, json=payload)
            except httpx.TransportError:
                if attempt < attempts:
                    self._sleep(attempt, None)
                    continue
                raise
            if attempt < attempts and resp.status_code in RETRYABLE_STATUS_CODES:
                self._sleep(attempt, resp.headers.get("Retry-After"))
                continue
            return self._unwrap(resp)
        raise RuntimeError("unreachable")

    def _unwrap(self, resp: httpx.Response) -> Any:
        if not 200 <= resp.status_code < 300:
            raise RpcError(None, f"HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            body = resp.json()
        except ValueError as e:
            raise RpcError(None, "Response is not valid JSON") from e
        if not isinstance(body, dict):
            raise RpcError(None, "Response is not a JSON-RPC object")
        error = body.get("error")
        if isinstance(error, dict):
            raise RpcError(error.get("code"), error.get("message", "unknown error"))
        if error is not None:
            raise RpcError(None, str(error))
        return body.get("result")

    def _sleep(self, attempt: int, retry_after: Optional[str]) -> None:
        if retry_after and retry_after.strip().isdigit():
            ms = min(int(retry_after.strip()) * 1000, self.retry.max_delay_ms)
            time.sleep(ms / 1000)
            return
        max_ms = min(self.retry.base_delay_ms * (2 ** (attempt - 1)), self.retry.max_delay_ms)
        time.sleep(random.randint(0, max(1, max_ms)) / 1000)
