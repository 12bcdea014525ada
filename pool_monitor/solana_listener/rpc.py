"""
Ledger query client: JSON-RPC over HTTP.

Responsibilities:
- getTransaction by signature (configurable commitment, encoding, version).
- getAccountInfo by address, returning the raw account bytes.
- Program-derived address lookup (find_program_address).
- Map transport failures and JSON-RPC error objects to RpcError.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Sequence

import httpx
from solders.pubkey import Pubkey

from pool_monitor.core.exceptions import AccountNotFound, RpcError
from pool_monitor.monitor_logging import get_logger

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT_SEC = 15.0


class SolanaRpcClient:
    """
    Minimal async Solana JSON-RPC client for the calls the pipeline needs.

    One httpx.AsyncClient is held for the life of the monitor; use as an async
    context manager or call aclose() when done.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        commitment: str = "confirmed",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            rpc_url: Solana RPC HTTP endpoint (e.g. https://api.mainnet-beta.solana.com).
            timeout: HTTP timeout for each request, in seconds.
            commitment: Default commitment for account reads.
            client: Optional pre-built httpx client (tests pass one with a MockTransport).
        """
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.rstrip("/")
        self._commitment = commitment
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._next_rpc_id = 0

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _next_id(self) -> int:
        self._next_rpc_id += 1
        return self._next_rpc_id

    async def _call(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call; return its result (may be None). Raise RpcError on failure."""
        body = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }
        try:
            resp = await self._client.post(self._rpc_url, json=body)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise RpcError(method, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise RpcError(method, f"invalid JSON response: {e}") from e
        if not isinstance(data, dict):
            raise RpcError(method, "unexpected response shape")
        err = data.get("error")
        if err:
            logger.debug("rpc_error_response", method=method, error=str(err))
            if isinstance(err, dict):
                raise RpcError(method, str(err.get("message", err)), err.get("code"))
            raise RpcError(method, str(err))
        return data.get("result")

    async def get_transaction(
        self,
        signature: str,
        *,
        commitment: str = "confirmed",
        encoding: str = "base64",
        max_supported_transaction_version: int = 0,
    ) -> dict[str, Any] | None:
        """Return the raw getTransaction result, or None if the node does not have it yet."""
        return await self._call(
            "getTransaction",
            [
                signature,
                {
                    "commitment": commitment,
                    "encoding": encoding,
                    "maxSupportedTransactionVersion": max_supported_transaction_version,
                },
            ],
        )

    async def get_account_data(self, address: Pubkey | str) -> bytes:
        """
        Fetch an account's data as raw bytes.

        Raises:
            AccountNotFound: the account does not exist.
            RpcError: transport, RPC or encoding failure.
        """
        addr = str(address)
        result = await self._call(
            "getAccountInfo",
            [addr, {"encoding": "base64", "commitment": self._commitment}],
        )
        value = (result or {}).get("value") if isinstance(result, dict) else None
        if value is None:
            raise AccountNotFound(addr)
        data = value.get("data")
        if isinstance(data, (list, tuple)) and data and isinstance(data[0], str):
            encoded = data[0]
        elif isinstance(data, str):
            encoded = data
        else:
            raise RpcError("getAccountInfo", f"unexpected account data for {addr}")
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise RpcError("getAccountInfo", f"invalid base64 account data for {addr}") from e

    @staticmethod
    def derive_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
        """Program-derived address for seeds under program_id (bump discarded)."""
        pda, _ = Pubkey.find_program_address(list(seeds), program_id)
        return pda
