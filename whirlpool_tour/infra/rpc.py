"""
Async RPC Client for Solana

Provides unified JSON-RPC interface with:
- Multiple endpoint fallback
- Retry logic for read calls
- Rate limit handling
- Request timeout management

Every request is an awaitable; the client is meant to be driven from a
single asyncio event loop and closed with ``async with`` or ``close()``.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from ..errors import RpcError, ConfigurationError, ErrorCode
from ..config import config as global_config

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# Nodes reject getMultipleAccounts requests with more keys than this
MAX_MULTIPLE_ACCOUNTS = 100


@dataclass
class RpcClientConfig:
    """
    RPC client runtime configuration

    Allows per-client overrides while pulling defaults from the global
    config (whirlpool_tour.config.RpcConfig).

    Usage:
        # Use all defaults from environment
        client = RpcClient(endpoint)

        # Override specific settings
        config = RpcClientConfig(timeout_seconds=60, max_retries=5)
        client = RpcClient(endpoint, config=config)
    """
    timeout_seconds: float = None
    max_retries: int = None
    retry_delay_seconds: float = None
    commitment: str = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.timeout_seconds is None:
            self.timeout_seconds = global_config.rpc.timeout_seconds
        if self.max_retries is None:
            self.max_retries = global_config.rpc.max_retries
        if self.retry_delay_seconds is None:
            self.retry_delay_seconds = global_config.rpc.retry_delay_seconds
        if self.commitment is None:
            self.commitment = global_config.rpc.commitment


class RpcClient:
    """
    Async Solana RPC client

    Supports:
    - Multiple RPC endpoints with automatic fallback
    - Retry logic for transient failures
    - Rate limit handling with backoff
    - Configurable timeouts

    Usage:
        async with RpcClient("https://api.devnet.solana.com") as rpc:
            info = await rpc.get_account_info("AccountAddress...")
            slot = await rpc.call("getSlot", [])
    """

    def __init__(
        self,
        endpoint: Union[str, List[str]],
        config: Optional[RpcClientConfig] = None,
    ):
        """
        Initialize RPC client

        Args:
            endpoint: RPC endpoint URL or list of URLs (for fallback)
            config: RPC configuration options
        """
        self._endpoints = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        if not self._endpoints or not all(self._endpoints):
            raise ConfigurationError.missing("RPC endpoint")

        self._config = config or RpcClientConfig()
        self._current_endpoint_idx = 0
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def endpoint(self) -> str:
        """Current active endpoint"""
        return self._endpoints[self._current_endpoint_idx]

    @property
    def commitment(self) -> str:
        """Default commitment level"""
        return self._config.commitment

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                headers={"Content-Type": "application/json"},
            )
        return self._client

    def _rotate_endpoint(self):
        """Rotate to next endpoint on failure"""
        if len(self._endpoints) > 1:
            self._current_endpoint_idx = (self._current_endpoint_idx + 1) % len(self._endpoints)
            logger.info(f"Rotating to RPC endpoint: {self.endpoint}")

    async def call(
        self,
        method: str,
        params: List[Any],
        timeout: Optional[float] = None,
        retry: bool = True,
    ) -> Any:
        """
        Make JSON-RPC call

        Args:
            method: RPC method name
            params: RPC parameters
            timeout: Optional timeout override
            retry: Retry and rotate endpoints on transport failure.
                Disabled for calls that must reach the node at most once.

        Returns:
            RPC result

        Raises:
            RpcError: On RPC failure
        """
        client = self._get_client()
        body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }

        max_attempts = self._config.max_retries if retry else 1
        max_endpoints = len(self._endpoints) if retry else 1
        timeout_val = timeout or self._config.timeout_seconds

        last_error: Optional[Exception] = None
        endpoints_tried = 0

        while endpoints_tried < max_endpoints:
            for attempt in range(max_attempts):
                try:
                    response = await client.post(
                        self.endpoint,
                        json=body,
                        timeout=timeout_val,
                    )

                    if response.status_code == 429:
                        logger.warning(f"Rate limited by {self.endpoint}")
                        last_error = RpcError.rate_limited(self.endpoint)
                        await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))
                        continue

                    response.raise_for_status()
                    try:
                        result = response.json()
                    except ValueError as e:
                        raise RpcError(
                            f"Invalid JSON response from {self.endpoint}",
                            ErrorCode.RPC_INVALID_RESPONSE,
                            original_error=e,
                            endpoint=self.endpoint,
                        ) from e

                    if "error" in result:
                        error = result["error"]
                        rpc_error = RpcError(
                            f"RPC error: {error.get('message', str(error))}",
                            ErrorCode.RPC_INVALID_RESPONSE,
                            endpoint=self.endpoint,
                        )
                        rpc_error.details["rpc_error_code"] = error.get("code")
                        rpc_error.details["rpc_error_data"] = error.get("data")
                        raise rpc_error

                    return result.get("result")

                except httpx.TimeoutException:
                    last_error = RpcError.timeout(self.endpoint, timeout_val)
                    logger.warning(f"RPC timeout (attempt {attempt + 1}): {self.endpoint}")

                except httpx.HTTPStatusError as e:
                    last_error = RpcError(
                        f"HTTP error {e.response.status_code}",
                        endpoint=self.endpoint,
                        original_error=e,
                    )
                    logger.warning(f"RPC HTTP error (attempt {attempt + 1}): {e}")

                except httpx.RequestError as e:
                    last_error = RpcError.connection_failed(self.endpoint, e)
                    logger.warning(f"RPC connection error (attempt {attempt + 1}): {e}")

                if attempt < max_attempts - 1:
                    await asyncio.sleep(self._config.retry_delay_seconds * (attempt + 1))

            self._rotate_endpoint()
            endpoints_tried += 1

        raise last_error or RpcError("All RPC endpoints failed")

    async def get_account_info(
        self,
        address: str,
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get account information

        Args:
            address: Account address (base58)
            encoding: Data encoding ("base64", "jsonParsed", etc.)
            commitment: Commitment level

        Returns:
            Account info or None if not found
        """
        params = [
            address,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getAccountInfo", params)
        return result.get("value") if result else None

    async def get_multiple_accounts(
        self,
        addresses: List[str],
        encoding: str = "base64",
        commitment: Optional[str] = None,
    ) -> List[Optional[Dict[str, Any]]]:
        """
        Get multiple account information

        Addresses are requested in batches of MAX_MULTIPLE_ACCOUNTS.

        Returns:
            List of account info (None for accounts not found), same order as addresses
        """
        accounts: List[Optional[Dict[str, Any]]] = []
        for start in range(0, len(addresses), MAX_MULTIPLE_ACCOUNTS):
            batch = list(addresses[start:start + MAX_MULTIPLE_ACCOUNTS])
            params = [
                batch,
                {
                    "encoding": encoding,
                    "commitment": commitment or self.commitment,
                },
            ]
            result = await self.call("getMultipleAccounts", params)
            accounts.extend(result.get("value", []) if result else [])
        return accounts

    async def get_account_data(
        self,
        address: str,
        commitment: Optional[str] = None,
    ) -> Optional[bytes]:
        """Raw account data bytes, or None if the account does not exist"""
        info = await self.get_account_info(address, commitment=commitment)
        return decode_account_data(info)

    async def get_latest_blockhash(
        self,
        commitment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Get latest blockhash

        Returns:
            Dict with blockhash and lastValidBlockHeight
        """
        params = [{"commitment": commitment or self.commitment}]
        result = await self.call("getLatestBlockhash", params)
        return result.get("value", {}) if result else {}

    async def get_block_height(self, commitment: Optional[str] = None) -> int:
        """Get current block height"""
        params = [{"commitment": commitment or self.commitment}]
        return await self.call("getBlockHeight", params)

    async def get_balance(
        self,
        address: str,
        commitment: Optional[str] = None,
    ) -> int:
        """Get SOL balance in lamports"""
        params = [address, {"commitment": commitment or self.commitment}]
        result = await self.call("getBalance", params)
        return result.get("value", 0) if result else 0

    async def get_minimum_balance_for_rent_exemption(self, data_len: int) -> int:
        """Lamports required for an account of data_len bytes to be rent exempt"""
        return await self.call("getMinimumBalanceForRentExemption", [data_len])

    async def get_token_accounts_by_owner(
        self,
        owner: str,
        mint: Optional[str] = None,
        program_id: Optional[str] = None,
        encoding: str = "jsonParsed",
        commitment: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get token accounts owned by address

        Args:
            owner: Owner address
            mint: Optional mint filter
            program_id: Optional program filter (defaults to SPL Token)
            encoding: Data encoding

        Returns:
            List of {"pubkey": ..., "account": {...}} entries
        """
        if mint:
            filter_param = {"mint": mint}
        else:
            filter_param = {"programId": program_id or TOKEN_PROGRAM_ID}

        params = [
            owner,
            filter_param,
            {
                "encoding": encoding,
                "commitment": commitment or self.commitment,
            },
        ]
        result = await self.call("getTokenAccountsByOwner", params)
        return result.get("value", []) if result else []

    async def send_transaction(
        self,
        transaction: bytes,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
    ) -> str:
        """
        Send signed transaction exactly once

        The node is asked not to rebroadcast (maxRetries=0) and the HTTP
        request itself is not retried; resubmission is left to the caller.

        Args:
            transaction: Signed transaction bytes
            skip_preflight: Skip preflight simulation
            preflight_commitment: Preflight commitment level

        Returns:
            Transaction signature (base58)
        """
        tx_data = base64.b64encode(transaction).decode("ascii")

        params = [
            tx_data,
            {
                "skipPreflight": skip_preflight,
                "preflightCommitment": preflight_commitment or self.commitment,
                "encoding": "base64",
                "maxRetries": 0,
            },
        ]
        return await self.call("sendTransaction", params, retry=False)

    async def get_signature_statuses(
        self,
        signatures: List[str],
        search_transaction_history: bool = False,
    ) -> List[Optional[Dict[str, Any]]]:
        """
        Get statuses for a list of signatures

        Returns:
            One entry per signature; None for signatures the node has not seen
        """
        params = [
            signatures,
            {"searchTransactionHistory": search_transaction_history},
        ]
        result = await self.call("getSignatureStatuses", params)
        return result.get("value", []) if result else []

    async def close(self):
        """Close HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def decode_account_data(account_info: Optional[Dict[str, Any]]) -> Optional[bytes]:
    """
    Decode base64 account data from a getAccountInfo value

    Returns:
        Raw bytes, or None when the account does not exist
    """
    if not account_info:
        return None
    data = account_info.get("data")
    if isinstance(data, list) and data:
        return base64.b64decode(data[0])
    if isinstance(data, str):
        return base64.b64decode(data)
    return None
