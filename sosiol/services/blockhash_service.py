"""Recent-blockhash acquisition with a TTL cache and an RPC fallback chain.

Policy:
  1. A cached blockhash is reused for ``ttl`` seconds after retrieval.
  2. On a miss, endpoints are tried serially in order, pausing ``retry_delay``
     after each failure while endpoints remain.
  3. An insufficient-funds failure aborts at once. It describes the wallet,
     not the endpoint, so other endpoints would fail the same way.
  4. When every endpoint has failed, the first endpoint is retried exactly once
     after ``final_retry_delay``.
  5. If that retry fails, sandbox mode returns SANDBOX_BLOCKHASH and any other
     mode raises BlockhashUnavailableError.

The endpoint list, transport, clock and sleep function are all injected.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable, Sequence

import httpx

logger = logging.getLogger(__name__)

# 32 zero bytes in base58. Only ever returned in sandbox mode.
SANDBOX_BLOCKHASH = "11111111111111111111111111111111"

BlockhashFetcher = Callable[[str], Awaitable[str]]


class BlockhashError(Exception):
    """Base class for failures while preparing a transfer."""


class InsufficientFundsError(BlockhashError):
    def __init__(
        self,
        message: str = (
            "Insufficient funds: your wallet needs enough USDC for the tip "
            "and a little SOL for network fees."
        ),
    ):
        super().__init__(message)
        self.user_message = message


class BlockhashUnavailableError(BlockhashError):
    def __init__(self, attempts: int):
        super().__init__(
            f"Failed to get latest blockhash after {attempts} attempts. Please try again."
        )
        self.attempts = attempts


class RpcFailure(str, enum.Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


_INSUFFICIENT_FUNDS_MARKERS = (
    "insufficient funds",
    "insufficient lamports",
    "insufficient balance",
    "custom program error: 0x1",
    "attempt to debit an account but found no record of a prior credit",
)
# SPL token error 1 is InsufficientFunds; the names are runtime TransactionErrors
_INSUFFICIENT_FUNDS_CODES = frozenset({1, "0x1", "InsufficientFundsForFee", "InsufficientFundsForRent"})

_TRANSPORT_MARKERS = (
    "timeout",
    "timed out",
    "forbidden",
    "403",
    "429",
    "too many requests",
    "connect",
    "network",
    "unavailable",
)
_TRANSPORT_STATUS_CODES = frozenset({403, 408, 429, 500, 502, 503, 504})


def _error_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    return chain


def classify_rpc_error(exc: BaseException) -> RpcFailure:
    """Sort a failed RPC call into insufficient funds, transport, or unknown.

    solana-py wraps httpx errors, so the whole cause chain is inspected.
    """
    chain = _error_chain(exc)

    for err in chain:
        code = getattr(err, "code", None)
        if isinstance(code, (int, str)) and code in _INSUFFICIENT_FUNDS_CODES:
            return RpcFailure.INSUFFICIENT_FUNDS
        text = str(err).lower()
        if any(marker in text for marker in _INSUFFICIENT_FUNDS_MARKERS):
            return RpcFailure.INSUFFICIENT_FUNDS

    for err in chain:
        if isinstance(err, (httpx.TimeoutException, httpx.TransportError, asyncio.TimeoutError, ConnectionError)):
            return RpcFailure.TRANSPORT
        if isinstance(err, httpx.HTTPStatusError):
            if err.response.status_code in _TRANSPORT_STATUS_CODES:
                return RpcFailure.TRANSPORT
        text = str(err).lower()
        if any(marker in text for marker in _TRANSPORT_MARKERS):
            return RpcFailure.TRANSPORT

    return RpcFailure.UNKNOWN


class BlockhashCache:
    """Holds the most recent blockhash and when it was retrieved."""

    def __init__(self, ttl: float = 30.0, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl
        self._clock = clock
        self._blockhash: str | None = None
        self._fetched_at = 0.0

    def get(self) -> str | None:
        """Return the cached blockhash if it is at most ``ttl`` seconds old."""
        if self._blockhash is None:
            return None
        if self._clock() - self._fetched_at > self._ttl:
            return None
        return self._blockhash

    def put(self, blockhash: str) -> None:
        self._blockhash = blockhash
        self._fetched_at = self._clock()

    def clear(self) -> None:
        self._blockhash = None
        self._fetched_at = 0.0


class BlockhashProvider:
    """Serves recent blockhashes from cache or from the first RPC endpoint that answers."""

    def __init__(
        self,
        endpoints: Sequence[str],
        fetch: BlockhashFetcher,
        *,
        cache: BlockhashCache | None = None,
        sandbox: bool = False,
        retry_delay: float = 2.0,
        final_retry_delay: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not endpoints:
            raise ValueError("At least one RPC endpoint is required")
        self.endpoints = list(endpoints)
        self.cache = cache or BlockhashCache()
        self.sandbox = sandbox
        self._fetch = fetch
        self._retry_delay = retry_delay
        self._final_retry_delay = final_retry_delay
        self._sleep = sleep

    async def get_blockhash(self) -> str:
        cached = self.cache.get()
        if cached is not None:
            logger.debug("Using cached blockhash %s", cached)
            return cached

        last_error: BaseException | None = None
        for index, endpoint in enumerate(self.endpoints):
            try:
                return await self._fetch_and_cache(endpoint)
            except Exception as exc:
                self._record_failure(endpoint, exc)
                last_error = exc
            if index < len(self.endpoints) - 1:
                await self._sleep(self._retry_delay)

        logger.warning(
            "All %d RPC endpoints failed; retrying %s once more",
            len(self.endpoints),
            self.endpoints[0],
        )
        await self._sleep(self._final_retry_delay)
        try:
            return await self._fetch_and_cache(self.endpoints[0])
        except Exception as exc:
            self._record_failure(self.endpoints[0], exc)
            last_error = exc

        if self.sandbox:
            logger.warning("Sandbox mode: substituting placeholder blockhash")
            return SANDBOX_BLOCKHASH
        raise BlockhashUnavailableError(len(self.endpoints) + 1) from last_error

    async def _fetch_and_cache(self, endpoint: str) -> str:
        blockhash = await self._fetch(endpoint)
        self.cache.put(blockhash)
        logger.info("Fetched blockhash from %s", endpoint)
        return blockhash

    def _record_failure(self, endpoint: str, exc: Exception) -> None:
        """Log a failed attempt; re-raise insufficient funds as a fatal error."""
        kind = classify_rpc_error(exc)
        if kind is RpcFailure.INSUFFICIENT_FUNDS:
            logger.info("Insufficient funds reported by %s: %s", endpoint, exc)
            raise InsufficientFundsError() from exc
        logger.warning("Blockhash fetch from %s failed (%s): %s", endpoint, kind.value, exc)
