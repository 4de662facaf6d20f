"""Async access to Solana JSON-RPC via solana-py.

Every call opens a short-lived ``AsyncClient`` against one endpoint with the
configured timeout. Callers decide how to react to failures.
"""

import logging

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.pubkey import Pubkey
from solders.signature import Signature

from sosiol.config import settings

logger = logging.getLogger(__name__)


def parse_pubkey(value: str) -> Pubkey:
    """Parse a base58 wallet address, raising ValueError when malformed."""
    try:
        return Pubkey.from_string(value)
    except Exception as exc:
        raise ValueError(f"Invalid wallet address: {value}") from exc


class SolanaGateway:
    """The handful of RPC calls the backend needs, behind one seam."""

    def __init__(self, rpc_url: str, timeout: float = 10.0):
        self.rpc_url = rpc_url
        self.timeout = timeout

    def _client(self, endpoint: str | None = None) -> AsyncClient:
        return AsyncClient(endpoint or self.rpc_url, commitment=Confirmed, timeout=self.timeout)

    async def fetch_latest_blockhash(self, endpoint: str) -> str:
        """Return the latest blockhash (base58) reported by ``endpoint``."""
        async with self._client(endpoint) as client:
            resp = await client.get_latest_blockhash()
        return str(resp.value.blockhash)

    async def account_exists(self, address: Pubkey) -> bool:
        async with self._client() as client:
            resp = await client.get_account_info(address)
        return resp.value is not None

    async def get_transaction_details(self, signature: str) -> dict | None:
        """Look up a confirmed transaction. Returns None if missing or unreachable."""
        try:
            sig = Signature.from_string(signature)
        except Exception:
            logger.info("Malformed transaction signature: %s", signature)
            return None

        try:
            async with self._client() as client:
                resp = await client.get_transaction(sig, max_supported_transaction_version=0)
        except Exception:
            logger.exception("Error fetching transaction %s", signature)
            return None

        tx = resp.value
        if tx is None:
            return None

        meta = tx.transaction.meta
        err = meta.err if meta is not None else None
        return {
            "signature": signature,
            "blockTime": tx.block_time,
            "slot": tx.slot,
            "confirmationStatus": "confirmed",
            "err": str(err) if err is not None else None,
            "fee": meta.fee if meta is not None else 0,
        }


# Singleton gateway instance
_gateway: SolanaGateway | None = None


def get_solana_gateway() -> SolanaGateway:
    """FastAPI dependency returning the process-wide gateway."""
    global _gateway
    if _gateway is None:
        _gateway = SolanaGateway(settings.solana_rpc_url, timeout=settings.solana_rpc_timeout_seconds)
    return _gateway
