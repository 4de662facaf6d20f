"""Decides whether a reported tip counts as paid.

The default verifier trusts the client: a tip reaching the backend has
already been confirmed by the sender's wallet. OnChainTipVerifier checks that
the transaction exists and did not fail, but does not yet parse the token
transfer to compare amount, sender, recipient, or mint.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import TYPE_CHECKING

from sosiol.config import settings

if TYPE_CHECKING:
    from sosiol.services.solana_rpc import SolanaGateway

logger = logging.getLogger(__name__)


class TipVerifier(ABC):
    @abstractmethod
    async def verify(
        self,
        *,
        signature: str,
        from_wallet: str,
        to_wallet: str,
        amount_usdc: Decimal,
    ) -> bool:
        """Return True when the tip counts as paid."""


class TrustingTipVerifier(TipVerifier):
    async def verify(
        self,
        *,
        signature: str,
        from_wallet: str,
        to_wallet: str,
        amount_usdc: Decimal,
    ) -> bool:
        logger.info(
            "Accepting tip %s without on-chain check (%s -> %s, %s USDC)",
            signature,
            from_wallet,
            to_wallet,
            amount_usdc,
        )
        return True


class OnChainTipVerifier(TipVerifier):
    def __init__(self, gateway: "SolanaGateway"):
        self.gateway = gateway

    async def verify(
        self,
        *,
        signature: str,
        from_wallet: str,
        to_wallet: str,
        amount_usdc: Decimal,
    ) -> bool:
        details = await self.gateway.get_transaction_details(signature)
        if details is None:
            logger.info("Transaction %s not found, leaving tip pending", signature)
            return False
        if details["err"] is not None:
            logger.warning("Transaction %s failed on chain: %s", signature, details["err"])
            return False
        logger.info("Transaction %s confirmed on chain", signature)
        return True


def get_tip_verifier() -> TipVerifier:
    """FastAPI dependency selecting the verifier from TIP_VERIFICATION_MODE."""
    if settings.tip_verification_mode == "onchain":
        from sosiol.services.solana_rpc import get_solana_gateway

        return OnChainTipVerifier(get_solana_gateway())
    return TrustingTipVerifier()
