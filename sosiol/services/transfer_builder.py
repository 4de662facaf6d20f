"""Unsigned USDC transfer transactions for a browser wallet to sign.

A transfer moves USDC between the sender's and recipient's associated token
accounts. When the recipient has no token account yet, an instruction
creating it (paid for by the sender) is placed first.
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    create_associated_token_account,
    get_associated_token_address,
    transfer,
)
from spl.token.models import TransferParams

from sosiol.config import settings
from sosiol.services.blockhash_service import BlockhashCache, BlockhashProvider

logger = logging.getLogger(__name__)

USDC_DECIMALS = 6
# SPL token amounts are u64
U64_MAX = 2**64 - 1

AccountExists = Callable[[Pubkey], Awaitable[bool]]


def usdc_to_base_units(amount: Decimal | float | int | str) -> int:
    """Convert a USDC amount to base units, flooring any sub-unit remainder."""
    value = Decimal(str(amount))
    if not value.is_finite():
        raise ValueError(f"Amount {amount} is not a finite number")
    if value <= 0:
        raise ValueError("Amount must be positive")
    units = int((value * (Decimal(10) ** USDC_DECIMALS)).to_integral_value(rounding=ROUND_FLOOR))
    if units == 0:
        raise ValueError(f"Amount {amount} is below the smallest USDC unit")
    if units > U64_MAX:
        raise ValueError(f"Amount {amount} exceeds the largest transferable token amount")
    return units


def base_units_to_usdc(units: int) -> Decimal:
    return Decimal(units) / (Decimal(10) ** USDC_DECIMALS)


@dataclass
class TransferPlan:
    transaction: Transaction
    blockhash: str
    amount_base_units: int
    creates_recipient_account: bool
    sender_token_account: Pubkey
    recipient_token_account: Pubkey

    def serialize(self) -> str:
        """Base64 wire bytes of the unsigned transaction."""
        return base64.b64encode(bytes(self.transaction)).decode("ascii")


class TransferBuilder:
    def __init__(
        self,
        mint: Pubkey,
        blockhash_provider: BlockhashProvider,
        account_exists: AccountExists,
    ) -> None:
        self.mint = mint
        self.blockhash_provider = blockhash_provider
        self._account_exists = account_exists

    async def _recipient_account_exists(self, token_account: Pubkey) -> bool:
        try:
            return await self._account_exists(token_account)
        except Exception as exc:
            # Unknown existence is treated as missing
            logger.warning(
                "Could not check token account %s, assuming it needs to be created: %s",
                token_account,
                exc,
            )
            return False

    async def build_usdc_transfer(
        self,
        sender: Pubkey,
        recipient: Pubkey,
        amount_usdc: Decimal | float | int | str,
    ) -> TransferPlan:
        """Assemble the unsigned transfer with the sender as fee payer.

        Raises:
            ValueError: amount is not positive, floors to zero base units, or overflows u64.
            InsufficientFundsError: an RPC endpoint reported insufficient funds.
            BlockhashUnavailableError: no endpoint produced a blockhash.
        """
        amount = usdc_to_base_units(amount_usdc)

        sender_ata = get_associated_token_address(sender, self.mint)
        recipient_ata = get_associated_token_address(recipient, self.mint)

        instructions = []
        creates_account = not await self._recipient_account_exists(recipient_ata)
        if creates_account:
            instructions.append(
                create_associated_token_account(payer=sender, owner=recipient, mint=self.mint)
            )
        instructions.append(
            transfer(
                TransferParams(
                    program_id=TOKEN_PROGRAM_ID,
                    source=sender_ata,
                    dest=recipient_ata,
                    owner=sender,
                    amount=amount,
                )
            )
        )

        blockhash = await self.blockhash_provider.get_blockhash()
        message = Message.new_with_blockhash(instructions, sender, Hash.from_string(blockhash))

        logger.info(
            "Built USDC transfer %s -> %s: %d base units (create account: %s)",
            sender,
            recipient,
            amount,
            creates_account,
        )
        return TransferPlan(
            transaction=Transaction.new_unsigned(message),
            blockhash=blockhash,
            amount_base_units=amount,
            creates_recipient_account=creates_account,
            sender_token_account=sender_ata,
            recipient_token_account=recipient_ata,
        )


# Singleton builder; owns the process-wide blockhash cache
_builder: TransferBuilder | None = None


def get_transfer_builder() -> TransferBuilder:
    """FastAPI dependency returning the configured transfer builder."""
    global _builder
    if _builder is None:
        from sosiol.services.solana_rpc import get_solana_gateway

        gateway = get_solana_gateway()
        provider = BlockhashProvider(
            settings.blockhash_endpoints,
            gateway.fetch_latest_blockhash,
            cache=BlockhashCache(ttl=settings.blockhash_cache_ttl_seconds),
            sandbox=settings.solana_sandbox_mode,
            retry_delay=settings.blockhash_retry_delay_seconds,
            final_retry_delay=settings.blockhash_final_retry_delay_seconds,
        )
        _builder = TransferBuilder(
            Pubkey.from_string(settings.usdc_mint_address),
            provider,
            gateway.account_exists,
        )
    return _builder
