"""Tip recording and listing.

A tip is recorded once per on-chain transaction signature. Recording a
verified tip inserts the row and bumps the creator's running total in the
same database transaction, with the increment done by SQL so concurrent
tips to one creator cannot overwrite each other.
"""
import logging
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sosiol.core.exceptions import CreatorNotFoundError, SelfTipError
from sosiol.models.creator import Creator
from sosiol.models.tip import Tip, TipStatus
from sosiol.services.tip_verifier import TipVerifier, TrustingTipVerifier

logger = logging.getLogger(__name__)

_QUANT = Decimal("0.000001")
TIP_LIST_LIMIT = 50
# Largest value a Numeric(18, 6) column holds, exclusive
MAX_TIP_USDC = Decimal("1000000000000")


def _tip_to_dict(tip: Tip) -> dict:
    return {
        "id": tip.id,
        "fromWallet": tip.from_wallet,
        "toCreatorWallet": tip.to_creator_wallet,
        "amountUSDC": float(tip.amount_usdc),
        "transactionSignature": tip.transaction_signature,
        "message": tip.message,
        "status": tip.status,
        "createdAt": tip.created_at.isoformat() if tip.created_at else None,
    }


async def _get_tip_by_signature(db: AsyncSession, signature: str) -> Tip | None:
    result = await db.execute(select(Tip).where(Tip.transaction_signature == signature))
    return result.scalar_one_or_none()


async def record_tip(
    db: AsyncSession,
    from_wallet: str,
    to_creator_wallet: str,
    amount_usdc: Decimal | float,
    transaction_signature: str,
    message: str | None = None,
    verifier: TipVerifier | None = None,
) -> tuple[dict, bool]:
    """Record a tip. Returns (tip, created).

    A signature that was already recorded returns the existing tip with
    created=False and leaves the creator's total untouched.
    """
    if from_wallet == to_creator_wallet:
        logger.info("Self-payment detected from %s, not recording as tip", from_wallet)
        raise SelfTipError()

    try:
        amount = Decimal(str(amount_usdc))
        if not amount.is_finite():
            raise InvalidOperation
        amount = amount.quantize(_QUANT, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise ValueError(f"amountUSDC {amount_usdc} is not a valid USDC amount")
    if amount <= 0:
        raise ValueError("amountUSDC must be greater than zero")
    if amount >= MAX_TIP_USDC:
        raise ValueError(f"amountUSDC must be less than {MAX_TIP_USDC}")

    existing = await _get_tip_by_signature(db, transaction_signature)
    if existing is not None:
        logger.info("Tip %s already recorded, returning existing record", transaction_signature)
        return _tip_to_dict(existing), False

    creator = (
        await db.execute(select(Creator).where(Creator.wallet_address == to_creator_wallet))
    ).scalar_one_or_none()
    if creator is None:
        raise CreatorNotFoundError(to_creator_wallet)

    verifier = verifier or TrustingTipVerifier()
    verified = await verifier.verify(
        signature=transaction_signature,
        from_wallet=from_wallet,
        to_wallet=to_creator_wallet,
        amount_usdc=amount,
    )
    status = TipStatus.COMPLETED if verified else TipStatus.PENDING

    tip = Tip(
        from_wallet=from_wallet,
        to_creator_wallet=to_creator_wallet,
        amount_usdc=amount,
        transaction_signature=transaction_signature,
        message=message or "",
        status=status.value,
    )
    db.add(tip)
    try:
        await db.flush()
        if status is TipStatus.COMPLETED:
            await db.execute(
                update(Creator)
                .where(Creator.wallet_address == to_creator_wallet)
                .values(total_tips_received=Creator.total_tips_received + amount)
            )
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent submission of the same signature
        await db.rollback()
        existing = await _get_tip_by_signature(db, transaction_signature)
        if existing is None:
            raise
        return _tip_to_dict(existing), False

    await db.refresh(tip)
    logger.info(
        "Tip recorded: %s, %s -> %s, %s USDC, status=%s",
        tip.id,
        from_wallet,
        to_creator_wallet,
        amount,
        tip.status,
    )
    return _tip_to_dict(tip), True


async def list_tips_for_creator(
    db: AsyncSession, wallet_address: str, limit: int = TIP_LIST_LIMIT
) -> list[dict]:
    """Completed tips received by a creator, newest first."""
    result = await db.execute(
        select(Tip)
        .where(Tip.to_creator_wallet == wallet_address, Tip.status == TipStatus.COMPLETED.value)
        .order_by(Tip.created_at.desc())
        .limit(limit)
    )
    return [_tip_to_dict(t) for t in result.scalars().all()]


async def list_tips_from_fan(
    db: AsyncSession, wallet_address: str, limit: int = TIP_LIST_LIMIT
) -> list[dict]:
    """Completed tips sent by a fan wallet, newest first."""
    result = await db.execute(
        select(Tip)
        .where(Tip.from_wallet == wallet_address, Tip.status == TipStatus.COMPLETED.value)
        .order_by(Tip.created_at.desc())
        .limit(limit)
    )
    return [_tip_to_dict(t) for t in result.scalars().all()]
