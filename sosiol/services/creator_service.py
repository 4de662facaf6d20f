"""Creator profiles: signed upsert by wallet, lookups, dashboard and cleanup."""
import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sosiol.core.exceptions import CreatorNotFoundError, InvalidSignatureError, UsernameTakenError
from sosiol.core.signatures import verify_wallet_signature
from sosiol.models.creator import Creator
from sosiol.models.tip import Tip, TipStatus
from sosiol.services.tip_service import _tip_to_dict

logger = logging.getLogger(__name__)

DASHBOARD_RECENT_TIPS = 10


def _creator_to_dict(creator: Creator) -> dict:
    return {
        "id": creator.id,
        "walletAddress": creator.wallet_address,
        "username": creator.username,
        "displayName": creator.display_name,
        "bio": creator.bio,
        "avatarUrl": creator.avatar_url,
        "coverImageUrl": creator.cover_image_url,
        "totalTipsReceived": float(creator.total_tips_received or 0),
        "createdAt": creator.created_at.isoformat() if creator.created_at else None,
        "updatedAt": creator.updated_at.isoformat() if creator.updated_at else None,
    }


async def _get_by_wallet(db: AsyncSession, wallet_address: str) -> Creator | None:
    result = await db.execute(select(Creator).where(Creator.wallet_address == wallet_address))
    return result.scalar_one_or_none()


async def _completed_total(db: AsyncSession, wallet_address: str) -> Decimal:
    result = await db.execute(
        select(func.coalesce(func.sum(Tip.amount_usdc), 0)).where(
            Tip.to_creator_wallet == wallet_address,
            Tip.status == TipStatus.COMPLETED.value,
        )
    )
    return Decimal(str(result.scalar() or 0))


async def list_creators(db: AsyncSession) -> list[dict]:
    """All creators, newest first."""
    result = await db.execute(select(Creator).order_by(Creator.created_at.desc()))
    return [_creator_to_dict(c) for c in result.scalars().all()]


async def get_creator_by_username(db: AsyncSession, username: str) -> dict | None:
    result = await db.execute(select(Creator).where(Creator.username == username.strip().lower()))
    creator = result.scalar_one_or_none()
    return _creator_to_dict(creator) if creator else None


async def get_creator_by_wallet(db: AsyncSession, wallet_address: str) -> dict | None:
    creator = await _get_by_wallet(db, wallet_address)
    return _creator_to_dict(creator) if creator else None


async def upsert_creator(
    db: AsyncSession,
    wallet_address: str,
    username: str,
    display_name: str,
    signature: str,
    message: str,
    bio: str | None = None,
    avatar_url: str | None = None,
    cover_image_url: str | None = None,
) -> dict:
    """Create or wholesale-replace the profile owned by ``wallet_address``.

    The caller proves wallet ownership by signing ``message``. Nothing is
    written unless the signature verifies.
    """
    if not verify_wallet_signature(wallet_address, message, signature):
        raise InvalidSignatureError()

    username = username.strip().lower()
    taken = await db.execute(select(Creator).where(Creator.username == username))
    owner = taken.scalar_one_or_none()
    if owner is not None and owner.wallet_address != wallet_address:
        raise UsernameTakenError(username)

    fields = {
        "username": username,
        "display_name": display_name.strip(),
        "bio": bio or "",
        "avatar_url": avatar_url or "",
        "cover_image_url": cover_image_url or "",
    }

    creator = await _get_by_wallet(db, wallet_address)
    if creator is None:
        creator = Creator(wallet_address=wallet_address, **fields)
        db.add(creator)
        action = "created"
    else:
        for key, value in fields.items():
            setattr(creator, key, value)
        creator.updated_at = datetime.now(timezone.utc)
        action = "updated"

    try:
        await db.commit()
    except IntegrityError:
        # Username claimed by another wallet between the check and the write
        await db.rollback()
        raise UsernameTakenError(username)
    await db.refresh(creator)

    logger.info("Creator %s: %s (%s)", action, creator.username, wallet_address)
    return _creator_to_dict(creator)


async def get_creator_dashboard(db: AsyncSession, wallet_address: str) -> dict:
    """Recent completed tips plus the completed-tip total, aggregated on read."""
    creator = await _get_by_wallet(db, wallet_address)
    if creator is None:
        raise CreatorNotFoundError(wallet_address)

    result = await db.execute(
        select(Tip)
        .where(Tip.to_creator_wallet == wallet_address, Tip.status == TipStatus.COMPLETED.value)
        .order_by(Tip.created_at.desc())
        .limit(DASHBOARD_RECENT_TIPS)
    )
    tips = result.scalars().all()
    total = await _completed_total(db, wallet_address)

    logger.debug("Dashboard for %s: %d recent tips, total %s", wallet_address, len(tips), total)
    return {
        "creator": {
            "username": creator.username,
            "displayName": creator.display_name,
            "walletAddress": creator.wallet_address,
        },
        "stats": {"totalTipsReceived": float(total)},
        "recentTips": [_tip_to_dict(t) for t in tips],
    }


async def get_wallet_info(db: AsyncSession, wallet_address: str) -> dict:
    """Completed-tip total plus the latest tips of any status."""
    creator = await _get_by_wallet(db, wallet_address)
    if creator is None:
        raise CreatorNotFoundError(wallet_address)

    result = await db.execute(
        select(Tip)
        .where(Tip.to_creator_wallet == wallet_address)
        .order_by(Tip.created_at.desc())
        .limit(DASHBOARD_RECENT_TIPS)
    )
    total = await _completed_total(db, wallet_address)
    return {
        "walletAddress": wallet_address,
        "totalTipsReceived": float(total),
        "recentTips": [_tip_to_dict(t) for t in result.scalars().all()],
    }


async def cleanup_self_tips(db: AsyncSession, wallet_address: str) -> dict:
    """Delete self-payment tips and recompute the running total from what remains."""
    creator = await _get_by_wallet(db, wallet_address)
    if creator is None:
        raise CreatorNotFoundError(wallet_address)

    deleted = await db.execute(
        delete(Tip).where(
            Tip.from_wallet == wallet_address,
            Tip.to_creator_wallet == wallet_address,
        )
    )
    total = await _completed_total(db, wallet_address)
    creator.total_tips_received = total
    await db.commit()

    logger.info(
        "Cleaned up %d self-payment tips for %s; total reset to %s",
        deleted.rowcount,
        wallet_address,
        total,
    )
    return {
        "message": "Self-payment records cleaned up",
        "deletedTips": deleted.rowcount,
        "totalTipsReceived": float(total),
    }
