import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, String

from sosiol.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class TipStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Tip(Base):
    """A USDC tip sent on chain from a fan wallet to a creator wallet.

    The transaction signature is the idempotency key: one row per signature.
    """
    __tablename__ = "tips"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    from_wallet = Column(String(44), nullable=False)
    to_creator_wallet = Column(
        String(44),
        ForeignKey("creators.wallet_address", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    )
    amount_usdc = Column(Numeric(18, 6), nullable=False)
    transaction_signature = Column(String(88), unique=True, nullable=False)
    message = Column(String(280), nullable=False, default="")
    status = Column(String(20), nullable=False, default=TipStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_tip_recipient_status", "to_creator_wallet", "status"),
        Index("idx_tip_sender_status", "from_wallet", "status"),
        Index("idx_tip_created", "created_at"),
    )
