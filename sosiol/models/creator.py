"""Creator profiles, keyed by the wallet that receives USDC tips."""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, Index, Numeric, String, Text

from sosiol.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class Creator(Base):
    """Creator profile keyed by Solana wallet address."""
    __tablename__ = "creators"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    wallet_address = Column(String(44), unique=True, nullable=False)  # base58 pubkey
    username = Column(String(30), unique=True, nullable=False)  # stored lowercase
    display_name = Column(String(50), nullable=False)
    bio = Column(Text, nullable=False, default="")
    avatar_url = Column(Text, nullable=False, default="")
    cover_image_url = Column(Text, nullable=False, default="")
    # Denormalized sum of completed tips; only tip recording and cleanup touch it
    total_tips_received = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("idx_creator_created", "created_at"),
    )
