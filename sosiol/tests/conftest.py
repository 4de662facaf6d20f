"""Shared test fixtures for the Sosiol API test suite.

Uses an in-memory SQLite database with StaticPool so all sessions share the
same connection (committed data is visible across sessions).
"""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import base58
import pytest
from nacl.signing import SigningKey
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sosiol.database import Base, get_db
from sosiol.main import app
from sosiol.models import *  # noqa: ensure all models are loaded for create_all


# ---------------------------------------------------------------------------
# In-memory SQLite test engine (shared via StaticPool)
# ---------------------------------------------------------------------------

test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)
TestSession = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(test_engine.sync_engine, "connect")
def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


# ---------------------------------------------------------------------------
# Auto-use: create/drop tables for every test
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
async def _setup_db(tmp_path):
    """Create all tables before each test, drop after. Also reset singletons."""
    from sosiol.core.rate_limiter import rate_limiter
    rate_limiter._buckets.clear()

    # Point the upload store at a per-test directory
    from sosiol.services import storage_service
    from sosiol.storage.hashfs import HashFS
    storage_service._storage = HashFS(str(tmp_path / "uploads"))

    from sosiol.services import solana_rpc, transfer_builder
    solana_rpc._gateway = None
    transfer_builder._builder = None

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    storage_service._storage = None


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def db():
    """Yield a fresh AsyncSession for direct service-layer tests."""
    async with TestSession() as session:
        yield session


@pytest.fixture
async def client():
    """httpx AsyncClient wired to the FastAPI app with test DB override."""
    import httpx

    async def _override_get_db():
        async with TestSession() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Wallet helpers
# ---------------------------------------------------------------------------

def _new_id() -> str:
    return str(uuid.uuid4())


class Wallet:
    """An ed25519 keypair addressed the way Solana wallets are (base58 pubkey)."""

    def __init__(self):
        self.signing_key = SigningKey.generate()
        self.address = base58.b58encode(bytes(self.signing_key.verify_key)).decode("ascii")

    def sign(self, message: str) -> str:
        return base58.b58encode(self.signing_key.sign(message.encode("utf-8")).signature).decode("ascii")


def new_wallet() -> Wallet:
    return Wallet()


def new_signature() -> str:
    """A random 64-byte base58 value shaped like a transaction signature."""
    return base58.b58encode(uuid.uuid4().bytes * 4).decode("ascii")


def signed_profile(wallet: Wallet, username: str, display_name: str = "Test Creator", **extra) -> dict:
    """Build a creator upsert payload carrying a valid wallet signature."""
    message = f"Sosiol profile update for {username} at {datetime.now(timezone.utc).isoformat()}"
    payload = {
        "walletAddress": wallet.address,
        "username": username,
        "displayName": display_name,
        "message": message,
        "signature": wallet.sign(message),
    }
    payload.update(extra)
    return payload


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_creator(db: AsyncSession):
    """Factory fixture: insert a Creator directly and return it."""
    from sosiol.models.creator import Creator

    async def _make(wallet_address: str = None, username: str = None, **kwargs):
        creator = Creator(
            id=_new_id(),
            wallet_address=wallet_address or new_wallet().address,
            username=username or f"creator_{_new_id()[:8]}",
            display_name=kwargs.pop("display_name", "Test Creator"),
            total_tips_received=Decimal(str(kwargs.pop("total_tips_received", 0))),
            **kwargs,
        )
        db.add(creator)
        await db.commit()
        await db.refresh(creator)
        return creator

    return _make


@pytest.fixture
def make_tip(db: AsyncSession):
    """Factory fixture: insert a Tip row directly, bypassing the service layer."""
    from sosiol.models.tip import Tip, TipStatus

    async def _make(
        from_wallet: str,
        to_creator_wallet: str,
        amount_usdc: float = 1.0,
        status: str = TipStatus.COMPLETED.value,
        minutes_ago: int = 0,
        **kwargs,
    ):
        tip = Tip(
            id=_new_id(),
            from_wallet=from_wallet,
            to_creator_wallet=to_creator_wallet,
            amount_usdc=Decimal(str(amount_usdc)),
            transaction_signature=kwargs.pop("transaction_signature", None) or new_signature(),
            status=status,
            created_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
            **kwargs,
        )
        db.add(tip)
        await db.commit()
        await db.refresh(tip)
        return tip

    return _make
