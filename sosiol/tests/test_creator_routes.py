"""Tests for creator API routes (api/creators.py).

Covers signed profile upsert, username ownership, lookups by username and
wallet, the dashboard aggregation, wallet info and self-tip cleanup.
"""

from sqlalchemy import select

from sosiol.models.creator import Creator
from sosiol.models.tip import Tip
from sosiol.tests.conftest import TestSession, new_wallet, signed_profile

_CREATORS = "/api/creators"


# ---------------------------------------------------------------------------
# Upsert
# ---------------------------------------------------------------------------

async def test_create_profile_with_valid_signature(client):
    wallet = new_wallet()
    resp = await client.post(_CREATORS, json=signed_profile(wallet, "alice", "Alice"))
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["walletAddress"] == wallet.address
    assert body["username"] == "alice"
    assert body["displayName"] == "Alice"
    assert body["bio"] == ""
    assert body["totalTipsReceived"] == 0


async def test_username_is_stored_lowercase(client):
    wallet = new_wallet()
    resp = await client.post(_CREATORS, json=signed_profile(wallet, "Alice_99"))
    assert resp.status_code == 200
    assert resp.json()["username"] == "alice_99"


async def test_invalid_signature_rejected_without_write(client):
    wallet = new_wallet()
    payload = signed_profile(wallet, "mallory")
    payload["signature"] = new_wallet().sign(payload["message"])

    resp = await client.post(_CREATORS, json=payload)
    assert resp.status_code == 401

    async with TestSession() as db:
        result = await db.execute(select(Creator).where(Creator.wallet_address == wallet.address))
        assert result.scalar_one_or_none() is None


async def test_tampered_message_rejected(client):
    wallet = new_wallet()
    payload = signed_profile(wallet, "bob")
    payload["message"] = payload["message"] + " (edited)"
    resp = await client.post(_CREATORS, json=payload)
    assert resp.status_code == 401


async def test_username_taken_by_other_wallet(client):
    first, second = new_wallet(), new_wallet()
    resp = await client.post(_CREATORS, json=signed_profile(first, "shared"))
    assert resp.status_code == 200

    resp = await client.post(_CREATORS, json=signed_profile(second, "shared"))
    assert resp.status_code == 400
    assert "already taken" in resp.json()["detail"]


async def test_upsert_replaces_existing_profile(client):
    wallet = new_wallet()
    resp = await client.post(
        _CREATORS,
        json=signed_profile(wallet, "carol", bio="first bio", avatarUrl="/uploads/a.png"),
    )
    created = resp.json()

    resp = await client.post(_CREATORS, json=signed_profile(wallet, "carol2", "Carol Two"))
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["id"] == created["id"]
    assert updated["username"] == "carol2"
    assert updated["displayName"] == "Carol Two"
    # Omitted optional fields are reset, not merged
    assert updated["bio"] == ""
    assert updated["avatarUrl"] == ""


async def test_owner_can_keep_own_username(client):
    wallet = new_wallet()
    await client.post(_CREATORS, json=signed_profile(wallet, "dave"))
    resp = await client.post(_CREATORS, json=signed_profile(wallet, "dave", "Dave Renamed"))
    assert resp.status_code == 200
    assert resp.json()["displayName"] == "Dave Renamed"


async def test_upsert_missing_fields_returns_400(client):
    resp = await client.post(_CREATORS, json={"walletAddress": new_wallet().address})
    assert resp.status_code == 400
    body = resp.json()
    fields = {e["field"] for e in body["errors"]}
    assert {"username", "displayName", "signature", "message"} <= fields


async def test_upsert_rejects_bad_username_characters(client):
    resp = await client.post(_CREATORS, json=signed_profile(new_wallet(), "no spaces!"))
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "username"


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

async def test_list_creators_newest_first(client, make_creator):
    from datetime import datetime, timedelta, timezone

    now = datetime.now(timezone.utc)
    await make_creator(username="older", created_at=now - timedelta(hours=1))
    await make_creator(username="newer", created_at=now)

    resp = await client.get(_CREATORS)
    assert resp.status_code == 200
    assert [c["username"] for c in resp.json()] == ["newer", "older"]


async def test_get_by_username_case_insensitive(client, make_creator):
    creator = await make_creator(username="erin")
    resp = await client.get(f"{_CREATORS}/username/ERIN")
    assert resp.status_code == 200
    assert resp.json()["walletAddress"] == creator.wallet_address


async def test_get_by_username_not_found(client):
    resp = await client.get(f"{_CREATORS}/username/nobody")
    assert resp.status_code == 404


async def test_get_by_username_length_checked(client):
    resp = await client.get(f"{_CREATORS}/username/ab")
    assert resp.status_code == 400


async def test_get_by_wallet(client, make_creator):
    creator = await make_creator()
    resp = await client.get(f"{_CREATORS}/wallet/{creator.wallet_address}")
    assert resp.status_code == 200
    assert resp.json()["username"] == creator.username


async def test_get_by_wallet_not_found(client):
    resp = await client.get(f"{_CREATORS}/wallet/{new_wallet().address}")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Dashboard, wallet info, cleanup
# ---------------------------------------------------------------------------

async def test_dashboard_aggregates_completed_tips(client, make_creator, make_tip):
    creator = await make_creator(username="frank")
    fan = new_wallet().address
    await make_tip(fan, creator.wallet_address, 10, minutes_ago=5)
    await make_tip(fan, creator.wallet_address, 5, minutes_ago=1)
    await make_tip(fan, creator.wallet_address, 100, status="pending")

    resp = await client.get(f"{_CREATORS}/{creator.wallet_address}/dashboard")
    assert resp.status_code == 200
    body = resp.json()
    assert body["creator"] == {
        "username": "frank",
        "displayName": "Test Creator",
        "walletAddress": creator.wallet_address,
    }
    assert body["stats"]["totalTipsReceived"] == 15
    assert [t["amountUSDC"] for t in body["recentTips"]] == [5, 10]


async def test_dashboard_limits_recent_tips(client, make_creator, make_tip):
    creator = await make_creator()
    fan = new_wallet().address
    for i in range(12):
        await make_tip(fan, creator.wallet_address, 1, minutes_ago=i)

    resp = await client.get(f"{_CREATORS}/{creator.wallet_address}/dashboard")
    body = resp.json()
    assert len(body["recentTips"]) == 10
    assert body["stats"]["totalTipsReceived"] == 12


async def test_dashboard_unknown_creator(client):
    resp = await client.get(f"{_CREATORS}/{new_wallet().address}/dashboard")
    assert resp.status_code == 404


async def test_wallet_info_includes_pending_tips(client, make_creator, make_tip):
    creator = await make_creator()
    fan = new_wallet().address
    await make_tip(fan, creator.wallet_address, 3)
    await make_tip(fan, creator.wallet_address, 7, status="pending")

    resp = await client.get(f"{_CREATORS}/{creator.wallet_address}/wallet-info")
    assert resp.status_code == 200
    body = resp.json()
    assert body["walletAddress"] == creator.wallet_address
    assert body["totalTipsReceived"] == 3
    assert len(body["recentTips"]) == 2


async def test_cleanup_removes_self_tips_and_recomputes_total(client, make_creator, make_tip):
    creator = await make_creator(total_tips_received=12)
    fan = new_wallet().address
    await make_tip(fan, creator.wallet_address, 2)
    await make_tip(creator.wallet_address, creator.wallet_address, 10)

    resp = await client.post(f"{_CREATORS}/{creator.wallet_address}/cleanup")
    assert resp.status_code == 200
    body = resp.json()
    assert body["deletedTips"] == 1
    assert body["totalTipsReceived"] == 2

    async with TestSession() as db:
        tips = (await db.execute(select(Tip))).scalars().all()
        assert len(tips) == 1
        refreshed = (
            await db.execute(select(Creator).where(Creator.id == creator.id))
        ).scalar_one()
        assert float(refreshed.total_tips_received) == 2


async def test_cleanup_unknown_creator(client):
    resp = await client.post(f"{_CREATORS}/{new_wallet().address}/cleanup")
    assert resp.status_code == 404
