"""UserStore 통합 테스트 (사용자, 세션, OTP pin)"""

from datetime import timedelta

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.user_store import UserStore
from core.utils.timezone import now_utc


class TestUsers:

    @pytest.mark.asyncio
    async def test_upsert_creates_then_updates(self, db: SQLiteAdapter) -> None:
        store = UserStore(db)

        user, created = await store.upsert_verified_user("2348031234567")
        again, created_again = await store.upsert_verified_user("2348031234567")

        assert created is True
        assert created_again is False
        assert again.id == user.id
        assert again.is_verified is True

    @pytest.mark.asyncio
    async def test_update_profile_keeps_missing_fields(self, db: SQLiteAdapter) -> None:
        store = UserStore(db)
        user, _ = await store.upsert_verified_user("2348031234567")

        await store.update_profile(user.id, name="Ada", email="ada@example.com")
        updated = await store.update_profile(user.id, name="Ada Obi")

        assert updated.name == "Ada Obi"
        assert updated.email == "ada@example.com"


class TestSessions:

    @pytest.mark.asyncio
    async def test_session_lifecycle(self, db: SQLiteAdapter) -> None:
        store = UserStore(db)
        user, _ = await store.upsert_verified_user("2348031234567")

        token = await store.create_session(user.id, days=7)

        assert (await store.get_user_by_session(token)).id == user.id
        assert await store.delete_session(token) is True
        assert await store.get_user_by_session(token) is None
        assert await store.delete_session(token) is False

    @pytest.mark.asyncio
    async def test_unknown_or_empty_token(self, db: SQLiteAdapter) -> None:
        store = UserStore(db)

        assert await store.get_user_by_session(None) is None
        assert await store.get_user_by_session("nope") is None

    @pytest.mark.asyncio
    async def test_expired_session(self, db: SQLiteAdapter) -> None:
        store = UserStore(db)
        user, _ = await store.upsert_verified_user("2348031234567")
        past = now_utc() - timedelta(days=1)
        async with db.transaction():
            await db.execute(
                "INSERT INTO auth_sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                ("old-token", user.id, past.isoformat(), past.isoformat()),
            )

        assert await store.get_user_by_session("old-token") is None
        assert await store.purge_expired_sessions() == 1


class TestOtpPins:

    @pytest.mark.asyncio
    async def test_pin_single_use(self, db: SQLiteAdapter) -> None:
        store = UserStore(db)
        await store.record_otp("pin-1", "2348031234567")

        assert await store.mark_otp_verified("pin-1", "2348097654321") is False
        assert await store.mark_otp_verified("pin-1", "2348031234567") is True
        assert await store.mark_otp_verified("pin-1", "2348031234567") is False
        assert await store.mark_otp_verified("unknown", "2348031234567") is False
