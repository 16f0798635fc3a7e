"""
UserStore - 사용자/세션 저장소

users, auth_sessions, otp_codes 테이블 관리.
세션은 디바이스 토큰 방식 (기본 30일).
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.errors import StorageError
from core.utils.timezone import now_iso, now_utc

logger = logging.getLogger(__name__)

_USER_COLUMNS = (
    "id, phone_number, name, email, company_id, is_verified, "
    "last_login_at, created_at, updated_at"
)


@dataclass
class User:
    """사용자"""

    id: str
    phone_number: str
    name: str | None = None
    email: str | None = None
    company_id: str | None = None
    is_verified: bool = False
    last_login_at: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "phoneNumber": self.phone_number,
            "name": self.name,
            "email": self.email,
            "companyId": self.company_id,
            "isVerified": self.is_verified,
            "lastLoginAt": self.last_login_at,
            "createdAt": self.created_at,
        }


def _row_to_user(row: tuple[Any, ...]) -> User:
    return User(
        id=row[0],
        phone_number=row[1],
        name=row[2],
        email=row[3],
        company_id=row[4],
        is_verified=bool(row[5]),
        last_login_at=row[6],
        created_at=row[7],
        updated_at=row[8],
    )


class UserStore:
    """사용자 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    async with SQLiteAdapter(db_path) as db:
        user_store = UserStore(db)
        user, created = await user_store.upsert_verified_user("2348012345678")
        token = await user_store.create_session(user.id)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    # -------------------------------------------------------------------------
    # 사용자
    # -------------------------------------------------------------------------

    async def get_user(self, user_id: str) -> User | None:
        row = await self.db.fetchone(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?",
            (user_id,),
        )
        return _row_to_user(row) if row else None

    async def get_user_by_phone(self, phone_number: str) -> User | None:
        row = await self.db.fetchone(
            f"SELECT {_USER_COLUMNS} FROM users WHERE phone_number = ?",
            (phone_number,),
        )
        return _row_to_user(row) if row else None

    async def upsert_verified_user(self, phone_number: str) -> tuple[User, bool]:
        """OTP 인증된 사용자 생성 또는 갱신 (last_login_at 기록)

        Returns:
            (User, 신규 생성 여부)
        """
        ts = now_iso()
        async with self.db.transaction(immediate=True):
            cursor = await self.db.execute(
                """
                INSERT INTO users (
                    id, phone_number, is_verified, last_login_at, created_at, updated_at
                ) VALUES (?, ?, 1, ?, ?, ?)
                ON CONFLICT(phone_number) DO NOTHING
                """,
                (str(uuid4()), phone_number, ts, ts, ts),
            )
            created = cursor.rowcount == 1
            if not created:
                await self.db.execute(
                    """
                    UPDATE users SET is_verified = 1, last_login_at = ?, updated_at = ?
                    WHERE phone_number = ?
                    """,
                    (ts, ts, phone_number),
                )

        user = await self.get_user_by_phone(phone_number)
        if user is None:
            raise StorageError("사용자 저장 후 조회 실패", phone_number=phone_number)

        if created:
            logger.info(f"신규 사용자 등록: {user.id}")
        return user, created

    async def update_profile(
        self,
        user_id: str,
        name: str | None = None,
        email: str | None = None,
    ) -> User | None:
        """이름/이메일 갱신 (None인 필드는 유지)"""
        async with self.db.transaction():
            await self.db.execute(
                """
                UPDATE users SET
                    name = COALESCE(?, name),
                    email = COALESCE(?, email),
                    updated_at = ?
                WHERE id = ?
                """,
                (name, email, now_iso(), user_id),
            )
        return await self.get_user(user_id)

    async def set_company(self, user_id: str, company_id: str) -> None:
        """사용자의 기본 회사 설정 (트랜잭션 내 호출 가능)"""
        async with self.db.transaction():
            await self.db.execute(
                "UPDATE users SET company_id = ?, updated_at = ? WHERE id = ?",
                (company_id, now_iso(), user_id),
            )

    # -------------------------------------------------------------------------
    # 세션 (디바이스 토큰)
    # -------------------------------------------------------------------------

    async def create_session(
        self,
        user_id: str,
        days: int = Defaults.SESSION_DAYS,
    ) -> str:
        """세션 토큰 발급

        Returns:
            URL-safe 랜덤 토큰
        """
        token = secrets.token_urlsafe(32)
        created = now_utc()
        expires = created + timedelta(days=days)

        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT INTO auth_sessions (token, user_id, created_at, expires_at)
                VALUES (?, ?, ?, ?)
                """,
                (token, user_id, created.isoformat(), expires.isoformat()),
            )

        logger.debug(f"세션 발급: user={user_id}, expires={expires.isoformat()}")
        return token

    async def get_user_by_session(self, token: str | None) -> User | None:
        """유효한 세션의 사용자 (만료/없음이면 None)"""
        if not token:
            return None

        row = await self.db.fetchone(
            "SELECT user_id, expires_at FROM auth_sessions WHERE token = ?",
            (token,),
        )
        if row is None:
            return None

        if datetime.fromisoformat(row[1]) <= now_utc():
            return None

        return await self.get_user(row[0])

    async def delete_session(self, token: str) -> bool:
        """로그아웃 (세션 삭제)"""
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM auth_sessions WHERE token = ?",
                (token,),
            )
        return cursor.rowcount > 0

    async def purge_expired_sessions(self) -> int:
        """만료 세션 정리

        Returns:
            삭제된 세션 수
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                "DELETE FROM auth_sessions WHERE expires_at <= ?",
                (now_utc().isoformat(),),
            )
        if cursor.rowcount:
            logger.info(f"만료 세션 {cursor.rowcount}건 삭제")
        return cursor.rowcount

    # -------------------------------------------------------------------------
    # OTP pin 추적
    # -------------------------------------------------------------------------

    async def record_otp(self, pin_id: str, phone_number: str) -> None:
        """발송된 OTP pin 기록"""
        async with self.db.transaction():
            await self.db.execute(
                """
                INSERT OR REPLACE INTO otp_codes (pin_id, phone_number, verified, created_at)
                VALUES (?, ?, 0, ?)
                """,
                (pin_id, phone_number, now_iso()),
            )

    async def mark_otp_verified(self, pin_id: str, phone_number: str) -> bool:
        """pin이 해당 번호로 발송된 미사용 pin이면 사용 처리

        Returns:
            True: 사용 처리됨
            False: 알 수 없는 pin, 다른 번호, 또는 이미 사용된 pin
        """
        async with self.db.transaction(immediate=True):
            cursor = await self.db.execute(
                """
                UPDATE otp_codes SET verified = 1
                WHERE pin_id = ? AND phone_number = ? AND verified = 0
                """,
                (pin_id, phone_number),
            )
        return cursor.rowcount == 1
