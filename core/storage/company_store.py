"""
CompanyStore - 회사(테넌트) 저장소

companies, company_users 테이블 관리.
예약 개인 테넌트 ID는 조회/목록에서 항상 제외.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import PERSONAL_TENANT_ID, CurrencySymbols, Defaults
from core.errors import NotFoundError, ValidationError
from core.ledger.store import LedgerStore
from core.ledger.types import DEFAULT_BUSINESS_ACCOUNTS
from core.storage.user_store import UserStore
from core.types import MemberRole
from core.utils.timezone import now_iso

logger = logging.getLogger(__name__)

_COMPANY_COLUMNS = (
    "id, name, owner_id, business_type, industry, address, phone, email, tin, "
    "currency, currency_symbol, created_at, updated_at"
)
_COMPANY_COLUMNS_PREFIXED = ", ".join(f"c.{col.strip()}" for col in _COMPANY_COLUMNS.split(","))

# update_company에서 변경 가능한 필드
UPDATABLE_FIELDS = (
    "name",
    "business_type",
    "industry",
    "address",
    "phone",
    "email",
    "tin",
    "currency",
)


@dataclass
class Company:
    """회사 (테넌트)"""

    id: str
    name: str
    owner_id: str
    business_type: str | None = None
    industry: str | None = None
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    tin: str | None = None
    currency: str = Defaults.CURRENCY
    currency_symbol: str = "₦"
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "ownerId": self.owner_id,
            "businessType": self.business_type,
            "industry": self.industry,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "tin": self.tin,
            "currency": self.currency,
            "currencySymbol": self.currency_symbol,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def _row_to_company(row: tuple[Any, ...]) -> Company:
    return Company(
        id=row[0],
        name=row[1],
        owner_id=row[2],
        business_type=row[3],
        industry=row[4],
        address=row[5],
        phone=row[6],
        email=row[7],
        tin=row[8],
        currency=row[9],
        currency_symbol=row[10],
        created_at=row[11],
        updated_at=row[12],
    )


class CompanyStore:
    """회사 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def create_company(
        self,
        owner_id: str,
        name: str,
        currency: str = Defaults.CURRENCY,
        **details: str | None,
    ) -> Company:
        """회사 생성

        단일 트랜잭션에서:
        - companies INSERT
        - 소유자를 owner 멤버로 등록
        - 사용자의 기본 회사 갱신
        - 기본 계정과목표 생성

        Raises:
            ValidationError: 이름이 비었거나 알 수 없는 필드
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("회사 이름은 필수입니다", field="name")

        unknown = set(details) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError("알 수 없는 회사 필드입니다", fields=sorted(unknown))

        company_id = str(uuid4())
        while company_id == PERSONAL_TENANT_ID:
            company_id = str(uuid4())

        currency = (currency or Defaults.CURRENCY).upper()
        ts = now_iso()

        async with self.db.transaction(immediate=True):
            await self.db.execute(
                f"""
                INSERT INTO companies ({_COMPANY_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    company_id,
                    name,
                    owner_id,
                    details.get("business_type"),
                    details.get("industry"),
                    details.get("address"),
                    details.get("phone"),
                    details.get("email"),
                    details.get("tin"),
                    currency,
                    CurrencySymbols.for_currency(currency),
                    ts,
                    ts,
                ),
            )
            await self._insert_member(company_id, owner_id, MemberRole.OWNER)
            await UserStore(self.db).set_company(owner_id, company_id)
            await LedgerStore(self.db).seed_accounts(company_id, DEFAULT_BUSINESS_ACCOUNTS)

        logger.info(f"회사 생성: {name} ({company_id})", extra={"owner_id": owner_id})

        company = await self.get_company(company_id)
        if company is None:
            raise NotFoundError("회사를 찾을 수 없습니다", company_id=company_id)
        return company

    async def get_company(self, company_id: str | None) -> Company | None:
        """회사 조회 (예약 개인 테넌트는 None)"""
        if not company_id or company_id == PERSONAL_TENANT_ID:
            return None

        row = await self.db.fetchone(
            f"SELECT {_COMPANY_COLUMNS} FROM companies WHERE id = ?",
            (company_id,),
        )
        return _row_to_company(row) if row else None

    async def update_company(self, company_id: str, **fields: str | None) -> Company:
        """회사 정보 수정 (None인 필드는 유지)

        currency 변경 시 currency_symbol도 함께 갱신.

        Raises:
            NotFoundError: 회사 없음
            ValidationError: 알 수 없는 필드 또는 빈 이름
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError("알 수 없는 회사 필드입니다", fields=sorted(unknown))

        company = await self.get_company(company_id)
        if company is None:
            raise NotFoundError("회사를 찾을 수 없습니다", company_id=company_id)

        changes = {key: value for key, value in fields.items() if value is not None}
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("회사 이름은 비워둘 수 없습니다", field="name")
        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()
            changes["currency_symbol"] = CurrencySymbols.for_currency(changes["currency"])

        if not changes:
            return company

        changes["updated_at"] = now_iso()
        assignments = ", ".join(f"{key} = ?" for key in changes)

        async with self.db.transaction():
            await self.db.execute(
                f"UPDATE companies SET {assignments} WHERE id = ?",
                (*changes.values(), company_id),
            )

        logger.info(f"회사 수정: {company_id} ({', '.join(changes)})")

        updated = await self.get_company(company_id)
        if updated is None:
            raise NotFoundError("회사를 찾을 수 없습니다", company_id=company_id)
        return updated

    async def list_user_companies(self, user_id: str) -> list[Company]:
        """사용자가 소유하거나 소속된 회사 목록 (예약 ID 제외)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_COMPANY_COLUMNS_PREFIXED}
            FROM companies c
            WHERE c.id != ?
              AND (
                c.owner_id = ?
                OR EXISTS (
                    SELECT 1 FROM company_users cu
                    WHERE cu.company_id = c.id AND cu.user_id = ?
                )
              )
            ORDER BY c.created_at
            """,
            (PERSONAL_TENANT_ID, user_id, user_id),
        )
        return [_row_to_company(row) for row in rows]

    async def has_access(self, user_id: str, company_id: str | None) -> bool:
        """소유자 또는 멤버인지 확인"""
        if not company_id or company_id == PERSONAL_TENANT_ID:
            return False

        row = await self.db.fetchone(
            """
            SELECT 1 FROM companies c
            WHERE c.id = ?
              AND (
                c.owner_id = ?
                OR EXISTS (
                    SELECT 1 FROM company_users cu
                    WHERE cu.company_id = c.id AND cu.user_id = ?
                )
              )
            """,
            (company_id, user_id, user_id),
        )
        return row is not None

    async def add_member(
        self,
        company_id: str,
        user_id: str,
        role: MemberRole = MemberRole.STAFF,
    ) -> None:
        """멤버 추가 (이미 있으면 역할 갱신)

        Raises:
            NotFoundError: 회사 없음
        """
        if await self.get_company(company_id) is None:
            raise NotFoundError("회사를 찾을 수 없습니다", company_id=company_id)

        async with self.db.transaction():
            await self._insert_member(company_id, user_id, MemberRole(role))

        logger.info(f"멤버 추가: company={company_id}, user={user_id}, role={role}")

    async def get_member_role(self, company_id: str, user_id: str) -> MemberRole | None:
        row = await self.db.fetchone(
            "SELECT role FROM company_users WHERE company_id = ? AND user_id = ?",
            (company_id, user_id),
        )
        return MemberRole(row[0]) if row else None

    async def _insert_member(
        self,
        company_id: str,
        user_id: str,
        role: MemberRole,
    ) -> None:
        await self.db.execute(
            """
            INSERT INTO company_users (company_id, user_id, role, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(company_id, user_id) DO UPDATE SET role = excluded.role
            """,
            (company_id, user_id, role.value, now_iso()),
        )
