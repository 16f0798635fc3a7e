"""
CustomerStore - 고객 저장소

회사별 고객 목록 관리. 매출 기록 시 이름으로 조회/생성.
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.errors import ValidationError
from core.utils.timezone import now_iso

logger = logging.getLogger(__name__)

_CUSTOMER_COLUMNS = "id, company_id, name, phone, email, company_name, address, created_at"


@dataclass
class Customer:
    """고객"""

    id: str
    company_id: str
    name: str
    phone: str | None = None
    email: str | None = None
    company_name: str | None = None
    address: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "company": self.company_name,
            "address": self.address,
            "createdAt": self.created_at,
        }


def _row_to_customer(row: tuple[Any, ...]) -> Customer:
    return Customer(*row)


class CustomerStore:
    """고객 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def list_customers(
        self,
        company_id: str,
        limit: int = Defaults.PAGE_LIMIT,
    ) -> list[Customer]:
        """고객 목록 (최신순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_CUSTOMER_COLUMNS} FROM customers
            WHERE company_id = ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            (company_id, limit),
        )
        return [_row_to_customer(row) for row in rows]

    async def get_customer(self, company_id: str, customer_id: str) -> Customer | None:
        row = await self.db.fetchone(
            f"SELECT {_CUSTOMER_COLUMNS} FROM customers WHERE company_id = ? AND id = ?",
            (company_id, customer_id),
        )
        return _row_to_customer(row) if row else None

    async def find_by_name(self, company_id: str, name: str) -> Customer | None:
        row = await self.db.fetchone(
            f"""
            SELECT {_CUSTOMER_COLUMNS} FROM customers
            WHERE company_id = ? AND name = ?
            ORDER BY created_at
            LIMIT 1
            """,
            (company_id, name),
        )
        return _row_to_customer(row) if row else None

    async def create_customer(
        self,
        company_id: str,
        name: str,
        phone: str | None = None,
        email: str | None = None,
        company_name: str | None = None,
        address: str | None = None,
    ) -> Customer:
        """고객 생성

        Raises:
            ValidationError: 이름 누락
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("고객 이름은 필수입니다", field="name")

        customer = Customer(
            id=str(uuid4()),
            company_id=company_id,
            name=name,
            phone=phone or None,
            email=email or None,
            company_name=company_name or None,
            address=address or None,
            created_at=now_iso(),
        )

        async with self.db.transaction():
            await self.db.execute(
                f"""
                INSERT INTO customers ({_CUSTOMER_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    customer.id,
                    customer.company_id,
                    customer.name,
                    customer.phone,
                    customer.email,
                    customer.company_name,
                    customer.address,
                    customer.created_at,
                ),
            )

        logger.info(f"고객 생성: {name}", extra={"company_id": company_id})
        return customer

    async def find_or_create_by_name(self, company_id: str, name: str) -> Customer:
        """이름이 같은 고객이 있으면 반환, 없으면 생성"""
        name = (name or "").strip()
        existing = await self.find_by_name(company_id, name)
        if existing is not None:
            return existing
        return await self.create_customer(company_id, name)
