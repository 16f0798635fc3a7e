"""
Ledger 저장소

계정과목 등록(Account Registry)과 복식부기 분개 저장/조회(Journal Engine)
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from core.constants import PERSONAL_TENANT_ID
from core.errors import InvalidStateTransition, NotFoundError, ValidationError
from core.ledger.entry_builder import (
    ZERO,
    Account,
    JournalEntry,
    JournalLine,
    validate_lines,
)
from core.ledger.types import (
    PERSONAL_ACCOUNT_TEMPLATES,
    AccountTemplate,
    AccountType,
    EntryStatus,
    find_template,
)
from core.utils.timezone import now_iso, parse_entry_date

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

# 차변이 잔액을 늘리는 계정 유형
DEBIT_NORMAL_TYPES = {AccountType.ASSET, AccountType.EXPENSE}

_ACCOUNT_COLUMNS = "id, tenant_id, code, name, account_type, category, is_active, created_at"
_ENTRY_COLUMNS = (
    "id, tenant_id, entry_date, reference, narration, created_by, status, created_at"
)


def _row_to_account(row: tuple[Any, ...]) -> Account:
    return Account(
        id=row[0],
        tenant_id=row[1],
        code=row[2],
        name=row[3],
        account_type=AccountType(row[4]),
        category=row[5],
        is_active=bool(row[6]),
        created_at=row[7],
    )


def _row_to_entry(row: tuple[Any, ...]) -> JournalEntry:
    return JournalEntry(
        id=row[0],
        tenant_id=row[1],
        entry_date=datetime.fromisoformat(row[2]),
        reference=row[3],
        narration=row[4],
        created_by=row[5],
        status=EntryStatus(row[6]),
        created_at=row[7],
    )


class LedgerStore:
    """Ledger 저장소
    
    테넌트 범위의 계정과목과 분개를 저장하고 조회하는 클래스.
    잔액은 별도 테이블 없이 posted 분개 항목의 합으로 계산.
    
    Args:
        db: SQLite 어댑터
    """
    
    def __init__(self, db: SQLiteAdapter):
        self.db = db
    
    # =========================================================================
    # Account Registry
    # =========================================================================
    
    async def get_or_create_account(
        self,
        tenant_id: str,
        code: str,
        name: str,
        account_type: AccountType,
        category: str | None = None,
    ) -> Account:
        """(tenant_id, code)로 계정 조회, 없으면 생성
        
        INSERT ... ON CONFLICT DO NOTHING 후 재조회하므로
        동시 첫 사용에서도 계정은 하나만 생성됨.
        기존 계정이 있으면 name/type/category는 변경하지 않음.
        
        Returns:
            생성되거나 기존에 있는 Account
        """
        if not tenant_id or not code:
            raise ValidationError("tenant_id와 code는 필수입니다")
        
        template = AccountTemplate(code, name, AccountType(account_type), category)
        
        async with self.db.transaction(immediate=True):
            created = await self._upsert_account(tenant_id, template)
            account = await self.get_account_by_code(tenant_id, code)
        
        if account is None:
            raise NotFoundError("계정 생성 후 조회 실패", tenant_id=tenant_id, code=code)
        
        if created:
            logger.info(
                f"계정 생성: {code} ({name})",
                extra={"tenant_id": tenant_id, "account_id": account.id},
            )
        return account
    
    async def _upsert_account(self, tenant_id: str, template: AccountTemplate) -> bool:
        """계정 INSERT (이미 있으면 무시, 커밋하지 않음)
        
        Returns:
            새로 생성되었으면 True
        """
        cursor = await self.db.execute(
            """
            INSERT INTO accounts (
                id, tenant_id, code, name, account_type, category, is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, 1, ?)
            ON CONFLICT(tenant_id, code) DO NOTHING
            """,
            (
                str(uuid4()),
                tenant_id,
                template.code,
                template.name,
                template.account_type.value,
                template.category,
                now_iso(),
            ),
        )
        return cursor.rowcount == 1
    
    async def seed_accounts(
        self,
        tenant_id: str,
        templates: list[AccountTemplate],
    ) -> int:
        """템플릿 계정 일괄 생성 (멱등)
        
        Returns:
            새로 생성된 계정 수
        """
        created = 0
        async with self.db.transaction(immediate=True):
            for template in templates:
                if await self._upsert_account(tenant_id, template):
                    created += 1
        
        if created:
            logger.info(
                f"기본 계정 {created}개 생성",
                extra={"tenant_id": tenant_id},
            )
        return created
    
    async def ensure_personal_scaffold(
        self,
        tenant_id: str = PERSONAL_TENANT_ID,
    ) -> int:
        """개인 컨텍스트 기본 계정 보장 (현금 P-1001 포함)
        
        여러 번 호출해도 계정이 중복 생성되지 않음.
        """
        return await self.seed_accounts(tenant_id, PERSONAL_ACCOUNT_TEMPLATES)
    
    async def ensure_template_account(
        self,
        tenant_id: str,
        templates: list[AccountTemplate],
        code: str,
    ) -> Account:
        """템플릿 목록에서 code를 찾아 계정을 보장
        
        Raises:
            NotFoundError: 템플릿에 없는 code
        """
        template = find_template(templates, code)
        if template is None:
            raise NotFoundError("계정 템플릿이 없습니다", code=code)
        return await self.get_or_create_account(
            tenant_id, template.code, template.name, template.account_type, template.category
        )
    
    async def get_account_by_code(self, tenant_id: str, code: str) -> Account | None:
        """(tenant_id, code)로 계정 조회"""
        row = await self.db.fetchone(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE tenant_id = ? AND code = ?",
            (tenant_id, code),
        )
        return _row_to_account(row) if row else None
    
    async def list_accounts(
        self,
        tenant_id: str,
        account_type: AccountType | None = None,
    ) -> list[Account]:
        """테넌트 계정 목록 (code 순)"""
        if account_type is None:
            rows = await self.db.fetchall(
                f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE tenant_id = ? ORDER BY code",
                (tenant_id,),
            )
        else:
            rows = await self.db.fetchall(
                f"""
                SELECT {_ACCOUNT_COLUMNS} FROM accounts
                WHERE tenant_id = ? AND account_type = ?
                ORDER BY code
                """,
                (tenant_id, AccountType(account_type).value),
            )
        return [_row_to_account(row) for row in rows]
    
    # =========================================================================
    # Journal Engine
    # =========================================================================
    
    async def post_entry(
        self,
        tenant_id: str,
        creator_id: str,
        entry_date: datetime | str,
        reference: str | None,
        narration: str | None,
        lines: list[JournalLine],
    ) -> JournalEntry:
        """분개 기록 (status = posted)
        
        트랜잭션 내에서 journal_entries + journal_lines 저장.
        검증에 실패하면 어떤 행도 저장되지 않음.
        
        Args:
            tenant_id: 테넌트 ID (개인은 PERSONAL_TENANT_ID)
            creator_id: 작성자 (개인 데이터 격리 기준)
            entry_date: 거래일
            reference: reference 태그 (예: PI-1760870400000)
            narration: 적요
            lines: 분개 항목 (최소 2개, 차대 균형)
            
        Returns:
            저장된 JournalEntry (lines 포함)
            
        Raises:
            ValidationError: 항목 구성 오류
            UnbalancedEntryError: 불균형 분개
            NotFoundError: 테넌트에 속하지 않은 계정
        """
        if not creator_id:
            raise ValidationError("creator_id는 필수입니다")
        
        # 균형 검증 (DB 접근 전)
        validate_lines(lines)
        
        async with self.db.transaction(immediate=True):
            await self._check_accounts_in_tenant(tenant_id, lines)
            entry = await self._insert_entry(
                tenant_id, creator_id, entry_date, reference, narration
            )
            
            for i, line in enumerate(lines):
                cursor = await self.db.execute(
                    """
                    INSERT INTO journal_lines (
                        entry_id, account_id, debit, credit, description, line_order
                    ) VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.id,
                        line.account_id,
                        str(line.debit),
                        str(line.credit),
                        line.description,
                        i,
                    ),
                )
                entry.lines.append(
                    JournalLine(
                        account_id=line.account_id,
                        debit=line.debit,
                        credit=line.credit,
                        description=line.description,
                        id=cursor.lastrowid,
                        entry_id=entry.id,
                    )
                )
        
        logger.info(
            f"분개 기록: {entry.reference} ({len(lines)} lines, {entry.total_debit})",
            extra={"tenant_id": tenant_id, "entry_id": entry.id},
        )
        return entry
    
    async def post_memo_entry(
        self,
        tenant_id: str,
        creator_id: str,
        entry_date: datetime | str,
        reference: str,
        narration: str,
    ) -> JournalEntry:
        """항목 없는 메모 분개 기록 (예산 스냅샷 전용)
        
        금액 이동이 없으므로 균형 검증 대상이 아님.
        """
        if not creator_id:
            raise ValidationError("creator_id는 필수입니다")
        
        async with self.db.transaction(immediate=True):
            entry = await self._insert_entry(
                tenant_id, creator_id, entry_date, reference, narration
            )
        
        logger.debug(f"메모 분개 기록: {reference}", extra={"tenant_id": tenant_id})
        return entry
    
    async def _insert_entry(
        self,
        tenant_id: str,
        creator_id: str,
        entry_date: datetime | str,
        reference: str | None,
        narration: str | None,
    ) -> JournalEntry:
        """journal_entries INSERT (커밋하지 않음)"""
        try:
            entry_dt = parse_entry_date(entry_date)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "entry_date 형식이 올바르지 않습니다", value=str(entry_date)
            ) from e
        
        entry = JournalEntry(
            id=str(uuid4()),
            tenant_id=tenant_id,
            entry_date=entry_dt,
            reference=reference,
            narration=narration,
            created_by=creator_id,
            status=EntryStatus.POSTED,
            created_at=now_iso(),
        )
        
        await self.db.execute(
            """
            INSERT INTO journal_entries (
                id, tenant_id, entry_date, reference, narration,
                created_by, status, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                entry.tenant_id,
                entry.entry_date.isoformat(),
                entry.reference,
                entry.narration,
                entry.created_by,
                entry.status.value,
                entry.created_at,
            ),
        )
        return entry
    
    async def _check_accounts_in_tenant(
        self,
        tenant_id: str,
        lines: list[JournalLine],
    ) -> None:
        account_ids = sorted({line.account_id for line in lines})
        placeholders = ", ".join("?" for _ in account_ids)
        rows = await self.db.fetchall(
            f"SELECT id FROM accounts WHERE tenant_id = ? AND id IN ({placeholders})",
            (tenant_id, *account_ids),
        )
        found = {row[0] for row in rows}
        missing = [account_id for account_id in account_ids if account_id not in found]
        if missing:
            raise NotFoundError(
                "테넌트에 존재하지 않는 계정입니다",
                tenant_id=tenant_id,
                account_ids=missing,
            )
    
    async def void_entry(
        self,
        entry_id: str,
        tenant_id: str | None = None,
    ) -> JournalEntry:
        """분개 무효화 (posted → void)
        
        항목(lines)은 감사용으로 그대로 유지.
        
        Args:
            entry_id: 분개 ID
            tenant_id: 지정 시 해당 테넌트 분개만 허용
            
        Raises:
            NotFoundError: 분개 없음
            InvalidStateTransition: 이미 void인 분개
        """
        async with self.db.transaction(immediate=True):
            entry = await self._get_entry_header(entry_id)
            if entry is None or (tenant_id is not None and entry.tenant_id != tenant_id):
                raise NotFoundError("분개를 찾을 수 없습니다", entry_id=entry_id)
            
            if entry.status != EntryStatus.POSTED:
                raise InvalidStateTransition(
                    "posted 상태의 분개만 무효화할 수 있습니다",
                    entry_id=entry_id,
                    status=entry.status.value,
                )
            
            await self.db.execute(
                """
                UPDATE journal_entries SET status = ?, voided_at = ?
                WHERE id = ? AND status = ?
                """,
                (EntryStatus.VOID.value, now_iso(), entry_id, EntryStatus.POSTED.value),
            )
        
        logger.info(f"분개 무효화: {entry.reference}", extra={"entry_id": entry_id})
        
        voided = await self.get_entry(entry_id)
        if voided is None:
            raise NotFoundError("분개를 찾을 수 없습니다", entry_id=entry_id)
        return voided
    
    async def void_entries_by_reference(
        self,
        tenant_id: str,
        creator_id: str,
        reference_prefix: str,
    ) -> int:
        """작성자의 posted 분개 중 reference 접두사가 일치하는 것을 모두 무효화
        
        Returns:
            무효화된 분개 수
        """
        async with self.db.transaction(immediate=True):
            cursor = await self.db.execute(
                """
                UPDATE journal_entries SET status = ?, voided_at = ?
                WHERE tenant_id = ? AND created_by = ? AND status = ?
                  AND substr(reference, 1, ?) = ?
                """,
                (
                    EntryStatus.VOID.value,
                    now_iso(),
                    tenant_id,
                    creator_id,
                    EntryStatus.POSTED.value,
                    len(reference_prefix),
                    reference_prefix,
                ),
            )
        
        if cursor.rowcount:
            logger.info(
                f"{reference_prefix} 분개 {cursor.rowcount}건 무효화",
                extra={"tenant_id": tenant_id, "creator_id": creator_id},
            )
        return cursor.rowcount
    
    async def _get_entry_header(self, entry_id: str) -> JournalEntry | None:
        row = await self.db.fetchone(
            f"SELECT {_ENTRY_COLUMNS} FROM journal_entries WHERE id = ?",
            (entry_id,),
        )
        return _row_to_entry(row) if row else None
    
    async def get_entry(
        self,
        entry_id: str,
        tenant_id: str | None = None,
    ) -> JournalEntry | None:
        """분개 단건 조회 (lines 포함)
        
        Returns:
            분개 (없거나 다른 테넌트 소속이면 None)
        """
        entry = await self._get_entry_header(entry_id)
        if entry is None:
            return None
        if tenant_id is not None and entry.tenant_id != tenant_id:
            return None
        
        await self._attach_lines([entry])
        return entry
    
    async def list_entries(
        self,
        tenant_id: str,
        creator_id: str | None = None,
        status: EntryStatus | None = None,
        reference_prefix: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JournalEntry]:
        """분개 목록 (최신순, lines 포함)
        
        정렬: created_at DESC, 동일 시각은 삽입 역순.
        
        Args:
            tenant_id: 테넌트 ID
            creator_id: 지정 시 작성자 필터
            status: 지정 시 상태 필터
            reference_prefix: 지정 시 reference 접두사 필터
            limit: 조회 개수 제한
            offset: 시작 위치
        """
        conditions = ["tenant_id = ?"]
        params: list[Any] = [tenant_id]
        
        if creator_id is not None:
            conditions.append("created_by = ?")
            params.append(creator_id)
        if status is not None:
            conditions.append("status = ?")
            params.append(EntryStatus(status).value)
        if reference_prefix:
            conditions.append("substr(reference, 1, ?) = ?")
            params.extend([len(reference_prefix), reference_prefix])
        
        sql = (
            f"SELECT {_ENTRY_COLUMNS} FROM journal_entries "
            f"WHERE {' AND '.join(conditions)} "
            "ORDER BY created_at DESC, rowid DESC"
        )
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        
        rows = await self.db.fetchall(sql, tuple(params))
        entries = [_row_to_entry(row) for row in rows]
        await self._attach_lines(entries)
        return entries
    
    async def list_entries_by_owner(
        self,
        tenant_id: str,
        creator_id: str,
        status: EntryStatus | None = None,
        reference_prefix: str | None = None,
        limit: int | None = None,
    ) -> list[JournalEntry]:
        """작성자 기준 분개 목록 (최신순)
        
        개인 테넌트는 모든 사용자가 공유하므로 creator_id 필터가 필수.
        """
        if not creator_id:
            raise ValidationError("creator_id는 필수입니다")
        return await self.list_entries(
            tenant_id,
            creator_id=creator_id,
            status=status,
            reference_prefix=reference_prefix,
            limit=limit,
        )
    
    async def _attach_lines(self, entries: list[JournalEntry]) -> None:
        if not entries:
            return
        
        by_id = {entry.id: entry for entry in entries}
        placeholders = ", ".join("?" for _ in by_id)
        rows = await self.db.fetchall(
            f"""
            SELECT id, entry_id, account_id, debit, credit, description
            FROM journal_lines
            WHERE entry_id IN ({placeholders})
            ORDER BY entry_id, line_order
            """,
            tuple(by_id),
        )
        
        for row in rows:
            by_id[row[1]].lines.append(
                JournalLine(
                    id=row[0],
                    entry_id=row[1],
                    account_id=row[2],
                    debit=Decimal(row[3]),
                    credit=Decimal(row[4]),
                    description=row[5],
                )
            )
    
    # =========================================================================
    # 잔액 (posted 항목 합계)
    # =========================================================================
    
    async def get_account_balances(
        self,
        tenant_id: str,
        creator_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """계정별 잔액 (시산표)
        
        posted 분개 항목을 Decimal로 합산.
        balance는 계정 유형의 정상 잔액 방향 기준
        (자산/비용: 차변 - 대변, 부채/자본/수익: 대변 - 차변).
        
        Args:
            tenant_id: 테넌트 ID
            creator_id: 지정 시 해당 작성자의 분개만 합산
            
        Returns:
            계정별 잔액 목록 (code 순)
        """
        params: list[Any] = [EntryStatus.POSTED.value, tenant_id]
        creator_filter = ""
        if creator_id is not None:
            creator_filter = "AND je.created_by = ?"
            params.append(creator_id)
        
        rows = await self.db.fetchall(
            f"""
            SELECT 
                a.id, a.code, a.name, a.account_type, jl.debit, jl.credit
            FROM journal_lines jl
            JOIN journal_entries je ON je.id = jl.entry_id
            JOIN accounts a ON a.id = jl.account_id
            WHERE je.status = ? AND je.tenant_id = ? {creator_filter}
            ORDER BY a.code
            """,
            tuple(params),
        )
        
        balances: dict[str, dict[str, Any]] = {}
        for account_id, code, name, account_type, debit, credit in rows:
            item = balances.setdefault(
                account_id,
                {
                    "account_id": account_id,
                    "code": code,
                    "name": name,
                    "account_type": AccountType(account_type),
                    "debit": ZERO,
                    "credit": ZERO,
                },
            )
            item["debit"] += Decimal(debit)
            item["credit"] += Decimal(credit)
        
        result = []
        for item in balances.values():
            if item["account_type"] in DEBIT_NORMAL_TYPES:
                item["balance"] = item["debit"] - item["credit"]
            else:
                item["balance"] = item["credit"] - item["debit"]
            result.append(item)
        
        return sorted(result, key=lambda x: x["code"])
    
    async def get_account_balance(
        self,
        tenant_id: str,
        code: str,
        creator_id: str | None = None,
    ) -> Decimal:
        """계정 잔액 조회 (없으면 0)"""
        for item in await self.get_account_balances(tenant_id, creator_id):
            if item["code"] == code:
                return item["balance"]
        return ZERO
    
    # =========================================================================
    # 매출 집계
    # =========================================================================
    
    async def get_revenue_report(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
        creator_id: str | None = None,
    ) -> dict[str, Any]:
        """기간 [start, end) 동안 posted 분개의 수익 계정 순액
        
        분개마다 수익 계정 항목의 (대변 - 차변)을 합산.
        매출 취소 분개는 음수로 잡혀 total에서 차감된다.
        
        Returns:
            {"total": Decimal, "entries": [{entry_id, entry_date, reference, amount}]}
            entries는 거래일 순, 순액이 0인 분개는 제외
        """
        start_utc = parse_entry_date(start)
        end_utc = parse_entry_date(end)
        
        params: list[Any] = [EntryStatus.POSTED.value, tenant_id, AccountType.REVENUE.value]
        creator_filter = ""
        if creator_id is not None:
            creator_filter = "AND je.created_by = ?"
            params.append(creator_id)
        
        rows = await self.db.fetchall(
            f"""
            SELECT je.id, je.entry_date, je.reference, jl.debit, jl.credit
            FROM journal_lines jl
            JOIN journal_entries je ON je.id = jl.entry_id
            JOIN accounts a ON a.id = jl.account_id
            WHERE je.status = ? AND je.tenant_id = ? AND a.account_type = ? {creator_filter}
            ORDER BY je.entry_date, je.rowid
            """,
            tuple(params),
        )
        
        by_entry: dict[str, dict[str, Any]] = {}
        for entry_id, entry_date, reference, debit, credit in rows:
            entry_dt = datetime.fromisoformat(entry_date)
            if not start_utc <= entry_dt < end_utc:
                continue
            item = by_entry.setdefault(
                entry_id,
                {
                    "entry_id": entry_id,
                    "entry_date": entry_dt,
                    "reference": reference,
                    "amount": ZERO,
                },
            )
            item["amount"] += Decimal(credit) - Decimal(debit)
        
        entries = [item for item in by_entry.values() if item["amount"] != ZERO]
        return {
            "total": sum((item["amount"] for item in entries), ZERO),
            "entries": entries,
        }
