"""LedgerStore 통합 테스트

실제 SQLite 파일에 대해 계정 생성, 분개 기록/무효화, 잔액 집계 확인.
"""

import asyncio
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import PERSONAL_TENANT_ID
from core.errors import (
    InvalidStateTransition,
    NotFoundError,
    UnbalancedEntryError,
    ValidationError,
)
from core.ledger.entry_builder import JournalLine
from core.ledger.store import LedgerStore
from core.ledger.types import (
    DEFAULT_BUSINESS_ACCOUNTS,
    PERSONAL_ACCOUNT_TEMPLATES,
    AccountType,
    EntryStatus,
    PersonalAccountCodes,
)


TENANT = "11111111-2222-3333-4444-555555555555"
USER = "user-1"


async def _cash_and_income(store: LedgerStore, tenant_id: str = TENANT):
    cash = await store.get_or_create_account(tenant_id, "1110", "Cash", AccountType.ASSET, "cash")
    income = await store.get_or_create_account(tenant_id, "4100", "Sales Revenue", AccountType.REVENUE)
    return cash, income


async def _count(db: SQLiteAdapter, table: str) -> int:
    row = await db.fetchone(f"SELECT COUNT(*) FROM {table}")
    return row[0]


class TestAccountRegistry:

    @pytest.mark.asyncio
    async def test_get_or_create_is_idempotent(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)

        first = await store.get_or_create_account(TENANT, "1110", "Cash", AccountType.ASSET)
        second = await store.get_or_create_account(TENANT, "1110", "Renamed", AccountType.EXPENSE)

        assert first.id == second.id
        assert second.name == "Cash"
        assert second.account_type == AccountType.ASSET

    @pytest.mark.asyncio
    async def test_same_code_in_different_tenants(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)

        a = await store.get_or_create_account(TENANT, "1110", "Cash", AccountType.ASSET)
        b = await store.get_or_create_account(PERSONAL_TENANT_ID, "1110", "Cash", AccountType.ASSET)

        assert a.id != b.id

    @pytest.mark.asyncio
    async def test_personal_income_code_is_deterministic(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        code = PersonalAccountCodes.income("salary")

        first = await store.get_or_create_account(
            PERSONAL_TENANT_ID, code, "Personal Salary", AccountType.REVENUE
        )
        second = await store.get_or_create_account(
            PERSONAL_TENANT_ID, PersonalAccountCodes.income("salary"), "Personal Salary", AccountType.REVENUE
        )

        assert code == "P-4SAL"
        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_concurrent_first_use_creates_one_account(self, db: SQLiteAdapter, db_path: Path) -> None:
        """두 연결이 동시에 같은 계정을 요청해도 하나만 생성"""
        other = SQLiteAdapter(db_path)
        await other.connect()
        try:
            a, b = await asyncio.gather(
                LedgerStore(db).get_or_create_account(TENANT, "6000", "Operating Expenses", AccountType.EXPENSE),
                LedgerStore(other).get_or_create_account(TENANT, "6000", "Operating Expenses", AccountType.EXPENSE),
            )
        finally:
            await other.close()

        assert a.id == b.id
        rows = await db.fetchall(
            "SELECT id FROM accounts WHERE tenant_id = ? AND code = ?", (TENANT, "6000")
        )
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_seed_accounts(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)

        created = await store.seed_accounts(TENANT, DEFAULT_BUSINESS_ACCOUNTS)
        again = await store.seed_accounts(TENANT, DEFAULT_BUSINESS_ACCOUNTS)

        assert created == len(DEFAULT_BUSINESS_ACCOUNTS)
        assert again == 0
        revenues = await store.list_accounts(TENANT, AccountType.REVENUE)
        assert [a.code for a in revenues] == ["4100", "4120", "4200"]

    @pytest.mark.asyncio
    async def test_ensure_template_account(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)

        deferred = await store.ensure_template_account(TENANT, DEFAULT_BUSINESS_ACCOUNTS, "2400")
        again = await store.ensure_template_account(TENANT, DEFAULT_BUSINESS_ACCOUNTS, "2400")

        assert deferred.id == again.id
        assert deferred.account_type == AccountType.LIABILITY
        assert deferred.category == "deferred_revenue"
        with pytest.raises(NotFoundError):
            await store.ensure_template_account(TENANT, DEFAULT_BUSINESS_ACCOUNTS, "9999")

    @pytest.mark.asyncio
    async def test_personal_scaffold_includes_cash(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)

        await store.ensure_personal_scaffold()
        await store.ensure_personal_scaffold()

        accounts = await store.list_accounts(PERSONAL_TENANT_ID)
        assert len(accounts) == len(PERSONAL_ACCOUNT_TEMPLATES)
        assert await store.get_account_by_code(PERSONAL_TENANT_ID, "P-1001") is not None

    @pytest.mark.asyncio
    async def test_requires_tenant_and_code(self, db: SQLiteAdapter) -> None:
        with pytest.raises(ValidationError):
            await LedgerStore(db).get_or_create_account(TENANT, "", "Cash", AccountType.ASSET)


class TestPostEntry:

    @pytest.mark.asyncio
    async def test_post_balanced_entry(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)

        entry = await store.post_entry(
            tenant_id=TENANT,
            creator_id=USER,
            entry_date="2025-03-01",
            reference="SALE-1",
            narration="Sale to Ada: rice",
            lines=[
                JournalLine.debit_line(cash.id, Decimal("5000")),
                JournalLine.credit_line(income.id, Decimal("5000")),
            ],
        )

        assert entry.status == EntryStatus.POSTED
        assert entry.is_balanced()
        assert all(line.id is not None for line in entry.lines)

        stored = await store.get_entry(entry.id, TENANT)
        assert stored is not None
        assert [line.debit for line in stored.lines] == [Decimal("5000"), Decimal("0")]
        assert await store.get_account_balance(TENANT, "1110") == Decimal("5000")
        assert await store.get_account_balance(TENANT, "4100") == Decimal("5000")

    @pytest.mark.asyncio
    async def test_unbalanced_entry_persists_nothing(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)

        with pytest.raises(UnbalancedEntryError):
            await store.post_entry(
                TENANT, USER, "2025-03-01", "SALE-2", "broken",
                [
                    JournalLine.debit_line(cash.id, Decimal("100")),
                    JournalLine.credit_line(income.id, Decimal("90")),
                ],
            )

        assert await _count(db, "journal_entries") == 0
        assert await _count(db, "journal_lines") == 0

    @pytest.mark.asyncio
    async def test_account_from_other_tenant_rejected(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, _ = await _cash_and_income(store)
        foreign = await store.get_or_create_account(
            PERSONAL_TENANT_ID, "P-4SAL", "Personal Salary", AccountType.REVENUE
        )

        with pytest.raises(NotFoundError) as exc_info:
            await store.post_entry(
                TENANT, USER, "2025-03-01", "SALE-3", None,
                [
                    JournalLine.debit_line(cash.id, Decimal("10")),
                    JournalLine.credit_line(foreign.id, Decimal("10")),
                ],
            )

        assert exc_info.value.details["account_ids"] == [foreign.id]
        assert await _count(db, "journal_entries") == 0

    @pytest.mark.asyncio
    async def test_invalid_date_rolls_back(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)

        with pytest.raises(ValidationError):
            await store.post_entry(
                TENANT, USER, "not-a-date", "SALE-4", None,
                [
                    JournalLine.debit_line(cash.id, Decimal("10")),
                    JournalLine.credit_line(income.id, Decimal("10")),
                ],
            )

        assert await _count(db, "journal_entries") == 0

    @pytest.mark.asyncio
    async def test_outer_transaction_rolls_back_inner_post(self, db: SQLiteAdapter) -> None:
        """바깥 트랜잭션 실패 시 내부 분개도 롤백"""
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)

        with pytest.raises(RuntimeError):
            async with db.transaction(immediate=True):
                await store.post_entry(
                    TENANT, USER, "2025-03-01", "SALE-5", None,
                    [
                        JournalLine.debit_line(cash.id, Decimal("10")),
                        JournalLine.credit_line(income.id, Decimal("10")),
                    ],
                )
                raise RuntimeError("boom")

        assert await _count(db, "journal_entries") == 0

    @pytest.mark.asyncio
    async def test_other_task_does_not_join_failing_transaction(self, db: SQLiteAdapter) -> None:
        """다른 태스크의 롤백에 휩쓸리지 않고 분개가 저장됨"""
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)

        async def failing_batch() -> None:
            async with db.transaction(immediate=True):
                await db.execute(
                    "UPDATE accounts SET name = ? WHERE id = ?", ("Renamed", cash.id)
                )
                await asyncio.sleep(0.05)
                raise RuntimeError("batch failed")

        async def post_sale():
            await asyncio.sleep(0.01)
            return await store.post_entry(
                TENANT, USER, "2025-03-01", "SALE-6", None,
                [
                    JournalLine.debit_line(cash.id, Decimal("10")),
                    JournalLine.credit_line(income.id, Decimal("10")),
                ],
            )

        failed, entry = await asyncio.gather(failing_batch(), post_sale(), return_exceptions=True)

        assert isinstance(failed, RuntimeError)
        stored = await store.get_entry(entry.id)
        assert stored is not None
        assert len(stored.lines) == 2
        assert (await store.get_account_by_code(TENANT, "1110")).name == "Cash"


class TestVoidEntry:

    @pytest.mark.asyncio
    async def test_void_keeps_lines_and_excludes_from_balance(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)
        entry = await store.post_entry(
            TENANT, USER, "2025-03-01", "SALE-1", None,
            [
                JournalLine.debit_line(cash.id, Decimal("250.50")),
                JournalLine.credit_line(income.id, Decimal("250.50")),
            ],
        )

        voided = await store.void_entry(entry.id, TENANT)

        assert voided.status == EntryStatus.VOID
        assert len(voided.lines) == 2
        assert await store.get_account_balance(TENANT, "1110") == Decimal("0")

    @pytest.mark.asyncio
    async def test_void_twice_is_invalid_transition(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)
        entry = await store.post_entry(
            TENANT, USER, "2025-03-01", "SALE-1", None,
            [
                JournalLine.debit_line(cash.id, Decimal("1")),
                JournalLine.credit_line(income.id, Decimal("1")),
            ],
        )
        await store.void_entry(entry.id)

        with pytest.raises(InvalidStateTransition) as exc_info:
            await store.void_entry(entry.id)

        assert exc_info.value.http_status == 409

    @pytest.mark.asyncio
    async def test_void_other_tenant_not_found(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)
        entry = await store.post_entry(
            TENANT, USER, "2025-03-01", "SALE-1", None,
            [
                JournalLine.debit_line(cash.id, Decimal("1")),
                JournalLine.credit_line(income.id, Decimal("1")),
            ],
        )

        with pytest.raises(NotFoundError):
            await store.void_entry(entry.id, PERSONAL_TENANT_ID)
        assert (await store.get_entry(entry.id)).status == EntryStatus.POSTED

    @pytest.mark.asyncio
    async def test_void_entries_by_reference(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        for i in range(2):
            await store.post_memo_entry(TENANT, USER, "2025-03-01", f"BUDGET-{i}", "{}")
        await store.post_memo_entry(TENANT, "user-2", "2025-03-01", "BUDGET-9", "{}")

        voided = await store.void_entries_by_reference(TENANT, USER, "BUDGET-")

        assert voided == 2
        remaining = await store.list_entries(TENANT, status=EntryStatus.POSTED)
        assert [e.created_by for e in remaining] == ["user-2"]


class TestQueries:

    @pytest.mark.asyncio
    async def test_list_entries_filters(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)
        for i, creator in enumerate([USER, USER, "user-2"]):
            await store.post_entry(
                TENANT, creator, "2025-03-01", f"SALE-{i}", None,
                [
                    JournalLine.debit_line(cash.id, Decimal("10")),
                    JournalLine.credit_line(income.id, Decimal("10")),
                ],
            )
        await store.post_memo_entry(TENANT, USER, "2025-03-01", "BUDGET-1", "{}")

        mine = await store.list_entries_by_owner(TENANT, USER)
        sales = await store.list_entries(TENANT, reference_prefix="SALE-")
        page = await store.list_entries(TENANT, limit=2, offset=1)

        assert len(mine) == 3
        # 최신순
        assert mine[0].reference == "BUDGET-1"
        assert len(sales) == 3
        assert [e.reference for e in page] == ["SALE-2", "SALE-1"]

    @pytest.mark.asyncio
    async def test_list_by_owner_requires_creator(self, db: SQLiteAdapter) -> None:
        with pytest.raises(ValidationError):
            await LedgerStore(db).list_entries_by_owner(PERSONAL_TENANT_ID, "")

    @pytest.mark.asyncio
    async def test_balances_by_creator(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        cash, income = await _cash_and_income(store)
        for creator, amount in [(USER, "100"), ("user-2", "40")]:
            await store.post_entry(
                TENANT, creator, "2025-03-01", "SALE-1", None,
                [
                    JournalLine.debit_line(cash.id, Decimal(amount)),
                    JournalLine.credit_line(income.id, Decimal(amount)),
                ],
            )

        all_balances = await store.get_account_balances(TENANT)
        mine = await store.get_account_balances(TENANT, creator_id=USER)

        assert [b["code"] for b in all_balances] == ["1110", "4100"]
        assert all_balances[0]["balance"] == Decimal("140")
        assert mine[1]["balance"] == Decimal("100")
        assert mine[1]["account_type"] == AccountType.REVENUE

    @pytest.mark.asyncio
    async def test_get_entry_other_tenant_is_none(self, db: SQLiteAdapter) -> None:
        store = LedgerStore(db)
        entry = await store.post_memo_entry(TENANT, USER, "2025-03-01", "BUDGET-1", "{}")

        assert await store.get_entry(entry.id, PERSONAL_TENANT_ID) is None
        assert await store.get_entry("missing") is None
