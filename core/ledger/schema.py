"""
복식부기 스키마 초기화

Web 시작 시 자동으로 Ledger 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

금액은 TEXT(Decimal 문자열)로 저장하고 합계는 Python Decimal로 계산.
tenant_id에는 예약 개인 테넌트가 들어가므로 companies FK를 두지 않음.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스)
    
    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).
    
    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_ledger_indexes(db)
    await db.commit()
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""
    
    # accounts 테이블 (테넌트별 code 유일)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            code             TEXT NOT NULL,
            name             TEXT NOT NULL,
            account_type     TEXT NOT NULL,
            category         TEXT,
            is_active        INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL,
            UNIQUE(tenant_id, code)
        )
    """)
    
    # journal_entries 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS journal_entries (
            id               TEXT PRIMARY KEY,
            tenant_id        TEXT NOT NULL,
            entry_date       TEXT NOT NULL,
            reference        TEXT,
            narration        TEXT,
            created_by       TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'posted'
                             CHECK (status IN ('posted', 'void')),
            created_at       TEXT NOT NULL,
            voided_at        TEXT
        )
    """)
    
    # journal_lines 테이블
    await db.execute("""
        CREATE TABLE IF NOT EXISTS journal_lines (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            entry_id         TEXT NOT NULL REFERENCES journal_entries(id),
            account_id       TEXT NOT NULL REFERENCES accounts(id),
            debit            TEXT NOT NULL DEFAULT '0',
            credit           TEXT NOT NULL DEFAULT '0',
            description      TEXT,
            line_order       INTEGER NOT NULL DEFAULT 0
        )
    """)


async def _create_ledger_indexes(db: "SQLiteAdapter") -> None:
    """Ledger 인덱스 생성"""
    
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_accounts_tenant_type
        ON accounts(tenant_id, account_type)
    """)
    
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_entries_owner
        ON journal_entries(tenant_id, created_by, status, created_at)
    """)
    
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_entries_reference
        ON journal_entries(tenant_id, reference)
    """)
    
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_lines_entry
        ON journal_lines(entry_id)
    """)
    
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_journal_lines_account
        ON journal_lines(account_id)
    """)
