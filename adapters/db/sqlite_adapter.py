"""
SQLite 어댑터

aiosqlite 연결 하나를 감싸고 트랜잭션 경계를 관리한다.
WAL + busy_timeout으로 여러 요청이 같은 파일을 열어도 쓰기가 순서대로 처리됨.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.errors import StorageError

logger = logging.getLogger(__name__)

BUSY_TIMEOUT_MS = 30000

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}",
    "PRAGMA foreign_keys=ON",
)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """PRAGMA가 적용된 aiosqlite 연결 생성

    readonly=True이면 URI mode=ro로 열기 때문에 파일이 이미 있어야 한다.
    """
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{path.as_posix()}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(str(path))

    for pragma in _PRAGMAS:
        await conn.execute(pragma)

    logger.debug(f"SQLite 연결: {path} (readonly={readonly})")
    return conn


class SQLiteAdapter:
    """SQLite 연결 래퍼

    저장소(Store) 클래스들은 이 객체만 받아서 쿼리를 실행한다.
    `async with SQLiteAdapter(path) as db:` 형태로도 사용 가능.

    한 연결을 여러 태스크가 공유할 수 있으므로 트랜잭션은 태스크 단위로 소유된다.
    다른 태스크의 transaction()은 현재 트랜잭션이 끝날 때까지 대기.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 연결 여부
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._tx_lock = asyncio.Lock()
        # 현재 태스크(컨텍스트)의 중첩 깊이
        self._tx_depth: ContextVar[int] = ContextVar(
            f"sqlite_tx_depth_{id(self)}", default=0
        )

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _require(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Not connected to database")
        return self._conn

    async def connect(self) -> None:
        if not self.is_connected:
            self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        logger.debug(f"SQLite 연결 종료: {self.db_path}")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        return await self._require().execute(sql, parameters or ())

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        await self._require().commit()

    async def table_exists(self, table_name: str) -> bool:
        row = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return row is not None

    @asynccontextmanager
    async def transaction(
        self,
        immediate: bool = False,
    ) -> AsyncIterator[aiosqlite.Connection]:
        """원자적 작업 단위

        블록이 정상 종료되면 커밋, 예외가 나면 롤백.
        같은 태스크 안에서 중첩된 transaction()은 바깥 블록에 합류하며 커밋하지 않는다.
        다른 태스크는 합류하지 않고 잠금을 기다린 뒤 자기 트랜잭션을 시작.
        immediate=True: 시작 시 BEGIN IMMEDIATE로 쓰기 잠금 확보
        (읽고-판단하고-쓰는 작업이 다른 쓰기와 섞이지 않도록).

        Raises:
            StorageError: sqlite3 오류 발생 시 (롤백 후)
        """
        conn = self._require()

        depth = self._tx_depth.get()
        if depth:
            token = self._tx_depth.set(depth + 1)
            try:
                yield conn
            finally:
                self._tx_depth.reset(token)
            return

        async with self._tx_lock:
            token = self._tx_depth.set(1)
            try:
                if immediate and not conn.in_transaction:
                    await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.commit()
            except sqlite3.Error as e:
                await conn.rollback()
                logger.error(f"트랜잭션 롤백: {e}")
                raise StorageError("데이터베이스 트랜잭션 실패", reason=str(e)) from e
            except BaseException:
                await conn.rollback()
                raise
            finally:
                self._tx_depth.reset(token)

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """디렉토리 스키마 초기화 (사용자/회사/고객/송장/세션)
    
    Args:
        adapter: 연결된 SQLiteAdapter
    
    주의: Ledger 테이블은 core.ledger.schema.init_ledger_schema에서 생성.
    """
    # users
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id               TEXT PRIMARY KEY,
            phone_number     TEXT NOT NULL UNIQUE,
            name             TEXT,
            email            TEXT,
            company_id       TEXT,
            is_verified      INTEGER NOT NULL DEFAULT 0,
            last_login_at    TEXT,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)
    
    # companies (tenant)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS companies (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            owner_id         TEXT NOT NULL REFERENCES users(id),
            business_type    TEXT,
            industry         TEXT,
            address          TEXT,
            phone            TEXT,
            email            TEXT,
            tin              TEXT,
            currency         TEXT NOT NULL DEFAULT 'NGN',
            currency_symbol  TEXT NOT NULL DEFAULT '₦',
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)
    
    # company_users (멤버십)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS company_users (
            company_id       TEXT NOT NULL REFERENCES companies(id),
            user_id          TEXT NOT NULL REFERENCES users(id),
            role             TEXT NOT NULL DEFAULT 'staff',
            created_at       TEXT NOT NULL,
            PRIMARY KEY (company_id, user_id)
        )
    """)
    
    # customers
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS customers (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL REFERENCES companies(id),
            name             TEXT NOT NULL,
            phone            TEXT,
            email            TEXT,
            company_name     TEXT,
            address          TEXT,
            created_at       TEXT NOT NULL
        )
    """)
    
    # invoices (회사별 번호는 유일, deleted_at이 있으면 삭제된 송장)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS invoices (
            id               TEXT PRIMARY KEY,
            company_id       TEXT NOT NULL REFERENCES companies(id),
            customer_id      TEXT NOT NULL REFERENCES customers(id),
            invoice_number   TEXT NOT NULL,
            invoice_date     TEXT NOT NULL,
            due_date         TEXT NOT NULL,
            status           TEXT NOT NULL DEFAULT 'draft',
            subtotal         TEXT NOT NULL,
            vat_amount       TEXT NOT NULL,
            total_amount     TEXT NOT NULL,
            paid_amount      TEXT NOT NULL DEFAULT '0',
            notes            TEXT,
            entry_id         TEXT,
            created_by       TEXT NOT NULL REFERENCES users(id),
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            deleted_at       TEXT,
            UNIQUE (company_id, invoice_number)
        )
    """)

    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS invoice_items (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            invoice_id       TEXT NOT NULL REFERENCES invoices(id),
            description      TEXT NOT NULL,
            quantity         TEXT NOT NULL,
            unit_price       TEXT NOT NULL,
            vat_rate         TEXT NOT NULL,
            amount           TEXT NOT NULL,
            line_order       INTEGER NOT NULL
        )
    """)

    # auth_sessions (디바이스 토큰)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS auth_sessions (
            token            TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL REFERENCES users(id),
            created_at       TEXT NOT NULL,
            expires_at       TEXT NOT NULL
        )
    """)
    
    # otp_codes (발송된 OTP pin 추적)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS otp_codes (
            pin_id           TEXT PRIMARY KEY,
            phone_number     TEXT NOT NULL,
            verified         INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL
        )
    """)
    
    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_company_users_user 
        ON company_users(user_id)
    """)
    
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_customers_company 
        ON customers(company_id, created_at)
    """)
    
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_invoices_company
        ON invoices(company_id, status, created_at)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_invoice_items_invoice
        ON invoice_items(invoice_id, line_order)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_auth_sessions_user
        ON auth_sessions(user_id)
    """)
    
    await adapter.commit()
    
    logger.info("스키마 초기화 완료")
