"""
FastAPI 애플리케이션

라우터 등록, 오류 응답 형식, 앱 생명주기.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config.loader import get_settings
from core.errors import LedgerError, ValidationError
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web.routes import (  # noqa: E402
    analytics,
    auth,
    company,
    context,
    customers,
    health,
    invoices,
    ledger,
    personal,
    transactions,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
    from core.ledger.schema import init_ledger_schema
    from core.storage.user_store import UserStore
    from web.dependencies import get_otp_gateway, set_otp_gateway

    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화, 만료 세션 정리
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
        await init_ledger_schema(db)
        purged = await UserStore(db).purge_expired_sessions()
        if purged:
            logger.info(f"만료 세션 {purged}건 삭제")

    gateway = get_otp_gateway()
    logger.info(f"LedgerLite 시작: mode={settings.mode.value}, db={settings.db_path}")

    yield

    # 종료 시 - OTP 게이트웨이 HTTP 클라이언트 정리
    await gateway.close()
    set_otp_gateway(None)


app = FastAPI(
    title="LedgerLite API",
    description="개인/사업 복식부기 장부 API",
    version=health.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =========================================================================
# 오류 응답
# =========================================================================

def error_response(error: LedgerError) -> JSONResponse:
    """{"success": false, "error": {code, message, details}}"""
    return JSONResponse(
        status_code=error.http_status,
        content={"success": False, "error": error.to_dict()},
    )


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} 실패: {exc.code} {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} 거부: {exc.code} {exc}")
    return error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Pydantic 검증 실패도 VALIDATION_ERROR(400)로 통일"""
    fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
    return error_response(ValidationError("요청 형식이 올바르지 않습니다", fields=fields))


# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(context.router)
app.include_router(company.router)
app.include_router(customers.router)
app.include_router(personal.router)
app.include_router(transactions.router)
app.include_router(invoices.router)
app.include_router(analytics.router)
app.include_router(ledger.router)
