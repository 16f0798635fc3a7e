"""
매출 분석 라우트

GET /api/analytics/revenue - 기간별 매출, 성장률, 차트 데이터
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.types import LedgerScope
from web.dependencies import get_db, get_scope
from web.models.responses import RevenueReportResponse
from web.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.get("/revenue", response_model=RevenueReportResponse)
async def get_revenue(
    period: Literal["today", "week", "month", "quarter", "year", "ytd", "all"] = Query(
        "month", description="집계 기간"
    ),
    start_date: str | None = Query(None, alias="startDate", description="사용자 지정 시작일"),
    end_date: str | None = Query(None, alias="endDate", description="사용자 지정 종료일"),
    scope: LedgerScope = Depends(get_scope),
    db: SQLiteAdapter = Depends(get_db),
) -> RevenueReportResponse:
    """매출 리포트 (startDate/endDate가 있으면 period 무시)"""
    report = await AnalyticsService(db).revenue_report(
        scope, period=period, start_date=start_date, end_date=end_date
    )
    return RevenueReportResponse(report=report)
