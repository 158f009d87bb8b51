from typing import Optional

from fastapi import APIRouter, Depends

from dependencies import get_reporting_engine
from models import AssetStatus, DashboardSummary, ReportData, ReportIn, ReportType, UtcDatetime
from reports import ReportingEngine

router = APIRouter()


@router.post("/reports", response_model=ReportData)
def generate_report_api(
    body: ReportIn,
    engine: ReportingEngine = Depends(get_reporting_engine),
):
    return engine.generate_report(body)


@router.get("/reports/{report_type}", response_model=ReportData)
def get_report_api(
    report_type: ReportType,
    start_date: Optional[UtcDatetime] = None,
    end_date: Optional[UtcDatetime] = None,
    category_id: Optional[int] = None,
    status: Optional[AssetStatus] = None,
    engine: ReportingEngine = Depends(get_reporting_engine),
):
    body = ReportIn(
        report_type=report_type,
        start_date=start_date,
        end_date=end_date,
        category_id=category_id,
        status=status,
    )
    return engine.generate_report(body)


@router.get("/dashboard", response_model=DashboardSummary)
def dashboard_api(engine: ReportingEngine = Depends(get_reporting_engine)):
    return engine.dashboard_summary()
