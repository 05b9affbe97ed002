from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smallbiz.core.config import settings
from smallbiz.db.database import get_db
from smallbiz.schemas.reports import (
    ReportPeriod,
    RevenueSummaryOut,
    SalesReportRowOut,
    TopCustomerOut,
    TopProductOut,
)
from smallbiz.services import reports as report_service

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/sales", response_model=list[SalesReportRowOut])
def sales_report(
    start_date: datetime,
    end_date: datetime,
    period: ReportPeriod = "daily",
    db: Session = Depends(get_db),
):
    return report_service.get_sales_report(db, start_date, end_date, period)


@router.get("/top-products", response_model=list[TopProductOut])
def top_products(
    limit: int = Query(default=settings.default_report_limit, ge=1, le=settings.max_report_limit),
    db: Session = Depends(get_db),
):
    return report_service.get_top_products(db, limit)


@router.get("/top-customers", response_model=list[TopCustomerOut])
def top_customers(
    limit: int = Query(default=settings.default_report_limit, ge=1, le=settings.max_report_limit),
    db: Session = Depends(get_db),
):
    return report_service.get_top_customers(db, limit)


@router.get("/revenue-summary", response_model=RevenueSummaryOut)
def revenue_summary(
    start_date: datetime,
    end_date: datetime,
    db: Session = Depends(get_db),
):
    return report_service.get_revenue_summary(db, start_date, end_date)
