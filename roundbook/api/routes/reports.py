"""Reporting endpoint returning raw rows for client-side totals."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, get_current_user_context
from roundbook.db.dependencies import get_db_session
from roundbook.services.reporting_service import ReportingService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("")
def get_report(
    date_period_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return ReportingService(db).report(context=context, date_period_id=date_period_id)
