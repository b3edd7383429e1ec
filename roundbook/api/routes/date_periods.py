"""Date period (billing window) endpoints. Shared by all users."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, get_current_user_context
from roundbook.db.dependencies import get_db_session
from roundbook.services.reference_service import DatePeriodData, ReferenceService

router = APIRouter(prefix="/date-periods", tags=["date-periods"])


class DatePeriodPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    start_date: date
    end_date: date

    def to_data(self) -> DatePeriodData:
        return DatePeriodData(name=self.name, start_date=self.start_date, end_date=self.end_date)


def _service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("")
def list_date_periods(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _service(db)
    return {"items": [service.serialize_date_period(row) for row in service.list_date_periods()]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_date_period(
    payload: DatePeriodPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    period = service.create_date_period(data=payload.to_data())
    return service.serialize_date_period(period)


@router.put("/{date_period_id}")
def update_date_period(
    date_period_id: int,
    payload: DatePeriodPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    period = service.update_date_period(date_period_id=date_period_id, data=payload.to_data())
    return service.serialize_date_period(period)


@router.delete("/{date_period_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_date_period(
    date_period_id: int,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _service(db).delete_date_period(date_period_id=date_period_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
