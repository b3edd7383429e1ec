"""Delivery round endpoints, scoped to the round owner."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, get_current_user_context
from roundbook.db.dependencies import get_db_session
from roundbook.services.reference_service import ReferenceService, RoundData

router = APIRouter(prefix="/rounds", tags=["rounds"])


class RoundPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    active: bool = True

    def to_data(self) -> RoundData:
        return RoundData(name=self.name, description=self.description, active=self.active)


def _service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("")
def list_rounds(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _service(db)
    rows = service.list_rounds(context=context)
    return {"items": [service.serialize_round(row, with_parcel_types=True) for row in rows]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_round(
    payload: RoundPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    round_ = service.create_round(context=context, data=payload.to_data())
    return service.serialize_round(round_)


@router.put("/{round_id}")
def update_round(
    round_id: int,
    payload: RoundPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    round_ = service.update_round(context=context, round_id=round_id, data=payload.to_data())
    return service.serialize_round(round_)


@router.delete("/{round_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_round(
    round_id: int,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _service(db).delete_round(context=context, round_id=round_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
