"""Activity recording endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, get_current_user_context
from roundbook.db.dependencies import get_db_session
from roundbook.services.activity_service import ActivityData, ActivityService, BulkQuantity
from roundbook.services.reference_service import ReferenceService

router = APIRouter(prefix="/activities", tags=["activities"])


class ActivityPayload(BaseModel):
    parcel_type_id: int
    activity_date: date
    quantity: int = Field(ge=0)

    def to_data(self) -> ActivityData:
        return ActivityData(
            parcel_type_id=self.parcel_type_id,
            activity_date=self.activity_date,
            quantity=self.quantity,
        )


class BulkQuantityPayload(BaseModel):
    parcel_type_id: int
    quantity: int = Field(ge=0)


class ActivityBulkPayload(BaseModel):
    activity_date: date
    round_id: int
    quantities: list[BulkQuantityPayload] = Field(min_length=1)


@router.get("")
def list_activities(
    page: int = Query(default=1, ge=1),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    """Activity screen data: one page of activities plus pick-list reference data."""

    service = ActivityService(db)
    reference = ReferenceService(db)
    parcel_types = []
    for row in reference.list_parcel_types(context=context):
        parcel_types.append(
            {
                "id": row.id,
                "name": row.name,
                "round_id": row.round_id,
                "round": {"id": row.round.id, "name": row.round.name},
            }
        )

    return {
        "activities": service.list_activities_page(context=context, page=page),
        "parcel_types": parcel_types,
        "rounds": reference.cached_rounds(context=context),
        "date_periods": reference.cached_date_periods(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_activity(
    payload: ActivityPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = ActivityService(db)
    activity = service.create_activity(context=context, data=payload.to_data())
    return service.serialize_activity(activity)


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def create_activities_bulk(
    payload: ActivityBulkPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = ActivityService(db)
    rows = service.create_activities_bulk(
        context=context,
        activity_date=payload.activity_date,
        round_id=payload.round_id,
        quantities=[
            BulkQuantity(parcel_type_id=entry.parcel_type_id, quantity=entry.quantity)
            for entry in payload.quantities
        ],
    )
    return {"items": [service.serialize_activity(row) for row in rows]}


@router.put("/{activity_id}")
def update_activity(
    activity_id: int,
    payload: ActivityPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = ActivityService(db)
    activity = service.update_activity(context=context, activity_id=activity_id, data=payload.to_data())
    return service.serialize_activity(activity)


@router.delete("/{activity_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity(
    activity_id: int,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    ActivityService(db).delete_activity(context=context, activity_id=activity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
