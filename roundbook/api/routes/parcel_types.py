"""Parcel type endpoints, authorized through the owning round."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, get_current_user_context
from roundbook.db.dependencies import get_db_session
from roundbook.services.reference_service import ParcelTypeData, ParcelTypeFields, ReferenceService

router = APIRouter(prefix="/parcel-types", tags=["parcel-types"])

# Largest value a NUMERIC(8,2) column holds; finer input is rounded on save.
MAX_AMOUNT = Decimal("999999.99")


class ParcelTypeFieldsPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    max_weight: Decimal = Field(ge=0, le=MAX_AMOUNT)
    max_length: Decimal = Field(ge=0, le=MAX_AMOUNT)
    rate: Decimal = Field(ge=0, le=MAX_AMOUNT)

    def to_fields(self) -> ParcelTypeFields:
        return ParcelTypeFields(
            name=self.name,
            max_weight=self.max_weight,
            max_length=self.max_length,
            rate=self.rate,
        )


class ParcelTypePayload(ParcelTypeFieldsPayload):
    round_id: int

    def to_data(self) -> ParcelTypeData:
        return ParcelTypeData(
            round_id=self.round_id,
            name=self.name,
            max_weight=self.max_weight,
            max_length=self.max_length,
            rate=self.rate,
        )


class ParcelTypeBulkPayload(BaseModel):
    round_id: int
    parcel_types: list[ParcelTypeFieldsPayload] = Field(min_length=1)


def _service(db: Session) -> ReferenceService:
    return ReferenceService(db)


@router.get("")
def list_parcel_types(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _service(db)
    items = []
    for row in service.list_parcel_types(context=context):
        payload = service.serialize_parcel_type(row)
        payload["round"] = service.serialize_round(row.round)
        items.append(payload)
    return {
        "items": items,
        "rounds": [service.serialize_round(row) for row in service.list_rounds(context=context)],
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_parcel_type(
    payload: ParcelTypePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    parcel_type = service.create_parcel_type(context=context, data=payload.to_data())
    return service.serialize_parcel_type(parcel_type)


@router.post("/bulk", status_code=status.HTTP_201_CREATED)
def create_parcel_types_bulk(
    payload: ParcelTypeBulkPayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, list[object]]:
    service = _service(db)
    rows = service.create_parcel_types_bulk(
        context=context,
        round_id=payload.round_id,
        items=[item.to_fields() for item in payload.parcel_types],
    )
    return {"items": [service.serialize_parcel_type(row) for row in rows]}


@router.put("/{parcel_type_id}")
def update_parcel_type(
    parcel_type_id: int,
    payload: ParcelTypePayload,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    service = _service(db)
    parcel_type = service.update_parcel_type(
        context=context,
        parcel_type_id=parcel_type_id,
        data=payload.to_data(),
    )
    return service.serialize_parcel_type(parcel_type)


@router.delete("/{parcel_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_parcel_type(
    parcel_type_id: int,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> Response:
    _service(db).delete_parcel_type(context=context, parcel_type_id=parcel_type_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
