"""End-of-day image upload and listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, get_current_user_context
from roundbook.db.dependencies import get_db_session
from roundbook.services.activity_service import ActivityService
from roundbook.services.blob_storage import BlobStorage, get_blob_storage

router = APIRouter(prefix="/activity-images", tags=["activity-images"])


@router.get("")
def list_activity_images(
    page: int = Query(default=1, ge=1),
    activity_id: int | None = None,
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
) -> dict[str, object]:
    return ActivityService(db).list_images_page(context=context, page=page, activity_id=activity_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def upload_activity_image(
    activity_id: int = Form(...),
    image: UploadFile = File(...),
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
    storage: BlobStorage = Depends(get_blob_storage),
) -> dict[str, object]:
    service = ActivityService(db)
    row = service.upload_image(context=context, activity_id=activity_id, upload=image, storage=storage)
    return {"message": "Image uploaded successfully", "data": service.serialize_image(row)}
