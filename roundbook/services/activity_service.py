"""Application service for daily activity records and their images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from fastapi import UploadFile
from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, ensure_owner
from roundbook.core.config import get_settings
from roundbook.models.entities import Activity, ActivityImage, ParcelType
from roundbook.repositories.ledger_repository import LedgerRepository
from roundbook.services.blob_storage import BlobStorage
from roundbook.services.common import PageWindow, money, not_found, validation_error

logger = logging.getLogger(__name__)

IMAGE_DIRECTORY = "activity_images"


@dataclass(slots=True)
class ActivityData:
    parcel_type_id: int
    activity_date: date
    quantity: int


@dataclass(slots=True)
class BulkQuantity:
    parcel_type_id: int
    quantity: int


class ActivityService:
    """Service implementing activity recording, bulk entry and listing."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)
        self.settings = get_settings()

    # ---------- Serialization ----------
    @staticmethod
    def serialize_activity(activity: Activity) -> dict[str, object]:
        return {
            "id": activity.id,
            "user_id": activity.user_id,
            "parcel_type_id": activity.parcel_type_id,
            "activity_date": activity.activity_date.isoformat(),
            "quantity": activity.quantity,
        }

    @staticmethod
    def serialize_image(image: ActivityImage) -> dict[str, object]:
        return {
            "id": image.id,
            "activity_id": image.activity_id,
            "image_path": image.image_path,
            "created_at": image.created_at.isoformat(),
        }

    # ---------- Reference checks ----------
    def _usable_parcel_type(
        self,
        *,
        context: RequestUserContext,
        parcel_type_id: int,
        field: str = "parcel_type_id",
    ) -> ParcelType:
        parcel_type = self.repo.get_parcel_type(parcel_type_id)
        if parcel_type is None:
            raise validation_error(field, f"The selected {field} is invalid.")
        ensure_owner(context, parcel_type.round.user_id)
        return parcel_type

    def _owned_activity(self, *, context: RequestUserContext, activity_id: int) -> Activity:
        activity = self.repo.get_activity(activity_id)
        if activity is None:
            raise not_found("Activity")
        ensure_owner(context, activity.user_id)
        return activity

    # ---------- Listing ----------
    def list_activities_page(self, *, context: RequestUserContext, page: int) -> dict[str, object]:
        window = PageWindow(
            page=page,
            per_page=self.settings.activities_page_size,
            total=self.repo.activity_count_for_owner(context.user_id),
        )
        rows = self.repo.list_activity_page_rows(
            context.user_id,
            offset=window.offset,
            limit=window.per_page,
        )
        items = [
            {
                "id": row.id,
                "activity_date": row.activity_date.isoformat(),
                "parcel_type_id": row.parcel_type_id,
                "quantity": row.quantity,
                "parcel_type": {
                    "id": row.parcel_type_id,
                    "name": row.parcel_type_name,
                    "round_id": row.round_id,
                    "rate": money(row.parcel_type_rate),
                },
                "round": {"id": row.round_id, "name": row.round_name},
            }
            for row in rows
        ]
        return window.envelope(items)

    # ---------- Activity CRUD ----------
    def create_activity(self, *, context: RequestUserContext, data: ActivityData) -> Activity:
        self._usable_parcel_type(context=context, parcel_type_id=data.parcel_type_id)

        now = datetime.utcnow()
        activity = Activity(
            user_id=context.user_id,
            parcel_type_id=data.parcel_type_id,
            activity_date=data.activity_date,
            quantity=data.quantity,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(activity)
        self.db.commit()
        self.db.refresh(activity)
        logger.info(
            "Recorded activity %s for user %s",
            activity.id,
            context.user_id,
            extra={"entity": "activity", "entity_id": activity.id, "user_id": context.user_id},
        )
        return activity

    def create_activities_bulk(
        self,
        *,
        context: RequestUserContext,
        activity_date: date,
        round_id: int,
        quantities: list[BulkQuantity],
    ) -> list[Activity]:
        """Record one activity per non-zero quantity, all in one transaction.

        Every entry is checked (including zero-quantity ones) before anything
        is written, so a bad entry leaves no partial rows behind.
        """

        round_ = self.repo.get_round(round_id)
        if round_ is None:
            raise validation_error("round_id", "The selected round_id is invalid.")
        ensure_owner(context, round_.user_id)

        parcel_types = self.repo.get_parcel_types({entry.parcel_type_id for entry in quantities})
        for index, entry in enumerate(quantities):
            loc = ("quantities", index, "parcel_type_id")
            parcel_type = parcel_types.get(entry.parcel_type_id)
            if parcel_type is None:
                raise validation_error(loc, f"The selected quantities.{index}.parcel_type_id is invalid.")
            if parcel_type.round_id != round_.id:
                raise validation_error(loc, "The parcel type does not belong to the selected round.")

        now = datetime.utcnow()
        created = [
            Activity(
                user_id=context.user_id,
                parcel_type_id=entry.parcel_type_id,
                activity_date=activity_date,
                quantity=entry.quantity,
                created_at=now,
                updated_at=now,
            )
            for entry in quantities
            if entry.quantity > 0
        ]
        try:
            self.db.add_all(created)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for row in created:
            self.db.refresh(row)
        logger.info(
            "Recorded %s activities on %s for round %s",
            len(created),
            activity_date.isoformat(),
            round_.id,
            extra={"entity": "round", "entity_id": round_.id, "user_id": context.user_id, "count": len(created)},
        )
        return created

    def update_activity(
        self,
        *,
        context: RequestUserContext,
        activity_id: int,
        data: ActivityData,
    ) -> Activity:
        activity = self._owned_activity(context=context, activity_id=activity_id)
        if data.parcel_type_id != activity.parcel_type_id:
            self._usable_parcel_type(context=context, parcel_type_id=data.parcel_type_id)

        activity.parcel_type_id = data.parcel_type_id
        activity.activity_date = data.activity_date
        activity.quantity = data.quantity
        activity.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(activity)
        return activity

    def delete_activity(self, *, context: RequestUserContext, activity_id: int) -> None:
        activity = self._owned_activity(context=context, activity_id=activity_id)

        self.repo.delete(activity)
        self.db.commit()
        logger.info("Deleted activity %s", activity_id, extra={"entity": "activity", "entity_id": activity_id})

    # ---------- Images ----------
    def list_images_page(
        self,
        *,
        context: RequestUserContext,
        page: int,
        activity_id: int | None = None,
    ) -> dict[str, object]:
        window = PageWindow(
            page=page,
            per_page=self.settings.activity_images_page_size,
            total=self.repo.image_count_for_owner(context.user_id, activity_id=activity_id),
        )
        rows = self.repo.list_images_for_owner(
            context.user_id,
            offset=window.offset,
            limit=window.per_page,
            activity_id=activity_id,
        )
        return window.envelope([self.serialize_image(row) for row in rows])

    def upload_image(
        self,
        *,
        context: RequestUserContext,
        activity_id: int,
        upload: UploadFile,
        storage: BlobStorage,
    ) -> ActivityImage:
        activity = self.repo.get_activity(activity_id)
        if activity is None:
            raise validation_error("activity_id", "The selected activity_id is invalid.")
        ensure_owner(context, activity.user_id)

        content = upload.file.read(storage.max_bytes + 1)
        image_format = storage.validate_image(upload, content)
        path = storage.store(content, IMAGE_DIRECTORY, image_format=image_format)

        now = datetime.utcnow()
        image = ActivityImage(activity_id=activity.id, image_path=path, created_at=now, updated_at=now)
        try:
            self.repo.add(image)
            self.db.commit()
        except Exception:
            self.db.rollback()
            storage.delete(path)
            raise

        self.db.refresh(image)
        logger.info(
            "Stored image %s for activity %s",
            path,
            activity.id,
            extra={"entity": "activity_image", "entity_id": image.id, "path": path},
        )
        return image
