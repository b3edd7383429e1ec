"""Repository helpers for rounds, parcel types, periods and activities."""

from __future__ import annotations

from datetime import date

from sqlalchemy import Row, and_, func, select
from sqlalchemy.orm import Session, selectinload

from roundbook.models.entities import (
    Activity,
    ActivityImage,
    DatePeriod,
    ParcelType,
    Round,
)


class LedgerRepository:
    """Persistence operations used by reference, activity and reporting services."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, row: object) -> None:
        self.db.add(row)
        self.db.flush()

    def delete(self, row: object) -> None:
        self.db.delete(row)
        self.db.flush()

    # ---------- Date periods ----------
    def list_date_periods(self) -> list[DatePeriod]:
        return self.db.scalars(
            select(DatePeriod).order_by(DatePeriod.start_date.asc(), DatePeriod.id.asc())
        ).all()

    def get_date_period(self, date_period_id: int) -> DatePeriod | None:
        return self.db.get(DatePeriod, date_period_id)

    # ---------- Rounds ----------
    def list_rounds_for_owner(self, user_id: int) -> list[Round]:
        return self.db.scalars(
            select(Round)
            .where(Round.user_id == user_id)
            .options(selectinload(Round.parcel_types))
            .order_by(Round.name.asc(), Round.id.asc())
        ).all()

    def get_round(self, round_id: int) -> Round | None:
        return self.db.get(Round, round_id)

    # ---------- Parcel types ----------
    def list_parcel_types_for_owner(self, user_id: int) -> list[ParcelType]:
        return self.db.scalars(
            select(ParcelType)
            .join(Round, Round.id == ParcelType.round_id)
            .where(Round.user_id == user_id)
            .options(selectinload(ParcelType.round))
            .order_by(ParcelType.round_id.asc(), ParcelType.id.asc())
        ).all()

    def get_parcel_type(self, parcel_type_id: int) -> ParcelType | None:
        return self.db.get(ParcelType, parcel_type_id)

    def get_parcel_types(self, parcel_type_ids: set[int]) -> dict[int, ParcelType]:
        if not parcel_type_ids:
            return {}
        rows = self.db.scalars(
            select(ParcelType)
            .where(ParcelType.id.in_(parcel_type_ids))
            .options(selectinload(ParcelType.round))
        ).all()
        return {row.id: row for row in rows}

    # ---------- Activities ----------
    def get_activity(self, activity_id: int) -> Activity | None:
        return self.db.get(Activity, activity_id)

    def activity_count_for_owner(self, user_id: int) -> int:
        return int(
            self.db.scalar(select(func.count(Activity.id)).where(Activity.user_id == user_id)) or 0
        )

    def list_activity_page_rows(self, user_id: int, *, offset: int, limit: int) -> list[Row]:
        """Activities joined to parcel type and round, projected to listing columns."""

        return self.db.execute(
            select(
                Activity.id,
                Activity.activity_date,
                Activity.parcel_type_id,
                Activity.quantity,
                ParcelType.name.label("parcel_type_name"),
                ParcelType.rate.label("parcel_type_rate"),
                Round.id.label("round_id"),
                Round.name.label("round_name"),
            )
            .join(ParcelType, ParcelType.id == Activity.parcel_type_id)
            .join(Round, Round.id == ParcelType.round_id)
            .where(Activity.user_id == user_id)
            .order_by(Activity.id.asc())
            .offset(offset)
            .limit(limit)
        ).all()

    def list_activities_for_owner(
        self,
        user_id: int,
        *,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> list[Activity]:
        conditions = [Activity.user_id == user_id]
        if from_date is not None:
            conditions.append(Activity.activity_date >= from_date)
        if to_date is not None:
            conditions.append(Activity.activity_date <= to_date)

        return self.db.scalars(
            select(Activity)
            .where(and_(*conditions))
            .options(selectinload(Activity.parcel_type))
            .order_by(Activity.activity_date.asc(), Activity.id.asc())
        ).all()

    # ---------- Activity images ----------
    def image_count_for_owner(self, user_id: int, *, activity_id: int | None = None) -> int:
        statement = (
            select(func.count(ActivityImage.id))
            .join(Activity, Activity.id == ActivityImage.activity_id)
            .where(Activity.user_id == user_id)
        )
        if activity_id is not None:
            statement = statement.where(ActivityImage.activity_id == activity_id)
        return int(self.db.scalar(statement) or 0)

    def list_images_for_owner(
        self,
        user_id: int,
        *,
        offset: int,
        limit: int,
        activity_id: int | None = None,
    ) -> list[ActivityImage]:
        statement = (
            select(ActivityImage)
            .join(Activity, Activity.id == ActivityImage.activity_id)
            .where(Activity.user_id == user_id)
        )
        if activity_id is not None:
            statement = statement.where(ActivityImage.activity_id == activity_id)
        return self.db.scalars(
            statement.order_by(ActivityImage.created_at.desc(), ActivityImage.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
