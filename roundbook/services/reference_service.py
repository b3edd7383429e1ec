"""Application service for date periods, rounds and parcel types."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext, ensure_owner
from roundbook.core.cache import DATE_PERIODS_KEY, ReferenceCache, get_reference_cache, rounds_key
from roundbook.core.config import get_settings
from roundbook.models.entities import DatePeriod, ParcelType, Round
from roundbook.repositories.ledger_repository import LedgerRepository
from roundbook.services.common import money, not_found, q2, validation_error

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DatePeriodData:
    name: str
    start_date: date
    end_date: date


@dataclass(slots=True)
class RoundData:
    name: str
    description: str | None
    active: bool = True


@dataclass(slots=True)
class ParcelTypeFields:
    name: str
    max_weight: Decimal
    max_length: Decimal
    rate: Decimal


@dataclass(slots=True)
class ParcelTypeData(ParcelTypeFields):
    round_id: int


class ReferenceService:
    """Service implementing reference data CRUD and ownership rules."""

    def __init__(self, db: Session, cache: ReferenceCache | None = None) -> None:
        self.db = db
        self.repo = LedgerRepository(db)
        self.cache = cache or get_reference_cache()
        self.settings = get_settings()

    # ---------- Cache ----------
    def _invalidate(self, key: str) -> None:
        if self.settings.reference_cache_invalidate_on_write:
            self.cache.forget(key)

    def cached_date_periods(self) -> list[dict[str, object]]:
        return self.cache.remember(
            DATE_PERIODS_KEY,
            self.settings.reference_cache_ttl_seconds,
            lambda: [self.serialize_date_period(row) for row in self.repo.list_date_periods()],
        )

    def cached_rounds(self, *, context: RequestUserContext) -> list[dict[str, object]]:
        def load() -> list[dict[str, object]]:
            return [
                {
                    "id": row.id,
                    "name": row.name,
                    "parcel_types": [
                        {"id": parcel_type.id, "name": parcel_type.name, "round_id": row.id}
                        for parcel_type in row.parcel_types
                    ],
                }
                for row in self.repo.list_rounds_for_owner(context.user_id)
            ]

        return self.cache.remember(
            rounds_key(context.user_id),
            self.settings.reference_cache_ttl_seconds,
            load,
        )

    # ---------- Serialization ----------
    @staticmethod
    def serialize_date_period(period: DatePeriod) -> dict[str, object]:
        return {
            "id": period.id,
            "name": period.name,
            "start_date": period.start_date.isoformat(),
            "end_date": period.end_date.isoformat(),
        }

    @staticmethod
    def serialize_parcel_type(parcel_type: ParcelType) -> dict[str, object]:
        return {
            "id": parcel_type.id,
            "round_id": parcel_type.round_id,
            "name": parcel_type.name,
            "max_weight": money(parcel_type.max_weight),
            "max_length": money(parcel_type.max_length),
            "rate": money(parcel_type.rate),
        }

    @classmethod
    def serialize_round(cls, round_: Round, *, with_parcel_types: bool = False) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": round_.id,
            "user_id": round_.user_id,
            "name": round_.name,
            "description": round_.description,
            "active": round_.active,
        }
        if with_parcel_types:
            payload["parcel_types"] = [cls.serialize_parcel_type(row) for row in round_.parcel_types]
        return payload

    # ---------- Date periods ----------
    @staticmethod
    def _validate_period(data: DatePeriodData) -> None:
        if data.end_date <= data.start_date:
            raise validation_error("end_date", "end_date must be after start_date.")

    def list_date_periods(self) -> list[DatePeriod]:
        return self.repo.list_date_periods()

    def create_date_period(self, *, data: DatePeriodData) -> DatePeriod:
        self._validate_period(data)

        now = datetime.utcnow()
        period = DatePeriod(
            name=data.name.strip(),
            start_date=data.start_date,
            end_date=data.end_date,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(period)
        self.db.commit()
        self.db.refresh(period)
        self._invalidate(DATE_PERIODS_KEY)
        logger.info(
            "Created date period %s",
            period.id,
            extra={"entity": "date_period", "entity_id": period.id},
        )
        return period

    def update_date_period(self, *, date_period_id: int, data: DatePeriodData) -> DatePeriod:
        period = self.repo.get_date_period(date_period_id)
        if period is None:
            raise not_found("Date period")
        self._validate_period(data)

        period.name = data.name.strip()
        period.start_date = data.start_date
        period.end_date = data.end_date
        period.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(period)
        self._invalidate(DATE_PERIODS_KEY)
        return period

    def delete_date_period(self, *, date_period_id: int) -> None:
        period = self.repo.get_date_period(date_period_id)
        if period is None:
            raise not_found("Date period")

        self.repo.delete(period)
        self.db.commit()
        self._invalidate(DATE_PERIODS_KEY)
        logger.info(
            "Deleted date period %s",
            date_period_id,
            extra={"entity": "date_period", "entity_id": date_period_id},
        )

    # ---------- Rounds ----------
    def _owned_round(self, *, context: RequestUserContext, round_id: int) -> Round:
        round_ = self.repo.get_round(round_id)
        if round_ is None:
            raise not_found("Round")
        ensure_owner(context, round_.user_id)
        return round_

    def list_rounds(self, *, context: RequestUserContext) -> list[Round]:
        return self.repo.list_rounds_for_owner(context.user_id)

    def create_round(self, *, context: RequestUserContext, data: RoundData) -> Round:
        now = datetime.utcnow()
        round_ = Round(
            user_id=context.user_id,
            name=data.name.strip(),
            description=data.description.strip() if data.description else None,
            active=data.active,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(round_)
        self.db.commit()
        self.db.refresh(round_)
        self._invalidate(rounds_key(context.user_id))
        logger.info(
            "Created round %s for user %s",
            round_.id,
            context.user_id,
            extra={"entity": "round", "entity_id": round_.id, "user_id": context.user_id},
        )
        return round_

    def update_round(self, *, context: RequestUserContext, round_id: int, data: RoundData) -> Round:
        round_ = self._owned_round(context=context, round_id=round_id)

        round_.name = data.name.strip()
        round_.description = data.description.strip() if data.description else None
        round_.active = data.active
        round_.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(round_)
        self._invalidate(rounds_key(context.user_id))
        return round_

    def delete_round(self, *, context: RequestUserContext, round_id: int) -> None:
        round_ = self._owned_round(context=context, round_id=round_id)

        self.repo.delete(round_)
        self.db.commit()
        self._invalidate(rounds_key(context.user_id))
        logger.info(
            "Deleted round %s and its parcel types",
            round_id,
            extra={"entity": "round", "entity_id": round_id},
        )

    # ---------- Parcel types ----------
    def _target_round(self, *, context: RequestUserContext, round_id: int) -> Round:
        """Resolve a round referenced from a payload: unknown id is a field error."""

        round_ = self.repo.get_round(round_id)
        if round_ is None:
            raise validation_error("round_id", "The selected round_id is invalid.")
        ensure_owner(context, round_.user_id)
        return round_

    def list_parcel_types(self, *, context: RequestUserContext) -> list[ParcelType]:
        return self.repo.list_parcel_types_for_owner(context.user_id)

    @staticmethod
    def _new_parcel_type(round_id: int, fields: ParcelTypeFields, now: datetime) -> ParcelType:
        return ParcelType(
            round_id=round_id,
            name=fields.name.strip(),
            max_weight=q2(fields.max_weight),
            max_length=q2(fields.max_length),
            rate=q2(fields.rate),
            created_at=now,
            updated_at=now,
        )

    def create_parcel_type(self, *, context: RequestUserContext, data: ParcelTypeData) -> ParcelType:
        round_ = self._target_round(context=context, round_id=data.round_id)

        parcel_type = self._new_parcel_type(round_.id, data, datetime.utcnow())
        self.repo.add(parcel_type)
        self.db.commit()
        self.db.refresh(parcel_type)
        self._invalidate(rounds_key(context.user_id))
        return parcel_type

    def create_parcel_types_bulk(
        self,
        *,
        context: RequestUserContext,
        round_id: int,
        items: list[ParcelTypeFields],
    ) -> list[ParcelType]:
        round_ = self._target_round(context=context, round_id=round_id)

        now = datetime.utcnow()
        created = [self._new_parcel_type(round_.id, item, now) for item in items]
        try:
            self.db.add_all(created)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        for row in created:
            self.db.refresh(row)
        self._invalidate(rounds_key(context.user_id))
        logger.info(
            "Created %s parcel types on round %s",
            len(created),
            round_.id,
            extra={"entity": "round", "entity_id": round_.id, "count": len(created)},
        )
        return created

    def update_parcel_type(
        self,
        *,
        context: RequestUserContext,
        parcel_type_id: int,
        data: ParcelTypeData,
    ) -> ParcelType:
        parcel_type = self.repo.get_parcel_type(parcel_type_id)
        if parcel_type is None:
            raise not_found("Parcel type")
        ensure_owner(context, parcel_type.round.user_id)
        if data.round_id != parcel_type.round_id:
            self._target_round(context=context, round_id=data.round_id)

        parcel_type.round_id = data.round_id
        parcel_type.name = data.name.strip()
        parcel_type.max_weight = q2(data.max_weight)
        parcel_type.max_length = q2(data.max_length)
        parcel_type.rate = q2(data.rate)
        parcel_type.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(parcel_type)
        self._invalidate(rounds_key(context.user_id))
        return parcel_type

    def delete_parcel_type(self, *, context: RequestUserContext, parcel_type_id: int) -> None:
        parcel_type = self.repo.get_parcel_type(parcel_type_id)
        if parcel_type is None:
            raise not_found("Parcel type")
        ensure_owner(context, parcel_type.round.user_id)

        self.repo.delete(parcel_type)
        self.db.commit()
        self._invalidate(rounds_key(context.user_id))
