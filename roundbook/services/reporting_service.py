"""Read-only report assembly over activities and reference data."""

from __future__ import annotations

from sqlalchemy.orm import Session

from roundbook.core.auth import RequestUserContext
from roundbook.repositories.ledger_repository import LedgerRepository
from roundbook.services.common import not_found
from roundbook.services.reference_service import ReferenceService


class ReportingService:
    """Gathers denormalized rows for the reports screen.

    Totals (quantity x rate) are left to the consumer.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self.repo = LedgerRepository(db)

    def report(self, *, context: RequestUserContext, date_period_id: int | None = None) -> dict[str, object]:
        from_date = to_date = None
        selected_period = None
        if date_period_id is not None:
            selected_period = self.repo.get_date_period(date_period_id)
            if selected_period is None:
                raise not_found("Date period")
            from_date, to_date = selected_period.start_date, selected_period.end_date

        activities = self.repo.list_activities_for_owner(
            context.user_id,
            from_date=from_date,
            to_date=to_date,
        )
        return {
            "date_period": (
                ReferenceService.serialize_date_period(selected_period) if selected_period else None
            ),
            "activities": [
                {
                    "id": activity.id,
                    "activity_date": activity.activity_date.isoformat(),
                    "parcel_type_id": activity.parcel_type_id,
                    "quantity": activity.quantity,
                    "parcel_type": ReferenceService.serialize_parcel_type(activity.parcel_type),
                }
                for activity in activities
            ],
            "parcel_types": [
                ReferenceService.serialize_parcel_type(row)
                for row in self.repo.list_parcel_types_for_owner(context.user_id)
            ],
            "rounds": [
                ReferenceService.serialize_round(row, with_parcel_types=True)
                for row in self.repo.list_rounds_for_owner(context.user_id)
            ],
            "date_periods": [
                ReferenceService.serialize_date_period(row) for row in self.repo.list_date_periods()
            ],
        }
