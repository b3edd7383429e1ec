"""Seed demo reference data: 2025 billing periods and two rounds with their rates.

Usage::

    python -m roundbook.seed --subject dev-user --email dev.user@local.test
"""

from __future__ import annotations

import argparse
import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from roundbook.core.auth import ensure_user_principal
from roundbook.core.config import get_settings
from roundbook.core.observability import setup_logging
from roundbook.db.session import SessionLocal
from roundbook.models.entities import DatePeriod, ParcelType, Round

logger = logging.getLogger(__name__)

DATE_PERIODS: list[tuple[str, date, date]] = [
    ("Period 12", date(2025, 2, 1), date(2025, 2, 28)),
    ("Period 1", date(2025, 3, 1), date(2025, 3, 28)),
    ("Period 2", date(2025, 3, 29), date(2025, 5, 2)),
    ("Period 3", date(2025, 5, 3), date(2025, 5, 30)),
    ("Period 4", date(2025, 5, 31), date(2025, 6, 27)),
    ("Period 5", date(2025, 6, 28), date(2025, 8, 1)),
    ("Period 6", date(2025, 8, 2), date(2025, 8, 29)),
    ("Period 7", date(2025, 8, 30), date(2025, 9, 26)),
]

# (name, max_weight kg, max_length cm)
PARCEL_CLASSES: list[tuple[str, str, str]] = [
    ("Postable", "0.1", "35.3"),
    ("Small Packet", "0.5", "45.0"),
    ("Packet", "1.0", "61.0"),
    ("Parcel", "2.0", "100.0"),
    ("Heavy", "10.0", "150.0"),
    ("Heavy / Large", "20.0", "200.0"),
    ("Hanging Garment", "5.0", "120.0"),
    ("Manifested Collections", "30.0", "250.0"),
    ("Next Day", "30.0", "250.0"),
    ("POD-Signature", "30.0", "250.0"),
    ("HSIG-Signature", "30.0", "250.0"),
]

# Round name, description, rate per parcel class (same order as PARCEL_CLASSES).
ROUNDS: list[tuple[str, str, list[str]]] = [
    (
        "Round 4",
        "Wybunbury to Audlem",
        ["0.56", "0.65", "0.71", "0.94", "1.00", "1.00", "0.94", "0.74", "0", "0", "0"],
    ),
    (
        "Round 14",
        "Audlem to Lightwood Green",
        ["0.50", "0.58", "0.63", "0.84", "1.00", "1.00", "0.84", "0.71", "0", "0", "0"],
    ),
]


def seed_demo_data(db: Session, *, owner_id: int) -> list[Round]:
    """Insert demo periods and rounds owned by ``owner_id`` and commit."""

    now = datetime.utcnow()
    for name, start_date, end_date in DATE_PERIODS:
        db.add(DatePeriod(name=name, start_date=start_date, end_date=end_date, created_at=now, updated_at=now))

    rounds: list[Round] = []
    for name, description, rates in ROUNDS:
        round_ = Round(
            user_id=owner_id,
            name=name,
            description=description,
            active=True,
            created_at=now,
            updated_at=now,
        )
        round_.parcel_types = [
            ParcelType(
                name=class_name,
                max_weight=Decimal(max_weight),
                max_length=Decimal(max_length),
                rate=Decimal(rate),
                created_at=now,
                updated_at=now,
            )
            for (class_name, max_weight, max_length), rate in zip(PARCEL_CLASSES, rates, strict=True)
        ]
        db.add(round_)
        rounds.append(round_)

    db.commit()
    logger.info(
        "Seeded %s date periods and %s rounds for user %s",
        len(DATE_PERIODS),
        len(rounds),
        owner_id,
        extra={"user_id": owner_id, "count": len(rounds)},
    )
    return rounds


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Seed demo rounds, parcel types and date periods.")
    parser.add_argument("--subject", default=None, help="owner identity subject")
    parser.add_argument("--email", default=None, help="owner email")
    parser.add_argument("--name", default=None, help="owner display name")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    with SessionLocal() as db:
        user = ensure_user_principal(
            db,
            subject=args.subject or settings.auth_dev_subject,
            email=args.email or settings.auth_dev_email,
            display_name=args.name or settings.auth_dev_display_name,
        )
        seed_demo_data(db, owner_id=user.id)


if __name__ == "__main__":
    main()
