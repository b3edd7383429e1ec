"""ORM model package."""

from roundbook.models.entities import (
    Activity,
    ActivityImage,
    DatePeriod,
    ParcelType,
    Round,
    User,
)

__all__ = [
    "Activity",
    "ActivityImage",
    "DatePeriod",
    "ParcelType",
    "Round",
    "User",
]
