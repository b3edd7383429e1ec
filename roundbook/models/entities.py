"""ORM entities for the delivery ledger schema."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roundbook.db.base import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class DatePeriod(Base):
    __tablename__ = "date_periods"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_date_periods_end_after_start"),
        Index("ix_date_periods_start_date", "start_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)


class Round(Base):
    __tablename__ = "rounds"
    __table_args__ = (Index("ix_rounds_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    parcel_types: Mapped[list[ParcelType]] = relationship(
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="ParcelType.id",
    )


class ParcelType(Base):
    __tablename__ = "parcel_types"
    __table_args__ = (
        CheckConstraint("max_weight >= 0", name="ck_parcel_types_max_weight_non_negative"),
        CheckConstraint("max_length >= 0", name="ck_parcel_types_max_length_non_negative"),
        CheckConstraint("rate >= 0", name="ck_parcel_types_rate_non_negative"),
        Index("ix_parcel_types_round_id", "round_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rounds.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    max_weight: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    max_length: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    # Payable amount per delivered item.
    rate: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    round: Mapped[Round] = relationship(back_populates="parcel_types")
    activities: Mapped[list[Activity]] = relationship(
        back_populates="parcel_type",
        cascade="all, delete-orphan",
    )


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_activities_quantity_non_negative"),
        Index("ix_activities_user_date", "user_id", "activity_date"),
        Index("ix_activities_parcel_type_id", "parcel_type_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    parcel_type_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("parcel_types.id", ondelete="CASCADE"), nullable=False
    )
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    parcel_type: Mapped[ParcelType] = relationship(back_populates="activities")
    images: Mapped[list[ActivityImage]] = relationship(
        back_populates="activity",
        cascade="all, delete-orphan",
    )


class ActivityImage(Base):
    __tablename__ = "activity_images"
    __table_args__ = (Index("ix_activity_images_activity_id", "activity_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    activity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False
    )
    image_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    activity: Mapped[Activity] = relationship(back_populates="images")
