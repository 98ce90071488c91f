from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


class User(Base):
    """Directory entry for owners, vets and admins.

    Accounts are managed elsewhere; this table only backs display names.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="OWNER")
    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self):
        return f"<User(id='{self.id}', full_name='{self.full_name}', role='{self.role}')>"


class Pet(Base):
    __tablename__ = "pets"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_user_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )

    def __repr__(self):
        return f"<Pet(id='{self.id}', name='{self.name}')>"


class Appointment(Base):
    """Appointment request and its lifecycle.

    Owner, vet and pet ids are opaque references; they are not foreign keys
    because users and pets are owned by other services.
    """

    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    pet_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    vet_user_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, index=True
    )
    requested_date_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    actual_date_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )
    reason_for_visit: Mapped[str] = mapped_column(String(200), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Pending", index=True
    )  # Pending, Approved, Cancelled, Completed, NoShow
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_by_user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    # Optimistic concurrency token, bumped on every write
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        Index("ix_appointments_status_actual", "status", "actual_date_time"),
    )

    def __repr__(self):
        return (
            f"<Appointment(id='{self.id}', owner='{self.owner_user_id}', "
            f"status={self.status}, requested={self.requested_date_time})>"
        )


class Notification(Base):
    """In-app notification addressed to one user."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(40), nullable=False, default="General")
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(String(1000), nullable=False)
    data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # JSON payload
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def __repr__(self):
        return (
            f"<Notification(id='{self.id}', user_id='{self.user_id}', "
            f"type={self.type}, is_read={self.is_read})>"
        )
