# src/infrastructure/models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    JSON, CheckConstraint, Float, ForeignKey, Integer, String, Text, TIMESTAMP,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(32), default="student", nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(32), nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)
    skills: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"UserORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class ClassORM(Base):
    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="ck_classes_seats_non_negative"),
        CheckConstraint("total_enrolled >= 0", name="ck_classes_enrolled_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    image: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    instructor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    instructor_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False, index=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    available_seats: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_enrolled: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    submitted: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"ClassORM(id={self.id!r}, name={self.name!r}, seats={self.available_seats!r})"


class CartItemORM(Base):
    __tablename__ = "cart"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    class_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_mail: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)


class PaymentORM(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    class_ids: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    transaction_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_status: Mapped[str] = mapped_column(String(64), default="succeeded", nullable=False)
    date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow, index=True)


class EnrollmentORM(Base):
    __tablename__ = "enrolled"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    classes: Mapped[list["EnrolledClassORM"]] = relationship(
        "EnrolledClassORM",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def class_ids(self) -> list[int]:
        return [link.class_id for link in self.classes]


class EnrolledClassORM(Base):
    __tablename__ = "enrolled_classes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    enrollment_id: Mapped[int] = mapped_column(
        ForeignKey("enrolled.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id"), nullable=False, index=True)

    enrollment: Mapped["EnrollmentORM"] = relationship("EnrollmentORM", back_populates="classes")


class AppliedInstructorORM(Base):
    __tablename__ = "applied"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    experience: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), default=_utcnow)


User = UserORM
YogaClass = ClassORM
CartItem = CartItemORM
Payment = PaymentORM
Enrollment = EnrollmentORM
EnrolledClass = EnrolledClassORM
AppliedInstructor = AppliedInstructorORM

__all__ = [
    "Base",
    "UserORM",
    "ClassORM",
    "CartItemORM",
    "PaymentORM",
    "EnrollmentORM",
    "EnrolledClassORM",
    "AppliedInstructorORM",
    "User",
    "YogaClass",
    "CartItem",
    "Payment",
    "Enrollment",
    "EnrolledClass",
    "AppliedInstructor",
]
