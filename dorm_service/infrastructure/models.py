# dorm_service/infrastructure/models.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Enum, ForeignKey, Integer, String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base
from ..domain.entities import Role, TicketStatus


def _enum(enum_cls, name: str) -> Enum:
    # stored as the enum values, checked by a CHECK constraint on every backend
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
        length=32,
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(_enum(Role, "user_role"), nullable=False, default=Role.student)

    student: Mapped["StudentORM | None"] = relationship("StudentORM", back_populates="user", uselist=False)

    def __repr__(self) -> str:
        return f"UserORM(id={self.id!r}, email={self.email!r}, role={self.role!r})"


class BuildingORM(Base):
    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    rooms: Mapped[list["RoomORM"]] = relationship(
        "RoomORM",
        back_populates="building",
        order_by="RoomORM.id",
    )

    def __repr__(self) -> str:
        return f"BuildingORM(id={self.id!r}, name={self.name!r})"


class RoomORM(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    building_id: Mapped[int] = mapped_column(ForeignKey("buildings.id"), nullable=False, index=True)
    floor: Mapped[int] = mapped_column(Integer, nullable=False)
    number: Mapped[str] = mapped_column(String(64), nullable=False)

    building: Mapped["BuildingORM"] = relationship("BuildingORM", back_populates="rooms")
    beds: Mapped[list["BedORM"]] = relationship(
        "BedORM",
        back_populates="room",
        order_by="BedORM.id",
    )

    def __repr__(self) -> str:
        return f"RoomORM(id={self.id!r}, building_id={self.building_id!r}, number={self.number!r})"


class BedORM(Base):
    __tablename__ = "beds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(ForeignKey("rooms.id"), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(64), nullable=False)

    room: Mapped["RoomORM"] = relationship("RoomORM", back_populates="beds")
    student: Mapped["StudentORM | None"] = relationship("StudentORM", back_populates="bed", uselist=False)

    def __repr__(self) -> str:
        return f"BedORM(id={self.id!r}, room_id={self.room_id!r}, label={self.label!r})"


class StudentORM(Base):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), unique=True, nullable=False)
    student_no: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    # unique: one student per bed, enforced by the database
    bed_id: Mapped[int | None] = mapped_column(ForeignKey("beds.id"), unique=True, nullable=True)

    user: Mapped["UserORM"] = relationship("UserORM", back_populates="student")
    bed: Mapped["BedORM | None"] = relationship("BedORM", back_populates="student")

    def __repr__(self) -> str:
        return f"StudentORM(id={self.id!r}, student_no={self.student_no!r}, bed_id={self.bed_id!r})"


class TicketORM(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[TicketStatus] = mapped_column(
        _enum(TicketStatus, "ticket_status"), nullable=False, default=TicketStatus.open
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )

    def __repr__(self) -> str:
        return f"TicketORM(id={self.id!r}, user_id={self.user_id!r}, status={self.status!r})"


User = UserORM
Building = BuildingORM
Room = RoomORM
Bed = BedORM
Student = StudentORM
Ticket = TicketORM

__all__ = [
    "Base",
    "UserORM",
    "BuildingORM",
    "RoomORM",
    "BedORM",
    "StudentORM",
    "TicketORM",
    "User",
    "Building",
    "Room",
    "Bed",
    "Student",
    "Ticket",
]
