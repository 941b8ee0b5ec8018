# helpdesk/db/models.py
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional

from sqlalchemy import (
    JSON,
    String,
    Text,
    Integer,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from helpdesk.db.base import Base


def utcnow() -> datetime:
    """Naive UTC "now": every timestamp column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ==== Enums (python + sqlalchemy) ====


class RoleEnum(str, enum.Enum):
    user = "user"
    technician = "technician"
    admin = "admin"


class PriorityEnum(str, enum.Enum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


class TicketStatusEnum(str, enum.Enum):
    open = "open"
    in_progress = "in_progress"  # a technician took it
    resolved = "resolved"
    closed = "closed"


class CategoryEnum(str, enum.Enum):
    hardware = "hardware"
    software = "software"
    network = "network"
    account = "account"
    other = "other"


# urgent > high > normal > low
PRIORITY_RANK: dict[PriorityEnum, int] = {
    PriorityEnum.low: 0,
    PriorityEnum.normal: 1,
    PriorityEnum.high: 2,
    PriorityEnum.urgent: 3,
}

STAFF_ROLES = frozenset({RoleEnum.technician, RoleEnum.admin})
RESOLVED_STATUSES = frozenset({TicketStatusEnum.resolved, TicketStatusEnum.closed})


# ==== Models ====


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(180), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    # stored role values; the base role is implied, see role_set
    roles: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    first_name: Mapped[str] = mapped_column(String(255))
    last_name: Mapped[str] = mapped_column(String(255))
    department: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(),
        default=utcnow,
        nullable=False,
    )

    # back-reference only; a user does not own ticket lifetime
    tickets_created: Mapped[List["Ticket"]] = relationship(
        back_populates="creator",
        foreign_keys="Ticket.creator_id",
        passive_deletes=True,
    )
    tickets_assigned: Mapped[List["Ticket"]] = relationship(
        back_populates="assignee",
        foreign_keys="Ticket.assignee_id",
        passive_deletes=True,
    )

    @property
    def role_set(self) -> frozenset[RoleEnum]:
        stored = {RoleEnum(r) for r in (self.roles or []) if r in RoleEnum._value2member_map_}
        stored.add(RoleEnum.user)
        return frozenset(stored)

    def set_roles(self, roles: Iterable[RoleEnum | str]) -> None:
        values = {RoleEnum(r).value for r in roles}
        values.add(RoleEnum.user.value)
        self.roles = sorted(values)

    @property
    def is_technician(self) -> bool:
        return bool(self.role_set & STAFF_ROLES)

    @property
    def is_admin(self) -> bool:
        return RoleEnum.admin in self.role_set

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} roles={sorted(r.value for r in self.role_set)}>"


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    status: Mapped[TicketStatusEnum] = mapped_column(
        Enum(TicketStatusEnum, name="ticket_status_enum"),
        default=TicketStatusEnum.open,
        nullable=False,
    )
    priority: Mapped[PriorityEnum] = mapped_column(
        Enum(PriorityEnum, name="priority_enum"),
        default=PriorityEnum.normal,
        nullable=False,
    )
    category: Mapped[CategoryEnum] = mapped_column(
        Enum(CategoryEnum, name="category_enum"),
        nullable=False,
    )

    creator_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    assignee_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(),
        nullable=True,
    )
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(),
        nullable=True,
    )

    # relationships
    creator: Mapped["User"] = relationship(
        back_populates="tickets_created",
        foreign_keys=[creator_id],
    )
    assignee: Mapped[Optional["User"]] = relationship(
        back_populates="tickets_assigned",
        foreign_keys=[assignee_id],
    )

    __table_args__ = (
        Index("ix_tickets_status_priority", "status", "priority"),
        Index("ix_tickets_created_at", "created_at"),
    )

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("status", TicketStatusEnum.open)
        kwargs.setdefault("priority", PriorityEnum.normal)
        kwargs.setdefault("created_at", utcnow())
        super().__init__(**kwargs)

    @validates("creator_id")
    def _validate_creator_id(self, key: str, value: Optional[int]) -> Optional[int]:
        current = self.__dict__.get("creator_id")
        if current is not None and value != current:
            raise ValueError("Ticket creator cannot be reassigned")
        return value

    @validates("creator")
    def _validate_creator(self, key: str, value: Optional["User"]) -> Optional["User"]:
        current = self.__dict__.get("creator")
        if current is not None and value is not current:
            raise ValueError("Ticket creator cannot be reassigned")
        return value

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} status={self.status} priority={self.priority}>"
