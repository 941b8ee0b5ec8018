"""
Ticket lifecycle (state machine + timestamp side effects).

Any status may follow any other; reopening a closed ticket is allowed.
The only enforced rules are about timestamps:
  - every status change and every assignment stamps updated_at;
  - the first move to resolved/closed stamps resolved_at, which is never
    cleared or overwritten afterwards.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Type, TypeVar

from helpdesk.core.errors import ValidationError
from helpdesk.db.models import (
    RESOLVED_STATUSES,
    CategoryEnum,
    PriorityEnum,
    Ticket,
    TicketStatusEnum,
    User,
    utcnow,
)

E = TypeVar("E", TicketStatusEnum, PriorityEnum, CategoryEnum)

_ONE_TICK = timedelta(microseconds=1)


def _parse(enum_cls: Type[E], value, label: str) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {label} '{value}'. Allowed: {allowed}") from None


def parse_status(value) -> TicketStatusEnum:
    return _parse(TicketStatusEnum, value, "status")


def parse_priority(value) -> PriorityEnum:
    return _parse(PriorityEnum, value, "priority")


def parse_category(value) -> CategoryEnum:
    return _parse(CategoryEnum, value, "category")


def touch(ticket: Ticket, now: Optional[datetime] = None) -> datetime:
    """Stamp updated_at; the new value is always later than the previous one."""
    stamp = now or utcnow()
    previous = ticket.updated_at
    if previous is not None and stamp <= previous:
        stamp = previous + _ONE_TICK
    ticket.updated_at = stamp
    return stamp


def change_status(ticket: Ticket, new_status, now: Optional[datetime] = None) -> TicketStatusEnum:
    """
    Move the ticket to new_status (validated first, so a bad value leaves
    the ticket untouched). Returns the previous status.
    """
    target = parse_status(new_status)
    old = ticket.status
    ticket.status = target
    stamp = touch(ticket, now)
    if target in RESOLVED_STATUSES and ticket.resolved_at is None:
        ticket.resolved_at = stamp
    return old


def assign(ticket: Ticket, technician: User | int, now: Optional[datetime] = None) -> None:
    """Give the ticket to a technician and force it to in_progress."""
    if isinstance(technician, int):
        ticket.assignee_id = technician
    else:
        ticket.assignee = technician
        ticket.assignee_id = technician.id
    ticket.status = TicketStatusEnum.in_progress
    touch(ticket, now)
