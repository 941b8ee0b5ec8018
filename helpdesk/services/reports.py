"""
Reports service: read-only queries over tickets.

Listings used by the queues and the dashboard plus the aggregated counters.
Nothing here mutates state; every function takes the session explicitly.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.core.errors import ValidationError
from helpdesk.db.models import (
    PRIORITY_RANK,
    CategoryEnum,
    PriorityEnum,
    Ticket,
    TicketStatusEnum,
    utcnow,
)
from helpdesk.services import users

_STATUS_ORDER = [
    TicketStatusEnum.open,
    TicketStatusEnum.in_progress,
    TicketStatusEnum.resolved,
    TicketStatusEnum.closed,
]

# the enum columns sort lexically in SQL, so rank them explicitly
priority_rank = case(
    *[(Ticket.priority == p, rank) for p, rank in PRIORITY_RANK.items()],
    else_=-1,
)
status_rank = case(
    *[(Ticket.status == s, i) for i, s in enumerate(_STATUS_ORDER)],
    else_=len(_STATUS_ORDER),
)


def _enum_key(v):
    # string value even if SQLAlchemy hands back the Enum member
    return v.value if hasattr(v, "value") else v


async def _all(db: AsyncSession, stmt) -> Sequence[Ticket]:
    return (await db.execute(stmt)).scalars().all()


# ---------- listings ----------

async def list_all(db: AsyncSession) -> Sequence[Ticket]:
    return await _all(db, select(Ticket).order_by(Ticket.created_at.desc(), Ticket.id.desc()))


async def list_by_creator(db: AsyncSession, user_id: int) -> Sequence[Ticket]:
    return await _all(
        db,
        select(Ticket)
        .where(Ticket.creator_id == user_id)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc()),
    )


async def list_by_assignee(db: AsyncSession, user_id: int) -> Sequence[Ticket]:
    return await _all(
        db,
        select(Ticket)
        .where(Ticket.assignee_id == user_id)
        .order_by(status_rank.asc(), priority_rank.desc(), Ticket.id.asc()),
    )


async def find_open_tickets(db: AsyncSession) -> Sequence[Ticket]:
    """open or in_progress; most urgent first, newest first within a priority."""
    return await _all(
        db,
        select(Ticket)
        .where(Ticket.status.in_([TicketStatusEnum.open, TicketStatusEnum.in_progress]))
        .order_by(priority_rank.desc(), Ticket.created_at.desc(), Ticket.id.desc()),
    )


async def find_unassigned_tickets(db: AsyncSession) -> Sequence[Ticket]:
    """No assignee and not closed; most urgent first, oldest first within a priority."""
    return await _all(
        db,
        select(Ticket)
        .where(Ticket.assignee_id.is_(None), Ticket.status != TicketStatusEnum.closed)
        .order_by(priority_rank.desc(), Ticket.created_at.asc(), Ticket.id.asc()),
    )


async def find_urgent_tickets(db: AsyncSession) -> Sequence[Ticket]:
    return await _all(
        db,
        select(Ticket)
        .where(
            Ticket.priority == PriorityEnum.urgent,
            Ticket.status.not_in([TicketStatusEnum.resolved, TicketStatusEnum.closed]),
        )
        .order_by(Ticket.created_at.asc(), Ticket.id.asc()),
    )


def _like_pattern(keyword: str) -> str:
    escaped = keyword.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def search_by_keyword(db: AsyncSession, keyword: str) -> Sequence[Ticket]:
    """Case-insensitive substring match on title or description."""
    pattern = _like_pattern(keyword)
    return await _all(
        db,
        select(Ticket)
        .where(
            or_(
                Ticket.title.ilike(pattern, escape="\\"),
                Ticket.description.ilike(pattern, escape="\\"),
            )
        )
        .order_by(Ticket.created_at.desc(), Ticket.id.desc()),
    )


async def find_by_category(db: AsyncSession, category: CategoryEnum) -> Sequence[Ticket]:
    return await _all(
        db,
        select(Ticket)
        .where(Ticket.category == category)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc()),
    )


async def find_recent_tickets(
    db: AsyncSession,
    days: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> Sequence[Ticket]:
    """Tickets created in the last `days` days, boundary included."""
    if days is None:
        days = settings.recent_days_default
    if days < 0:
        raise ValidationError("days must be >= 0")
    since = (now or utcnow()) - timedelta(days=days)
    return await _all(
        db,
        select(Ticket)
        .where(Ticket.created_at >= since)
        .order_by(Ticket.created_at.desc(), Ticket.id.desc()),
    )


# ---------- aggregates ----------

async def count_all(db: AsyncSession) -> int:
    return int((await db.execute(select(func.count(Ticket.id)))).scalar_one())


async def count_by_status(db: AsyncSession) -> Dict[str, int]:
    """Only statuses present in the data; callers default missing keys to 0."""
    rows = (await db.execute(
        select(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status)
    )).all()
    return {_enum_key(s): int(c) for s, c in rows}


async def count_by_priority(db: AsyncSession) -> Dict[str, int]:
    rows = (await db.execute(
        select(Ticket.priority, func.count(Ticket.id)).group_by(Ticket.priority)
    )).all()
    return {_enum_key(p): int(c) for p, c in rows}


async def average_resolution_hours(db: AsyncSession) -> Optional[float]:
    """
    Mean of (resolved_at - created_at) in hours over resolved tickets,
    or None when nothing has been resolved yet.
    """
    rows = (await db.execute(
        select(Ticket.created_at, Ticket.resolved_at).where(Ticket.resolved_at.is_not(None))
    )).all()
    if not rows:
        return None
    total_seconds = sum((resolved - created).total_seconds() for created, resolved in rows)
    return total_seconds / len(rows) / 3600.0


async def dashboard_snapshot(db: AsyncSession) -> Dict[str, Any]:
    """
    Dashboard figures:
      - totals by status and by priority
      - sizes of the open / unassigned / urgent queues
      - average resolution time in hours
      - headcount of technicians and of all users
    """
    return {
        "total": await count_all(db),
        "by_status": await count_by_status(db),
        "by_priority": await count_by_priority(db),
        "open": len(await find_open_tickets(db)),
        "unassigned": len(await find_unassigned_tickets(db)),
        "urgent": len(await find_urgent_tickets(db)),
        "average_resolution_hours": await average_resolution_hours(db),
        "technicians": await users.count_technicians(db),
        "users": await users.count_users(db),
        "generated_at": utcnow().isoformat() + "Z",
    }
