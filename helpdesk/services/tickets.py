"""
Tickets service (business operations on tickets)

Every operation takes the session and the acting principal explicitly:
  1) load the ticket (NotFound comes before any permission check),
  2) ask the policy (Forbidden leaves the ticket untouched),
  3) validate input, mutate through the lifecycle module, commit.
Routers call these functions and only translate errors to HTTP.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import NotFound, ValidationError
from helpdesk.db.models import Ticket
from helpdesk.schemas.tickets import TicketCreate, TicketUpdate
from helpdesk.services import lifecycle, policy, reports
from helpdesk.services.policy import Actor

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _coerce(model: Type[M], fields: Union[M, Mapping[str, Any]]) -> M:
    if isinstance(fields, model):
        return fields
    try:
        return model.model_validate(fields)
    except SchemaError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(problems) from e


async def _load(db: AsyncSession, ticket_id: int) -> Ticket:
    t = await db.get(Ticket, ticket_id)
    if t is None:
        raise NotFound(f"Ticket {ticket_id} not found")
    return t


def _ensure(decision: policy.Decision, actor: Actor, action: str, ticket_id: int | None = None) -> None:
    if not decision:
        log.warning(
            "ticket_%s_denied", action,
            extra={"actor_id": actor.id, "ticket_id": ticket_id, "reason": decision.reason},
        )
    policy.ensure(decision)


async def list_tickets(db: AsyncSession, actor: Actor) -> Sequence[Ticket]:
    if policy.can_list_all(actor):
        return await reports.list_all(db)
    return await reports.list_by_creator(db, actor.id)


async def list_assigned_to_me(db: AsyncSession, actor: Actor) -> Sequence[Ticket]:
    return await reports.list_by_assignee(db, actor.id)


async def create_ticket(
    db: AsyncSession,
    actor: Actor,
    fields: Union[TicketCreate, Mapping[str, Any]],
) -> Ticket:
    _ensure(policy.can_create(actor), actor, "create")
    data = _coerce(TicketCreate, fields)
    t = Ticket(
        title=data.title,
        description=data.description,
        priority=data.priority,
        category=data.category,
        creator_id=actor.id,
    )
    db.add(t)
    await db.commit()
    await db.refresh(t)
    return t


async def get_ticket(db: AsyncSession, actor: Actor, ticket_id: int) -> Ticket:
    t = await _load(db, ticket_id)
    _ensure(policy.can_view(actor, t), actor, "view", ticket_id)
    return t


async def edit_ticket(
    db: AsyncSession,
    actor: Actor,
    ticket_id: int,
    fields: Union[TicketUpdate, Mapping[str, Any]],
) -> Ticket:
    t = await _load(db, ticket_id)
    _ensure(policy.can_edit(actor, t), actor, "edit", ticket_id)
    data = _coerce(TicketUpdate, fields)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return t
    for name, value in changes.items():
        setattr(t, name, value)
    lifecycle.touch(t)

    await db.commit()
    await db.refresh(t)
    log.info("ticket_edited", extra={"ticket_id": t.id, "actor_id": actor.id, "fields": sorted(changes)})
    return t


async def delete_ticket(db: AsyncSession, actor: Actor, ticket_id: int) -> None:
    t = await _load(db, ticket_id)
    _ensure(policy.can_delete(actor, t), actor, "delete", ticket_id)
    await db.delete(t)
    await db.commit()
    log.info("ticket_deleted", extra={"ticket_id": ticket_id, "actor_id": actor.id})


async def assign_ticket(db: AsyncSession, actor: Actor, ticket_id: int) -> Ticket:
    """The acting technician takes the ticket; status becomes in_progress."""
    t = await _load(db, ticket_id)
    _ensure(policy.can_assign(actor, t), actor, "assign", ticket_id)
    lifecycle.assign(t, actor.id)
    await db.commit()
    await db.refresh(t)
    log.info("ticket_assigned", extra={"ticket_id": t.id, "assignee_id": actor.id})
    return t


async def change_status(db: AsyncSession, actor: Actor, ticket_id: int, new_status: Any) -> Ticket:
    t = await _load(db, ticket_id)
    _ensure(policy.can_change_status(actor, t), actor, "status", ticket_id)
    old = lifecycle.change_status(t, new_status)
    await db.commit()
    await db.refresh(t)
    log.info(
        "status_changed",
        extra={
            "ticket_id": t.id,
            "actor_id": actor.id,
            "from": getattr(old, "value", str(old)),
            "to": t.status.value,
        },
    )
    return t


async def dashboard_stats(db: AsyncSession, actor: Actor) -> dict[str, Any]:
    _ensure(policy.can_view_dashboard(actor), actor, "dashboard")
    return await reports.dashboard_snapshot(db)
