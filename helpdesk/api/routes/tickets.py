# helpdesk/api/routes/tickets.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import Response

from ..deps import ActorDep, DBDep, http_error, require_staff
from helpdesk.core.errors import HelpdeskError
from helpdesk.core.logging import log_extra
from helpdesk.db.models import CategoryEnum
from helpdesk.schemas.tickets import TicketCreate, TicketUpdate, TicketOut
from helpdesk.services import reports
from helpdesk.services import tickets as svc

router = APIRouter()
log = logging.getLogger(__name__)


# --- queues / search (staff only: they expose every ticket) -------------------
# declared before /{ticket_id} so the static paths win

@router.get("/queues/open", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def open_queue(db: DBDep):
    return await reports.find_open_tickets(db)


@router.get("/queues/unassigned", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def unassigned_queue(db: DBDep):
    return await reports.find_unassigned_tickets(db)


@router.get("/queues/urgent", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def urgent_queue(db: DBDep):
    return await reports.find_urgent_tickets(db)


@router.get("/queues/recent", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def recent_queue(db: DBDep, days: Optional[int] = Query(default=None, ge=0)):
    return await reports.find_recent_tickets(db, days)


@router.get("/search", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def search(db: DBDep, q: str = Query(..., min_length=1)):
    return await reports.search_by_keyword(db, q)


@router.get("/category/{category}", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def by_category(category: CategoryEnum, db: DBDep):
    return await reports.find_by_category(db, category)


@router.get("/mine/assigned", response_model=list[TicketOut], dependencies=[Depends(require_staff())])
async def assigned_to_me(db: DBDep, current: ActorDep):
    return await svc.list_assigned_to_me(db, current)


# --- CRUD ---------------------------------------------------------------------

@router.get("", response_model=list[TicketOut])
async def list_tickets(db: DBDep, current: ActorDep):
    return await svc.list_tickets(db, current)


@router.post("", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreate, request: Request, db: DBDep, current: ActorDep):
    try:
        t = await svc.create_ticket(db, current, payload)
    except HelpdeskError as exc:
        raise http_error(exc) from exc
    log.info("ticket_created", extra={**log_extra(request), "ticket_id": t.id, "actor_id": current.id})
    return t


@router.get("/{ticket_id}", response_model=TicketOut)
async def get_ticket(ticket_id: int, db: DBDep, current: ActorDep):
    try:
        return await svc.get_ticket(db, current, ticket_id)
    except HelpdeskError as exc:
        raise http_error(exc) from exc


@router.patch("/{ticket_id}", response_model=TicketOut)
async def patch_ticket(ticket_id: int, payload: TicketUpdate, db: DBDep, current: ActorDep):
    try:
        return await svc.edit_ticket(db, current, ticket_id, payload)
    except HelpdeskError as exc:
        raise http_error(exc) from exc


@router.delete("/{ticket_id}", status_code=204)
async def delete_ticket(ticket_id: int, db: DBDep, current: ActorDep):
    try:
        await svc.delete_ticket(db, current, ticket_id)
    except HelpdeskError as exc:
        raise http_error(exc) from exc
    return Response(status_code=204)


# --- lifecycle ----------------------------------------------------------------

@router.post("/{ticket_id}/assign", response_model=TicketOut)
async def assign_ticket(ticket_id: int, db: DBDep, current: ActorDep):
    """The acting technician takes the ticket (status → in_progress)."""
    try:
        return await svc.assign_ticket(db, current, ticket_id)
    except HelpdeskError as exc:
        raise http_error(exc) from exc


@router.post("/{ticket_id}/status/{new_status}", response_model=TicketOut)
async def change_status(ticket_id: int, new_status: str, db: DBDep, current: ActorDep):
    try:
        return await svc.change_status(db, current, ticket_id, new_status)
    except HelpdeskError as exc:
        raise http_error(exc) from exc
