# helpdesk/api/routes/users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..deps import ActorDep, DBDep, http_error, require_staff
from helpdesk.core.errors import HelpdeskError
from helpdesk.schemas.users import UserOut, UserRolesUpdate
from helpdesk.services import users as svc
from helpdesk.services.auth import serialize_user

router = APIRouter()


# ---------- TECHNICIAN / ADMIN ----------

@router.get("/technicians", response_model=list[UserOut], dependencies=[Depends(require_staff())])
async def list_technicians(db: DBDep):
    return [UserOut(**serialize_user(u)) for u in await svc.find_technicians(db)]


@router.get("/search", response_model=list[UserOut], dependencies=[Depends(require_staff())])
async def search_users(db: DBDep, q: str = Query(..., min_length=1, description="search by first/last name")):
    return [UserOut(**serialize_user(u)) for u in await svc.search_by_name(db, q)]


@router.get("/department/{department}", response_model=list[UserOut], dependencies=[Depends(require_staff())])
async def by_department(department: str, db: DBDep):
    return [UserOut(**serialize_user(u)) for u in await svc.find_by_department(db, department)]


# ---------- ADMIN ----------

@router.patch("/{user_id}/roles", response_model=UserOut)
async def set_roles(user_id: int, payload: UserRolesUpdate, db: DBDep, current: ActorDep):
    try:
        u = await svc.set_roles(db, current, user_id, payload.roles)
    except HelpdeskError as exc:
        raise http_error(exc) from exc
    return UserOut(**serialize_user(u))
