"""User directory lookups (technicians, departments, name search) and role management."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import Forbidden, NotFound
from helpdesk.db.models import RoleEnum, User
from helpdesk.services.policy import Actor

log = logging.getLogger(__name__)


def _has_role(role: RoleEnum):
    # roles is a JSON list; its text form contains the quoted value
    return cast(User.roles, String).like(f'%"{role.value}"%')


async def get_user(db: AsyncSession, user_id: int) -> User:
    u = await db.get(User, user_id)
    if u is None:
        raise NotFound(f"User {user_id} not found")
    return u


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email.strip().lower()))
    return res.scalar_one_or_none()


async def find_technicians(db: AsyncSession) -> Sequence[User]:
    """Users holding the technician or admin role, by last name."""
    stmt = (
        select(User)
        .where(or_(_has_role(RoleEnum.technician), _has_role(RoleEnum.admin)))
        .order_by(User.last_name.asc(), User.id.asc())
    )
    return (await db.execute(stmt)).scalars().all()


async def count_technicians(db: AsyncSession) -> int:
    stmt = select(func.count(User.id)).where(
        or_(_has_role(RoleEnum.technician), _has_role(RoleEnum.admin))
    )
    return int((await db.execute(stmt)).scalar_one())


async def count_users(db: AsyncSession) -> int:
    return int((await db.execute(select(func.count(User.id)))).scalar_one())


async def find_by_department(db: AsyncSession, department: str) -> Sequence[User]:
    stmt = (
        select(User)
        .where(User.department == department)
        .order_by(User.last_name.asc(), User.id.asc())
    )
    return (await db.execute(stmt)).scalars().all()


async def search_by_name(db: AsyncSession, term: str) -> Sequence[User]:
    like = f"%{term}%"
    stmt = (
        select(User)
        .where(or_(User.last_name.ilike(like), User.first_name.ilike(like)))
        .order_by(User.last_name.asc(), User.id.asc())
    )
    return (await db.execute(stmt)).scalars().all()


async def set_roles(
    db: AsyncSession,
    actor: Actor,
    user_id: int,
    roles: Iterable[RoleEnum | str],
) -> User:
    u = await get_user(db, user_id)
    if not actor.is_admin:
        raise Forbidden("Only administrators can change roles")
    u.set_roles(roles)
    await db.commit()
    await db.refresh(u)
    log.info("user_roles_changed", extra={"user_id": u.id, "actor_id": actor.id, "roles": u.roles})
    return u
