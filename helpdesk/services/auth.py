# helpdesk/services/auth.py
from __future__ import annotations
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.core.errors import Conflict
from helpdesk.core.security import verify_password, hash_password, create_access_token
from helpdesk.db.models import RoleEnum, User
from helpdesk.services.users import get_user_by_email


async def authenticate(db: AsyncSession, *, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


async def register_user(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    department: str | None = None,
    phone: str | None = None,
    roles: Iterable[RoleEnum] = (),
) -> User:
    """Create a user; the base role is always part of the role set."""
    email = email.strip().lower()
    if await get_user_by_email(db, email):
        raise Conflict("A user with this email already exists")
    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        department=department,
        phone=phone,
        is_active=True,
    )
    user.set_roles(roles)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent registration of the same email
        await db.rollback()
        raise Conflict("A user with this email already exists") from exc
    await db.refresh(user)
    return user


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "roles": sorted(r.value for r in user.role_set),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "department": user.department,
        "phone": user.phone,
        "is_active": user.is_active,
    }


def make_token_for_user(user: User) -> str:
    return create_access_token(
        subject=user.email,
        roles=[r.value for r in user.role_set],
        secret=settings.jwt_secret,
        expires_minutes=settings.jwt_expires_min,
        algorithm=settings.jwt_alg,
    )
