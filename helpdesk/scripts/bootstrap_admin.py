"""
Seed the administrator (and optionally a demo technician).

Idempotent: existing users get their role set/active flag fixed,
their password is never touched.

    python -m helpdesk.scripts.bootstrap_admin admin@corp.local 'S3cret!' --no-demo-technician
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.core.logging import setup_logging
from helpdesk.core.security import hash_password
from helpdesk.db.models import RoleEnum, User
from helpdesk.db.session import get_engine, get_session_factory
from helpdesk.services.users import get_user_by_email

log = logging.getLogger("helpdesk.bootstrap")


async def ensure_user(
    db: AsyncSession,
    *,
    email: str,
    roles: Iterable[RoleEnum],
    password_plain: str,
    first_name: str,
    last_name: str,
) -> User:
    """
    Creates the user when missing; otherwise makes sure the role set
    contains `roles` and the account is active.
    """
    email = email.strip().lower()
    wanted = set(roles)
    user = await get_user_by_email(db, email)

    if user is None:
        user = User(
            email=email,
            password_hash=hash_password(password_plain),
            first_name=first_name,
            last_name=last_name,
            is_active=True,
        )
        user.set_roles(wanted)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        log.info("bootstrap_user_created", extra={"email": email, "roles": user.roles})
        return user

    updated = False
    if not wanted <= user.role_set:
        user.set_roles(user.role_set | wanted)
        updated = True
    if not user.is_active:
        user.is_active = True
        updated = True

    if updated:
        await db.commit()
        await db.refresh(user)
        log.info("bootstrap_user_updated", extra={"email": email, "roles": user.roles})
    else:
        log.info("bootstrap_user_unchanged", extra={"email": email})
    return user


async def seed(
    db: AsyncSession,
    *,
    admin_email: str,
    admin_password: str,
    make_demo_technician: bool,
) -> None:
    await ensure_user(
        db,
        email=admin_email,
        roles={RoleEnum.admin},
        password_plain=admin_password,
        first_name=settings.admin_first_name,
        last_name=settings.admin_last_name,
    )
    if make_demo_technician:
        await ensure_user(
            db,
            email=settings.technician_email,
            roles={RoleEnum.technician},
            password_plain=settings.technician_password,
            first_name="Demo",
            last_name="Technician",
        )


async def _run(*, admin_email: str, admin_password: str, make_demo_technician: bool) -> None:
    async with get_session_factory()() as db:
        await seed(
            db,
            admin_email=admin_email,
            admin_password=admin_password,
            make_demo_technician=make_demo_technician,
        )
    await get_engine().dispose()


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed admin and demo technician")
    p.add_argument("email", nargs="?", default=settings.admin_email, help="Administrator email")
    p.add_argument("password", nargs="?", default=settings.admin_password, help="Administrator password")

    p.add_argument("--demo-technician", dest="demo_technician", action="store_true", help="Create demo technician")
    p.add_argument("--no-demo-technician", dest="demo_technician", action="store_false", help="Skip demo technician")
    p.set_defaults(demo_technician=settings.create_demo_technician)

    return p.parse_args()


def main() -> None:
    args = _parse_args()
    setup_logging(settings.log_level, json_format=settings.log_json)

    if not args.email:
        raise SystemExit("Error: administrator email is missing (argument or ADMIN_EMAIL in .env)")
    if not args.password:
        raise SystemExit("Error: administrator password is missing (argument or ADMIN_PASSWORD in .env)")

    asyncio.run(
        _run(
            admin_email=args.email,
            admin_password=args.password,
            make_demo_technician=args.demo_technician,
        )
    )


if __name__ == "__main__":
    main()
