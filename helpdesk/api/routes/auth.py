# helpdesk/api/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ..deps import ActorDep, DBDep, http_error
from helpdesk.core.config import settings
from helpdesk.core.errors import HelpdeskError, NotFound
from helpdesk.schemas.auth import LoginIn, RegisterIn, TokenOut
from helpdesk.schemas.users import UserOut
from helpdesk.services.auth import (
    authenticate,
    make_token_for_user,
    register_user,
    serialize_user,
)
from helpdesk.services.users import get_user

router = APIRouter()
log = logging.getLogger(__name__)


# ===== login / me =====

@router.post("/login", response_model=TokenOut)
async def login(payload: LoginIn, db: DBDep):
    user = await authenticate(db, email=payload.username, password=payload.password or "")
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return {
        "access_token": make_token_for_user(user),
        "token_type": "bearer",
        "user": UserOut(**serialize_user(user)),
    }


@router.get("/me", response_model=UserOut)
async def me(db: DBDep, current: ActorDep):
    try:
        user = await get_user(db, current.id)
    except NotFound as exc:
        raise http_error(exc) from exc
    return UserOut(**serialize_user(user))


# ===== register (plain user) =====

@router.post("/register", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, db: DBDep):
    if not settings.allow_self_signup:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Self sign-up is disabled")
    try:
        user = await register_user(
            db,
            email=payload.email,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            department=payload.department,
            phone=payload.phone,
        )
    except HelpdeskError as exc:
        raise http_error(exc) from exc
    log.info("user_registered", extra={"user_id": user.id})
    return {
        "access_token": make_token_for_user(user),
        "token_type": "bearer",
        "user": UserOut(**serialize_user(user)),
    }
