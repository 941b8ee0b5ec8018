from __future__ import annotations

from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.db.session import get_session
from helpdesk.core.config import settings
from helpdesk.core.errors import Conflict, Forbidden, HelpdeskError, NotFound, ValidationError
from helpdesk.core.security import decode_token
from helpdesk.services.policy import Actor
from helpdesk.services.users import get_user_by_email

# the app mounts everything under /api, so the full path goes here
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

# DI type for the DB session
DBDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_actor(
    db: DBDep,
    token: Annotated[str, Depends(oauth2_scheme)]
) -> Actor:
    """
    Decodes the Bearer JWT, loads the user and checks it is active.
    Roles come from the stored user, not from the token.
    """
    try:
        payload = decode_token(token, settings.jwt_secret, settings.jwt_alg)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user = await get_user_by_email(db, payload["sub"])
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User inactive or not found")
    return Actor.from_user(user)


ActorDep = Annotated[Actor, Depends(get_current_actor)]


def require_staff():
    """
    Only technicians and administrators.
    Example: @router.get(..., dependencies=[Depends(require_staff())])
    """

    async def _guard(current: ActorDep) -> Actor:
        if not current.is_staff:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return current

    return _guard


_STATUS_BY_ERROR: dict[type[HelpdeskError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    Conflict: status.HTTP_409_CONFLICT,
}


def http_error(exc: HelpdeskError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    return HTTPException(status_code=code, detail=exc.message)
