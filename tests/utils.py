from __future__ import annotations

from helpdesk.core.config import settings
from helpdesk.core.security import create_access_token
from helpdesk.db.models import User


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(
        subject=user.email,
        roles=[r.value for r in user.role_set],
        secret=settings.jwt_secret,
        algorithm=settings.jwt_alg,
    )
    return {"Authorization": f"Bearer {token}"}
