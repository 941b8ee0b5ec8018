# helpdesk/schemas/users.py
from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict

from helpdesk.db.models import RoleEnum


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    email: str
    roles: list[str]
    first_name: str
    last_name: str
    department: str | None = None
    phone: str | None = None
    is_active: bool | None = None


class UserRolesUpdate(BaseModel):
    # the base role is always added back, even if omitted here
    roles: list[RoleEnum] = Field(default_factory=list)
