"""
Access-control policy for tickets.

Pure functions: (actor, ticket) -> Decision. Nothing here touches the session,
so the rules can be checked in isolation. Operations call ensure() to turn a
denial into Forbidden.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from helpdesk.core.errors import Forbidden
from helpdesk.db.models import STAFF_ROLES, RoleEnum, Ticket, TicketStatusEnum, User


@dataclass(frozen=True)
class Actor:
    """Already-authenticated principal: identity + role set."""

    id: int
    email: str
    roles: frozenset[RoleEnum] = field(default_factory=lambda: frozenset({RoleEnum.user}))

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", frozenset(self.roles) | {RoleEnum.user})

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, email=user.email, roles=user.role_set)

    @classmethod
    def of(cls, id: int, email: str, roles: Iterable[RoleEnum | str] = ()) -> "Actor":
        return cls(id=id, email=email, roles=frozenset(RoleEnum(r) for r in roles))

    @property
    def is_staff(self) -> bool:
        return bool(self.roles & STAFF_ROLES)

    @property
    def is_admin(self) -> bool:
        return RoleEnum.admin in self.roles

    def owns(self, ticket: Ticket) -> bool:
        return ticket.creator_id == self.id


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(False, reason)

    def __bool__(self) -> bool:
        return self.allowed


def ensure(decision: Decision) -> None:
    if not decision.allowed:
        raise Forbidden(decision.reason)


def can_list_all(actor: Actor) -> bool:
    """Staff list every ticket; everyone else only their own."""
    return actor.is_staff


def can_view(actor: Actor, ticket: Ticket) -> Decision:
    if actor.owns(ticket) or actor.is_staff:
        return Decision.allow()
    return Decision.deny("You do not have access to this ticket")


def can_create(actor: Actor) -> Decision:
    # any authenticated actor; the creator is forced to the actor by the caller
    return Decision.allow()


def can_edit(actor: Actor, ticket: Ticket) -> Decision:
    if actor.is_staff:
        return Decision.allow()
    if not actor.owns(ticket):
        return Decision.deny("You cannot edit this ticket")
    if ticket.status != TicketStatusEnum.open:
        return Decision.deny("You cannot edit a ticket that is no longer open")
    return Decision.allow()


def can_delete(actor: Actor, ticket: Ticket) -> Decision:
    if actor.is_admin:
        return Decision.allow()
    return Decision.deny("Only administrators can delete tickets")


def can_assign(actor: Actor, ticket: Ticket) -> Decision:
    if actor.is_staff:
        return Decision.allow()
    return Decision.deny("Only technicians can take tickets")


def can_change_status(actor: Actor, ticket: Ticket) -> Decision:
    if actor.is_staff:
        return Decision.allow()
    return Decision.deny("Only technicians can change ticket status")


def can_view_dashboard(actor: Actor) -> Decision:
    if actor.is_staff:
        return Decision.allow()
    return Decision.deny("Dashboard is available to technicians and administrators")
