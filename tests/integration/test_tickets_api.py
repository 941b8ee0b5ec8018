"""Integration tests for the ticket endpoints."""

from __future__ import annotations

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from helpdesk.db.models import Ticket, User
from tests.utils import auth_headers

NEW_TICKET = {
    "title": "Laptop will not boot",
    "description": "Black screen after the update",
    "category": "hardware",
}


async def _create(client: AsyncClient, owner: User, **overrides) -> dict:
    response = await client.post("/api/tickets", json={**NEW_TICKET, **overrides}, headers=auth_headers(owner))
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


class TestCreateAndRead:
    async def test_create_defaults(self, client: AsyncClient, user: User) -> None:
        data = await _create(client, user)

        assert data["status"] == "open"
        assert data["priority"] == "normal"
        assert data["creator_id"] == user.id
        assert data["assignee_id"] is None
        assert data["resolved_at"] is None

    async def test_request_id_is_echoed(self, client: AsyncClient, user: User) -> None:
        response = await client.get(
            "/api/tickets", headers={**auth_headers(user), "X-Request-ID": "req-123"}
        )
        assert response.headers["X-Request-ID"] == "req-123"

    async def test_invalid_category(self, client: AsyncClient, user: User) -> None:
        response = await client.post(
            "/api/tickets", json={**NEW_TICKET, "category": "coffee"}, headers=auth_headers(user)
        )
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    async def test_requires_authentication(self, client: AsyncClient) -> None:
        response = await client.get("/api/tickets")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/tickets", headers={"Authorization": "Bearer nope"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_list_scoping(
        self, client: AsyncClient, user: User, other_user: User, technician: User
    ) -> None:
        mine = await _create(client, user)
        await _create(client, other_user)

        own = (await client.get("/api/tickets", headers=auth_headers(user))).json()
        everything = (await client.get("/api/tickets", headers=auth_headers(technician))).json()

        assert [t["id"] for t in own] == [mine["id"]]
        assert len(everything) == 2

    async def test_view_rules(self, client: AsyncClient, user: User, other_user: User) -> None:
        ticket = await _create(client, user)

        ok = await client.get(f"/api/tickets/{ticket['id']}", headers=auth_headers(user))
        denied = await client.get(f"/api/tickets/{ticket['id']}", headers=auth_headers(other_user))
        missing = await client.get("/api/tickets/9999", headers=auth_headers(other_user))

        assert ok.status_code == status.HTTP_200_OK
        assert denied.status_code == status.HTTP_403_FORBIDDEN
        assert missing.status_code == status.HTTP_404_NOT_FOUND


class TestEdit:
    async def test_creator_edit_then_locked(self, client: AsyncClient, user: User, technician: User) -> None:
        ticket = await _create(client, user)
        url = f"/api/tickets/{ticket['id']}"

        edited = await client.patch(url, json={"priority": "high"}, headers=auth_headers(user))
        assert edited.status_code == status.HTTP_200_OK
        assert edited.json()["priority"] == "high"
        assert edited.json()["updated_at"] is not None

        await client.post(f"{url}/assign", headers=auth_headers(technician))

        locked = await client.patch(url, json={"title": "again"}, headers=auth_headers(user))
        assert locked.status_code == status.HTTP_403_FORBIDDEN
        assert "open" in locked.json()["detail"]

        staff = await client.patch(url, json={"title": "again"}, headers=auth_headers(technician))
        assert staff.status_code == status.HTTP_200_OK
        assert staff.json()["title"] == "again"


class TestDelete:
    async def test_user_delete_forbidden(
        self, client: AsyncClient, session_factory: async_sessionmaker[AsyncSession], user: User
    ) -> None:
        ticket = await _create(client, user)

        response = await client.delete(f"/api/tickets/{ticket['id']}", headers=auth_headers(user))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        async with session_factory() as fresh:
            assert await fresh.get(Ticket, ticket["id"]) is not None

    async def test_admin_delete(self, client: AsyncClient, user: User, admin: User) -> None:
        ticket = await _create(client, user)
        url = f"/api/tickets/{ticket['id']}"

        response = await client.delete(url, headers=auth_headers(admin))
        assert response.status_code == status.HTTP_204_NO_CONTENT

        gone = await client.get(url, headers=auth_headers(admin))
        assert gone.status_code == status.HTTP_404_NOT_FOUND


class TestLifecycle:
    async def test_assign_then_resolve_then_close(
        self, client: AsyncClient, user: User, technician: User
    ) -> None:
        ticket = await _create(client, user)
        url = f"/api/tickets/{ticket['id']}"
        headers = auth_headers(technician)

        assigned = (await client.post(f"{url}/assign", headers=headers)).json()
        assert assigned["status"] == "in_progress"
        assert assigned["assignee_id"] == technician.id
        assert assigned["updated_at"] is not None
        assert assigned["resolved_at"] is None

        resolved = (await client.post(f"{url}/status/resolved", headers=headers)).json()
        assert resolved["resolved_at"] is not None

        closed = (await client.post(f"{url}/status/closed", headers=headers)).json()
        assert closed["status"] == "closed"
        assert closed["resolved_at"] == resolved["resolved_at"]

        reopened = (await client.post(f"{url}/status/open", headers=headers)).json()
        assert reopened["status"] == "open"
        assert reopened["resolved_at"] == resolved["resolved_at"]

    async def test_bogus_status(self, client: AsyncClient, user: User, technician: User) -> None:
        ticket = await _create(client, user)
        url = f"/api/tickets/{ticket['id']}"

        response = await client.post(f"{url}/status/bogus", headers=auth_headers(technician))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert "bogus" in response.json()["detail"]
        current = (await client.get(url, headers=auth_headers(technician))).json()
        assert current["status"] == "open"

    @pytest.mark.parametrize("action", ["assign", "status/closed"])
    async def test_user_cannot_drive_lifecycle(self, client: AsyncClient, user: User, action: str) -> None:
        ticket = await _create(client, user)
        response = await client.post(f"/api/tickets/{ticket['id']}/{action}", headers=auth_headers(user))
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestQueues:
    async def test_queues_are_staff_only(self, client: AsyncClient, user: User) -> None:
        for path in ["queues/open", "queues/unassigned", "queues/urgent", "queues/recent",
                     "search?q=x", "category/network", "mine/assigned"]:
            response = await client.get(f"/api/tickets/{path}", headers=auth_headers(user))
            assert response.status_code == status.HTTP_403_FORBIDDEN, path

    async def test_queues_for_technician(self, client: AsyncClient, user: User, technician: User) -> None:
        urgent = await _create(client, user, priority="urgent", title="Server room flooded")
        normal = await _create(client, user, category="network")
        headers = auth_headers(technician)

        await client.post(f"/api/tickets/{normal['id']}/assign", headers=headers)

        open_ids = [t["id"] for t in (await client.get("/api/tickets/queues/open", headers=headers)).json()]
        unassigned = (await client.get("/api/tickets/queues/unassigned", headers=headers)).json()
        urgent_q = (await client.get("/api/tickets/queues/urgent", headers=headers)).json()
        found = (await client.get("/api/tickets/search", params={"q": "FLOODED"}, headers=headers)).json()
        network = (await client.get("/api/tickets/category/network", headers=headers)).json()
        recent = (await client.get("/api/tickets/queues/recent", params={"days": 1}, headers=headers)).json()
        mine = (await client.get("/api/tickets/mine/assigned", headers=headers)).json()

        assert open_ids == [urgent["id"], normal["id"]]
        assert [t["id"] for t in unassigned] == [urgent["id"]]
        assert [t["id"] for t in urgent_q] == [urgent["id"]]
        assert [t["id"] for t in found] == [urgent["id"]]
        assert [t["id"] for t in network] == [normal["id"]]
        assert len(recent) == 2
        assert [t["id"] for t in mine] == [normal["id"]]

    async def test_unknown_category(self, client: AsyncClient, technician: User) -> None:
        response = await client.get("/api/tickets/category/plumbing", headers=auth_headers(technician))
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
