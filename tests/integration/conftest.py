"""Fixtures for API integration tests."""

from collections.abc import Callable
from typing import Any

import pytest
from httpx import AsyncClient

from infrastructure.auth.provider import TokenUser

API = "/api/v1"


class Seed:
    """Builds workspaces, projects and tasks through the public API."""

    def __init__(
        self, client: AsyncClient, headers_for: Callable[[TokenUser], dict[str, str]]
    ) -> None:
        self.client = client
        self.headers_for = headers_for

    async def touch(self, user: TokenUser) -> None:
        """Make one authenticated request so the user's profile exists."""
        response = await self.client.get(f"{API}/notifications/count", headers=self.headers_for(user))
        assert response.status_code == 200, response.text

    async def workspace(self, owner: TokenUser, name: str = "Acme") -> str:
        response = await self.client.post(
            f"{API}/workspaces", json={"name": name}, headers=self.headers_for(owner)
        )
        assert response.status_code == 201, response.text
        return str(response.json()["data"]["id"])

    async def add_to_workspace(
        self, workspace_id: str, by: TokenUser, user: TokenUser, role: str = "member"
    ) -> None:
        await self.touch(user)
        response = await self.client.post(
            f"{API}/workspaces/{workspace_id}/members",
            json={"user_id": str(user.id), "role": role},
            headers=self.headers_for(by),
        )
        assert response.status_code == 201, response.text

    async def project(self, workspace_id: str, owner: TokenUser, name: str = "Launch") -> str:
        response = await self.client.post(
            f"{API}/workspaces/{workspace_id}/projects",
            json={"name": name},
            headers=self.headers_for(owner),
        )
        assert response.status_code == 201, response.text
        return str(response.json()["data"]["id"])

    async def add_to_project(
        self, project_id: str, by: TokenUser, user: TokenUser, role: str = "member"
    ) -> None:
        response = await self.client.post(
            f"{API}/projects/{project_id}/members",
            json={"user_id": str(user.id), "role": role},
            headers=self.headers_for(by),
        )
        assert response.status_code == 201, response.text

    async def task(self, project_id: str, creator: TokenUser, **fields: Any) -> dict[str, Any]:
        response = await self.client.post(
            f"{API}/projects/{project_id}/tasks",
            json={"title": "Write copy", **fields},
            headers=self.headers_for(creator),
        )
        assert response.status_code == 201, response.text
        return dict(response.json()["data"])


@pytest.fixture
def seed(
    api_client: AsyncClient, headers_for: Callable[[TokenUser], dict[str, str]]
) -> Seed:
    return Seed(api_client, headers_for)


@pytest.fixture
async def team(seed: Seed, alice: TokenUser, bob: TokenUser) -> dict[str, Any]:
    """Alice owns a workspace and a project; Bob is a plain member of both
    and the assignee of Alice's task."""
    workspace_id = await seed.workspace(alice)
    await seed.add_to_workspace(workspace_id, alice, bob)
    project_id = await seed.project(workspace_id, alice)
    await seed.add_to_project(project_id, alice, bob)
    task = await seed.task(project_id, alice, assignee_ids=[str(bob.id)])
    return {"workspace_id": workspace_id, "project_id": project_id, "task_id": task["id"]}
