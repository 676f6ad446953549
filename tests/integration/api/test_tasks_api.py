"""Integration tests for the task, assignee and comment API."""

from uuid import uuid4

from tests.integration.conftest import API, Seed


class TestTasks:
    async def test_create_with_assignee_sets_mirror(self, api_client, headers_for, alice, bob, team):
        response = await api_client.get(
            f"{API}/tasks/{team['task_id']}", headers=headers_for(alice)
        )

        assert response.status_code == 200
        task = response.json()["data"]
        assert task["assignee_id"] == str(bob.id)
        assert task["creator_id"] == str(alice.id)
        assert task["status"] == "TODO"

    async def test_list_tasks(self, api_client, headers_for, bob, team):
        response = await api_client.get(
            f"{API}/projects/{team['project_id']}/tasks", headers=headers_for(bob)
        )

        assert response.status_code == 200
        assert response.json()["meta"]["total"] == 1

    async def test_member_cannot_create_for_someone_else(
        self, api_client, headers_for, alice, bob, team
    ):
        response = await api_client.post(
            f"{API}/projects/{team['project_id']}/tasks",
            json={"title": "Mine", "assignee_ids": [str(alice.id)]},
            headers=headers_for(bob),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"

    async def test_blank_title_is_400(self, api_client, auth_headers, team):
        response = await api_client.post(
            f"{API}/projects/{team['project_id']}/tasks",
            json={"title": ""},
            headers=auth_headers,
        )

        assert response.status_code == 400

    async def test_assignee_changes_status_but_cannot_edit(
        self, api_client, headers_for, bob, team
    ):
        task_url = f"{API}/tasks/{team['task_id']}"

        status_response = await api_client.patch(
            f"{task_url}/status", json={"status": "DONE"}, headers=headers_for(bob)
        )
        edit_response = await api_client.patch(
            task_url, json={"title": "Renamed"}, headers=headers_for(bob)
        )

        assert status_response.status_code == 200
        assert status_response.json()["data"]["completed_at"] is not None
        assert edit_response.status_code == 403

    async def test_delete_and_restore(self, api_client, headers_for, alice, bob, team):
        task_url = f"{API}/tasks/{team['task_id']}"

        assert (await api_client.delete(task_url, headers=headers_for(alice))).status_code == 204
        assert (await api_client.get(task_url, headers=headers_for(bob))).status_code == 404

        response = await api_client.post(f"{task_url}/restore", headers=headers_for(alice))

        assert response.status_code == 200
        assert response.json()["data"]["deleted_at"] is None

    async def test_unknown_task_is_404(self, api_client, auth_headers):
        response = await api_client.get(f"{API}/tasks/{uuid4()}", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error_code"] == "TASK_NOT_FOUND"


class TestAssignees:
    async def test_list_includes_user_details(self, api_client, headers_for, alice, bob, team):
        response = await api_client.get(
            f"{API}/tasks/{team['task_id']}/assignees", headers=headers_for(alice)
        )

        assert response.status_code == 200
        (assignee,) = response.json()["assignees"]
        assert assignee["userId"] == str(bob.id)
        assert assignee["assignedBy"] == str(alice.id)
        assert assignee["user"]["displayName"] == "Bob"
        assert assignee["assigner"]["email"] == "alice@example.com"

    async def test_reassigning_is_idempotent(self, api_client, headers_for, alice, bob, team):
        response = await api_client.post(
            f"{API}/tasks/{team['task_id']}/assignees",
            json={"userIds": [str(bob.id)]},
            headers=headers_for(alice),
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "All users are already assigned to this task",
            "assignments": [],
        }

    async def test_member_may_assign_only_self(
        self, seed: Seed, api_client, headers_for, alice, bob, carol, team
    ):
        await seed.add_to_workspace(team["workspace_id"], alice, carol)
        url = f"{API}/tasks/{team['task_id']}/assignees"

        others = await api_client.post(
            url, json={"userIds": [str(carol.id)]}, headers=headers_for(bob)
        )
        self_assign = await api_client.post(
            url, json={"userIds": [str(carol.id)]}, headers=headers_for(carol)
        )

        assert others.status_code == 403
        assert self_assign.status_code == 200
        assert self_assign.json()["message"] == "Assigned 1 user(s) to task"

    async def test_outsider_assignee_is_400(self, seed: Seed, api_client, headers_for, alice, dave, team):
        await seed.touch(dave)

        response = await api_client.post(
            f"{API}/tasks/{team['task_id']}/assignees",
            json={"userIds": [str(dave.id)]},
            headers=headers_for(alice),
        )

        assert response.status_code == 400

    async def test_empty_user_ids_is_400(self, api_client, headers_for, alice, team):
        response = await api_client.post(
            f"{API}/tasks/{team['task_id']}/assignees",
            json={"userIds": []},
            headers=headers_for(alice),
        )

        assert response.status_code == 400

    async def test_unassign_recomputes_mirror(self, api_client, headers_for, alice, bob, team):
        response = await api_client.request(
            "DELETE",
            f"{API}/tasks/{team['task_id']}/assignees",
            json={"userIds": [str(bob.id)]},
            headers=headers_for(bob),
        )

        assert response.status_code == 200
        assert response.json()["removedCount"] == 1
        task = (
            await api_client.get(f"{API}/tasks/{team['task_id']}", headers=headers_for(alice))
        ).json()["data"]
        assert task["assignee_id"] is None


class TestComments:
    async def test_assignee_comments(self, api_client, headers_for, bob, team):
        url = f"{API}/tasks/{team['task_id']}/comments"

        created = await api_client.post(url, json={"content": "On it"}, headers=headers_for(bob))
        listed = await api_client.get(url, headers=headers_for(bob))

        assert created.status_code == 201
        assert created.json()["author_name"] == "Bob"
        assert [c["content"] for c in listed.json()["data"]] == ["On it"]

    async def test_plain_member_cannot_comment(
        self, seed: Seed, api_client, headers_for, alice, carol, team
    ):
        await seed.add_to_workspace(team["workspace_id"], alice, carol)
        await seed.add_to_project(team["project_id"], alice, carol)

        response = await api_client.post(
            f"{API}/tasks/{team['task_id']}/comments",
            json={"content": "Hi"},
            headers=headers_for(carol),
        )

        assert response.status_code == 403

    async def test_comment_notifies_creator(
        self, api_client, headers_for, services, alice, bob, team
    ):
        await api_client.post(
            f"{API}/tasks/{team['task_id']}/comments",
            json={"content": "Question"},
            headers=headers_for(bob),
        )
        await services["notification"].dispatch_pending()

        response = await api_client.get(f"{API}/notifications", headers=headers_for(alice))

        types = [n["type"] for n in response.json()["notifications"]]
        assert "COMMENT_ADDED" in types
