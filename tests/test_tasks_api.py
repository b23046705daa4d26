"""End-to-end tests for the task endpoints."""
from datetime import datetime, timedelta, timezone

import pytest

from tasktracker.services.notifications import NotificationKind


def _due_in(delta: timedelta) -> str:
    return (datetime.now(timezone.utc) + delta).isoformat()


class TestCreate:
    def test_defaults(self, api, member):
        task = api.create_task(member, title="  Write report  ")
        assert task["title"] == "Write report"
        assert task["priority"] == "medium"
        assert task["status"] == "pending"
        assert task["createdBy"] == member.id
        assert task["assignedTo"] is None
        assert task["dueDate"] is None

    def test_due_date_must_be_in_future(self, api, member):
        past = api.client.post(
            api.url("/tasks"),
            json={"title": "Late", "dueDate": _due_in(timedelta(seconds=-1))},
            headers=member.headers,
        )
        assert past.status_code == 400
        assert past.json()["kind"] == "ValidationFailure"
        assert past.json()["errors"][0]["field"] == "dueDate"

        future = api.client.post(
            api.url("/tasks"),
            json={"title": "On time", "dueDate": _due_in(timedelta(hours=1))},
            headers=member.headers,
        )
        assert future.status_code == 201

    @pytest.mark.parametrize(
        "body",
        [
            {"title": ""},
            {"title": "x" * 101},
            {"title": "ok", "description": "x" * 501},
            {"title": "ok", "priority": "urgent"},
            {"title": "ok", "status": "done"},
        ],
    )
    def test_invalid_fields(self, api, member, body):
        response = api.client.post(api.url("/tasks"), json=body, headers=member.headers)
        assert response.status_code == 400

    def test_requires_login(self, api):
        response = api.client.post(api.url("/tasks"), json={"title": "Anonymous"})
        assert response.status_code == 401


class TestRead:
    def test_manager_scope(self, api, manager, member, outsider):
        team_task = api.create_task(member, title="Team task")
        other_task = api.create_task(outsider, title="Other task")

        listed = api.client.get(api.url("/tasks"), headers=manager.headers).json()["data"]
        assert [task["id"] for task in listed["tasks"]] == [team_task["id"]]
        assert listed["pagination"]["total"] == 1

        response = api.client.get(api.url(f"/tasks/{other_task['id']}"), headers=manager.headers)
        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to access this task"

    def test_assignee_can_read(self, api, admin, member, outsider):
        task = api.create_task(outsider)
        api.assign(admin, task["id"], member.id)
        response = api.client.get(api.url(f"/tasks/{task['id']}"), headers=member.headers)
        assert response.status_code == 200

    def test_creator_and_assignee_are_embedded(self, api, admin, member, outsider):
        task = api.create_task(outsider)
        assert task["creator"] == {
            "id": outsider.id,
            "username": outsider.username,
            "email": outsider.email,
            "role": "user",
        }
        assert task["assignee"] is None

        api.assign(admin, task["id"], member.id)
        listed = api.client.get(api.url("/tasks"), headers=member.headers).json()["data"]["tasks"]
        assert listed[0]["assignee"]["username"] == member.username
        assigned = api.client.get(api.url("/tasks/assigned/me"), headers=member.headers).json()
        assert assigned["data"]["tasks"][0]["creator"]["username"] == outsider.username

    def test_deleted_principal_shows_as_null(self, api, admin, member, outsider):
        task = api.create_task(outsider)
        api.assign(admin, task["id"], member.id)
        api.client.delete(api.url(f"/users/{member.id}"), headers=admin.headers)

        response = api.client.get(api.url(f"/tasks/{task['id']}"), headers=admin.headers)
        fetched = response.json()["data"]["task"]
        assert fetched["assignedTo"] == member.id
        assert fetched["assignee"] is None
        assert fetched["creator"]["id"] == outsider.id

    def test_missing_task(self, api, member):
        response = api.client.get(api.url("/tasks/9999"), headers=member.headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Task not found"


class TestList:
    def test_pagination(self, api, member):
        for index in range(5):
            api.create_task(member, title=f"Task {index}")
        response = api.client.get(
            api.url("/tasks"), params={"page": 2, "limit": 2}, headers=member.headers
        )
        data = response.json()["data"]
        assert len(data["tasks"]) == 2
        assert data["pagination"] == {"total": 5, "page": 2, "limit": 2, "totalPages": 3}

    def test_filters(self, api, member):
        api.create_task(member, title="Low", priority="low")
        api.create_task(member, title="High done", priority="high", status="completed")
        response = api.client.get(
            api.url("/tasks"), params={"status": "completed"}, headers=member.headers
        )
        assert [task["title"] for task in response.json()["data"]["tasks"]] == ["High done"]

    def test_sort_by_priority(self, api, member):
        for priority in ("medium", "high", "low"):
            api.create_task(member, title=priority, priority=priority)
        response = api.client.get(
            api.url("/tasks"), params={"sortBy": "priority", "order": "desc"}, headers=member.headers
        )
        assert [task["priority"] for task in response.json()["data"]["tasks"]] == [
            "high", "medium", "low",
        ]

    @pytest.mark.parametrize(
        "params",
        [{"limit": 101}, {"limit": 0}, {"page": 0}, {"sortBy": "bogus"}, {"order": "up"}, {"status": "x"}],
    )
    def test_invalid_query(self, api, member, params):
        response = api.client.get(api.url("/tasks"), params=params, headers=member.headers)
        assert response.status_code == 400
        assert response.json()["kind"] == "ValidationFailure"


class TestUpdate:
    def test_partial_update_by_creator(self, api, member):
        task = api.create_task(member, title="Draft", description="first")
        response = api.client.put(
            api.url(f"/tasks/{task['id']}"), json={"status": "in-progress"}, headers=member.headers
        )
        assert response.status_code == 200
        updated = response.json()["data"]["task"]
        assert updated["status"] == "in-progress"
        assert updated["title"] == "Draft"
        assert updated["description"] == "first"
        assert datetime.fromisoformat(updated["updatedAt"]) >= datetime.fromisoformat(task["updatedAt"])

    def test_empty_and_null_fields_are_ignored(self, api, member):
        task = api.create_task(member, title="Keep me", description="keep")
        response = api.client.put(
            api.url(f"/tasks/{task['id']}"),
            json={"title": "", "description": None, "priority": "high"},
            headers=member.headers,
        )
        updated = response.json()["data"]["task"]
        assert updated["title"] == "Keep me"
        assert updated["description"] == "keep"
        assert updated["priority"] == "high"

    def test_update_never_touches_assignment(self, api, admin, member):
        task = api.create_task(member)
        api.assign(admin, task["id"], member.id)
        response = api.client.put(
            api.url(f"/tasks/{task['id']}"), json={"assignedTo": None}, headers=member.headers
        )
        assert response.json()["data"]["task"]["assignedTo"] == member.id

    def test_past_due_date_rejected(self, api, member):
        task = api.create_task(member)
        response = api.client.put(
            api.url(f"/tasks/{task['id']}"),
            json={"dueDate": _due_in(timedelta(minutes=-5))},
            headers=member.headers,
        )
        assert response.status_code == 400

    def test_assignee_cannot_update(self, api, admin, member, outsider):
        task = api.create_task(outsider)
        api.assign(admin, task["id"], member.id)
        response = api.client.put(
            api.url(f"/tasks/{task['id']}"), json={"title": "Mine now"}, headers=member.headers
        )
        assert response.status_code == 403

    def test_manager_updates_task_assigned_to_team(self, api, admin, manager, member, outsider):
        task = api.create_task(outsider)
        api.assign(admin, task["id"], member.id)
        response = api.client.put(
            api.url(f"/tasks/{task['id']}"), json={"status": "completed"}, headers=manager.headers
        )
        assert response.status_code == 200


class TestDelete:
    def test_creator_deletes(self, api, member):
        task = api.create_task(member)
        response = api.client.delete(api.url(f"/tasks/{task['id']}"), headers=member.headers)
        assert response.status_code == 200
        response = api.client.get(api.url(f"/tasks/{task['id']}"), headers=member.headers)
        assert response.status_code == 404

    def test_manager_deletes_team_created_task(self, api, manager, member):
        task = api.create_task(member)
        response = api.client.delete(api.url(f"/tasks/{task['id']}"), headers=manager.headers)
        assert response.status_code == 200

    def test_manager_cannot_delete_task_only_assigned_to_team(self, api, admin, manager, member, outsider):
        task = api.create_task(outsider)
        api.assign(admin, task["id"], member.id)
        response = api.client.delete(api.url(f"/tasks/{task['id']}"), headers=manager.headers)
        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to delete this task"

    def test_deleted_task_id_is_not_reused(self, api, member):
        task = api.create_task(member)
        api.client.delete(api.url(f"/tasks/{task['id']}"), headers=member.headers)
        assert api.create_task(member)["id"] != task["id"]

    def test_other_user_cannot_delete(self, api, member, outsider):
        task = api.create_task(member)
        response = api.client.delete(api.url(f"/tasks/{task['id']}"), headers=outsider.headers)
        assert response.status_code == 403


class TestAssign:
    def test_user_assigns_only_to_self(self, api, member, outsider):
        task = api.create_task(member)
        response = api.assign(member, task["id"], outsider.id)
        assert response.status_code == 403
        assert response.json()["message"] == "You can only assign tasks to yourself"

        response = api.assign(member, task["id"], member.id)
        assert response.status_code == 200
        assert response.json()["data"]["task"]["assignedTo"] == member.id

    def test_manager_assigns_team_member(self, api, manager, member, outsider, sink):
        task = api.create_task(manager, title="Team work")
        assert api.assign(manager, task["id"], outsider.id).status_code == 403

        response = api.assign(manager, task["id"], member.id)
        assert response.status_code == 200
        assert sink.sent == [
            (
                NotificationKind.TASK_ASSIGNED,
                {"email": member.email, "task_title": "Team work", "assigner": manager.username},
            )
        ]

    def test_missing_task_then_missing_user(self, api, admin, member):
        response = api.assign(admin, 9999, 9999)
        assert response.status_code == 404
        assert response.json()["message"] == "Task not found"

        task = api.create_task(member)
        response = api.assign(admin, task["id"], 9999)
        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_denied_assignment_sends_nothing(self, api, member, outsider, sink):
        task = api.create_task(member)
        api.assign(member, task["id"], outsider.id)
        assert sink.sent == []

    def test_snake_case_body_is_accepted(self, api, member):
        task = api.create_task(member)
        response = api.client.post(
            api.url(f"/tasks/{task['id']}/assign"), json={"user_id": member.id}, headers=member.headers
        )
        assert response.status_code == 200


class TestAssignedLists:
    def test_assigned_to_me(self, api, admin, member, outsider):
        mine = api.create_task(outsider, title="For member")
        api.create_task(outsider, title="Not assigned")
        api.assign(admin, mine["id"], member.id)

        data = api.client.get(api.url("/tasks/assigned/me"), headers=member.headers).json()["data"]
        assert data["count"] == 1
        assert data["tasks"][0]["id"] == mine["id"]

    def test_assigned_to_user_requires_manager(self, api, member):
        response = api.client.get(api.url(f"/tasks/assigned/user/{member.id}"), headers=member.headers)
        assert response.status_code == 403

    def test_assigned_to_user_is_limited_to_visible_tasks(self, api, admin, manager, member, outsider):
        task = api.create_task(outsider)
        api.assign(admin, task["id"], outsider.id)

        as_manager = api.client.get(
            api.url(f"/tasks/assigned/user/{outsider.id}"), headers=manager.headers
        )
        assert as_manager.json()["data"]["count"] == 0

        as_admin = api.client.get(
            api.url(f"/tasks/assigned/user/{outsider.id}"), headers=admin.headers
        )
        assert as_admin.json()["data"]["count"] == 1

    def test_assigned_to_unknown_user(self, api, admin):
        response = api.client.get(api.url("/tasks/assigned/user/9999"), headers=admin.headers)
        assert response.status_code == 404


class TestRouting:
    def test_unknown_route(self, api):
        response = api.client.get(api.url("/nothing-here"))
        assert response.status_code == 404
        assert response.json() == {"status": "error", "message": "Route not found", "kind": "NotFound"}

    def test_health(self, api):
        assert api.client.get("/health").json()["status"] == "success"
