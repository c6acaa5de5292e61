from datetime import timedelta

from app.models.task import Task
from app.models.user import Department
from app.utils.dates import utcnow
from tests.conftest import auth_headers


def task_payload(assigned_to, **overrides):
    payload = {
        "title": "Prepare invoice",
        "description": "Quarterly invoice run",
        "priority": "High",
        "dueDate": (utcnow() + timedelta(days=3)).isoformat(),
        "assignedTo": assigned_to,
        "todoChecklist": [
            {"text": "Collect numbers", "completed": False},
            {"text": "Write summary", "completed": False},
        ],
        "attachments": ["https://files.acme.org/invoice.xlsx"],
    }
    payload.update(overrides)
    return payload


class TestCreateTask:
    def test_vp_creates_task_in_department(self, client, org):
        member = org["tech_member"]
        response = client.post("/tasks", json=task_payload([member.id]), headers=auth_headers(org["tech_vp"]))
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Task created successfully"
        task = body["task"]
        assert task["status"] == "Pending"
        assert task["progress"] == 0
        assert task["assignedTo"] == [member.id]
        assert task["assignees"][0]["email"] == member.email
        assert task["createdBy"] == org["tech_vp"].id
        assert task["department"] == "TECH"
        assert [item["text"] for item in task["todoChecklist"]] == ["Collect numbers", "Write summary"]

    def test_admin_task_has_no_department(self, client, org):
        payload = task_payload([org["tech_member"].id, org["finance_member"].id])
        response = client.post("/tasks", json=payload, headers=auth_headers(org["admin"]))
        assert response.status_code == 201
        assert response.json()["task"]["department"] is None

    def test_unauthenticated_request_creates_nothing(self, client, org, db_session):
        response = client.post("/tasks", json=task_payload([org["tech_member"].id]))
        assert response.status_code == 401
        assert response.json() == {"message": "Not authorized, no token"}
        assert db_session.query(Task).count() == 0

    def test_garbage_token_is_rejected(self, client, org):
        headers = {"Authorization": "Bearer not-a-jwt"}
        response = client.post("/tasks", json=task_payload([org["tech_member"].id]), headers=headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Token failed"

    def test_member_cannot_create(self, client, org):
        member = org["tech_member"]
        response = client.post("/tasks", json=task_payload([member.id]), headers=auth_headers(member))
        assert response.status_code == 403
        assert response.json()["message"] == "User role member is not authorized"

    def test_vp_cannot_assign_outside_department(self, client, org, db_session):
        payload = task_payload([org["tech_member"].id])
        response = client.post("/tasks", json=payload, headers=auth_headers(org["finance_vp"]))
        assert response.status_code == 403
        assert "outside your department" in response.json()["message"]
        assert db_session.query(Task).count() == 0

    def test_assigned_to_must_be_a_list(self, client, org):
        payload = task_payload(org["tech_member"].id)
        response = client.post("/tasks", json=payload, headers=auth_headers(org["admin"]))
        assert response.status_code == 400
        assert response.json()["message"] == "assignedTo must be an array of user IDs"

    def test_unknown_assignee(self, client, org):
        response = client.post("/tasks", json=task_payload([9999]), headers=auth_headers(org["admin"]))
        assert response.status_code == 400
        assert response.json()["message"] == "Assigned user not found: 9999"

    def test_snake_case_payload_is_accepted(self, client, org):
        payload = task_payload([], dueDate=None)
        payload.pop("dueDate")
        payload["due_date"] = (utcnow() + timedelta(days=1)).isoformat()
        response = client.post("/tasks", json=payload, headers=auth_headers(org["admin"]))
        assert response.status_code == 201


class TestReadTasks:
    def test_list_is_scoped_with_status_summary(self, client, org, make_task):
        make_task(org["tech_vp"], [org["tech_member"]], title="a", checklist=[("x", True), ("y", False)])
        make_task(org["finance_vp"], [org["finance_member"]], title="b")
        make_task(org["admin"], [org["tech_member"]], title="c")

        response = client.get("/tasks", headers=auth_headers(org["tech_member"]))
        assert response.status_code == 200
        body = response.json()
        assert sorted(task["title"] for task in body["tasks"]) == ["a", "c"]
        assert body["statusSummary"] == {"all": 2, "pending": 2, "inProgress": 0, "completed": 0}
        by_title = {task["title"]: task for task in body["tasks"]}
        assert by_title["a"]["completedTodoCount"] == 1

    def test_status_filter_keeps_full_summary(self, client, org, make_task):
        done = make_task(org["admin"], [org["tech_member"]], title="done")
        make_task(org["admin"], [org["tech_member"]], title="open")
        client.put(f"/tasks/{done.id}/status", json={"status": "Completed"}, headers=auth_headers(org["admin"]))

        response = client.get("/tasks", params={"status": "Completed"}, headers=auth_headers(org["admin"]))
        body = response.json()
        assert [task["title"] for task in body["tasks"]] == ["done"]
        assert body["statusSummary"]["all"] == 2
        assert body["statusSummary"]["completed"] == 1

    def test_get_task_outside_scope_is_forbidden(self, client, org, make_task):
        task = make_task(org["finance_vp"], [org["finance_member"]])
        response = client.get(f"/tasks/{task.id}", headers=auth_headers(org["tech_member"]))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to view this task"

    def test_get_missing_task(self, client, org):
        response = client.get("/tasks/424242", headers=auth_headers(org["admin"]))
        assert response.status_code == 404
        assert response.json() == {"message": "Task not found"}


class TestUpdateTask:
    def test_assignee_updates_checklist(self, client, org, make_task):
        task = make_task(org["tech_vp"], [org["tech_member"]], checklist=[("a", False), ("b", False)])
        checklist = {"todoChecklist": [{"text": "a", "completed": True}, {"text": "b", "completed": False}]}
        response = client.put(f"/tasks/{task.id}/todo", json=checklist, headers=auth_headers(org["tech_member"]))
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Task checklist updated"
        assert body["task"]["progress"] == 50
        assert body["task"]["status"] == "In Progress"

    def test_empty_checklist_resets_to_pending(self, client, org, make_task):
        task = make_task(org["admin"], [org["tech_member"]], checklist=[("a", True)])
        response = client.put(f"/tasks/{task.id}/todo", json={"todoChecklist": []}, headers=auth_headers(org["admin"]))
        assert response.json()["task"]["progress"] == 0
        assert response.json()["task"]["status"] == "Pending"

    def test_completing_checks_every_item(self, client, org, make_task):
        task = make_task(org["tech_vp"], [org["tech_member"]], checklist=[("a", False), ("b", False)])
        response = client.put(
            f"/tasks/{task.id}/status", json={"status": "Completed"}, headers=auth_headers(org["tech_member"])
        )
        assert response.status_code == 200
        body = response.json()["task"]
        assert body["progress"] == 100
        assert all(item["completed"] for item in body["todoChecklist"])

    def test_invalid_status_value(self, client, org, make_task):
        task = make_task(org["admin"], [org["tech_member"]])
        response = client.put(f"/tasks/{task.id}/status", json={"status": "Archived"}, headers=auth_headers(org["admin"]))
        assert response.status_code == 400

    def test_outsider_cannot_change_status(self, client, org, make_task):
        task = make_task(org["tech_vp"], [org["tech_member"]])
        response = client.put(
            f"/tasks/{task.id}/status", json={"status": "Completed"}, headers=auth_headers(org["finance_member"])
        )
        assert response.status_code == 403

    def test_update_details_and_reassign(self, client, org, make_task, db_session):
        task = make_task(org["tech_vp"], [org["tech_member"]])
        payload = {"title": "Renamed", "priority": "Low", "assignedTo": [org["tech_head"].id]}
        response = client.put(f"/tasks/{task.id}", json=payload, headers=auth_headers(org["tech_vp"]))
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Task updated successfully"
        assert body["task"]["title"] == "Renamed"
        assert body["task"]["priority"] == "Low"
        assert body["task"]["assignedTo"] == [org["tech_head"].id]

    def test_update_cannot_reassign_outside_department(self, client, org, make_task):
        task = make_task(org["tech_vp"], [org["tech_member"]])
        payload = {"assignedTo": [org["finance_member"].id]}
        response = client.put(f"/tasks/{task.id}", json=payload, headers=auth_headers(org["tech_head"]))
        assert response.status_code == 403

    def test_update_with_checklist_recomputes_progress(self, client, org, make_task):
        task = make_task(org["admin"], [org["tech_member"]])
        payload = {"todoChecklist": [{"text": "only", "completed": True}]}
        response = client.put(f"/tasks/{task.id}", json=payload, headers=auth_headers(org["admin"]))
        assert response.json()["task"]["status"] == "Completed"
        assert response.json()["task"]["progress"] == 100


class TestDeleteTask:
    def test_admin_deletes(self, client, org, make_task, db_session):
        task = make_task(org["tech_vp"], [org["tech_member"]], checklist=[("a", False)])
        response = client.delete(f"/tasks/{task.id}", headers=auth_headers(org["admin"]))
        assert response.status_code == 200
        assert response.json() == {"message": "Task deleted successfully"}
        db_session.expire_all()
        assert db_session.query(Task).count() == 0

    def test_member_cannot_delete(self, client, org, make_task):
        task = make_task(org["tech_vp"], [org["tech_member"]])
        response = client.delete(f"/tasks/{task.id}", headers=auth_headers(org["tech_member"]))
        assert response.status_code == 403

    def test_vp_cannot_delete_other_departments_task(self, client, org, make_task):
        task = make_task(org["finance_vp"], [org["tech_member"]], department=Department.FINANCE)
        response = client.delete(f"/tasks/{task.id}", headers=auth_headers(org["tech_vp"]))
        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to delete this task"

    def test_delete_missing_task(self, client, org):
        response = client.delete("/tasks/31337", headers=auth_headers(org["tech_head"]))
        assert response.status_code == 404
