import io

from openpyxl import load_workbook

from app.services.report_builder import TASK_COLUMNS, USER_COLUMNS, XLSX_MEDIA_TYPE
from tests.conftest import auth_headers


def read_rows(response):
    workbook = load_workbook(io.BytesIO(response.content))
    return [list(row) for row in workbook.active.iter_rows(values_only=True)]


def test_tasks_export(client, org, make_task):
    make_task(org["tech_vp"], [org["tech_member"], org["tech_head"]], title="Ship release")
    make_task(org["admin"], [], title="Nobody's job")
    make_task(org["finance_vp"], [org["finance_member"]], title="Audit")

    response = client.get("/reports/export/tasks", headers=auth_headers(org["admin"]))
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert response.headers["content-disposition"].startswith("attachment; filename=tasks_report_")

    rows = read_rows(response)
    assert rows[0] == [header for header, _ in TASK_COLUMNS]
    by_title = {row[1]: row for row in rows[1:]}
    assert set(by_title) == {"Ship release", "Nobody's job", "Audit"}
    assert by_title["Nobody's job"][6] == "Unassigned"
    tech = org["tech_member"]
    assert f"{tech.name} ({tech.email})" in by_title["Ship release"][6]


def test_tasks_export_is_scoped(client, org, make_task):
    make_task(org["tech_vp"], [org["tech_member"]], title="Ship release")
    make_task(org["finance_vp"], [org["finance_member"]], title="Audit")

    response = client.get("/reports/export/tasks", headers=auth_headers(org["finance_vp"]))
    assert "filename=finance-tasks_report_" in response.headers["content-disposition"]
    assert [row[1] for row in read_rows(response)[1:]] == ["Audit"]


def test_users_export(client, org, make_task):
    make_task(org["tech_vp"], [org["tech_member"]])
    response = client.get("/reports/export/users", headers=auth_headers(org["tech_head"]))
    assert response.status_code == 200

    rows = read_rows(response)
    assert rows[0] == [header for header, _ in USER_COLUMNS]
    by_email = {row[1]: row for row in rows[1:]}
    assert set(by_email) == {org[key].email for key in ("tech_vp", "tech_head", "tech_member")}
    assert by_email[org["tech_member"].email][4:] == [1, 1, 0, 0]


def test_member_cannot_export(client, org):
    assert client.get("/reports/export/tasks", headers=auth_headers(org["tech_member"])).status_code == 403
    assert client.get("/reports/export/users", headers=auth_headers(org["tech_member"])).status_code == 403
