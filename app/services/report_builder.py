# app/services/report_builder.py
"""
Excel exports of tasks and users.
"""

import io
from typing import Dict, Iterable, List, Tuple

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

TASK_COLUMNS: List[Tuple[str, int]] = [
    ("Task ID", 12),
    ("Title", 30),
    ("Description", 50),
    ("Priority", 15),
    ("Status", 20),
    ("Due Date", 20),
    ("Assigned To", 35),
]

USER_COLUMNS: List[Tuple[str, int]] = [
    ("User Name", 30),
    ("Email", 40),
    ("Role", 12),
    ("Department", 20),
    ("Total Assigned Tasks", 22),
    ("Pending Tasks", 16),
    ("In Progress Tasks", 18),
    ("Completed Tasks", 18),
]

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="4F81BD", end_color="4F81BD", fill_type="solid")


def _new_sheet(title: str, columns: List[Tuple[str, int]]):
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = title
    sheet.append([header for header, _ in columns])
    for index, (_, width) in enumerate(columns, start=1):
        cell = sheet.cell(row=1, column=index)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        sheet.column_dimensions[cell.column_letter].width = width
    sheet.freeze_panes = "A2"
    return workbook, sheet


def _to_bytes(workbook: Workbook) -> bytes:
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _assignee_label(task) -> str:
    if not task.assignees:
        return "Unassigned"
    return ", ".join(f"{user.name} ({user.email})" for user in task.assignees)


def build_tasks_workbook(tasks: Iterable, title: str = "Tasks Report") -> bytes:
    workbook, sheet = _new_sheet(title, TASK_COLUMNS)
    for task in tasks:
        sheet.append([
            task.id,
            task.title,
            task.description or "-",
            task.priority.value if task.priority else "-",
            task.status.value if task.status else "-",
            task.due_date.date().isoformat() if task.due_date else "-",
            _assignee_label(task),
        ])
    return _to_bytes(workbook)


def build_users_workbook(users: Iterable, task_counts: Dict[int, dict], title: str = "Users Report") -> bytes:
    workbook, sheet = _new_sheet(title, USER_COLUMNS)
    for user in users:
        counts = task_counts.get(user.id, {})
        pending = counts.get("pending_tasks", 0)
        in_progress = counts.get("in_progress_tasks", 0)
        completed = counts.get("completed_tasks", 0)
        sheet.append([
            user.name,
            user.email,
            user.role.value,
            user.department.value if user.department else "-",
            pending + in_progress + completed,
            pending,
            in_progress,
            completed,
        ])
    return _to_bytes(workbook)
