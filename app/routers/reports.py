# app/routers/reports.py
import io
import logging
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import InternalError
from app.models.task import Task
from app.models.user import User, Role
from app.services.dashboard import task_counts_by_user
from app.services.report_builder import XLSX_MEDIA_TYPE, build_tasks_workbook, build_users_workbook
from app.utils.auth import Identity, require_roles
from app.utils.scope import ScopeResolver

router = APIRouter(prefix="/reports", tags=["reports"])
logger = logging.getLogger(__name__)


def _report_prefix(identity: Identity) -> str:
    if identity.role is Role.ADMIN or identity.department is None:
        return ""
    return identity.department.value.lower().replace(" ", "-") + "-"


def _xlsx_response(content: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/export/tasks")
def export_tasks_report(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.VP, Role.HEAD)),
):
    """Spreadsheet of every task the caller can see"""
    try:
        scope = ScopeResolver(db).resolve_task_scope(identity)
        tasks = db.query(Task).filter(scope).order_by(Task.created_at.desc(), Task.id.desc()).all()
        content = build_tasks_workbook(tasks)
    except Exception as e:
        logger.error(f"Failed to export tasks report: {e}")
        raise InternalError(f"Failed to export report: {str(e)}")

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return _xlsx_response(content, f"{_report_prefix(identity)}tasks_report_{stamp}.xlsx")


@router.get("/export/users")
def export_users_report(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_roles(Role.ADMIN, Role.VP, Role.HEAD)),
):
    """Spreadsheet of the caller's visible users with their task counts"""
    try:
        scope = ScopeResolver(db).resolve_user_scope(identity)
        users = db.query(User).filter(scope).order_by(User.name).all()
        counts = task_counts_by_user(db, [user.id for user in users])
        content = build_users_workbook(users, counts)
    except Exception as e:
        logger.error(f"Failed to export users report: {e}")
        raise InternalError(f"Failed to export report: {str(e)}")

    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return _xlsx_response(content, f"{_report_prefix(identity)}users_report_{stamp}.xlsx")
