# app/utils/scope.py
from typing import Iterable, Set

from sqlalchemy import false, true, or_
from sqlalchemy.orm import Session

from app.models.user import User, Role, MANAGER_ROLES
from app.models.task import Task
from app.utils.auth import Identity


def _unhandled(role) -> ValueError:
    return ValueError(f"Unhandled role: {role!r}")


class ScopeResolver:
    """Role and department based visibility rules for users and tasks.

    Department membership is re-read from the database on every call since a
    user's department can change between authentication and the query.
    """

    def __init__(self, db: Session):
        self.db = db

    def department_member_ids(self, department) -> Set[int]:
        """Ids of every user currently in ``department``"""
        if department is None:
            return set()
        rows = self.db.query(User.id).filter(User.department == department).all()
        return {row.id for row in rows}

    # Users

    def resolve_user_scope(self, identity: Identity, include_self: bool = True):
        """Filter expression selecting the users ``identity`` may see"""
        if identity.role is Role.ADMIN:
            return true()
        elif identity.role in MANAGER_ROLES:
            if identity.department is None:
                return false()
            condition = User.department == identity.department
            if not include_self:
                condition = condition & (User.id != identity.id)
            return condition
        elif identity.role is Role.MEMBER:
            return User.id == identity.id
        raise _unhandled(identity.role)

    def can_view_user(self, identity: Identity, user: User) -> bool:
        if identity.role is Role.ADMIN:
            return True
        elif identity.role in MANAGER_ROLES:
            return identity.department is not None and user.department == identity.department
        elif identity.role is Role.MEMBER:
            return user.id == identity.id
        raise _unhandled(identity.role)

    def can_update_user(self, identity: Identity, user: User) -> bool:
        return self.can_view_user(identity, user)

    def can_delete_user(self, identity: Identity, user: User) -> bool:
        if identity.role is Role.MEMBER:
            return False
        return self.can_view_user(identity, user)

    # Tasks

    def resolve_task_scope(self, identity: Identity):
        """Filter expression selecting the tasks ``identity`` may see"""
        if identity.role is Role.ADMIN:
            return true()
        elif identity.role in MANAGER_ROLES:
            if identity.department is None:
                return false()
            member_ids = self.department_member_ids(identity.department)
            return or_(
                Task.assignees.any(User.id.in_(sorted(member_ids))),
                Task.created_by == identity.id,
            )
        elif identity.role is Role.MEMBER:
            return Task.assignees.any(User.id == identity.id)
        raise _unhandled(identity.role)

    def department_task_scope(self, department):
        """Tasks with at least one assignee in ``department``"""
        if department is None:
            return false()
        member_ids = self.department_member_ids(department)
        return Task.assignees.any(User.id.in_(sorted(member_ids)))

    def personal_task_scope(self, identity: Identity):
        return Task.assignees.any(User.id == identity.id)

    def can_view_task(self, identity: Identity, task: Task) -> bool:
        if identity.role is Role.ADMIN:
            return True
        elif identity.role in MANAGER_ROLES:
            if identity.department is None:
                return False
            return task.created_by == identity.id or self._assigned_in_department(task, identity.department)
        elif identity.role is Role.MEMBER:
            return identity.id in task.assigned_to
        raise _unhandled(identity.role)

    def authorize_task_mutation(self, identity: Identity, task: Task) -> bool:
        """Whether ``identity`` may update fields, status or checklist of ``task``"""
        if identity.role is Role.ADMIN:
            return True
        elif identity.role in MANAGER_ROLES:
            if identity.department is None:
                return False
            return task.created_by == identity.id or self._assigned_in_department(task, identity.department)
        elif identity.role is Role.MEMBER:
            return identity.id in task.assigned_to
        raise _unhandled(identity.role)

    def authorize_task_deletion(self, identity: Identity, task: Task) -> bool:
        """Mutation rights plus, for VP/Head, a matching task department when one is set"""
        if identity.role is Role.ADMIN:
            return True
        elif identity.role in MANAGER_ROLES:
            if not self.authorize_task_mutation(identity, task):
                return False
            return task.department is None or task.department == identity.department
        elif identity.role is Role.MEMBER:
            return False
        raise _unhandled(identity.role)

    def authorize_assignment(self, identity: Identity, candidate_ids: Iterable[int]) -> bool:
        """Whether ``identity`` may assign a task to every user in ``candidate_ids``"""
        if identity.role is Role.ADMIN:
            return True
        elif identity.role in MANAGER_ROLES:
            if identity.department is None:
                return False
            member_ids = self.department_member_ids(identity.department)
            return all(candidate in member_ids for candidate in candidate_ids)
        elif identity.role is Role.MEMBER:
            return False
        raise _unhandled(identity.role)

    def _assigned_in_department(self, task: Task, department) -> bool:
        member_ids = self.department_member_ids(department)
        return any(user_id in member_ids for user_id in task.assigned_to)

