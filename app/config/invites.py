# app/config/invites.py
# Invite tokens that grant a role, and a department for VP/Head, at registration

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Mapping, Optional

from app.config.settings import settings
from app.models.user import Role, Department, MANAGER_ROLES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InviteGrant:
    role: Role
    department: Optional[Department] = None


# Environment variable -> what its token grants
DEPARTMENT_KEYS = {
    "TECH": Department.TECH,
    "FINANCE": Department.FINANCE,
    "COMMUNICATION": Department.COMMUNICATION,
    "DESIGN": Department.DESIGN_AND_MEDIA,
    "HOSPITALITY": Department.HOSPITALITY,
}

GRANTS_BY_VARIABLE: Dict[str, InviteGrant] = {"ADMIN_INVITE_TOKEN": InviteGrant(Role.ADMIN)}
for _key, _department in DEPARTMENT_KEYS.items():
    GRANTS_BY_VARIABLE[f"VP_{_key}_TOKEN"] = InviteGrant(Role.VP, _department)
    GRANTS_BY_VARIABLE[f"HEAD_{_key}_TOKEN"] = InviteGrant(Role.HEAD, _department)


class InviteRegistry:
    """Validated token -> InviteGrant mapping"""

    def __init__(self, grants: Mapping[str, InviteGrant]):
        self._grants: Dict[str, InviteGrant] = {}
        for token, grant in grants.items():
            if not token or not token.strip():
                raise ValueError("Invite tokens must be non-empty")
            if grant.role in MANAGER_ROLES and grant.department is None:
                raise ValueError(f"Invite for role {grant.role.value} needs a department")
            if grant.role is Role.MEMBER:
                raise ValueError("Member registration does not need an invite token")
            self._grants[token] = grant

    @classmethod
    def from_variables(cls, tokens_by_variable: Mapping[str, str]) -> "InviteRegistry":
        """Build from {environment variable: token}; blank variables are skipped"""
        grants: Dict[str, InviteGrant] = {}
        owners: Dict[str, str] = {}
        for variable, token in tokens_by_variable.items():
            if variable not in GRANTS_BY_VARIABLE:
                raise ValueError(f"Unknown invite variable: {variable}")
            token = (token or "").strip()
            if not token:
                logger.warning(f"{variable} is not set, that invite is disabled")
                continue
            if token in owners:
                raise ValueError(f"{variable} reuses the token of {owners[token]}")
            owners[token] = variable
            grants[token] = GRANTS_BY_VARIABLE[variable]
        return cls(grants)

    def resolve(self, token: Optional[str]) -> Optional[InviteGrant]:
        if not token:
            return None
        return self._grants.get(token)

    def __len__(self) -> int:
        return len(self._grants)


@lru_cache()
def get_invite_registry() -> InviteRegistry:
    """Registry loaded once from settings; a FastAPI dependency"""
    return InviteRegistry.from_variables(settings.invite_tokens())
