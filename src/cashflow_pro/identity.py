"""
Identity - who is acting in the session

Authentication happens elsewhere; the session receives an already
authenticated Identity. Only project deletion is role-gated.
"""

from enum import Enum

from pydantic import BaseModel

from cashflow_pro.kernel.errors import PermissionDenied


class Role(str, Enum):
    USER = "user"
    SUPER_ADMIN = "super_admin"


class Identity(BaseModel):
    """Acting user"""

    user_id: str
    email: str = ""
    role: Role = Role.USER

    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN


SYSTEM_IDENTITY = Identity(user_id="system", email="", role=Role.USER)


def require_super_admin(identity: Identity, action: str) -> None:
    """
    Raises:
        PermissionDenied: If identity is not a super admin
    """
    if not identity.is_super_admin():
        raise PermissionDenied(action, Role.SUPER_ADMIN.value)
