from ..roles import AdminRole
from . import member
from .base import Permission


@AdminRole.grants
class ImpersonatePermission(member.ImpersonatePermission):
    """An admin can impersonate any member, but not another admin."""

    def check(self) -> bool:
        if super().check():
            return True
        target = self.context
        return target is not None and target.is_member() and not target.is_admin()


@AdminRole.grants
class GrantRolePermission(Permission):
    action = "grant_role"

    def check(self) -> bool:
        return True


@AdminRole.grants
class RevokeRolePermission(Permission):
    action = "revoke_role"

    def check(self) -> bool:
        return True
