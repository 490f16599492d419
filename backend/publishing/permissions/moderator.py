from ..roles import ModeratorRole
from ..versioning import CURRENT, DELETED, SUBMITTED
from . import member, reviewer
from .base import Permission


@ModeratorRole.grants
class ViewPostPermission(reviewer.ViewPostPermission):
    def check(self) -> bool:
        return True


@ModeratorRole.grants
class RejectRevisionPermission(Permission):
    action = "reject_revision"
    description = "Reject a submitted revision; it will be purged later."

    def check(self) -> bool:
        return self.in_state(SUBMITTED)


@ModeratorRole.grants
class RevertToVersionPermission(Permission):
    action = "revert_to_version"
    description = "Replace the current revision with a previous one."

    def check(self) -> bool:
        return self.in_state(CURRENT)


@ModeratorRole.grants
class MoveRevisionToTrashPermission(member.MoveRevisionToTrashPermission):
    description = "Move any revision to the trash."

    def check(self) -> bool:
        return not self.in_state(DELETED)


@ModeratorRole.grants
class RestoreRevisionPermission(Permission):
    action = "restore_revision"
    description = "Restore a trashed revision to its previous state."

    def check(self) -> bool:
        return self.in_state(DELETED)


@ModeratorRole.grants
class LockPostPermission(Permission):
    action = "lock_post"

    def check(self) -> bool:
        return self.in_state(CURRENT) and not self.is_locked()


@ModeratorRole.grants
class UnlockPostPermission(Permission):
    action = "unlock_post"

    def check(self) -> bool:
        return self.is_locked()
