from ..roles import MemberRole
from ..versioning import CREATED, CURRENT, DELETED, DRAFT, RETURNED, SUBMITTED
from . import guest
from .base import Permission


@MemberRole.grants
class ViewPostPermission(guest.ViewPostPermission):
    description = "Read a published post, or any of your own posts unless trashed."

    def check(self) -> bool:
        if super().check():
            return True
        return self.is_author() and not self.in_state(DELETED)


@MemberRole.grants
class EditPostPermission(Permission):
    action = "edit_post"
    description = "Create a new revision of your own post."

    def check(self) -> bool:
        return self.is_author() and not self.is_locked() and self.in_state(CREATED, DRAFT, RETURNED, CURRENT)


@MemberRole.grants
class SubmitRevisionPermission(Permission):
    action = "submit_revision"
    description = "Submit your own revision for peer review."

    def check(self) -> bool:
        return self.is_author() and self.in_state(CREATED, DRAFT, RETURNED)


@MemberRole.grants
class MoveRevisionToTrashPermission(Permission):
    action = "move_revision_to_trash"
    description = "Move one of your own unpublished revisions to the trash."

    def check(self) -> bool:
        return self.is_author() and self.in_state(CREATED, DRAFT, SUBMITTED, RETURNED)


@MemberRole.grants
class ImpersonatePermission(Permission):
    """A member, even an admin, can impersonate a guest."""

    action = "impersonate"

    def check(self) -> bool:
        target = self.context
        return target is not None and target.is_guest()
