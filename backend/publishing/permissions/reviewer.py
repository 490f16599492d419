from ..roles import ReviewerRole
from ..versioning import SUBMITTED
from . import member
from .base import Permission


@ReviewerRole.grants
class ViewPostPermission(member.ViewPostPermission):
    def check(self) -> bool:
        return super().check() or self.in_state(SUBMITTED)


@ReviewerRole.grants
class ApproveRevisionPermission(Permission):
    action = "approve_revision"
    description = "Approve a revision submitted for peer review."

    def check(self) -> bool:
        return self.in_state(SUBMITTED)


@ReviewerRole.grants
class ReturnForRevisionPermission(Permission):
    action = "return_for_revision"
    description = "Send a submitted revision back to its author."

    def check(self) -> bool:
        return self.in_state(SUBMITTED)
