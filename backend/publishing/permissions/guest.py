from ..roles import GuestRole
from ..versioning import CURRENT
from .base import Permission


@GuestRole.grants
class ViewPostPermission(Permission):
    action = "view_post"
    description = "Read a published post."

    def check(self) -> bool:
        return self.in_state(CURRENT)
