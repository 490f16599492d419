from ..roles import EditorRole
from ..versioning import CURRENT
from . import member


@EditorRole.grants
class EditPostPermission(member.EditPostPermission):
    description = "Edit any current post, as long as it is not locked."

    def check(self) -> bool:
        if super().check():
            return True
        return not self.is_locked() and self.in_state(CURRENT)
