from typing import Any, Optional


class Permission:
    """A predicate telling whether ``user`` may perform ``action`` on ``context``.

    Subclasses set ``action`` and implement ``check``. The role owning the
    permission is assigned when the class is registered through
    ``Role.grants``.
    """

    action = ""
    description = ""
    role: Optional[type] = None

    def __init__(self, user, context: Any = None):
        self.user = user
        self.context = context

    def check(self) -> bool:
        raise NotImplementedError

    def is_author(self) -> bool:
        author_id = getattr(self.context, "author_id", None)
        return author_id is not None and not self.user.is_guest() and author_id == self.user.id

    def in_state(self, *states: str) -> bool:
        return getattr(self.context, "state", None) in states

    def is_locked(self) -> bool:
        return bool(getattr(self.context, "locked", False))

    def __repr__(self) -> str:
        role = self.role.name if self.role else "?"
        return f"<{type(self).__name__} {role}:{self.action}>"
