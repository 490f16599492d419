import logging
from typing import Optional, Union

from .exceptions import NotEnoughPrivilegesError
from .models import Guest, Member

logger = logging.getLogger(__name__)

SESSION_MEMBER_KEY = "member_id"
SESSION_IMPERSONATION_KEY = "impersonated_member_id"
GUEST_MARKER = "guest"

User = Union[Member, Guest]


class Guardian:
    """Ensures the user of a request has the ability to perform an operation.

    The user is the impersonated one when an impersonation is active, else the
    member stored in the session, else the member linked to the authenticated
    Django user, else a guest.
    """

    def __init__(self, request=None):
        self.request = request
        self._real_user: Optional[User] = None
        self._user: Optional[User] = None

    @property
    def session(self):
        return getattr(self.request, "session", None)

    @property
    def real_user(self) -> User:
        if self._real_user is None:
            self._real_user = self._resolve_real_user()
        return self._real_user

    @property
    def user(self) -> User:
        if self._user is None:
            self._user = self._resolve_impersonated() or self.real_user
        return self._user

    def _resolve_real_user(self) -> User:
        session = self.session
        member_id = session.get(SESSION_MEMBER_KEY) if session is not None else None
        if member_id:
            member = Member.objects.filter(id=member_id).first()
            if member:
                return member
        auth_user = getattr(self.request, "user", None)
        if auth_user is not None and getattr(auth_user, "is_authenticated", False):
            member = Member.objects.filter(user_id=auth_user.pk).first()
            if member:
                return member
        return Guest()

    def _resolve_impersonated(self) -> Optional[User]:
        session = self.session
        if session is None:
            return None
        target = session.get(SESSION_IMPERSONATION_KEY)
        if not target:
            return None
        if target == GUEST_MARKER:
            return Guest()
        return Member.objects.filter(id=target).first()

    def login(self, member: Member) -> None:
        if self.session is not None:
            self.session[SESSION_MEMBER_KEY] = str(member.id)
            self.session.pop(SESSION_IMPERSONATION_KEY, None)
            self.session.modified = True
        self._real_user = member
        self._user = None

    def logout(self) -> None:
        if self.session is not None:
            self.session.pop(SESSION_MEMBER_KEY, None)
            self.session.pop(SESSION_IMPERSONATION_KEY, None)
            self.session.modified = True
        self._real_user = Guest()
        self._user = None

    def can_impersonate(self, user: User) -> bool:
        """An admin can impersonate any member but not another admin; a member can impersonate a guest.

        No one can impersonate itself and a guest can't impersonate anyone.
        """
        real = self.real_user
        if real.is_guest():
            return False
        if not user.is_guest() and real.match(user.id):
            return False
        return real.has("impersonate", user)

    def impersonate(self, user: User) -> None:
        if not self.can_impersonate(user):
            logger.warning("%s refused to impersonate %s", self.real_user, user)
            raise NotEnoughPrivilegesError("You don't have enough privileges to impersonate another user.")
        if self.session is not None:
            self.session[SESSION_IMPERSONATION_KEY] = GUEST_MARKER if user.is_guest() else str(user.id)
            self.session.modified = True
        self._user = user
        logger.info("%s is impersonating %s", self.real_user, user)

    def stop_impersonating(self) -> None:
        if self.session is not None:
            self.session.pop(SESSION_IMPERSONATION_KEY, None)
            self.session.modified = True
        self._user = None

    def require(self, action: str, context=None) -> User:
        user = self.user
        if not user.has(action, context):
            raise NotEnoughPrivilegesError()
        return user
