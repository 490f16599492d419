"""Role hierarchy.

Roles are classes: a role is superior to every role it inherits from, so the
chain guest < member < editor < reviewer < moderator < admin is expressed by
plain subclassing. Permission classes register themselves on a role through
``Role.grants``; ``Role.resolve`` walks the chain from the most specific role
down to the guest and returns the first permission registered for an action.
"""
from typing import Dict, List, Optional, Type

from .exceptions import InvalidFieldError


class Role:
    name = ""
    description = ""

    _permissions: Dict[str, type] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._permissions = {}

    @classmethod
    def grants(cls, permission_class: type) -> type:
        cls._permissions[permission_class.action] = permission_class
        permission_class.role = cls
        return permission_class

    @classmethod
    def resolve(cls, action: str) -> Optional[type]:
        for klass in cls.__mro__:
            if klass is Role or not issubclass(klass, Role):
                continue
            permission_class = klass._permissions.get(action)
            if permission_class is not None:
                return permission_class
        return None

    @classmethod
    def is_superior_to(cls, other: Type["Role"], or_equal: bool = False) -> bool:
        if cls is other:
            return or_equal
        return issubclass(cls, other)

    @classmethod
    def rank(cls) -> int:
        return ROLES.index(cls)


class GuestRole(Role):
    name = "guest"
    description = "Anonymous visitor."


class MemberRole(GuestRole):
    name = "member"
    description = "Registered member, may write and submit content."


class EditorRole(MemberRole):
    name = "editor"
    description = "May edit any current, unlocked content."


class ReviewerRole(EditorRole):
    name = "reviewer"
    description = "Reviews submitted revisions."


class ModeratorRole(ReviewerRole):
    name = "moderator"
    description = "Rejects, reverts, restores and locks content."


class AdminRole(ModeratorRole):
    name = "admin"
    description = "Manages members and their roles."


ROLES: List[Type[Role]] = [GuestRole, MemberRole, EditorRole, ReviewerRole, ModeratorRole, AdminRole]

ROLE_CHOICES = [(role.name, role.name.title()) for role in ROLES if role is not GuestRole]


def get_role(name: str) -> Type[Role]:
    normalized = str(name or "").strip().lower()
    for role in ROLES:
        if role.name == normalized:
            return role
    raise InvalidFieldError(f"Unknown role: {name}")
