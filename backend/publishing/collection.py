"""Collections: set-like wrappers over the relation documents of an owner.

Every collection is bound to the document owning the relation (a member for
followers, stars, subscriptions and roles; a post for tags) and exposes
``exists``, ``add`` and ``remove`` on top of a queryset.
"""
import logging
from typing import List, Optional, Type, Union

from django.db import transaction

from .badges import notify
from .exceptions import InvalidFieldError, UserMismatchError
from .models import Classification, Follower, Member, Post, RoleGrant, Star, Subscription, Tag
from .roles import GuestRole, MemberRole, Role, get_role

logger = logging.getLogger(__name__)


class Collection:
    def __init__(self, owner):
        self.owner = owner

    def queryset(self):
        raise NotImplementedError

    def count(self) -> int:
        return self.queryset().count()

    def __iter__(self):
        return iter(self.queryset())

    def __len__(self) -> int:
        return self.count()


class FollowerCollection(Collection):
    """The members following ``owner``."""

    def __init__(self, owner: Member):
        super().__init__(owner)
        self._count: Optional[int] = None

    def queryset(self):
        return Follower.objects.filter(member=self.owner).select_related("follower")

    def count(self) -> int:
        # A member may have no followers at all, so zero is a valid cached value.
        if self._count is None:
            self._count = super().count()
        return self._count

    def members(self):
        return Member.objects.filter(following_links__member=self.owner)

    def exists(self, member: Member) -> Optional[Follower]:
        """Returns the relation when ``member`` follows the owner, ``None`` otherwise."""
        return Follower.objects.filter(member=self.owner, follower=member).first()

    def add(self, member: Member) -> Follower:
        if self.owner.match(member.id):
            raise UserMismatchError("You can't follow yourself.")
        if self.exists(member):
            raise UserMismatchError("You are already following this member.")
        follower = Follower.objects.create(member=self.owner, follower=member)
        self._count = None
        logger.info("%s follows %s", member, self.owner)
        notify("follow", {"member_id": str(self.owner.id), "follower_id": str(member.id)})
        return follower

    def remove(self, member: Member) -> None:
        follower = self.exists(member)
        if follower is None:
            raise UserMismatchError("You are not following this member.")
        follower.delete()
        self._count = None
        logger.info("%s unfollowed %s", member, self.owner)


class StarCollection(Collection):
    """The posts starred by ``owner``."""

    def queryset(self):
        return Star.objects.filter(member=self.owner)

    def exists(self, post: Post) -> Optional[Star]:
        return Star.objects.filter(member=self.owner, item_id=post.unversion_id).first()

    def add(self, post: Post) -> Star:
        if self.exists(post):
            raise UserMismatchError("You have already starred this post.")
        star = Star.objects.create(member=self.owner, item_id=post.unversion_id, item_type=post.type)
        notify("star", {"item_id": post.unversion_id, "author_id": str(post.author_id) if post.author_id else None})
        return star

    def remove(self, post: Post) -> None:
        star = self.exists(post)
        if star is None:
            raise UserMismatchError("You have not starred this post.")
        star.delete()

    @staticmethod
    def count_for(item_id: str) -> int:
        return Star.objects.filter(item_id=item_id).count()


class SubscriptionCollection(Collection):
    """The posts ``owner`` is subscribed to."""

    def queryset(self):
        return Subscription.objects.filter(member=self.owner)

    def exists(self, post: Post) -> Optional[Subscription]:
        return Subscription.objects.filter(member=self.owner, item_id=post.unversion_id).first()

    def add(self, post: Post) -> Subscription:
        if self.exists(post):
            raise UserMismatchError("You are already subscribed to this post.")
        return Subscription.objects.create(member=self.owner, item_id=post.unversion_id)

    def remove(self, post: Post) -> None:
        subscription = self.exists(post)
        if subscription is None:
            raise UserMismatchError("You are not subscribed to this post.")
        subscription.delete()


class TagCollection(Collection):
    """The tags classifying a post; shared by all its revisions."""

    def queryset(self):
        return Classification.objects.filter(post_id=self.owner.unversion_id).select_related("tag")

    def names(self) -> List[str]:
        return [classification.tag.name for classification in self.queryset()]

    def exists(self, tag: Tag) -> Optional[Classification]:
        return Classification.objects.filter(post_id=self.owner.unversion_id, tag=tag).first()

    def add(self, tag: Tag) -> Classification:
        existing = self.exists(tag)
        if existing:
            return existing
        return Classification.objects.create(post_id=self.owner.unversion_id, post_type=self.owner.type, tag=tag)

    def remove(self, tag: Tag) -> None:
        Classification.objects.filter(post_id=self.owner.unversion_id, tag=tag).delete()


RoleLike = Union[str, Type[Role]]


def _as_role(role: RoleLike) -> Type[Role]:
    if isinstance(role, type) and issubclass(role, Role):
        return role
    return get_role(role)


class RoleCollection(Collection):
    """The roles granted to a member. Every member implicitly holds the member role."""

    def queryset(self):
        return RoleGrant.objects.filter(member=self.owner)

    def all(self) -> List[Type[Role]]:
        granted = [get_role(name) for name in self.queryset().values_list("role", flat=True)]
        return [MemberRole] + [role for role in granted if role is not MemberRole]

    def main(self) -> Type[Role]:
        return max(self.all(), key=lambda role: role.rank())

    def exists(self, role: RoleLike) -> bool:
        role = _as_role(role)
        if role is MemberRole:
            return True
        return self.queryset().filter(role=role.name).exists()

    def are_superior_than(self, role: RoleLike, or_equal: bool = False) -> bool:
        role = _as_role(role)
        return any(granted.is_superior_to(role, or_equal=or_equal) for granted in self.all())

    def grant(self, role: RoleLike) -> None:
        """Grants the role, dropping the granted roles it subsumes."""
        role = _as_role(role)
        if role is GuestRole:
            raise InvalidFieldError("The guest role can't be granted.")
        if role is MemberRole:
            return
        with transaction.atomic():
            RoleGrant.objects.get_or_create(member=self.owner, role=role.name)
            inferior = [granted.name for granted in self.all() if role.is_superior_to(granted)]
            self.queryset().filter(role__in=inferior).delete()
        logger.info("role %s granted to %s", role.name, self.owner)

    def revoke(self, role: RoleLike) -> bool:
        role = _as_role(role)
        if role in (GuestRole, MemberRole):
            raise InvalidFieldError(f"The {role.name} role can't be revoked.")
        deleted, _ = self.queryset().filter(role=role.name).delete()
        if deleted:
            logger.info("role %s revoked from %s", role.name, self.owner)
        return bool(deleted)
