import hashlib
import uuid
from typing import Any, Optional

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.functional import cached_property
from django.utils.text import slugify

from .roles import AdminRole, EditorRole, GuestRole, MemberRole, ModeratorRole, ReviewerRole, ROLE_CHOICES
from .text import excerpt_from_html, render_markdown
from .versioning import Versionable


def gravatar_url(email: str) -> str:
    digest = hashlib.md5(str(email or "").strip().lower().encode("utf-8")).hexdigest()
    return f"https://gravatar.com/avatar/{digest}?d=identicon"


class UserPredicates:
    """Authorization predicates shared by members and guests."""

    main_role = GuestRole

    def has(self, action: str, context: Any = None) -> bool:
        permission_class = self.main_role.resolve(action)
        if permission_class is None:
            return False
        return bool(permission_class(self, context).check())

    def _at_least(self, role) -> bool:
        return self.main_role.is_superior_to(role, or_equal=True)

    def is_guest(self) -> bool:
        return self.main_role is GuestRole

    def is_member(self) -> bool:
        return self._at_least(MemberRole)

    def is_editor(self) -> bool:
        return self._at_least(EditorRole)

    def is_reviewer(self) -> bool:
        return self._at_least(ReviewerRole)

    def is_moderator(self) -> bool:
        return self._at_least(ModeratorRole)

    def is_admin(self) -> bool:
        return self._at_least(AdminRole)


class Guest(UserPredicates):
    id = None
    pk = None
    username = "guest"
    email = ""

    def match(self, member_id: Any) -> bool:
        return False

    def __eq__(self, other) -> bool:
        return isinstance(other, Guest)

    def __hash__(self) -> int:
        return hash("guest")

    def __str__(self) -> str:
        return "guest"


class Member(UserPredicates, models.Model):
    SEX_CHOICES = [
        ("m", "Male"),
        ("f", "Female"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, null=True, blank=True, on_delete=models.SET_NULL, related_name="member"
    )
    legacy_id = models.CharField(max_length=120, null=True, blank=True, unique=True)
    username = models.CharField(max_length=150, unique=True)
    email = models.CharField(max_length=240, blank=True)
    first_name = models.CharField(max_length=150, blank=True)
    last_name = models.CharField(max_length=150, blank=True)
    display_name = models.CharField(max_length=240, blank=True)
    headline = models.CharField(max_length=240, blank=True)
    about = models.TextField(blank=True)
    birthday = models.DateField(null=True, blank=True)
    sex = models.CharField(max_length=1, choices=SEX_CHOICES, blank=True)
    password_hash = models.CharField(max_length=240, blank=True)
    ip_address = models.CharField(max_length=64, blank=True)
    confirmation_hash = models.CharField(max_length=240, blank=True)
    confirmed = models.BooleanField(default=False)
    logins_json = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["username"]

    def __str__(self) -> str:
        return self.username

    @cached_property
    def roles(self):
        from .collection import RoleCollection

        return RoleCollection(self)

    @cached_property
    def followers(self):
        from .collection import FollowerCollection

        return FollowerCollection(self)

    @cached_property
    def stars(self):
        from .collection import StarCollection

        return StarCollection(self)

    @cached_property
    def subscriptions(self):
        from .collection import SubscriptionCollection

        return SubscriptionCollection(self)

    @property
    def main_role(self):
        return self.roles.main()

    @property
    def gravatar_url(self) -> str:
        return gravatar_url(self.email)

    @classmethod
    def unique_username(cls, base: str) -> str:
        candidate = slugify(base or "")[:140] or "member"
        username = candidate
        idx = 2
        while cls.objects.filter(username=username).exists():
            username = f"{candidate}-{idx}"
            idx += 1
        return username

    def match(self, member_id: Any) -> bool:
        return str(self.id) == str(member_id)

    def confirm(self) -> None:
        self.confirmed = True
        self.confirmation_hash = ""

    def add_login(self, provider: str, uid: str, email: str = "", profile_url: str = "") -> None:
        logins = [login for login in (self.logins_json or []) if login.get("provider") != provider]
        logins.append({"provider": provider, "uid": uid, "email": email, "profile_url": profile_url})
        self.logins_json = logins

    def follow(self, member: "Member") -> None:
        member.followers.add(self)

    def unfollow(self, member: "Member") -> None:
        member.followers.remove(self)


class RoleGrant(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="role_grants")
    role = models.CharField(max_length=40, choices=ROLE_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("member", "role")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.member_id} {self.role}"


class PostTypeManager(models.Manager):
    def __init__(self, post_type: str):
        super().__init__()
        self.post_type = post_type

    def get_queryset(self):
        return super().get_queryset().filter(type=self.post_type)


class Post(Versionable):
    TYPE_CHOICES = [
        ("article", "Article"),
        ("book", "Book"),
        ("tutorial", "Tutorial"),
    ]
    POST_TYPE = ""

    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default="article")
    title = models.CharField(max_length=300)
    body = models.TextField(blank=True)
    html = models.TextField(blank=True)
    excerpt = models.TextField(blank=True)
    publishing_date = models.DateTimeField(null=True, blank=True)
    legacy_id = models.CharField(max_length=120, blank=True, default="", db_index=True)
    meta_json = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-publishing_date", "-created_at"]

    def __str__(self) -> str:
        return self.title

    def save(self, *args, **kwargs):
        if self.POST_TYPE:
            self.type = self.POST_TYPE
        if kwargs.get("update_fields") is None:
            self.html = render_markdown(self.body)
            self.excerpt = excerpt_from_html(self.html)
        super().save(*args, **kwargs)

    def record_event(self, event_type: str, actor, payload: Optional[dict] = None) -> None:
        PostEvent.objects.create(
            post_id=self.pk,
            unversion_id=self.unversion_id,
            event_type=event_type,
            actor=actor,
            payload_json=payload or {},
        )

    @cached_property
    def tags(self):
        from .collection import TagCollection

        return TagCollection(self)

    def get_meta(self, key: str, default: Any = None) -> Any:
        return (self.meta_json or {}).get(key, default)

    def set_meta(self, key: str, value: Any) -> None:
        meta = dict(self.meta_json or {})
        if value is None:
            meta.pop(key, None)
        else:
            meta[key] = value
        self.meta_json = meta


def _meta_property(key: str):
    return property(lambda self: self.get_meta(key), lambda self, value: self.set_meta(key, value))


class Article(Post):
    POST_TYPE = "article"

    objects = PostTypeManager("article")

    class Meta:
        proxy = True


class Book(Post):
    POST_TYPE = "book"

    isbn = _meta_property("isbn")
    authors = _meta_property("authors")
    publisher = _meta_property("publisher")
    language = _meta_property("language")
    year = _meta_property("year")
    pages = _meta_property("pages")
    attachments = _meta_property("attachments")
    link = _meta_property("link")
    positive = _meta_property("positive")
    negative = _meta_property("negative")

    objects = PostTypeManager("book")

    class Meta:
        proxy = True


class Tutorial(Post):
    POST_TYPE = "tutorial"

    objects = PostTypeManager("tutorial")

    class Meta:
        proxy = True

    @property
    def posts(self) -> list:
        return list(self.get_meta("posts", []))

    def add_post(self, post_id: str, position: Optional[int] = None) -> None:
        posts = [existing for existing in self.posts if existing != post_id]
        if position is None or position >= len(posts):
            posts.append(post_id)
        else:
            posts.insert(max(position, 0), post_id)
        self.set_meta("posts", posts)


class PostEvent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post_id = models.CharField(max_length=140, db_index=True)
    unversion_id = models.CharField(max_length=100, db_index=True)
    event_type = models.CharField(max_length=60)
    actor = models.ForeignKey(Member, null=True, blank=True, on_delete=models.SET_NULL, related_name="post_events")
    payload_json = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.post_id}:{self.event_type}"


class Tag(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    legacy_id = models.CharField(max_length=120, null=True, blank=True, unique=True)
    name = models.CharField(max_length=120, unique=True)
    creator = models.ForeignKey(Member, null=True, blank=True, on_delete=models.SET_NULL, related_name="tags_created")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Classification(models.Model):
    SECTION_CHOICES = [
        ("blog", "Blog"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    post_id = models.CharField(max_length=100, db_index=True)
    post_type = models.CharField(max_length=20, choices=Post.TYPE_CHOICES, default="article")
    section = models.CharField(max_length=20, choices=SECTION_CHOICES, default="blog")
    tag = models.ForeignKey(Tag, on_delete=models.CASCADE, related_name="classifications")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("post_id", "tag")
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.post_id}:{self.tag_id}"


class Reply(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    legacy_id = models.CharField(max_length=120, blank=True, default="")
    post_id = models.CharField(max_length=100, db_index=True)
    author = models.ForeignKey(Member, null=True, blank=True, on_delete=models.SET_NULL, related_name="replies")
    body = models.TextField()
    html = models.TextField(blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self) -> str:
        return f"{self.post_id}:{self.id}"

    def save(self, *args, **kwargs):
        if kwargs.get("update_fields") is None:
            self.html = render_markdown(self.body)
        super().save(*args, **kwargs)

    @classmethod
    def post_reply(cls, post: Post, author: Member, body: str) -> "Reply":
        from .badges import notify

        reply = cls.objects.create(post_id=post.unversion_id, author=author, body=body)
        notify("reply", {"reply_id": str(reply.id), "author_id": str(author.id)})
        return reply


class Star(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="star_links")
    item_id = models.CharField(max_length=100, db_index=True)
    item_type = models.CharField(max_length=20, choices=Post.TYPE_CHOICES, default="article")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("member", "item_id")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.member_id}*{self.item_id}"


class Subscription(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="subscription_links")
    item_id = models.CharField(max_length=100, db_index=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("member", "item_id")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.member_id}>{self.item_id}"


class Follower(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="follower_links")
    follower = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="following_links")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        unique_together = ("member", "follower")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.follower_id}->{self.member_id}"


class Badge(models.Model):
    METAL_CHOICES = [
        ("bronze", "Bronze"),
        ("silver", "Silver"),
        ("gold", "Gold"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(Member, on_delete=models.CASCADE, related_name="badges")
    name = models.CharField(max_length=60)
    metal = models.CharField(max_length=10, choices=METAL_CHOICES)
    context_id = models.CharField(max_length=140, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.member_id}:{self.name}"
