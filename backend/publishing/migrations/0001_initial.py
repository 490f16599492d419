import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import publishing.models

POST_TYPE_CHOICES = [("article", "Article"), ("book", "Book"), ("tutorial", "Tutorial")]
STATE_CHOICES = [
    ("created", "Created"),
    ("draft", "Draft"),
    ("submitted", "Submitted"),
    ("current", "Current"),
    ("approved", "Approved"),
    ("returned", "Returned"),
    ("rejected", "Rejected"),
    ("deleted", "Deleted"),
]
ROLE_CHOICES = [
    ("member", "Member"),
    ("editor", "Editor"),
    ("reviewer", "Reviewer"),
    ("moderator", "Moderator"),
    ("admin", "Admin"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("legacy_id", models.CharField(blank=True, max_length=120, null=True, unique=True)),
                ("username", models.CharField(max_length=150, unique=True)),
                ("email", models.CharField(blank=True, max_length=240)),
                ("first_name", models.CharField(blank=True, max_length=150)),
                ("last_name", models.CharField(blank=True, max_length=150)),
                ("display_name", models.CharField(blank=True, max_length=240)),
                ("headline", models.CharField(blank=True, max_length=240)),
                ("about", models.TextField(blank=True)),
                ("birthday", models.DateField(blank=True, null=True)),
                ("sex", models.CharField(blank=True, choices=[("m", "Male"), ("f", "Female")], max_length=1)),
                ("password_hash", models.CharField(blank=True, max_length=240)),
                ("ip_address", models.CharField(blank=True, max_length=64)),
                ("confirmation_hash", models.CharField(blank=True, max_length=240)),
                ("confirmed", models.BooleanField(default=False)),
                ("logins_json", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="member",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["username"],
            },
            bases=(publishing.models.UserPredicates, models.Model),
        ),
        migrations.CreateModel(
            name="RoleGrant",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("role", models.CharField(choices=ROLE_CHOICES, max_length=40)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="role_grants",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "unique_together": {("member", "role")},
            },
        ),
        migrations.CreateModel(
            name="Post",
            fields=[
                ("id", models.CharField(editable=False, max_length=140, primary_key=True, serialize=False)),
                ("unversion_id", models.CharField(db_index=True, editable=False, max_length=100)),
                ("version_number", models.CharField(editable=False, max_length=30)),
                ("previous_version_number", models.CharField(blank=True, default="", max_length=30)),
                ("state", models.CharField(choices=STATE_CHOICES, default="created", max_length=20)),
                ("previous_state", models.CharField(blank=True, default="", max_length=20)),
                ("username", models.CharField(blank=True, default="", max_length=150)),
                ("edit_summary", models.TextField(blank=True, default="")),
                ("reject_reason", models.TextField(blank=True, default="")),
                ("deleted_at", models.DateTimeField(blank=True, null=True)),
                ("locked", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("type", models.CharField(choices=POST_TYPE_CHOICES, default="article", max_length=20)),
                ("title", models.CharField(max_length=300)),
                ("body", models.TextField(blank=True)),
                ("html", models.TextField(blank=True)),
                ("excerpt", models.TextField(blank=True)),
                ("publishing_date", models.DateTimeField(blank=True, null=True)),
                ("legacy_id", models.CharField(blank=True, db_index=True, default="", max_length=120)),
                ("meta_json", models.JSONField(blank=True, default=dict)),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="post_authored",
                        to="publishing.member",
                    ),
                ),
                (
                    "editor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="post_edited",
                        to="publishing.member",
                    ),
                ),
                (
                    "moderator",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="post_moderated",
                        to="publishing.member",
                    ),
                ),
                (
                    "dustman",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="post_trashed",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-publishing_date", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Article",
            fields=[],
            options={
                "proxy": True,
                "indexes": [],
                "constraints": [],
            },
            bases=("publishing.post",),
        ),
        migrations.CreateModel(
            name="Book",
            fields=[],
            options={
                "proxy": True,
                "indexes": [],
                "constraints": [],
            },
            bases=("publishing.post",),
        ),
        migrations.CreateModel(
            name="Tutorial",
            fields=[],
            options={
                "proxy": True,
                "indexes": [],
                "constraints": [],
            },
            bases=("publishing.post",),
        ),
        migrations.CreateModel(
            name="PostEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("post_id", models.CharField(db_index=True, max_length=140)),
                ("unversion_id", models.CharField(db_index=True, max_length=100)),
                ("event_type", models.CharField(max_length=60)),
                ("payload_json", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="post_events",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Tag",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("legacy_id", models.CharField(blank=True, max_length=120, null=True, unique=True)),
                ("name", models.CharField(max_length=120, unique=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "creator",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="tags_created",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Classification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("post_id", models.CharField(db_index=True, max_length=100)),
                ("post_type", models.CharField(choices=POST_TYPE_CHOICES, default="article", max_length=20)),
                ("section", models.CharField(choices=[("blog", "Blog")], default="blog", max_length=20)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "tag",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="classifications",
                        to="publishing.tag",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "unique_together": {("post_id", "tag")},
            },
        ),
        migrations.CreateModel(
            name="Reply",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("legacy_id", models.CharField(blank=True, default="", max_length=120)),
                ("post_id", models.CharField(db_index=True, max_length=100)),
                ("body", models.TextField()),
                ("html", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="replies",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="Star",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("item_id", models.CharField(db_index=True, max_length=100)),
                ("item_type", models.CharField(choices=POST_TYPE_CHOICES, default="article", max_length=20)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="star_links",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "unique_together": {("member", "item_id")},
            },
        ),
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("item_id", models.CharField(db_index=True, max_length=100)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subscription_links",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "unique_together": {("member", "item_id")},
            },
        ),
        migrations.CreateModel(
            name="Follower",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="follower_links",
                        to="publishing.member",
                    ),
                ),
                (
                    "follower",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="following_links",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "unique_together": {("member", "follower")},
            },
        ),
        migrations.CreateModel(
            name="Badge",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=60)),
                (
                    "metal",
                    models.CharField(
                        choices=[("bronze", "Bronze"), ("silver", "Silver"), ("gold", "Gold")], max_length=10
                    ),
                ),
                ("context_id", models.CharField(blank=True, default="", max_length=140)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="badges",
                        to="publishing.member",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
