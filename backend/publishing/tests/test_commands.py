import datetime
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone

from publishing.models import Article, Member, Post, PostEvent
from publishing.roles import AdminRole, EditorRole, ModeratorRole
from publishing.versioning import REJECTED


class RoleCommandTests(TestCase):
    def setUp(self):
        self.member = Member.objects.create(username="alice")

    def test_grant(self):
        out = StringIO()
        call_command("grant", "editor", "alice", stdout=out)
        self.assertIn("Role editor granted to alice.", out.getvalue())
        self.assertIs(self.member.main_role, EditorRole)

    def test_grant_skips_when_a_superior_role_exists(self):
        self.member.roles.grant(ModeratorRole)
        out = StringIO()
        call_command("grant", "editor", "alice", stdout=out)
        self.assertIn("A superior role already exists for the member.", out.getvalue())
        self.assertIs(self.member.main_role, ModeratorRole)

    def test_grant_an_already_granted_role(self):
        self.member.roles.grant(EditorRole)
        out = StringIO()
        call_command("grant", "editor", "alice", stdout=out)
        self.assertIn("Role editor granted to alice.", out.getvalue())
        self.assertEqual(list(self.member.roles.queryset().values_list("role", flat=True)), ["editor"])

    def test_grant_errors(self):
        with self.assertRaisesMessage(CommandError, "Unknown role: king"):
            call_command("grant", "king", "alice")
        with self.assertRaisesMessage(CommandError, "Member not found: nobody"):
            call_command("grant", "admin", "nobody")
        with self.assertRaisesMessage(CommandError, "The guest role can't be granted."):
            call_command("grant", "guest", "alice")

    def test_revoke(self):
        self.member.roles.grant(AdminRole)
        out = StringIO()
        call_command("revoke", "admin", "alice", stdout=out)
        self.assertIn("Role admin revoked from alice.", out.getvalue())
        out = StringIO()
        call_command("revoke", "admin", "alice", stdout=out)
        self.assertIn("doesn't have the admin role", out.getvalue())


class PurgeRejectedCommandTests(TestCase):
    def setUp(self):
        self.old = Article(title="Old", state=REJECTED, reject_reason="Spam")
        self.old.save()
        self.recent = Article(title="Recent", state=REJECTED)
        self.recent.save()
        Post.objects.filter(pk=self.old.pk).update(updated_at=timezone.now() - datetime.timedelta(days=30))

    def test_dry_run_keeps_everything(self):
        out = StringIO()
        call_command("purge_rejected", "--dry-run", stdout=out)
        self.assertIn(f"[dry-run] {self.old.pk} Old", out.getvalue())
        self.assertEqual(Post.objects.count(), 2)

    def test_purges_expired_revisions_only(self):
        out = StringIO()
        call_command("purge_rejected", stdout=out)
        self.assertIn("Purged 1 rejected revision(s).", out.getvalue())
        self.assertEqual(list(Post.objects.values_list("pk", flat=True)), [self.recent.pk])
        event = PostEvent.objects.get(post_id=self.old.pk, event_type="purged")
        self.assertEqual(event.payload_json["reason"], "Spam")

    def test_days_override(self):
        call_command("purge_rejected", "--days", "0", stdout=StringIO())
        self.assertFalse(Post.objects.exists())


class ImportLegacyCommandTests(TestCase):
    def test_unknown_entity(self):
        with self.assertRaisesMessage(CommandError, "Unknown entities: posts"):
            call_command("import_legacy", "users", "posts")

    def test_missing_database_alias(self):
        with self.assertRaisesMessage(CommandError, "Database alias 'nowhere' is not configured"):
            call_command("import_legacy", "all", "--database", "nowhere")

    def test_runs_the_importer(self):
        out = StringIO()
        with (
            mock.patch("publishing.management.commands.import_legacy.Counters") as counters,
            mock.patch("publishing.management.commands.import_legacy.LegacyImporter") as importer_class,
        ):
            importer_class.return_value.run.return_value = {"users": {"rows": 3, "imported": 2}}
            call_command("import_legacy", "users", "--database", "default", "--limit", "10", stdout=out)
        importer_class.assert_called_once()
        args, kwargs = importer_class.call_args
        self.assertEqual(args[0].alias, "default")
        self.assertIs(args[1], counters.return_value)
        self.assertEqual(kwargs["limit"], 10)
        importer_class.return_value.run.assert_called_once_with(["users"])
        self.assertIn("Legacy import complete. users=2/3", out.getvalue())
