from django.test import SimpleTestCase, TestCase

from publishing.exceptions import DocumentNotFoundError, InvalidFieldError, NotEnoughPrivilegesError
from publishing.models import Article, Member, Post, PostEvent
from publishing.roles import ModeratorRole, ReviewerRole
from publishing.versioning import (
    APPROVED,
    CREATED,
    CURRENT,
    DELETED,
    DRAFT,
    REJECTED,
    RETURNED,
    SUBMITTED,
    make_id,
    unversion,
    version_of,
)


class IdentifierTests(SimpleTestCase):
    def test_unversion_and_version_of(self):
        self.assertEqual(unversion("abc::123"), "abc")
        self.assertEqual(version_of("abc::123"), "123")
        self.assertEqual(unversion("abc"), "abc")
        self.assertEqual(version_of("abc"), "")
        self.assertEqual(make_id("abc", "123"), "abc::123")


class VersionableLifecycleTests(TestCase):
    def setUp(self):
        self.author = Member.objects.create(username="author", email="author@example.com")
        self.reviewer = Member.objects.create(username="reviewer")
        self.reviewer.roles.grant(ReviewerRole)
        self.moderator = Member.objects.create(username="moderator")
        self.moderator.roles.grant(ModeratorRole)

    def _article(self, draft=False, **fields):
        article = Article(title=fields.pop("title", "Hello"), body=fields.pop("body", "Some *text*."), author=self.author, **fields)
        article.save(draft=draft)
        return article

    def _revision(self, unversion_id, version_number, state):
        article = Article(title=f"v{version_number}", author=self.author, state=state)
        article.set_id(make_id(unversion_id, version_number))
        article.save()
        return article

    def test_save_assigns_id_and_state(self):
        submitted = self._article()
        self.assertEqual(submitted.state, SUBMITTED)
        self.assertEqual(submitted.pk, make_id(submitted.unversion_id, submitted.version_number))
        self.assertEqual(submitted.type, "article")
        self.assertIn("<em>text</em>", submitted.html)
        self.assertEqual(submitted.excerpt, "Some text.")
        self.assertEqual(self._article(draft=True).state, DRAFT)

    def test_set_id_rejects_an_empty_id(self):
        with self.assertRaises(InvalidFieldError):
            Article().set_id("")

    def test_author_submits_a_draft(self):
        article = self._article(draft=True)
        article.submit(self.author)
        article.refresh_from_db()
        self.assertEqual(article.state, SUBMITTED)
        self.assertTrue(PostEvent.objects.filter(post_id=article.pk, event_type="submitted", actor=self.author).exists())

    def test_approve_makes_the_revision_current_and_demotes_the_previous_one(self):
        first = self._revision("doc", "100", CURRENT)
        second = self._revision("doc", "200", SUBMITTED)
        second.approve(self.reviewer)
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.state, APPROVED)
        self.assertEqual(second.state, CURRENT)
        self.assertEqual(second.moderator, self.reviewer)

    def test_member_cannot_approve(self):
        article = self._article()
        with self.assertRaises(NotEnoughPrivilegesError):
            article.approve(self.author)
        article.refresh_from_db()
        self.assertEqual(article.state, SUBMITTED)

    def test_return_and_reject_store_the_reason(self):
        returned = self._article()
        returned.return_for_revision(self.reviewer, "Needs examples.")
        returned.refresh_from_db()
        self.assertEqual(returned.state, RETURNED)
        self.assertEqual(returned.reject_reason, "Needs examples.")

        rejected = self._article()
        with self.assertRaises(NotEnoughPrivilegesError):
            rejected.reject(self.reviewer, "Spam.")
        rejected.reject(self.moderator, "Spam.")
        rejected.refresh_from_db()
        self.assertEqual(rejected.state, REJECTED)
        self.assertEqual(
            PostEvent.objects.get(post_id=rejected.pk, event_type="rejected").payload_json,
            {"reason": "Spam."},
        )

    def test_revert_to_the_previous_approved_version(self):
        self._revision("doc", "100", APPROVED)
        older = self._revision("doc", "200", APPROVED)
        current = self._revision("doc", "300", CURRENT)
        target = current.revert(self.moderator)
        self.assertEqual(target.pk, older.pk)
        current.refresh_from_db()
        older.refresh_from_db()
        self.assertEqual(current.state, APPROVED)
        self.assertEqual(older.state, CURRENT)

    def test_revert_to_a_given_version(self):
        oldest = self._revision("doc", "100", APPROVED)
        self._revision("doc", "150", REJECTED)
        current = self._revision("doc", "300", CURRENT)
        with self.assertRaises(DocumentNotFoundError):
            current.revert(self.moderator, "999")
        with self.assertRaises(InvalidFieldError):
            current.revert(self.moderator, "150")
        self.assertEqual(current.revert(self.moderator, "100").pk, oldest.pk)

    def test_revert_without_approved_versions(self):
        current = self._revision("doc", "300", CURRENT)
        with self.assertRaises(DocumentNotFoundError):
            current.revert(self.moderator)

    def test_trash_and_restore(self):
        article = self._article()
        article.move_to_trash(self.author)
        article.refresh_from_db()
        self.assertEqual(article.state, DELETED)
        self.assertEqual(article.previous_state, SUBMITTED)
        self.assertEqual(article.dustman, self.author)
        self.assertIsNotNone(article.deleted_at)
        with self.assertRaises(NotEnoughPrivilegesError):
            article.restore(self.author)
        article.restore(self.moderator)
        article.refresh_from_db()
        self.assertEqual(article.state, SUBMITTED)
        self.assertIsNone(article.deleted_at)

    def test_restoring_a_current_revision_demotes_the_newer_one(self):
        old = self._revision("doc", "100", CURRENT)
        new = self._revision("doc", "200", SUBMITTED)
        old.move_to_trash(self.moderator)
        new.approve(self.moderator)
        old.restore(self.moderator)
        current = Post.objects.filter(unversion_id="doc", state=CURRENT)
        self.assertEqual(list(current.values_list("version_number", flat=True)), ["100"])
        new.refresh_from_db()
        self.assertEqual(new.state, APPROVED)

    def test_lock_prevents_edits(self):
        article = self._revision("doc", "100", CURRENT)
        article.lock(self.moderator)
        with self.assertRaises(NotEnoughPrivilegesError):
            article.create_revision(self.author, title="Changed")
        with self.assertRaises(NotEnoughPrivilegesError):
            article.lock(self.moderator)
        article.unlock(self.moderator)
        self.assertFalse(Post.objects.get(pk=article.pk).locked)

    def test_create_revision(self):
        article = self._revision("doc", "100", CURRENT)
        revision = article.create_revision(self.author, "Fix title", title="Better title")
        self.assertTrue(revision._state.adding)
        self.assertEqual(revision.state, CREATED)
        self.assertEqual(revision.unversion_id, "doc")
        self.assertNotEqual(revision.version_number, "100")
        self.assertEqual(revision.previous_version_number, "100")
        self.assertEqual(revision.editor, self.author)
        self.assertEqual(revision.author, self.author)
        revision.save()
        self.assertEqual(revision.state, SUBMITTED)
        self.assertEqual(article.versions().count(), 2)
        with self.assertRaises(InvalidFieldError):
            article.create_revision(self.author, colour="blue")

    def test_past_versions_are_listed_newest_first(self):
        self._revision("doc", "100", APPROVED)
        current = self._revision("doc", "200", CURRENT)
        versions = current.past_versions()
        self.assertEqual([version["version_number"] for version in versions], ["200", "100"])
        self.assertEqual(versions[0]["state"], CURRENT)

    def test_author_username_falls_back_to_contributor_name(self):
        article = Article(title="Anonymous", username="contributor")
        self.assertEqual(article.author_username, "contributor")
        self.assertTrue(self._article().gravatar_url.startswith("https://gravatar.com/avatar/"))
