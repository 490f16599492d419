from unittest import mock

from django.test import TestCase, override_settings

from publishing.badges import decorators, dispatch, notify
from publishing.badges.social import Famous
from publishing.badges.star import Beloved
from publishing.models import Article, Badge, Member, Reply, Star
from publishing.roles import ReviewerRole
from publishing.versioning import CURRENT


class BadgeTests(TestCase):
    def setUp(self):
        self.author = Member.objects.create(username="author")

    def _members(self, count):
        return [Member.objects.create(username=f"fan-{idx}") for idx in range(count)]

    def test_every_decorator_listens_to_something(self):
        for decorator in decorators():
            self.assertTrue(decorator.get_messages(), decorator.name)

    def test_popular_is_awarded_at_ten_followers(self):
        fans = self._members(10)
        for fan in fans[:9]:
            fan.follow(self.author)
        self.assertFalse(Badge.objects.filter(member=self.author, name="popular").exists())
        fans[9].follow(self.author)
        badge = Badge.objects.get(member=self.author, name="popular")
        self.assertEqual(badge.metal, "bronze")

    def test_author_is_awarded_on_first_approval(self):
        reviewer = Member.objects.create(username="reviewer")
        reviewer.roles.grant(ReviewerRole)
        article = Article(title="First", author=self.author)
        article.save()
        article.approve(reviewer)
        self.assertTrue(Badge.objects.filter(member=self.author, name="author").exists())
        self.assertFalse(Badge.objects.filter(member=self.author, name="prolific").exists())

    def test_beloved_is_awarded_once_per_post(self):
        post = Article(title="Loved", author=self.author, state=CURRENT)
        post.save()
        for fan in self._members(10):
            Star.objects.create(member=fan, item_id=post.unversion_id)
        data = {"item_id": post.unversion_id, "author_id": str(self.author.id)}
        Beloved().update("star", data)
        Beloved().update("star", data)
        self.assertEqual(Badge.objects.filter(member=self.author, name="beloved", context_id=post.unversion_id).count(), 1)

    def test_starring_a_post_ten_times_awards_beloved(self):
        post = Article(title="Starred", author=self.author, state=CURRENT)
        post.save()
        fans = self._members(10)
        for fan in fans[:9]:
            fan.stars.add(post)
        self.assertFalse(Badge.objects.filter(member=self.author, name="beloved").exists())
        fans[9].stars.add(post)
        badge = Badge.objects.get(member=self.author, name="beloved")
        self.assertEqual(badge.context_id, post.unversion_id)
        self.assertEqual(badge.metal, "silver")
        self.assertFalse(Badge.objects.filter(member=self.author, name="idolized").exists())

    def test_commentator_counts_replies(self):
        post = Article(title="Busy", author=self.author, state=CURRENT)
        post.save()
        for idx in range(10):
            Reply.post_reply(post, self.author, f"Reply {idx}")
        self.assertTrue(Badge.objects.filter(member=self.author, name="commentator").exists())

    def test_dispatch_isolates_failing_decorators(self):
        with mock.patch.object(Famous, "update", side_effect=RuntimeError("boom")):
            ran = dispatch("follow", {"member_id": str(self.author.id)})
        self.assertEqual(ran, 1)

    @override_settings(REINDEX_ASYNC_JOBS_MODE="redis")
    def test_notify_enqueues_in_redis_mode(self):
        with mock.patch("publishing.jobs.enqueue") as enqueue:
            notify("follow", {"member_id": "m1"})
        enqueue.assert_called_once_with("publishing.badges.dispatch", "follow", {"member_id": "m1"})
