import os
from types import SimpleNamespace
from unittest import mock

from allauth.exceptions import ImmediateHttpResponse
from allauth.socialaccount.adapter import DefaultSocialAccountAdapter
from django.contrib.auth import get_user_model
from django.contrib.sessions.middleware import SessionMiddleware
from django.test import RequestFactory, TestCase

from publishing.guardian import SESSION_MEMBER_KEY
from publishing.models import Member, RoleGrant
from reindex.adapters import MemberSocialAccountAdapter, guess_username


def _with_session(request):
    middleware = SessionMiddleware(lambda req: None)
    middleware.process_request(request)
    request.session.save()
    return request


class MemberSocialAccountAdapterTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.adapter = MemberSocialAccountAdapter()
        self.User = get_user_model()

    def _sociallogin(self, *, email: str, uid: str, name: str = "User", link: str = ""):
        user = self.User(username=email, email=email, is_active=True)
        account = SimpleNamespace(
            provider="google",
            uid=uid,
            extra_data={"email": email, "sub": uid, "name": name, "link": link},
        )
        return SimpleNamespace(user=user, account=account)

    def _persisted(self, username):
        return self.User.objects.create(username=username, email=f"{username}@example.com", is_active=True)

    def test_guess_username(self):
        self.assertEqual(guess_username("mario@example.com", "https://www.linkedin.com/in/mario-rossi/"), "mario-rossi")
        self.assertEqual(guess_username("mario.rossi@example.com"), "mariorossi")
        Member.objects.create(username="mariorossi")
        self.assertEqual(guess_username("mario.rossi@example.com"), "mariorossi-2")
        self.assertEqual(guess_username(name="Mario Rossi"), "mario-rossi")

    def test_save_user_creates_member_and_session(self):
        request = _with_session(self.factory.get("/accounts/google/login/callback/"))
        sociallogin = self._sociallogin(email="ada@example.com", uid="sub-123", name="Ada")
        persisted_user = self._persisted("ada")
        with mock.patch.object(DefaultSocialAccountAdapter, "save_user", return_value=persisted_user):
            user = self.adapter.save_user(request, sociallogin)

        member = Member.objects.get(user=user)
        self.assertEqual(member.username, "ada")
        self.assertEqual(member.display_name, "Ada")
        self.assertTrue(member.confirmed)
        self.assertEqual(member.logins_json[0]["uid"], "sub-123")
        self.assertEqual(request.session.get(SESSION_MEMBER_KEY), str(member.id))
        self.assertFalse(RoleGrant.objects.exists())

    def test_save_user_links_an_imported_member(self):
        imported = Member.objects.create(username="ada-legacy", email="ada@example.com", legacy_id="u-1")
        request = _with_session(self.factory.get("/accounts/google/login/callback/"))
        persisted_user = self._persisted("ada")
        with mock.patch.object(DefaultSocialAccountAdapter, "save_user", return_value=persisted_user):
            self.adapter.save_user(request, self._sociallogin(email="ada@example.com", uid="sub-1"))
        imported.refresh_from_db()
        self.assertEqual(imported.user, persisted_user)
        self.assertEqual(Member.objects.count(), 1)

    def test_save_user_bootstraps_first_admin_when_enabled(self):
        request = _with_session(self.factory.get("/accounts/google/login/callback/"))
        persisted_user = self._persisted("firstadmin")
        env = {**os.environ, "ALLOW_FIRST_ADMIN_BOOTSTRAP": "true"}
        with (
            mock.patch.dict(os.environ, env, clear=True),
            mock.patch.object(DefaultSocialAccountAdapter, "save_user", return_value=persisted_user),
        ):
            self.adapter.save_user(request, self._sociallogin(email="firstadmin@example.com", uid="sub-first"))

        member = Member.objects.get(user=persisted_user)
        self.assertTrue(member.is_admin())

    def test_pre_social_login_rejects_foreign_domains(self):
        request = _with_session(self.factory.get("/accounts/google/login/callback/"))
        env = {**os.environ, "ALLOWED_LOGIN_DOMAINS": "example.com"}
        with mock.patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ImmediateHttpResponse):
                self.adapter.pre_social_login(request, self._sociallogin(email="eve@evil.test", uid="sub-eve"))
            self.assertFalse(self.adapter.is_open_for_signup(request, self._sociallogin(email="eve@evil.test", uid="x")))
            self.assertTrue(self.adapter.is_open_for_signup(request, self._sociallogin(email="ada@example.com", uid="y")))
