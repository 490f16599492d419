import os
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.contrib.sessions.middleware import SessionMiddleware
from django.test import RequestFactory, TestCase

from publishing.guardian import SESSION_MEMBER_KEY
from publishing.models import Member
from reindex import middleware


def _with_session(request):
    session_middleware = SessionMiddleware(lambda req: None)
    session_middleware.process_request(request)
    request.session.save()
    request.user = AnonymousUser()
    return request


class ApiTokenAuthMiddlewareTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = middleware.ApiTokenAuthMiddleware(lambda request: request)

    def test_service_token_authenticates_the_service_user(self):
        request = _with_session(self.factory.get("/api/me", HTTP_AUTHORIZATION="Bearer s3cret"))
        env = {**os.environ, "REINDEX_UI_BEARER_TOKEN": "s3cret", "REINDEX_UI_BEARER_USER": "ui"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.middleware(request)
        self.assertEqual(request.user.username, "ui")
        self.assertTrue(request.user.is_staff)
        self.assertTrue(request._dont_enforce_csrf_checks)
        self.assertTrue(Member.objects.filter(user=request.user, username="ui").exists())

    def test_oidc_token_creates_a_member(self):
        request = _with_session(self.factory.get("/api/me", HTTP_AUTHORIZATION="Bearer id-token"))
        claims = {"email": "Ada@Example.com", "email_verified": True, "name": "Ada"}
        with mock.patch.object(middleware, "_verify_oidc_token", return_value=claims):
            self.middleware(request)
        self.assertEqual(request.user.username, "ada@example.com")
        member = Member.objects.get(user=request.user)
        self.assertEqual(member.username, "ada")
        self.assertEqual(member.display_name, "Ada")

    def test_unverified_or_foreign_emails_are_ignored(self):
        self.assertIsNone(middleware._get_or_create_user_from_claims({"email": "a@example.com", "email_verified": False}))
        env = {**os.environ, "ALLOWED_LOGIN_DOMAINS": "example.com"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertIsNone(middleware._get_or_create_user_from_claims({"email": "eve@evil.test"}))

    def test_invalid_token_leaves_the_request_anonymous(self):
        request = _with_session(self.factory.get("/api/me", HTTP_AUTHORIZATION="Bearer junk"))
        with mock.patch.object(middleware, "_verify_oidc_token", return_value=None):
            self.middleware(request)
        self.assertFalse(request.user.is_authenticated)

    def test_extract_bearer_token(self):
        self.assertEqual(middleware._extract_bearer_token(self.factory.get("/", HTTP_AUTHORIZATION="Basic abc")), "")
        self.assertEqual(middleware._extract_bearer_token(self.factory.get("/", HTTP_AUTHORIZATION="bearer abc")), "abc")

    def test_oidc_is_disabled_without_client_id(self):
        env = {key: value for key, value in os.environ.items() if key != "OIDC_CLIENT_ID"}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertIsNone(middleware._verify_oidc_token("token"))

    def test_jwks_client_is_discovered_once_per_issuer(self):
        discovery = mock.Mock()
        discovery.json.return_value = {"jwks_uri": "https://issuer.test/keys"}
        with (
            mock.patch.dict(middleware._JWKS_CLIENTS, clear=True),
            mock.patch.object(middleware.requests, "get", return_value=discovery) as get,
        ):
            first = middleware._get_jwks_client("https://issuer.test")
            second = middleware._get_jwks_client("https://issuer.test")
        self.assertIs(first, second)
        self.assertEqual(first.uri, "https://issuer.test/keys")
        get.assert_called_once_with("https://issuer.test/.well-known/openid-configuration", timeout=10)

    def test_jwks_discovery_failures_are_not_cached(self):
        with (
            mock.patch.dict(middleware._JWKS_CLIENTS, clear=True),
            mock.patch.object(middleware.requests, "get", side_effect=requests.ConnectionError("down")),
        ):
            self.assertIsNone(middleware._get_jwks_client("https://issuer.test"))
            self.assertNotIn("https://issuer.test", middleware._JWKS_CLIENTS)


class GuardianMiddlewareTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = middleware.GuardianMiddleware(lambda request: request)

    def test_anonymous_request_acts_as_guest(self):
        request = _with_session(self.factory.get("/"))
        self.middleware(request)
        self.assertTrue(request.member.is_guest())

    def test_authenticated_user_is_logged_in_as_its_member(self):
        user = get_user_model().objects.create_user(username="ada", password="pass")
        member = Member.objects.create(username="ada", user=user)
        request = _with_session(self.factory.get("/"))
        request.user = user
        self.middleware(request)
        self.assertEqual(request.member, member)
        self.assertEqual(request.session[SESSION_MEMBER_KEY], str(member.id))
