import logging
import os
from typing import Any, Dict, Optional

import jwt
import requests
from django.contrib.auth import get_user_model

from publishing.guardian import SESSION_MEMBER_KEY, Guardian
from publishing.models import Member

logger = logging.getLogger(__name__)

JWKS_LIFESPAN = 3600


class ApiTokenAuthMiddleware:
    """Authenticates API clients presenting a bearer token.

    The token is either the shared service token or an OIDC id token; in both
    cases the request user is the Django user linked to a member.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        token = _extract_bearer_token(request)
        if token:
            expected = os.environ.get("REINDEX_UI_BEARER_TOKEN", "").strip()
            if expected and token == expected:
                user = _get_service_user()
            else:
                claims = _verify_oidc_token(token)
                user = _get_or_create_user_from_claims(claims) if claims else None
            if user:
                request.user = user
                request._cached_user = user
                request._dont_enforce_csrf_checks = True
        return self.get_response(request)


class GuardianMiddleware:
    """Attaches a Guardian to every request, exposing the acting user as ``request.member``."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.guardian = Guardian(request)
        session = getattr(request, "session", None)
        if session is not None and not session.get(SESSION_MEMBER_KEY):
            real_user = request.guardian.real_user
            if not real_user.is_guest():
                request.guardian.login(real_user)
        request.member = request.guardian.user
        return self.get_response(request)


def _extract_bearer_token(request) -> str:
    header = request.headers.get("Authorization", "")
    if not header:
        return ""
    parts = header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def _get_service_user():
    User = get_user_model()
    username = os.environ.get("REINDEX_UI_BEARER_USER", "reindex-ui").strip() or "reindex-ui"
    user, created = User.objects.get_or_create(
        username=username,
        defaults={"is_staff": True, "is_active": True, "email": ""},
    )
    if created or not user.is_staff:
        user.is_staff = True
        user.is_active = True
        user.save(update_fields=["is_staff", "is_active"])
    _ensure_member(user)
    return user


_JWKS_CLIENTS: Dict[str, jwt.PyJWKClient] = {}


def _verify_oidc_token(token: str) -> Optional[Dict[str, Any]]:
    issuer = os.environ.get("OIDC_ISSUER", "https://accounts.google.com").strip().rstrip("/")
    audience = os.environ.get("OIDC_CLIENT_ID", "").strip()
    if not audience:
        return None
    jwk_client = _get_jwks_client(issuer)
    if not jwk_client:
        return None
    try:
        signing_key = jwk_client.get_signing_key_from_jwt(token)
        return jwt.decode(token, signing_key.key, algorithms=["RS256"], audience=audience, issuer=issuer)
    except jwt.PyJWTError as exc:
        logger.info("Rejected bearer token: %s", exc)
        return None


def _get_jwks_client(issuer: str) -> Optional[jwt.PyJWKClient]:
    """Returns the key client of ``issuer``, discovering its JWKS endpoint once.

    The client caches the key set itself and refetches it after an hour.
    """
    if issuer in _JWKS_CLIENTS:
        return _JWKS_CLIENTS[issuer]
    try:
        discovery = requests.get(f"{issuer}/.well-known/openid-configuration", timeout=10)
        discovery.raise_for_status()
        jwks_uri = discovery.json().get("jwks_uri")
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Unable to discover the keys of %s: %s", issuer, exc)
        return None
    if not jwks_uri:
        logger.warning("The OIDC configuration of %s has no jwks_uri", issuer)
        return None
    _JWKS_CLIENTS[issuer] = jwt.PyJWKClient(jwks_uri, lifespan=JWKS_LIFESPAN)
    return _JWKS_CLIENTS[issuer]


def _allowed_domains():
    raw = os.environ.get("OIDC_ALLOWED_DOMAINS") or os.environ.get("ALLOWED_LOGIN_DOMAINS", "")
    return {domain.strip().lower() for domain in raw.split(",") if domain.strip()}


def _get_or_create_user_from_claims(claims: Dict[str, Any]):
    email = (claims.get("email") or "").strip().lower()
    if not email:
        return None
    if claims.get("email_verified") is False:
        return None
    allowed = _allowed_domains()
    domain = email.split("@")[-1] if "@" in email else ""
    if allowed and domain not in allowed:
        return None
    User = get_user_model()
    user, created = User.objects.get_or_create(
        username=email,
        defaults={"email": email, "is_active": True},
    )
    if created or not user.is_active:
        user.is_active = True
        user.email = email
        user.save(update_fields=["is_active", "email"])
    _ensure_member(user, name=str(claims.get("name") or ""))
    return user


def _ensure_member(user, name: str = "") -> Member:
    member = Member.objects.filter(user=user).first()
    if member:
        return member
    base = (user.email or user.username).split("@")[0]
    member = Member.objects.create(
        user=user,
        username=Member.unique_username(base),
        email=user.email or "",
        display_name=name,
        confirmed=True,
    )
    logger.info("Created member %s for user %s", member.username, user.pk)
    return member
