import logging
import os
import re
from urllib.parse import urlparse

from allauth.exceptions import ImmediateHttpResponse
from allauth.socialaccount.adapter import DefaultSocialAccountAdapter
from django.http import HttpResponseForbidden

from publishing.guardian import Guardian
from publishing.models import Member, RoleGrant
from publishing.roles import AdminRole

logger = logging.getLogger(__name__)

_PROFILE_NAME_RE = re.compile(r"^/in/([^/]+)")


def _allowed_domains():
    raw = os.environ.get("ALLOWED_LOGIN_DOMAINS", "")
    return {domain.strip().lower() for domain in raw.split(",") if domain.strip()}


def _email_domain(email):
    if not email or "@" not in email:
        return ""
    return email.split("@", 1)[1].lower()


def _domain_allowed(email) -> bool:
    allowed = _allowed_domains()
    return not allowed or _email_domain(email) in allowed


def guess_username(email: str = "", profile_url: str = "", name: str = "") -> str:
    """Guesses a free username from the public profile url, else the email, else the name."""
    match = _PROFILE_NAME_RE.match(urlparse(profile_url or "").path or "")
    if match:
        base = match.group(1)
    elif email and "@" in email:
        base = email.split("@", 1)[0]
    else:
        base = name
    return Member.unique_username(base)


def _extra_data(sociallogin) -> dict:
    account = getattr(sociallogin, "account", None)
    return getattr(account, "extra_data", {}) or {}


def _email_of(sociallogin) -> str:
    user = getattr(sociallogin, "user", None)
    email = getattr(user, "email", "") or _extra_data(sociallogin).get("email") or ""
    return email.strip().lower()


class MemberSocialAccountAdapter(DefaultSocialAccountAdapter):
    def is_open_for_signup(self, request, sociallogin):
        return _domain_allowed(_email_of(sociallogin))

    def pre_social_login(self, request, sociallogin):
        if not _domain_allowed(_email_of(sociallogin)):
            raise ImmediateHttpResponse(HttpResponseForbidden("Email domain is not allowed."))
        if sociallogin.user and sociallogin.user.pk:
            _sync_member_session(request, sociallogin, sociallogin.user)

    def save_user(self, request, sociallogin, form=None):
        user = super().save_user(request, sociallogin, form)
        _sync_member_session(request, sociallogin, user)
        return user


def _sync_member_session(request, sociallogin, user) -> Member:
    account = getattr(sociallogin, "account", None)
    extra_data = _extra_data(sociallogin)
    provider = getattr(account, "provider", "") or "google"
    uid = (getattr(account, "uid", "") or extra_data.get("sub") or "").strip()
    email = _email_of(sociallogin)
    profile_url = str(extra_data.get("link") or extra_data.get("profile") or "")
    display_name = str(extra_data.get("name") or "").strip()

    member = Member.objects.filter(user=user).first()
    if member is None and email:
        member = Member.objects.filter(email=email, user__isnull=True).first()
    if member is None:
        bootstrap = not Member.objects.exists()
        member = Member(
            username=guess_username(email, profile_url, display_name),
            email=email,
            display_name=display_name,
            first_name=str(extra_data.get("given_name") or ""),
            last_name=str(extra_data.get("family_name") or ""),
        )
        member.confirm()
        logger.info("Signed up member %s", member.username)
    else:
        bootstrap = False
    member.user = user
    member.add_login(provider, uid, email, profile_url)
    member.save()

    if (
        os.environ.get("ALLOW_FIRST_ADMIN_BOOTSTRAP", "").lower() == "true"
        and (bootstrap or not RoleGrant.objects.exists())
    ):
        member.roles.grant(AdminRole)
        logger.warning("Bootstrapped %s as first admin", member.username)

    Guardian(request).login(member)
    return member
