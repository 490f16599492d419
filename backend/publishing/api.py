import json
from functools import wraps
from typing import Any, Dict

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from .exceptions import DocumentNotFoundError, ReIndexError
from .guardian import Guardian
from .models import Article, Book, Guest, Member, Post, Reply, Tutorial
from .roles import get_role
from .versioning import CURRENT

POST_CLASSES = {"article": Article, "book": Book, "tutorial": Tutorial}
EDITABLE_FIELDS = {"title", "body", "publishing_date"}


def _parse_json(request: HttpRequest) -> Dict[str, Any]:
    if request.body:
        try:
            return json.loads(request.body.decode("utf-8"))
        except json.JSONDecodeError:
            return {}
    return {}


def _guardian(request: HttpRequest) -> Guardian:
    guardian = getattr(request, "guardian", None)
    if guardian is None:
        guardian = Guardian(request)
        request.guardian = guardian  # type: ignore[attr-defined]
    return guardian


def _domain_errors(view):
    @wraps(view)
    def _wrapped(request: HttpRequest, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except ReIndexError as exc:
            return JsonResponse({"error": str(exc)}, status=exc.status_code)

    return _wrapped


def require_member(view):
    @wraps(view)
    def _wrapped(request: HttpRequest, *args, **kwargs):
        user = _guardian(request).user
        if user.is_guest():
            return JsonResponse({"error": "not authenticated"}, status=401)
        request.member = user  # type: ignore[attr-defined]
        return view(request, *args, **kwargs)

    return _wrapped


def _get_revision(revision_id: str) -> Post:
    post = Post.objects.filter(pk=revision_id).select_related("author").first()
    if post is None:
        raise DocumentNotFoundError(f"Revision not found: {revision_id}")
    return post


def _get_current(unversion_id: str) -> Post:
    post = Post.objects.filter(unversion_id=unversion_id, state=CURRENT).first()
    if post is None:
        raise DocumentNotFoundError(f"Post not found: {unversion_id}")
    return post


def _get_member(username: str) -> Member:
    member = Member.objects.filter(username=username).first()
    if member is None:
        raise DocumentNotFoundError(f"Member not found: {username}")
    return member


def _serialize_user(user) -> Dict[str, Any]:
    if user.is_guest():
        return {"id": None, "username": "guest", "role": "guest"}
    return {
        "id": str(user.id),
        "username": user.username,
        "role": user.main_role.name,
        "gravatar_url": user.gravatar_url,
    }


def _serialize_revision(post: Post) -> Dict[str, Any]:
    return {
        "id": post.pk,
        "unversion_id": post.unversion_id,
        "version_number": post.version_number,
        "previous_version_number": post.previous_version_number,
        "type": post.type,
        "state": post.state,
        "title": post.title,
        "body": post.body,
        "html": post.html,
        "excerpt": post.excerpt,
        "author": post.author_username,
        "locked": post.locked,
        "edit_summary": post.edit_summary,
        "reject_reason": post.reject_reason,
        "meta": post.meta_json or {},
        "updated_at": post.updated_at.isoformat() if post.updated_at else "",
    }


def me(request: HttpRequest) -> JsonResponse:
    guardian = _guardian(request)
    payload = _serialize_user(guardian.user)
    payload["impersonating"] = guardian.user != guardian.real_user
    return JsonResponse(payload)


@csrf_exempt
@_domain_errors
@require_member
def posts_collection(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return JsonResponse({"error": "method not allowed"}, status=405)
    payload = _parse_json(request)
    post_class = POST_CLASSES.get(str(payload.get("type") or "article"))
    if post_class is None:
        return JsonResponse({"error": "type must be one of: " + ", ".join(POST_CLASSES)}, status=400)
    title = str(payload.get("title") or "").strip()
    if not title:
        return JsonResponse({"error": "title required"}, status=400)
    post = post_class(title=title, body=str(payload.get("body") or ""), author=request.member)
    post.save(draft=bool(payload.get("draft")))
    post.record_event("created", request.member, {"draft": post.state != "submitted"})
    return JsonResponse({"post": _serialize_revision(post)})


@_domain_errors
def revision_detail(request: HttpRequest, revision_id: str) -> JsonResponse:
    post = _get_revision(revision_id)
    _guardian(request).require("view_post", post)
    return JsonResponse({"post": _serialize_revision(post)})


@_domain_errors
def post_versions(request: HttpRequest, unversion_id: str) -> JsonResponse:
    post = _get_current(unversion_id)
    _guardian(request).require("view_post", post)
    return JsonResponse({"versions": post.past_versions()})


@csrf_exempt
@_domain_errors
@require_member
def revision_edit(request: HttpRequest, revision_id: str) -> JsonResponse:
    if request.method != "POST":
        return JsonResponse({"error": "method not allowed"}, status=405)
    post = _get_revision(revision_id)
    payload = _parse_json(request)
    changes = {key: value for key, value in payload.items() if key in EDITABLE_FIELDS}
    revision = post.create_revision(request.member, edit_summary=str(payload.get("edit_summary") or ""), **changes)
    revision.save(draft=bool(payload.get("draft")))
    revision.record_event("revised", request.member, {"previous_version_number": post.version_number})
    return JsonResponse({"post": _serialize_revision(revision)})


@csrf_exempt
@_domain_errors
@require_member
def revision_transition(request: HttpRequest, revision_id: str, action: str) -> JsonResponse:
    if request.method != "POST":
        return JsonResponse({"error": "method not allowed"}, status=405)
    post = _get_revision(revision_id)
    payload = _parse_json(request)
    user = request.member
    reason = str(payload.get("reason") or "")
    if action == "submit":
        post.submit(user)
    elif action == "approve":
        post.approve(user)
    elif action == "return":
        post.return_for_revision(user, reason)
    elif action == "reject":
        post.reject(user, reason)
    elif action == "revert":
        post = post.revert(user, payload.get("version_number"))
    elif action == "trash":
        post.move_to_trash(user)
    elif action == "restore":
        post.restore(user)
    elif action == "lock":
        post.lock(user)
    elif action == "unlock":
        post.unlock(user)
    else:
        return JsonResponse({"error": f"unknown action: {action}"}, status=404)
    return JsonResponse({"post": _serialize_revision(post)})


@_domain_errors
def member_detail(request: HttpRequest, username: str) -> JsonResponse:
    member = _get_member(username)
    payload = _serialize_user(member)
    payload["headline"] = member.headline
    payload["followers"] = member.followers.count()
    payload["badges"] = [
        {"name": badge.name, "metal": badge.metal, "context_id": badge.context_id}
        for badge in member.badges.all()
    ]
    return JsonResponse({"member": payload})


@csrf_exempt
@_domain_errors
@require_member
def member_follow(request: HttpRequest, username: str) -> JsonResponse:
    member = _get_member(username)
    if request.method == "POST":
        request.member.follow(member)
    elif request.method == "DELETE":
        request.member.unfollow(member)
    else:
        return JsonResponse({"error": "method not allowed"}, status=405)
    return JsonResponse({"following": request.method == "POST", "followers": member.followers.count()})


@csrf_exempt
@_domain_errors
@require_member
def post_star(request: HttpRequest, unversion_id: str) -> JsonResponse:
    post = _get_current(unversion_id)
    if request.method == "POST":
        request.member.stars.add(post)
    elif request.method == "DELETE":
        request.member.stars.remove(post)
    else:
        return JsonResponse({"error": "method not allowed"}, status=405)
    return JsonResponse({"starred": request.method == "POST", "stars": request.member.stars.count_for(unversion_id)})


@csrf_exempt
@_domain_errors
@require_member
def post_subscription(request: HttpRequest, unversion_id: str) -> JsonResponse:
    post = _get_current(unversion_id)
    if request.method == "POST":
        request.member.subscriptions.add(post)
    elif request.method == "DELETE":
        request.member.subscriptions.remove(post)
    else:
        return JsonResponse({"error": "method not allowed"}, status=405)
    return JsonResponse({"subscribed": request.method == "POST"})


@csrf_exempt
@_domain_errors
@require_member
def post_replies(request: HttpRequest, unversion_id: str) -> JsonResponse:
    post = _get_current(unversion_id)
    if request.method != "POST":
        return JsonResponse({"error": "method not allowed"}, status=405)
    body = str(_parse_json(request).get("body") or "").strip()
    if not body:
        return JsonResponse({"error": "body required"}, status=400)
    reply = Reply.post_reply(post, request.member, body)
    return JsonResponse({"reply": {"id": str(reply.id), "post_id": reply.post_id, "html": reply.html}})


@csrf_exempt
@_domain_errors
def impersonation(request: HttpRequest) -> JsonResponse:
    guardian = _guardian(request)
    if guardian.real_user.is_guest():
        return JsonResponse({"error": "not authenticated"}, status=401)
    if request.method == "DELETE":
        guardian.stop_impersonating()
    elif request.method == "POST":
        username = str(_parse_json(request).get("username") or "").strip()
        if not username:
            return JsonResponse({"error": "username required"}, status=400)
        target = Guest() if username == "guest" else _get_member(username)
        guardian.impersonate(target)
    else:
        return JsonResponse({"error": "method not allowed"}, status=405)
    return JsonResponse({"user": _serialize_user(guardian.user)})


@csrf_exempt
@_domain_errors
@require_member
def member_roles(request: HttpRequest, username: str, role: str) -> JsonResponse:
    member = _get_member(username)
    role_class = get_role(role)
    if request.method == "POST":
        _guardian(request).require("grant_role", member)
        member.roles.grant(role_class)
    elif request.method == "DELETE":
        _guardian(request).require("revoke_role", member)
        member.roles.revoke(role_class)
    else:
        return JsonResponse({"error": "method not allowed"}, status=405)
    return JsonResponse({"username": member.username, "roles": [granted.name for granted in member.roles.all()]})
