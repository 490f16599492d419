"""Versionable documents and their lifecycle.

A versionable document is one revision of a piece of content. All the
revisions of the same content share an ``unversion_id``; the revision id is
``<unversion_id>::<version_number>``. Every transition is gated by a
permission object resolved from the acting user's role.

    created -> submitted -> current -> approved (superseded)
                   |-> returned -> submitted
                   |-> rejected
    any -> deleted -> (previous state)
"""
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from django.db import models, transaction
from django.utils import timezone

from .exceptions import DocumentNotFoundError, InvalidFieldError, NotEnoughPrivilegesError

logger = logging.getLogger(__name__)

SEPARATOR = "::"

CREATED = "created"
DRAFT = "draft"
SUBMITTED = "submitted"
CURRENT = "current"
APPROVED = "approved"
RETURNED = "returned"
REJECTED = "rejected"
DELETED = "deleted"

STATE_CHOICES = [
    (CREATED, "Created"),
    (DRAFT, "Draft"),
    (SUBMITTED, "Submitted"),
    (CURRENT, "Current"),
    (APPROVED, "Approved"),
    (RETURNED, "Returned"),
    (REJECTED, "Rejected"),
    (DELETED, "Deleted"),
]

# Fields a new revision never inherits from the one it was created from.
_REVISION_RESET_FIELDS = {
    "id",
    "version_number",
    "previous_version_number",
    "state",
    "previous_state",
    "edit_summary",
    "reject_reason",
    "moderator",
    "dustman",
    "deleted_at",
    "editor",
    "created_at",
    "updated_at",
}


def unversion(value: str) -> str:
    """Returns the id pruned of its version number."""
    value = str(value or "")
    pos = value.find(SEPARATOR)
    return value[:pos] if pos >= 0 else value


def version_of(value: str) -> str:
    value = str(value or "")
    pos = value.find(SEPARATOR)
    return value[pos + len(SEPARATOR):] if pos >= 0 else ""


def make_id(unversion_id: str, version_number: str) -> str:
    return f"{unversion_id}{SEPARATOR}{version_number}"


def _member_or_none(user):
    if user is None or user.is_guest():
        return None
    return user


class Versionable(models.Model):
    id = models.CharField(primary_key=True, max_length=140, editable=False)
    unversion_id = models.CharField(max_length=100, db_index=True, editable=False)
    version_number = models.CharField(max_length=30, editable=False)
    previous_version_number = models.CharField(max_length=30, blank=True, default="")
    state = models.CharField(max_length=20, choices=STATE_CHOICES, default=CREATED)
    previous_state = models.CharField(max_length=20, blank=True, default="")
    author = models.ForeignKey(
        "publishing.Member", null=True, blank=True, on_delete=models.SET_NULL, related_name="%(class)s_authored"
    )
    username = models.CharField(max_length=150, blank=True, default="")
    editor = models.ForeignKey(
        "publishing.Member", null=True, blank=True, on_delete=models.SET_NULL, related_name="%(class)s_edited"
    )
    edit_summary = models.TextField(blank=True, default="")
    reject_reason = models.TextField(blank=True, default="")
    moderator = models.ForeignKey(
        "publishing.Member", null=True, blank=True, on_delete=models.SET_NULL, related_name="%(class)s_moderated"
    )
    dustman = models.ForeignKey(
        "publishing.Member", null=True, blank=True, on_delete=models.SET_NULL, related_name="%(class)s_trashed"
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    locked = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    # Identity

    def set_id(self, value: str) -> None:
        """Sets the revision id; a value without version suffix gets a fresh version number."""
        self.unversion_id = unversion(value)
        if not self.unversion_id:
            raise InvalidFieldError("The document id cannot be empty.")
        self.version_number = version_of(value) or self._new_version_number()
        self.id = make_id(self.unversion_id, self.version_number)

    def _new_version_number(self) -> str:
        number = int(time.time() * 1000)
        manager = self._meta.concrete_model._default_manager
        while manager.filter(pk=make_id(self.unversion_id, str(number))).exists():
            number += 1
        return str(number)

    def versions(self):
        """All the revisions of this content, whatever their state."""
        return self._meta.concrete_model._default_manager.filter(unversion_id=self.unversion_id)

    # Persistence

    def save(self, *args, draft: bool = False, **kwargs):
        if not self.id:
            self.set_id(uuid.uuid4().hex)
        # The state is forced in case it hasn't been changed.
        if self.state == CREATED:
            self.state = DRAFT if draft else SUBMITTED
        super().save(*args, **kwargs)

    def record_event(self, event_type: str, actor, payload: Optional[Dict[str, Any]] = None) -> None:
        """Hook called after every transition; concrete documents keep an audit trail."""

    def _require(self, user, action: str) -> None:
        if not user.has(action, self):
            logger.warning("%s refused to %s on %s (state=%s)", user, action, self.pk, self.state)
            raise NotEnoughPrivilegesError()

    def _transition(self, user, event_type: str, fields: List[str], payload: Optional[Dict[str, Any]] = None) -> None:
        if self._state.adding:
            self.save()
        else:
            self.save(update_fields=fields + ["updated_at"])
        self.record_event(event_type, _member_or_none(user), payload or {})
        logger.info("%s %s by %s", self.pk, event_type, user)

    # Control versioning methods

    def submit(self, user) -> None:
        """Submits the document for peer review."""
        self._require(user, "submit_revision")
        self.state = SUBMITTED
        self._transition(user, "submitted", ["state"])

    def approve(self, user) -> None:
        """Approves the revision, making of it the current version."""
        self._require(user, "approve_revision")
        with transaction.atomic():
            self.versions().filter(state=CURRENT).exclude(pk=self.pk).update(state=APPROVED)
            self.state = CURRENT
            self.moderator = _member_or_none(user)
            self._transition(user, "approved", ["state", "moderator"])
        from .badges import notify

        notify("approve", {"post_id": self.pk, "author_id": self.author_id})

    def return_for_revision(self, user, reason: str) -> None:
        """Asks the author to revise the document, because it's not ready for publishing."""
        self._require(user, "return_for_revision")
        self.state = RETURNED
        self.reject_reason = reason or ""
        self.moderator = _member_or_none(user)
        self._transition(user, "returned", ["state", "reject_reason", "moderator"], {"reason": self.reject_reason})

    def reject(self, user, reason: str) -> None:
        """Rejects the revision; rejected revisions are purged after a grace period."""
        self._require(user, "reject_revision")
        self.state = REJECTED
        self.reject_reason = reason or ""
        self.moderator = _member_or_none(user)
        self._transition(user, "rejected", ["state", "reject_reason", "moderator"], {"reason": self.reject_reason})

    def revert(self, user, version_number: Optional[str] = None):
        """Reverts to the given version, or to the latest approved one before this revision.

        Must be called on the current revision. Returns the revision that became current.
        """
        self._require(user, "revert_to_version")
        if version_number:
            target = self.versions().filter(version_number=str(version_number)).first()
            if target is None:
                raise DocumentNotFoundError(f"Version {version_number} of {self.unversion_id} does not exist.")
            if target.state != APPROVED:
                raise InvalidFieldError(f"Version {version_number} was never approved.")
        else:
            candidates = [
                revision
                for revision in self.versions().filter(state=APPROVED)
                if _as_int(revision.version_number) < _as_int(self.version_number)
            ]
            if not candidates:
                raise DocumentNotFoundError(f"{self.unversion_id} has no previous approved version.")
            target = max(candidates, key=lambda revision: _as_int(revision.version_number))
        with transaction.atomic():
            self.state = APPROVED
            self._transition(user, "superseded", ["state"], {"reverted_to": target.version_number})
            target.state = CURRENT
            target.moderator = _member_or_none(user)
            target._transition(user, "reverted", ["state", "moderator"], {"from": self.version_number})
        return target

    def move_to_trash(self, user) -> None:
        """Moves the document to the trash."""
        self._require(user, "move_revision_to_trash")
        self.previous_state = self.state
        self.state = DELETED
        self.dustman = _member_or_none(user)
        self.deleted_at = timezone.now()
        self._transition(user, "trashed", ["state", "previous_state", "dustman", "deleted_at"])

    def restore(self, user) -> None:
        """Restores the document to its previous state, removing it from trash."""
        self._require(user, "restore_revision")
        with transaction.atomic():
            self.state = self.previous_state or SUBMITTED
            if self.state == CURRENT:
                self.versions().filter(state=CURRENT).exclude(pk=self.pk).update(state=APPROVED)
            self.previous_state = ""
            self.dustman = None
            self.deleted_at = None
            self._transition(user, "restored", ["state", "previous_state", "dustman", "deleted_at"])

    def lock(self, user) -> None:
        self._require(user, "lock_post")
        self.locked = True
        self._transition(user, "locked", ["locked"])

    def unlock(self, user) -> None:
        self._require(user, "unlock_post")
        self.locked = False
        self._transition(user, "unlocked", ["locked"])

    def create_revision(self, user, edit_summary: str = "", **changes):
        """Returns a new, unsaved revision of this content carrying ``changes``.

        Saving the revision submits it for peer review, unless it is saved as a draft.
        """
        self._require(user, "edit_post")
        field_names = {field.name for field in self._meta.concrete_fields}
        unknown = sorted(set(changes) - field_names)
        if unknown:
            raise InvalidFieldError(f"Unknown fields: {', '.join(unknown)}")
        revision = type(self)()
        for field in self._meta.concrete_fields:
            if field.name in _REVISION_RESET_FIELDS:
                continue
            setattr(revision, field.attname, getattr(self, field.attname))
        for name, value in changes.items():
            setattr(revision, name, value)
        revision.set_id(self.unversion_id)
        revision.previous_version_number = self.version_number
        revision.edit_summary = edit_summary or ""
        revision.editor = _member_or_none(user)
        revision.state = CREATED
        return revision

    def past_versions(self) -> List[Dict[str, Any]]:
        """Gets information about all the versions of this content, newest first."""
        revisions = sorted(self.versions().select_related("editor"), key=lambda r: _as_int(r.version_number), reverse=True)
        return [
            {
                "id": revision.pk,
                "version_number": revision.version_number,
                "previous_version_number": revision.previous_version_number,
                "state": revision.state,
                "editor": revision.editor.username if revision.editor else "",
                "edit_summary": revision.edit_summary,
                "created_at": revision.created_at.isoformat() if revision.created_at else "",
            }
            for revision in revisions
        ]

    # Author helpers

    @property
    def author_username(self) -> str:
        if self.author_id:
            return self.author.username
        return self.username

    @property
    def gravatar_url(self) -> str:
        from .models import gravatar_url

        return gravatar_url(self.author.email if self.author_id else "")


def _as_int(value: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
