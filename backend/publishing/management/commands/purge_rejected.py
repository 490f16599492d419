import datetime

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from publishing.models import Post, PostEvent
from publishing.versioning import REJECTED


class Command(BaseCommand):
    help = "Delete the revisions rejected more than REINDEX_REJECTED_TTL_DAYS days ago."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=None, help="Override the grace period in days.")
        parser.add_argument("--dry-run", action="store_true", help="Show the revisions without deleting them.")

    def handle(self, *args, **options):
        days = options["days"] if options["days"] is not None else settings.REINDEX_REJECTED_TTL_DAYS
        cutoff = timezone.now() - datetime.timedelta(days=days)
        expired = Post.objects.filter(state=REJECTED, updated_at__lt=cutoff).order_by("updated_at")
        purged = 0
        for post in expired:
            if options["dry_run"]:
                self.stdout.write(f"[dry-run] {post.pk} {post.title}")
                continue
            PostEvent.objects.create(
                post_id=post.pk,
                unversion_id=post.unversion_id,
                event_type="purged",
                payload_json={"rejected_at": post.updated_at.isoformat(), "reason": post.reject_reason},
            )
            post.delete()
            purged += 1
        self.stdout.write(self.style.SUCCESS(f"Purged {purged} rejected revision(s)."))
