from django.core.management.base import BaseCommand, CommandError

from publishing.exceptions import InvalidFieldError
from publishing.models import Member
from publishing.roles import get_role


class RoleCommand(BaseCommand):
    """Shared arguments of the commands managing a member's roles."""

    def add_arguments(self, parser):
        parser.add_argument("role", help="One of: member, editor, reviewer, moderator, admin.")
        parser.add_argument("username", help="The member's username.")

    def handle(self, *args, **options):
        try:
            role = get_role(options["role"])
        except InvalidFieldError as exc:
            raise CommandError(str(exc))
        member = Member.objects.filter(username=options["username"]).first()
        if not member:
            raise CommandError(f"Member not found: {options['username']}")
        try:
            self.perform(role, member)
        except InvalidFieldError as exc:
            raise CommandError(str(exc))

    def perform(self, role, member: Member) -> None:
        raise NotImplementedError
