from django.core.management.base import CommandError

from publishing.roles import GuestRole

from ._roles import RoleCommand


class Command(RoleCommand):
    help = "Grant a role to a member."

    def perform(self, role, member):
        if role is GuestRole:
            raise CommandError("The guest role can't be granted.")
        if member.roles.are_superior_than(role):
            self.stdout.write("A superior role already exists for the member.")
            return
        member.roles.grant(role)
        self.stdout.write(self.style.SUCCESS(f"Role {role.name} granted to {member.username}."))
