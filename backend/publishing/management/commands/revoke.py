from ._roles import RoleCommand


class Command(RoleCommand):
    help = "Revoke a role from a member."

    def perform(self, role, member):
        if member.roles.revoke(role):
            self.stdout.write(self.style.SUCCESS(f"Role {role.name} revoked from {member.username}."))
        else:
            self.stdout.write(f"The member doesn't have the {role.name} role.")
