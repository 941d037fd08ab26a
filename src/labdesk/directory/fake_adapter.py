"""In-memory staff directory for tests and local development.

Members are listed in registration order, which is the tie-break order the
assignment engine relies on.
"""

from labdesk.directory.port import StaffDirectory, StaffMember


class InMemoryStaffDirectory(StaffDirectory):
    def __init__(self, members: list[StaffMember] | None = None):
        self._members: dict[str, StaffMember] = {}
        for member in members or []:
            self.register(member)

    def register(self, member: StaffMember) -> StaffMember:
        self._members[member.user_id] = member
        return member

    def add(self, user_id: str, role: str, name: str = "", email: str = "", active: bool = True) -> StaffMember:
        """Shorthand for registering a member from plain values."""
        return self.register(
            StaffMember(
                user_id=user_id,
                name=name or user_id,
                email=email or f"{user_id}@labdesk.test",
                role=role,
                active=active,
            )
        )

    def deactivate(self, user_id: str) -> None:
        member = self._members[user_id]
        self._members[user_id] = StaffMember(
            user_id=member.user_id,
            name=member.name,
            email=member.email,
            role=member.role,
            active=False,
        )

    def clear(self) -> None:
        self._members.clear()

    def get(self, user_id: str) -> StaffMember | None:
        return self._members.get(user_id)

    def list_active(self, *roles: str) -> list[StaffMember]:
        return [m for m in self._members.values() if m.active and m.role in roles]
