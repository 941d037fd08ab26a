"""Staff directory port: who works here and in which role.

The identity provider owns user accounts; the domain only needs to resolve a
single member and enumerate active members holding a role (warehouse
operators for assignment, administrators for approval notices).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StaffMember:
    """An account as seen by the directory."""

    user_id: str
    name: str
    email: str
    role: str
    active: bool = True


class StaffDirectory(ABC):
    """Abstract interface for staff directory adapters."""

    @abstractmethod
    def get(self, user_id: str) -> StaffMember | None:
        """Return the member with ``user_id``, or ``None`` if unknown."""
        ...

    @abstractmethod
    def list_active(self, *roles: str) -> list[StaffMember]:
        """Return active members holding any of ``roles``, in listing order."""
        ...
