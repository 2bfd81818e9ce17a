from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated bearer token.

    user_id: subject claim, a UUID in string form
    roles: platform roles (student, instructor, admin, payments)
    """

    user_id: str
    roles: frozenset[str]

    @property
    def id(self) -> UUID:
        return UUID(self.user_id)

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_admin(self) -> bool:
        return "admin" in self.roles

    def is_user(self, user_id: UUID) -> bool:
        return self.user_id == str(user_id)
