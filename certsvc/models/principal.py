from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    The session collaborator issues the token; this service only verifies
    it.  ``user_id`` is the ``sub`` claim and scopes every learner-facing
    operation.  ``roles`` gate the collaborator-facing hooks
    (instructor/admin) and the admin sweep trigger.
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)
