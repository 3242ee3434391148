"""Exceptions raised by the pelada core."""

from __future__ import annotations


class TournamentRuleError(ValueError):
    """An operation would break a match rule. State is left untouched."""


class EntityNotFound(Exception):
    """Raised when a match, game, goal, team, player or preset id does not exist."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")
