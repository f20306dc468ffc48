"""Error types raised by the family graph store and reconciler."""


class FamilyGraphError(Exception):
    """Base class for family graph errors."""


class InvalidInput(FamilyGraphError):
    """Self-referential or otherwise malformed relation. Never retried."""


class Conflict(FamilyGraphError):
    """The relationship already exists (duplicate triple or unique constraint race)."""


class NotFound(FamilyGraphError):
    """A lookup or delete referenced an id that does not exist."""


class UniqueConstraintError(FamilyGraphError):
    """Raised by the store when a (from, to, type) triple is inserted twice."""

    def __init__(self, person_from_id: str, person_to_id: str, relationship_type: str):
        self.person_from_id = person_from_id
        self.person_to_id = person_to_id
        self.relationship_type = relationship_type
        super().__init__(
            f"Unique constraint violated: ({person_from_id}, {person_to_id}, {relationship_type})"
        )
