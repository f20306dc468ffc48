"""Keeps directional relationship rows paired with their reverse rows.

Every relationship is stored as a directional row (from -> to). A type with
a reverse (GRANDPARENT -> GRANDCHILD) or a mutual type (SIBLING -> SIBLING)
also needs the row pointing the other way. The reconciler is the only place
that writes or deletes those pairs, so callers never end up with one side.
"""

import logging
from dataclasses import dataclass
from typing import Any

from family_errors import Conflict, InvalidInput, UniqueConstraintError
from family_models import Gender, Person, Relationship, RelationshipType
from family_store import FamilyStore
from relationship_types import (
    RELATIONSHIP_CATEGORIES,
    get_gender_specific_label,
    get_relationship_info,
    is_mutual_relationship,
    is_valid_relationship_type,
    reverse_type_of,
)

logger = logging.getLogger("familygraph.reconciler")

# Re-exported so callers only need this module for the pairing rules
__all__ = [
    "RelationshipReconciler",
    "ReconcileResult",
    "InconsistentPair",
    "audit_pairs",
    "describe_relationships",
    "group_by_category",
    "available_persons",
    "is_mutual_relationship",
    "reverse_type_of",
]


@dataclass
class ReconcileResult:
    primary: Relationship
    reverse: Relationship | None = None


@dataclass(frozen=True)
class InconsistentPair:
    """A row whose expected reverse row is missing."""
    relationship: Relationship
    expected_reverse_type: RelationshipType


class RelationshipReconciler:
    """Creates and deletes relationship rows together with their reverse rows."""

    def __init__(self, store: FamilyStore):
        self.store = store

    def create(
        self,
        rel_type: RelationshipType | str,
        person_from_id: str,
        person_to_id: str,
    ) -> ReconcileResult:
        """
        Create a relationship and, when its type defines one, the reverse row.

        Raises:
            InvalidInput: self-relationship or unknown relationship type
            NotFound: either person does not exist
            Conflict: the exact (from, to, type) row already exists
        """
        if person_from_id == person_to_id:
            raise InvalidInput("A person cannot have a relationship with themselves")
        if not is_valid_relationship_type(rel_type):
            raise InvalidInput(f"Unknown relationship type: '{rel_type}'")
        rel_type = RelationshipType(rel_type)

        for person_id in (person_from_id, person_to_id):
            self.store.get_person(person_id)

        if self.store.find_relationship(person_from_id, person_to_id, rel_type) is not None:
            logger.info(f"Rejected duplicate {rel_type.value} relationship {person_from_id} -> {person_to_id}")
            raise Conflict("Relationship already exists")

        reverse_type = reverse_type_of(rel_type)
        with self.store.transaction(f"Create {rel_type.value} {person_from_id} -> {person_to_id}"):
            try:
                primary = self.store.insert_relationship(rel_type, person_from_id, person_to_id)
            except UniqueConstraintError as e:
                # Lost a race with a concurrent writer between the check and the insert
                logger.info(f"Unique constraint rejected {e.relationship_type} {person_from_id} -> {person_to_id}")
                raise Conflict("Relationship already exists") from e

            reverse = None
            if reverse_type is not None:
                reverse = self._create_reverse(reverse_type, person_to_id, person_from_id)

        logger.info(
            f"Created {rel_type.value} relationship {primary.id} ({person_from_id} -> {person_to_id})"
            + (f" with reverse {reverse.id}" if reverse else "")
        )
        return ReconcileResult(primary=primary, reverse=reverse)

    def _create_reverse(
        self,
        reverse_type: RelationshipType,
        person_from_id: str,
        person_to_id: str,
    ) -> Relationship | None:
        if self.store.find_relationship(person_from_id, person_to_id, reverse_type) is not None:
            logger.debug(f"Reverse {reverse_type.value} {person_from_id} -> {person_to_id} already present")
            return None
        try:
            return self.store.insert_relationship(reverse_type, person_from_id, person_to_id)
        except UniqueConstraintError:
            # A concurrent create already wrote this side; same outcome as "already present"
            logger.debug(f"Reverse {reverse_type.value} {person_from_id} -> {person_to_id} inserted concurrently")
            return None

    def delete(self, relationship_id: str) -> list[str]:
        """
        Delete a relationship and its reverse row if one exists.

        The reverse delete is best-effort: a reverse row that was already
        removed is not an error. Returns the ids actually removed.

        Raises:
            NotFound: no relationship with this id
        """
        relationship = self.store.get_relationship(relationship_id)
        reverse_type = reverse_type_of(relationship.type)

        with self.store.transaction(f"Delete relationship {relationship_id}"):
            self.store.remove_relationship(relationship_id)
            removed = [relationship_id]
            if reverse_type is not None:
                reverse_rows = self.store.remove_matching_relationships(
                    relationship.person_to_id,
                    relationship.person_from_id,
                    reverse_type,
                )
                removed.extend(r.id for r in reverse_rows)
                if not reverse_rows:
                    logger.warning(
                        f"Relationship {relationship_id} had no reverse {reverse_type.value} row "
                        f"({relationship.person_to_id} -> {relationship.person_from_id})"
                    )

        logger.info(f"Deleted relationship {relationship_id} ({relationship.type.value}), removed {removed}")
        return removed


def audit_pairs(relationships: list[Relationship]) -> list[InconsistentPair]:
    """Rows whose reverse row is missing. Reported only; nothing is raised or repaired."""
    keys = {r.key for r in relationships}
    inconsistent = []
    for relationship in relationships:
        reverse_type = reverse_type_of(relationship.type)
        if reverse_type is None:
            continue
        if (relationship.person_to_id, relationship.person_from_id, reverse_type) not in keys:
            inconsistent.append(InconsistentPair(relationship, reverse_type))
    return inconsistent


# ============================================================================
# Display helpers
# ============================================================================

def describe_relationships(
    person_id: str,
    relationships: list[Relationship],
    persons: list[Person],
) -> list[dict[str, Any]]:
    """
    Describe each of a person's relationships from that person's side.

    A row (person, other, T) reads "other is the person's T". A row pointing
    at the person (other, person, T) is read through its reverse type, unless
    the matching reverse row is present and already described. Rows whose
    other party is missing are skipped.
    """
    by_id = {p.id: p for p in persons}
    keys = {r.key for r in relationships}
    described = []

    for relationship in relationships:
        if relationship.person_from_id == person_id:
            related_id, rel_type = relationship.person_to_id, relationship.type
        elif relationship.person_to_id == person_id:
            rel_type = reverse_type_of(relationship.type)
            if rel_type is None or (person_id, relationship.person_from_id, rel_type) in keys:
                continue
            related_id = relationship.person_from_id
        else:
            continue

        related = by_id.get(related_id)
        if related is None:
            logger.debug(f"Relationship {relationship.id} points at missing person {related_id}")
            continue

        info = get_relationship_info(rel_type)
        described.append({
            "relationshipId": relationship.id,
            "type": rel_type.value,
            "person": related,
            "label": get_gender_specific_label(rel_type, related.gender or Gender.UNKNOWN),
            "category": info.category,
            "categoryLabel": RELATIONSHIP_CATEGORIES[info.category],
            "description": info.description,
        })
    return described


def group_by_category(described: list[dict[str, Any]], category: str | None = None) -> dict[str, list[dict[str, Any]]]:
    """Group output of describe_relationships by category, optionally keeping one category."""
    grouped: dict[str, list[dict[str, Any]]] = {}
    for entry in described:
        if category is not None and entry["category"] != category:
            continue
        grouped.setdefault(entry["category"], []).append(entry)
    return grouped


def available_persons(
    person: Person,
    persons: list[Person],
    relationships: list[Relationship],
    search: str | None = None,
) -> list[Person]:
    """People that can still be related to `person`: not self, not a direct relative, not already related."""
    related_ids = set()
    for relationship in relationships:
        if relationship.person_from_id == person.id:
            related_ids.add(relationship.person_to_id)
        elif relationship.person_to_id == person.id:
            related_ids.add(relationship.person_from_id)

    excluded = related_ids | {person.id} | set(person.direct_relation_ids().values())
    candidates = [p for p in persons if p.id not in excluded]

    if search:
        needle = search.lower()
        candidates = [
            p for p in candidates
            if needle in p.full_name.lower() or (p.location and needle in p.location.lower())
        ]
    return candidates
