"""In-memory entity store for persons and relationship rows.

Stands in for the relational store the engine normally runs against: it
enforces the (from, to, type) uniqueness constraint, cascades person
deletes onto dependents, and groups writes into transactions that are
undone in LIFO order when the block raises.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from family_errors import Conflict, InvalidInput, NotFound, UniqueConstraintError
from family_models import (
    DIRECT_RELATION_FIELDS,
    Gender,
    Person,
    PersonCreate,
    PersonUpdate,
    Relationship,
    RelationshipType,
)

logger = logging.getLogger("familygraph.store")

_FIELD_LABELS = {
    "father_id": "father",
    "mother_id": "mother",
    "spouse_id": "spouse",
}


class FamilyStore:
    """Persons and relationships keyed by id, kept in insertion order."""

    def __init__(
        self,
        persons: list[Person] | None = None,
        relationships: list[Relationship] | None = None,
    ):
        self._persons: dict[str, Person] = {}
        self._relationships: dict[str, Relationship] = {}
        self._active_transaction: dict[str, Any] | None = None
        self._transaction_operations: list[dict[str, Any]] = []

        for person in persons or []:
            self._persons[person.id] = person.model_copy(deep=True)
        for relationship in relationships or []:
            self._relationships[relationship.id] = relationship.model_copy()

    # ========================================================================
    # Transactions
    # ========================================================================

    @contextmanager
    def transaction(self, description: str = "Transaction") -> Iterator[dict[str, Any]]:
        """
        Group writes so they are applied together or not at all.

        A nested call joins the transaction already in progress and acts as a
        savepoint: if it raises, only the writes made inside it are reversed,
        so an outer block that catches the exception keeps its own writes.
        On an exception in the outermost block every recorded write is
        reversed (last operation first). The exception always propagates.
        """
        if self._active_transaction is not None:
            savepoint = len(self._transaction_operations)
            try:
                yield self._active_transaction
            except Exception:
                undone = self._undo_operations(self._transaction_operations[savepoint:])
                del self._transaction_operations[savepoint:]
                logger.debug(f"Rolled back nested '{description}' ({undone} operations undone)")
                raise
            return

        record = {
            "id": f"txn_{datetime.now().strftime('%Y%m%d_%H%M%S_%f')}",
            "description": description,
            "started_at": datetime.now().isoformat(),
        }
        self._active_transaction = record
        self._transaction_operations = []
        try:
            yield record
        except Exception:
            undone = self._undo_operations(self._transaction_operations)
            logger.warning(f"Rolled back transaction '{description}' ({undone} operations undone)")
            raise
        else:
            record["committed_at"] = datetime.now().isoformat()
            record["operation_count"] = len(self._transaction_operations)
            logger.debug(f"Committed transaction '{description}' with {record['operation_count']} operations")
        finally:
            self._active_transaction = None
            self._transaction_operations = []

    def _record_operation(self, table: str, key: str, previous: Any) -> None:
        if self._active_transaction is None:
            return
        self._transaction_operations.append({"table": table, "key": key, "previous": previous})

    def _undo_operations(self, operations: list[dict[str, Any]]) -> int:
        for operation in reversed(operations):
            rows = self._persons if operation["table"] == "person" else self._relationships
            if operation["previous"] is None:
                rows.pop(operation["key"], None)
            else:
                rows[operation["key"]] = operation["previous"]
        return len(operations)

    def _put_person(self, person: Person) -> None:
        self._record_operation("person", person.id, self._persons.get(person.id))
        self._persons[person.id] = person

    def _drop_person(self, person_id: str) -> None:
        self._record_operation("person", person_id, self._persons.get(person_id))
        del self._persons[person_id]

    def _put_relationship(self, relationship: Relationship) -> None:
        self._record_operation("relationship", relationship.id, self._relationships.get(relationship.id))
        self._relationships[relationship.id] = relationship

    def _drop_relationship(self, relationship_id: str) -> None:
        self._record_operation("relationship", relationship_id, self._relationships.get(relationship_id))
        del self._relationships[relationship_id]

    # ========================================================================
    # ID generation
    # ========================================================================

    @staticmethod
    def _generate_id(prefix: str, existing_ids) -> str:
        """Next `<prefix><n>` id after the highest numeric one in use."""
        existing_numbers = []
        for existing in existing_ids:
            if existing.startswith(prefix):
                try:
                    existing_numbers.append(int(existing[len(prefix):]))
                except ValueError:
                    pass
        max_id = max(existing_numbers) if existing_numbers else 0
        return f"{prefix}{max_id + 1}"

    def generate_person_id(self) -> str:
        return self._generate_id("P", self._persons)

    def generate_relationship_id(self) -> str:
        return self._generate_id("R", self._relationships)

    # ========================================================================
    # Persons
    # ========================================================================

    def list_persons(self) -> list[Person]:
        return [person.model_copy() for person in self._persons.values()]

    def find_person(self, person_id: str | None) -> Person | None:
        if person_id is None:
            return None
        person = self._persons.get(person_id)
        return person.model_copy() if person else None

    def get_person(self, person_id: str) -> Person:
        person = self.find_person(person_id)
        if person is None:
            raise NotFound(f"Person not found: '{person_id}'")
        return person

    def detect_circular_ancestry(self, person_id: str, potential_parent_id: str) -> bool:
        """True if making potential_parent a parent of person would make person their own ancestor."""
        visited: set[str] = set()
        stack = [potential_parent_id]
        while stack:
            current_id = stack.pop()
            if current_id in visited:
                continue
            visited.add(current_id)
            current = self._persons.get(current_id)
            if current is None:
                continue
            for parent_id in (current.father_id, current.mother_id):
                if parent_id:
                    stack.append(parent_id)
        return person_id in visited

    def _validate_direct_relations(self, person_id: str, relations: dict[str, str | None]) -> None:
        for field, related_id in relations.items():
            if related_id is None:
                continue
            label = _FIELD_LABELS[field]
            if related_id == person_id:
                raise InvalidInput(f"A person cannot be their own {label}")
            if related_id not in self._persons:
                raise InvalidInput(f"The {label} '{related_id}' does not exist")
            if field != "spouse_id" and self.detect_circular_ancestry(person_id, related_id):
                raise InvalidInput(
                    f"Cannot set {label}: would create circular ancestry. "
                    f"'{related_id}' is a descendant of '{person_id}'."
                )

    def add_person(self, data: PersonCreate | dict[str, Any], person_id: str | None = None) -> Person:
        """Add a person. Raises Conflict for a taken id, InvalidInput for bad relation ids."""
        if not isinstance(data, PersonCreate):
            data = PersonCreate.model_validate(data)

        person_id = person_id or self.generate_person_id()
        if person_id in self._persons:
            raise Conflict(f"Person '{person_id}' already exists")

        fields = data.model_dump()
        self._validate_direct_relations(person_id, {f: fields[f] for f in DIRECT_RELATION_FIELDS})
        person = Person(id=person_id, **fields)
        self._put_person(person)
        logger.info(f"Added person {person_id} ({person.full_name})")
        return person.model_copy()

    def update_person(self, person_id: str, changes: PersonUpdate | dict[str, Any]) -> Person:
        """Apply the explicitly set fields of `changes`; None clears a field."""
        current = self.get_person(person_id)
        if not isinstance(changes, PersonUpdate):
            changes = PersonUpdate.model_validate(changes)

        updates = changes.model_dump(exclude_unset=True)
        self._validate_direct_relations(
            person_id,
            {f: updates[f] for f in DIRECT_RELATION_FIELDS if f in updates},
        )
        updated = Person.model_validate({**current.model_dump(), **updates})
        self._put_person(updated)
        logger.info(f"Updated person {person_id}: {sorted(updates)}")
        return updated.model_copy()

    def delete_person(self, person_id: str) -> None:
        """
        Remove a person after clearing every father/mother/spouse pointer
        that references them and dropping their relationship rows.
        """
        person = self.get_person(person_id)
        with self.transaction(f"Delete person {person_id}"):
            for other in list(self._persons.values()):
                dangling = {f: None for f in DIRECT_RELATION_FIELDS if getattr(other, f) == person_id}
                if dangling:
                    self._put_person(other.model_copy(update=dangling))
                    logger.debug(f"Cleared {sorted(dangling)} on {other.id}")

            touching = [
                r.id for r in self._relationships.values()
                if person_id in (r.person_from_id, r.person_to_id)
            ]
            for relationship_id in touching:
                self._drop_relationship(relationship_id)

            self._drop_person(person_id)
        logger.info(f"Deleted person {person_id} ({person.full_name}), {len(touching)} relationship rows removed")

    def link_parent_child(self, parent_id: str, child_id: str) -> Person:
        """
        Set `parent` as the child's father or mother.

        The slot follows the parent's gender; a parent of unknown gender
        takes the first free slot. Returns the updated child.
        """
        parent = self.get_person(parent_id)
        child = self.get_person(child_id)

        if parent.id in (child.father_id, child.mother_id):
            return child

        if parent.gender == Gender.MALE:
            slots = ["father_id"]
        elif parent.gender == Gender.FEMALE:
            slots = ["mother_id"]
        else:
            slots = ["father_id", "mother_id"]

        free = [slot for slot in slots if getattr(child, slot) is None]
        if not free:
            taken = " and ".join(_FIELD_LABELS[slot] for slot in slots)
            raise InvalidInput(f"{child.full_name} already has a {taken}")

        return self.update_person(child_id, {free[0]: parent_id})

    def link_spouses(self, spouse1_id: str, spouse2_id: str) -> tuple[Person, Person]:
        """Marry two people, releasing any previous partner's back-pointer."""
        spouse1 = self.get_person(spouse1_id)
        spouse2 = self.get_person(spouse2_id)
        if spouse1.id == spouse2.id:
            raise InvalidInput("A person cannot be their own spouse")

        with self.transaction(f"Link spouses {spouse1_id} and {spouse2_id}"):
            for person, new_partner_id in ((spouse1, spouse2_id), (spouse2, spouse1_id)):
                previous = self._persons.get(person.spouse_id) if person.spouse_id else None
                if previous is not None and previous.id != new_partner_id and previous.spouse_id == person.id:
                    self._put_person(previous.model_copy(update={"spouse_id": None}))
            first = self.update_person(spouse1_id, {"spouse_id": spouse2_id})
            second = self.update_person(spouse2_id, {"spouse_id": spouse1_id})
        return first, second

    # ========================================================================
    # Relationships
    # ========================================================================

    def list_relationships(self, person_id: str | None = None) -> list[Relationship]:
        """All rows, or the rows where person_id is on either side."""
        return [
            r.model_copy()
            for r in self._relationships.values()
            if person_id is None or person_id in (r.person_from_id, r.person_to_id)
        ]

    def get_relationship(self, relationship_id: str) -> Relationship:
        relationship = self._relationships.get(relationship_id)
        if relationship is None:
            raise NotFound(f"Relationship not found: '{relationship_id}'")
        return relationship.model_copy()

    def find_relationship(
        self,
        person_from_id: str,
        person_to_id: str,
        rel_type: RelationshipType | str,
    ) -> Relationship | None:
        key = (person_from_id, person_to_id, RelationshipType(rel_type))
        for relationship in self._relationships.values():
            if relationship.key == key:
                return relationship.model_copy()
        return None

    def insert_relationship(
        self,
        rel_type: RelationshipType | str,
        person_from_id: str,
        person_to_id: str,
        relationship_id: str | None = None,
    ) -> Relationship:
        """Insert one directional row. Raises UniqueConstraintError for a duplicate triple."""
        for person_ref in (person_from_id, person_to_id):
            if person_ref not in self._persons:
                raise NotFound(f"Person not found: '{person_ref}'")
        if self.find_relationship(person_from_id, person_to_id, rel_type) is not None:
            raise UniqueConstraintError(person_from_id, person_to_id, RelationshipType(rel_type).value)

        relationship = Relationship(
            id=relationship_id or self.generate_relationship_id(),
            type=rel_type,
            person_from_id=person_from_id,
            person_to_id=person_to_id,
        )
        self._put_relationship(relationship)
        logger.debug(f"Inserted relationship {relationship.id}: {relationship.key}")
        return relationship.model_copy()

    def remove_relationship(self, relationship_id: str) -> Relationship:
        relationship = self.get_relationship(relationship_id)
        self._drop_relationship(relationship_id)
        return relationship

    def remove_matching_relationships(
        self,
        person_from_id: str,
        person_to_id: str,
        rel_type: RelationshipType | str,
    ) -> list[Relationship]:
        """Delete every row matching the triple; an empty result is not an error."""
        key = (person_from_id, person_to_id, RelationshipType(rel_type))
        matching = [r for r in self._relationships.values() if r.key == key]
        for relationship in matching:
            self._drop_relationship(relationship.id)
        return [r.model_copy() for r in matching]

    # ========================================================================
    # Snapshots
    # ========================================================================

    def snapshot(self) -> tuple[list[Person], list[Relationship]]:
        """Detached copies of every person and relationship, for read-only algorithms."""
        persons = [p.model_copy(deep=True) for p in self._persons.values()]
        relationships = [r.model_copy() for r in self._relationships.values()]
        return persons, relationships
