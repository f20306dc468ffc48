"""Resolve the set of people related to a focus person.

Works purely on an in-memory list of Person records: parents are found via
`father_id` / `mother_id`, children by scanning for people pointing back at
a parent. Dangling ids are treated as absent.
"""

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from family_models import Person

logger = logging.getLogger("familygraph.resolver")

FOCUS_LABEL = "Focus Person"


class ResolveOptions(BaseModel):
    """Traversal options for resolve_family."""
    include_spouses: bool = True
    generations_up: int = Field(default=3, ge=0)
    generations_down: int = Field(default=3, ge=0)
    include_siblings: bool = True
    include_extended_family: bool = Field(
        default=False,
        description="Aunts, uncles, cousins, nieces and nephews.",
    )

    @classmethod
    def preset(cls, name: str) -> "ResolveOptions":
        """Quick filters: 'immediate', 'extended' or 'lineage'."""
        try:
            return cls(**FILTER_PRESETS[name])
        except KeyError:
            raise ValueError(f"Unknown filter preset: '{name}'") from None


FILTER_PRESETS = {
    "immediate": {
        "generations_up": 1,
        "generations_down": 1,
        "include_siblings": True,
        "include_spouses": True,
        "include_extended_family": False,
    },
    "extended": {
        "generations_up": 2,
        "generations_down": 2,
        "include_siblings": True,
        "include_spouses": True,
        "include_extended_family": True,
    },
    "lineage": {
        "generations_up": 5,
        "generations_down": 5,
        "include_siblings": False,
        "include_spouses": False,
        "include_extended_family": False,
    },
}


@dataclass
class FamilyMember:
    person: Person
    relation: str
    generation: int


@dataclass
class FamilyStats:
    total: int = 0
    by_relation: dict[str, int] = field(default_factory=dict)
    spouses_included: int = 0


@dataclass
class FamilySet:
    persons: list[Person]
    members: list[FamilyMember]
    stats: FamilyStats

    def relation_of(self, person_id: str) -> str | None:
        for member in self.members:
            if member.person.id == person_id:
                return member.relation
        return None


def generational_label(depth: int, parent_word: str, grand_word: str) -> str:
    """
    Label for a direct-line relative `depth` generations away.

    depth 1 -> parent_word ("Father"), 2 -> "Grand" form, 3+ -> repeated
    "Great-" prefixes: generational_label(4, "Father", "Grandfather")
    returns "Great-Great-Grandfather".
    """
    if depth <= 1:
        return parent_word
    if depth == 2:
        return grand_word
    return "Great-" * (depth - 2) + grand_word


def choose_primary_parent(father: Person | None, mother: Person | None) -> Person | None:
    """
    Pick which parent's lineage to follow when only one line is needed.

    The parent with the earlier birth year wins; a parent with a known birth
    year beats one without; otherwise (ties included) the father.
    """
    if father is None or mother is None:
        return father or mother
    if father.birth_year is not None and mother.birth_year is not None:
        return father if father.birth_year <= mother.birth_year else mother
    if mother.birth_year is not None:
        return mother
    return father


def find_children(person_id: str, persons: list[Person]) -> list[Person]:
    """People whose father or mother is person_id, in list order."""
    return [p for p in persons if p.father_id == person_id or p.mother_id == person_id]


def find_siblings(person: Person, persons: list[Person]) -> list[Person]:
    """Other people sharing the father or the mother with `person`."""
    return [
        p for p in persons
        if p.id != person.id and (
            (person.father_id and p.father_id == person.father_id)
            or (person.mother_id and p.mother_id == person.mother_id)
        )
    ]


class _FamilyCollector:
    """Accumulates members; the first label assigned to a person wins."""

    def __init__(self, persons: list[Person], options: ResolveOptions):
        self.persons = persons
        self.by_id = {p.id: p for p in persons}
        self.options = options
        self.members: dict[str, FamilyMember] = {}
        self.spouses: set[str] = set()
        # (person id, depth) pairs already walked; repeats add nothing new
        self.walked_up: set[tuple[str, int]] = set()
        self.walked_down: set[tuple[str, int]] = set()

    def add(self, person: Person, relation: str, generation: int) -> None:
        if person.id not in self.members:
            self.members[person.id] = FamilyMember(person, relation, generation)

    def add_spouse_of(self, person: Person, relation: str, generation: int) -> None:
        spouse = self.by_id.get(person.spouse_id) if person.spouse_id else None
        if spouse is not None:
            self.spouses.add(spouse.id)
            self.add(spouse, relation, generation)

    def ancestors(self, person: Person, depth: int = 0) -> None:
        if depth >= self.options.generations_up or (person.id, depth) in self.walked_up:
            return
        self.walked_up.add((person.id, depth))

        father = self.by_id.get(person.father_id) if person.father_id else None
        if father is not None:
            self.add(father, generational_label(depth + 1, "Father", "Grandfather"), depth + 1)
            if self.options.include_spouses and father.spouse_id and father.spouse_id != person.mother_id:
                self.add_spouse_of(father, "Step-mother", depth + 1)
            self.ancestors(father, depth + 1)

        mother = self.by_id.get(person.mother_id) if person.mother_id else None
        if mother is not None:
            self.add(mother, generational_label(depth + 1, "Mother", "Grandmother"), depth + 1)
            if self.options.include_spouses and mother.spouse_id and mother.spouse_id != person.father_id:
                self.add_spouse_of(mother, "Step-father", depth + 1)
            self.ancestors(mother, depth + 1)

    def descendants(self, person: Person, depth: int = 0) -> None:
        if depth >= self.options.generations_down or (person.id, depth) in self.walked_down:
            return
        self.walked_down.add((person.id, depth))

        for child in find_children(person.id, self.persons):
            relation = generational_label(depth + 1, "Child", "Grandchild")
            self.add(child, relation, -(depth + 1))
            if self.options.include_spouses:
                self.add_spouse_of(child, f"{relation}'s Spouse", -(depth + 1))
            self.descendants(child, depth + 1)

    def siblings(self, focus: Person) -> None:
        for sibling in find_siblings(focus, self.persons):
            full = sibling.father_id == focus.father_id and sibling.mother_id == focus.mother_id
            relation = "Sibling" if full else "Half-Sibling"
            self.add(sibling, relation, 0)

            if self.options.include_spouses:
                self.add_spouse_of(sibling, f"{relation}'s Spouse", 0)

            if self.options.include_extended_family:
                for nibling in find_children(sibling.id, self.persons):
                    self.add(nibling, "Niece/Nephew", -1)

    def extended_family(self, focus: Person) -> None:
        for parent_id in (focus.father_id, focus.mother_id):
            parent = self.by_id.get(parent_id) if parent_id else None
            if parent is None:
                continue
            for aunt_uncle in find_siblings(parent, self.persons):
                self.add(aunt_uncle, "Aunt/Uncle", 1)
                for cousin in find_children(aunt_uncle.id, self.persons):
                    self.add(cousin, "Cousin", 0)


def resolve_family(
    all_persons: list[Person],
    focus_id: str | None,
    options: ResolveOptions | None = None,
) -> FamilySet:
    """
    Compute the people in scope around a focus person.

    Order of discovery is focus, spouse, ancestors, descendants, siblings,
    extended family; a person keeps the first label they receive. With no
    focus person (or an unknown one) every person is returned unlabelled.
    """
    options = options or ResolveOptions()

    focus = next((p for p in all_persons if p.id == focus_id), None) if focus_id else None
    if focus is None:
        if focus_id:
            logger.debug(f"Focus person {focus_id} not in working set, returning everyone")
        return FamilySet(
            persons=list(all_persons),
            members=[],
            stats=FamilyStats(total=len(all_persons)),
        )

    collector = _FamilyCollector(all_persons, options)
    collector.add(focus, FOCUS_LABEL, 0)

    if options.include_spouses:
        collector.add_spouse_of(focus, "Spouse", 0)

    collector.ancestors(focus)
    collector.descendants(focus)
    if options.include_siblings:
        collector.siblings(focus)
    if options.include_extended_family:
        collector.extended_family(focus)

    members = list(collector.members.values())
    by_relation: dict[str, int] = {}
    for member in members:
        by_relation[member.relation] = by_relation.get(member.relation, 0) + 1

    logger.debug(f"Resolved {len(members)} of {len(all_persons)} persons around {focus.id}")
    return FamilySet(
        persons=[m.person for m in members],
        members=members,
        stats=FamilyStats(
            total=len(members),
            by_relation=by_relation,
            spouses_included=len(collector.spouses),
        ),
    )
