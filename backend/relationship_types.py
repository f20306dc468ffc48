"""Static relationship type table and pure lookups over it.

Each relationship type maps to its category, whether it is mutual (both
parties hold the same type) and, for asymmetric pairs, the type the other
party holds.
"""

from dataclasses import dataclass

from family_models import Gender, RelationshipType


CATEGORY_IMMEDIATE = "immediate"
CATEGORY_EXTENDED = "extended"
CATEGORY_STEP = "step"
CATEGORY_ADOPTIVE = "adoptive"
CATEGORY_IN_LAW = "in-law"
CATEGORY_FRIEND = "friend"

RELATIONSHIP_CATEGORIES = {
    CATEGORY_IMMEDIATE: "Immediate Family",
    CATEGORY_EXTENDED: "Extended Family",
    CATEGORY_STEP: "Step Family",
    CATEGORY_ADOPTIVE: "Adoptive Family",
    CATEGORY_IN_LAW: "In-Laws",
    CATEGORY_FRIEND: "Friends & Close Relations",
}


@dataclass(frozen=True)
class RelationshipInfo:
    type: RelationshipType
    label: str
    description: str
    category: str
    is_mutual: bool
    reverse_type: RelationshipType | None = None


def _mutual(rel_type, label, description, category):
    return RelationshipInfo(rel_type, label, description, category, is_mutual=True)


def _paired(rel_type, label, description, category, reverse_type):
    return RelationshipInfo(rel_type, label, description, category, is_mutual=False, reverse_type=reverse_type)


T = RelationshipType

RELATIONSHIP_DEFINITIONS: dict[RelationshipType, RelationshipInfo] = {
    info.type: info
    for info in (
        # Siblings
        _mutual(T.SIBLING, "Sibling", "Brother or sister (same parents)", CATEGORY_IMMEDIATE),
        _mutual(T.HALF_SIBLING, "Half Sibling", "Brother or sister (one shared parent)", CATEGORY_IMMEDIATE),
        _mutual(T.STEP_SIBLING, "Step Sibling", "Step brother or sister", CATEGORY_STEP),
        # Grandparents
        _paired(T.GRANDPARENT, "Grandparent", "Grandmother or grandfather", CATEGORY_EXTENDED, T.GRANDCHILD),
        _paired(T.GRANDCHILD, "Grandchild", "Grandson or granddaughter", CATEGORY_EXTENDED, T.GRANDPARENT),
        # Extended family
        _paired(T.AUNT_UNCLE, "Aunt/Uncle", "Aunt or uncle", CATEGORY_EXTENDED, T.NIECE_NEPHEW),
        _paired(T.NIECE_NEPHEW, "Niece/Nephew", "Niece or nephew", CATEGORY_EXTENDED, T.AUNT_UNCLE),
        _mutual(T.FIRST_COUSIN, "First Cousin", "First cousin", CATEGORY_EXTENDED),
        _mutual(T.SECOND_COUSIN, "Second Cousin", "Second cousin", CATEGORY_EXTENDED),
        # In-laws
        _paired(T.PARENT_IN_LAW, "Parent-in-Law", "Mother-in-law or father-in-law", CATEGORY_IN_LAW, T.CHILD_IN_LAW),
        _paired(T.CHILD_IN_LAW, "Child-in-Law", "Son-in-law or daughter-in-law", CATEGORY_IN_LAW, T.PARENT_IN_LAW),
        _mutual(T.SIBLING_IN_LAW, "Sibling-in-Law", "Brother-in-law or sister-in-law", CATEGORY_IN_LAW),
        # Step family
        _paired(T.STEP_PARENT, "Step Parent", "Step mother or step father", CATEGORY_STEP, T.STEP_CHILD),
        _paired(T.STEP_CHILD, "Step Child", "Step son or step daughter", CATEGORY_STEP, T.STEP_PARENT),
        # Godparents
        _paired(T.GODPARENT, "Godparent", "Godmother or godfather", CATEGORY_FRIEND, T.GODCHILD),
        _paired(T.GODCHILD, "Godchild", "Godson or goddaughter", CATEGORY_FRIEND, T.GODPARENT),
        # Adoption
        _paired(T.ADOPTIVE_PARENT, "Adoptive Parent", "Adoptive mother or father", CATEGORY_ADOPTIVE, T.ADOPTIVE_CHILD),
        _paired(T.ADOPTIVE_CHILD, "Adoptive Child", "Adopted son or daughter", CATEGORY_ADOPTIVE, T.ADOPTIVE_PARENT),
        # Guardianship
        _paired(T.GUARDIAN, "Guardian", "Legal guardian", CATEGORY_FRIEND, T.WARD),
        _paired(T.WARD, "Ward", "Legal ward", CATEGORY_FRIEND, T.GUARDIAN),
        # Friends
        _mutual(T.CLOSE_FRIEND, "Close Friend", "Close personal friend", CATEGORY_FRIEND),
        _mutual(T.FAMILY_FRIEND, "Family Friend", "Family friend", CATEGORY_FRIEND),
    )
}

# (male, female) wording; types missing here use the generic label for everyone
GENDER_SPECIFIC_LABELS: dict[RelationshipType, tuple[str, str]] = {
    T.SIBLING: ("Brother", "Sister"),
    T.HALF_SIBLING: ("Half Brother", "Half Sister"),
    T.STEP_SIBLING: ("Step Brother", "Step Sister"),
    T.GRANDPARENT: ("Grandfather", "Grandmother"),
    T.GRANDCHILD: ("Grandson", "Granddaughter"),
    T.AUNT_UNCLE: ("Uncle", "Aunt"),
    T.NIECE_NEPHEW: ("Nephew", "Niece"),
    T.PARENT_IN_LAW: ("Father-in-Law", "Mother-in-Law"),
    T.CHILD_IN_LAW: ("Son-in-Law", "Daughter-in-Law"),
    T.SIBLING_IN_LAW: ("Brother-in-Law", "Sister-in-Law"),
    T.STEP_PARENT: ("Step Father", "Step Mother"),
    T.STEP_CHILD: ("Step Son", "Step Daughter"),
    T.GODPARENT: ("Godfather", "Godmother"),
    T.GODCHILD: ("Godson", "Goddaughter"),
    T.ADOPTIVE_PARENT: ("Adoptive Father", "Adoptive Mother"),
    T.ADOPTIVE_CHILD: ("Adopted Son", "Adopted Daughter"),
}

# Generic wording that differs from the table label
_UNKNOWN_GENDER_LABELS = {
    T.ADOPTIVE_CHILD: "Adopted Child",
}


def is_valid_relationship_type(value: str) -> bool:
    """Check whether a string names a known relationship type."""
    try:
        RelationshipType(value)
    except ValueError:
        return False
    return True


def get_relationship_info(rel_type: RelationshipType | str) -> RelationshipInfo:
    """Look up the static metadata for a type. Raises ValueError for unknown types."""
    return RELATIONSHIP_DEFINITIONS[RelationshipType(rel_type)]


def is_mutual_relationship(rel_type: RelationshipType | str) -> bool:
    """Whether both parties hold the same type (e.g. SIBLING <-> SIBLING)."""
    return get_relationship_info(rel_type).is_mutual


def reverse_type_of(rel_type: RelationshipType | str) -> RelationshipType | None:
    """
    The type the other party must hold: the static reverse for asymmetric
    pairs, the same type for mutual ones, None when no pairing is defined.
    """
    info = get_relationship_info(rel_type)
    if info.reverse_type is not None:
        return info.reverse_type
    return info.type if info.is_mutual else None


def get_relationships_by_category() -> dict[str, list[RelationshipInfo]]:
    categories: dict[str, list[RelationshipInfo]] = {}
    for info in RELATIONSHIP_DEFINITIONS.values():
        categories.setdefault(info.category, []).append(info)
    return categories


def get_relationship_types_by_category(category: str) -> list[RelationshipType]:
    return [info.type for info in RELATIONSHIP_DEFINITIONS.values() if info.category == category]


def get_gender_specific_label(rel_type: RelationshipType | str, gender: Gender | str | None) -> str:
    """Wording for a related person of the given gender, e.g. GRANDPARENT + FEMALE -> Grandmother."""
    info = get_relationship_info(rel_type)
    labels = GENDER_SPECIFIC_LABELS.get(info.type)
    if labels is not None:
        if gender == Gender.MALE:
            return labels[0]
        if gender == Gender.FEMALE:
            return labels[1]
    return _UNKNOWN_GENDER_LABELS.get(info.type, info.label)


def format_relationship_for_display(
    rel_type: RelationshipType | str,
    related_person_gender: Gender | str | None,
    show_description: bool = False,
) -> str:
    label = get_gender_specific_label(rel_type, related_person_gender)
    if show_description:
        return f"{label} ({get_relationship_info(rel_type).description})"
    return label


def get_relationship_suggestions(
    existing_types: list[RelationshipType | str],
    limit: int = 5,
) -> list[RelationshipInfo]:
    """Relationship types not yet in use, in table order."""
    existing = {RelationshipType(t) for t in existing_types}
    suggestions = [info for info in RELATIONSHIP_DEFINITIONS.values() if info.type not in existing]
    return suggestions[:limit]
