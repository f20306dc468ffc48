"""Tests for the relationship type table and its lookups."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from family_models import Gender, RelationshipType
from relationship_types import (
    CATEGORY_EXTENDED,
    CATEGORY_FRIEND,
    CATEGORY_IMMEDIATE,
    RELATIONSHIP_CATEGORIES,
    RELATIONSHIP_DEFINITIONS,
    format_relationship_for_display,
    get_gender_specific_label,
    get_relationship_info,
    get_relationship_suggestions,
    get_relationship_types_by_category,
    get_relationships_by_category,
    is_mutual_relationship,
    is_valid_relationship_type,
    reverse_type_of,
)


# ============================================================================
# Table Tests
# ============================================================================

class TestDefinitions:
    """Tests for the static type table."""

    def test_every_type_is_defined(self):
        """Every RelationshipType has an entry."""
        assert set(RELATIONSHIP_DEFINITIONS) == set(RelationshipType)

    def test_every_category_has_a_label(self):
        for info in RELATIONSHIP_DEFINITIONS.values():
            assert info.category in RELATIONSHIP_CATEGORIES

    def test_reverse_pairs_are_symmetric(self):
        """If A reverses to B then B reverses to A."""
        for rel_type in RelationshipType:
            reverse = reverse_type_of(rel_type)
            assert reverse is not None
            assert reverse_type_of(reverse) == rel_type

    def test_mutual_types_have_no_static_reverse(self):
        for info in RELATIONSHIP_DEFINITIONS.values():
            if info.is_mutual:
                assert info.reverse_type is None


# ============================================================================
# Lookup Tests
# ============================================================================

class TestLookups:
    """Tests for the pure lookup functions."""

    def test_is_valid_relationship_type(self):
        assert is_valid_relationship_type("SIBLING")
        assert not is_valid_relationship_type("SPOUSE")
        assert not is_valid_relationship_type("sibling")

    def test_get_relationship_info(self):
        info = get_relationship_info("GRANDPARENT")
        assert info.label == "Grandparent"
        assert info.category == CATEGORY_EXTENDED
        assert info.reverse_type == RelationshipType.GRANDCHILD

    def test_get_relationship_info_unknown_raises(self):
        with pytest.raises(ValueError):
            get_relationship_info("NOT_A_TYPE")

    def test_is_mutual_relationship(self):
        assert is_mutual_relationship(RelationshipType.SIBLING)
        assert is_mutual_relationship(RelationshipType.CLOSE_FRIEND)
        assert not is_mutual_relationship(RelationshipType.GRANDPARENT)

    def test_reverse_type_of(self):
        assert reverse_type_of(RelationshipType.GRANDPARENT) == RelationshipType.GRANDCHILD
        assert reverse_type_of(RelationshipType.GUARDIAN) == RelationshipType.WARD
        assert reverse_type_of(RelationshipType.SIBLING) == RelationshipType.SIBLING

    def test_types_by_category(self):
        immediate = get_relationship_types_by_category(CATEGORY_IMMEDIATE)
        assert immediate == [RelationshipType.SIBLING, RelationshipType.HALF_SIBLING]

        grouped = get_relationships_by_category()
        assert sum(len(infos) for infos in grouped.values()) == len(RelationshipType)
        assert RelationshipType.CLOSE_FRIEND in [i.type for i in grouped[CATEGORY_FRIEND]]


# ============================================================================
# Label Tests
# ============================================================================

class TestLabels:
    """Tests for gender-specific wording."""

    @pytest.mark.parametrize("rel_type,gender,expected", [
        (RelationshipType.GRANDPARENT, Gender.FEMALE, "Grandmother"),
        (RelationshipType.GRANDPARENT, Gender.MALE, "Grandfather"),
        (RelationshipType.GRANDPARENT, Gender.UNKNOWN, "Grandparent"),
        (RelationshipType.AUNT_UNCLE, Gender.FEMALE, "Aunt"),
        (RelationshipType.ADOPTIVE_CHILD, Gender.MALE, "Adopted Son"),
        (RelationshipType.ADOPTIVE_CHILD, Gender.UNKNOWN, "Adopted Child"),
        (RelationshipType.FIRST_COUSIN, Gender.MALE, "First Cousin"),
    ])
    def test_gender_specific_label(self, rel_type, gender, expected):
        assert get_gender_specific_label(rel_type, gender) == expected

    def test_gender_as_plain_string(self):
        assert get_gender_specific_label("SIBLING", "FEMALE") == "Sister"

    def test_format_with_description(self):
        text = format_relationship_for_display(RelationshipType.GODPARENT, Gender.FEMALE, show_description=True)
        assert text == "Godmother (Godmother or godfather)"
        assert format_relationship_for_display(RelationshipType.GODPARENT, Gender.FEMALE) == "Godmother"


# ============================================================================
# Suggestion Tests
# ============================================================================

class TestSuggestions:
    """Tests for relationship suggestions."""

    def test_skips_types_in_use(self):
        suggestions = get_relationship_suggestions(["SIBLING", "HALF_SIBLING"])
        types = [s.type for s in suggestions]
        assert len(types) == 5
        assert RelationshipType.SIBLING not in types
        assert types[0] == RelationshipType.STEP_SIBLING

    def test_limit(self):
        assert len(get_relationship_suggestions([], limit=2)) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
