"""Tests for the tree layout engine."""

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from family_models import Gender
from family_resolver import ResolveOptions
from tree_layout import (
    LayoutConfig,
    LayoutMode,
    auto_fit,
    build_family_layout,
    build_layout,
    find_layout_roots,
    find_top_ancestor,
    iter_nodes,
)

from conftest import make_person


def walk(node, parent=None):
    """(node, parent) pairs over the child edges, depth first."""
    yield node, parent
    for child in node.children:
        yield from walk(child, node)


@pytest.fixture
def small_family():
    """A with two children B and C."""
    return [
        make_person("A", "Anna", Gender.FEMALE),
        make_person("B", "Ben", Gender.MALE, mother_id="A"),
        make_person("C", "Cleo", Gender.FEMALE, mother_id="A"),
    ]


# ============================================================================
# All Families Tests
# ============================================================================

class TestAllFamilies:
    """Tests for laying out every family side by side."""

    def test_parent_with_two_children(self, small_family):
        result = build_layout(small_family)

        assert result.mode == LayoutMode.ALL_FAMILIES
        assert len(result.roots) == 1
        root = result.roots[0]
        assert root.person_id == "A"
        assert [c.person_id for c in root.children] == ["B", "C"]
        assert result.stats.total_nodes == 3
        assert result.stats.max_depth == 1
        assert result.stats.generations == 2
        assert result.stats.families == 1

    def test_father_with_two_children(self):
        persons = [
            make_person("A", "Arthur", Gender.MALE),
            make_person("B", "Ben", Gender.MALE, father_id="A"),
            make_person("C", "Cleo", Gender.FEMALE, father_id="A"),
        ]
        result = build_layout(persons)

        assert len(result.roots) == 1
        root = result.roots[0]
        assert root.person_id == "A"
        assert [c.person_id for c in root.children] == ["B", "C"]
        assert [(c.x, c.y) for c in root.children] == [(210, 120), (390, 120)]
        assert result.stats.total_nodes == 3
        assert result.stats.max_depth == 1
        assert result.stats.generations == 2
        assert result.stats.families == 1

    def test_child_positions(self, small_family):
        root = build_layout(small_family).roots[0]

        assert (root.x, root.y) == (300, 0)
        assert root.subtree_width == 360
        assert [(c.x, c.y) for c in root.children] == [(210, 120), (390, 120)]
        assert all(c.subtree_width == 180 for c in root.children)

    def test_roots_spaced_apart(self):
        persons = [make_person("X", "Xena"), make_person("Y", "Yuri")]
        result = build_layout(persons)

        assert [r.x for r in result.roots] == [300, 800]
        assert result.stats.families == 2

    def test_levels_follow_parent_edges(self, five_generations):
        result = build_layout(five_generations)
        for root in result.roots:
            assert root.level == 0
            for node, parent in walk(root):
                if parent is not None:
                    assert node.level == parent.level + 1
                assert node.y == node.level * 120

    def test_subtree_width_covers_children(self, five_generations):
        result = build_layout(five_generations)
        for root in result.roots:
            for node, _ in walk(root):
                assert node.subtree_width >= 180
                if node.children:
                    assert node.subtree_width >= sum(c.subtree_width for c in node.children)

    def test_spouse_placed_beside_person(self, five_generations):
        result = build_layout(five_generations)
        charles = next(n for n, _ in walk(result.roots[0]) if n.person_id == "charles")

        assert charles.spouse.person_id == "diana"
        assert charles.spouse.x == charles.x + 140
        assert charles.spouse.level == charles.level
        assert charles.spouse.subtree_width == 0

    def test_same_input_same_output(self, five_generations):
        first = build_layout(five_generations)
        second = build_layout(five_generations)
        assert first.model_dump() == second.model_dump()

    def test_input_not_modified(self, five_generations):
        before = [p.model_dump() for p in five_generations]
        build_layout(five_generations)
        assert [p.model_dump() for p in five_generations] == before

    def test_empty_input(self):
        result = build_layout([])
        assert result.roots == []
        assert result.stats.generations == 0


# ============================================================================
# Repeated Person Tests
# ============================================================================

class TestRepeatedPersons:
    """Tests for people reachable through more than one path."""

    def test_shared_child_becomes_back_reference(self):
        """Both parents are roots; the child is laid out under the first one."""
        persons = [
            make_person("dad", "Dad", Gender.MALE),
            make_person("mom", "Mom", Gender.FEMALE),
            make_person("kid", "Kid", father_id="dad", mother_id="mom"),
        ]
        result = build_layout(persons)

        dad_tree, mom_tree = result.roots
        assert not dad_tree.children[0].is_reference
        assert mom_tree.children[0].person_id == "kid"
        assert mom_tree.children[0].is_reference
        assert mom_tree.children[0].children == []
        assert result.stats.total_nodes == 3
        assert result.stats.families == 2

    def test_parent_cycle_terminates(self):
        persons = [
            make_person("X", "Xena", birth_year=1900, father_id="Y"),
            make_person("Y", "Yuri", birth_year=1920, father_id="X"),
        ]
        result = build_layout(persons)

        root = result.roots[0]
        assert root.person_id == "X"
        assert root.children[0].person_id == "Y"
        assert root.children[0].children[0].is_reference
        assert result.stats.total_nodes == 2


# ============================================================================
# Root Detection Tests
# ============================================================================

class TestRoots:
    """Tests for root and top-ancestor detection."""

    def test_parentless_people_are_roots(self, five_generations):
        roots = [p.id for p in find_layout_roots(five_generations)]
        assert roots == ["albert", "beatrice", "diana", "fiona", "helen", "mia"]

    def test_fallback_to_earliest_birth(self):
        persons = [
            make_person("C", "Cleo", birth_year=1980, father_id="B"),
            make_person("B", "Ben", birth_year=1950, father_id="A"),
        ]
        assert [p.id for p in find_layout_roots(persons)] == ["B"]

        result = build_layout(persons)
        assert [c.person_id for c in result.roots[0].children] == ["C"]

    def test_fallback_to_first_person(self):
        persons = [
            make_person("C", "Cleo", father_id="B"),
            make_person("B", "Ben", father_id="A"),
        ]
        assert [p.id for p in find_layout_roots(persons)] == ["C"]

    def test_top_ancestor_follows_earlier_parent(self, five_generations):
        by_id = {p.id: p for p in five_generations}
        assert find_top_ancestor(by_id["olivia"], by_id).id == "albert"

    def test_top_ancestor_within_working_set(self, five_generations):
        subset = {p.id: p for p in five_generations if p.id not in ("albert", "beatrice")}
        assert find_top_ancestor(subset["george"], subset).id == "charles"


# ============================================================================
# Focused Layout Tests
# ============================================================================

class TestFocused:
    """Tests for single-tree layouts around a focus person."""

    def test_rooted_at_top_ancestor(self, five_generations):
        result = build_layout(five_generations, focus_id="george", mode=LayoutMode.FOCUSED)

        assert result.mode == LayoutMode.FOCUSED
        assert len(result.roots) == 1
        assert result.roots[0].person_id == "albert"
        assert result.roots[0].x == 400
        assert result.stats.families == 1
        assert result.stats.focused_on == "George Windsor"

    def test_focus_outside_working_set(self, five_generations):
        result = build_layout(five_generations, focus_id="nobody", mode=LayoutMode.FOCUSED)
        assert result.roots == []

    def test_family_layout_uses_resolved_subset(self, five_generations):
        result = build_family_layout(five_generations, "george", ResolveOptions.preset("lineage"))

        assert result.mode == LayoutMode.FOCUSED
        root = result.roots[0]
        assert root.person_id == "albert"
        assert root.spouse.person_id == "beatrice"
        assert [n.person_id for n, _ in walk(root)] == ["albert", "charles", "george", "liam", "olivia"]
        assert result.stats.total_nodes == 5
        assert result.stats.max_depth == 4
        assert result.stats.generations == 5

    def test_family_layout_without_focus(self, five_generations):
        result = build_family_layout(five_generations)
        assert result.mode == LayoutMode.ALL_FAMILIES
        assert result.stats.families == 6

    def test_family_layout_when_nothing_filtered(self, small_family):
        """Everyone is in scope, so every family is laid out."""
        result = build_family_layout(small_family, "A")
        assert result.mode == LayoutMode.ALL_FAMILIES


# ============================================================================
# Output Tests
# ============================================================================

class TestOutput:
    """Tests for node iteration, serialisation and auto-fit."""

    def test_iter_nodes_includes_spouses(self, five_generations):
        result = build_layout(five_generations, focus_id="george")
        ids = [n.person_id for n in iter_nodes(result.roots)]
        assert "beatrice" in ids
        assert "helen" in ids

    def test_to_dict_is_camel_case(self, small_family):
        data = build_layout(small_family).to_dict()

        root = data["roots"][0]
        assert root["personId"] == "A"
        assert root["subtreeWidth"] == 360
        assert root["avatarColor"] == "#EC4899"
        assert "spouse" not in root
        assert data["stats"]["totalNodes"] == 3
        assert data["mode"] == "ALL_FAMILIES"

    def test_auto_fit_single_node(self):
        result = build_layout([make_person("X", "Xena")])
        fit = auto_fit(result.roots, 1000, 800)

        assert (fit.min_x, fit.max_x, fit.min_y, fit.max_y) == (200, 400, -100, 100)
        assert fit.scale == pytest.approx(0.9)
        assert fit.translate_x == pytest.approx(230)
        assert fit.translate_y == pytest.approx(400)

    def test_auto_fit_never_zooms_in(self, small_family):
        fit = auto_fit(build_layout(small_family).roots, 10000, 10000)
        assert fit.scale == pytest.approx(0.9)

    def test_auto_fit_nothing_to_fit(self, small_family):
        assert auto_fit([], 1000, 800) is None
        assert auto_fit(build_layout(small_family).roots, 0, 800) is None

    def test_custom_spacing(self, small_family):
        config = LayoutConfig(horizontal_spacing=100, vertical_spacing=50)
        root = build_layout(small_family, config=config).roots[0]
        assert [(c.x, c.y) for c in root.children] == [(250, 50), (350, 50)]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
