"""Tree layout engine: positions people as renderable family trees.

Two modes:
- ALL_FAMILIES: every person without a father or mother starts a tree; the
  trees are placed side by side at a fixed spacing.
- FOCUSED: one tree rooted at the focus person's top ancestor (walking up
  the earlier-born parent's line within the working set).

Nodes are rebuilt from scratch on every call. A person reachable through
more than one path is laid out once, at the first path the traversal
takes; later encounters become leaf back-reference nodes.
"""

import logging
from enum import Enum
from typing import Any, Iterator, NamedTuple

from pydantic import BaseModel, Field

from family_models import CamelModel, Gender, Person
from family_resolver import ResolveOptions, choose_primary_parent, find_children, resolve_family

logger = logging.getLogger("familygraph.layout")


class LayoutMode(str, Enum):
    ALL_FAMILIES = "ALL_FAMILIES"
    FOCUSED = "FOCUSED"


class LayoutConfig(BaseModel):
    """Spacing constants, in drawing units."""
    horizontal_spacing: float = 180
    vertical_spacing: float = 120
    spouse_offset: float = 140
    focused_root_x: float = 400
    first_root_x: float = 300
    root_spacing: float = 500
    fit_padding: float = 100
    fit_factor: float = 0.9


class LayoutNode(CamelModel):
    person_id: str
    name: str
    gender: Gender = Gender.UNKNOWN
    avatar_color: str
    profile_photo: str | None = None
    birth_year: int | None = None
    death_year: int | None = None
    date_of_birth: str | None = None
    date_of_death: str | None = None
    x: float
    y: float
    level: int
    subtree_width: float
    children: list["LayoutNode"] = []
    spouse: "LayoutNode | None" = None
    # Stands in for a person already laid out elsewhere in the same build
    is_reference: bool = False

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready camelCase tree for render adapters."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


LayoutNode.model_rebuild()


class LayoutStats(CamelModel):
    total_nodes: int = 0
    max_depth: int = 0
    generations: int = 0
    families: int = 0
    focused_on: str | None = None


class LayoutResult(CamelModel):
    mode: LayoutMode
    roots: list[LayoutNode] = []
    stats: LayoutStats = Field(default_factory=LayoutStats)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class FitResult(BaseModel):
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    scale: float
    translate_x: float
    translate_y: float


class SubtreeTally(NamedTuple):
    total_nodes: int
    max_depth: int

    def merge(self, other: "SubtreeTally") -> "SubtreeTally":
        return SubtreeTally(
            self.total_nodes + other.total_nodes,
            max(self.max_depth, other.max_depth),
        )


EMPTY_TALLY = SubtreeTally(0, 0)


def _make_node(person: Person, level: int, x: float, config: LayoutConfig, subtree_width: float, **extra) -> LayoutNode:
    return LayoutNode(
        person_id=person.id,
        name=person.full_name,
        gender=person.gender,
        avatar_color=person.avatar_color,
        profile_photo=person.profile_photo,
        birth_year=person.birth_year,
        death_year=person.death_year,
        date_of_birth=person.date_of_birth.isoformat() if person.date_of_birth else None,
        date_of_death=person.date_of_death.isoformat() if person.date_of_death else None,
        x=x,
        y=level * config.vertical_spacing,
        level=level,
        subtree_width=subtree_width,
        **extra,
    )


class _SubtreeBuilder:
    """Builds positioned subtrees over one working set; tracks who is already placed."""

    def __init__(self, persons: list[Person], config: LayoutConfig):
        self.persons = persons
        self.by_id = {p.id: p for p in persons}
        self.config = config
        self.placed: set[str] = set()

    def build(self, person: Person, level: int, start_x: float) -> tuple[LayoutNode, SubtreeTally]:
        config = self.config

        if person.id in self.placed:
            node = _make_node(person, level, start_x, config, config.horizontal_spacing, is_reference=True)
            return node, SubtreeTally(0, level)
        self.placed.add(person.id)

        children = find_children(person.id, self.persons)
        initial_width = max(1, len(children)) * config.horizontal_spacing
        tally = SubtreeTally(1, level)

        child_nodes = []
        child_start_x = start_x - initial_width / 2 + config.horizontal_spacing / 2
        for index, child in enumerate(children):
            child_node, child_tally = self.build(child, level + 1, child_start_x + index * config.horizontal_spacing)
            child_nodes.append(child_node)
            tally = tally.merge(child_tally)

        subtree_width = max(initial_width, sum(c.subtree_width for c in child_nodes))
        node = _make_node(person, level, start_x, config, subtree_width, children=child_nodes)

        spouse = self.by_id.get(person.spouse_id) if person.spouse_id else None
        if spouse is not None:
            node.spouse = _make_node(spouse, level, start_x + config.spouse_offset, config, 0)

        return node, tally


def find_top_ancestor(person: Person, persons_by_id: dict[str, Person]) -> Person:
    """Walk up the preferred parent's line; parents outside persons_by_id count as absent."""
    visited = {person.id}
    current = person
    while True:
        father = persons_by_id.get(current.father_id) if current.father_id else None
        mother = persons_by_id.get(current.mother_id) if current.mother_id else None
        parent = choose_primary_parent(father, mother)
        if parent is None or parent.id in visited:
            return current
        visited.add(parent.id)
        current = parent


def find_layout_roots(persons: list[Person]) -> list[Person]:
    """
    People with neither father nor mother set. When there are none, the
    single earliest-born person (first in list order on ties), or the first
    person when nobody has a birth year.
    """
    roots = [p for p in persons if not p.father_id and not p.mother_id]
    if roots or not persons:
        return roots
    with_year = [p for p in persons if p.birth_year is not None]
    if with_year:
        return [min(with_year, key=lambda p: p.birth_year)]
    return [persons[0]]


def _finish_stats(tally: SubtreeTally, families: int, focused_on: str | None = None) -> LayoutStats:
    return LayoutStats(
        total_nodes=tally.total_nodes,
        max_depth=tally.max_depth,
        generations=tally.max_depth + 1 if families else 0,
        families=families,
        focused_on=focused_on,
    )


def build_layout(
    persons: list[Person],
    focus_id: str | None = None,
    mode: LayoutMode | None = None,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """
    Lay out the working set as positioned trees.

    `mode` defaults to FOCUSED when a focus id is given and ALL_FAMILIES
    otherwise. A FOCUSED build whose focus person is not in the working set
    yields no roots. The input list is never modified.
    """
    config = config or LayoutConfig()
    mode = mode or (LayoutMode.FOCUSED if focus_id else LayoutMode.ALL_FAMILIES)
    persons = list(persons)

    if not persons:
        return LayoutResult(mode=mode)

    builder = _SubtreeBuilder(persons, config)

    if mode == LayoutMode.FOCUSED:
        focus = builder.by_id.get(focus_id) if focus_id else None
        if focus is None:
            logger.debug(f"Focus person {focus_id} not in working set, nothing to lay out")
            return LayoutResult(mode=mode)

        top = find_top_ancestor(focus, builder.by_id)
        root, tally = builder.build(top, 0, config.focused_root_x)
        stats = _finish_stats(tally, families=1, focused_on=focus.full_name)
        logger.info(
            f"Built focused layout on {focus.id} from top ancestor {top.id}: "
            f"{stats.total_nodes} nodes, {stats.generations} generations"
        )
        return LayoutResult(mode=mode, roots=[root], stats=stats)

    roots = []
    tally = EMPTY_TALLY
    for index, person in enumerate(find_layout_roots(persons)):
        root, root_tally = builder.build(person, 0, config.first_root_x + index * config.root_spacing)
        roots.append(root)
        tally = tally.merge(root_tally)

    stats = _finish_stats(tally, families=len(roots))
    logger.info(
        f"Built layout of {stats.families} families: "
        f"{stats.total_nodes} nodes, {stats.generations} generations"
    )
    return LayoutResult(mode=mode, roots=roots, stats=stats)


def build_family_layout(
    all_persons: list[Person],
    focus_id: str | None = None,
    options: ResolveOptions | None = None,
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """
    Resolve the focus person's family, then lay it out.

    FOCUSED when a focus person is set and the resolved set is a non-empty
    proper subset of everyone; otherwise every family is laid out.
    """
    family = resolve_family(all_persons, focus_id, options)
    working_set = family.persons or list(all_persons)
    is_filtered = 0 < len(family.persons) < len(all_persons)

    mode = LayoutMode.FOCUSED if focus_id and is_filtered else LayoutMode.ALL_FAMILIES
    return build_layout(working_set, focus_id=focus_id, mode=mode, config=config)


def iter_nodes(roots: list[LayoutNode]) -> Iterator[LayoutNode]:
    """Every node, spouse nodes included, depth first."""
    for node in roots:
        yield node
        if node.spouse is not None:
            yield node.spouse
        yield from iter_nodes(node.children)


def auto_fit(
    roots: list[LayoutNode],
    viewport_width: float,
    viewport_height: float,
    config: LayoutConfig | None = None,
) -> FitResult | None:
    """
    Scale and translation that fit every node into the viewport, centred.

    Returns None when there is nothing to fit or the viewport is empty.
    """
    config = config or LayoutConfig()
    nodes = list(iter_nodes(roots))
    if not nodes or viewport_width <= 0 or viewport_height <= 0:
        return None

    min_x = min(n.x for n in nodes) - config.fit_padding
    max_x = max(n.x for n in nodes) + config.fit_padding
    min_y = min(n.y for n in nodes) - config.fit_padding
    max_y = max(n.y for n in nodes) + config.fit_padding

    scale = min(viewport_width / (max_x - min_x), viewport_height / (max_y - min_y), 1) * config.fit_factor
    center_x = (min_x + max_x) / 2
    center_y = (min_y + max_y) / 2

    return FitResult(
        min_x=min_x,
        max_x=max_x,
        min_y=min_y,
        max_y=max_y,
        scale=scale,
        translate_x=viewport_width / 2 - center_x * scale,
        translate_y=viewport_height / 2 - center_y * scale,
    )
