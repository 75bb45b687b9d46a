"""
Фільтр графа за родинною досяжністю.
Від людей обраних родин іде пошук у ширину по ребрах дозволених типів.
"""

from dataclasses import dataclass, field
from typing import List, Set, Tuple, Iterable, Optional

import networkx as nx

from graph_model import (Person, Relationship, RelationDefinition, build_graph, prune_dangling_edges,
                         BLOOD_KINSHIP_TYPES, KINSHIP_CATEGORY_TYPES, FILTER_STRICT, FILTER_KINSHIP)


@dataclass
class FilterState:
    enabled: bool = False
    families: List[str] = field(default_factory=list)
    mode: str = FILTER_STRICT

    @property
    def is_active(self) -> bool:
        return self.enabled and len(self.families) > 0

    def copy(self) -> 'FilterState':
        return FilterState(self.enabled, list(self.families), self.mode)


class KinshipFilter:
    def __init__(self, custom_definitions: Optional[Iterable[RelationDefinition]] = None):
        self.custom_definitions = list(custom_definitions or [])

    def active_types(self, mode: str) -> Set[str]:
        """Строгий режим - лише кровні типи; розширений - категорія родини та власні родинні типи."""
        if mode == FILTER_KINSHIP:
            custom = {d.name for d in self.custom_definitions if d.is_kinship}
            return set(KINSHIP_CATEGORY_TYPES) | custom
        return set(BLOOD_KINSHIP_TYPES)

    @staticmethod
    def seed_ids(nodes: Iterable[Person], families: Iterable[str]) -> List[str]:
        families = set(families)
        return [n.id for n in nodes if n.family_id in families]

    def reachable_ids(self, nodes: List[Person], edges: List[Relationship],
                      seeds: Iterable[str], mode: str) -> Set[str]:
        """Насіння плюс усе, що досяжне через ребра активних типів (незалежно від родини)."""
        graph = build_graph(nodes, edges, types=self.active_types(mode))

        visited: Set[str] = set()
        for seed in seeds:
            if seed in visited or not graph.has_node(seed):
                continue
            visited.update(nx.node_connected_component(graph, seed))
        return visited

    def apply(self, nodes: List[Person], edges: List[Relationship],
              state: FilterState) -> Tuple[List[Person], List[Relationship]]:
        """
        Повертає відфільтровані (вузли, ребра).
        Після фільтра лишаються всі ребра будь-якого типу, обидва кінці яких пройшли.
        """
        if not state.is_active:
            return list(nodes), prune_dangling_edges(nodes, edges)

        seeds = self.seed_ids(nodes, state.families)
        keep = self.reachable_ids(nodes, edges, seeds, state.mode)

        kept_nodes = [n for n in nodes if n.id in keep]
        return kept_nodes, prune_dangling_edges(kept_nodes, edges)
