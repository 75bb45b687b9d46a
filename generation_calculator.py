"""
Рушій обчислення поколінь для генеалогічного режиму.
Покоління людини = 1 + максимальне покоління серед її батьків; подружжя вирівнюється до старшого значення.
"""

from collections import defaultdict
from typing import Dict, List, Iterable, Optional, Set

import networkx as nx

from graph_model import Relationship, REL_PARENT, REL_SPOUSE


class GenerationCalculator:
    """
    Обчислює цілий рівень покоління для кожної людини з ребер предків та шлюбів.
    Ребро типу parent_type веде від дитини (source) до батька чи матері (target).
    """

    def __init__(self, edges: Iterable[Relationship],
                 parent_type: str = REL_PARENT, spouse_type: str = REL_SPOUSE):
        self.parent_type = parent_type
        self.spouse_type = spouse_type
        self.child_to_parents: Dict[str, List[str]] = defaultdict(list)
        self.spouses: Dict[str, List[str]] = defaultdict(list)
        self.generation_cache: Dict[str, int] = {}

        for edge in edges:
            if edge.type == parent_type:
                self.child_to_parents[edge.source].append(edge.target)
            elif edge.type == spouse_type:
                self.spouses[edge.source].append(edge.target)
                self.spouses[edge.target].append(edge.source)

    def clear_cache(self):
        """Очищає кеш при зміні набору ребер."""
        self.generation_cache.clear()

    # ==================== БАЗОВІ ОБЧИСЛЕННЯ ====================

    def get_generation(self, person_id: str, visiting: Optional[Set[str]] = None) -> int:
        """
        Покоління однієї людини (з мемоізацією).
        Якщо людина вже є на поточному шляху рекурсії (цикл у даних), повертає 0.
        """
        if person_id in self.generation_cache:
            return self.generation_cache[person_id]

        if visiting is None:
            visiting = set()
        if person_id in visiting:
            return 0

        parents = self.child_to_parents.get(person_id, [])
        if not parents:
            for spouse_id in self.spouses.get(person_id, []):
                if spouse_id in self.generation_cache:
                    return self.generation_cache[spouse_id]
            return 0

        visiting.add(person_id)
        try:
            result = max(self.get_generation(p, visiting) for p in parents) + 1
        finally:
            visiting.discard(person_id)

        self.generation_cache[person_id] = result
        return result

    def calculate(self, person_ids: Iterable[str]) -> Dict[str, int]:
        """
        Повна карта поколінь: початковий прохід у порядку вузлів, синхронізація подружжя,
        далі повторне вирівнювання дітей під батьків, поки значення змінюються.
        """
        person_ids = list(person_ids)
        generations = {}
        for person_id in person_ids:
            generations[person_id] = self.get_generation(person_id)
            self.generation_cache[person_id] = generations[person_id]

        self._synchronize_spouses(generations)

        # Кожен раунд лише підвищує значення; межа потрібна для шлюбів між предком і нащадком
        acyclic_parents = self._acyclic_parents(generations)
        for _ in range(len(person_ids)):
            if not self._relax_children(generations, acyclic_parents):
                break
            self._synchronize_spouses(generations)
        return generations

    def _acyclic_parents(self, generations: Dict[str, int]) -> Dict[str, List[str]]:
        """Батьки, що не лежать з дитиною в одному циклі предків; цикл лишається з резервним значенням."""
        ancestry = nx.DiGraph()
        ancestry.add_nodes_from(generations)
        for person_id in generations:
            for parent_id in self.get_parents(person_id):
                if parent_id in generations:
                    ancestry.add_edge(person_id, parent_id)

        component_of = {}
        for index, component in enumerate(nx.strongly_connected_components(ancestry)):
            for person_id in component:
                component_of[person_id] = index

        return {
            person_id: [p for p in self.get_parents(person_id)
                        if p in generations and p != person_id and component_of[p] != component_of[person_id]]
            for person_id in generations
        }

    def _relax_children(self, generations: Dict[str, int], parents_of: Dict[str, List[str]]) -> bool:
        changed = False
        for person_id, parents in parents_of.items():
            if not parents:
                continue
            expected = max(generations[p] for p in parents) + 1
            if expected > generations[person_id]:
                generations[person_id] = expected
                self.generation_cache[person_id] = expected
                changed = True
        return changed

    def _synchronize_spouses(self, generations: Dict[str, int]):
        """Кожна компонента шлюбних зв'язків отримує найбільше покоління серед своїх членів."""
        spouse_graph = nx.Graph()
        for person_id in generations:
            for partner_id in self.get_spouses(person_id):
                if partner_id in generations:
                    spouse_graph.add_edge(person_id, partner_id)

        for component in nx.connected_components(spouse_graph):
            top = max(generations[p] for p in component)
            for person_id in component:
                generations[person_id] = top
                self.generation_cache[person_id] = top

    # ==================== ДОПОМІЖНІ ====================

    def get_parents(self, person_id: str) -> List[str]:
        return list(self.child_to_parents.get(person_id, []))

    def get_spouses(self, person_id: str) -> List[str]:
        return list(self.spouses.get(person_id, []))
