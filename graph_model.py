"""
Модель даних графа зв'язків.
Люди, типізовані зв'язки, таксономія типів та арена, якою володіє один вид графа.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Iterable, Tuple

import networkx as nx

# --- ТИПИ ЗВ'ЯЗКІВ ---
REL_PARENT = 'PARENT'
REL_CHILD = 'CHILD'
REL_SPOUSE = 'SPOUSE'
REL_SIBLING = 'SIBLING'
REL_FRIEND = 'FRIEND'
REL_ENEMY = 'ENEMY'
REL_COLLEAGUE = 'COLLEAGUE'
REL_LOVER = 'LOVER'
REL_EX_SPOUSE = 'EX_SPOUSE'
REL_EX_PARTNER = 'EX_PARTNER'
REL_STEP_PARENT = 'STEP_PARENT'
REL_ADOPTIVE_PARENT = 'ADOPTIVE_PARENT'
REL_MENTOR = 'MENTOR'
REL_SENIOR = 'SENIOR'
REL_STUDENT = 'STUDENT'
REL_GRANDPARENT = 'GRANDPARENT'
REL_COUSIN = 'COUSIN'
REL_CRUSH = 'CRUSH'
REL_LOVE_RIVAL = 'LOVE_RIVAL'
REL_RIVAL = 'RIVAL'
REL_BOSS = 'BOSS'

RELATION_TYPES = (
    REL_PARENT, REL_CHILD, REL_SPOUSE, REL_SIBLING, REL_FRIEND, REL_ENEMY,
    REL_COLLEAGUE, REL_LOVER, REL_EX_SPOUSE, REL_EX_PARTNER, REL_STEP_PARENT,
    REL_ADOPTIVE_PARENT, REL_MENTOR, REL_SENIOR, REL_STUDENT, REL_GRANDPARENT,
    REL_COUSIN, REL_CRUSH, REL_LOVE_RIVAL, REL_RIVAL, REL_BOSS,
)

# Кровна спорідненість (строгий режим фільтра)
BLOOD_KINSHIP_TYPES = frozenset({
    REL_PARENT, REL_CHILD, REL_SIBLING, REL_GRANDPARENT, REL_COUSIN,
})

# Категорія "родина" (розширений режим). Колишній шлюб входить, колишній партнер - ні.
KINSHIP_CATEGORY_TYPES = frozenset({
    REL_PARENT, REL_SPOUSE, REL_SIBLING, REL_GRANDPARENT, REL_COUSIN,
    REL_STEP_PARENT, REL_ADOPTIVE_PARENT, REL_EX_SPOUSE,
})

# --- РЕЖИМИ ---
VIEW_NETWORK = 'NETWORK'
VIEW_TREE = 'TREE'

FILTER_STRICT = 'STRICT'
FILTER_KINSHIP = 'KINSHIP'


@dataclass
class Person:
    id: str
    family_id: str = ''
    name: str = ''
    generation: Optional[int] = None  # задається вручну, використовується режимом TREE
    x: Optional[float] = None
    y: Optional[float] = None
    vx: float = 0.0
    vy: float = 0.0
    fx: Optional[float] = None
    fy: Optional[float] = None

    @property
    def is_pinned(self) -> bool:
        return self.fx is not None or self.fy is not None

    @property
    def has_position(self) -> bool:
        return self.x is not None and self.y is not None

    def pin(self):
        self.fx = self.x
        self.fy = self.y

    def release(self):
        self.fx = None
        self.fy = None

    def copy(self) -> 'Person':
        return dataclasses.replace(self)


@dataclass
class Relationship:
    id: str
    source: str
    target: str
    type: str
    strength: float = 1.0
    start_date: str = ''
    end_date: str = ''
    display_date: str = ''
    # Похідні поля, перераховуються на кожному проході макета
    link_num: int = 0
    link_count: int = 1

    @property
    def pair_key(self) -> Tuple[str, str]:
        """Невпорядкована пара кінців (однакова для A->B та B->A)."""
        if self.source < self.target:
            return (self.source, self.target)
        return (self.target, self.source)

    def copy(self) -> 'Relationship':
        return dataclasses.replace(self)


@dataclass
class RelationDefinition:
    """Користувацький тип зв'язку."""
    id: str
    name: str
    description: str = ''
    is_kinship: bool = False


@dataclass
class NodePosition:
    """Кінцеві координати вузла, що повертаються власнику даних."""
    id: str
    x: Optional[float]
    y: Optional[float]
    fx: Optional[float] = None
    fy: Optional[float] = None

    @classmethod
    def of(cls, person: Person) -> 'NodePosition':
        return cls(person.id, person.x, person.y, person.fx, person.fy)


@dataclass
class GraphArena:
    """
    Змінний стан одного виду графа.
    Передається за посиланням у кожну підсистему замість глобального стану.
    """
    nodes: List[Person] = field(default_factory=list)
    edges: List[Relationship] = field(default_factory=list)
    generations: Dict[str, int] = field(default_factory=dict)
    selection: Set[str] = field(default_factory=set)

    def node_map(self) -> Dict[str, Person]:
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[Person]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]


def prune_dangling_edges(nodes: Iterable[Person], edges: Iterable[Relationship]) -> List[Relationship]:
    """Відкидає ребра, кінці яких відсутні серед активних вузлів. Дані власника не змінюються."""
    node_ids = {n.id for n in nodes}
    return [e for e in edges if e.source in node_ids and e.target in node_ids]


def build_graph(nodes: Iterable[Person], edges: Iterable[Relationship],
                types: Optional[Set[str]] = None) -> nx.MultiGraph:
    """
    Неорієнтований мультиграф для аналізу досяжності.
    Якщо задано types, беруться лише ребра цих типів.
    """
    graph = nx.MultiGraph()
    for node in nodes:
        graph.add_node(node.id, family_id=node.family_id)
    for edge in edges:
        if types is not None and edge.type not in types:
            continue
        if graph.has_node(edge.source) and graph.has_node(edge.target):
            graph.add_edge(edge.source, edge.target, key=edge.id, type=edge.type)
    return graph


@dataclass
class CanvasCallbacks:
    """
    Сповіщення власнику даних. Кожне несе лише id сутності або кінцеві координати.
    Не задані колбеки просто пропускаються.
    """
    on_node_click: Optional[Callable[[str], None]] = None
    on_edge_click: Optional[Callable[[str], None]] = None
    on_canvas_click: Optional[Callable[[], None]] = None
    on_node_moved: Optional[Callable[[NodePosition], None]] = None
    on_nodes_moved: Optional[Callable[[List[NodePosition]], None]] = None
    on_layout_reset: Optional[Callable[[], None]] = None

    def emit(self, name: str, *args):
        callback = getattr(self, name)
        if callback is not None:
            callback(*args)
