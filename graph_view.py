"""
Вид графа зв'язків: з'єднує фільтр, обчислення поколінь, симуляцію, маршрутизацію ребер,
виділення та камеру в один потік даних.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from graph_model import (GraphArena, Person, Relationship, RelationDefinition, NodePosition, CanvasCallbacks,
                         prune_dangling_edges, VIEW_NETWORK)
from generation_calculator import GenerationCalculator
from kinship_filter import KinshipFilter, FilterState
from edge_router import EdgeGeometry, LabelMeasure, assign_parallel_groups, measure_label, route_edges
from layout_engine import LayoutEngine, REHEAT_FULL, REHEAT_GENTLE
from selection_controller import SelectionController, SELECTION_NONE, SELECTION_SINGLE, SELECTION_MULTI
from camera_controller import CameraController, FocusRequest, Transform, SCALE_EXTENT
from utils.logger_service import LoggerService


@dataclass
class Highlight:
    node_ids: Set[str] = field(default_factory=set)
    edge_ids: Set[str] = field(default_factory=set)
    dim: bool = False


class GraphView:
    """
    Один екземпляр на відкритий вид. Володіє ареною, симуляцією, виділенням та камерою.
    Записи людей і зв'язків копіюються на кожній перебудові; власник даних отримує зміни лише через колбеки.
    """

    def __init__(self, width: float = 800, height: float = 600,
                 callbacks: Optional[CanvasCallbacks] = None,
                 custom_definitions: Optional[Iterable[RelationDefinition]] = None,
                 seed: Optional[int] = None, logger: Optional[LoggerService] = None,
                 scale_extent: Tuple[float, float] = SCALE_EXTENT):
        self.width = width
        self.height = height
        self.callbacks = callbacks or CanvasCallbacks()
        self.logger = logger

        self.arena = GraphArena()
        self.layout = LayoutEngine(width, height, seed=seed)
        self.camera = CameraController(scale_extent)
        self.selection = SelectionController(self.arena, self.camera, self.layout, self.callbacks,
                                             exit_special_mode=self.exit_genealogy_mode)
        self.kinship_filter = KinshipFilter(custom_definitions)

        self.view_mode = VIEW_NETWORK
        self.filter_state = FilterState()
        self.genealogy_mode = False
        self._pre_genealogy: Optional[Tuple[FilterState, Set[str]]] = None

        self.label_measure: Optional[LabelMeasure] = None
        self.label_sizes: Dict[str, Tuple[float, float]] = {}
        self.geometries: List[EdgeGeometry] = []
        self.selected_edge_id: Optional[str] = None

        self._source_nodes: List[Person] = []
        self._source_edges: List[Relationship] = []
        self._structure_key = None
        self._generation_key = None

    def _log(self, action: str, details: str):
        if self.logger is not None:
            self.logger.log(action, details)

    # ==================== ВХІДНІ ДАНІ ====================

    def set_data(self, nodes: Iterable[Person], edges: Iterable[Relationship]):
        self._source_nodes = list(nodes)
        self._source_edges = list(edges)
        self.rebuild()

    def set_view_mode(self, view_mode: str):
        self.view_mode = view_mode
        self.rebuild()

    def set_filter(self, state: FilterState):
        self.filter_state = state.copy()
        # Генеалогічний режим має сенс лише для однієї родини
        if self.genealogy_mode and len(self.filter_state.families) != 1:
            self.exit_genealogy_mode()
            return
        self.rebuild()

    def set_custom_definitions(self, definitions: Iterable[RelationDefinition]):
        self.kinship_filter.custom_definitions = list(definitions)
        self.rebuild()

    def set_size(self, width: float, height: float):
        self.width = width
        self.height = height
        self.layout.width = width
        self.layout.height = height
        self.rebuild()

    def set_label_measure(self, measure: Optional[LabelMeasure]):
        self.label_measure = measure
        self.label_sizes = {e.id: measure_label(e, measure) for e in self.arena.edges}

    # ==================== ГЕНЕАЛОГІЧНИЙ РЕЖИМ ====================

    def enter_genealogy_mode(self, family_id: str):
        """Показує дерево однієї родини; попередній фільтр і виділення зберігаються для повернення."""
        if not self.genealogy_mode:
            self._pre_genealogy = (self.filter_state.copy(), set(self.arena.selection))
        self.filter_state = FilterState(True, [family_id], self.filter_state.mode)
        self.genealogy_mode = True
        self._generation_key = None
        self._log("GENEALOGY_ENTER", f"Family {family_id}")
        self.rebuild()

    def exit_genealogy_mode(self) -> bool:
        if not self.genealogy_mode:
            return False
        self.genealogy_mode = False
        if self._pre_genealogy is not None:
            state, selection = self._pre_genealogy
            self.filter_state = state
            self.arena.selection.clear()
            self.arena.selection.update(selection)
            self._pre_genealogy = None
        self._log("GENEALOGY_EXIT", "Restored previous filter")
        self.rebuild()
        return True

    # ==================== ПЕРЕБУДОВА ====================

    def rebuild(self):
        """
        Детермінована перебудова: фільтр -> покоління -> симуляція -> геометрія ребер.
        Стара симуляція зупиняється до запуску нової.
        """
        nodes = [p.copy() for p in self._source_nodes]
        edges = prune_dangling_edges(nodes, [e.copy() for e in self._source_edges])

        structure_key = (frozenset(n.id for n in nodes), frozenset(e.id for e in edges))
        structural = structure_key != self._structure_key
        self._structure_key = structure_key

        generations = {}
        if self.genealogy_mode:
            generations = self._generations(nodes, edges)

        nodes, edges = self.kinship_filter.apply(nodes, edges, self.filter_state)
        edges = assign_parallel_groups(edges)

        self.arena.nodes = nodes
        self.arena.edges = edges
        self.arena.generations = generations
        self.label_sizes = {e.id: measure_label(e, self.label_measure) for e in edges}

        self.layout.configure(self.arena, self.view_mode, genealogy=self.genealogy_mode, structural=structural)
        self._route()
        self._log("REBUILD", f"{len(nodes)} nodes, {len(edges)} edges, "
                             f"mode={self.view_mode}, genealogy={self.genealogy_mode}, structural={structural}")

    def _generations(self, nodes: List[Person], edges: List[Relationship]) -> Dict[str, int]:
        """Перераховується при вході в режим або зміні набору ребер; інакше береться попередній результат."""
        key = tuple((e.id, e.source, e.target, e.type) for e in edges)
        if key == self._generation_key and self.arena.generations:
            return self.arena.generations
        self._generation_key = key
        return GenerationCalculator(edges).calculate(n.id for n in nodes)

    def _route(self):
        self.geometries = route_edges(self.arena.edges, self.arena.node_map(), self.label_sizes)

    # ==================== КАДРИ ====================

    def step(self, now: Optional[float] = None) -> bool:
        """Один кадр: камера, такт симуляції і нова геометрія ребер. True, поки симуляція активна."""
        self.camera.advance(now)
        running = self.layout.simulation is not None and self.layout.simulation.running
        if running:
            running = self.layout.step()
            self._route()
        return running

    def settle(self, max_ticks: int = 300) -> int:
        ticks = 0
        while ticks < max_ticks and self.step():
            ticks += 1
        return ticks

    @property
    def transform(self) -> Transform:
        return self.camera.transform

    def request_focus(self, target_id: str, timestamp: float, now: Optional[float] = None) -> bool:
        return self.camera.focus(FocusRequest(target_id, timestamp), self.arena, self.width, self.height, now)

    # ==================== КОМАНДИ ====================

    def tidy(self):
        """
        Звільняє закріплені вузли: лише виділені (з пакетним сповіщенням) або всі
        (зі сповіщенням про скидання макета). Після цього - повний розігрів.
        """
        if self.layout.simulation is None:
            return
        if self.arena.selection:
            targets = [n for n in self.arena.nodes if n.id in self.arena.selection]
            for node in targets:
                node.release()
            if targets:
                self.callbacks.emit('on_nodes_moved', [NodePosition.of(n) for n in targets])
            self._log("TIDY", f"Released {len(targets)} selected nodes")
        else:
            self.callbacks.emit('on_layout_reset')
            for node in self.arena.nodes:
                node.release()
            self._log("TIDY", "Released all nodes")
        self.layout.reheat(REHEAT_FULL)

    def pin_node(self, node_id: str, x: float, y: float) -> bool:
        """Закріплює один вузол у заданій точці і повідомляє власника про цей вузол."""
        node = self.arena.get_node(node_id)
        if node is None:
            return False
        node.x, node.y = x, y
        node.pin()
        self.callbacks.emit('on_node_moved', NodePosition.of(node))
        self.layout.reheat(REHEAT_GENTLE)
        return True

    def select_edge(self, edge_id: Optional[str]):
        self.selected_edge_id = edge_id
        if edge_id is not None:
            self.selection.click_edge(edge_id)

    def highlight(self, selected_person_id: Optional[str] = None) -> Highlight:
        """
        Сусідство сфокусованої людини або кінці обраного ребра.
        Решта графа тьмяніє, крім випадку множинного виділення.
        """
        kind = self.selection.kind
        if kind == SELECTION_SINGLE:
            focus_id = next(iter(self.arena.selection))
        elif kind == SELECTION_NONE:
            focus_id = selected_person_id
        else:
            focus_id = None

        result = Highlight()
        if focus_id:
            result.node_ids.add(focus_id)
            for edge in self.arena.edges:
                if focus_id in (edge.source, edge.target):
                    result.edge_ids.add(edge.id)
                    result.node_ids.update((edge.source, edge.target))
        if self.selected_edge_id:
            result.edge_ids.add(self.selected_edge_id)
            for edge in self.arena.edges:
                if edge.id == self.selected_edge_id:
                    result.node_ids.update((edge.source, edge.target))

        result.dim = bool(focus_id or self.selected_edge_id) and kind != SELECTION_MULTI
        return result

    def teardown(self):
        self.layout.stop()
        self._log("TEARDOWN", "View closed")
