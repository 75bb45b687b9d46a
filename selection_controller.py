"""
Контролер виділення: кліки, shift-кліки, рамкове виділення та перетягування вузлів.
Стан вказівника - явний автомат Idle | Dragging | Brushing.
"""

from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional, Set, Tuple, Union

from graph_model import GraphArena, NodePosition, CanvasCallbacks
from camera_controller import CameraController, PRIMARY_BUTTON
from layout_engine import LayoutEngine

# Рамка, коротша за це (екранні пікселі), вважається кліком
BRUSH_CLICK_THRESHOLD = 5
# Сумарний зсув перетягування (світові одиниці), після якого вузли вважаються переміщеними
DRAG_MOVE_THRESHOLD = 2

SELECTION_NONE = 'none'
SELECTION_SINGLE = 'single'
SELECTION_MULTI = 'multi'


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Dragging:
    anchor_id: str
    targets: FrozenSet[str]
    moved: bool = False
    distance: float = 0.0


@dataclass(frozen=True)
class Brushing:
    origin: Tuple[float, float]
    current: Tuple[float, float]


PointerState = Union[Idle, Dragging, Brushing]


class SelectionController:
    def __init__(self, arena: GraphArena, camera: Optional[CameraController] = None,
                 layout: Optional[LayoutEngine] = None, callbacks: Optional[CanvasCallbacks] = None,
                 exit_special_mode: Optional[Callable[[], bool]] = None):
        self.arena = arena
        self.camera = camera
        self.layout = layout
        self.callbacks = callbacks or CanvasCallbacks()
        # Повертає True, якщо був активний спеціальний режим і з нього вийшли
        self.exit_special_mode = exit_special_mode
        self.state: PointerState = Idle()
        self._swallow_click = False

    @property
    def selection(self) -> Set[str]:
        return self.arena.selection

    @property
    def kind(self) -> str:
        if not self.arena.selection:
            return SELECTION_NONE
        if len(self.arena.selection) == 1:
            return SELECTION_SINGLE
        return SELECTION_MULTI

    def _set_selection(self, ids):
        self.arena.selection.clear()
        self.arena.selection.update(ids)

    # ==================== КЛІКИ ====================

    def click_canvas(self, shift: bool = False):
        if shift:
            return
        self._set_selection(())
        self.callbacks.emit('on_canvas_click')

    def click_node(self, node_id: str, shift: bool = False):
        if self._swallow_click:
            # Клік, що завершує перетягування, не змінює виділення
            self._swallow_click = False
            return

        if shift:
            if node_id in self.arena.selection:
                self.arena.selection.discard(node_id)
            else:
                self.arena.selection.add(node_id)
            return

        if node_id in self.arena.selection and len(self.arena.selection) > 1:
            return
        self._set_selection((node_id,))
        self.callbacks.emit('on_node_click', node_id)

    def click_edge(self, edge_id: str):
        self.callbacks.emit('on_edge_click', edge_id)

    def select_all(self):
        self._set_selection(self.arena.node_ids())

    def escape(self):
        if self.exit_special_mode is not None and self.exit_special_mode():
            return
        self._set_selection(())
        self.callbacks.emit('on_canvas_click')

    def sync_selected_person(self, person_id: Optional[str]):
        """Зовнішнє виділення однієї людини; множинне виділення, що її містить, зберігається."""
        if person_id is None:
            return
        if len(self.arena.selection) > 1 and person_id in self.arena.selection:
            return
        self._set_selection((person_id,))

    # ==================== РАМКА ====================

    def begin_brush(self, sx: float, sy: float, shift: bool = True, button: int = PRIMARY_BUTTON) -> bool:
        if not shift or button != PRIMARY_BUTTON or self.camera is None:
            return False
        if not isinstance(self.state, Idle):
            return False
        self.state = Brushing((sx, sy), (sx, sy))
        return True

    def update_brush(self, sx: float, sy: float) -> Optional[Tuple[float, float, float, float]]:
        """Оновлює рамку; повертає її поточний прямокутник у світових координатах."""
        if not isinstance(self.state, Brushing):
            return None
        self.state = Brushing(self.state.origin, (sx, sy))
        ox, oy = self.state.origin
        return self.camera.transform.invert_rect(ox, oy, sx, sy)

    def end_brush(self, sx: float, sy: float) -> Set[str]:
        """
        Виділяє всі вузли всередині рамки. Порожня рамка очищає виділення лише тоді,
        коли вказівник справді зсунувся; інакше це клік і виділення не змінюється.
        """
        if not isinstance(self.state, Brushing):
            return set()
        ox, oy = self.state.origin
        self.state = Idle()

        x0, y0, x1, y1 = self.camera.transform.invert_rect(ox, oy, sx, sy)
        inside = {
            n.id for n in self.arena.nodes
            if n.has_position and x0 <= n.x <= x1 and y0 <= n.y <= y1
        }
        if inside:
            self._set_selection(inside)
        elif abs(sx - ox) > BRUSH_CLICK_THRESHOLD or abs(sy - oy) > BRUSH_CLICK_THRESHOLD:
            self._set_selection(())
        return inside

    @property
    def is_brushing(self) -> bool:
        return isinstance(self.state, Brushing)

    # ==================== ПЕРЕТЯГУВАННЯ ====================

    def start_drag(self, node_id: str, shift: bool = False) -> bool:
        """
        Закріплює групу перетягування: усе виділення, якщо вузол у ньому (або натиснуто shift),
        інакше лише сам вузол.
        """
        if self.layout is None or self.layout.simulation is None:
            return False
        if not isinstance(self.state, Idle):
            return False
        node_map = self.arena.node_map()
        if node_id not in node_map:
            return False

        self.layout.drag_started()
        self._swallow_click = False

        if shift:
            self.arena.selection.add(node_id)
            targets = frozenset(self.arena.selection)
        elif node_id in self.arena.selection:
            targets = frozenset(self.arena.selection)
        else:
            targets = frozenset((node_id,))

        for target_id in targets:
            node = node_map.get(target_id)
            if node is not None:
                node.pin()

        self.state = Dragging(node_id, targets)
        return True

    def drag_by(self, dx: float, dy: float):
        """Зсуває всі закріплені вузли активної групи на дельту кадру (у світових одиницях)."""
        if not isinstance(self.state, Dragging):
            return
        if dx == 0 and dy == 0:
            return
        for node in self.arena.nodes:
            if node.id not in self.state.targets:
                continue
            if node.fx is not None:
                node.fx += dx
            if node.fy is not None:
                node.fy += dy
        distance = self.state.distance + abs(dx) + abs(dy)
        self.state = Dragging(self.state.anchor_id, self.state.targets,
                              moved=distance > DRAG_MOVE_THRESHOLD, distance=distance)

    def end_drag(self) -> bool:
        """
        Завершує перетягування. Якщо вказівник рухався, повідомляє власника одним пакетом
        координат усіх переміщених вузлів. Повертає True, якщо сповіщення надіслано.
        """
        if not isinstance(self.state, Dragging):
            return False
        dragging = self.state
        self.state = Idle()
        if self.layout is not None:
            self.layout.drag_ended()

        if not dragging.moved:
            return False

        self._swallow_click = True
        moved = [NodePosition.of(n) for n in self.arena.nodes if n.id in dragging.targets]
        self.callbacks.emit('on_nodes_moved', moved)
        return True

    @property
    def is_dragging(self) -> bool:
        return isinstance(self.state, Dragging)
