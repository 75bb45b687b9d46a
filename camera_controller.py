"""
Камера: зсув і масштаб виду, анімоване наведення на вузол.
"""

import time
from dataclasses import dataclass
from typing import Optional, Tuple

from graph_model import GraphArena

# --- КОНСТАНТИ КАМЕРИ ---
SCALE_EXTENT = (0.1, 4.0)
FOCUS_SCALE = 1.2
FOCUS_DURATION = 0.75  # секунди
WHEEL_FACTOR = 1.15
PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class Transform:
    x: float = 0.0
    y: float = 0.0
    k: float = 1.0

    def apply(self, wx: float, wy: float) -> Tuple[float, float]:
        """Світові координати -> екранні."""
        return wx * self.k + self.x, wy * self.k + self.y

    def invert(self, sx: float, sy: float) -> Tuple[float, float]:
        """Екранні координати -> світові."""
        return (sx - self.x) / self.k, (sy - self.y) / self.k

    def invert_rect(self, x0: float, y0: float, x1: float, y1: float) -> Tuple[float, float, float, float]:
        """Нормалізований екранний прямокутник у світових координатах: (min_x, min_y, max_x, max_y)."""
        wx0, wy0 = self.invert(min(x0, x1), min(y0, y1))
        wx1, wy1 = self.invert(max(x0, x1), max(y0, y1))
        return wx0, wy0, wx1, wy1


@dataclass(frozen=True)
class FocusRequest:
    """Одноразовий запит наведення; ідентифікується позначкою часу, а не вузлом."""
    target_id: str
    timestamp: float


def ease_cubic_in_out(t: float) -> float:
    t *= 2
    if t <= 1:
        return t * t * t / 2
    t -= 2
    return (t * t * t + 2) / 2


@dataclass
class _Transition:
    start: Transform
    end: Transform
    started_at: float
    duration: float

    def at(self, now: float) -> Tuple[Transform, bool]:
        if self.duration <= 0:
            return self.end, True
        t = min(1.0, max(0.0, (now - self.started_at) / self.duration))
        e = ease_cubic_in_out(t)
        current = Transform(
            self.start.x + (self.end.x - self.start.x) * e,
            self.start.y + (self.end.y - self.start.y) * e,
            self.start.k + (self.end.k - self.start.k) * e,
        )
        return current, t >= 1.0


class CameraController:
    def __init__(self, scale_extent: Tuple[float, float] = SCALE_EXTENT):
        self.scale_extent = scale_extent
        self.transform = Transform()
        self._transition: Optional[_Transition] = None
        self._last_focus_timestamp: Optional[float] = None

    @staticmethod
    def accepts_pointer(shift: bool, button: int = PRIMARY_BUTTON) -> bool:
        """Панорамування/масштаб не реагують на shift (це рамкове виділення) та інші кнопки."""
        return not shift and button == PRIMARY_BUTTON

    def _clamp(self, k: float) -> float:
        low, high = self.scale_extent
        return min(high, max(low, k))

    def set_transform(self, transform: Transform):
        self._transition = None
        self.transform = Transform(transform.x, transform.y, self._clamp(transform.k))

    def pan(self, dx: float, dy: float):
        t = self.transform
        self.set_transform(Transform(t.x + dx, t.y + dy, t.k))

    def zoom(self, factor: float, anchor: Tuple[float, float] = (0.0, 0.0)):
        """Масштабує навколо екранної точки anchor, яка залишається нерухомою."""
        t = self.transform
        k = self._clamp(t.k * factor)
        wx, wy = t.invert(*anchor)
        self.set_transform(Transform(anchor[0] - wx * k, anchor[1] - wy * k, k))

    def wheel(self, delta: float, anchor: Tuple[float, float] = (0.0, 0.0)):
        self.zoom(WHEEL_FACTOR if delta > 0 else 1 / WHEEL_FACTOR, anchor)

    def focus(self, request: Optional[FocusRequest], arena: GraphArena, width: float, height: float,
              now: Optional[float] = None) -> bool:
        """
        Запускає анімацію, що ставить вузол у центр вікна з масштабом FOCUS_SCALE.
        Повторний запит з тією ж позначкою часу ігнорується; нова позначка анімує навіть той самий вузол.
        """
        if request is None or request.timestamp == self._last_focus_timestamp:
            return False

        node = arena.get_node(request.target_id)
        if node is None or not node.has_position:
            return False

        k = self._clamp(FOCUS_SCALE)
        target = Transform(width / 2 - node.x * k, height / 2 - node.y * k, k)
        now = time.monotonic() if now is None else now
        self._transition = _Transition(self.transform, target, now, FOCUS_DURATION)
        self._last_focus_timestamp = request.timestamp
        return True

    @property
    def is_animating(self) -> bool:
        return self._transition is not None

    def advance(self, now: Optional[float] = None) -> Transform:
        """Просуває анімацію до моменту now і повертає поточне перетворення."""
        if self._transition is None:
            return self.transform
        now = time.monotonic() if now is None else now
        self.transform, done = self._transition.at(now)
        if done:
            self._transition = None
        return self.transform
