"""
Маршрутизація паралельних ребер та розведення їхніх підписів.
Усі функції залежать лише від поточного знімка позицій, тому тестуються без симуляції.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from graph_model import Person, Relationship

# --- КОНСТАНТИ ГЕОМЕТРІЇ ---
CURVE_UNIT = 45
MIN_CHORD = 0.001

LABEL_FALLBACK_WIDTH = 30
LABEL_FALLBACK_HEIGHT = 12
LABEL_DEFAULT_WIDTH = 30
LABEL_DEFAULT_HEIGHT = 16
LABEL_PADDING = 8
LABEL_SINGLE_LINE_PADDING = 6

DECOLLIDE_PASSES = 2
DECOLLIDE_WINDOW_X = 100
DECOLLIDE_WINDOW_Y = 50
DECOLLIDE_MAX_EDGES = 300
DECOLLIDE_GAP = 2

# measure(text) -> (width, height); може кинути виняток, якщо текст ще не відмальовано
LabelMeasure = Callable[[str], Tuple[float, float]]


@dataclass
class EdgeGeometry:
    edge_id: str
    x1: float
    y1: float
    x2: float
    y2: float
    straight: bool
    cx: float
    cy: float
    label_x: float
    label_y: float
    angle: float
    label_width: Optional[float] = None
    label_height: Optional[float] = None

    @property
    def path(self) -> str:
        if self.straight:
            return f"M{self.x1},{self.y1} L{self.x2},{self.y2}"
        return f"M{self.x1},{self.y1} Q{self.cx},{self.cy} {self.x2},{self.y2}"


# ==================== ГРУПУВАННЯ ====================

def assign_parallel_groups(edges: List[Relationship]) -> List[Relationship]:
    """
    Стабільно сортує ребра за (source, target) і нумерує їх усередині
    групи з однаковою невпорядкованою парою кінців. Повертає відсортований список.
    """
    ordered = sorted(edges, key=lambda e: (e.source, e.target))
    counts: Dict[Tuple[str, str], int] = defaultdict(int)
    for edge in ordered:
        edge.link_num = counts[edge.pair_key]
        counts[edge.pair_key] += 1
    for edge in ordered:
        edge.link_count = counts[edge.pair_key]
    return ordered


def is_straight(link_num: int, link_count: int) -> bool:
    return link_count == 1 or (link_count % 2 == 1 and link_num == (link_count - 1) / 2)


def curve_offset(link_num: int, link_count: int) -> float:
    """Зсув у одиницях CURVE_UNIT; симетричний відносно прямого випадку."""
    return link_num - (link_count - 1) / 2


# ==================== ГЕОМЕТРІЯ ====================

def route_edge(edge: Relationship, source: Person, target: Person,
               curve_unit: float = CURVE_UNIT) -> Optional[EdgeGeometry]:
    """Геометрія одного ребра. None, якщо в когось із кінців ще немає координат."""
    if not source.has_position or not target.has_position:
        return None

    # Перпендикуляр рахується в канонічному напрямку пари, щоб група розходилась віялом
    swapped = source.id > target.id
    x1, y1 = (target.x, target.y) if swapped else (source.x, source.y)
    x2, y2 = (source.x, source.y) if swapped else (target.x, target.y)
    mid_x = (x1 + x2) / 2
    mid_y = (y1 + y2) / 2

    if is_straight(edge.link_num, edge.link_count):
        angle = math.degrees(math.atan2(y2 - y1, x2 - x1))
        return EdgeGeometry(edge.id, source.x, source.y, target.x, target.y, True,
                            mid_x, mid_y, mid_x, mid_y, angle)

    dx = x2 - x1
    dy = y2 - y1
    dist = math.hypot(dx, dy) or MIN_CHORD
    perp_x = dy / dist
    perp_y = -dx / dist
    offset = curve_offset(edge.link_num, edge.link_count) * curve_unit
    cx = mid_x + perp_x * offset
    cy = mid_y + perp_y * offset

    # Точка кривої Безьє при t = 0.5 і дотична в ній
    label_x = 0.25 * x1 + 0.5 * cx + 0.25 * x2
    label_y = 0.25 * y1 + 0.5 * cy + 0.25 * y2
    tx = 0.5 * (cx - x1) + 0.5 * (x2 - cx)
    ty = 0.5 * (cy - y1) + 0.5 * (y2 - cy)
    angle = math.degrees(math.atan2(ty, tx))

    return EdgeGeometry(edge.id, source.x, source.y, target.x, target.y, False,
                        cx, cy, label_x, label_y, angle)


# ==================== ПІДПИСИ ====================

def format_time_label(edge: Relationship) -> str:
    if edge.display_date:
        return edge.display_date
    start = (edge.start_date or '').strip()
    end = (edge.end_date or '').strip()
    if start and end:
        return start if start == end else f"{start} ~ {end}"
    if start:
        return f"{start} ~"
    if end:
        return f"~ {end}"
    return ""


def measure_label(edge: Relationship, measure: Optional[LabelMeasure] = None,
                  text: Optional[str] = None) -> Tuple[float, float]:
    """
    Розмір прямокутника підпису: основний рядок (тип) і, якщо є, рядок дат.
    Без вимірювача або при його помилці повертається фіксований запасний розмір.
    """
    if measure is None:
        return LABEL_FALLBACK_WIDTH, LABEL_FALLBACK_HEIGHT

    primary = text if text is not None else edge.type
    time_text = format_time_label(edge)
    try:
        pw, ph = measure(primary)
        if time_text:
            tw, th = measure(time_text)
            return max(pw, tw) + LABEL_PADDING, ph + th + LABEL_PADDING
        return pw + LABEL_PADDING, ph + LABEL_SINGLE_LINE_PADDING
    except Exception as e:
        print(f"Label measure error: {e}")
        return LABEL_FALLBACK_WIDTH, LABEL_FALLBACK_HEIGHT


def decollide_labels(geometries: List[EdgeGeometry], passes: int = DECOLLIDE_PASSES,
                     max_edges: int = DECOLLIDE_MAX_EDGES) -> List[EdgeGeometry]:
    """
    Наближене розведення підписів, що перекриваються (змінює якорі на місці).
    Кожна пара розсувається по тій осі, де потрібен менший зсув, порівну в обидва боки.
    """
    if len(geometries) >= max_edges:
        return geometries

    for _ in range(passes):
        for i in range(len(geometries)):
            g1 = geometries[i]
            for j in range(i + 1, len(geometries)):
                g2 = geometries[j]
                dx = g1.label_x - g2.label_x
                dy = g1.label_y - g2.label_y
                if abs(dx) > DECOLLIDE_WINDOW_X or abs(dy) > DECOLLIDE_WINDOW_Y:
                    continue

                w1 = g1.label_width or LABEL_DEFAULT_WIDTH
                h1 = g1.label_height or LABEL_DEFAULT_HEIGHT
                w2 = g2.label_width or LABEL_DEFAULT_WIDTH
                h2 = g2.label_height or LABEL_DEFAULT_HEIGHT

                overlap_x = (w1 + w2) / 2 - abs(dx)
                overlap_y = (h1 + h2) / 2 - abs(dy)
                if overlap_x <= 0 or overlap_y <= 0:
                    continue

                if overlap_x < overlap_y:
                    shift = (1 if dx > 0 else -1) * (overlap_x + DECOLLIDE_GAP) / 2
                    g1.label_x += shift
                    g2.label_x -= shift
                else:
                    shift = (1 if dy > 0 else -1) * (overlap_y + DECOLLIDE_GAP) / 2
                    g1.label_y += shift
                    g2.label_y -= shift
    return geometries


def route_edges(edges: List[Relationship], node_map: Dict[str, Person],
                label_sizes: Optional[Dict[str, Tuple[float, float]]] = None,
                curve_unit: float = CURVE_UNIT) -> List[EdgeGeometry]:
    """Геометрія всіх ребер для одного такту, з розведеними підписами."""
    geometries = []
    for edge in edges:
        source = node_map.get(edge.source)
        target = node_map.get(edge.target)
        if source is None or target is None:
            continue
        geometry = route_edge(edge, source, target, curve_unit)
        if geometry is None:
            continue
        if label_sizes and edge.id in label_sizes:
            geometry.label_width, geometry.label_height = label_sizes[edge.id]
        geometries.append(geometry)
    return decollide_labels(geometries)
