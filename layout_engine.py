"""
Рушій компонування графа зв'язків.
Ітеративний розв'язувач позицій, що крокує раз на кадр анімації, та налаштування сил для кожного режиму.
"""

import math
import random
from collections import OrderedDict
from typing import Callable, Dict, List, Optional

from graph_model import GraphArena, Person, VIEW_TREE
from forces import Force, LinkForce, ManyBodyForce, CollideForce, PositionForce, CenterForce

# --- КОНСТАНТИ СИМУЛЯЦІЇ ---
ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.8
INITIAL_RADIUS = 10
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))

REHEAT_FULL = 1.0
REHEAT_GENTLE = 0.1
DRAG_ALPHA_TARGET = 0.01

# --- КОНСТАНТИ СИЛ ---
LINK_DISTANCE = 100
LINK_STRENGTH = 1
CHARGE_STRENGTH = -150
CHARGE_DISTANCE_MAX = 250
COLLIDE_RADIUS = 45
COLLIDE_ITERATIONS = 2
CENTER_STRENGTH = 0.05

TREE_BAND_HEIGHT = 150
TREE_Y_STRENGTH = 0.8
TREE_FAMILY_SPACING = 200
TREE_X_STRENGTH = 0.2
TREE_CHARGE_STRENGTH = -500
TREE_CHARGE_DISTANCE_MAX = 500

GENEALOGY_BAND_HEIGHT = 160
GENEALOGY_Y_STRENGTH = 1.2
GENEALOGY_X_STRENGTH = 0.05
GENEALOGY_CHARGE_STRENGTH = -800
GENEALOGY_CHARGE_DISTANCE_MAX = 1000

EVENT_TICK = 'tick'
EVENT_END = 'end'


class Simulation:
    """
    Розв'язувач зі швидкостями: на кожному такті сили змінюють швидкості,
    потім швидкості згасають і додаються до позицій. Закріплені вузли (fx/fy) стоять на місці.
    """

    def __init__(self, nodes: List[Person], seed: Optional[int] = None):
        self.nodes = nodes
        self.forces: Dict[str, Force] = OrderedDict()
        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.velocity_decay = VELOCITY_DECAY
        self.running = False
        self.rng = random.Random(seed)
        self.listeners: Dict[str, List[Callable]] = {EVENT_TICK: [], EVENT_END: []}
        self._initialize_nodes()

    def _initialize_nodes(self):
        """Вузли без координат розкладаються по спіралі соняшника навколо початку координат."""
        for i, node in enumerate(self.nodes):
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if node.x is None or node.y is None:
                radius = INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * INITIAL_ANGLE
                node.x = radius * math.cos(angle)
                node.y = radius * math.sin(angle)

    def force(self, name: str, force: Optional[Force] = None) -> Optional[Force]:
        """Встановлює (або прибирає, якщо force=None) іменовану силу."""
        if force is None:
            return self.forces.pop(name, None)
        force.initialize(self.nodes, self.rng)
        self.forces[name] = force
        return force

    def on(self, event: str, callback: Callable):
        self.listeners[event].append(callback)

    def _emit(self, event: str):
        for callback in self.listeners[event]:
            callback(self)

    def tick(self, iterations: int = 1):
        for _ in range(iterations):
            self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay

            for force in self.forces.values():
                force.apply(self.alpha)

            for node in self.nodes:
                if node.fx is None:
                    node.vx *= 1 - self.velocity_decay
                    node.x += node.vx
                else:
                    node.x = node.fx
                    node.vx = 0.0
                if node.fy is None:
                    node.vy *= 1 - self.velocity_decay
                    node.y += node.vy
                else:
                    node.y = node.fy
                    node.vy = 0.0

    def step(self) -> bool:
        """Один кадр анімації. Повертає True, поки симуляція ще не охолола."""
        if not self.running:
            return False
        self.tick()
        self._emit(EVENT_TICK)
        if self.alpha < self.alpha_min:
            self.running = False
            self._emit(EVENT_END)
        return self.running

    def restart(self, alpha: Optional[float] = None) -> 'Simulation':
        if alpha is not None:
            self.alpha = alpha
        self.running = True
        return self

    def stop(self) -> 'Simulation':
        self.running = False
        return self

    def run(self, max_ticks: int = 300) -> int:
        """Крокує до охолодження або до max_ticks кадрів. Повертає кількість зроблених кадрів."""
        ticks = 0
        while ticks < max_ticks and self.step():
            ticks += 1
        return ticks

    def find(self, x: float, y: float, radius: float = float('inf')) -> Optional[Person]:
        """Найближчий до точки вузол у межах radius (для влучання вказівником)."""
        closest = None
        best = radius * radius
        for node in self.nodes:
            d2 = (node.x - x) ** 2 + (node.y - y) ** 2
            if d2 < best:
                closest = node
                best = d2
        return closest


def family_offset(family_id: str) -> int:
    """Стабільний горизонтальний зсув родини: сума кодів символів за модулем 5, центрована."""
    return (sum(ord(ch) for ch in family_id) % 5 - 2) * TREE_FAMILY_SPACING


class LayoutEngine:
    def __init__(self, width: float = 800, height: float = 600, seed: Optional[int] = None):
        self.width = width
        self.height = height
        self.seed = seed
        self.simulation: Optional[Simulation] = None

    def configure(self, arena: GraphArena, view_mode: str, genealogy: bool = False,
                  structural: bool = True) -> Simulation:
        """
        Перебудовує симуляцію для нового набору вузлів і ребер арени.
        Стара симуляція зупиняється до запуску нової; стан вузлів успадковується за id.
        """
        previous = self.simulation.nodes if self.simulation else []
        if self.simulation:
            self.simulation.stop()

        self._inherit_state(arena.nodes, previous, genealogy)

        simulation = Simulation(arena.nodes, seed=self.seed)
        simulation.force('link', LinkForce(arena.edges, distance=LINK_DISTANCE, strength=LINK_STRENGTH))
        simulation.force('charge', ManyBodyForce(CHARGE_STRENGTH, distance_max=CHARGE_DISTANCE_MAX))
        simulation.force('collide', CollideForce(COLLIDE_RADIUS, iterations=COLLIDE_ITERATIONS))

        if genealogy:
            generations = arena.generations
            simulation.force('y', PositionForce(
                'y', lambda n: generations.get(n.id, 0) * GENEALOGY_BAND_HEIGHT, GENEALOGY_Y_STRENGTH))
            simulation.force('x', PositionForce('x', self.width / 2, GENEALOGY_X_STRENGTH))
            simulation.force('charge', ManyBodyForce(
                GENEALOGY_CHARGE_STRENGTH, distance_max=GENEALOGY_CHARGE_DISTANCE_MAX))
        elif view_mode == VIEW_TREE:
            simulation.force('y', PositionForce(
                'y', lambda n: (n.generation or 0) * TREE_BAND_HEIGHT, TREE_Y_STRENGTH))
            simulation.force('x', PositionForce('x', lambda n: family_offset(n.family_id), TREE_X_STRENGTH))
            simulation.force('charge', ManyBodyForce(
                TREE_CHARGE_STRENGTH, distance_max=TREE_CHARGE_DISTANCE_MAX))
        else:
            simulation.force('center', CenterForce(self.width / 2, self.height / 2, CENTER_STRENGTH))

        # Повний розігрів лише при структурних змінах, щоб не смикати вже розкладені вузли
        reheat = REHEAT_FULL if structural or not previous else REHEAT_GENTLE
        simulation.restart(reheat)
        self.simulation = simulation
        return simulation

    @staticmethod
    def _inherit_state(nodes: List[Person], previous: List[Person], genealogy: bool):
        old_by_id = {n.id: n for n in previous}
        for node in nodes:
            old = old_by_id.get(node.id)
            if old is not None:
                node.x, node.y = old.x, old.y
                node.vx, node.vy = old.vx, old.vy
                if not genealogy:
                    if old.fx is not None:
                        node.fx = old.fx
                    if old.fy is not None:
                        node.fy = old.fy
            if genealogy:
                # Обмеження поколінь замінює ручні позиції
                node.release()

    def step(self) -> bool:
        if self.simulation is None:
            return False
        return self.simulation.step()

    def drag_started(self):
        if self.simulation is not None:
            self.simulation.alpha_target = DRAG_ALPHA_TARGET
            self.simulation.restart()

    def drag_ended(self):
        if self.simulation is not None:
            self.simulation.alpha_target = 0.0

    def reheat(self, alpha: float = REHEAT_FULL):
        if self.simulation is not None:
            self.simulation.restart(alpha)

    def stop(self):
        if self.simulation is not None:
            self.simulation.stop()
