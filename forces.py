"""
Сили для ітеративного розв'язувача позицій.
Кожна сила змінює швидкості вузлів (центрування - позиції) пропорційно поточній енергії alpha.
"""

import math
import random
from collections import defaultdict
from typing import Callable, Dict, List, Union

from graph_model import Person, Relationship

JIGGLE = 1e-6

NodeValue = Union[float, Callable[[Person], float]]


def jiggle(rng: random.Random) -> float:
    """Крихітне зміщення замість нульової відстані, щоб уникнути ділення на нуль."""
    return (rng.random() - 0.5) * JIGGLE


def _resolve(value: NodeValue, node: Person) -> float:
    return value(node) if callable(value) else value


class Force:
    def initialize(self, nodes: List[Person], rng: random.Random):
        self.nodes = nodes
        self.rng = rng

    def apply(self, alpha: float):
        raise NotImplementedError


class LinkForce(Force):
    """Притягує з'єднані вузли до заданої відстані спокою."""

    def __init__(self, edges: List[Relationship], distance: float = 30, strength: float = 1,
                 iterations: int = 1):
        self.edges = edges
        self.distance = distance
        self.strength = strength
        self.iterations = iterations
        self.links = []

    def initialize(self, nodes, rng):
        super().initialize(nodes, rng)
        by_id = {n.id: n for n in nodes}
        degree: Dict[str, int] = defaultdict(int)
        self.links = []
        for edge in self.edges:
            source = by_id.get(edge.source)
            target = by_id.get(edge.target)
            if source is None or target is None:
                continue
            degree[source.id] += 1
            degree[target.id] += 1
            self.links.append((source, target))
        # Частка корекції, яку отримує ціль: менш зв'язаний вузол рухається більше
        self.bias = [degree[s.id] / (degree[s.id] + degree[t.id]) for s, t in self.links]

    def apply(self, alpha):
        for _ in range(self.iterations):
            for (source, target), bias in zip(self.links, self.bias):
                x = target.x + target.vx - source.x - source.vx or jiggle(self.rng)
                y = target.y + target.vy - source.y - source.vy or jiggle(self.rng)
                length = math.sqrt(x * x + y * y)
                length = (length - self.distance) / length * alpha * self.strength
                x *= length
                y *= length
                target.vx -= x * bias
                target.vy -= y * bias
                source.vx += x * (1 - bias)
                source.vy += y * (1 - bias)


class ManyBodyForce(Force):
    """Взаємне відштовхування (від'ємна сила) з відсіканням на distance_max."""

    def __init__(self, strength: float = -30, distance_min: float = 1,
                 distance_max: float = float('inf')):
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max

    def apply(self, alpha):
        nodes = self.nodes
        for node in nodes:
            for other in nodes:
                if other is node:
                    continue
                x = other.x - node.x
                y = other.y - node.y
                l2 = x * x + y * y
                if l2 >= self.distance_max2:
                    continue
                if x == 0:
                    x = jiggle(self.rng)
                    l2 += x * x
                if y == 0:
                    y = jiggle(self.rng)
                    l2 += y * y
                if l2 < self.distance_min2:
                    l2 = math.sqrt(self.distance_min2 * l2)
                weight = self.strength * alpha / l2
                node.vx += x * weight
                node.vy += y * weight


class CollideForce(Force):
    """Не дає колам вузлів перекриватися; кілька ітерацій за такт для стабільності."""

    def __init__(self, radius: NodeValue = 1, strength: float = 1, iterations: int = 1):
        self.radius = radius
        self.strength = strength
        self.iterations = iterations

    def apply(self, alpha):
        nodes = self.nodes
        radii = [_resolve(self.radius, n) for n in nodes]
        for _ in range(self.iterations):
            for i, node in enumerate(nodes):
                ri = radii[i]
                xi = node.x + node.vx
                yi = node.y + node.vy
                for j in range(i + 1, len(nodes)):
                    other = nodes[j]
                    rj = radii[j]
                    r = ri + rj
                    x = xi - other.x - other.vx
                    y = yi - other.y - other.vy
                    l2 = x * x + y * y
                    if l2 >= r * r:
                        continue
                    if x == 0:
                        x = jiggle(self.rng)
                        l2 += x * x
                    if y == 0:
                        y = jiggle(self.rng)
                        l2 += y * y
                    length = math.sqrt(l2)
                    length = (r - length) / length * self.strength
                    x *= length
                    y *= length
                    share = (rj * rj) / (ri * ri + rj * rj)
                    node.vx += x * share
                    node.vy += y * share
                    other.vx -= x * (1 - share)
                    other.vy -= y * (1 - share)


class PositionForce(Force):
    """Тягне вузли до цільової координати по одній осі ('x' або 'y')."""

    def __init__(self, axis: str, target: NodeValue = 0, strength: NodeValue = 0.1):
        if axis not in ('x', 'y'):
            raise ValueError(f"Unknown axis: {axis}")
        self.axis = axis
        self.target = target
        self.strength = strength

    def apply(self, alpha):
        velocity = 'v' + self.axis
        for node in self.nodes:
            delta = _resolve(self.target, node) - getattr(node, self.axis)
            pull = delta * _resolve(self.strength, node) * alpha
            setattr(node, velocity, getattr(node, velocity) + pull)


class CenterForce(Force):
    """Зсуває весь граф так, щоб його центр мас наближався до (x, y)."""

    def __init__(self, x: float = 0, y: float = 0, strength: float = 1):
        self.x = x
        self.y = y
        self.strength = strength

    def apply(self, alpha):
        if not self.nodes:
            return
        sx = sum(n.x for n in self.nodes) / len(self.nodes)
        sy = sum(n.y for n in self.nodes) / len(self.nodes)
        sx = (sx - self.x) * self.strength
        sy = (sy - self.y) * self.strength
        for node in self.nodes:
            node.x -= sx
            node.y -= sy
