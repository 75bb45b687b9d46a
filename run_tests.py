import unittest
import os
import shutil
import tempfile

from graph_model import (Person, Relationship, RelationDefinition, NodePosition, GraphArena, CanvasCallbacks,
                         prune_dangling_edges, REL_PARENT, REL_SPOUSE, REL_SIBLING, REL_FRIEND,
                         VIEW_NETWORK, VIEW_TREE, FILTER_STRICT, FILTER_KINSHIP)
from generation_calculator import GenerationCalculator
from kinship_filter import KinshipFilter, FilterState
from edge_router import (EdgeGeometry, assign_parallel_groups, is_straight, route_edge, route_edges,
                         format_time_label, measure_label, decollide_labels, curve_offset)
from forces import ManyBodyForce, CenterForce, PositionForce
from layout_engine import (Simulation, LayoutEngine, family_offset, EVENT_END, REHEAT_FULL, REHEAT_GENTLE,
                           DRAG_ALPHA_TARGET)
from selection_controller import SelectionController, SELECTION_NONE, SELECTION_SINGLE, SELECTION_MULTI
from camera_controller import CameraController, FocusRequest, Transform
from graph_view import GraphView
from data_manager import DataManager
from svg_renderer import SVGRenderer
from utils.logger_service import LoggerService


class Recorder:
    """Збирає всі сповіщення виду для перевірок."""

    def __init__(self):
        self.events = []

    def callbacks(self) -> CanvasCallbacks:
        return CanvasCallbacks(
            on_node_click=lambda pid: self.events.append(('node_click', pid)),
            on_edge_click=lambda eid: self.events.append(('edge_click', eid)),
            on_canvas_click=lambda: self.events.append(('canvas_click',)),
            on_node_moved=lambda pos: self.events.append(('node_moved', pos)),
            on_nodes_moved=lambda batch: self.events.append(('nodes_moved', batch)),
            on_layout_reset=lambda: self.events.append(('layout_reset',)),
        )

    def of(self, name):
        return [e for e in self.events if e[0] == name]


def rel(rel_id, source, target, rel_type, **kwargs):
    return Relationship(rel_id, source, target, rel_type, **kwargs)


class TestGenerationCalculator(unittest.TestCase):

    def test_1_child_and_spouses(self):
        print("\n--- ЗАПУСК ТЕСТУ №1: Generation of child and spouses ---")
        calc = GenerationCalculator([rel('e1', 'A', 'B', REL_PARENT), rel('e2', 'B', 'C', REL_SPOUSE)])
        generations = calc.calculate(['A', 'B', 'C'])
        self.assertEqual(generations, {'A': 1, 'B': 0, 'C': 0})
        print("--- ТЕСТ №1 УСПІШНИЙ ---")

    def test_2_orphan_adopts_spouse_generation(self):
        print("\n--- ЗАПУСК ТЕСТУ №2: Orphan spouse adopts generation ---")
        edges = [rel('e1', 'E', 'G', REL_PARENT), rel('e2', 'D', 'E', REL_PARENT), rel('e3', 'S', 'E', REL_SPOUSE)]
        for order in (['S', 'G', 'E', 'D'], ['G', 'E', 'S', 'D']):
            generations = GenerationCalculator(edges).calculate(order)
            self.assertEqual(generations['G'], 0)
            self.assertEqual(generations['E'], 1)
            self.assertEqual(generations['S'], 1)
            self.assertEqual(generations['D'], 2)
        print("--- ТЕСТ №2 УСПІШНИЙ ---")

    def test_3_spouse_chain_takes_max(self):
        print("\n--- ЗАПУСК ТЕСТУ №3: Spouse chain synchronisation ---")
        edges = [rel('s1', 'P1', 'P2', REL_SPOUSE), rel('s2', 'P2', 'P3', REL_SPOUSE),
                 rel('p1', 'P3', 'Q', REL_PARENT)]
        generations = GenerationCalculator(edges).calculate(['P1', 'P2', 'P3', 'Q'])
        self.assertEqual(generations['Q'], 0)
        self.assertEqual({generations['P1'], generations['P2'], generations['P3']}, {1})
        print("--- ТЕСТ №3 УСПІШНИЙ ---")

    def test_4_cycle_terminates(self):
        print("\n--- ЗАПУСК ТЕСТУ №4: Ancestry cycle terminates ---")
        calc = GenerationCalculator([rel('c1', 'X', 'Y', REL_PARENT), rel('c2', 'Y', 'X', REL_PARENT)])
        # Y на активному шляху рекурсії отримує 0, X - на одиницю більше
        self.assertEqual(calc.calculate(['X', 'Y']), {'X': 2, 'Y': 1})
        print("--- ТЕСТ №4 УСПІШНИЙ ---")

    def test_5_unknown_person_is_root(self):
        print("\n--- ЗАПУСК ТЕСТУ №5: Isolated person ---")
        calc = GenerationCalculator([])
        self.assertEqual(calc.get_generation('nobody'), 0)
        self.assertEqual(calc.get_parents('nobody'), [])
        calc = GenerationCalculator([rel('e1', 'A', 'B', REL_PARENT), rel('e2', 'B', 'C', REL_SPOUSE)])
        self.assertEqual(calc.get_generation('A'), 1)
        self.assertEqual(calc.get_parents('A'), ['B'])
        self.assertEqual(calc.get_spouses('C'), ['B'])
        calc.clear_cache()
        self.assertEqual(calc.generation_cache, {})
        print("--- ТЕСТ №5 УСПІШНИЙ ---")

    def test_39_spouse_sync_reaches_descendants(self):
        print("\n--- ЗАПУСК ТЕСТУ №39: Spouse sync propagates to children ---")
        # C старший за D, B бере покоління чоловіка C, тож A має бути вище за B
        edges = [rel('p1', 'C', 'D', REL_PARENT), rel('s1', 'B', 'C', REL_SPOUSE), rel('p2', 'A', 'B', REL_PARENT)]
        for order in (['A', 'B', 'C', 'D'], ['D', 'C', 'B', 'A'], ['B', 'A', 'D', 'C']):
            generations = GenerationCalculator(edges).calculate(order)
            self.assertEqual(generations, {'A': 2, 'B': 1, 'C': 1, 'D': 0})
            self.assertEqual(generations['A'], generations['B'] + 1)
        print("--- ТЕСТ №39 УСПІШНИЙ ---")

    def test_40_married_ancestor_and_descendant_terminates(self):
        print("\n--- ЗАПУСК ТЕСТУ №40: Spouse of own descendant ---")
        edges = [rel('p1', 'A', 'B', REL_PARENT), rel('s1', 'A', 'B', REL_SPOUSE)]
        generations = GenerationCalculator(edges).calculate(['A', 'B'])
        self.assertEqual(set(generations), {'A', 'B'})
        self.assertEqual(generations['A'], generations['B'])
        print("--- ТЕСТ №40 УСПІШНИЙ ---")


class TestKinshipFilter(unittest.TestCase):

    def setUp(self):
        self.nodes = [Person('a', 'F1'), Person('b', 'F1'), Person('c', 'F2'),
                      Person('d', 'F3'), Person('e', 'F4')]
        self.edges = [
            rel('e1', 'c', 'a', REL_PARENT),
            rel('e2', 'a', 'd', REL_SPOUSE),
            rel('e3', 'd', 'e', REL_FRIEND),
            rel('e4', 'a', 'c', REL_FRIEND),
            rel('e5', 'b', 'e', 'GODPARENT'),
            rel('e6', 'a', 'ghost', REL_SIBLING),
        ]
        self.custom = [RelationDefinition('x1', 'GODPARENT', is_kinship=True)]

    def test_6_strict_mode_follows_blood_only(self):
        print("\n--- ЗАПУСК ТЕСТУ №6: Strict kinship filter ---")
        nodes, edges = KinshipFilter(self.custom).apply(self.nodes, self.edges,
                                                        FilterState(True, ['F1'], FILTER_STRICT))
        self.assertEqual({n.id for n in nodes}, {'a', 'b', 'c'})
        # Після фільтра лишаються ребра будь-якого типу між тими, хто пройшов
        self.assertEqual({e.id for e in edges}, {'e1', 'e4'})
        print("--- ТЕСТ №6 УСПІШНИЙ ---")

    def test_7_kinship_mode_adds_spouse_and_custom_types(self):
        print("\n--- ЗАПУСК ТЕСТУ №7: Expanded kinship filter ---")
        nodes, edges = KinshipFilter(self.custom).apply(self.nodes, self.edges,
                                                        FilterState(True, ['F1'], FILTER_KINSHIP))
        self.assertEqual({n.id for n in nodes}, {'a', 'b', 'c', 'd', 'e'})
        self.assertNotIn('e6', {e.id for e in edges})

        nodes, _ = KinshipFilter().apply(self.nodes, self.edges, FilterState(True, ['F1'], FILTER_KINSHIP))
        self.assertEqual({n.id for n in nodes}, {'a', 'b', 'c', 'd'})
        print("--- ТЕСТ №7 УСПІШНИЙ ---")

    def test_8_inactive_filter_prunes_dangling_edges(self):
        print("\n--- ЗАПУСК ТЕСТУ №8: Inactive filter ---")
        for state in (FilterState(False, ['F1']), FilterState(True, [])):
            nodes, edges = KinshipFilter().apply(self.nodes, self.edges, state)
            self.assertEqual(len(nodes), 5)
            self.assertEqual(len(edges), 5)
            self.assertNotIn('e6', {e.id for e in edges})
        self.assertEqual(len(prune_dangling_edges(self.nodes, self.edges)), 5)
        print("--- ТЕСТ №8 УСПІШНИЙ ---")


class TestEdgeRouter(unittest.TestCase):

    def setUp(self):
        self.node_map = {'A': Person('A', x=0.0, y=0.0), 'B': Person('B', x=100.0, y=0.0)}

    def test_9_two_parallel_edges_are_symmetric_curves(self):
        print("\n--- ЗАПУСК ТЕСТУ №9: Two parallel edges ---")
        edges = assign_parallel_groups([rel('r2', 'B', 'A', REL_FRIEND), rel('r1', 'A', 'B', REL_SPOUSE)])
        self.assertEqual([e.id for e in edges], ['r1', 'r2'])
        self.assertEqual(sorted(e.link_num for e in edges), [0, 1])
        self.assertTrue(all(e.link_count == 2 for e in edges))

        geoms = [route_edge(e, self.node_map[e.source], self.node_map[e.target]) for e in edges]
        self.assertFalse(any(g.straight for g in geoms))
        self.assertEqual(sorted(round(g.cy, 6) for g in geoms), [-22.5, 22.5])
        for g in geoms:
            self.assertAlmostEqual(g.cx, 50.0)
            # Якір підпису - точка кривої при t = 0.5
            self.assertAlmostEqual(g.label_y, g.cy / 2)
            self.assertAlmostEqual(g.label_x, 50.0)
            self.assertTrue(g.path.startswith("M") and " Q" in g.path)
        print("--- ТЕСТ №9 УСПІШНИЙ ---")

    def test_10_three_parallel_edges_middle_is_straight(self):
        print("\n--- ЗАПУСК ТЕСТУ №10: Three parallel edges ---")
        edges = assign_parallel_groups([rel('r1', 'A', 'B', REL_SPOUSE), rel('r2', 'A', 'B', REL_FRIEND),
                                        rel('r3', 'B', 'A', REL_SIBLING)])
        geoms = {g.edge_id: g for g in route_edges(edges, self.node_map)}
        middle = [e for e in edges if e.link_num == 1][0]
        self.assertTrue(geoms[middle.id].straight)
        self.assertEqual(sum(1 for g in geoms.values() if g.straight), 1)
        self.assertTrue(is_straight(0, 1))
        self.assertFalse(is_straight(0, 2))

        # Дві криві групи з трьох ребер розходяться симетрично
        self.assertEqual(curve_offset(0, 3), -curve_offset(2, 3))
        curved = sorted(round(g.cy, 6) for g in geoms.values() if not g.straight)
        self.assertEqual(curved, [-45.0, 45.0])
        print("--- ТЕСТ №10 УСПІШНИЙ ---")

    def test_11_missing_position_skips_edge(self):
        print("\n--- ЗАПУСК ТЕСТУ №11: Edge without positions ---")
        edge = rel('r1', 'A', 'C', REL_FRIEND)
        self.assertIsNone(route_edge(edge, self.node_map['A'], Person('C')))
        self.assertEqual(route_edges([edge], self.node_map), [])
        print("--- ТЕСТ №11 УСПІШНИЙ ---")

    def test_12_labels_are_decollided(self):
        print("\n--- ЗАПУСК ТЕСТУ №12: Label decollision ---")
        g1 = EdgeGeometry('a', 0, 0, 0, 0, True, 0, 0, 50, 50, 0)
        g2 = EdgeGeometry('b', 0, 0, 0, 0, True, 0, 0, 50, 50, 0)
        decollide_labels([g1, g2])
        self.assertGreaterEqual(abs(g1.label_y - g2.label_y), 16)
        self.assertEqual(g1.label_x, g2.label_x)

        g3 = EdgeGeometry('c', 0, 0, 0, 0, True, 0, 0, 50, 50, 0)
        g4 = EdgeGeometry('d', 0, 0, 0, 0, True, 0, 0, 50, 50, 0)
        decollide_labels([g3, g4], max_edges=2)
        self.assertEqual((g3.label_y, g4.label_y), (50, 50))
        print("--- ТЕСТ №12 УСПІШНИЙ ---")

    def test_13_label_measure_and_time_label(self):
        print("\n--- ЗАПУСК ТЕСТУ №13: Label measure and time label ---")
        edge = rel('r1', 'A', 'B', REL_SPOUSE, start_date='2000', end_date='2010')
        self.assertEqual(format_time_label(edge), "2000 ~ 2010")
        self.assertEqual(format_time_label(rel('r', 'A', 'B', REL_SPOUSE, start_date='2000')), "2000 ~")
        self.assertEqual(format_time_label(rel('r', 'A', 'B', REL_SPOUSE, end_date='2010')), "~ 2010")
        self.assertEqual(format_time_label(rel('r', 'A', 'B', REL_SPOUSE, start_date='1', end_date='1')), "1")
        self.assertEqual(format_time_label(rel('r', 'A', 'B', REL_SPOUSE, start_date='1',
                                               display_date='Spring')), "Spring")

        measure = lambda text: (len(text) * 5, 10)
        self.assertEqual(measure_label(edge, measure), (63, 28))
        self.assertEqual(measure_label(rel('r', 'A', 'B', REL_SPOUSE), measure), (38, 16))

        def broken(text):
            raise RuntimeError("not rendered")

        self.assertEqual(measure_label(edge, broken), (30, 12))
        self.assertEqual(measure_label(edge), (30, 12))
        print("--- ТЕСТ №13 УСПІШНИЙ ---")


class TestSimulation(unittest.TestCase):

    def test_14_pinned_node_does_not_move(self):
        print("\n--- ЗАПУСК ТЕСТУ №14: Pinned node ---")
        nodes = [Person('A', fx=10.0, fy=20.0), Person('B'), Person('C')]
        sim = Simulation(nodes, seed=1)
        sim.force('charge', ManyBodyForce(-30))
        sim.force('center', CenterForce(0, 0))
        sim.restart(1.0)
        sim.run(50)
        self.assertEqual((nodes[0].x, nodes[0].y), (10.0, 20.0))
        self.assertEqual((nodes[0].vx, nodes[0].vy), (0.0, 0.0))
        self.assertTrue(all(n.has_position for n in nodes))
        self.assertIs(sim.find(10.0, 20.0, radius=1), nodes[0])
        self.assertIsNone(sim.find(1e6, 1e6, radius=1))
        print("--- ТЕСТ №14 УСПІШНИЙ ---")

    def test_15_simulation_cools_down_once(self):
        print("\n--- ЗАПУСК ТЕСТУ №15: Cooling ---")
        sim = Simulation([Person('A'), Person('B')], seed=1)
        ends = []
        sim.on(EVENT_END, ends.append)
        sim.restart(1.0)
        ticks = sim.run(1000)
        self.assertFalse(sim.running)
        self.assertLess(sim.alpha, sim.alpha_min)
        self.assertLessEqual(ticks, 301)
        self.assertEqual(len(ends), 1)
        self.assertFalse(sim.step())
        print("--- ТЕСТ №15 УСПІШНИЙ ---")

    def test_16_family_offset_and_bad_axis(self):
        print("\n--- ЗАПУСК ТЕСТУ №16: Family offset ---")
        self.assertEqual(family_offset('Eden'), family_offset('Eden'))
        self.assertIn(family_offset('Ark'), (-400, -200, 0, 200, 400))
        self.assertEqual(family_offset(''), -400)
        with self.assertRaises(ValueError):
            PositionForce('z')
        print("--- ТЕСТ №16 УСПІШНИЙ ---")


class TestLayoutEngine(unittest.TestCase):

    def arena(self, pinned=False):
        a = Person('A', x=0.0, y=0.0)
        if pinned:
            a.fx, a.fy = 5.0, 6.0
        return GraphArena([a, Person('B', x=50.0, y=0.0)], [rel('r1', 'A', 'B', REL_SPOUSE)])

    def test_17_restart_policy(self):
        print("\n--- ЗАПУСК ТЕСТУ №17: Restart policy ---")
        engine = LayoutEngine(seed=1)
        first = engine.configure(self.arena(), VIEW_NETWORK)
        self.assertEqual(first.alpha, REHEAT_FULL)
        gentle = engine.configure(self.arena(), VIEW_NETWORK, structural=False)
        self.assertEqual(gentle.alpha, REHEAT_GENTLE)
        self.assertFalse(first.running)
        full = engine.configure(self.arena(), VIEW_NETWORK, structural=True)
        self.assertEqual(full.alpha, REHEAT_FULL)
        print("--- ТЕСТ №17 УСПІШНИЙ ---")

    def test_18_pins_inherited_except_genealogy(self):
        print("\n--- ЗАПУСК ТЕСТУ №18: Pin inheritance ---")
        engine = LayoutEngine(seed=1)
        engine.configure(self.arena(pinned=True), VIEW_NETWORK)
        arena = self.arena()
        engine.configure(arena, VIEW_NETWORK, structural=False)
        self.assertEqual((arena.nodes[0].fx, arena.nodes[0].fy), (5.0, 6.0))

        genealogy = self.arena(pinned=True)
        genealogy.generations = {'A': 0, 'B': 0}
        engine.configure(genealogy, VIEW_NETWORK, genealogy=True)
        self.assertFalse(any(n.is_pinned for n in genealogy.nodes))
        print("--- ТЕСТ №18 УСПІШНИЙ ---")

    def test_19_mode_forces_and_drag(self):
        print("\n--- ЗАПУСК ТЕСТУ №19: Forces per mode and drag ---")
        engine = LayoutEngine(seed=1)
        self.assertIn('center', engine.configure(self.arena(), VIEW_NETWORK).forces)
        tree = engine.configure(self.arena(), VIEW_TREE)
        self.assertIn('x', tree.forces)
        self.assertIn('y', tree.forces)
        self.assertNotIn('center', tree.forces)
        genealogy = engine.configure(self.arena(), VIEW_TREE, genealogy=True)
        self.assertNotIn('center', genealogy.forces)

        genealogy.stop()
        engine.drag_started()
        self.assertEqual(genealogy.alpha_target, DRAG_ALPHA_TARGET)
        self.assertTrue(genealogy.running)
        engine.drag_ended()
        self.assertEqual(genealogy.alpha_target, 0.0)
        print("--- ТЕСТ №19 УСПІШНИЙ ---")


class TestSelectionController(unittest.TestCase):

    def setUp(self):
        self.arena = GraphArena([Person('A', x=0.0, y=0.0), Person('B', x=100.0, y=0.0),
                                 Person('C', x=200.0, y=0.0)], [])
        self.layout = LayoutEngine(seed=1)
        self.layout.configure(self.arena, VIEW_NETWORK)
        self.recorder = Recorder()
        self.special = False
        self.controller = SelectionController(self.arena, CameraController(), self.layout,
                                              self.recorder.callbacks(), exit_special_mode=self.exit_special)

    def exit_special(self):
        if self.special:
            self.special = False
            return True
        return False

    def test_20_group_drag_moves_by_equal_deltas(self):
        print("\n--- ЗАПУСК ТЕСТУ №20: Group drag ---")
        self.controller.select_all()
        before = {n.id: (n.x, n.y) for n in self.arena.nodes}
        self.assertTrue(self.controller.start_drag('A'))
        self.controller.drag_by(10, 5)
        self.controller.drag_by(5, 0)
        self.assertTrue(self.controller.end_drag())

        batches = self.recorder.of('nodes_moved')
        self.assertEqual(len(batches), 1)
        self.assertEqual({p.id for p in batches[0][1]}, {'A', 'B', 'C'})
        for node in self.arena.nodes:
            self.assertEqual(node.fx - before[node.id][0], 15)
            self.assertEqual(node.fy - before[node.id][1], 5)
        self.assertEqual(self.recorder.of('node_moved'), [])
        print("--- ТЕСТ №20 УСПІШНИЙ ---")

    def test_21_lone_node_drag_and_click_swallow(self):
        print("\n--- ЗАПУСК ТЕСТУ №21: Lone node drag ---")
        self.controller.start_drag('B')
        self.controller.drag_by(3, 4)
        self.controller.end_drag()
        batches = self.recorder.of('nodes_moved')
        self.assertEqual(len(batches), 1)
        self.assertEqual([p.id for p in batches[0][1]], ['B'])
        self.assertEqual((batches[0][1][0].fx, batches[0][1][0].fy), (103.0, 4.0))
        self.assertFalse(self.arena.get_node('A').is_pinned)
        self.assertEqual(self.arena.selection, set())

        # Клік, що завершує перетягування, поглинається
        self.controller.click_node('B')
        self.assertEqual(self.arena.selection, set())
        self.controller.click_node('B')
        self.assertEqual(self.arena.selection, {'B'})
        print("--- ТЕСТ №21 УСПІШНИЙ ---")

    def test_22_click_without_move_sends_nothing(self):
        print("\n--- ЗАПУСК ТЕСТУ №22: Drag without movement ---")
        self.controller.start_drag('A')
        self.controller.drag_by(0, 0)
        self.assertFalse(self.controller.end_drag())
        self.assertEqual(self.recorder.of('nodes_moved'), [])
        self.controller.click_node('A')
        self.assertEqual(self.arena.selection, {'A'})
        self.assertEqual(self.recorder.of('node_click'), [('node_click', 'A')])
        print("--- ТЕСТ №22 УСПІШНИЙ ---")

    def test_41_jitter_is_not_a_move(self):
        print("\n--- ЗАПУСК ТЕСТУ №41: Sub-threshold drag jitter ---")
        self.controller.start_drag('A')
        self.controller.drag_by(0.01, 0)
        self.controller.drag_by(0, -0.5)
        self.assertFalse(self.controller.end_drag())
        self.assertEqual(self.recorder.of('nodes_moved'), [])
        self.controller.click_node('A')
        self.assertEqual(self.arena.selection, {'A'})

        self.controller.start_drag('B')
        self.controller.drag_by(1.5, 0)
        self.controller.drag_by(0, 1.5)
        self.assertTrue(self.controller.end_drag())
        self.assertEqual(len(self.recorder.of('nodes_moved')), 1)
        print("--- ТЕСТ №41 УСПІШНИЙ ---")

    def test_42_selection_kind(self):
        print("\n--- ЗАПУСК ТЕСТУ №42: Selection kind ---")
        self.assertEqual(self.controller.kind, SELECTION_NONE)
        self.controller.click_node('A')
        self.assertEqual(self.controller.kind, SELECTION_SINGLE)
        self.controller.click_node('B', shift=True)
        self.assertEqual(self.controller.kind, SELECTION_MULTI)
        print("--- ТЕСТ №42 УСПІШНИЙ ---")

    def test_23_click_rules(self):
        print("\n--- ЗАПУСК ТЕСТУ №23: Click rules ---")
        self.controller.click_node('A')
        self.controller.click_node('B', shift=True)
        self.assertEqual(self.arena.selection, {'A', 'B'})
        self.controller.click_node('A')
        self.assertEqual(self.arena.selection, {'A', 'B'})
        self.controller.click_node('B', shift=True)
        self.assertEqual(self.arena.selection, {'A'})
        self.controller.click_canvas(shift=True)
        self.assertEqual(self.arena.selection, {'A'})
        self.controller.click_canvas()
        self.assertEqual(self.arena.selection, set())
        self.assertEqual(len(self.recorder.of('canvas_click')), 1)
        self.controller.click_edge('r1')
        self.assertEqual(self.recorder.of('edge_click'), [('edge_click', 'r1')])
        print("--- ТЕСТ №23 УСПІШНИЙ ---")

    def test_24_brush_selects_nodes_inside(self):
        print("\n--- ЗАПУСК ТЕСТУ №24: Brush selection ---")
        self.assertFalse(self.controller.begin_brush(0, 0, shift=False))
        self.assertTrue(self.controller.begin_brush(-10, -10))
        self.assertEqual(self.controller.update_brush(150, 10), (-10, -10, 150, 10))
        self.assertEqual(self.controller.end_brush(150, 10), {'A', 'B'})
        self.assertEqual(self.arena.selection, {'A', 'B'})
        self.assertFalse(self.controller.is_brushing)
        print("--- ТЕСТ №24 УСПІШНИЙ ---")

    def test_25_empty_brush(self):
        print("\n--- ЗАПУСК ТЕСТУ №25: Empty brush ---")
        self.controller.click_node('C')
        self.controller.begin_brush(500, 500)
        self.assertEqual(self.controller.end_brush(500, 500), set())
        self.assertEqual(self.arena.selection, {'C'})

        self.controller.begin_brush(500, 500)
        self.controller.end_brush(600, 600)
        self.assertEqual(self.arena.selection, set())
        print("--- ТЕСТ №25 УСПІШНИЙ ---")

    def test_26_escape_leaves_special_mode_first(self):
        print("\n--- ЗАПУСК ТЕСТУ №26: Escape ---")
        self.controller.click_node('A')
        self.special = True
        self.controller.escape()
        self.assertEqual(self.arena.selection, {'A'})
        self.controller.escape()
        self.assertEqual(self.arena.selection, set())
        self.assertEqual(len(self.recorder.of('canvas_click')), 1)

        self.controller.select_all()
        self.controller.sync_selected_person('B')
        self.assertEqual(self.arena.selection, {'A', 'B', 'C'})
        print("--- ТЕСТ №26 УСПІШНИЙ ---")


class TestCameraController(unittest.TestCase):

    def setUp(self):
        self.arena = GraphArena([Person('A', x=100.0, y=50.0), Person('B')], [])
        self.camera = CameraController()

    def test_27_focus_centres_node(self):
        print("\n--- ЗАПУСК ТЕСТУ №27: Camera focus ---")
        self.assertTrue(self.camera.focus(FocusRequest('A', 1.0), self.arena, 800, 600, now=0.0))
        self.camera.advance(0.375)
        self.assertAlmostEqual(self.camera.transform.k, 1.1)
        t = self.camera.advance(0.75)
        self.assertAlmostEqual(t.k, 1.2)
        self.assertAlmostEqual(t.x, 280.0)
        self.assertAlmostEqual(t.y, 240.0)
        sx, sy = t.apply(100.0, 50.0)
        self.assertAlmostEqual(sx, 400.0)
        self.assertAlmostEqual(sy, 300.0)
        self.assertFalse(self.camera.is_animating)
        print("--- ТЕСТ №27 УСПІШНИЙ ---")

    def test_28_focus_requests_are_idempotent(self):
        print("\n--- ЗАПУСК ТЕСТУ №28: Focus idempotency ---")
        self.assertTrue(self.camera.focus(FocusRequest('A', 1.0), self.arena, 800, 600, now=0.0))
        self.assertFalse(self.camera.focus(FocusRequest('A', 1.0), self.arena, 800, 600, now=0.1))
        self.assertTrue(self.camera.focus(FocusRequest('A', 2.0), self.arena, 800, 600, now=0.2))
        self.assertFalse(self.camera.focus(FocusRequest('missing', 3.0), self.arena, 800, 600, now=0.3))
        self.assertFalse(self.camera.focus(FocusRequest('B', 4.0), self.arena, 800, 600, now=0.4))
        self.assertFalse(self.camera.focus(None, self.arena, 800, 600))
        print("--- ТЕСТ №28 УСПІШНИЙ ---")

    def test_29_zoom_is_clamped(self):
        print("\n--- ЗАПУСК ТЕСТУ №29: Zoom clamp ---")
        self.camera.zoom(100, anchor=(10, 10))
        self.assertEqual(self.camera.transform.k, 4.0)
        self.camera.set_transform(Transform(0, 0, 0.01))
        self.assertEqual(self.camera.transform.k, 0.1)
        self.camera.set_transform(Transform())
        self.camera.zoom(2, anchor=(100, 100))
        self.assertEqual(self.camera.transform.invert(100, 100), (100, 100))
        self.assertFalse(CameraController.accepts_pointer(shift=True))
        self.assertTrue(CameraController.accepts_pointer(shift=False))
        self.camera.pan(5, -5)
        self.assertEqual((self.camera.transform.x, self.camera.transform.y), (-95, -105))
        self.camera.wheel(1)
        self.assertAlmostEqual(self.camera.transform.k, 2 * 1.15)
        print("--- ТЕСТ №29 УСПІШНИЙ ---")


class TestGraphView(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.dm = DataManager(os.path.join(self.temp_dir, "activity_log.csv"))
        self.dm.create_test_data()
        self.recorder = Recorder()
        self.view = GraphView(callbacks=self.recorder.callbacks(), seed=7, logger=self.dm.logger)
        self.view.set_data(*self.dm.snapshot())

    def tearDown(self):
        self.view.teardown()
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_30_rebuild_and_restart_policy(self):
        print("\n--- ЗАПУСК ТЕСТУ №30: GraphView rebuild ---")
        self.assertEqual(len(self.view.arena.nodes), 9)
        self.assertEqual(len(self.view.geometries), len(self.view.arena.edges))
        self.assertEqual(self.view.layout.simulation.alpha, REHEAT_FULL)
        self.view.set_data(*self.dm.snapshot())
        self.assertEqual(self.view.layout.simulation.alpha, REHEAT_GENTLE)
        self.assertGreater(self.view.settle(20), 0)
        self.assertIsNone(self.dm.persons['1'].x)
        print("--- ТЕСТ №30 УСПІШНИЙ ---")

    def test_31_genealogy_stash_and_restore(self):
        print("\n--- ЗАПУСК ТЕСТУ №31: Genealogy mode ---")
        before = FilterState(True, ['Eden', 'Ark'], FILTER_KINSHIP)
        self.view.set_filter(before)
        self.view.enter_genealogy_mode('Eden')
        self.assertTrue(self.view.genealogy_mode)
        self.assertEqual(self.view.filter_state.families, ['Eden'])
        generations = self.view.arena.generations
        self.assertEqual((generations['1'], generations['3'], generations['6']), (0, 1, 2))

        self.view.selection.escape()
        self.assertFalse(self.view.genealogy_mode)
        self.assertEqual(self.view.filter_state, before)
        self.assertEqual(self.view.arena.generations, {})
        print("--- ТЕСТ №31 УСПІШНИЙ ---")

    def test_32_genealogy_auto_exit(self):
        print("\n--- ЗАПУСК ТЕСТУ №32: Genealogy auto exit ---")
        self.view.enter_genealogy_mode('Ark')
        self.view.set_filter(FilterState(True, ['Ark', 'Eden']))
        self.assertFalse(self.view.genealogy_mode)
        self.assertFalse(self.view.filter_state.enabled)
        self.assertEqual(len(self.view.arena.nodes), 9)
        print("--- ТЕСТ №32 УСПІШНИЙ ---")

    def test_33_tidy(self):
        print("\n--- ЗАПУСК ТЕСТУ №33: Tidy ---")
        self.view.arena.get_node('1').pin()
        self.view.arena.get_node('2').pin()
        self.view.selection.click_node('1')
        self.view.tidy()
        self.assertFalse(self.view.arena.get_node('1').is_pinned)
        self.assertTrue(self.view.arena.get_node('2').is_pinned)
        batches = self.recorder.of('nodes_moved')
        self.assertEqual([p.id for p in batches[0][1]], ['1'])

        self.view.selection.click_canvas()
        self.view.tidy()
        self.assertEqual(len(self.recorder.of('layout_reset')), 1)
        self.assertFalse(any(n.is_pinned for n in self.view.arena.nodes))
        self.assertEqual(self.view.layout.simulation.alpha, REHEAT_FULL)
        print("--- ТЕСТ №33 УСПІШНИЙ ---")

    def test_34_pin_node_and_highlight(self):
        print("\n--- ЗАПУСК ТЕСТУ №34: Pin and highlight ---")
        self.assertTrue(self.view.pin_node('3', 10.0, 20.0))
        self.assertFalse(self.view.pin_node('missing', 0, 0))
        moved = self.recorder.of('node_moved')
        self.assertEqual((moved[0][1].id, moved[0][1].fx, moved[0][1].fy), ('3', 10.0, 20.0))

        self.view.selection.click_node('3')
        lit = self.view.highlight()
        self.assertTrue({'1', '2', '3', '4', '8'} <= lit.node_ids)
        self.assertTrue(lit.dim)
        self.view.selection.click_node('4', shift=True)
        self.assertFalse(self.view.highlight().dim)
        self.assertTrue(self.view.request_focus('3', 1.0, now=0.0))
        print("--- ТЕСТ №34 УСПІШНИЙ ---")

    def test_37_view_settings(self):
        print("\n--- ЗАПУСК ТЕСТУ №37: View settings ---")
        self.view.set_view_mode(VIEW_TREE)
        self.assertIn('y', self.view.layout.simulation.forces)
        self.view.set_size(400, 300)
        self.assertEqual((self.view.layout.width, self.view.layout.height), (400, 300))

        self.view.set_label_measure(lambda text: (len(text) * 5, 10))
        self.assertTrue(self.view.step())
        self.assertTrue(all(g.label_width is not None for g in self.view.geometries))

        self.view.set_custom_definitions([RelationDefinition('d1', 'GODPARENT', is_kinship=True)])
        self.assertEqual(len(self.view.kinship_filter.custom_definitions), 1)

        self.view.select_edge('r1')
        self.assertEqual(self.recorder.of('edge_click'), [('edge_click', 'r1')])
        lit = self.view.highlight()
        self.assertEqual(lit.edge_ids, {'r1'})
        self.assertEqual(lit.node_ids, {'1', '2'})
        self.assertTrue(lit.dim)
        print("--- ТЕСТ №37 УСПІШНИЙ ---")

    def test_38_svg_has_clickable_ids(self):
        print("\n--- ЗАПУСК ТЕСТУ №38: SVG renderer ---")
        self.view.settle(5)
        svg = SVGRenderer(self.view.arena, self.view.geometries, self.view.highlight(),
                          transform=Transform(10, 20, 2), width=800, height=600).generate_svg()
        self.assertIn("id='node:1'", svg)
        self.assertIn("id='edge:r1'", svg)
        self.assertIn("<svg", svg)
        self.assertIn('viewBox="0 0 800 600"', svg)
        self.assertIn('translate(10,20) scale(2)', svg)
        print("--- ТЕСТ №38 УСПІШНИЙ ---")

    def test_43_svg_follows_camera_focus(self):
        print("\n--- ЗАПУСК ТЕСТУ №43: SVG follows camera ---")
        self.view.settle(5)
        self.assertTrue(self.view.request_focus('3', 1.0, now=0.0))
        t = self.view.camera.advance(1.0)
        svg = SVGRenderer(self.view.arena, self.view.geometries, transform=self.view.transform,
                          width=self.view.width, height=self.view.height).generate_svg()
        self.assertIn(f'translate({t.x},{t.y}) scale({t.k})', svg)
        node = self.view.arena.get_node('3')
        sx, sy = t.apply(node.x, node.y)
        self.assertAlmostEqual(sx, self.view.width / 2)
        self.assertAlmostEqual(sy, self.view.height / 2)
        print("--- ТЕСТ №43 УСПІШНИЙ ---")


class TestDataManager(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.log_file = os.path.join(self.temp_dir, "logs", "activity_log.csv")
        self.dm = DataManager(self.log_file)

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_35_relationships_and_definitions(self):
        print("\n--- ЗАПУСК ТЕСТУ №35: DataManager relationships ---")
        a = self.dm.add_person("Адам", "Eden")
        b = self.dm.add_person("Єва", "Eden")
        self.assertIsNone(self.dm.add_relationship(a, 'missing', REL_SPOUSE))
        self.assertIsNone(self.dm.add_relationship(a, b, 'GODPARENT'))
        self.assertTrue(self.dm.add_definition('d1', 'GODPARENT', is_kinship=True))
        self.assertFalse(self.dm.add_definition('d2', 'GODPARENT'))
        self.assertIsNotNone(self.dm.add_relationship(a, b, 'GODPARENT'))

        nodes, edges = self.dm.snapshot()
        nodes[0].x = 99.0
        self.assertIsNone(self.dm.persons[a].x)
        self.assertEqual(len(edges), 1)

        self.assertTrue(self.dm.delete_person(b))
        self.assertEqual(self.dm.relationships, [])
        print("--- ТЕСТ №35 УСПІШНИЙ ---")

    def test_36_position_notifications_and_log(self):
        print("\n--- ЗАПУСК ТЕСТУ №36: Position notifications ---")
        a = self.dm.add_person("Адам")
        self.dm.on_nodes_moved([NodePosition(a, 1.0, 2.0, 1.0, 2.0)])
        self.assertEqual((self.dm.persons[a].fx, self.dm.persons[a].fy), (1.0, 2.0))

        self.dm.genealogy_mode = True
        self.dm.on_node_moved(NodePosition(a, 5.0, 5.0, 5.0, 5.0))
        self.assertEqual(self.dm.persons[a].x, 1.0)
        self.dm.genealogy_mode = False

        self.dm.on_layout_reset()
        self.assertFalse(self.dm.persons[a].is_pinned)

        logs = LoggerService(self.log_file).get_recent_logs(5)
        self.assertEqual(logs[0][2], "RESET_LAYOUT")
        self.assertEqual(logs[1][2], "MOVE_NODES")
        print("--- ТЕСТ №36 УСПІШНИЙ ---")


if __name__ == '__main__':
    unittest.main()
