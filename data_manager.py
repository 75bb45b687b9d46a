"""
Data Manager for the relationship graph.
Holds persons, relationships and custom relation types in memory + Logging.
The view only receives copies and reports position changes back through callbacks.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from graph_model import (Person, Relationship, RelationDefinition, NodePosition, CanvasCallbacks,
                         RELATION_TYPES, REL_PARENT, REL_SPOUSE, REL_SIBLING, REL_FRIEND, REL_COLLEAGUE,
                         REL_MENTOR, REL_COUSIN, REL_EX_PARTNER)
from utils.logger_service import LoggerService, LOG_FILE


class DataManager:
    def __init__(self, log_file: str = LOG_FILE, username: str = "Engine"):
        self.username = username
        self.persons: Dict[str, Person] = {}
        self.relationships: List[Relationship] = []
        self.custom_definitions: List[RelationDefinition] = []
        self.next_person_id = 1
        self.next_relationship_id = 1
        self.logger = LoggerService(log_file, user=username)
        # У генеалогічному режимі позиції задають покоління, тож переміщення не зберігаються
        self.genealogy_mode = False
        self.selected_person_id: Optional[str] = None

    # ==================== ЛЮДИ ТА ЗВ'ЯЗКИ ====================

    def add_person(self, name: str, family_id: str = '', generation: Optional[int] = None) -> str:
        person_id = str(self.next_person_id)
        self.next_person_id += 1
        self.persons[person_id] = Person(person_id, family_id=family_id, name=name, generation=generation)
        self.logger.log("ADD_PERSON", f"User {self.username} created {name} (ID: {person_id})")
        return person_id

    def delete_person(self, person_id: str) -> bool:
        if person_id not in self.persons: return False
        name = self.persons.pop(person_id).name
        # Clean relations
        self.relationships = [r for r in self.relationships if person_id not in (r.source, r.target)]
        self.logger.log("DELETE_PERSON", f"Deleted {name} (ID: {person_id})")
        return True

    def is_known_type(self, rel_type: str) -> bool:
        # Власні типи зберігаються в ребрі під своєю назвою
        return rel_type in RELATION_TYPES or any(d.name == rel_type for d in self.custom_definitions)

    def add_relationship(self, source: str, target: str, rel_type: str, start_date: str = '',
                         end_date: str = '', display_date: str = '') -> Optional[str]:
        """PARENT: source - дитина, target - батько/мати."""
        if source not in self.persons or target not in self.persons: return None
        if not self.is_known_type(rel_type): return None

        rel_id = f"r{self.next_relationship_id}"
        self.next_relationship_id += 1
        self.relationships.append(Relationship(rel_id, source, target, rel_type, start_date=start_date,
                                               end_date=end_date, display_date=display_date))
        self.logger.log("ADD_RELATION", f"{rel_type}: {source} -> {target} (ID: {rel_id})")
        return rel_id

    def delete_relationship(self, rel_id: str) -> bool:
        before = len(self.relationships)
        self.relationships = [r for r in self.relationships if r.id != rel_id]
        if len(self.relationships) == before: return False
        self.logger.log("DELETE_RELATION", f"Removed relation {rel_id}")
        return True

    def add_definition(self, def_id: str, name: str, description: str = '', is_kinship: bool = False) -> bool:
        if name in RELATION_TYPES or any(d.id == def_id or d.name == name for d in self.custom_definitions):
            return False
        self.custom_definitions.append(RelationDefinition(def_id, name, description, is_kinship))
        self.logger.log("ADD_DEFINITION", f"{def_id} ({'kinship' if is_kinship else 'social'})")
        return True

    def get_person_data(self, person_id: str) -> dict:
        person = self.persons.get(person_id)
        if person is None: return {}
        return {'id': person.id, 'name': person.name, 'family_id': person.family_id,
                'generation': person.generation, 'x': person.x, 'y': person.y,
                'pinned': person.is_pinned}

    def get_all_people(self) -> list:
        return [(p.id, p.name) for p in self.persons.values()]

    def get_families(self) -> List[str]:
        return sorted({p.family_id for p in self.persons.values() if p.family_id})

    def snapshot(self) -> Tuple[List[Person], List[Relationship]]:
        """Копії записів для виду графа; зміни виду не торкаються даних власника."""
        return ([p.copy() for p in self.persons.values()],
                [r.copy() for r in self.relationships])

    # ==================== СПОВІЩЕННЯ ВІД ВИДУ ====================

    def _apply_position(self, position: NodePosition) -> bool:
        person = self.persons.get(position.id)
        if person is None: return False
        person.x, person.y = position.x, position.y
        person.fx, person.fy = position.fx, position.fy
        return True

    def on_node_moved(self, position: NodePosition):
        if self.genealogy_mode: return
        if self._apply_position(position):
            self.logger.log("MOVE_NODE", f"ID {position.id} -> ({position.x}, {position.y})")

    def on_nodes_moved(self, positions: Iterable[NodePosition]):
        if self.genealogy_mode: return
        applied = [p.id for p in positions if self._apply_position(p)]
        if applied:
            self.logger.log("MOVE_NODES", f"{len(applied)} nodes: {', '.join(applied)}")

    def on_layout_reset(self):
        for person in self.persons.values():
            person.release()
        self.logger.log("RESET_LAYOUT", "All pins cleared")

    def on_node_click(self, person_id: str):
        self.selected_person_id = person_id

    def on_canvas_click(self):
        self.selected_person_id = None

    def callbacks(self, **overrides) -> CanvasCallbacks:
        """Колбеки для GraphView; окремі обробники можна замінити через overrides."""
        handlers = dict(
            on_node_click=self.on_node_click,
            on_canvas_click=self.on_canvas_click,
            on_node_moved=self.on_node_moved,
            on_nodes_moved=self.on_nodes_moved,
            on_layout_reset=self.on_layout_reset,
        )
        handlers.update(overrides)
        return CanvasCallbacks(**handlers)

    def create_test_data(self):
        adam = self.add_person("Adam", "Eden", 0)
        eve = self.add_person("Eve", "Eden", 0)
        cain = self.add_person("Cain", "Eden", 1)
        abel = self.add_person("Abel", "Eden", 1)
        seth = self.add_person("Seth", "Eden", 1)
        enosh = self.add_person("Enosh", "Eden", 2)
        noah = self.add_person("Noah", "Ark", 0)
        naamah = self.add_person("Naamah", "Ark", 0)
        shem = self.add_person("Shem", "Ark", 1)
        self.add_relationship(adam, eve, REL_SPOUSE, start_date="0001")
        for child in (cain, abel, seth):
            self.add_relationship(child, adam, REL_PARENT)
            self.add_relationship(child, eve, REL_PARENT)
        self.add_relationship(cain, abel, REL_SIBLING)
        self.add_relationship(cain, abel, REL_COLLEAGUE)
        self.add_relationship(enosh, seth, REL_PARENT)
        self.add_relationship(noah, naamah, REL_SPOUSE)
        self.add_relationship(shem, noah, REL_PARENT)
        self.add_relationship(shem, naamah, REL_PARENT)
        self.add_relationship(enosh, noah, REL_COUSIN)
        self.add_relationship(seth, noah, REL_MENTOR, start_date="0105", end_date="0130")
        self.add_relationship(abel, naamah, REL_FRIEND)
        self.add_relationship(cain, naamah, REL_EX_PARTNER, display_date="long ago")
