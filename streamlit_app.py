"""
Relationship Graph Viewer - Web Application
Візуалізація: GraphView (силова симуляція) + SVG Renderer.
Функціонал: режими NETWORK/TREE, фільтр спорідненості, генеалогічний режим, виділення, закріплення.
Мова: Українська.
"""

import time

import streamlit as st
from st_click_detector import click_detector

# Імпорт локальних модулів
from data_manager import DataManager
from graph_model import VIEW_NETWORK, VIEW_TREE, FILTER_STRICT, FILTER_KINSHIP
from graph_view import GraphView
from kinship_filter import FilterState
from camera_controller import SCALE_EXTENT
from selection_controller import SELECTION_MULTI
from svg_renderer import SVGRenderer

# --- КОНФІГУРАЦІЯ СТОРІНКИ ---
st.set_page_config(
    page_title="Граф Зв'язків",
    page_icon="🕸️",
    layout="wide",
    initial_sidebar_state="expanded"
)

SETTLE_TICKS = 300
CANVAS_WIDTH = 1000
CANVAS_HEIGHT = 700


# --- 1. ДАНІ ТА ВИД ---
@st.cache_resource
def get_data_manager():
    """Створює DataManager один раз із тестовими даними."""
    dm = DataManager()
    dm.create_test_data()
    return dm


def get_graph_view(dm: DataManager) -> GraphView:
    if 'graph_view' not in st.session_state:
        view = GraphView(CANVAS_WIDTH, CANVAS_HEIGHT, callbacks=dm.callbacks(),
                         custom_definitions=dm.custom_definitions, seed=42, logger=dm.logger)
        view.set_data(*dm.snapshot())
        st.session_state.graph_view = view
    return st.session_state.graph_view


# --- 2. ВІЗУАЛІЗАЦІЯ (SVG) ---
def render_graph(view: GraphView, dm: DataManager):
    if not view.arena.nodes:
        st.info("Граф порожній. Змініть фільтр або додайте людей.")
        return None

    view.settle(SETTLE_TICKS)
    dm.genealogy_mode = view.genealogy_mode

    renderer = SVGRenderer(view.arena, view.geometries, view.highlight(dm.selected_person_id),
                           view.selected_edge_id, view.transform, CANVAS_WIDTH, CANVAS_HEIGHT)
    svg_content = renderer.generate_svg()

    clicked_raw = click_detector(svg_content, key=f"graph_{st.session_state.get('click_epoch', 0)}")
    if not clicked_raw:
        return None

    # Кожен клік обробляється один раз: новий ключ скидає значення детектора
    st.session_state.click_epoch = st.session_state.get('click_epoch', 0) + 1
    kind, _, entity_id = clicked_raw.partition(':')
    shift = st.session_state.get('shift_mode', False)
    if kind == 'node':
        view.select_edge(None)
        view.selection.click_node(entity_id, shift=shift)
    elif kind == 'edge':
        view.select_edge(entity_id)
    return clicked_raw


# --- 3. UI КОМПОНЕНТИ ---
def render_sidebar(view: GraphView, dm: DataManager):
    st.sidebar.title("🕸️ Граф Зв'язків")

    mode = st.sidebar.radio("Режим виду", [VIEW_NETWORK, VIEW_TREE],
                            index=0 if view.view_mode == VIEW_NETWORK else 1, horizontal=True)
    if mode != view.view_mode:
        view.set_view_mode(mode)

    zoom = st.sidebar.slider("🔍 Масштаб", SCALE_EXTENT[0], SCALE_EXTENT[1], float(view.transform.k), 0.1)
    if zoom != view.transform.k:
        view.camera.zoom(zoom / view.transform.k, anchor=(CANVAS_WIDTH / 2, CANVAS_HEIGHT / 2))

    st.session_state.shift_mode = st.sidebar.toggle("⇧ Множинне виділення (shift)", value=False)

    # ФІЛЬТР СПОРІДНЕНОСТІ
    st.sidebar.markdown("---")
    with st.sidebar.expander("👪 Фільтр родин", expanded=view.filter_state.enabled):
        enabled = st.checkbox("Увімкнути фільтр", value=view.filter_state.enabled)
        families = st.multiselect("Родини", dm.get_families(), default=view.filter_state.families)
        filter_mode = st.radio("Спорідненість", [FILTER_STRICT, FILTER_KINSHIP],
                               index=0 if view.filter_state.mode == FILTER_STRICT else 1)
        new_state = FilterState(enabled, list(families), filter_mode)
        if new_state != view.filter_state:
            view.set_filter(new_state)

    # ГЕНЕАЛОГІЯ
    st.sidebar.markdown("---")
    if view.genealogy_mode:
        st.sidebar.info(f"🌳 Генеалогія: {', '.join(view.filter_state.families)}")
        if st.sidebar.button("↩️ Вийти з генеалогії"):
            view.exit_genealogy_mode()
            st.rerun()
    else:
        family_options = dm.get_families()
        if family_options:
            family = st.sidebar.selectbox("Родина для генеалогії", family_options)
            if st.sidebar.button("🌳 Генеалогічне дерево"):
                view.enter_genealogy_mode(family)
                st.rerun()

    # КОМАНДИ
    st.sidebar.markdown("---")
    col1, col2, col3 = st.sidebar.columns(3)
    if col1.button("🧹 Впорядкувати"):
        view.tidy()
    if col2.button("☑️ Усі"):
        view.selection.select_all()
    if col3.button("⎋ Esc"):
        view.selection.escape()
        view.select_edge(None)
        st.rerun()

    people = dm.get_all_people()
    if people:
        options_map = {f"{name} (ID: {pid})": pid for pid, name in people}
        choice = st.sidebar.selectbox("🎯 Навести на людину", ["-- Оберіть --"] + sorted(options_map))
        if choice != "-- Оберіть --" and st.sidebar.button("Центрувати"):
            pid = options_map[choice]
            view.selection.sync_selected_person(pid)
            dm.selected_person_id = pid
            view.request_focus(pid, time.time())
            view.camera.advance(time.monotonic() + 1)

    # ЛОГИ АКТИВНОСТІ
    with st.sidebar.expander("📜 Історія змін", expanded=False):
        logs = dm.logger.get_recent_logs(10)
        if not logs:
            st.write("Історія порожня.")
        else:
            for row in logs:
                if len(row) < 4: continue
                timestamp, user, action, details = row[:4]
                st.markdown(f"**{action}** ({user})")
                st.caption(f"{details} | {timestamp}")


def render_details(view: GraphView, dm: DataManager):
    selection = view.selection.selection
    if view.selected_edge_id:
        edge = next((e for e in view.arena.edges if e.id == view.selected_edge_id), None)
        if edge is not None:
            st.markdown(f"### 🔗 {edge.type}")
            st.write(f"{edge.source} → {edge.target}")
        return

    if not selection:
        st.caption("Клікніть на людину, щоб побачити деталі.")
        return

    if view.selection.kind == SELECTION_MULTI:
        st.markdown(f"### ☑️ Виділено: {len(selection)}")
        st.write(", ".join(sorted(selection)))
        return

    pid = next(iter(selection))
    data = dm.get_person_data(pid)
    if not data: return
    st.markdown(f"### 👤 {data['name']}")
    st.caption(f"ID: {pid} | Родина: {data['family_id'] or '-'}")

    node = view.arena.get_node(pid)
    if node is not None and node.has_position:
        with st.form("pin_form"):
            x = st.number_input("X", value=float(node.x))
            y = st.number_input("Y", value=float(node.y))
            if st.form_submit_button("📌 Закріпити"):
                view.pin_node(pid, x, y)
                st.rerun()


def main():
    dm = get_data_manager()
    view = get_graph_view(dm)

    render_sidebar(view, dm)

    col_graph, col_info = st.columns([3, 1])
    with col_graph:
        st.subheader("📊 Граф")
        if render_graph(view, dm):
            st.rerun()
    with col_info:
        render_details(view, dm)


if __name__ == "__main__":
    main()
