"""
Рендерер SVG для веб-версії графа зв'язків.
Перетворює знімок арени та геометрію ребер у інтерактивний SVG рядок.
"""

from html import escape
from typing import Dict, List, Optional

from graph_model import GraphArena, REL_PARENT, REL_SPOUSE, REL_EX_SPOUSE, BLOOD_KINSHIP_TYPES
from edge_router import EdgeGeometry, format_time_label, LABEL_DEFAULT_WIDTH, LABEL_DEFAULT_HEIGHT
from graph_view import Highlight
from camera_controller import Transform

NODE_RADIUS = 22

# Стилі для SVG
STYLE = """
<style>
    .node-circle { cursor: pointer; transition: all 0.2s; }
    .node-circle:hover { stroke-width: 3; filter: drop-shadow(0px 0px 5px rgba(255, 215, 0, 0.5)); }
    .node-text { pointer-events: none; font-family: sans-serif; font-size: 12px; }
    .edge-path { fill: none; }
    .edge-label { font-family: sans-serif; font-size: 9px; pointer-events: none; }
    .time-label { font-size: 8px; fill: #666; }
    .dimmed { opacity: 0.2; }
</style>
"""

# Кольори ребер за типом
EDGE_COLORS: Dict[str, str] = {
    REL_PARENT: "#4169E1",
    REL_SPOUSE: "#FF1493",
    REL_EX_SPOUSE: "#DDA0DD",
}
KINSHIP_EDGE_COLOR = "#228B22"
DEFAULT_EDGE_COLOR = "#9696B4"


def edge_color(rel_type: str) -> str:
    if rel_type in EDGE_COLORS:
        return EDGE_COLORS[rel_type]
    if rel_type in BLOOD_KINSHIP_TYPES:
        return KINSHIP_EDGE_COLOR
    return DEFAULT_EDGE_COLOR


class SVGRenderer:
    def __init__(self, arena: GraphArena, geometries: List[EdgeGeometry],
                 highlight: Optional[Highlight] = None, selected_edge_id: Optional[str] = None,
                 transform: Optional[Transform] = None, width: float = 800, height: float = 600):
        self.arena = arena
        self.geometries = geometries
        self.highlight = highlight or Highlight()
        self.selected_edge_id = selected_edge_id
        self.edge_map = {e.id: e for e in arena.edges}
        # viewBox - екран полотна; світові координати переводить перетворення камери
        self.transform = transform or Transform()
        self.width = width
        self.height = height

    def _dim_class(self, is_lit: bool) -> str:
        return "" if (is_lit or not self.highlight.dim) else " dimmed"

    def generate_svg(self) -> str:
        elements = []
        elements.extend(self._draw_edges())
        elements.extend(self._draw_labels())
        elements.extend(self._draw_nodes())

        t = self.transform
        return f"""
        <svg viewBox="0 0 {self.width} {self.height}"
             width="{int(self.width)}px"
             height="{int(self.height)}px"
             preserveAspectRatio="xMidYMid meet"
             xmlns="http://www.w3.org/2000/svg">
            {STYLE}
            <g transform="translate({t.x},{t.y}) scale({t.k})">
                {''.join(elements)}
            </g>
        </svg>
        """

    def _draw_edges(self) -> list:
        edges_svg = []
        for geom in self.geometries:
            edge = self.edge_map.get(geom.edge_id)
            if edge is None: continue
            lit = geom.edge_id in self.highlight.edge_ids
            width = 3 if geom.edge_id == self.selected_edge_id else (2 if lit else 1.5)
            # id в тезі <a> - це те, що поверне click_detector
            edges_svg.append(f"""
            <a href='#' id='edge:{escape(geom.edge_id)}'>
                <path d="{geom.path}" stroke="{edge_color(edge.type)}" stroke-width="{width}"
                      class="edge-path{self._dim_class(lit)}" />
            </a>
            """)
        return edges_svg

    def _draw_labels(self) -> list:
        labels_svg = []
        for geom in self.geometries:
            edge = self.edge_map.get(geom.edge_id)
            if edge is None: continue
            w = geom.label_width or LABEL_DEFAULT_WIDTH
            h = geom.label_height or LABEL_DEFAULT_HEIGHT
            time_text = format_time_label(edge)
            lit = geom.edge_id in self.highlight.edge_ids

            lines = f"""<text x="0" y="{-2 if time_text else 3}" text-anchor="middle" class="edge-label">{escape(edge.type)}</text>"""
            if time_text:
                lines += f"""<text x="0" y="9" text-anchor="middle" class="edge-label time-label">{escape(time_text)}</text>"""

            labels_svg.append(f"""
            <g transform="translate({geom.label_x},{geom.label_y}) rotate({geom.angle})" class="{self._dim_class(lit).strip()}">
                <rect x="{-w / 2}" y="{-h / 2}" width="{w}" height="{h}" rx="3" fill="white" stroke="#ccc" />
                {lines}
            </g>
            """)
        return labels_svg

    def _draw_nodes(self) -> list:
        nodes_svg = []
        for node in self.arena.nodes:
            if not node.has_position: continue
            selected = node.id in self.arena.selection
            lit = node.id in self.highlight.node_ids
            fill = "#FFD700" if selected else ("#87CEEB" if lit else "#E6E6FA")
            border = "#000000" if node.is_pinned else "#778899"
            stroke_w = 3 if selected else 1

            label = node.name or node.id
            # Обрізання довгого тексту
            display_label = label[:16] + "..." if len(label) > 18 else label

            nodes_svg.append(f"""
            <a href='#' id='node:{escape(node.id)}'>
                <g class="{self._dim_class(lit or selected).strip()}">
                    <circle cx="{node.x}" cy="{node.y}" r="{NODE_RADIUS}" fill="{fill}"
                            stroke="{border}" stroke-width="{stroke_w}" class="node-circle" />
                    <text x="{node.x}" y="{node.y + NODE_RADIUS + 12}" text-anchor="middle" class="node-text">
                        {escape(display_label)}
                    </text>
                </g>
            </a>
            """)
        return nodes_svg
