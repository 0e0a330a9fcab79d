"""Export-only renderings of a mind map.

- SVG image with a top-down tree layout
- Print-optimized HTML document
- HTML slide deck (one slide for the root and one per branch)
- Markdown presentation outline (one slide per node)

None of these can be imported back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from .models import TreeNode

NODE_WIDTH = 120
NODE_HEIGHT = 40
HORIZONTAL_SPACING = 80
VERTICAL_SPACING = 60
PADDING = 20
EDGE_COLOR = "#666666"
EDGE_WIDTH = 2
FONT_SIZE = 14
FONT_FAMILY = "Arial, sans-serif"

MAX_SLIDE_BULLETS = 6
MAX_OUTLINE_BULLETS = 5


@dataclass
class _Box:
    node: TreeNode
    x: float
    y: float
    children: list[_Box] = field(default_factory=list)


def _layout(node: TreeNode, depth: int, next_column: list[int]) -> _Box:
    """Place leaves in consecutive columns and center parents over children."""
    y = depth * (NODE_HEIGHT + VERTICAL_SPACING)
    children = [] if node.collapsed else node.children
    if not children:
        x = next_column[0] * (NODE_WIDTH + HORIZONTAL_SPACING)
        next_column[0] += 1
        return _Box(node, x, y)

    boxes = [_layout(child, depth + 1, next_column) for child in children]
    x = (boxes[0].x + boxes[-1].x) / 2
    return _Box(node, x, y, boxes)


def _iter_boxes(box: _Box):
    yield box
    for child in box.children:
        yield from _iter_boxes(child)


def to_svg(tree: TreeNode) -> str:
    """Render the tree as a standalone SVG document."""
    root = _layout(tree, 0, [0])
    boxes = list(_iter_boxes(root))
    width = max(b.x for b in boxes) + NODE_WIDTH + 2 * PADDING
    height = max(b.y for b in boxes) + NODE_HEIGHT + 2 * PADDING

    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width:g} {height:g}" '
        f'width="{width:g}" height="{height:g}">',
        "<defs>",
        '  <style type="text/css"><![CDATA[',
        f"    .node-text {{ font-family: {FONT_FAMILY}; font-size: {FONT_SIZE}px; "
        "fill: #333333; text-anchor: middle; dominant-baseline: middle; }",
        "    .node-link { cursor: pointer; }",
        "  ]]></style>",
        "</defs>",
    ]

    # Edges first so boxes are drawn on top
    for box in boxes:
        for child in box.children:
            edge = child.node.edge_style
            color = edge.color if edge is not None and edge.color else EDGE_COLOR
            stroke = edge.width if edge is not None and edge.width else EDGE_WIDTH
            parts.append(
                f'<line x1="{box.x + PADDING + NODE_WIDTH / 2:g}" '
                f'y1="{box.y + PADDING + NODE_HEIGHT:g}" '
                f'x2="{child.x + PADDING + NODE_WIDTH / 2:g}" y2="{child.y + PADDING:g}" '
                f'stroke="{escape(color)}" stroke-width="{stroke}"/>'
            )

    for box in boxes:
        parts.extend(_svg_node(box))

    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def _svg_node(box: _Box) -> list[str]:
    node = box.node
    x = box.x + PADDING
    y = box.y + PADDING
    style = node.style
    fill = style.background_color if style is not None and style.background_color else "#ffffff"
    stroke = style.color if style is not None and style.color else "#333333"

    out = []
    if node.cloud is not None:
        cloud_color = node.cloud.color or "#cccccc"
        out.append(
            f'<rect x="{x - 6:g}" y="{y - 6:g}" width="{NODE_WIDTH + 12}" '
            f'height="{NODE_HEIGHT + 12}" rx="18" fill="none" '
            f'stroke="{escape(cloud_color)}" stroke-dasharray="4 3"/>'
        )

    label = node.content if not node.icon else f"[{node.icon}] {node.content}"
    shape = [
        f'<g id="{escape(node.id)}">',
        f'  <rect x="{x:g}" y="{y:g}" width="{NODE_WIDTH}" height="{NODE_HEIGHT}" rx="6" '
        f'fill="{escape(fill)}" stroke="{escape(stroke)}"/>',
        f'  <text class="node-text" x="{x + NODE_WIDTH / 2:g}" y="{y + NODE_HEIGHT / 2:g}">'
        f"{escape(label)}</text>",
        "</g>",
    ]
    if node.link:
        out.append(f'<a class="node-link" href="{escape(node.link)}">')
        out.extend(shape)
        out.append("</a>")
    else:
        out.extend(shape)
    return out


def to_print_html(tree: TreeNode) -> str:
    """Render a print-friendly HTML document of the whole tree."""
    body = []
    for node, depth in tree.walk_with_depth():
        body.append(
            f'  <div class="node" style="margin-left: {depth * 20}px">'
            f"<strong>{escape(node.content)}</strong></div>"
        )
        if node.notes:
            body.append(
                f'  <div class="note" style="margin-left: {depth * 20 + 12}px">'
                f"{escape(node.notes)}</div>"
            )

    return "\n".join([
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '<meta charset="utf-8">',
        f"<title>Mind Map: {escape(tree.content)}</title>",
        "<style>",
        "  body { font-family: Arial, sans-serif; padding: 40px; line-height: 1.6; }",
        "  h1 { color: #333; border-bottom: 2px solid #333; padding-bottom: 10px; }",
        "  .node { margin-bottom: 8px; }",
        "  .note { color: #555; font-style: italic; white-space: pre-wrap; }",
        "  @media print { body { padding: 20px; } }",
        "</style>",
        "</head>",
        "<body>",
        f"<h1>Mind Map: {escape(tree.content)}</h1>",
        *body,
        "</body>",
        "</html>",
    ]) + "\n"


def to_slides_html(tree: TreeNode) -> str:
    """Render an HTML slide deck that office suites can open."""
    slides = [_slide_html(tree)] + [_slide_html(child) for child in tree.children]
    return "\n".join([
        "<!DOCTYPE html>",
        '<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:x="urn:schemas-microsoft-com:office:powerpoint">',
        "<head>",
        '<meta charset="utf-8">',
        f"<title>{escape(tree.content)}</title>",
        "<style>",
        "  body { font-family: Arial, sans-serif; }",
        "  .slide { page-break-after: always; padding: 40px; min-height: 100vh; }",
        "  .slide h1 { font-size: 44pt; color: #333; }",
        "  .slide ul { font-size: 28pt; margin-left: 60px; }",
        "</style>",
        "</head>",
        "<body>",
        *slides,
        "</body>",
        "</html>",
    ]) + "\n"


def _slide_html(node: TreeNode) -> str:
    bullets = "".join(
        f"<li>{escape(child.content)}</li>" for child in node.children[:MAX_SLIDE_BULLETS]
    )
    return f'<div class="slide"><h1>{escape(node.content)}</h1><ul>{bullets}</ul></div>'


def to_presentation(tree: TreeNode) -> str:
    """Render a markdown slide outline, one `---` separated slide per node."""
    slides = []
    for node in tree.walk():
        lines = ["---", f"# {node.content}", ""]
        lines.extend(f"- {child.content}" for child in node.children[:MAX_OUTLINE_BULLETS])
        slides.append("\n".join(lines).rstrip())
    return "\n\n".join(slides) + "\n"
