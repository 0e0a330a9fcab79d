"""Export a mind map as a D2 diagram script.

D2 is export-only: every node becomes a shape declaration, every
parent/child pair a connection, and cross-links dashed connections.
"""

from __future__ import annotations

import re

from .models import TreeNode

FORMAT = "d2"

_UNSAFE_ID = re.compile(r"[^A-Za-z0-9_]")


def _d2_ids(tree: TreeNode) -> dict[str, str]:
    """Map node ids to D2 identifiers, suffixing any that collide after sanitizing."""
    mapping: dict[str, str] = {}
    used: set[str] = set()
    for node in tree.walk():
        base = _UNSAFE_ID.sub("_", node.id)
        name, n = base, 1
        while name in used:
            n += 1
            name = f"{base}_{n}"
        used.add(name)
        mapping[node.id] = name
    return mapping


def _d2_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")
    return f'"{escaped}"'


def serialize(tree: TreeNode) -> str:
    """Render the tree and its cross-links as D2 statements."""
    lines = ["direction: right", ""]
    connections: list[str] = []
    links: list[str] = []
    ids = _d2_ids(tree)

    for node in tree.walk():
        node_id = ids[node.id]
        styles = []
        if node.style is not None and node.style.color:
            styles.append(f"style.stroke: {_d2_string(node.style.color)}")
        if node.style is not None and node.style.background_color:
            styles.append(f"style.fill: {_d2_string(node.style.background_color)}")
        if node.icon:
            styles.append(f"icon: {node.icon}")
        if node.link:
            styles.append(f"link: {node.link}")
        if node.metadata is not None and node.metadata.description:
            styles.append(f"tooltip: {_d2_string(node.metadata.description)}")

        if styles:
            lines.append(f"{node_id}: {_d2_string(node.content)} {{")
            lines.extend(f"  {s}" for s in styles)
            lines.append("}")
        else:
            lines.append(f"{node_id}: {_d2_string(node.content)}")

        for child in node.children:
            connections.append(f"{node_id} -> {ids[child.id]}")

        if node.metadata is not None:
            for target in node.metadata.cross_links:
                if target in ids:
                    links.append(f"{node_id} -> {ids[target]}: {{style.stroke-dash: 3}}")

    if connections:
        lines.append("")
        lines.extend(connections)
    if links:
        lines.append("")
        lines.extend(links)
    return "\n".join(lines) + "\n"
