"""Convert between the mind map tree and its node/edge graph projection.

The tree is the canonical document. The graph is what the canvas edits:
one node per tree node, one hierarchical edge per parent/child pair, plus
cross-link edges materialized from `metadata.cross_links`.
"""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from dataclasses import replace
from typing import Optional

from .config import LAYOUT_X_SPACING, LAYOUT_Y_SPACING
from .models import (
    EdgeKind,
    Flow,
    GraphEdge,
    GraphNode,
    NodeMetadata,
    NodeStyle,
    Position,
    TreeNode,
    generate_id,
)

logger = logging.getLogger(__name__)

__all__ = ["tree_to_flow", "flow_to_tree", "generate_id"]


def tree_to_flow(tree: TreeNode) -> Flow:
    """Project a tree onto graph nodes and edges.

    Nodes are emitted depth-first in pre-order. Nodes without a stored
    position get a column per depth and a row per emitted node.
    """
    nodes: list[GraphNode] = []
    edges: list[GraphEdge] = []
    cross_links: list[tuple[str, str]] = []

    # (node, parent id, depth, inside a collapsed subtree)
    stack: list[tuple[TreeNode, Optional[str], int, bool]] = [(tree, None, 0, False)]
    while stack:
        node, parent_id, depth, hidden = stack.pop()
        nodes.append(_graph_node(node, depth, len(nodes), hidden))

        if parent_id is not None:
            edges.append(GraphEdge(
                id=f"{parent_id}-{node.id}",
                source=parent_id,
                target=node.id,
                kind=EdgeKind.HIERARCHICAL,
                style=copy.deepcopy(node.edge_style),
            ))

        if node.metadata is not None:
            cross_links.extend((node.id, target) for target in node.metadata.cross_links)

        child_hidden = hidden or node.collapsed
        for child in reversed(node.children):
            stack.append((child, node.id, depth + 1, child_hidden))

    known = {n.id for n in nodes}
    for source, target in cross_links:
        if target not in known:
            logger.warning("Dropping cross-link %s -> %s: unknown target", source, target)
            continue
        edges.append(GraphEdge(
            id=f"xlink-{source}-{target}",
            source=source,
            target=target,
            kind=EdgeKind.CROSS_LINK,
        ))

    return Flow(nodes, edges)


def _graph_node(node: TreeNode, depth: int, index: int, hidden: bool) -> GraphNode:
    if node.position is not None:
        position = replace(node.position)
    else:
        position = Position(x=depth * LAYOUT_X_SPACING, y=index * LAYOUT_Y_SPACING)

    metadata = None
    if node.metadata is not None:
        metadata = copy.deepcopy(node.metadata)
        metadata.cross_links = []

    style = node.style or NodeStyle()
    return GraphNode(
        id=node.id,
        label=node.content,
        position=position,
        icon=node.icon,
        cloud=copy.deepcopy(node.cloud),
        background_color=style.background_color,
        color=style.color,
        font_size=style.font_size,
        bold=style.bold,
        italic=style.italic,
        font_name=style.font_name,
        link=node.link,
        collapsed=node.collapsed,
        hidden=hidden,
        last_modified=node.modified,
        created=node.created,
        metadata=metadata,
    )


def flow_to_tree(nodes: list[GraphNode], edges: list[GraphEdge]) -> Optional[TreeNode]:
    """Rebuild the tree from graph nodes and edges.

    Only hierarchical edges define structure. Cross-link edges are folded
    back into the source node's `metadata.cross_links`.

    Returns:
        The root TreeNode, or None if the graph is empty or is not a single
        tree (no unique root, unknown endpoints, shared children, cycles, or
        unreachable nodes).
    """
    if not nodes:
        return None

    node_map: dict[str, GraphNode] = {}
    for node in nodes:
        if node.id in node_map:
            logger.debug("flow_to_tree: duplicate node id %r", node.id)
            return None
        node_map[node.id] = node

    children_map: dict[str, list[GraphEdge]] = defaultdict(list)
    incoming: dict[str, GraphEdge] = {}
    links: dict[str, list[str]] = defaultdict(list)

    for edge in edges:
        if edge.source not in node_map or edge.target not in node_map:
            if edge.is_hierarchical:
                logger.debug("flow_to_tree: edge %r has an unknown endpoint", edge.id)
                return None
            logger.warning("Dropping cross-link %r: unknown endpoint", edge.id)
            continue
        if not edge.is_hierarchical:
            links[edge.source].append(edge.target)
            continue
        if edge.target in incoming:
            logger.debug("flow_to_tree: node %r has more than one parent", edge.target)
            return None
        incoming[edge.target] = edge
        children_map[edge.source].append(edge)

    roots = [n for n in nodes if n.id not in incoming]
    if len(roots) != 1:
        logger.debug("flow_to_tree: expected one root, found %d", len(roots))
        return None

    root_id = roots[0].id
    built: dict[str, TreeNode] = {}
    stack = [root_id]
    while stack:
        node_id = stack.pop()
        if node_id in built:
            logger.debug("flow_to_tree: cycle through %r", node_id)
            return None
        tree_node = _tree_node(node_map[node_id], incoming.get(node_id), links.get(node_id, []))
        built[node_id] = tree_node
        parent_edge = incoming.get(node_id)
        if parent_edge is not None:
            built[parent_edge.source].children.append(tree_node)
        for edge in reversed(children_map.get(node_id, [])):
            stack.append(edge.target)

    if len(built) != len(node_map):
        logger.debug("flow_to_tree: %d node(s) unreachable from root", len(node_map) - len(built))
        return None
    return built[root_id]


def _tree_node(node: GraphNode, parent_edge: Optional[GraphEdge], links: list[str]) -> TreeNode:
    metadata: Optional[NodeMetadata] = copy.deepcopy(node.metadata)
    if links:
        if metadata is None:
            metadata = NodeMetadata()
        metadata.cross_links = list(links)

    style = NodeStyle(
        color=node.color,
        background_color=node.background_color,
        font_size=node.font_size,
        bold=node.bold,
        italic=node.italic,
        font_name=node.font_name,
    )
    edge_style = None
    if parent_edge is not None and parent_edge.style is not None:
        edge_style = copy.deepcopy(parent_edge.style)

    return TreeNode(
        id=node.id,
        content=node.label,
        metadata=metadata,
        icon=node.icon,
        cloud=copy.deepcopy(node.cloud),
        collapsed=node.collapsed,
        position=replace(node.position),
        style=None if style.is_empty() else style,
        link=node.link,
        created=node.created,
        modified=node.last_modified,
        edge_style=edge_style,
    )
