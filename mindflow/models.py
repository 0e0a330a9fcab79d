"""Data models for mind map documents and their graph projection."""

from __future__ import annotations

import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, NamedTuple, Optional

from .errors import DuplicateNodeError, ParseError


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_id() -> str:
    """Generate a unique node id."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"node_{now_ms()}_{suffix}"


def _drop_none(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


def _expect(value: Any, types: tuple, what: str) -> Any:
    if not isinstance(value, types) or isinstance(value, bool) and bool not in types:
        raise ParseError(f"{what} has unexpected type {type(value).__name__}")
    return value


@dataclass
class Position:
    """2D coordinate of a node on the canvas."""
    x: float = 0
    y: float = 0

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Any) -> Position:
        _expect(data, (dict,), "position")
        return cls(
            x=_expect(data.get("x", 0), (int, float), "position.x"),
            y=_expect(data.get("y", 0), (int, float), "position.y"),
        )


@dataclass
class Cloud:
    """Grouping annotation drawn around a node and its subtree."""
    color: str = ""

    def to_dict(self) -> dict:
        return {"color": self.color} if self.color else {}

    @classmethod
    def from_dict(cls, data: Any) -> Cloud:
        if data is True:
            return cls()
        _expect(data, (dict,), "cloud")
        return cls(color=str(data.get("color") or ""))


@dataclass
class NodeStyle:
    """Text and fill styling of a node."""
    color: Optional[str] = None
    background_color: Optional[str] = None
    font_size: Optional[int] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    font_name: Optional[str] = None

    def is_empty(self) -> bool:
        return all(v is None for v in self.to_dict().values())

    def to_dict(self) -> dict:
        return _drop_none({
            "color": self.color,
            "backgroundColor": self.background_color,
            "fontSize": self.font_size,
            "bold": self.bold,
            "italic": self.italic,
            "fontName": self.font_name,
        })

    @classmethod
    def from_dict(cls, data: Any) -> NodeStyle:
        _expect(data, (dict,), "style")
        return cls(
            color=data.get("color"),
            background_color=data.get("backgroundColor"),
            font_size=data.get("fontSize"),
            bold=data.get("bold"),
            italic=data.get("italic"),
            font_name=data.get("fontName"),
        )


@dataclass
class EdgeStyle:
    """Stroke styling of the edge leading into a node."""
    color: Optional[str] = None
    width: Optional[int] = None
    style: Optional[str] = None  # bezier, linear, sharp_linear, sharp_bezier

    def is_empty(self) -> bool:
        return self.color is None and self.width is None and self.style is None

    def to_dict(self) -> dict:
        return _drop_none({"color": self.color, "width": self.width, "style": self.style})

    @classmethod
    def from_dict(cls, data: Any) -> EdgeStyle:
        _expect(data, (dict,), "edgeStyle")
        return cls(color=data.get("color"), width=data.get("width"), style=data.get("style"))


_METADATA_KEYS = ("notes", "tags", "url", "description", "crossLinks")


@dataclass
class NodeMetadata:
    """Structured metadata attached to a node.

    Well-known fields have their own attributes; anything else lives in
    `custom` and is written back flattened next to them.
    """
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    url: str = ""
    description: str = ""
    cross_links: list[str] = field(default_factory=list)
    custom: dict[str, Any] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.notes or self.tags or self.url or self.description
                    or self.cross_links or self.custom)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {}
        if self.notes:
            data["notes"] = self.notes
        if self.tags:
            data["tags"] = list(self.tags)
        if self.url:
            data["url"] = self.url
        if self.description:
            data["description"] = self.description
        if self.cross_links:
            data["crossLinks"] = list(self.cross_links)
        # Reserved keys belong to the typed fields above
        for key, value in self.custom.items():
            if key not in _METADATA_KEYS:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> NodeMetadata:
        _expect(data, (dict,), "metadata")
        tags = _expect(data.get("tags", []), (list,), "metadata.tags")
        links = _expect(data.get("crossLinks", []), (list,), "metadata.crossLinks")
        return cls(
            notes=str(data.get("notes") or ""),
            tags=[str(t) for t in tags],
            url=str(data.get("url") or ""),
            description=str(data.get("description") or ""),
            cross_links=[str(t) for t in links],
            custom={k: v for k, v in data.items() if k not in _METADATA_KEYS},
        )


@dataclass
class TreeNode:
    """A single node of the canonical mind map tree.

    Nodes form a tree via the `children` list. Ids are unique within a tree.
    """
    # Core
    id: str = field(default_factory=generate_id)
    content: str = ""
    children: list[TreeNode] = field(default_factory=list)

    # Optional annotations
    metadata: Optional[NodeMetadata] = None
    icon: Optional[str] = None
    cloud: Optional[Cloud] = None

    # Presentation (kept for round-trip fidelity)
    collapsed: bool = False
    position: Optional[Position] = None
    style: Optional[NodeStyle] = None
    link: Optional[str] = None
    created: Optional[int] = None
    modified: Optional[int] = None
    edge_style: Optional[EdgeStyle] = None

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0

    @property
    def notes(self) -> str:
        return self.metadata.notes if self.metadata else ""

    def walk(self) -> Iterator[TreeNode]:
        """Yield this node and all descendants depth-first."""
        for node, _ in self.walk_with_depth():
            yield node

    def walk_with_depth(self, depth: int = 0) -> Iterator[tuple[TreeNode, int]]:
        """Yield (node, depth) pairs depth-first, pre-order."""
        stack = [(self, depth)]
        while stack:
            node, d = stack.pop()
            yield node, d
            stack.extend((child, d + 1) for child in reversed(node.children))

    def find(self, text: str) -> Optional[TreeNode]:
        """Find first node with matching content (case-insensitive)."""
        text_lower = text.lower()
        return next((n for n in self.walk() if n.content.lower() == text_lower), None)

    def find_all(self, text: str) -> list[TreeNode]:
        """Find all nodes with matching content (case-insensitive)."""
        text_lower = text.lower()
        return [n for n in self.walk() if n.content.lower() == text_lower]

    def find_by_id(self, node_id: str) -> Optional[TreeNode]:
        return next((n for n in self.walk() if n.id == node_id), None)

    def path(self, node_id: str) -> list[str]:
        """List of node contents from this node down to `node_id`."""
        trail: list[TreeNode] = []
        for node, depth in self.walk_with_depth():
            del trail[depth:]
            trail.append(node)
            if node.id == node_id:
                return [n.content for n in trail]
        return []

    def add_child(self, content: str, **kwargs) -> TreeNode:
        """Create and append a new child node."""
        child = TreeNode(content=content, **kwargs)
        self.children.append(child)
        return child

    def count(self) -> int:
        """Total number of nodes in this subtree (including self)."""
        return sum(1 for _ in self.walk())

    def ids(self) -> list[str]:
        return [n.id for n in self.walk()]

    def to_dict(self) -> dict:
        """Native record for this subtree."""
        record: dict[str, Any] = {}
        stack: list[tuple[TreeNode, Optional[list]]] = [(self, None)]
        while stack:
            node, siblings = stack.pop()
            data = node._own_dict()
            if siblings is None:
                record = data
            else:
                siblings.append(data)
            stack.extend((child, data["children"]) for child in reversed(node.children))
        return record

    def _own_dict(self) -> dict:
        data: dict[str, Any] = {"id": self.id, "content": self.content, "children": []}
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        if self.icon:
            data["icon"] = self.icon
        if self.cloud is not None:
            data["cloud"] = self.cloud.to_dict()
        if self.collapsed:
            data["collapsed"] = True
        if self.position is not None:
            data["position"] = self.position.to_dict()
        if self.style is not None:
            data["style"] = self.style.to_dict()
        if self.link:
            data["link"] = self.link
        if self.created is not None:
            data["created"] = self.created
        if self.modified is not None:
            data["modified"] = self.modified
        if self.edge_style is not None:
            data["edgeStyle"] = self.edge_style.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> TreeNode:
        """Build a tree from a native record.

        Raises:
            ParseError: If the record has the wrong shape or repeats an id.
        """
        tree = _tree_from_dict(data, "root")
        seen: set[str] = set()
        for node in tree.walk():
            if node.id in seen:
                raise ParseError(f"duplicate node id {node.id!r}")
            seen.add(node.id)
        return tree

    def __str__(self) -> str:
        return self.content

    def __repr__(self) -> str:
        child_count = len(self.children)
        suffix = f" ({child_count} children)" if child_count else ""
        return f"TreeNode({self.content!r}{suffix})"


def _tree_from_dict(data: Any, where: str) -> TreeNode:
    root: Optional[TreeNode] = None
    # Ids of every record already read; a repeat means a shared or recursive record
    seen: set[int] = set()
    stack: list[tuple[Any, str, Optional[TreeNode]]] = [(data, where, None)]
    while stack:
        record, path, parent = stack.pop()
        if id(record) in seen:
            raise ParseError(f"{path} repeats an earlier node record")
        seen.add(id(record))
        node, children = _node_from_dict(record, path)
        if parent is None:
            root = node
        else:
            parent.children.append(node)
        stack.extend(
            (child, f"{path}.children[{i}]", node)
            for i, child in reversed(list(enumerate(children)))
        )
    return root


def _node_from_dict(data: Any, where: str) -> tuple[TreeNode, list]:
    """Build one node without its children; return it with the raw child records."""
    _expect(data, (dict,), where)
    content = data.get("content", data.get("label"))
    if content is None:
        raise ParseError(f"{where} has no content")
    _expect(content, (str, int, float), f"{where}.content")

    node_id = data.get("id")
    if node_id is None or node_id == "":
        node_id = generate_id()
    _expect(node_id, (str, int), f"{where}.id")

    children = data.get("children") or []
    _expect(children, (list,), f"{where}.children")

    node = TreeNode(id=str(node_id), content=str(content))
    if data.get("metadata") is not None:
        node.metadata = NodeMetadata.from_dict(data["metadata"])
    if data.get("icon"):
        node.icon = str(data["icon"])
    if data.get("cloud") is not None:
        node.cloud = Cloud.from_dict(data["cloud"])
    node.collapsed = bool(data.get("collapsed", False))
    if data.get("position") is not None:
        node.position = Position.from_dict(data["position"])
    if data.get("style") is not None:
        node.style = NodeStyle.from_dict(data["style"])
    if data.get("link"):
        node.link = str(data["link"])
    if data.get("created") is not None:
        node.created = _expect(data["created"], (int,), f"{where}.created")
    if data.get("modified") is not None:
        node.modified = _expect(data["modified"], (int,), f"{where}.modified")
    if data.get("edgeStyle") is not None:
        node.edge_style = EdgeStyle.from_dict(data["edgeStyle"])
    return node, children


class EdgeKind(Enum):
    """Kind of a graph edge."""
    HIERARCHICAL = "hierarchical"
    CROSS_LINK = "crosslink"


@dataclass
class GraphNode:
    """A node of the graph projection consumed by the visualization."""
    id: str
    label: str = ""
    position: Position = field(default_factory=Position)

    # Style attributes
    icon: Optional[str] = None
    cloud: Optional[Cloud] = None
    background_color: Optional[str] = None
    color: Optional[str] = None
    font_size: Optional[int] = None
    bold: Optional[bool] = None
    italic: Optional[bool] = None
    font_name: Optional[str] = None
    link: Optional[str] = None
    collapsed: bool = False
    hidden: bool = False
    last_modified: Optional[int] = None
    created: Optional[int] = None

    metadata: Optional[NodeMetadata] = None

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "label": self.label,
            "position": self.position.to_dict(),
            "icon": self.icon,
            "cloud": self.cloud.to_dict() if self.cloud is not None else None,
            "backgroundColor": self.background_color,
            "color": self.color,
            "fontSize": self.font_size,
            "bold": self.bold,
            "italic": self.italic,
            "fontName": self.font_name,
            "link": self.link,
            "collapsed": self.collapsed or None,
            "hidden": self.hidden or None,
            "lastModified": self.last_modified,
            "created": self.created,
            "metadata": self.metadata.to_dict() if self.metadata is not None else None,
        })

    @classmethod
    def from_dict(cls, data: dict) -> GraphNode:
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            position=Position.from_dict(data.get("position", {})),
            icon=data.get("icon"),
            cloud=Cloud.from_dict(data["cloud"]) if data.get("cloud") is not None else None,
            background_color=data.get("backgroundColor"),
            color=data.get("color"),
            font_size=data.get("fontSize"),
            bold=data.get("bold"),
            italic=data.get("italic"),
            font_name=data.get("fontName"),
            link=data.get("link"),
            collapsed=bool(data.get("collapsed", False)),
            hidden=bool(data.get("hidden", False)),
            last_modified=data.get("lastModified"),
            created=data.get("created"),
            metadata=(NodeMetadata.from_dict(data["metadata"])
                      if data.get("metadata") is not None else None),
        )


@dataclass
class GraphEdge:
    """An edge of the graph projection."""
    id: str
    source: str
    target: str
    kind: EdgeKind = EdgeKind.HIERARCHICAL
    style: Optional[EdgeStyle] = None

    @property
    def is_hierarchical(self) -> bool:
        return self.kind is EdgeKind.HIERARCHICAL

    def to_dict(self) -> dict:
        return _drop_none({
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "kind": self.kind.value,
            "style": self.style.to_dict() if self.style is not None else None,
        })

    @classmethod
    def from_dict(cls, data: dict) -> GraphEdge:
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            kind=EdgeKind(data.get("kind", EdgeKind.HIERARCHICAL.value)),
            style=EdgeStyle.from_dict(data["style"]) if data.get("style") is not None else None,
        )


class Flow(NamedTuple):
    """Graph projection of a tree: nodes plus edges."""
    nodes: list[GraphNode]
    edges: list[GraphEdge]


def check_unique_ids(nodes: list[GraphNode]) -> None:
    """Raise DuplicateNodeError if two graph nodes share an id."""
    seen: set[str] = set()
    for node in nodes:
        if node.id in seen:
            raise DuplicateNodeError(f"Duplicate node id: {node.id!r}")
        seen.add(node.id)


@dataclass
class HistorySnapshot:
    """One committed state of the undo/redo log."""
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    label: str = "Action"
    timestamp: int = field(default_factory=now_ms)
    is_current: bool = False


@dataclass
class SaveSlot:
    """A labeled recovery snapshot kept by the autosave engine."""
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    tree: Optional[TreeNode]
    timestamp: int
    label: str = ""

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "tree": self.tree.to_dict() if self.tree is not None else None,
            "timestamp": self.timestamp,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SaveSlot:
        return cls(
            nodes=[GraphNode.from_dict(n) for n in data["nodes"]],
            edges=[GraphEdge.from_dict(e) for e in data["edges"]],
            tree=TreeNode.from_dict(data["tree"]) if data.get("tree") is not None else None,
            timestamp=int(data["timestamp"]),
            label=data.get("label", ""),
        )
