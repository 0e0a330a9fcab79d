"""mindflow: Edit, convert and safeguard mind maps.

A Python library for mind map documents: a canonical tree, its node/edge
graph projection, codecs for several interchange formats, an undo/redo log
and a debounced autosave with conflict detection.

Usage:
    import mindflow

    # Read a mind map (format guessed from the extension)
    tree = mindflow.read("plan.mm")
    print(tree)  # TreeNode('Plan' (3 children))

    # Navigate the tree
    for node, depth in tree.walk_with_depth():
        print("  " * depth + node.content)

    # Project onto the canvas graph and back
    nodes, edges = mindflow.tree_to_flow(tree)
    same = mindflow.flow_to_tree(nodes, edges)

    # Convert
    mindflow.write(tree, "plan.opml")
    text = mindflow.serialize(tree, "markdown")
"""

__version__ = "0.1.0"

from .models import (
    Cloud,
    EdgeKind,
    EdgeStyle,
    Flow,
    GraphEdge,
    GraphNode,
    HistorySnapshot,
    NodeMetadata,
    NodeStyle,
    Position,
    SaveSlot,
    TreeNode,
)
from .errors import (
    DuplicateNodeError,
    MindflowError,
    ParseError,
    StorageError,
    UnsupportedFormatError,
)
from .converter import tree_to_flow, flow_to_tree, generate_id
from .formats import FORMATS, Format, get_format, parse, serialize, read, write
from .history import UndoRedoHistory
from .autosave import AutoSaveSession, SaveStatus
from .storage import FileStorage, MemoryStorage, Storage

__all__ = [
    "read",
    "write",
    "parse",
    "serialize",
    "get_format",
    "FORMATS",
    "Format",
    "tree_to_flow",
    "flow_to_tree",
    "generate_id",
    "UndoRedoHistory",
    "AutoSaveSession",
    "SaveStatus",
    "Storage",
    "MemoryStorage",
    "FileStorage",
    "TreeNode",
    "NodeMetadata",
    "NodeStyle",
    "EdgeStyle",
    "Cloud",
    "Position",
    "GraphNode",
    "GraphEdge",
    "EdgeKind",
    "Flow",
    "HistorySnapshot",
    "SaveSlot",
    "MindflowError",
    "ParseError",
    "UnsupportedFormatError",
    "StorageError",
    "DuplicateNodeError",
]
