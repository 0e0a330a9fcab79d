"""Native JSON format: the full-fidelity mind map record.

    {"id": "root", "content": "Project", "children": [...], "metadata": {...}}

This is the only format where `serialize(parse(text)) == text` holds for any
text produced by `serialize`.
"""

from __future__ import annotations

import json

from .errors import ParseError
from .models import TreeNode

FORMAT = "json"


def parse(text: str) -> TreeNode:
    """Parse a native JSON record into a tree.

    Raises:
        ParseError: If the text is not JSON or not a valid record.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"line {e.lineno} column {e.colno}: {e.msg}", FORMAT) from e
    except RecursionError as e:
        raise ParseError("document is nested too deeply", FORMAT) from e
    try:
        return TreeNode.from_dict(data)
    except ParseError as e:
        raise ParseError(str(e), FORMAT) from e


def serialize(tree: TreeNode) -> str:
    """Serialize a tree to indented JSON."""
    return json.dumps(tree.to_dict(), indent=2, ensure_ascii=False)
