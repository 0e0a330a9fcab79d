"""Export/import between mind map trees and heading/bullet markdown.

Markdown format uses:
- H1 for the root node
- H2 for top-level branches (deeper headings nest by depth)
- Nested lists for the rest of the tree
- Blockquotes for node notes
- Optional frontmatter, skipped on import
"""

from __future__ import annotations

import re
from datetime import datetime

from .errors import ParseError
from .models import NodeMetadata, TreeNode

FORMAT = "markdown"
TAB_WIDTH = 4

_HEADING = re.compile(r"^(#{1,6})\s+(.*)$")
_BULLET = re.compile(r"^(?:[-*+]|\d+[.)])\s+(.*)$")


def serialize(tree: TreeNode, *, include_frontmatter: bool = False) -> str:
    """Export a tree to markdown.

    Args:
        tree: The root node.
        include_frontmatter: Whether to include YAML frontmatter.

    Returns:
        Markdown string.
    """
    lines = []

    if include_frontmatter:
        lines.append("---")
        lines.append(f"title: \"{_one_line(tree.content)}\"")
        lines.append(f"exported: \"{datetime.now().strftime('%Y-%m-%d %H:%M')}\"")
        lines.append(f"nodes: {tree.count()}")
        lines.append("---")
        lines.append("")

    lines.append(f"# {_one_line(tree.content)}")
    _notes_to_md(tree, lines, "")
    lines.append("")

    # Each top-level child becomes an H2
    for branch in tree.children:
        lines.append(f"## {_one_line(branch.content)}")
        _notes_to_md(branch, lines, "")
        lines.append("")

        for child in branch.children:
            _node_to_md(child, lines, depth=0)

        if branch.children:
            lines.append("")

    return "\n".join(lines).rstrip("\n") + "\n"


def _node_to_md(node: TreeNode, lines: list[str], depth: int) -> None:
    """Recursively render a node as a markdown list item."""
    indent = "  " * depth
    lines.append(f"{indent}- {_one_line(node.content)}")
    _notes_to_md(node, lines, indent + "  ")
    for child in node.children:
        _node_to_md(child, lines, depth + 1)


def _notes_to_md(node: TreeNode, lines: list[str], indent: str) -> None:
    if node.notes:
        for note_line in node.notes.split("\n"):
            lines.append(f"{indent}> {note_line}".rstrip())


def _one_line(text: str) -> str:
    return " ".join(text.split("\n"))


def parse(text: str) -> TreeNode:
    """Parse markdown into a tree.

    The first heading, bullet or plain line is the root. Headings nest by
    heading depth; bullets and plain lines nest by indentation under the
    most recent heading. Tabs count as four columns. A dedent to a width
    that was never used attaches to the nearest shallower item.

    Raises:
        ParseError: If the document holds no nodes.
    """
    lines = text.splitlines()

    # Skip frontmatter
    i = 0
    if lines and lines[0].strip() == "---":
        i = 1
        while i < len(lines) and lines[i].strip() != "---":
            i += 1
        if i == len(lines):
            raise ParseError("unterminated frontmatter", FORMAT)
        i += 1

    root = None
    last = None
    # Sort key per item: headings (0, level) sit above bullets (1, indent)
    stack: list[tuple[tuple[int, int], TreeNode]] = []

    for raw in lines[i:]:
        line = raw.expandtabs(TAB_WIDTH)
        stripped = line.strip()
        if not stripped:
            continue

        if stripped.startswith(">"):
            if last is not None:
                _append_note(last, stripped[1:])
            continue

        heading = _HEADING.match(stripped)
        if heading:
            key = (0, len(heading.group(1)))
            content = heading.group(2).strip()
        else:
            indent = len(line) - len(line.lstrip())
            key = (1, indent)
            bullet = _BULLET.match(stripped)
            content = bullet.group(1).strip() if bullet else stripped

        if root is None:
            root = TreeNode(content=content)
            stack = [(key, root)]
            last = root
            continue

        # Find parent based on level; the root is never popped
        while len(stack) > 1 and stack[-1][0] >= key:
            stack.pop()

        node = stack[-1][1].add_child(content)
        stack.append((key, node))
        last = node

    if root is None:
        raise ParseError("no content found", FORMAT)
    return root


def _append_note(node: TreeNode, text: str) -> None:
    if text.startswith(" "):
        text = text[1:]
    if node.metadata is None:
        node.metadata = NodeMetadata()
    if node.metadata.notes:
        node.metadata.notes += "\n" + text
    else:
        node.metadata.notes = text
