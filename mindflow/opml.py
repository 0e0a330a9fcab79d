"""Read and write OPML outlines.

OPML nests <outline text="..."> elements inside <body>. Only text, notes
(the `_note` attribute) and hierarchy survive a trip through OPML.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from .errors import ParseError
from .models import NodeMetadata, TreeNode, generate_id

FORMAT = "opml"
OPML_VERSION = "2.0"


def parse(text: str) -> TreeNode:
    """Parse an OPML document into a tree.

    A single top-level outline becomes the root. Several top-level outlines
    are gathered under a root named after the document title.

    Raises:
        ParseError: If the XML is malformed or has no <body>.
    """
    try:
        root_elem = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(str(e), FORMAT) from e

    if root_elem.tag != "opml":
        raise ParseError(f"root element is <{root_elem.tag}>, expected <opml>", FORMAT)

    body = root_elem.find("body")
    if body is None:
        raise ParseError("no body element found", FORMAT)

    title = (root_elem.findtext("head/title") or "").strip()
    outlines = body.findall("outline")

    if len(outlines) == 1:
        return _parse_outline(outlines[0])

    root = TreeNode(id=generate_id(), content=title or "Root")
    root.children = [_parse_outline(o) for o in outlines]
    return root


def _parse_outline(elem: ET.Element) -> TreeNode:
    node = TreeNode(
        id=generate_id(),
        content=elem.get("text") or elem.get("title") or elem.get("TEXT") or "Untitled",
    )
    note = elem.get("_note")
    if note:
        node.metadata = NodeMetadata(notes=note)
    node.children = [_parse_outline(child) for child in elem.findall("outline")]
    return node


def serialize(tree: TreeNode) -> str:
    """Serialize a tree to OPML 2.0; the root is the single body outline."""
    root_elem = ET.Element("opml", version=OPML_VERSION)
    head = ET.SubElement(root_elem, "head")
    ET.SubElement(head, "title").text = tree.content
    body = ET.SubElement(root_elem, "body")
    body.append(_build_outline(tree))

    ET.indent(root_elem, space="  ")
    xml = ET.tostring(root_elem, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{xml}\n'


def _build_outline(node: TreeNode) -> ET.Element:
    elem = ET.Element("outline", text=node.content)
    if node.notes:
        elem.set("_note", node.notes)
    for child in node.children:
        elem.append(_build_outline(child))
    return elem
