"""Read and write FreeMind .mm files.

FreeMind nests <node TEXT="..."> elements under a single <map>. Icons, edge
and font styling, clouds, notes (rich content) and arrow links (cross-links)
are carried over. Tags and custom metadata have no place in the schema and
are dropped on write.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from .errors import ParseError
from .models import Cloud, EdgeStyle, NodeMetadata, NodeStyle, TreeNode, generate_id

FORMAT = "freemind"
MAP_VERSION = "1.0.1"


def parse(text: str) -> TreeNode:
    """Parse FreeMind XML into a tree.

    Raises:
        ParseError: If the XML is malformed or has no <map><node> root.
    """
    try:
        root_elem = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(str(e), FORMAT) from e

    if root_elem.tag != "map":
        raise ParseError(f"root element is <{root_elem.tag}>, expected <map>", FORMAT)

    node_elem = root_elem.find("node")
    if node_elem is None:
        raise ParseError("no root node found", FORMAT)

    tree = _parse_node(node_elem)

    seen: set[str] = set()
    for node in tree.walk():
        if node.id in seen:
            raise ParseError(f"duplicate node ID {node.id!r}", FORMAT)
        seen.add(node.id)
    return tree


def _parse_node(elem: ET.Element) -> TreeNode:
    """Recursively parse a <node> element."""
    node = TreeNode(id=elem.get("ID") or generate_id())
    node.content = elem.get("TEXT") or _rich_text(elem, "NODE") or "Untitled"
    node.collapsed = elem.get("FOLDED") == "true"
    node.link = elem.get("LINK") or None
    node.created = _parse_int(elem.get("CREATED"))
    node.modified = _parse_int(elem.get("MODIFIED"))

    style = NodeStyle(
        color=elem.get("COLOR") or None,
        background_color=elem.get("BACKGROUND_COLOR") or None,
    )
    notes = ""
    cross_links: list[str] = []

    for child in elem:
        if child.tag == "node":
            node.children.append(_parse_node(child))
        elif child.tag == "icon" and node.icon is None:
            node.icon = child.get("BUILTIN") or None
        elif child.tag == "edge":
            node.edge_style = EdgeStyle(
                color=child.get("COLOR") or None,
                width=_parse_int(child.get("WIDTH")),
                style=child.get("STYLE") or None,
            )
        elif child.tag == "font":
            style.font_name = child.get("NAME") or None
            style.font_size = _parse_int(child.get("SIZE"))
            style.bold = _parse_bool(child.get("BOLD"))
            style.italic = _parse_bool(child.get("ITALIC"))
        elif child.tag == "cloud":
            node.cloud = Cloud(color=child.get("COLOR", ""))
        elif child.tag == "arrowlink":
            destination = child.get("DESTINATION")
            if destination:
                cross_links.append(destination)
        elif child.tag == "richcontent" and child.get("TYPE") == "NOTE":
            notes = _element_text(child)

    if not style.is_empty():
        node.style = style
    if notes or cross_links:
        node.metadata = NodeMetadata(notes=notes, cross_links=cross_links)
    return node


def _rich_text(elem: ET.Element, kind: str) -> str:
    for child in elem.findall("richcontent"):
        if child.get("TYPE") == kind:
            return _element_text(child)
    return ""


def _element_text(elem: ET.Element) -> str:
    """Text of a richcontent element, one line per <p>.

    Paragraphs written on a single line keep their spacing; pretty-printed
    paragraphs (text spanning several lines) are stripped.
    """
    paragraphs = list(elem.iter("p"))
    if not paragraphs:
        return "\n".join(t.strip() for t in elem.itertext() if t.strip())
    lines = []
    for p in paragraphs:
        text = "".join(p.itertext())
        lines.append(text.strip() if "\n" in text else text)
    return "\n".join(lines)


def _parse_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value == "true"


def serialize(tree: TreeNode) -> str:
    """Serialize a tree to FreeMind XML."""
    root_elem = ET.Element("map", version=MAP_VERSION)
    root_elem.append(_build_node_elem(tree))
    ET.indent(root_elem, space="  ")
    body = ET.tostring(root_elem, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'


def _build_node_elem(node: TreeNode) -> ET.Element:
    """Build a <node> element from a TreeNode, recursively."""
    elem = ET.Element("node")
    elem.set("ID", node.id)
    elem.set("TEXT", node.content)

    style = node.style or NodeStyle()
    if style.color:
        elem.set("COLOR", style.color)
    if style.background_color:
        elem.set("BACKGROUND_COLOR", style.background_color)
    if node.collapsed:
        elem.set("FOLDED", "true")
    if node.link:
        elem.set("LINK", node.link)
    if node.created is not None:
        elem.set("CREATED", str(node.created))
    if node.modified is not None:
        elem.set("MODIFIED", str(node.modified))

    if node.icon:
        ET.SubElement(elem, "icon", BUILTIN=node.icon)

    if node.edge_style is not None and not node.edge_style.is_empty():
        edge_elem = ET.SubElement(elem, "edge")
        if node.edge_style.color:
            edge_elem.set("COLOR", node.edge_style.color)
        if node.edge_style.width is not None:
            edge_elem.set("WIDTH", str(node.edge_style.width))
        if node.edge_style.style:
            edge_elem.set("STYLE", node.edge_style.style)

    font_attrs = {}
    if style.font_name:
        font_attrs["NAME"] = style.font_name
    if style.font_size is not None:
        font_attrs["SIZE"] = str(style.font_size)
    if style.bold is not None:
        font_attrs["BOLD"] = "true" if style.bold else "false"
    if style.italic is not None:
        font_attrs["ITALIC"] = "true" if style.italic else "false"
    if font_attrs:
        ET.SubElement(elem, "font", font_attrs)

    if node.cloud is not None:
        cloud_elem = ET.SubElement(elem, "cloud")
        if node.cloud.color:
            cloud_elem.set("COLOR", node.cloud.color)

    if node.metadata is not None:
        for target in node.metadata.cross_links:
            ET.SubElement(elem, "arrowlink", DESTINATION=target)
        if node.metadata.notes:
            rich = ET.SubElement(elem, "richcontent", TYPE="NOTE")
            html = ET.SubElement(rich, "html")
            ET.SubElement(html, "head")
            body = ET.SubElement(html, "body")
            for line in node.metadata.notes.split("\n"):
                ET.SubElement(body, "p").text = line

    for child in node.children:
        elem.append(_build_node_elem(child))

    return elem
