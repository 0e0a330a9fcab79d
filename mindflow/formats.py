"""Registry of supported formats plus file-level read/write helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from . import d2, exports, freemind, markdown, native, opml, yaml_format
from .errors import UnsupportedFormatError
from .models import TreeNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Format:
    """A named codec: serializer plus optional parser."""
    name: str
    extensions: tuple[str, ...]
    serialize: Callable[[TreeNode], str]
    parse: Optional[Callable[[str], TreeNode]] = None
    description: str = ""

    @property
    def can_import(self) -> bool:
        return self.parse is not None


FORMATS: dict[str, Format] = {
    f.name: f
    for f in (
        Format("json", (".json",), native.serialize, native.parse,
               "Native mind map record (full fidelity)"),
        Format("yaml", (".yaml", ".yml"), yaml_format.serialize, yaml_format.parse,
               "YAML mirror of the native record"),
        Format("freemind", (".mm",), freemind.serialize, freemind.parse,
               "FreeMind XML"),
        Format("opml", (".opml",), opml.serialize, opml.parse,
               "OPML outline"),
        Format("markdown", (".md", ".markdown"), markdown.serialize, markdown.parse,
               "Headings and nested bullets"),
        Format("d2", (".d2",), d2.serialize,
               description="D2 diagram script (export only)"),
        Format("svg", (".svg",), exports.to_svg,
               description="SVG image (export only)"),
        Format("print", (".html",), exports.to_print_html,
               description="Print-optimized HTML (export only)"),
        Format("slides", (".ppt.html",), exports.to_slides_html,
               description="HTML slide deck (export only)"),
        Format("presentation", (".slides.md",), exports.to_presentation,
               description="Markdown presentation outline (export only)"),
    )
}


def get_format(name: str) -> Format:
    """Look up a format by name.

    Raises:
        UnsupportedFormatError: If no such format exists.
    """
    try:
        return FORMATS[name.lower()]
    except KeyError:
        known = ", ".join(sorted(FORMATS))
        raise UnsupportedFormatError(f"Unknown format {name!r} (known: {known})") from None


def format_for_path(path: Union[str, Path]) -> Format:
    """Guess the format from a file name; the longest matching suffix wins."""
    name = Path(path).name.lower()
    matches = [
        (len(ext), fmt)
        for fmt in FORMATS.values()
        for ext in fmt.extensions
        if name.endswith(ext)
    ]
    if not matches:
        raise UnsupportedFormatError(f"Cannot tell the format of {path}")
    return max(matches, key=lambda m: m[0])[1]


def parse(text: str, fmt: str) -> TreeNode:
    """Parse text in the named format.

    Raises:
        UnsupportedFormatError: If the format is unknown or export-only.
        ParseError: If the text is malformed.
    """
    codec = get_format(fmt)
    if codec.parse is None:
        raise UnsupportedFormatError(f"{codec.name} is export-only and cannot be imported")
    return codec.parse(text)


def serialize(tree: TreeNode, fmt: str) -> str:
    """Serialize a tree in the named format."""
    return get_format(fmt).serialize(tree)


def read(path: Union[str, Path], fmt: Optional[str] = None) -> TreeNode:
    """Read a mind map file.

    Args:
        path: File to read.
        fmt: Format name; guessed from the extension when omitted.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        UnsupportedFormatError: If the format is unknown or export-only.
        ParseError: If the file content is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    codec = get_format(fmt) if fmt else format_for_path(path)
    text = path.read_text(encoding="utf-8")
    logger.debug("Reading %s as %s", path, codec.name)
    return parse(text, codec.name)


def write(tree: TreeNode, path: Union[str, Path], fmt: Optional[str] = None) -> Path:
    """Write a mind map file.

    Returns:
        The path written to.
    """
    path = Path(path)
    codec = get_format(fmt) if fmt else format_for_path(path)
    path.write_text(codec.serialize(tree), encoding="utf-8")
    logger.debug("Wrote %s as %s", path, codec.name)
    return path
