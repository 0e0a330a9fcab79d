"""Command-line interface for mindflow."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from . import FORMATS, read, tree_to_flow, write
from .autosave import AutoSaveSession
from .config import storage_dir
from .errors import MindflowError
from .storage import FileStorage


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="mindflow",
        description="Inspect, convert and recover mind maps",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)
    format_names = sorted(FORMATS)

    # --- info ---
    p_info = sub.add_parser("info", help="Show map summary")
    p_info.add_argument("file", help="Path to a mind map file")
    p_info.add_argument("--depth", type=int, default=2, help="Tree depth to show (default: 2)")
    p_info.add_argument("--format", choices=format_names, help="Input format (default: by extension)")

    # --- tree ---
    p_tree = sub.add_parser("tree", help="Print full node tree")
    p_tree.add_argument("file", help="Path to a mind map file")
    p_tree.add_argument("--depth", type=int, default=99, help="Max depth")
    p_tree.add_argument("--format", choices=format_names, help="Input format")

    # --- find ---
    p_find = sub.add_parser("find", help="Search for nodes by text")
    p_find.add_argument("file", help="Path to a mind map file")
    p_find.add_argument("query", help="Text to search for")
    p_find.add_argument("--format", choices=format_names, help="Input format")

    # --- convert ---
    p_convert = sub.add_parser("convert", help="Convert between formats")
    p_convert.add_argument("source", help="Input file")
    p_convert.add_argument("dest", help="Output file")
    p_convert.add_argument("--from", dest="from_format", choices=format_names, help="Input format")
    p_convert.add_argument("--to", dest="to_format", choices=format_names, help="Output format")

    # --- graph ---
    p_graph = sub.add_parser("graph", help="Summarize the node/edge projection")
    p_graph.add_argument("file", help="Path to a mind map file")
    p_graph.add_argument("--format", choices=format_names, help="Input format")

    # --- slots ---
    p_slots = sub.add_parser("slots", help="List autosave slots")
    p_slots.add_argument("--dir", type=Path, help="Autosave directory (default: $MINDFLOW_HOME)")

    # --- restore ---
    p_restore = sub.add_parser("restore", help="Write an autosave slot to a file")
    p_restore.add_argument("index", type=int, help="Slot number as shown by 'slots'")
    p_restore.add_argument("output", help="Output file")
    p_restore.add_argument("--dir", type=Path, help="Autosave directory (default: $MINDFLOW_HOME)")
    p_restore.add_argument("--to", dest="to_format", choices=format_names, help="Output format")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "info": cmd_info,
        "tree": cmd_tree,
        "find": cmd_find,
        "convert": cmd_convert,
        "graph": cmd_graph,
        "slots": cmd_slots,
        "restore": cmd_restore,
    }
    try:
        return commands[args.command](args) or 0
    except (MindflowError, FileNotFoundError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


def cmd_info(args):
    tree = read(args.file, args.format)
    print(f"File: {args.file}")
    print(f"Title: {tree.content}")
    print(f"Nodes: {tree.count()}")
    print()

    def show(node, depth=0, max_depth=2):
        if depth > max_depth:
            return
        desc_count = node.count() - 1
        suffix = f" ({desc_count} items)" if desc_count > 0 else ""
        icon = f" [{node.icon}]" if node.icon else ""
        print("  " * depth + f"• {node.content}{suffix}{icon}")
        for child in node.children:
            show(child, depth + 1, max_depth)

    for child in tree.children:
        show(child, 0, args.depth)


def cmd_tree(args):
    tree = read(args.file, args.format)

    for node, depth in tree.walk_with_depth():
        if depth > args.depth:
            continue
        marks = []
        if node.icon:
            marks.append(node.icon)
        if node.notes:
            marks.append("note")
        if node.metadata is not None and node.metadata.cross_links:
            marks.append(f"{len(node.metadata.cross_links)} link(s)")
        extra = f" [{', '.join(marks)}]" if marks else ""
        print(f"{'  ' * depth}{node.content}{extra}")


def cmd_find(args):
    tree = read(args.file, args.format)
    query = args.query.lower()

    for node in tree.walk():
        if query in node.content.lower():
            print(" → ".join(tree.path(node.id)))


def cmd_convert(args):
    tree = read(args.source, args.from_format)
    path = write(tree, args.dest, args.to_format)
    print(f"Converted {args.source} to {path}")


def cmd_graph(args):
    tree = read(args.file, args.format)
    nodes, edges = tree_to_flow(tree)
    links = sum(1 for e in edges if not e.is_hierarchical)
    print(f"Nodes: {len(nodes)}")
    print(f"Hierarchical edges: {len(edges) - links}")
    print(f"Cross-links: {links}")
    print(f"Hidden (collapsed): {sum(1 for n in nodes if n.hidden)}")


def _open_session(directory):
    session = AutoSaveSession(FileStorage(directory or storage_dir()))
    session.start()
    return session


def cmd_slots(args):
    session = _open_session(args.dir)
    slots = session.save_history
    if not slots:
        print("No autosave slots")
        return
    for i, slot in enumerate(slots):
        title = slot.tree.content if slot.tree is not None else "(no tree)"
        saved = datetime.fromtimestamp(slot.timestamp / 1000).strftime("%Y-%m-%d %H:%M:%S")
        print(f"[{i}] {slot.label} - {title} ({len(slot.nodes)} nodes, {saved})")


def cmd_restore(args):
    session = _open_session(args.dir)
    slot = session.restore_from_history(args.index)
    if slot is None:
        print(f"error: no autosave slot {args.index}", file=sys.stderr)
        return 1
    if slot.tree is None:
        print(f"error: slot {args.index} holds no tree", file=sys.stderr)
        return 1
    path = write(slot.tree, args.output, args.to_format)
    print(f"Restored '{slot.label}' to {path}")


if __name__ == "__main__":
    sys.exit(main())
