"""Tests for tree <-> graph conversion."""

from mindflow import (
    EdgeKind,
    EdgeStyle,
    GraphEdge,
    GraphNode,
    NodeMetadata,
    Position,
    TreeNode,
    flow_to_tree,
    tree_to_flow,
)


def _sample_tree():
    root = TreeNode(id="root", content="Root", icon="idea")
    a = root.add_child("A", id="a", metadata=NodeMetadata(notes="first", tags=["x"]))
    a.add_child("A1", id="a1", edge_style=EdgeStyle(color="#f00", width=3))
    root.add_child("B", id="b", collapsed=True).add_child("B1", id="b1")
    root.add_child("C", id="c", metadata=NodeMetadata(cross_links=["a1"]))
    return root


def _strip_positions(tree):
    for node in tree.walk():
        node.position = None
    return tree


def test_two_children_give_two_hierarchical_edges():
    root = TreeNode(id="root", content="root")
    root.add_child("A", id="A")
    root.add_child("B", id="B")

    nodes, edges = tree_to_flow(root)
    assert [n.id for n in nodes] == ["root", "A", "B"]
    assert [(e.source, e.target) for e in edges] == [("root", "A"), ("root", "B")]
    assert all(e.kind is EdgeKind.HIERARCHICAL for e in edges)

    rebuilt = flow_to_tree(nodes, edges)
    assert [c.id for c in rebuilt.children] == ["A", "B"]
    assert [c.content for c in rebuilt.children] == ["A", "B"]


def test_default_layout_positions():
    root = TreeNode(id="r", content="R")
    root.add_child("A", id="a").add_child("A1", id="a1")
    root.add_child("B", id="b", position=Position(7, 9))

    nodes, _ = tree_to_flow(root)
    positions = {n.id: (n.position.x, n.position.y) for n in nodes}
    assert positions["r"] == (0, 0)
    assert positions["a"] == (250, 100)
    assert positions["a1"] == (500, 200)
    assert positions["b"] == (7, 9)


def test_roundtrip_preserves_structure_and_metadata():
    tree = _sample_tree()
    nodes, edges = tree_to_flow(tree)
    rebuilt = flow_to_tree(nodes, edges)

    assert _strip_positions(rebuilt) == tree


def test_collapsed_descendants_are_hidden_but_present():
    nodes, _ = tree_to_flow(_sample_tree())
    by_id = {n.id: n for n in nodes}
    assert by_id["b"].collapsed
    assert not by_id["b"].hidden
    assert by_id["b1"].hidden


def test_cross_links_become_edges():
    nodes, edges = tree_to_flow(_sample_tree())
    links = [e for e in edges if e.kind is EdgeKind.CROSS_LINK]
    assert [(e.source, e.target) for e in links] == [("c", "a1")]
    # edges carry the link, not node metadata
    assert {n.id: n for n in nodes}["c"].metadata.cross_links == []


def test_dangling_cross_link_is_dropped():
    root = TreeNode(id="r", content="R", metadata=NodeMetadata(cross_links=["ghost"]))
    _, edges = tree_to_flow(root)
    assert edges == []


def test_cross_link_edges_ignored_for_structure():
    nodes = [GraphNode("r", "R"), GraphNode("a", "A"), GraphNode("b", "B")]
    edges = [
        GraphEdge("r-a", "r", "a"),
        GraphEdge("r-b", "r", "b"),
        GraphEdge("x", "a", "r", kind=EdgeKind.CROSS_LINK),
    ]
    tree = flow_to_tree(nodes, edges)
    assert tree.id == "r"
    assert [c.id for c in tree.children] == ["a", "b"]
    assert tree.children[0].metadata.cross_links == ["r"]


def test_edge_style_travels_with_child():
    _, edges = tree_to_flow(_sample_tree())
    edge = next(e for e in edges if e.target == "a1")
    assert edge.style == EdgeStyle(color="#f00", width=3)


def test_empty_graph_returns_none():
    assert flow_to_tree([], []) is None


def test_two_roots_returns_none():
    nodes = [GraphNode("a", "A"), GraphNode("b", "B")]
    assert flow_to_tree(nodes, []) is None


def test_cycle_returns_none():
    nodes = [GraphNode("r", "R"), GraphNode("a", "A"), GraphNode("b", "B")]
    edges = [GraphEdge("1", "a", "b"), GraphEdge("2", "b", "a")]
    assert flow_to_tree(nodes, edges) is None


def test_cycle_without_root_returns_none():
    nodes = [GraphNode("a", "A"), GraphNode("b", "B")]
    edges = [GraphEdge("1", "a", "b"), GraphEdge("2", "b", "a")]
    assert flow_to_tree(nodes, edges) is None


def test_shared_child_returns_none():
    nodes = [GraphNode("r", "R"), GraphNode("a", "A"), GraphNode("b", "B")]
    edges = [GraphEdge("1", "r", "a"), GraphEdge("2", "r", "b"), GraphEdge("3", "a", "b")]
    assert flow_to_tree(nodes, edges) is None


def test_unknown_endpoint_returns_none():
    nodes = [GraphNode("r", "R")]
    assert flow_to_tree(nodes, [GraphEdge("1", "r", "ghost")]) is None


def test_deep_tree_does_not_hit_recursion_limit():
    root = TreeNode(id="n0", content="0")
    node = root
    for i in range(1, 3000):
        node = node.add_child(str(i), id=f"n{i}")

    nodes, edges = tree_to_flow(root)
    rebuilt = flow_to_tree(nodes, edges)
    assert rebuilt.count() == 3000
