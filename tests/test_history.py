"""Tests for the undo/redo history engine and its action labels."""

import pytest

from mindflow import (
    Cloud,
    DuplicateNodeError,
    EdgeKind,
    GraphEdge,
    GraphNode,
    NodeMetadata,
    UndoRedoHistory,
)
from mindflow.history import describe_change


def _graph(*labels):
    """Root plus one child per label, ids n0..nN."""
    nodes = [GraphNode(f"n{i}", label) for i, label in enumerate(labels)]
    edges = [GraphEdge(f"n0-n{i}", "n0", f"n{i}") for i in range(1, len(labels))]
    return nodes, edges


def _committed(history, nodes, edges):
    return history.add_to_history(nodes, edges).label


def test_starts_empty():
    history = UndoRedoHistory()
    assert history.past == []
    assert history.future == []
    assert not history.can_undo
    assert not history.can_redo


def test_first_commit_is_initial_state():
    history = UndoRedoHistory()
    assert _committed(history, *_graph("Root")) == "Initial state"


def test_added_child_node():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    assert _committed(history, *_graph("Root", "Child")) == "Added child node"


def test_added_sibling_node_without_edge():
    history = UndoRedoHistory()
    nodes, edges = _graph("Root", "A")
    history.add_to_history(nodes, edges)
    nodes = nodes + [GraphNode("loose", "Loose")]
    assert _committed(history, nodes, edges) == "Added sibling node"


def test_added_several_nodes():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    assert _committed(history, *_graph("Root", "A", "B", "C")) == "Added 3 nodes"


def test_deleted_nodes():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root", "A", "B", "C"))
    assert _committed(history, *_graph("Root", "A", "B")) == "Deleted node"
    assert _committed(history, *_graph("Root")) == "Deleted 2 nodes"


def test_cross_link_labels():
    history = UndoRedoHistory()
    nodes, edges = _graph("Root", "A", "B")
    history.add_to_history(nodes, edges)

    one = edges + [GraphEdge("x1", "n1", "n2", kind=EdgeKind.CROSS_LINK)]
    assert _committed(history, nodes, one) == "Added cross-link"

    three = one + [GraphEdge("x2", "n2", "n1", kind=EdgeKind.CROSS_LINK),
                   GraphEdge("x3", "n2", "n0", kind=EdgeKind.CROSS_LINK)]
    assert _committed(history, nodes, three) == "Added 2 links"
    assert _committed(history, nodes, edges) == "Removed link"


def test_edited_text_label_is_truncated():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root", "A"))
    assert _committed(history, *_graph("Root", "Short")) == 'Edited text: "Short"'
    long_text = "A fairly long node title here"
    assert _committed(history, *_graph("Root", long_text)) == 'Edited text: "A fairly long node t..."'


def test_metadata_icon_and_cloud_labels():
    history = UndoRedoHistory()
    nodes, edges = _graph("Root", "A")
    history.add_to_history(nodes, edges)

    nodes = _graph("Root", "A")[0]
    nodes[1].metadata = NodeMetadata(tags=["x"])
    assert _committed(history, nodes, edges) == "Updated metadata"

    nodes = _graph("Root", "A")[0]
    nodes[1].metadata = NodeMetadata(tags=["x"])
    nodes[1].icon = "star"
    assert _committed(history, nodes, edges) == "Changed icon"

    nodes = _graph("Root", "A")[0]
    nodes[1].metadata = NodeMetadata(tags=["x"])
    nodes[1].icon = "star"
    nodes[1].cloud = Cloud(color="#eee")
    assert _committed(history, nodes, edges) == "Changed cloud"


def test_replaced_node_with_same_count():
    history = UndoRedoHistory()
    history.add_to_history([GraphNode("r", "R"), GraphNode("a", "A")],
                           [GraphEdge("e", "r", "a")])
    label = _committed(history, [GraphNode("r", "R"), GraphNode("b", "A")],
                       [GraphEdge("e2", "r", "b")])
    assert label == "Replaced node"


def test_position_only_change_is_generic_action():
    history = UndoRedoHistory()
    nodes, edges = _graph("Root", "A")
    history.add_to_history(nodes, edges)
    nodes = _graph("Root", "A")[0]
    nodes[1].position.x = 500
    assert _committed(history, nodes, edges) == "Action"


def test_duplicate_ids_are_rejected():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    with pytest.raises(DuplicateNodeError):
        history.add_to_history([GraphNode("n0", "Root"), GraphNode("n0", "Again")], [])
    assert len(history.past) == 1


def test_custom_rules():
    nodes, edges = _graph("Root")
    previous = UndoRedoHistory().add_to_history(nodes, edges)
    rules = [(lambda d: True, lambda d: "Always")]
    assert describe_change(previous, nodes, edges, rules) == "Always"


def test_snapshots_are_copies():
    history = UndoRedoHistory()
    nodes, edges = _graph("Root")
    history.add_to_history(nodes, edges)
    nodes[0].label = "Mutated"
    assert history.past[0].nodes[0].label == "Root"


def test_history_is_capped_fifo():
    history = UndoRedoHistory()
    for i in range(60):
        history.add_to_history([GraphNode(f"root-{i}", f"State {i}")], [])

    past = history.past
    assert len(past) == 50
    assert past[0].nodes[0].id == "root-10"
    assert past[-1].nodes[0].id == "root-59"


def test_undo_moves_entry_to_future():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    second = history.add_to_history(*_graph("Root", "A"))

    assert history.undo() is second
    assert len(history.past) == 1
    assert history.future == [second]
    assert history.can_undo and history.can_redo


def test_undo_then_redo_restores_state():
    history = UndoRedoHistory()
    for labels in (("Root",), ("Root", "A"), ("Root", "A", "B")):
        history.add_to_history(*_graph(*labels))
    history.undo()
    past_before, future_before = history.past, history.future

    history.undo()
    history.redo()

    assert history.past == past_before
    assert history.future == future_before


def test_undo_and_redo_on_empty_return_none():
    history = UndoRedoHistory()
    assert history.undo() is None
    assert history.redo() is None


def test_new_commit_clears_future():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("State 1"))
    history.undo()
    assert len(history.future) == 1

    history.add_to_history(*_graph("State 2"))
    assert history.future == []
    assert not history.can_redo


def test_jump_to_past_entry():
    history = UndoRedoHistory()
    entries = [history.add_to_history([GraphNode(str(i), str(i))], []) for i in (1, 2, 3)]

    target = history.jump_to_history(0, True)
    assert target is entries[0]
    assert history.past == []
    assert history.future == entries


def test_jump_to_future_entry():
    history = UndoRedoHistory()
    entries = [history.add_to_history([GraphNode(str(i), str(i))], []) for i in (1, 2, 3)]
    history.jump_to_history(0, True)

    target = history.jump_to_history(1, False)
    assert target is entries[1]
    assert history.past == entries[:2]
    assert history.future == entries[2:]


def test_jump_out_of_range():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    assert history.jump_to_history(5, True) is None
    assert history.jump_to_history(0, False) is None
    assert history.jump_to_history(-1, True) is None
    assert len(history.past) == 1


def test_full_history_marks_current():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    history.add_to_history(*_graph("Root", "A"))
    history.add_to_history(*_graph("Root", "A", "B"))
    history.undo()

    full = history.get_full_history()
    assert [e.is_current for e in full] == [False, False, True, False]
    assert full[2].label == "Current state"
    assert full[-1].label == "Added child node"


def test_clear_history():
    history = UndoRedoHistory()
    history.add_to_history(*_graph("Root"))
    history.undo()
    history.clear_history()
    assert history.past == [] and history.future == []
    assert [e.is_current for e in history.get_full_history()] == [True]
