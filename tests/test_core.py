"""Core tests for the mind map tree model."""

import pytest

import mindflow
from mindflow import Cloud, NodeMetadata, ParseError, TreeNode


def test_create_single_node_tree():
    root = TreeNode(content="Test Map")
    assert root.count() == 1
    assert root.is_leaf
    assert root.id.startswith("node_")


def test_generated_ids_are_unique():
    ids = {mindflow.generate_id() for _ in range(200)}
    assert len(ids) == 200


def test_add_children():
    root = TreeNode(id="root", content="Root")
    child1 = root.add_child("Child 1")
    root.add_child("Child 2")
    grandchild = child1.add_child("Grandchild")

    assert root.count() == 4
    assert len(root.children) == 2
    assert root.path(grandchild.id) == ["Root", "Child 1", "Grandchild"]
    assert dict((n.content, d) for n, d in root.walk_with_depth())["Grandchild"] == 2


def test_find():
    root = TreeNode(content="Root")
    root.add_child("Alpha")
    beta = root.add_child("Beta")
    root.children[0].add_child("Gamma")

    assert root.find("Beta") is beta
    assert root.find("beta").content == "Beta"  # case-insensitive
    assert root.find("nonexistent") is None
    assert root.find_by_id(beta.id) is beta
    assert root.find_by_id("missing") is None


def test_find_all():
    root = TreeNode(content="Root")
    root.add_child("Todo")
    root.add_child("Done").add_child("todo")
    assert len(root.find_all("TODO")) == 2


def test_walk():
    root = TreeNode(content="Root")
    root.add_child("A").add_child("A1")
    root.add_child("B")

    names = [n.content for n in root.walk()]
    assert names == ["Root", "A", "A1", "B"]


def test_notes_shortcut():
    node = TreeNode(content="x")
    assert node.notes == ""
    node.metadata = NodeMetadata(notes="remember")
    assert node.notes == "remember"


def test_to_dict_omits_unset_fields():
    root = TreeNode(id="r", content="Root")
    root.add_child("Leaf", id="l")
    assert root.to_dict() == {
        "id": "r",
        "content": "Root",
        "children": [{"id": "l", "content": "Leaf", "children": []}],
    }


def test_dict_roundtrip_keeps_everything():
    root = TreeNode(id="r", content="Root", icon="star", cloud=Cloud(color="#ffcc00"))
    root.metadata = NodeMetadata(
        notes="n", tags=["a", "b"], url="https://example.com",
        cross_links=["c"], custom={"owner": "sam", "points": 3},
    )
    root.add_child("Child", id="c", collapsed=True)

    data = root.to_dict()
    assert data["metadata"]["owner"] == "sam"
    assert data["metadata"]["crossLinks"] == ["c"]
    assert TreeNode.from_dict(data) == root


def test_from_dict_generates_missing_ids():
    tree = TreeNode.from_dict({"content": "Root", "children": [{"label": "Child"}]})
    assert tree.id
    assert tree.children[0].content == "Child"
    assert tree.children[0].id != tree.id


def test_from_dict_rejects_duplicate_ids():
    data = {"id": "a", "content": "Root", "children": [{"id": "a", "content": "Dup"}]}
    with pytest.raises(ParseError, match="duplicate"):
        TreeNode.from_dict(data)


@pytest.mark.parametrize("data", [
    [],
    {"id": "a"},
    {"id": "a", "content": "x", "children": "nope"},
    {"id": "a", "content": "x", "metadata": {"tags": "single"}},
    {"id": "a", "content": True},
])
def test_from_dict_rejects_bad_shapes(data):
    with pytest.raises(ParseError):
        TreeNode.from_dict(data)


def test_reserved_custom_keys_are_not_written():
    meta = NodeMetadata(tags=["real"], custom={"tags": "shadow", "owner": "kim"})
    root = TreeNode(id="r", content="Root", metadata=meta)

    data = root.to_dict()
    assert data["metadata"] == {"tags": ["real"], "owner": "kim"}
    back = TreeNode.from_dict(data)
    assert back.metadata.tags == ["real"]
    assert back.metadata.custom == {"owner": "kim"}


def test_from_dict_rejects_recursive_record():
    data = {"id": "a", "content": "Loop", "children": []}
    data["children"].append(data)
    with pytest.raises(ParseError, match="repeats"):
        TreeNode.from_dict(data)
