# tests/test_menu_tree.py
from datetime import datetime

import pytest

from src.backend.utils.menu_errors import (
    ImmutableFieldViolation,
    MenuNotFound,
    OrphanReference,
    StructuralViolation,
)
from src.backend.utils.menu_tree import MenuNode, MenuTree, norm_id


def node(id, parent_id=None, **kw):
    kw.setdefault("code", f"m{id}")
    kw.setdefault("name", f"Menu {id}")
    return {"id": id, "parent_id": parent_id, **kw}


def chain_tree():
    # 1 -> 2 -> 3, plus a sibling root 4
    return MenuTree.from_records([node(1), node(2, 1), node(3, 2), node(4)])


class FakeStore:
    def __init__(self):
        self.saved = []

    async def save(self, node_id, changes):
        self.saved.append((node_id, dict(changes)))
        return {"id": node_id, **changes}


# -----------------------------
# normalization
# -----------------------------
@pytest.mark.parametrize("raw, expected", [
    (None, None), ("", None), ("  ", None), ("0", None), (0, None),
    ("07", 7), (12, 12), ("P", "P"),
])
def test_norm_id(raw, expected):
    assert norm_id(raw) == expected


def test_from_record_accepts_orm_like_objects():
    class Row:
        id = 5
        code = " reports "
        name = "Reports"
        type = "GROUP"
        status = "Inactive"
        parent_id = 0
        sort_order = None
        is_public = "yes"
        show_in_menu = None
        required_permission_id = "3"
        deleted_at = None
        path = ""

    n = MenuNode.from_record(Row())
    assert n.code == "reports"
    assert n.type == "group"
    assert n.status == "inactive"
    assert n.parent_id is None
    assert n.sort_order == 0
    assert n.is_public is True
    assert n.show_in_menu is True
    assert n.required_permission_id == 3
    assert n.path is None
    assert not n.is_active


def test_nested_and_flat_input_build_the_same_tree():
    nested = MenuTree.from_records([
        {"id": 1, "code": "a", "children": [
            {"id": 2, "code": "b", "children": [{"id": 3, "code": "c"}]},
        ]},
    ])
    flat = chain_tree()
    assert nested.descendants_of(1) == {2, 3}
    assert [n.id for n in nested.children_of(2)] == [3]
    assert nested.get(3).parent_id == flat.get(3).parent_id == 2


def test_duplicate_and_missing_ids_are_skipped():
    tree = MenuTree.from_records([node(1), node(1, code="dup"), {"code": "no-id"}])
    assert len(tree) == 1
    assert tree.get(1).code == "m1"


# -----------------------------
# descendants / parent checks
# -----------------------------
def test_descendants_of():
    tree = chain_tree()
    assert tree.descendants_of(1) == {2, 3}
    assert tree.descendants_of(2) == {3}
    assert tree.descendants_of(3) == set()
    assert tree.descendants_of(99) == set()


def test_descendants_never_include_self_even_on_cycles():
    tree = MenuTree.from_records([node(1, 3), node(2, 1), node(3, 2)], reporter=lambda ref: None)
    for nid in (1, 2, 3):
        assert nid not in tree.descendants_of(nid)


def test_is_valid_parent_rejects_descendants():
    tree = chain_tree()
    assert tree.is_valid_parent(1, 3) is False
    assert tree.is_valid_parent(1, 2) is False
    assert tree.is_valid_parent(3, 1) is True
    assert tree.is_valid_parent(1, 4) is True


def test_is_valid_parent_rejects_self_and_missing():
    tree = chain_tree()
    assert tree.is_valid_parent(2, 2) is False
    assert tree.is_valid_parent(2, 99) is False


def test_root_is_always_a_valid_parent():
    tree = chain_tree()
    for nid in (1, 2, 3, 4, None):
        assert tree.is_valid_parent(nid, None) is True
        assert tree.is_valid_parent(nid, 0) is True


def test_new_node_may_go_under_any_existing_node():
    tree = chain_tree()
    assert all(tree.is_valid_parent(None, nid) for nid in (1, 2, 3, 4))


def test_check_parent_reports_reason():
    tree = chain_tree()
    with pytest.raises(StructuralViolation) as exc:
        tree.check_parent(1, 3)
    assert exc.value.status_code == 409
    assert exc.value.detail == {"node_id": 1, "parent_id": 3}


# -----------------------------
# orphans and cycles
# -----------------------------
def test_missing_and_self_parents_become_reported_roots():
    seen = []
    tree = MenuTree.from_records([node(1), node(2, 42), node(3, 3)], reporter=seen.append)
    assert [n.id for n in tree.roots()] == [1, 2, 3]
    assert [(r.node_id, r.reason) for r in seen] == [(2, "missing"), (3, "self-referencing")]
    assert all(isinstance(r, OrphanReference) for r in tree.orphans)


def test_cycle_is_broken_at_first_member():
    seen = []
    tree = MenuTree.from_records([node(1), node(2, 3), node(3, 2)], reporter=seen.append)
    assert [n.id for n in tree.roots()] == [1, 2]
    assert [n.id for n in tree.children_of(2)] == [3]
    assert [(r.node_id, r.reason) for r in seen] == [(2, "cyclic")]


def test_failing_reporter_does_not_break_construction():
    def boom(ref):
        raise RuntimeError("reporter down")

    tree = MenuTree.from_records([node(1, 9)], reporter=boom)
    assert [n.id for n in tree.roots()] == [1]


def test_children_sorted_by_sort_order_then_source_order():
    tree = MenuTree.from_records([
        node(1),
        node(2, 1, sort_order=5),
        node(3, 1, sort_order=1),
        node(4, 1, sort_order=5),
    ])
    assert [n.id for n in tree.children_of(1)] == [3, 2, 4]


# -----------------------------
# edits
# -----------------------------
def test_validate_edit_allows_repeating_immutable_values():
    tree = MenuTree.from_records([node(1, type="group")])
    changes = tree.validate_edit(1, {"id": 1, "code": "m1", "type": "GROUP", "name": "Renamed"})
    assert changes == {"name": "Renamed"}


@pytest.mark.parametrize("patch", [{"code": "other"}, {"type": "link"}, {"id": 2}, {"code": None}])
def test_validate_edit_rejects_immutable_changes(patch):
    tree = MenuTree.from_records([node(1), node(2)])
    with pytest.raises(ImmutableFieldViolation) as exc:
        tree.validate_edit(1, patch)
    assert exc.value.detail["field"] == next(iter(patch))


def test_validate_edit_rejects_unknown_fields():
    with pytest.raises(ValueError):
        chain_tree().validate_edit(1, {"colour": "red"})


def test_validate_edit_unknown_node():
    with pytest.raises(MenuNotFound):
        chain_tree().validate_edit(99, {"name": "x"})


async def test_apply_edit_forwards_accepted_changes():
    store = FakeStore()
    result = await chain_tree().apply_edit(3, {"parent_id": "0", "sort_order": 2}, store)
    assert store.saved == [(3, {"parent_id": None, "sort_order": 2})]
    assert result["parent_id"] is None


async def test_apply_edit_rejects_cycle_before_saving():
    store = FakeStore()
    with pytest.raises(StructuralViolation):
        await chain_tree().apply_edit(1, {"parent_id": 3}, store)
    assert store.saved == []


async def test_soft_delete_and_restore():
    when = datetime(2024, 1, 2, 3, 4, 5)
    store = FakeStore()
    tree = chain_tree()
    await tree.soft_delete(2, store, when=when)
    assert store.saved == [(2, {"deleted_at": when})]

    deleted = MenuTree.from_records([node(1), node(2, 1, deleted_at=when)])
    assert await deleted.soft_delete(2, store) is None
    await deleted.restore(2, store)
    assert store.saved[-1] == (2, {"deleted_at": None})
    assert await tree.restore(2, store) is None
