# src/backend/utils/menu_presenter.py
"""
Views derived from a MenuTree.

- list_reparent_candidates(): indented parent options for the menu form,
  with the edited menu and its whole subtree removed so a cycle can never
  be picked.
- resolve_visible_menu(): the navigation a caller may see.

Both walk the tree depth-first, parent before children, siblings by
sort_order (stable on source order), and never raise on malformed data.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Collection, Dict, List, Optional

from config.settings import settings
from src.backend.utils.menu_tree import MenuNode, MenuTree, norm_id

INDENT = settings.MENU_INDENT_TOKEN


@dataclass(frozen=True)
class FlatEntry:
    node: MenuNode
    depth: int


@dataclass(frozen=True)
class VisibleEntry:
    node: MenuNode
    depth: int
    visible: bool = True


@dataclass(frozen=True)
class ParentOption:
    id: Any
    display_label: str


@dataclass(frozen=True)
class VisibilityOptions:
    # Admin editing view: hidden and inactive menus are listed too.
    management: bool = False


def flatten(
    tree: MenuTree,
    include: Optional[Callable[[MenuNode], bool]] = None,
) -> List[FlatEntry]:
    """
    Depth-first flattening. A node rejected by include() is dropped together
    with its whole subtree. Each node is emitted at most once.
    """
    out: List[FlatEntry] = []
    visited = set()
    stack = [(node, 0) for node in reversed(tree.roots())]
    while stack:
        node, depth = stack.pop()
        if node.id in visited:
            continue
        visited.add(node.id)
        if include is not None and not include(node):
            continue
        out.append(FlatEntry(node=node, depth=depth))
        for child in reversed(tree.children_of(node.id)):
            if child.id not in visited:
                stack.append((child, depth + 1))
    return out


def list_reparent_candidates(
    tree: MenuTree,
    editing_node_id: Any = None,
    indent: str = INDENT,
) -> List[ParentOption]:
    """
    Parent options for the menu form. Root placement is not part of the list;
    the form offers it as its own empty choice. Deleted menus are not offered,
    nor is anything below them.
    """
    editing = norm_id(editing_node_id)
    excluded = set()
    if editing is not None:
        excluded = tree.descendants_of(editing)
        excluded.add(editing)

    entries = flatten(tree, include=lambda n: n.id not in excluded and not n.is_deleted)
    return [
        ParentOption(id=e.node.id, display_label=f"{indent * e.depth}{e.node.name}")
        for e in entries
    ]


def is_visible(
    node: MenuNode,
    caller_permissions: Collection[Any],
    management: bool = False,
) -> bool:
    if node.is_deleted:
        return False
    if not management:
        if not node.is_active:
            return False
        if not node.show_in_menu:
            return False
    if node.is_public or node.required_permission_id is None:
        return True
    return node.required_permission_id in caller_permissions


def resolve_visible_menu(
    tree: MenuTree,
    caller_permissions: Optional[Collection[Any]] = None,
    options: Optional[VisibilityOptions] = None,
) -> List[VisibleEntry]:
    """
    Visible navigation for a caller. A hidden menu hides its whole subtree;
    children are not promoted to the grandparent.
    """
    perms = frozenset(caller_permissions or ())
    opts = options or VisibilityOptions()
    entries = flatten(tree, include=lambda n: is_visible(n, perms, opts.management))
    return [VisibleEntry(node=e.node, depth=e.depth) for e in entries]


def node_to_dict(node: MenuNode) -> Dict[str, Any]:
    return {
        "id": node.id,
        "code": node.code,
        "name": node.name,
        "path": node.path,
        "api_path": node.api_path,
        "icon": node.icon,
        "type": node.type,
        "status": node.status,
        "parent_id": node.parent_id,
        "sort_order": node.sort_order,
        "is_public": node.is_public,
        "show_in_menu": node.show_in_menu,
        "required_permission_id": node.required_permission_id,
        "deleted_at": node.deleted_at.isoformat() if hasattr(node.deleted_at, "isoformat") else node.deleted_at,
    }


def nest(entries: List[Any]) -> List[Dict[str, Any]]:
    """
    Rebuild nested dicts from a depth-annotated flat list (FlatEntry or
    VisibleEntry). Relies on the parent-before-children order of flatten().
    """
    roots: List[Dict[str, Any]] = []
    chain: List[Dict[str, Any]] = []
    for item in flat_dicts(entries):
        item["children"] = []
        depth = min(item["depth"], len(chain))
        del chain[depth:]
        if chain:
            chain[-1]["children"].append(item)
        else:
            roots.append(item)
        chain.append(item)
    return roots


def flat_dicts(entries: List[Any]) -> List[Dict[str, Any]]:
    """Flat JSON-ready rows with their depth, in display order."""
    out = []
    for e in entries:
        item = node_to_dict(e.node)
        item["depth"] = e.depth
        out.append(item)
    return out
