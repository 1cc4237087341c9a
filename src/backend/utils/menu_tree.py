# src/backend/utils/menu_tree.py
"""
In-memory menu tree.

Menus arrive either flat (linked by parent_id) or pre-nested (children
lists). Both shapes are normalized into an id-indexed map plus a
parent -> children index; nesting and depth are derived only when a view is
presented (see menu_presenter).

The tree is a snapshot. Edits are validated here and forwarded to a store;
the snapshot itself is never mutated, callers re-load after a write.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Set,
)

from src.backend.utils.menu_errors import (
    ImmutableFieldViolation,
    MenuNotFound,
    OrphanReference,
    StructuralViolation,
)
from src.backend.utils.timezone import now_local

logger = logging.getLogger(__name__)

MENU_TYPES = ("route", "group", "link")
MENU_STATUSES = ("active", "inactive")

IMMUTABLE_FIELDS = ("id", "code", "type")
EDITABLE_FIELDS = (
    "name",
    "path",
    "api_path",
    "icon",
    "status",
    "parent_id",
    "sort_order",
    "is_public",
    "show_in_menu",
    "required_permission_id",
)

Reporter = Callable[[OrphanReference], None]

_UNSET = object()
_TRUE_STR = ("1", "true", "yes", "y", "on")


def log_orphan(ref: OrphanReference) -> None:
    """Default observability hook for dangling parent references."""
    logger.warning(
        "MENU ORPHAN node=%s parent=%s reason=%s (treated as root)",
        ref.node_id,
        ref.parent_id,
        ref.reason,
    )


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def norm_id(value: Any) -> Any:
    """
    Normalize a menu/parent id:
      - None, '', '0', 0 -> None (root marker)
      - digit strings -> int ('07' -> 7)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.isdigit():
            value = int(s)
        else:
            return s
    if isinstance(value, int) and value == 0:
        return None
    return value


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        s = value.strip().lower()
        if not s:
            return default
        return s in _TRUE_STR
    return bool(value)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass(frozen=True)
class MenuNode:
    id: Any
    code: str = ""
    name: str = ""
    path: Optional[str] = None
    api_path: Optional[str] = None
    icon: Optional[str] = None
    type: str = "route"
    status: str = "active"
    parent_id: Any = None
    sort_order: int = 0
    is_public: bool = False
    show_in_menu: bool = True
    required_permission_id: Any = None
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_record(cls, obj: Any, parent_id: Any = _UNSET) -> "MenuNode":
        """Build a node from a dict or an ORM row."""
        if parent_id is _UNSET:
            parent_id = _get(obj, "parent_id")
            if parent_id is None:
                parent = _get(obj, "parent")
                if parent is not None:
                    parent_id = _get(parent, "id")

        return cls(
            id=norm_id(_get(obj, "id")),
            code=str(_get(obj, "code") or "").strip(),
            name=str(_get(obj, "name") or "").strip(),
            path=_opt_str(_get(obj, "path")),
            api_path=_opt_str(_get(obj, "api_path")),
            icon=_opt_str(_get(obj, "icon")),
            type=str(_get(obj, "type") or "route").strip().lower(),
            status=str(_get(obj, "status") or "active").strip().lower(),
            parent_id=norm_id(parent_id),
            sort_order=_int(_get(obj, "sort_order"), 0),
            is_public=_flag(_get(obj, "is_public"), False),
            show_in_menu=_flag(_get(obj, "show_in_menu"), True),
            required_permission_id=norm_id(_get(obj, "required_permission_id")),
            deleted_at=_get(obj, "deleted_at") or None,
        )


class MenuStore(Protocol):
    """Persistence collaborator receiving accepted changes."""

    async def save(self, node_id: Any, changes: Dict[str, Any]) -> Any: ...


class MenuTree:
    def __init__(self, nodes: Iterable[MenuNode], reporter: Optional[Reporter] = None) -> None:
        self._reporter: Reporter = reporter or log_orphan
        self._nodes: Dict[Any, MenuNode] = {}
        for node in nodes:
            if node.id is None:
                logger.warning("Menu record without id skipped (code=%r)", node.code)
                continue
            if node.id in self._nodes:
                logger.warning("Duplicate menu id=%s skipped (code=%r)", node.id, node.code)
                continue
            self._nodes[node.id] = node

        self._children: Dict[Any, List[Any]] = {}
        self._roots: List[Any] = []
        self._orphans: List[OrphanReference] = []
        self._link()

    # -----------------------------
    # Construction
    # -----------------------------
    @classmethod
    def from_records(cls, records: Iterable[Any], reporter: Optional[Reporter] = None) -> "MenuTree":
        """
        Accepts flat records, pre-nested records (children lists) or a mix.
        A nested child's parent is the record it is nested in.
        """
        nodes: List[MenuNode] = []
        stack: List[tuple] = [(rec, _UNSET) for rec in reversed(list(records or []))]
        while stack:
            rec, parent_override = stack.pop()
            if rec is None:
                continue
            node = MenuNode.from_record(rec, parent_id=parent_override)
            nodes.append(node)
            children = _get(rec, "children") or []
            if isinstance(children, (list, tuple)):
                for child in reversed(children):
                    stack.append((child, node.id))
        return cls(nodes, reporter=reporter)

    def _report(self, ref: OrphanReference) -> None:
        self._orphans.append(ref)
        try:
            self._reporter(ref)
        except Exception:
            logger.exception("Menu orphan reporter failed for node=%s", ref.node_id)

    def _link(self) -> None:
        position = {nid: i for i, nid in enumerate(self._nodes)}

        def sort_key(nid: Any) -> tuple:
            return (self._nodes[nid].sort_order, position[nid])

        roots: List[Any] = []
        for nid, node in self._nodes.items():
            pid = node.parent_id
            if pid is None:
                roots.append(nid)
            elif pid == nid:
                self._report(OrphanReference(nid, pid, reason="self-referencing"))
                roots.append(nid)
            elif pid not in self._nodes:
                self._report(OrphanReference(nid, pid, reason="missing"))
                roots.append(nid)
            else:
                self._children.setdefault(pid, []).append(nid)

        for kids in self._children.values():
            kids.sort(key=sort_key)
        roots.sort(key=sort_key)

        # Cycle members are never reached from a root; break each cycle at
        # its first node in source order.
        reached = self._reach(roots)
        for nid in self._nodes:
            if nid in reached:
                continue
            self._report(OrphanReference(nid, self._nodes[nid].parent_id, reason="cyclic"))
            roots.append(nid)
            reached |= self._reach([nid])

        self._roots = roots

    def _reach(self, starts: Iterable[Any]) -> Set[Any]:
        seen: Set[Any] = set()
        stack = list(starts)
        while stack:
            nid = stack.pop()
            if nid in seen:
                continue
            seen.add(nid)
            stack.extend(self._children.get(nid, ()))
        return seen

    # -----------------------------
    # Queries
    # -----------------------------
    def __contains__(self, node_id: Any) -> bool:
        return norm_id(node_id) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[MenuNode]:
        return iter(self._nodes.values())

    def get(self, node_id: Any) -> Optional[MenuNode]:
        return self._nodes.get(norm_id(node_id))

    def node(self, node_id: Any) -> MenuNode:
        node = self.get(node_id)
        if node is None:
            raise MenuNotFound(f"Menu {node_id!r} not found.", node_id=node_id)
        return node

    def roots(self) -> List[MenuNode]:
        """Traversal roots in display order: real roots, orphans, then cycle breakers."""
        return [self._nodes[nid] for nid in self._roots]

    def children_of(self, node_id: Any) -> List[MenuNode]:
        return [self._nodes[nid] for nid in self._children.get(norm_id(node_id), ())]

    @property
    def orphans(self) -> List[OrphanReference]:
        return list(self._orphans)

    def descendants_of(self, node_id: Any) -> Set[Any]:
        """
        All ids transitively below node_id. Unknown ids have no descendants.
        Terminates on cyclic data; the node itself is never included.
        """
        start = norm_id(node_id)
        if start not in self._nodes:
            return set()

        visited: Set[Any] = {start}
        out: Set[Any] = set()
        stack = list(self._children.get(start, ()))
        while stack:
            nid = stack.pop()
            if nid in visited:
                continue
            visited.add(nid)
            out.add(nid)
            stack.extend(self._children.get(nid, ()))
        return out

    def check_parent(self, node_id: Any, candidate_parent_id: Any) -> None:
        """
        Raise StructuralViolation unless candidate_parent_id may become the
        parent of node_id. node_id=None checks placement of a brand-new node.
        """
        nid = norm_id(node_id)
        candidate = norm_id(candidate_parent_id)
        if candidate is None:
            return
        if nid is not None and candidate == nid:
            raise StructuralViolation(
                "A menu cannot be its own parent.", node_id=nid, parent_id=candidate
            )
        if candidate not in self._nodes:
            raise StructuralViolation(
                "Parent menu does not exist.", node_id=nid, parent_id=candidate
            )
        if nid is not None and candidate in self.descendants_of(nid):
            raise StructuralViolation(
                "A menu cannot be moved under one of its own sub-menus.",
                node_id=nid,
                parent_id=candidate,
            )

    def is_valid_parent(self, node_id: Any, candidate_parent_id: Any) -> bool:
        try:
            self.check_parent(node_id, candidate_parent_id)
        except StructuralViolation:
            return False
        return True

    # -----------------------------
    # Edits
    # -----------------------------
    def validate_edit(self, node_id: Any, patch: Mapping[str, Any]) -> Dict[str, Any]:
        """Return the editable changes of patch, or raise before anything is written."""
        node = self.node(node_id)

        changes: Dict[str, Any] = {}
        for key, value in patch.items():
            if key in IMMUTABLE_FIELDS:
                current = getattr(node, key)
                requested = value
                if key == "id":
                    requested = norm_id(value)
                elif isinstance(value, str):
                    requested = value.strip()
                    if key == "type":
                        requested = requested.lower()
                if requested != current:
                    raise ImmutableFieldViolation(
                        f"Menu field '{key}' cannot be changed after creation.",
                        field=key,
                        current=current,
                        requested=value,
                    )
                continue
            if key not in EDITABLE_FIELDS:
                raise ValueError(f"Unknown menu field '{key}'")
            changes[key] = value

        if "parent_id" in changes:
            changes["parent_id"] = norm_id(changes["parent_id"])
            self.check_parent(node.id, changes["parent_id"])
        return changes

    async def apply_edit(self, node_id: Any, patch: Mapping[str, Any], store: MenuStore) -> Any:
        changes = self.validate_edit(node_id, patch)
        node = self.node(node_id)
        logger.info("Menu edit accepted id=%s fields=%s", node.id, sorted(changes))
        return await store.save(node.id, changes)

    async def soft_delete(self, node_id: Any, store: MenuStore, when: Optional[datetime] = None) -> Any:
        node = self.node(node_id)
        if node.is_deleted:
            return None
        return await store.save(node.id, {"deleted_at": when or now_local()})

    async def restore(self, node_id: Any, store: MenuStore) -> Any:
        node = self.node(node_id)
        if not node.is_deleted:
            return None
        return await store.save(node.id, {"deleted_at": None})
