"""
Tree Editor for structural edits of the event sheet.

Nodes are addressed by object identity: callers hold a reference to a node
and the editor finds where it lives. Moves are validated up front and either
happen completely or not at all.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Union

from .definitions import Catalog, DefinitionRegistry
from .exceptions import InvalidEditError
from .models import (
    Project, EventNode, ElementNode, EventKind,
    CONDITIONS, ACTIONS, ELSE_ACTIONS, ARRAY_NAMES, array_attribute,
)


Parent = Union[EventNode, ElementNode]

_ACTION_FAMILY = (ACTIONS, ELSE_ACTIONS)


def array_family(array_name: str) -> str:
    """Actions and else-actions share a family; conditions are their own."""
    return ACTIONS if array_name in _ACTION_FAMILY else array_name


@dataclass
class NodeLocation:
    """Where a node lives: its parent, the parent's array and the index."""
    parent: Parent
    array_name: str
    index: int


class TreeEditor:
    """Structural mutations of a project's event tree."""

    def __init__(self, project: Project, registry: DefinitionRegistry):
        self.project = project
        self.registry = registry
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Arrays
    # ------------------------------------------------------------------

    def can_hold(self, parent: Parent, array_name: str) -> bool:
        """Whether ``parent`` may own the named array."""
        if array_name not in ARRAY_NAMES:
            return False
        if isinstance(parent, EventNode):
            return array_name in (CONDITIONS, ACTIONS)
        definition = self.registry.get_definition(parent.type)
        if definition is None:
            return False
        return definition.holds(array_name)

    def accepts(self, array_name: str, node: ElementNode) -> bool:
        """Whether a node's kind fits the named array.

        Condition arrays take condition kinds only. Action arrays take
        actions plus condition blocks (If, And, Or). Unknown kinds are left
        where they are found and may be moved freely.
        """
        definition = self.registry.get_definition(node.type)
        if definition is None:
            return True
        if array_name == CONDITIONS:
            return definition.catalog is Catalog.CONDITION
        return definition.catalog is Catalog.ACTION or definition.supports_nested

    def can_place(self, parent: Parent, array_name: str, node: ElementNode) -> bool:
        return self.can_hold(parent, array_name) and self.accepts(array_name, node)

    def get_array(self, parent: Parent, array_name: str, create: bool = False) -> Optional[List[ElementNode]]:
        """Return ``parent``'s array, lazily creating it when asked."""
        attribute = array_attribute(array_name)
        if not hasattr(parent, attribute):
            return None
        items = getattr(parent, attribute)
        if items is None and create:
            items = []
            setattr(parent, attribute, items)
        return items

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def iter_nodes(self) -> Iterator[Tuple[ElementNode, Parent, str]]:
        """Depth-first walk yielding ``(node, parent, array_name)``."""
        for event in self.project.events:
            yield from self._walk(event)

    def _walk(self, parent: Parent) -> Iterator[Tuple[ElementNode, Parent, str]]:
        for array_name in ARRAY_NAMES:
            for node in list(self.get_array(parent, array_name) or []):
                yield node, parent, array_name
                yield from self._walk(node)

    def find_owner(self, node: ElementNode) -> Optional[NodeLocation]:
        """Locate a node by identity anywhere in the tree."""
        for event in self.project.events:
            location = self._find_in(event, node)
            if location is not None:
                return location
        return None

    def _find_in(self, parent: Parent, target: ElementNode) -> Optional[NodeLocation]:
        for array_name in ARRAY_NAMES:
            items = self.get_array(parent, array_name) or []
            for index, child in enumerate(items):
                if child is target:
                    return NodeLocation(parent, array_name, index)
            for child in items:
                location = self._find_in(child, target)
                if location is not None:
                    return location
        return None

    def find_by_id(self, node_id: str) -> Optional[Parent]:
        """Find an event or element by its id."""
        for event in self.project.events:
            if event.id == node_id:
                return event
        for node, _, _ in self.iter_nodes():
            if node.id == node_id:
                return node
        return None

    def locate_by_id(self, node_id: str) -> Optional[Tuple[ElementNode, NodeLocation]]:
        node = self.find_by_id(node_id)
        if not isinstance(node, ElementNode):
            return None
        location = self.find_owner(node)
        if location is None:
            return None
        return node, location

    def contains(self, ancestor: Parent, target: Parent) -> bool:
        """True if ``target`` sits anywhere inside ``ancestor``'s subtree."""
        stack = list(ancestor.children())
        while stack:
            current = stack.pop()
            if current is target:
                return True
            stack.extend(current.children())
        return False

    # ------------------------------------------------------------------
    # Insert / delete
    # ------------------------------------------------------------------

    def insert(self, parent: Parent, array_name: str, node: ElementNode,
               index: Optional[int] = None) -> int:
        """Insert a node, appending when ``index`` is None. Returns the index used."""
        if not self.can_hold(parent, array_name):
            raise InvalidEditError(f"{_describe(parent)} cannot hold {array_name}", array_name=array_name)
        if not self.accepts(array_name, node):
            raise InvalidEditError(f"{node.type} does not belong in {array_name}", array_name=array_name)
        if node is parent or self.contains(node, parent):
            raise InvalidEditError("A node cannot be inserted into itself", array_name=array_name)
        items = self.get_array(parent, array_name, create=True)
        index = len(items) if index is None else max(0, min(index, len(items)))
        items.insert(index, node)
        return index

    def delete(self, parent: Parent, array_name: str, index: int) -> ElementNode:
        """Remove exactly one node from ``parent[array_name]``."""
        items = self.get_array(parent, array_name) or []
        if not 0 <= index < len(items):
            raise InvalidEditError(f"No node at {array_name}[{index}] of {_describe(parent)}",
                                   array_name=array_name)
        return items.pop(index)

    def delete_node(self, node: ElementNode) -> bool:
        location = self.find_owner(node)
        if location is None:
            return False
        self.delete(location.parent, location.array_name, location.index)
        return True

    # ------------------------------------------------------------------
    # Move
    # ------------------------------------------------------------------

    def check_move(self, node: ElementNode, from_parent: Parent, from_array: str,
                   to_parent: Parent, to_array: str) -> Optional[str]:
        """Return why a move would be rejected, or None when it is allowed."""
        if from_array not in ARRAY_NAMES or to_array not in ARRAY_NAMES:
            return "unknown array name"
        source = self.get_array(from_parent, from_array) or []
        if not any(item is node for item in source):
            return f"node {node.id} is not in {from_array} of {_describe(from_parent)}"
        if array_family(from_array) != array_family(to_array):
            return f"cannot move from {from_array} to {to_array}"
        if not self.can_hold(to_parent, to_array):
            return f"{_describe(to_parent)} cannot hold {to_array}"
        if not self.accepts(to_array, node):
            return f"{node.type} does not belong in {to_array}"
        if to_parent is node or self.contains(node, to_parent):
            return "cannot move a block into itself or its children"
        return None

    def move(self, node: ElementNode, from_parent: Parent, from_array: str,
             to_parent: Parent, to_array: str, target_index: Optional[int] = None) -> bool:
        """Move a node; returns False and leaves the tree untouched on rejection."""
        reason = self.check_move(node, from_parent, from_array, to_parent, to_array)
        if reason is not None:
            self.logger.warning(f"Rejected move of {node.id}: {reason}")
            return False

        source = self.get_array(from_parent, from_array)
        from_index = next(i for i, item in enumerate(source) if item is node)
        source.pop(from_index)

        destination = self.get_array(to_parent, to_array, create=True)
        if target_index is None:
            target_index = len(destination)
        elif destination is source and from_index < target_index:
            target_index -= 1
        target_index = max(0, min(target_index, len(destination)))
        destination.insert(target_index, node)
        return True

    def move_node(self, node: ElementNode, to_parent: Parent, to_array: str,
                  target_index: Optional[int] = None) -> bool:
        """Move a node found by identity."""
        location = self.find_owner(node)
        if location is None:
            self.logger.warning(f"Rejected move of {node.id}: node is not in the tree")
            return False
        return self.move(node, location.parent, location.array_name, to_parent, to_array, target_index)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def add_event(self, name: str = 'start', kind: EventKind = EventKind.LIFECYCLE,
                  params: str = '', index: Optional[int] = None) -> EventNode:
        event = EventNode(name=name, kind=kind, params=params)
        events = self.project.events
        index = len(events) if index is None else max(0, min(index, len(events)))
        events.insert(index, event)
        return event

    def remove_event(self, index: int) -> EventNode:
        if not 0 <= index < len(self.project.events):
            raise InvalidEditError(f"No event at index {index}")
        return self.project.events.pop(index)

    def move_event(self, from_index: int, to_index: int) -> bool:
        events = self.project.events
        if not 0 <= from_index < len(events):
            return False
        event = events.pop(from_index)
        if from_index < to_index:
            to_index -= 1
        events.insert(max(0, min(to_index, len(events))), event)
        return True


def _describe(parent: Parent) -> str:
    if isinstance(parent, EventNode):
        return f"event {parent.name!r}"
    return f"{parent.type} {parent.id}"
