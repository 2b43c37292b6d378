"""
Editor session binding one project to its tree editor, history and generator.

Every undoable edit validates its arguments first, records a history snapshot
and only then mutates the project. A rejected edit raises (or returns False)
without touching either the project or the history.
"""

import logging
from typing import Any, Dict, Optional, Union

from .code_generator import ModuleCodeGenerator
from .config import EditorSettings
from .definitions import DefinitionRegistry, default_registry
from .exceptions import InvalidEditError, PropertyError
from .history import HistoryManager
from .models import (
    Project, Property, EventNode, ElementNode, EventKind, LogicOperator, PropertyType,
    LIFECYCLE_EVENTS, CONDITIONS, normalize_property_name,
)
from .persistence import project_to_document, project_from_document
from .tree_editor import TreeEditor


_PROPERTY_FIELDS = ('type', 'default_value', 'exposed', 'serialized', 'description', 'style', 'options')


class EventSheetSession:
    """One open event sheet."""

    def __init__(self, project: Optional[Project] = None,
                 registry: Optional[DefinitionRegistry] = None,
                 settings: Optional[EditorSettings] = None):
        self.settings = settings or EditorSettings()
        self.registry = registry or default_registry()
        self.project = project or Project()
        self.editor = TreeEditor(self.project, self.registry)
        self.history = HistoryManager(self.project, self.settings.max_undo_steps)
        self.generator = ModuleCodeGenerator(self.registry, self.settings)
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_node(self, node_id: str) -> Optional[Union[EventNode, ElementNode]]:
        return self.editor.find_by_id(node_id)

    def get_event(self, event_id: str) -> EventNode:
        for event in self.project.events:
            if event.id == event_id:
                return event
        raise InvalidEditError(f"No event with id {event_id}")

    def get_element(self, node_id: str) -> ElementNode:
        node = self.editor.find_by_id(node_id)
        if not isinstance(node, ElementNode):
            raise InvalidEditError(f"No element with id {node_id}")
        return node

    def get_parent(self, parent_id: str) -> Union[EventNode, ElementNode]:
        node = self.editor.find_by_id(parent_id)
        if node is None:
            raise InvalidEditError(f"No event or element with id {parent_id}")
        return node

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _check_event_name(self, name: str, kind: EventKind):
        if kind is EventKind.LIFECYCLE and name not in LIFECYCLE_EVENTS:
            raise InvalidEditError(f"Unknown lifecycle event: {name}")
        if kind is EventKind.CUSTOM and not (name or '').strip():
            raise InvalidEditError("Custom events need a method name")

    def add_event(self, name: str = 'start', kind: EventKind = EventKind.LIFECYCLE,
                  params: str = '', index: Optional[int] = None) -> EventNode:
        """Add an event; lifecycle names must be known, custom names non-empty."""
        kind = EventKind(kind)
        self._check_event_name(name, kind)
        self.history.commit()
        event = self.editor.add_event(name.strip() if kind is EventKind.CUSTOM else name,
                                      kind, params, index)
        self.logger.debug(f"Added event {event.name} ({event.id})")
        return event

    def remove_event(self, index: int) -> EventNode:
        if not 0 <= index < len(self.project.events):
            raise InvalidEditError(f"No event at index {index}")
        self.history.commit()
        return self.editor.remove_event(index)

    def move_event(self, from_index: int, to_index: int) -> bool:
        if not 0 <= from_index < len(self.project.events):
            return False
        self.history.commit()
        return self.editor.move_event(from_index, to_index)

    def rename_event(self, event_id: str, name: str) -> EventNode:
        event = self.get_event(event_id)
        self._check_event_name(name, event.kind)
        self.history.commit()
        event.name = name.strip() if event.kind is EventKind.CUSTOM else name
        return event

    def set_event_kind(self, event_id: str, kind: EventKind, name: Optional[str] = None) -> EventNode:
        """Switch an event between lifecycle and custom, optionally renaming it."""
        event = self.get_event(event_id)
        kind = EventKind(kind)
        if name is None:
            name = event.name if kind is EventKind.CUSTOM or event.name in LIFECYCLE_EVENTS else 'start'
        self._check_event_name(name, kind)
        self.history.commit()
        event.kind = kind
        event.name = name.strip() if kind is EventKind.CUSTOM else name
        if kind is EventKind.LIFECYCLE:
            event.params = ''
        return event

    def set_event_params(self, event_id: str, params: str) -> EventNode:
        event = self.get_event(event_id)
        if event.kind is not EventKind.CUSTOM:
            raise InvalidEditError(f"Lifecycle event {event.name} has a fixed signature")
        self.history.commit()
        event.params = params or ''
        return event

    def set_logic_operator(self, node_id: str, operator: Union[str, LogicOperator]) -> LogicOperator:
        """Set the join of an event's or element's direct simple conditions."""
        node = self.get_parent(node_id)
        if isinstance(node, ElementNode) and not self.editor.can_hold(node, CONDITIONS):
            raise InvalidEditError(f"{node.type} has no conditions to join", array_name=CONDITIONS)
        operator = LogicOperator.parse(operator)
        self.history.commit()
        node.logic_operator = operator
        return operator

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def add_element(self, parent_id: str, array_name: str, type_name: str,
                    index: Optional[int] = None, params: Optional[Dict[str, Any]] = None) -> ElementNode:
        """Create a node of ``type_name`` and insert it under ``parent_id``."""
        parent = self.get_parent(parent_id)
        node = self.registry.create_node(type_name)
        if params:
            node.params.update(params)
        if not self.editor.can_place(parent, array_name, node):
            raise InvalidEditError(f"{type_name} cannot be placed in {array_name} of {parent_id}",
                                   array_name=array_name)
        self.history.commit()
        self.editor.insert(parent, array_name, node, index)
        return node

    def move_element(self, node_id: str, to_parent_id: str, to_array: str,
                     target_index: Optional[int] = None) -> bool:
        """Move an element by id; False leaves project and history untouched."""
        located = self.editor.locate_by_id(node_id)
        to_parent = self.editor.find_by_id(to_parent_id)
        if located is None or to_parent is None:
            self.logger.warning(f"Rejected move of {node_id}: unknown node or target")
            return False
        node, location = located
        reason = self.editor.check_move(node, location.parent, location.array_name, to_parent, to_array)
        if reason is not None:
            self.logger.warning(f"Rejected move of {node_id}: {reason}")
            return False
        self.history.commit()
        return self.editor.move(node, location.parent, location.array_name,
                                to_parent, to_array, target_index)

    def delete_element(self, node_id: str) -> bool:
        located = self.editor.locate_by_id(node_id)
        if located is None:
            return False
        _, location = located
        self.history.commit()
        self.editor.delete(location.parent, location.array_name, location.index)
        return True

    def update_element_params(self, node_id: str, params: Dict[str, Any]) -> ElementNode:
        """Merge ``params`` into an element's parameters."""
        node = self.get_element(node_id)
        self.history.commit()
        node.params.update(params)
        return node

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def _property_name(self, raw: str, current: Optional[str] = None) -> str:
        name = normalize_property_name(raw)
        if not name:
            raise PropertyError(f"Invalid property name: {raw!r}", property_name=raw)
        if name != current and self.project.get_property(name) is not None:
            raise PropertyError(f"Property {name} already exists", property_name=name)
        return name

    def add_property(self, name: str, type: Union[str, PropertyType] = PropertyType.NUMBER,
                     default_value: Any = 0, **fields) -> Property:
        """Declare a module property; the name is normalized first."""
        name = self._property_name(name)
        prop = Property(name=name, type=PropertyType(type), default_value=default_value)
        for key, value in fields.items():
            if key not in _PROPERTY_FIELDS:
                raise PropertyError(f"Unknown property field: {key}", property_name=name)
            setattr(prop, key, value)
        self.history.commit()
        self.project.properties.append(prop)
        return prop

    def update_property(self, property_name: str, **changes) -> Property:
        """Change fields of a property; a ``name`` change is normalized and must stay unique."""
        prop = self.project.get_property(property_name)
        if prop is None:
            raise PropertyError(f"No property named {property_name}", property_name=property_name)
        new_name = property_name
        if 'name' in changes:
            new_name = self._property_name(changes.pop('name'), current=property_name)
        for key in changes:
            if key not in _PROPERTY_FIELDS:
                raise PropertyError(f"Unknown property field: {key}", property_name=property_name)
        if 'type' in changes:
            changes['type'] = PropertyType(changes['type'])
        self.history.commit()
        prop.name = new_name
        for key, value in changes.items():
            setattr(prop, key, value)
        return prop

    def remove_property(self, name: str) -> Property:
        prop = self.project.get_property(name)
        if prop is None:
            raise PropertyError(f"No property named {name}", property_name=name)
        self.history.commit()
        self.project.properties.remove(prop)
        return prop

    def set_project_info(self, name: Optional[str] = None, namespace: Optional[str] = None,
                         description: Optional[str] = None):
        self.history.commit()
        if name is not None:
            self.project.name = name
        if namespace is not None:
            self.project.namespace = namespace
        if description is not None:
            self.project.description = description

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # ------------------------------------------------------------------
    # Documents and code
    # ------------------------------------------------------------------

    def generate_code(self, format_code: Optional[bool] = None) -> str:
        return self.generator.generate(self.project, format_code)

    def validate_code(self) -> Dict[str, Any]:
        return self.generator.validate_generated_code(self.generate_code())

    def to_document(self) -> Dict[str, Any]:
        return project_to_document(self.project)

    def _install(self, project: Project):
        self.project.name = project.name
        self.project.namespace = project.namespace
        self.project.description = project.description
        self.project.properties = project.properties
        self.project.events = project.events
        self.history.clear()

    def load_document(self, document: Dict[str, Any]) -> Project:
        """Replace the open project; raises ProjectLoadError and keeps the old one on failure."""
        project = project_from_document(document)
        self._install(project)
        self.logger.info(f"Loaded project {project.name!r} with {len(project.events)} events")
        return self.project

    def new_project(self) -> Project:
        self._install(Project())
        return self.project
