"""
Core data models for the Event Sheet.

This module defines the tree the user edits: a project holding properties and
events, where every event owns condition and action elements that may nest
further conditions, actions and else-actions.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional
from enum import Enum
import json
import re
import uuid


class ValidationError(Exception):
    """Exception raised when project validation fails."""
    pass


class LogicOperator(Enum):
    """Boolean join applied to the direct simple conditions of a node."""
    AND = "AND"
    OR = "OR"

    @property
    def symbol(self) -> str:
        return '&&' if self is LogicOperator.AND else '||'

    @classmethod
    def parse(cls, value: Any) -> 'LogicOperator':
        if isinstance(value, LogicOperator):
            return value
        if isinstance(value, str) and value.upper() == "OR":
            return cls.OR
        return cls.AND


class EventKind(Enum):
    """Kinds of top-level events."""
    LIFECYCLE = "lifecycle"
    CUSTOM = "custom"


class PropertyType(Enum):
    """Types a module property can declare."""
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    COLOR = "color"
    ENUM = "enum"


LIFECYCLE_EVENTS = (
    'start', 'loop', 'draw', 'onDestroy', 'preload',
    'beginLoop', 'endLoop', 'melodicode',
)
DELTA_TIME_EVENTS = ('loop', 'beginLoop', 'endLoop')
MELODICODE_EVENT = 'melodicode'

# Array names as they appear in persisted documents
CONDITIONS = 'conditions'
ACTIONS = 'actions'
ELSE_ACTIONS = 'elseActions'
ARRAY_NAMES = (CONDITIONS, ACTIONS, ELSE_ACTIONS)

_ARRAY_ATTRIBUTES = {
    CONDITIONS: 'conditions',
    ACTIONS: 'actions',
    ELSE_ACTIONS: 'else_actions',
}


def array_attribute(array_name: str) -> str:
    """Map a persisted array name to the model attribute holding it."""
    try:
        return _ARRAY_ATTRIBUTES[array_name]
    except KeyError:
        raise ValueError(f"Unknown array name: {array_name}") from None


def generate_id() -> str:
    """Return a fresh node id."""
    return 'id_' + uuid.uuid4().hex[:9]


def normalize_property_name(raw: str) -> str:
    """Normalize free text into a single-word camelCase identifier.

    ``"Move Speed"`` becomes ``moveSpeed``; characters that cannot appear in an
    identifier are dropped and a leading digit is prefixed with ``_``.
    """
    words = [re.sub(r'[^0-9A-Za-z_$]', '', word) for word in (raw or '').split()]
    words = [word for word in words if word]
    if not words:
        return ''
    first = words[0][0].lower() + words[0][1:]
    rest = ''.join(word[0].upper() + word[1:] for word in words[1:])
    name = first + rest
    if name[0].isdigit():
        name = '_' + name
    return name


def _clone_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _clone_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_clone_value(item) for item in value]
    return value


@dataclass
class Property:
    """A module property declared on the project."""
    name: str
    type: PropertyType = PropertyType.NUMBER
    default_value: Any = 0
    exposed: bool = True
    serialized: bool = True
    description: str = ""
    style: Dict[str, Any] = field(default_factory=dict)
    options: List[str] = field(default_factory=list)

    @property
    def group(self) -> str:
        """Inspector group tag, empty when the property is ungrouped."""
        return str(self.style.get('group') or '')

    def coerce_default(self) -> Any:
        """Return the default value converted to the declared type."""
        value = self.default_value
        if self.type is PropertyType.NUMBER:
            if isinstance(value, bool):
                return int(value)
            if isinstance(value, (int, float)):
                return value
            try:
                number = float(str(value).strip())
            except ValueError:
                return 0
            return int(number) if number.is_integer() else number
        if self.type is PropertyType.BOOLEAN:
            if isinstance(value, str):
                return value.strip().lower() == 'true'
            return bool(value)
        if self.type in (PropertyType.OBJECT, PropertyType.ARRAY):
            expected = dict if self.type is PropertyType.OBJECT else list
            if isinstance(value, str):
                try:
                    value = json.loads(value) if value.strip() else expected()
                except ValueError:
                    return expected()
            return _clone_value(value) if isinstance(value, expected) else expected()
        if value is None:
            return self.options[0] if self.type is PropertyType.ENUM and self.options else ""
        return str(value)

    def clone(self) -> 'Property':
        return Property(
            name=self.name,
            type=self.type,
            default_value=_clone_value(self.default_value),
            exposed=self.exposed,
            serialized=self.serialized,
            description=self.description,
            style=_clone_value(self.style),
            options=list(self.options),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type.value,
            'defaultValue': _clone_value(self.default_value),
            'exposed': self.exposed,
            'serialized': self.serialized,
            'description': self.description,
            'style': _clone_value(self.style),
            'options': list(self.options),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Property':
        try:
            prop_type = PropertyType(data.get('type', 'number'))
        except ValueError:
            prop_type = PropertyType.STRING
        return cls(
            name=normalize_property_name(str(data.get('name', ''))),
            type=prop_type,
            default_value=_clone_value(data.get('defaultValue')),
            exposed=bool(data.get('exposed', True)),
            serialized=bool(data.get('serialized', True)),
            description=str(data.get('description') or ''),
            style=_clone_value(data.get('style') or {}),
            options=[str(option) for option in data.get('options') or []],
        )


@dataclass(eq=False)
class ElementNode:
    """A condition or action placed in the tree.

    ``type`` indexes into the definition registry. The nested arrays stay
    ``None`` until the editor first touches them.
    """
    type: str
    params: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=generate_id)
    conditions: Optional[List['ElementNode']] = None
    actions: Optional[List['ElementNode']] = None
    else_actions: Optional[List['ElementNode']] = None
    logic_operator: LogicOperator = LogicOperator.AND

    def children(self) -> List['ElementNode']:
        """All direct children across the nested arrays."""
        result = []
        for nested in (self.conditions, self.actions, self.else_actions):
            if nested:
                result.extend(nested)
        return result

    def clone(self) -> 'ElementNode':
        return ElementNode(
            type=self.type,
            params=_clone_value(self.params),
            id=self.id,
            conditions=_clone_nodes(self.conditions),
            actions=_clone_nodes(self.actions),
            else_actions=_clone_nodes(self.else_actions),
            logic_operator=self.logic_operator,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'type': self.type,
            'params': _clone_value(self.params),
        }
        if self.conditions is not None:
            data[CONDITIONS] = [child.to_dict() for child in self.conditions]
            data['logicOperator'] = self.logic_operator.value
        if self.actions is not None:
            data[ACTIONS] = [child.to_dict() for child in self.actions]
        if self.else_actions is not None:
            data[ELSE_ACTIONS] = [child.to_dict() for child in self.else_actions]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ElementNode':
        def nested(key):
            items = data.get(key)
            if items is None:
                return None
            return [cls.from_dict(item) for item in items]

        return cls(
            type=str(data.get('type', '')),
            params=_clone_value(data.get('params') or {}),
            id=str(data.get('id') or generate_id()),
            conditions=nested(CONDITIONS),
            actions=nested(ACTIONS),
            else_actions=nested(ELSE_ACTIONS),
            logic_operator=LogicOperator.parse(data.get('logicOperator')),
        )


def _clone_nodes(nodes: Optional[List[ElementNode]]) -> Optional[List[ElementNode]]:
    if nodes is None:
        return None
    return [node.clone() for node in nodes]


@dataclass(eq=False)
class EventNode:
    """A top-level event compiled into one method of the generated class."""
    name: str = 'start'
    kind: EventKind = EventKind.LIFECYCLE
    params: str = ""
    id: str = field(default_factory=generate_id)
    conditions: List[ElementNode] = field(default_factory=list)
    actions: List[ElementNode] = field(default_factory=list)
    logic_operator: LogicOperator = LogicOperator.AND

    @property
    def is_melodicode(self) -> bool:
        return self.kind is EventKind.LIFECYCLE and self.name == MELODICODE_EVENT

    def children(self) -> List[ElementNode]:
        return list(self.conditions) + list(self.actions)

    def clone(self) -> 'EventNode':
        return EventNode(
            name=self.name,
            kind=self.kind,
            params=self.params,
            id=self.id,
            conditions=[node.clone() for node in self.conditions],
            actions=[node.clone() for node in self.actions],
            logic_operator=self.logic_operator,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'type': 'event',
            'kind': self.kind.value,
            'name': self.name,
            'params': self.params,
            'logicOperator': self.logic_operator.value,
            CONDITIONS: [node.to_dict() for node in self.conditions],
            ACTIONS: [node.to_dict() for node in self.actions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EventNode':
        name = str(data.get('name') or 'start')
        try:
            kind = EventKind(data.get('kind') or EventKind.LIFECYCLE.value)
        except ValueError:
            kind = EventKind.LIFECYCLE
        if kind is EventKind.LIFECYCLE and name not in LIFECYCLE_EVENTS:
            kind = EventKind.CUSTOM
        return cls(
            name=name,
            kind=kind,
            params=str(data.get('params') or ''),
            id=str(data.get('id') or generate_id()),
            conditions=[ElementNode.from_dict(item) for item in data.get(CONDITIONS) or []],
            actions=[ElementNode.from_dict(item) for item in data.get(ACTIONS) or []],
            logic_operator=LogicOperator.parse(data.get('logicOperator')),
        )


@dataclass
class Project:
    """Root of the event sheet: module metadata, properties and events."""
    name: str = "NewModule"
    namespace: str = "Custom"
    description: str = "Generated from Event Sheet"
    properties: List[Property] = field(default_factory=list)
    events: List[EventNode] = field(default_factory=list)

    @property
    def class_name(self) -> str:
        """Identifier used for the generated class."""
        name = re.sub(r'[^0-9A-Za-z_$]', '', re.sub(r'\s+', '', self.name or ''))
        if not name:
            return "NewModule"
        if name[0].isdigit():
            name = '_' + name
        return name

    def get_property(self, name: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def validate(self) -> List[ValidationError]:
        """Validate the project and return any errors."""
        errors = []

        names = [prop.name for prop in self.properties]
        for name in sorted(set(names)):
            if names.count(name) > 1:
                errors.append(ValidationError(f"Duplicate property name: {name}"))
        for prop in self.properties:
            if not prop.name:
                errors.append(ValidationError("Property with empty name"))

        seen_ids = set()
        stack: List[Any] = list(self.events)
        while stack:
            node = stack.pop()
            if node.id in seen_ids:
                errors.append(ValidationError(f"Duplicate node id: {node.id}"))
            seen_ids.add(node.id)
            stack.extend(node.children())

        for event in self.events:
            if event.kind is EventKind.LIFECYCLE and event.name not in LIFECYCLE_EVENTS:
                errors.append(ValidationError(f"Unknown lifecycle event: {event.name}"))
            if event.kind is EventKind.CUSTOM and not event.name.strip():
                errors.append(ValidationError("Custom event without a method name"))

        return errors
