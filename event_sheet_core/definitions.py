"""
Definition Registry for condition and action kinds.

A definition is pure data: the parameter schema of one kind, the structural
flags the editor checks, the ``EmitKind`` the emitter dispatches on and the
code template of leaf kinds. Both catalogs share one key space, so a node's
definition is found by its ``type`` alone no matter which array holds it.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum

from .exceptions import DefinitionError
from .models import ElementNode, CONDITIONS, ACTIONS, ELSE_ACTIONS


class Catalog(Enum):
    """Which palette a definition is listed in."""
    CONDITION = "condition"
    ACTION = "action"


class EmitKind(Enum):
    """Code shapes the emitter knows how to produce."""
    EXPRESSION = "expression"        # boolean expression, joined into an if
    STATEMENT = "statement"          # one or more statement lines
    IF = "if"                        # if / else with nested conditions and actions
    BOOLEAN_GROUP = "boolean_group"  # if with a fixed && or || join, no else
    BLOCK = "block"                  # bare { ... } scope
    FOR = "for"
    WHILE = "while"
    MELODIC = "melodic"              # line appended to the MelodiCode script


@dataclass(frozen=True)
class InputSpec:
    """One parameter of a definition."""
    name: str
    type: str = "string"
    label: str = ""
    default: Any = None
    description: str = ""
    options: Tuple[str, ...] = ()
    when_true: str = ""
    when_false: str = ""

    def default_value(self) -> Any:
        if self.type == 'boolean':
            return bool(self.default) if self.default is not None else False
        if self.type == 'number':
            return self.default if self.default is not None else 0
        return self.default if self.default is not None else ''

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'type': self.type,
            'label': self.label or self.name,
            'default': self.default_value(),
            'description': self.description,
        }
        if self.options:
            data['options'] = list(self.options)
        return data


@dataclass(frozen=True)
class Definition:
    """Static schema and code template of one condition or action kind."""
    type: str
    name: str
    catalog: Catalog
    emit: EmitKind
    category: str = "General"
    description: str = ""
    inputs: Tuple[InputSpec, ...] = ()
    supports_nested: bool = False
    supports_nested_conditions: bool = False
    supports_nested_actions: bool = False
    supports_else: bool = False
    template: str = ""
    variant_input: Optional[str] = None
    variants: Tuple[Tuple[str, str], ...] = ()
    operator: Optional[str] = None

    def get_input(self, name: str) -> Optional[InputSpec]:
        for spec in self.inputs:
            if spec.name == name:
                return spec
        return None

    def default_params(self) -> Dict[str, Any]:
        return {spec.name: spec.default_value() for spec in self.inputs}

    def holds(self, array_name: str) -> bool:
        """Whether nodes of this kind may own the named array."""
        if array_name == CONDITIONS:
            return self.supports_nested_conditions
        if array_name == ACTIONS:
            return self.supports_nested_actions
        if array_name == ELSE_ACTIONS:
            return self.supports_else
        return False

    def template_for(self, params: Dict[str, Any]) -> str:
        """Pick the template, honouring a variant chosen by one input."""
        if self.variant_input and self.variants:
            selected = params.get(self.variant_input)
            spec = self.get_input(self.variant_input)
            if selected in (None, '') and spec is not None:
                selected = spec.default_value()
            for key, template in self.variants:
                if key == selected:
                    return template
        return self.template

    def create_instance(self) -> ElementNode:
        """Create a new node of this kind with default params."""
        return ElementNode(
            type=self.type,
            params=self.default_params(),
            conditions=[] if self.supports_nested_conditions else None,
            actions=[] if self.supports_nested_actions else None,
            else_actions=[] if self.supports_else else None,
        )

    def matches_search(self, query: str) -> bool:
        query_lower = query.lower()
        return (
            query_lower in self.name.lower() or
            query_lower in self.type.lower() or
            query_lower in self.description.lower() or
            query_lower in self.category.lower()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'name': self.name,
            'catalog': self.catalog.value,
            'category': self.category,
            'description': self.description,
            'inputs': [spec.to_dict() for spec in self.inputs],
            'supportsNested': self.supports_nested,
            'supportsNestedConditions': self.supports_nested_conditions,
            'supportsNestedActions': self.supports_nested_actions,
            'supportsElse': self.supports_else,
        }


class DefinitionRegistry:
    """Holds the condition and action catalogs in one namespaced key space."""

    def __init__(self, conditions: Optional[List[Definition]] = None,
                 actions: Optional[List[Definition]] = None):
        self._definitions: Dict[str, Definition] = {}
        self._conditions: List[Definition] = []
        self._actions: List[Definition] = []
        for definition in conditions or []:
            self.register(definition)
        for definition in actions or []:
            self.register(definition)

    def register(self, definition: Definition) -> Definition:
        """Add a definition to its catalog; types must be unique across both."""
        if definition.type in self._definitions:
            raise DefinitionError(f"Duplicate definition type: {definition.type}",
                                  definition_type=definition.type)
        if definition.supports_else and not definition.supports_nested_actions:
            raise DefinitionError(f"{definition.type} declares an else branch without actions",
                                  definition_type=definition.type)
        self._definitions[definition.type] = definition
        if definition.catalog is Catalog.CONDITION:
            self._conditions.append(definition)
        else:
            self._actions.append(definition)
        return definition

    def get_definition(self, type_name: str) -> Optional[Definition]:
        """Resolve a node type, returning None for unknown types."""
        return self._definitions.get(type_name)

    def get_condition_definitions(self) -> List[Definition]:
        return list(self._conditions)

    def get_action_definitions(self) -> List[Definition]:
        return list(self._actions)

    def create_node(self, type_name: str) -> ElementNode:
        definition = self.get_definition(type_name)
        if definition is None:
            raise DefinitionError(f"Unknown definition type: {type_name}",
                                  definition_type=type_name)
        return definition.create_instance()

    def search(self, query: str, catalog: Optional[Catalog] = None) -> List[Definition]:
        candidates = self._definitions.values()
        return [
            definition for definition in candidates
            if (catalog is None or definition.catalog is catalog) and definition.matches_search(query)
        ]

    def categories(self) -> Dict[str, List[Definition]]:
        """Definitions grouped by category, in registration order."""
        grouped: Dict[str, List[Definition]] = {}
        for definition in self._definitions.values():
            grouped.setdefault(definition.category, []).append(definition)
        return grouped

    def __contains__(self, type_name: str) -> bool:
        return type_name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'conditions': [definition.to_dict() for definition in self._conditions],
            'actions': [definition.to_dict() for definition in self._actions],
        }


def _condition(type_name, name, template, category="Input", description="", inputs=()):
    return Definition(
        type=type_name, name=name, catalog=Catalog.CONDITION, emit=EmitKind.EXPRESSION,
        category=category, description=description, inputs=tuple(inputs), template=template,
    )


def _action(type_name, name, template, category="Transform", description="", inputs=(), **extra):
    return Definition(
        type=type_name, name=name, catalog=Catalog.ACTION, emit=EmitKind.STATEMENT,
        category=category, description=description, inputs=tuple(inputs), template=template,
        **extra
    )


def _melodic(type_name, name, template, description="", inputs=()):
    return Definition(
        type=type_name, name=name, catalog=Catalog.ACTION, emit=EmitKind.MELODIC,
        category="MelodiCode", description=description, inputs=tuple(inputs), template=template,
    )


_DELTA = InputSpec('useDeltaTime', 'boolean', 'Delta Time', default=True,
                   when_true=' * deltaTime', when_false='')


def standard_condition_definitions() -> List[Definition]:
    """The built-in condition catalog."""
    return [
        Definition(
            type='ifCondition', name='If', catalog=Catalog.CONDITION, emit=EmitKind.IF,
            category='Logic',
            description='Create a nested if statement with conditions and actions',
            supports_nested=True, supports_nested_conditions=True,
            supports_nested_actions=True, supports_else=True,
        ),
        Definition(
            type='andCondition', name='And Group', catalog=Catalog.CONDITION,
            emit=EmitKind.BOOLEAN_GROUP, category='Logic', operator='&&',
            description='Group conditions with AND logic - all must be true',
            supports_nested=True, supports_nested_conditions=True, supports_nested_actions=True,
        ),
        Definition(
            type='orCondition', name='Or Group', catalog=Catalog.CONDITION,
            emit=EmitKind.BOOLEAN_GROUP, category='Logic', operator='||',
            description='Group conditions with OR logic - at least one must be true',
            supports_nested=True, supports_nested_conditions=True, supports_nested_actions=True,
        ),
        _condition('keyDown', 'Key Down', 'window.input.keyDown("{key}")',
                   description='Check if a key is currently pressed',
                   inputs=[InputSpec('key', 'string', 'Key',
                                     description='Key to check (e.g., "w", "space", "shift")')]),
        _condition('keyPressed', 'Key Pressed', 'window.input.keyPressed("{key}")',
                   description='Check if a key was just pressed this frame',
                   inputs=[InputSpec('key', 'string', 'Key', description='Key to check')]),
        _condition('keyReleased', 'Key Released', 'window.input.keyReleased("{key}")',
                   description='Check if a key was just released this frame',
                   inputs=[InputSpec('key', 'string', 'Key', description='Key to check')]),
        _condition('mouseDown', 'Mouse Down', 'window.input.mouseDown("{button}")',
                   description='Check if a mouse button is pressed',
                   inputs=[InputSpec('button', 'string', 'Button', default='left',
                                     options=('left', 'right', 'middle'))]),
        _condition('mousePressed', 'Mouse Pressed', 'window.input.mousePressed("{button}")',
                   description='Check if a mouse button was just pressed this frame',
                   inputs=[InputSpec('button', 'string', 'Button', default='left',
                                     options=('left', 'right', 'middle'))]),
        _condition('compareNumber', 'Compare', '{property} {operator} {value}',
                   category='Values', description='Compare a property with a value',
                   inputs=[
                       InputSpec('property', 'string', 'Property', default='this.value',
                                 description='Property name (e.g., "this.speed")'),
                       InputSpec('operator', 'string', 'Operator', default='>',
                                 options=('>', '<', '>=', '<=', '==', '!=')),
                       InputSpec('value', 'number', 'Value', default=0),
                   ]),
        _condition('compareProperty', 'Compare Property', 'this.{property} {operator} {value}',
                   category='Values', description='Compare a module property with a value',
                   inputs=[
                       InputSpec('property', 'string', 'Property', default='value'),
                       InputSpec('operator', 'string', 'Operator', default='==',
                                 options=('>', '<', '>=', '<=', '==', '!=', '===', '!==')),
                       InputSpec('value', 'string', 'Value', default='0'),
                   ]),
        _condition('objectExists', 'Object Exists', 'this.getGameObjectByName("{name}") !== null',
                   category='Objects', description='Check if a GameObject exists',
                   inputs=[InputSpec('name', 'string', 'Name')]),
        _condition('collision', 'Collision', 'this.objectCollision("{name}", {x}, {y}) !== null',
                   category='Objects', description='Check for collision with another object',
                   inputs=[
                       InputSpec('name', 'string', 'Name'),
                       InputSpec('x', 'number', 'X Offset', default=0),
                       InputSpec('y', 'number', 'Y Offset', default=0),
                   ]),
        _condition('randomChance', 'Random Chance', 'Math.random() < {chance}',
                   category='Values', description='True with the given probability (0-1)',
                   inputs=[InputSpec('chance', 'number', 'Chance', default=0.5)]),
        _condition('customCondition', 'Custom', '{code}', category='Custom',
                   description='Write custom JavaScript condition',
                   inputs=[InputSpec('code', 'string', 'Code', default='true')]),
    ]


def standard_action_definitions() -> List[Definition]:
    """The built-in action catalog."""
    return [
        Definition(
            type='nestedBlock', name='Block', catalog=Catalog.ACTION, emit=EmitKind.BLOCK,
            category='Logic', description='Create a block that can contain nested actions',
            supports_nested=True, supports_nested_actions=True,
            inputs=(InputSpec('label', 'string', 'Label (optional)'),),
        ),
        Definition(
            type='forLoop', name='For', catalog=Catalog.ACTION, emit=EmitKind.FOR,
            category='Logic', description='Repeat nested actions over a counter',
            supports_nested=True, supports_nested_actions=True,
            inputs=(
                InputSpec('variable', 'string', 'Variable', default='i'),
                InputSpec('start', 'number', 'Start', default=0),
                InputSpec('end', 'number', 'End', default=10),
                InputSpec('step', 'number', 'Step', default=1),
            ),
        ),
        Definition(
            type='whileLoop', name='While', catalog=Catalog.ACTION, emit=EmitKind.WHILE,
            category='Logic', description='Repeat nested actions while an expression holds',
            supports_nested=True, supports_nested_actions=True,
            inputs=(InputSpec('condition', 'string', 'Condition', default='false'),),
        ),
        _action('setPosition', 'Set Position',
                'this.gameObject.position.x = {x};\nthis.gameObject.position.y = {y};',
                description='Set the GameObject position',
                inputs=[InputSpec('x', 'number', 'X', default=0),
                        InputSpec('y', 'number', 'Y', default=0)]),
        _action('move', 'Move',
                'this.gameObject.position.x += {x}{useDeltaTime};\n'
                'this.gameObject.position.y += {y}{useDeltaTime};',
                description='Move the GameObject by an offset',
                inputs=[InputSpec('x', 'number', 'X', default=0),
                        InputSpec('y', 'number', 'Y', default=0),
                        _DELTA]),
        _action('setAngle', 'Set Angle', 'this.gameObject.angle = {angle};',
                description='Set rotation angle',
                inputs=[InputSpec('angle', 'number', 'Angle', default=0)]),
        _action('rotate', 'Rotate', 'this.gameObject.angle += {amount}{useDeltaTime};',
                description='Rotate the GameObject',
                inputs=[InputSpec('amount', 'number', 'Amount', default=1), _DELTA]),
        _action('setScale', 'Set Scale',
                'this.gameObject.scale.x = {x};\nthis.gameObject.scale.y = {y};',
                description='Set the GameObject scale',
                inputs=[InputSpec('x', 'number', 'X', default=1),
                        InputSpec('y', 'number', 'Y', default=1)]),
        _action('destroyObject', 'Destroy', 'this.gameObject.destroy();',
                category='Objects', description='Destroy a GameObject',
                inputs=[InputSpec('target', 'string', 'Target', default='this',
                                  options=('this', 'name')),
                        InputSpec('name', 'string', 'Name')],
                variant_input='target',
                variants=(
                    ('this', 'this.gameObject.destroy();'),
                    ('name', 'const obj = this.getGameObjectByName("{name}");\nif (obj) obj.destroy();'),
                )),
        _action('createInstance', 'Create Instance',
                'this.instanceCreate({x}, {y}, "{name}", false);',
                category='Objects', description='Create a new GameObject',
                inputs=[InputSpec('x', 'number', 'X', default=0),
                        InputSpec('y', 'number', 'Y', default=0),
                        InputSpec('name', 'string', 'Name')]),
        _action('setProperty', 'Set Property', '{property} = {value};',
                category='Values', description='Set a custom property value',
                inputs=[InputSpec('property', 'string', 'Property', default='this.value'),
                        InputSpec('value', 'string', 'Value', default='0')]),
        _action('addToProperty', 'Add To Property', '{property} += {amount}{useDeltaTime};',
                category='Values', description='Add an amount to a property',
                inputs=[InputSpec('property', 'string', 'Property', default='this.value'),
                        InputSpec('amount', 'number', 'Amount', default=1),
                        InputSpec('useDeltaTime', 'boolean', 'Delta Time', default=False,
                                  when_true=' * deltaTime', when_false='')]),
        _action('log', 'Log', 'console.log("{message}");',
                category='Debug', description='Log a message to console',
                inputs=[InputSpec('message', 'string', 'Message')]),
        _action('drawCircle', 'Draw Circle',
                'ctx.beginPath();\nctx.arc({x}, {y}, {radius}, 0, Math.PI * 2);\n'
                'ctx.fillStyle = "{color}";\nctx.fill();',
                category='Drawing', description='Draw a filled circle (use in draw)',
                inputs=[InputSpec('x', 'number', 'X', default=0),
                        InputSpec('y', 'number', 'Y', default=0),
                        InputSpec('radius', 'number', 'Radius', default=25),
                        InputSpec('color', 'color', 'Color', default='#ffffff')]),
        _action('drawRectangle', 'Draw Rectangle',
                'ctx.fillStyle = "{color}";\nctx.fillRect({x}, {y}, {width}, {height});',
                category='Drawing', description='Draw a filled rectangle (use in draw)',
                inputs=[InputSpec('x', 'number', 'X', default=0),
                        InputSpec('y', 'number', 'Y', default=0),
                        InputSpec('width', 'number', 'Width', default=50),
                        InputSpec('height', 'number', 'Height', default=50),
                        InputSpec('color', 'color', 'Color', default='#ffffff')]),
        _action('drawLine', 'Draw Line',
                'ctx.beginPath();\nctx.moveTo({x1}, {y1});\nctx.lineTo({x2}, {y2});\n'
                'ctx.strokeStyle = "{color}";\nctx.lineWidth = {width};\nctx.stroke();',
                category='Drawing', description='Draw a line segment (use in draw)',
                inputs=[InputSpec('x1', 'number', 'X1', default=0),
                        InputSpec('y1', 'number', 'Y1', default=0),
                        InputSpec('x2', 'number', 'X2', default=100),
                        InputSpec('y2', 'number', 'Y2', default=0),
                        InputSpec('color', 'color', 'Color', default='#ffffff'),
                        InputSpec('width', 'number', 'Width', default=1)]),
        _action('drawText', 'Draw Text',
                'ctx.fillStyle = "{color}";\nctx.font = "{font}";\nctx.fillText("{text}", {x}, {y});',
                category='Drawing', description='Draw text (use in draw)',
                inputs=[InputSpec('text', 'string', 'Text'),
                        InputSpec('x', 'number', 'X', default=0),
                        InputSpec('y', 'number', 'Y', default=0),
                        InputSpec('font', 'string', 'Font', default='16px Arial'),
                        InputSpec('color', 'color', 'Color', default='#ffffff')]),
        _melodic('melodicLine', 'Script Line', '{line}',
                 description='Append a raw line to the MelodiCode script',
                 inputs=[InputSpec('line', 'string', 'Line')]),
        _melodic('melodicTone', 'Tone', 'tone {frequency} {duration} {wave}',
                 description='Play a tone',
                 inputs=[InputSpec('frequency', 'number', 'Frequency', default=440),
                         InputSpec('duration', 'number', 'Duration', default=1),
                         InputSpec('wave', 'string', 'Wave', default='sine',
                                   options=('sine', 'square', 'sawtooth', 'triangle'))]),
        _melodic('melodicSample', 'Sample', 'sample {sample}',
                 description='Play a named sample',
                 inputs=[InputSpec('sample', 'string', 'Sample', default='kick')]),
        _melodic('melodicWait', 'Wait', 'wait {beats}',
                 description='Wait a number of beats',
                 inputs=[InputSpec('beats', 'number', 'Beats', default=1)]),
        _action('playMelodiCode', 'Play MelodiCode', 'window.melodicode.play(this.melodicode());',
                category='MelodiCode',
                description='Play the script built by the melodicode event'),
        _action('customAction', 'Custom Code', '{code}', category='Custom',
                description='Write custom JavaScript',
                inputs=[InputSpec('code', 'string', 'Code', default='// Custom code')]),
    ]


def default_registry() -> DefinitionRegistry:
    """Registry holding the built-in catalogs."""
    return DefinitionRegistry(standard_condition_definitions(), standard_action_definitions())
