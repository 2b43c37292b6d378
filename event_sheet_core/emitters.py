"""
Element emitter: turns condition and action nodes into JavaScript fragments.

Every fragment is already indented and carries no trailing newline; callers
join sibling fragments with ``\\n``. Nodes whose type is not registered
produce no fragment at all.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .definitions import Catalog, Definition, DefinitionRegistry, EmitKind
from .models import ElementNode, EventNode, LogicOperator, CONDITIONS, ACTIONS


_PLACEHOLDER = re.compile(r'\{([A-Za-z_][A-Za-z0-9_]*)\}')

OPENERS = '{[('
CLOSERS = '}])'


@dataclass(frozen=True)
class EmitContext:
    """Per-method state threaded through the recursion."""
    melodicode: bool = False


def render_template(template: str, definition: Definition, params: Dict[str, Any]) -> str:
    """Substitute ``{name}`` placeholders with parameter values.

    Missing or empty values fall back to the input default; boolean inputs
    render their ``when_true`` / ``when_false`` text. Values are inserted
    verbatim.
    """
    def replace(match):
        name = match.group(1)
        spec = definition.get_input(name)
        value = params.get(name)
        if spec is None:
            return match.group(0) if value is None else _format_value(value)
        if spec.type == 'boolean':
            if isinstance(value, str):
                value = value.strip().lower() == 'true'
            elif value is None:
                value = spec.default_value()
            return spec.when_true if value else spec.when_false
        if value is None or value == '':
            value = spec.default_value()
        return _format_value(value)

    return _PLACEHOLDER.sub(replace, template)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def scan_line(line: str, in_template: bool = False) -> Tuple[List[str], bool]:
    """Bracket characters of a line outside strings and comments.

    Also returns whether a backtick template literal is still open at the end
    of the line, so callers can carry that state to the next one.
    """
    brackets = []
    string_char = '`' if in_template else None
    escaped = False
    for index, char in enumerate(line):
        if escaped:
            escaped = False
            continue
        if char == '\\':
            escaped = True
            continue
        if string_char:
            if char == string_char:
                string_char = None
            continue
        if char in ('"', "'", '`'):
            string_char = char
            continue
        if char == '/' and line[index + 1:index + 2] == '/':
            break
        if char in OPENERS or char in CLOSERS:
            brackets.append(char)
    return brackets, string_char == '`'


def indent_lines(text: str, indent: str) -> str:
    """Indent every non-blank line except continuations of a template literal."""
    indented = []
    in_template = False
    for line in text.split('\n'):
        indented.append(line if in_template or not line.strip() else indent + line)
        in_template = scan_line(line, in_template)[1]
    return '\n'.join(indented)


class ElementEmitter:
    """Dispatches on a definition's ``EmitKind`` to produce code fragments."""

    def __init__(self, registry: DefinitionRegistry, indent_unit: str = '    '):
        self.registry = registry
        self.indent_unit = indent_unit
        self.logger = logging.getLogger(__name__)
        self._handlers = {
            EmitKind.EXPRESSION: self._emit_expression_statement,
            EmitKind.STATEMENT: self._emit_statement,
            EmitKind.IF: self._emit_if,
            EmitKind.BOOLEAN_GROUP: self._emit_boolean_group,
            EmitKind.BLOCK: self._emit_block,
            EmitKind.FOR: self._emit_for,
            EmitKind.WHILE: self._emit_while,
            EmitKind.MELODIC: self._emit_melodic,
        }

    def resolve(self, node: ElementNode, array_name: str = ACTIONS) -> Optional[Definition]:
        """Definition of a node as seen from the array holding it.

        Condition arrays only accept condition-catalog kinds; action arrays
        accept any kind, so an If block can act as a control-flow action.
        """
        definition = self.registry.get_definition(node.type)
        if definition is None:
            self.logger.debug(f"Skipping node {node.id}: unknown type {node.type!r}")
            return None
        if array_name == CONDITIONS and definition.catalog is not Catalog.CONDITION:
            self.logger.debug(f"Skipping node {node.id}: {node.type!r} is not a condition")
            return None
        return definition

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def emit(self, node: ElementNode, indent: str = '', context: Optional[EmitContext] = None,
             array_name: str = ACTIONS) -> str:
        """Emit one node as a statement fragment ('' when skipped)."""
        definition = self.resolve(node, array_name)
        if definition is None:
            return ''
        if array_name == CONDITIONS and not definition.supports_nested:
            # Simple conditions are joined by the owner, never emitted alone
            return ''
        handler = self._handlers[definition.emit]
        return handler(definition, node, indent, context or EmitContext())

    def emit_condition(self, node: ElementNode) -> Optional[str]:
        """Boolean expression of a simple condition, None when not applicable."""
        definition = self.resolve(node, CONDITIONS)
        if definition is None or definition.supports_nested:
            return None
        return render_template(definition.template_for(node.params), definition, node.params)

    def emit_actions(self, nodes: Optional[List[ElementNode]], indent: str,
                     context: Optional[EmitContext] = None) -> List[str]:
        fragments = []
        for node in nodes or []:
            fragment = self.emit(node, indent, context, ACTIONS)
            if fragment:
                fragments.append(fragment)
        return fragments

    def emit_body(self, owner: Union[EventNode, ElementNode], indent: str,
                  context: Optional[EmitContext] = None, operator: Optional[str] = None,
                  parenthesize: bool = False, allow_else: bool = False) -> List[str]:
        """Compile an owner's conditions and actions into sibling fragments.

        Simple conditions are joined into one ``if`` wrapping every action.
        For an element owner its block conditions sit inside that ``if``,
        ahead of the actions, so the owner's test guards them; for an event
        they follow the ``if`` as self-contained fragments. Without simple
        conditions the blocks and then the actions run unconditioned.
        """
        context = context or EmitContext()
        if operator is None:
            operator = LogicOperator.parse(owner.logic_operator).symbol

        expressions = []
        blocks = []
        for condition in owner.conditions or []:
            definition = self.resolve(condition, CONDITIONS)
            if definition is None:
                continue
            if definition.supports_nested:
                blocks.append(condition)
                continue
            expression = self.emit_condition(condition)
            if expression is not None:
                expressions.append(f'({expression})' if parenthesize else expression)

        fragments = []
        inner = indent + self.indent_unit
        guarded = bool(expressions) and isinstance(owner, ElementNode)
        if expressions:
            lines = [f"{indent}if ({f' {operator} '.join(expressions)}) {{"]
            if guarded:
                lines.extend(self._emit_blocks(blocks, inner, context))
            lines.extend(self.emit_actions(owner.actions, inner, context))
            else_fragments = []
            if allow_else:
                else_fragments = self.emit_actions(getattr(owner, 'else_actions', None), inner, context)
            if else_fragments:
                lines.append(f"{indent}}} else {{")
                lines.extend(else_fragments)
            lines.append(f"{indent}}}")
            fragments.append('\n'.join(lines))

        if not guarded:
            fragments.extend(self._emit_blocks(blocks, indent, context))
        if not expressions:
            fragments.extend(self.emit_actions(owner.actions, indent, context))
        return fragments

    def _emit_blocks(self, blocks: List[ElementNode], indent: str, context: EmitContext) -> List[str]:
        fragments = []
        for block in blocks:
            fragment = self.emit(block, indent, context, CONDITIONS)
            if fragment:
                fragments.append(fragment)
        return fragments

    # ------------------------------------------------------------------
    # Handlers, one per EmitKind
    # ------------------------------------------------------------------

    def _emit_expression_statement(self, definition, node, indent, context):
        expression = render_template(definition.template_for(node.params), definition, node.params)
        return indent_lines(f"{expression};", indent)

    def _emit_statement(self, definition, node, indent, context):
        code = render_template(definition.template_for(node.params), definition, node.params)
        return indent_lines(code, indent)

    def _emit_if(self, definition, node, indent, context):
        return '\n'.join(self.emit_body(node, indent, context, allow_else=definition.supports_else))

    def _emit_boolean_group(self, definition, node, indent, context):
        return '\n'.join(self.emit_body(node, indent, context, operator=definition.operator or '&&',
                                        parenthesize=True))

    def _emit_block(self, definition, node, indent, context):
        lines = []
        label = str(node.params.get('label') or '').strip()
        if label:
            lines.append(f"{indent}// {label}")
        lines.append(f"{indent}{{")
        lines.extend(self.emit_actions(node.actions, indent + self.indent_unit, context))
        lines.append(f"{indent}}}")
        return '\n'.join(lines)

    def _emit_for(self, definition, node, indent, context):
        params = node.params
        variable = render_template('{variable}', definition, params)
        start = render_template('{start}', definition, params)
        end = render_template('{end}', definition, params)
        step = render_template('{step}', definition, params)
        try:
            step_value = float(step)
        except ValueError:
            step_value = None
        if step_value == 1:
            comparison, update = '<', f"{variable}++"
        elif step_value == -1:
            comparison, update = '>', f"{variable}--"
        elif step_value is not None and step_value < 0:
            comparison, update = '>', f"{variable} -= {_format_value(abs(step_value))}"
        else:
            comparison, update = '<', f"{variable} += {step}"
        lines = [f"{indent}for (let {variable} = {start}; {variable} {comparison} {end}; {update}) {{"]
        lines.extend(self.emit_actions(node.actions, indent + self.indent_unit, context))
        lines.append(f"{indent}}}")
        return '\n'.join(lines)

    def _emit_while(self, definition, node, indent, context):
        condition = render_template('{condition}', definition, node.params)
        lines = [f"{indent}while ({condition}) {{"]
        lines.extend(self.emit_actions(node.actions, indent + self.indent_unit, context))
        lines.append(f"{indent}}}")
        return '\n'.join(lines)

    def _emit_melodic(self, definition, node, indent, context):
        line = render_template(definition.template_for(node.params), definition, node.params)
        if context.melodicode:
            return f"{indent}script += {json.dumps(line + chr(10))};"
        return f"{indent}window.melodicode.play({json.dumps(line)});"
