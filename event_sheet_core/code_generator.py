"""
Code Generator producing the module class source from an event sheet project.
"""

import json
import logging
import re
from typing import Optional, Dict, Any, List, Tuple

from .config import EditorSettings
from .definitions import DefinitionRegistry, default_registry
from .emitters import ElementEmitter, EmitContext, OPENERS, CLOSERS, scan_line
from .models import (
    Project, EventNode, Property, EventKind, PropertyType,
    DELTA_TIME_EVENTS,
)


class JSCodeFormatter:
    """Re-indents generated JavaScript by bracket depth."""

    def __init__(self, indent_size: int = 4, indent_char: str = ' '):
        self.indent_size = indent_size
        self.indent_char = indent_char
        self.logger = logging.getLogger(__name__)

    def format(self, code: str) -> str:
        """Format code; returns the input untouched if content would change."""
        if not code:
            return code or ''
        original = code
        code = code.replace('\r\n', '\n').replace('\r', '\n')
        code = self.format_code(code)
        code = self.final_cleanup(code)
        if not self.validate_formatting(original, code):
            self.logger.warning("Formatting changed code content, returning original")
            return original
        return code

    def format_code(self, code: str) -> str:
        formatted = []
        # One entry per line that left brackets open: how many are still open
        stack: List[int] = []
        in_block_comment = False
        in_template = False

        for line in code.split('\n'):
            if in_template:
                # Inside a multi-line template literal the text is string content
                formatted.append(line)
                brackets, in_template = scan_line(line, True)
                self._track_brackets(stack, brackets, 0)
                continue

            trimmed = line.strip()
            if not trimmed:
                formatted.append('')
                continue

            if trimmed.startswith('/*') and '*/' not in trimmed:
                in_block_comment = True
            if in_block_comment:
                formatted.append(self.get_indent(len(stack)) + trimmed)
                if trimmed.endswith('*/'):
                    in_block_comment = False
                continue
            if trimmed.startswith('//'):
                formatted.append(self.get_indent(len(stack)) + trimmed)
                continue

            brackets, in_template = scan_line(trimmed)
            leading = 0
            for char in trimmed:
                if char in CLOSERS:
                    leading += 1
                elif char not in ' \t;':
                    break

            level = self._track_brackets(stack, brackets, leading)
            formatted.append(self.get_indent(level) + trimmed)

        return '\n'.join(formatted)

    def _track_brackets(self, stack: List[int], brackets: List[str], leading: int) -> int:
        """Update the open-bracket stack; returns the indent level of the line."""
        opened_here = 0
        level = None
        for position, char in enumerate(brackets):
            if position == leading and level is None:
                level = len(stack)
            if char in OPENERS:
                opened_here += 1
            elif opened_here:
                opened_here -= 1
            elif stack:
                stack[-1] -= 1
                if stack[-1] == 0:
                    stack.pop()
        if level is None:
            level = len(stack)
        if opened_here:
            stack.append(opened_here)
        return level

    def final_cleanup(self, code: str) -> str:
        cleaned = []
        blank_run = 0
        in_template = False
        for line in code.split('\n'):
            if in_template:
                cleaned.append(line)
                blank_run = 0
            else:
                line = line.rstrip()
                blank_run = 0 if line else blank_run + 1
                if blank_run < 2:
                    cleaned.append(line)
            in_template = scan_line(line, in_template)[1]
        return '\n'.join(cleaned).rstrip() + '\n'

    def get_indent(self, level: int) -> str:
        return self.indent_char * (self.indent_size * max(0, level))

    def validate_formatting(self, original: str, formatted: str) -> bool:
        return re.sub(r'\s+', '', original) == re.sub(r'\s+', '', formatted)


def js_literal(value: Any) -> str:
    """Render a Python value as a JavaScript literal."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return json.dumps(value)


class ModuleCodeGenerator:
    """Compiles a project into one module class."""

    def __init__(self, registry: Optional[DefinitionRegistry] = None,
                 settings: Optional[EditorSettings] = None):
        self.registry = registry or default_registry()
        self.settings = settings or EditorSettings()
        self.unit = self.settings.indent_unit
        self.emitter = ElementEmitter(self.registry, self.unit)
        self.formatter = JSCodeFormatter(indent_size=self.settings.indent_size)
        self.logger = logging.getLogger(__name__)

    def generate(self, project: Project, format_code: Optional[bool] = None) -> str:
        """Generate the complete class source for a project."""
        if format_code is None:
            format_code = self.settings.format_output
        class_name = project.class_name
        unit = self.unit

        sections = [
            '\n'.join([
                f"class {class_name} extends {self.settings.base_class} {{",
                f"{unit}static namespace = {json.dumps(project.namespace)};",
                f"{unit}static description = {json.dumps(project.description)};",
                f"{unit}static allowMultiple = false;",
                f"{unit}static iconClass = {json.dumps(self.settings.icon_class)};",
                f"{unit}static color = {json.dumps(self.settings.color)};",
            ]),
            self.generate_constructor(project),
        ]

        seen = set()
        for event in project.events:
            method = self.method_name(event)
            if method in seen:
                self.logger.warning(f"Event {event.id} redefines method {method}()")
            seen.add(method)
            sections.append(self.generate_event(event))

        sections.append(self.generate_style(project))
        sections.append(self.generate_to_json(project))
        sections.append(self.generate_from_json(project))

        code = '\n\n'.join(sections) + '\n}\n\n' + f"window.{class_name} = {class_name};\n"
        if format_code:
            code = self.formatter.format(code)
        return code

    # ------------------------------------------------------------------
    # Event methods
    # ------------------------------------------------------------------

    def method_name(self, event: EventNode) -> str:
        return event.name.strip() if event.kind is EventKind.CUSTOM else event.name

    def method_signature(self, event: EventNode) -> str:
        if event.kind is EventKind.CUSTOM:
            return f"{self.method_name(event)}({event.params.strip()})"
        if event.name in DELTA_TIME_EVENTS:
            return f"{event.name}(deltaTime)"
        if event.name == 'draw':
            return "draw(ctx)"
        return f"{event.name}()"

    def generate_event(self, event: EventNode) -> str:
        """Generate one method for an event."""
        unit = self.unit
        body_indent = unit * 2
        context = EmitContext(melodicode=event.is_melodicode)

        lines = [f"{unit}{self.method_signature(event)} {{"]
        if context.melodicode:
            lines.append(f'{body_indent}let script = "";')
        lines.extend(self.emitter.emit_body(event, body_indent, context))
        if context.melodicode:
            lines.append(f"{body_indent}return script;")
        lines.append(f"{unit}}}")
        return '\n'.join(lines)

    # ------------------------------------------------------------------
    # Boilerplate
    # ------------------------------------------------------------------

    def generate_constructor(self, project: Project) -> str:
        unit = self.unit
        inner = unit * 2
        lines = [f"{unit}constructor() {{", f"{inner}super({json.dumps(project.class_name)});"]

        if project.properties:
            lines.append('')
            for prop in project.properties:
                lines.append(f"{inner}this.{prop.name} = {js_literal(prop.coerce_default())};")

        exposed = [prop for prop in project.properties if prop.exposed]
        if exposed:
            lines.append('')
            for prop in exposed:
                lines.extend(self._expose_call(prop, inner, 'this', on_change=True))

        lines.append(f"{unit}}}")
        return '\n'.join(lines)

    def _expose_call(self, prop: Property, indent: str, target: str, on_change: bool) -> List[str]:
        inner = indent + self.unit
        options = []
        if prop.description:
            options.append(f"description: {json.dumps(prop.description)}")
        for key in ('min', 'max', 'step'):
            if key in prop.style:
                options.append(f"{key}: {js_literal(prop.style[key])}")
        if prop.type is PropertyType.ENUM and prop.options:
            options.append(f"options: {json.dumps(list(prop.options))}")
        if on_change:
            options.append(f"onChange: (val) => {{ this.{prop.name} = val; }}")
        else:
            extra = {key: value for key, value in prop.style.items()
                     if key not in ('group', 'min', 'max', 'step')}
            if extra:
                options.append(f"style: {json.dumps(extra, sort_keys=True)}")

        head = f'{indent}{target}.exposeProperty({json.dumps(prop.name)}, {json.dumps(prop.type.value)}, this.{prop.name}'
        if not options:
            return [head + ');']
        lines = [head + ', {']
        lines.extend(f"{inner}{option}{',' if i < len(options) - 1 else ''}"
                     for i, option in enumerate(options))
        lines.append(f"{indent}}});")
        return lines

    def _group_properties(self, project: Project) -> Tuple[List[Property], Dict[str, List[Property]]]:
        ungrouped = []
        groups: Dict[str, List[Property]] = {}
        for prop in project.properties:
            if not prop.exposed:
                continue
            if prop.group:
                groups.setdefault(prop.group, []).append(prop)
            else:
                ungrouped.append(prop)
        return ungrouped, groups

    def generate_style(self, project: Project) -> str:
        """Generate the inspector ``style(style)`` method."""
        unit = self.unit
        inner = unit * 2
        ungrouped, groups = self._group_properties(project)

        lines = [f"{unit}style(style) {{"]
        for prop in ungrouped:
            lines.extend(self._expose_call(prop, inner, 'style', on_change=False))
        if ungrouped and groups:
            lines.append(f"{inner}style.addDivider();")
        for group, props in groups.items():
            lines.append(f"{inner}style.startGroup({json.dumps(group)}, false);")
            for prop in props:
                lines.extend(self._expose_call(prop, inner, 'style', on_change=False))
            lines.append(f"{inner}style.endGroup();")
        lines.append(f"{unit}}}")
        return '\n'.join(lines)

    def generate_to_json(self, project: Project) -> str:
        unit = self.unit
        serialized = [prop for prop in project.properties if prop.serialized]
        entries = ["...super.toJSON()"] + [f"{prop.name}: this.{prop.name}" for prop in serialized]
        lines = [f"{unit}toJSON() {{", f"{unit * 2}return {{"]
        lines.extend(f"{unit * 3}{entry}{',' if i < len(entries) - 1 else ''}"
                     for i, entry in enumerate(entries))
        lines.append(f"{unit * 2}}};")
        lines.append(f"{unit}}}")
        return '\n'.join(lines)

    def generate_from_json(self, project: Project) -> str:
        unit = self.unit
        inner = unit * 2
        lines = [
            f"{unit}fromJSON(data) {{",
            f"{inner}super.fromJSON(data);",
            f"{inner}if (!data) return;",
        ]
        for prop in project.properties:
            if prop.serialized:
                lines.append(f"{inner}if (data.{prop.name} !== undefined) this.{prop.name} = data.{prop.name};")
        lines.append(f"{unit}}}")
        return '\n'.join(lines)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_generated_code(self, code: str) -> Dict[str, Any]:
        """Check bracket balance and duplicate methods of generated code."""
        result = {
            'is_valid': True,
            'errors': [],
            'warnings': []
        }

        pairs = {'}': '{', ']': '[', ')': '('}
        stack = []
        in_template = False
        for number, line in enumerate(code.split('\n'), 1):
            brackets, in_template = scan_line(line, in_template)
            for char in brackets:
                if char in OPENERS:
                    stack.append((char, number))
                elif not stack or stack[-1][0] != pairs[char]:
                    result['errors'].append(f"Line {number}: unmatched '{char}'")
                else:
                    stack.pop()
        for char, number in stack:
            result['errors'].append(f"Line {number}: unclosed '{char}'")

        method_pattern = re.compile(r'^' + re.escape(self.unit) + r'([A-Za-z_$][\w$]*)\(.*\)\s*\{$')
        methods: Dict[str, int] = {}
        for line in code.split('\n'):
            match = method_pattern.match(line)
            if match:
                methods[match.group(1)] = methods.get(match.group(1), 0) + 1
        for name, count in methods.items():
            if count > 1:
                result['warnings'].append(f"Method {name}() is defined {count} times")

        result['is_valid'] = not result['errors']
        return result
