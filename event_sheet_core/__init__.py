"""
Event Sheet Core - visual scripting model and compiler for game modules.

This package provides the event/condition/action tree a user edits, the
structural editing and undo/redo operations over it, and the compiler that
turns the tree into a JavaScript module class.
"""

__version__ = "0.1.0"
__author__ = "Event Sheet Development Team"

from .models import (
    Project, Property, EventNode, ElementNode, EventKind, LogicOperator,
    PropertyType, ValidationError, normalize_property_name,
)
from .definitions import (
    Definition, DefinitionRegistry, InputSpec, Catalog, EmitKind, default_registry,
)
from .tree_editor import TreeEditor, NodeLocation
from .history import HistoryManager, ProjectSnapshot
from .emitters import ElementEmitter, EmitContext
from .code_generator import ModuleCodeGenerator, JSCodeFormatter
from .session import EventSheetSession
from .persistence import (
    project_to_document, project_from_document, dumps_project, loads_project,
    save_project_file, load_project_file,
)
from .config import EditorSettings
from .exceptions import (
    EventSheetError, DefinitionError, InvalidEditError, PropertyError, ProjectLoadError,
)

__all__ = [
    'Project', 'Property', 'EventNode', 'ElementNode', 'EventKind', 'LogicOperator',
    'PropertyType', 'ValidationError', 'normalize_property_name',
    'Definition', 'DefinitionRegistry', 'InputSpec', 'Catalog', 'EmitKind', 'default_registry',
    'TreeEditor', 'NodeLocation',
    'HistoryManager', 'ProjectSnapshot',
    'ElementEmitter', 'EmitContext',
    'ModuleCodeGenerator', 'JSCodeFormatter',
    'EventSheetSession',
    'project_to_document', 'project_from_document', 'dumps_project', 'loads_project',
    'save_project_file', 'load_project_file',
    'EditorSettings',
    'EventSheetError', 'DefinitionError', 'InvalidEditError', 'PropertyError', 'ProjectLoadError',
]
