"""
Undo/redo history over whole-project snapshots.

Snapshots are independent value copies of the project; the live project is
never shared with a stack entry. History is linear: committing a new edit
discards anything that could have been redone.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from .config import DEFAULT_MAX_UNDO_STEPS
from .models import Project, EventNode, Property


@dataclass
class ProjectSnapshot:
    """A deep, independent copy of the editable project state."""
    project_name: str
    namespace: str
    description: str
    events: List[EventNode] = field(default_factory=list)
    properties: List[Property] = field(default_factory=list)

    @classmethod
    def capture(cls, project: Project) -> 'ProjectSnapshot':
        return cls(
            project_name=project.name,
            namespace=project.namespace,
            description=project.description,
            events=[event.clone() for event in project.events],
            properties=[prop.clone() for prop in project.properties],
        )

    def apply_to(self, project: Project):
        """Install a copy of this snapshot into the live project."""
        project.name = self.project_name
        project.namespace = self.namespace
        project.description = self.description
        project.events = [event.clone() for event in self.events]
        project.properties = [prop.clone() for prop in self.properties]


class HistoryManager:
    """Bounded undo and redo stacks for one project."""

    def __init__(self, project: Project, max_undo_steps: int = DEFAULT_MAX_UNDO_STEPS):
        self.project = project
        self.max_undo_steps = max_undo_steps
        self.undo_stack: List[ProjectSnapshot] = []
        self.redo_stack: List[ProjectSnapshot] = []
        self.logger = logging.getLogger(__name__)

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    @property
    def undo_count(self) -> int:
        return len(self.undo_stack)

    @property
    def redo_count(self) -> int:
        return len(self.redo_stack)

    def snapshot(self) -> ProjectSnapshot:
        return ProjectSnapshot.capture(self.project)

    def commit(self):
        """Record the current state; call before mutating."""
        self.undo_stack.append(self.snapshot())
        if len(self.undo_stack) > self.max_undo_steps:
            del self.undo_stack[:len(self.undo_stack) - self.max_undo_steps]
        self.redo_stack.clear()

    def undo(self) -> bool:
        if not self.undo_stack:
            return False
        self.redo_stack.append(self.snapshot())
        self.undo_stack.pop().apply_to(self.project)
        self.logger.debug(f"Undo: {len(self.undo_stack)} steps left")
        return True

    def redo(self) -> bool:
        if not self.redo_stack:
            return False
        self.undo_stack.append(self.snapshot())
        self.redo_stack.pop().apply_to(self.project)
        self.logger.debug(f"Redo: {len(self.redo_stack)} steps left")
        return True

    def clear(self):
        self.undo_stack.clear()
        self.redo_stack.clear()
