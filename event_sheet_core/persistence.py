"""
Persisted project documents.

A document is a JSON object with ``projectName``, ``namespace``,
``description``, ``events``, ``properties``, ``version`` and ``createdAt``
(epoch milliseconds). Loading either installs a complete project or raises
``ProjectLoadError``.
"""

import json
import logging
import os
import re
import time
from typing import Any, Dict, Optional

from .exceptions import ProjectLoadError
from .models import Project, Property, EventNode, CONDITIONS, ACTIONS


DOCUMENT_VERSION = "1.0"
FILE_SUFFIX = ".eventsheet.json"

logger = logging.getLogger(__name__)


def project_to_document(project: Project, created_at: Optional[int] = None) -> Dict[str, Any]:
    """Build the persisted document for a project."""
    return {
        'projectName': project.name,
        'namespace': project.namespace,
        'description': project.description,
        'events': [event.to_dict() for event in project.events],
        'properties': [prop.to_dict() for prop in project.properties],
        'version': DOCUMENT_VERSION,
        'createdAt': int(time.time() * 1000) if created_at is None else int(created_at),
    }


def _upgrade_event(data: Dict[str, Any]) -> Dict[str, Any]:
    """Bring legacy event shapes up to date."""
    if not isinstance(data, dict):
        raise ProjectLoadError(f"Event must be an object, got {type(data).__name__}")
    event = dict(data)
    if not event.get('name') and event.get('type') and event.get('type') != 'event':
        event['name'] = event['type']
        event['type'] = 'event'
    for key in (CONDITIONS, ACTIONS):
        if event.get(key) is None:
            event[key] = []
        elif not isinstance(event[key], list):
            raise ProjectLoadError(f"Event {key} must be a list")
    return event


def project_from_document(document: Any) -> Project:
    """Build a project from a persisted document."""
    if not isinstance(document, dict):
        raise ProjectLoadError("Project document must be a JSON object")
    events = document.get('events') or []
    properties = document.get('properties') or []
    if not isinstance(events, list) or not isinstance(properties, list):
        raise ProjectLoadError("Project events and properties must be lists")

    try:
        project = Project(
            name=str(document.get('projectName') or 'NewModule'),
            namespace=str(document.get('namespace') or 'Custom'),
            description=str(document.get('description') or 'Generated from Event Sheet'),
            properties=[Property.from_dict(item) for item in properties],
            events=[EventNode.from_dict(_upgrade_event(item)) for item in events],
        )
    except ProjectLoadError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise ProjectLoadError(f"Invalid project document: {e}") from e

    for error in project.validate():
        logger.warning(f"Loaded project {project.name!r}: {error}")
    return project


def dumps_project(project: Project, created_at: Optional[int] = None) -> str:
    return json.dumps(project_to_document(project, created_at), indent=2)


def loads_project(text: str) -> Project:
    try:
        document = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ProjectLoadError(f"Invalid JSON: {e}") from e
    return project_from_document(document)


def project_filename(project: Project) -> str:
    return re.sub(r'\s+', '_', project.name or 'NewModule') + FILE_SUFFIX


def save_project_file(project: Project, directory: str, filename: Optional[str] = None) -> str:
    """Write a project document and return its path.

    The file is written to a temporary name and renamed into place.
    """
    os.makedirs(directory or '.', exist_ok=True)
    path = os.path.join(directory, filename or project_filename(project))
    tmp_path = path + '.tmp'
    with open(tmp_path, 'w', encoding='utf-8') as handle:
        handle.write(dumps_project(project))
    os.replace(tmp_path, path)
    logger.info(f"Saved project {project.name!r} to {path}")
    return path


def load_project_file(path: str) -> Project:
    try:
        with open(path, 'r', encoding='utf-8') as handle:
            text = handle.read()
    except OSError as e:
        logger.error(f"Failed to read project file {path}: {e}")
        raise ProjectLoadError(f"Cannot read {path}: {e}", details={'path': path}) from e
    return loads_project(text)
