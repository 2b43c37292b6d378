"""
Exceptions for the Event Sheet Core.
"""

from typing import Optional, Any, Dict


class EventSheetError(Exception):
    """Base exception for all event sheet errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class DefinitionError(EventSheetError):
    """Raised when a definition catalog is inconsistent."""

    def __init__(self, message: str, definition_type: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.definition_type = definition_type


class InvalidEditError(EventSheetError):
    """Raised when a structural edit targets an array that cannot hold it."""

    def __init__(self, message: str, array_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.array_name = array_name


class PropertyError(EventSheetError):
    """Raised when a property name is invalid or already taken."""

    def __init__(self, message: str, property_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.property_name = property_name


class ProjectLoadError(EventSheetError):
    """Raised when a persisted project document cannot be loaded."""
    pass
