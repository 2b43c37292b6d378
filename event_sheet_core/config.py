"""
Editor settings.

Resolution order for every setting:
    1. Environment variable (``EVENTSHEET_*``)
    2. Hard-coded default
"""

import os
import logging
from dataclasses import dataclass


logger = logging.getLogger(__name__)

DEFAULT_INDENT_SIZE = 4
DEFAULT_MAX_UNDO_STEPS = 50


def resolve_setting(env_var: str, default: str) -> str:
    """Two-tier resolution: env -> default."""
    env_val = os.environ.get(env_var, '').strip()
    if env_val:
        return env_val
    return default


def _resolve_int(env_var: str, default: int) -> int:
    raw = resolve_setting(env_var, str(default))
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {env_var}={raw!r}, using {default}")
        return default
    if value < 1:
        logger.warning(f"Ignoring non-positive {env_var}={raw!r}, using {default}")
        return default
    return value


def _resolve_bool(env_var: str, default: bool) -> bool:
    raw = resolve_setting(env_var, 'true' if default else 'false')
    return raw.lower() in ('1', 'true', 'yes', 'on')


@dataclass
class EditorSettings:
    """Settings shared by the editor, history and code generator."""
    indent_size: int = DEFAULT_INDENT_SIZE
    max_undo_steps: int = DEFAULT_MAX_UNDO_STEPS
    base_class: str = "Module"
    icon_class: str = "fas fa-cube"
    color: str = "#3b5c3bff"
    format_output: bool = True

    @property
    def indent_unit(self) -> str:
        return ' ' * self.indent_size

    @classmethod
    def from_env(cls) -> 'EditorSettings':
        """Build settings from ``EVENTSHEET_*`` environment variables."""
        return cls(
            indent_size=_resolve_int('EVENTSHEET_INDENT_SIZE', DEFAULT_INDENT_SIZE),
            max_undo_steps=_resolve_int('EVENTSHEET_MAX_UNDO_STEPS', DEFAULT_MAX_UNDO_STEPS),
            base_class=resolve_setting('EVENTSHEET_BASE_CLASS', 'Module'),
            icon_class=resolve_setting('EVENTSHEET_ICON_CLASS', 'fas fa-cube'),
            color=resolve_setting('EVENTSHEET_COLOR', '#3b5c3bff'),
            format_output=_resolve_bool('EVENTSHEET_FORMAT_OUTPUT', True),
        )
