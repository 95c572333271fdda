# portal_deploy/cli/commands/__init__.py
"""CLI commands"""

from . import deploy
from . import trigger
from . import hook

__all__ = [
    "deploy",
    "trigger",
    "hook",
]
