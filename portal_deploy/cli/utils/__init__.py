"""CLI utility functions"""

from .output import format_deploy_result, show_plan, show_warnings

__all__ = [
    'format_deploy_result',
    'show_plan',
    'show_warnings',
]
