"""Install the git post-commit hook"""

import shlex
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from ...api.exceptions import ProjectNotFoundError
from ...constants import APP_NAME, DEFAULT_TRIGGER_DELAY, POST_COMMIT_HOOK
from ...core import PathResolver
from ...utils.git_utils import get_hooks_dir

console = Console()

HOOK_MARKER = f"# Installed by {APP_NAME}"


def render_hook(delay: float, source_root: Path) -> str:
    """Post-commit hook script running the trigger on source_root"""
    return (
        "#!/bin/sh\n"
        f"{HOOK_MARKER}\n"
        "# Set SKIP_DEPLOY=1 to commit without deploying.\n"
        f'exec {APP_NAME} trigger --delay {delay:g} --source-root {shlex.quote(str(source_root))}\n'
    )


@click.command(name='install-hook')
@click.option('--delay', type=click.FloatRange(min=0), default=DEFAULT_TRIGGER_DELAY,
              show_default=True, help='Countdown before each deployment')
@click.option('--overwrite', is_flag=True, help='Replace a hook not installed by this tool')
@click.option('--source-root', type=click.Path(exists=True, file_okay=False),
              help='Portal working tree (default: search upward from here)')
@click.pass_context
def install_hook(ctx, delay, overwrite, source_root):
    """Install the post-commit hook that deploys each commit

    Example:

        portal-deploy install-hook --delay 10
    """
    try:
        root = PathResolver(source_root).source_root
    except ProjectNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)

    hooks_dir = get_hooks_dir(root)
    if hooks_dir is None:
        console.print(f"[red]Error:[/red] {root} is not inside a git repository")
        sys.exit(1)

    hook_path = Path(hooks_dir) / POST_COMMIT_HOOK
    if hook_path.exists() and not overwrite:
        if HOOK_MARKER not in hook_path.read_text(encoding='utf-8', errors='replace'):
            console.print(f"[red]Error:[/red] {hook_path} exists; use --overwrite to replace it")
            sys.exit(1)

    hook_path.parent.mkdir(parents=True, exist_ok=True)
    hook_path.write_text(render_hook(delay, root), encoding='utf-8')
    hook_path.chmod(0o755)

    console.print(f"[green]✓[/green] Installed {hook_path}")
