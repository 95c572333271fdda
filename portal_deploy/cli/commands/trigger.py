"""Trigger command: deploy the last commit after a countdown"""

import subprocess
import sys
from pathlib import Path
from typing import List, Optional, TextIO

import click
from rich.console import Console
from rich.markup import escape

from ..utils.output import format_deploy_result
from ...api import Deployer
from ...api.exceptions import PortalDeployError
from ...constants import DEFAULT_TRIGGER_DELAY
from ...utils.git_utils import get_changed_paths, get_repository_root

console = Console()


def relative_to_source(paths: List[str], repo_root: Path, source_root: Path) -> List[str]:
    """Re-base repository-relative paths onto the source root

    Paths outside the source root are dropped.
    """
    if repo_root.resolve() == source_root.resolve():
        return list(paths)

    rebased = []
    for path in paths:
        try:
            rebased.append((repo_root / path).resolve().relative_to(source_root.resolve()).as_posix())
        except ValueError:
            continue
    return rebased


def _open_terminal() -> Optional[TextIO]:
    try:
        return open('/dev/tty', 'r')
    except OSError:
        return None


@click.command()
@click.option('--delay', type=click.FloatRange(min=0), default=DEFAULT_TRIGGER_DELAY,
              show_default=True, help='Seconds to wait before deploying')
@click.option('--rev', default='HEAD', show_default=True,
              help='Commit whose changes are deployed')
@click.option('--changed', multiple=True,
              help='Changed path, relative to the source root (repeatable; overrides --rev)')
@click.option('--skip-nginx', is_flag=True,
              help='Do not deploy the nginx config or reload nginx')
@click.option('--source-root', type=click.Path(exists=True, file_okay=False),
              help='Portal working tree (default: search upward from here)')
@click.pass_context
def trigger(ctx, delay, rev, changed, skip_nginx, source_root):
    """Deploy the files changed by a commit

    Meant to run from the post-commit hook. Nothing happens when the commit
    touches no deployable file or when SKIP_DEPLOY is set. Otherwise a
    countdown starts: press Enter to deploy now, or n / Ctrl-C to cancel.

    Examples:

        # What the hook runs
        portal-deploy trigger

        # Commit without deploying
        SKIP_DEPLOY=1 git commit -m "wip"
    """
    try:
        deployer = Deployer(source_root=source_root)
    except PortalDeployError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(e.exit_code)

    source = deployer.config.source_root

    if changed:
        changed_paths = list(changed)
    else:
        repo_root = get_repository_root(source)
        if repo_root is None:
            console.print(f"[red]Error:[/red] {source} is not inside a git repository")
            sys.exit(1)
        try:
            changed_paths = relative_to_source(get_changed_paths(repo_root, rev), repo_root, source)
        except subprocess.CalledProcessError as e:
            console.print(f"[red]Error:[/red] Cannot list changes of {rev}: {escape(e.stderr.strip())}")
            sys.exit(1)

    def on_tick(remaining):
        console.print(
            f"[cyan]Deploying in {remaining}s[/cyan] "
            f"[dim](Enter to deploy now, n or Ctrl-C to cancel)[/dim]"
        )

    terminal = _open_terminal()
    try:
        result = deployer.trigger(
            changed_paths,
            delay=delay,
            skip_reload=skip_nginx,
            on_tick=on_tick,
            terminal=terminal
        )
    finally:
        if terminal is not None:
            terminal.close()

    format_deploy_result(result, deployer.config)
    sys.exit(result.exit_code)
