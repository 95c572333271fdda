# portal_deploy/cli/utils/output.py
"""Output formatting utilities"""

from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ...constants import EMOJI_ERROR, EMOJI_SUCCESS, EMOJI_WARNING
from ...models import DeployConfig, DeploymentResult, DeploymentStatus, DeploymentUnit

console = Console()

_STATUS_STYLES = {
    DeploymentStatus.SUCCESS: ("Deploy Result", "green"),
    DeploymentStatus.DRY_RUN_ONLY: ("Dry Run", "cyan"),
    DeploymentStatus.CANCELLED: ("Deploy Cancelled", "yellow"),
    DeploymentStatus.NOTHING_TO_DEPLOY: ("Nothing To Deploy", "yellow"),
    DeploymentStatus.SKIPPED: ("Deploy Skipped", "yellow"),
    DeploymentStatus.FAILED: ("Deploy Error", "red"),
}


def show_plan(unit: DeploymentUnit, config: DeployConfig) -> None:
    """Display the files a deployment will copy"""
    console.print(f"[bold]Repository:[/bold] {config.source_root}")
    console.print(f"[bold]Web target:[/bold] {config.web_target}")
    if unit.config is not None:
        console.print(f"[bold]Config target:[/bold] {config.config_target}")

    table = Table(title="Deployment Plan")
    table.add_column("Kind", style="cyan")
    table.add_column("Source")
    table.add_column("Destination", style="green")

    for entry in unit.entries:
        table.add_row(
            entry.kind.value,
            entry.relative_path,
            str(entry.dest_path)
        )

    console.print(table)

    if unit.config is not None:
        console.print(f"[dim]The {unit.config.service_target} configuration will be "
                      f"tested and the service reloaded[/dim]")


def show_warnings(warnings: List[str]) -> None:
    """Display validation warnings"""
    for warning in warnings:
        console.print(f"[yellow]{EMOJI_WARNING} {escape(warning)}[/yellow]")


def format_deploy_result(result: DeploymentResult, config: DeployConfig = None) -> None:
    """Format and display deploy operation result"""
    title, style = _STATUS_STYLES[result.status]

    if result.is_failed:
        lines = [f"[red]{EMOJI_ERROR} Deploy failed:[/red] {escape(result.reason)}"]

        if result.error_code:
            lines.append(f"[bold]Error code:[/bold] {result.error_code}")

        # Partial commits are always rolled back; show what was undone
        if result.files_written or result.files_restored:
            lines.append("")
            lines.append(f"[yellow]Files written: {result.files_written}, "
                         f"restored: {result.files_restored}[/yellow]")
    else:
        mark = f"[{style}]{EMOJI_SUCCESS}[/{style}]"
        lines = [f"{mark} {escape(result.reason)}"]

        if result.status == DeploymentStatus.SUCCESS:
            lines.append("")
            lines.append(f"[bold]Files written:[/bold] {result.files_written}")
            reloaded = "yes" if result.reload_performed else "no"
            lines.append(f"[bold]Service reloaded:[/bold] {reloaded}")
            if config is not None:
                lines.append(f"[bold]Web files:[/bold] {config.web_target}")
                if result.reload_performed:
                    lines.append(f"[bold]Config:[/bold] {config.config_dest}")
                lines.append(f"[bold]Verify at:[/bold] {config.site_url}")

    if result.duration is not None:
        lines.append(f"[dim]Duration: {result.duration:.2f}s[/dim]")

    console.print(Panel("\n".join(lines), title=title, border_style=style))
