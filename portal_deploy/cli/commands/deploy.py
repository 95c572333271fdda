"""Deploy command implementation"""

import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from ..utils.output import format_deploy_result, show_plan, show_warnings
from ...api import Deployer
from ...api.exceptions import PortalDeployError
from ...constants import PROMPT_CONFIRM_DEPLOY

console = Console()


@click.command()
@click.option('--dry-run', is_flag=True,
              help='Validate and show what would be deployed without making changes')
@click.option('--force', is_flag=True, help='Skip the confirmation prompt')
@click.option('--skip-nginx', is_flag=True,
              help='Do not deploy the nginx config or reload nginx')
@click.option('--source-root', type=click.Path(exists=True, file_okay=False),
              help='Portal working tree (default: search upward from here)')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False),
              help='Configuration file (default: .portal-deploy.yaml)')
@click.pass_context
def deploy(ctx, dry_run, force, skip_nginx, source_root, config_path):
    """Deploy the portal to production

    Deploys every configured page and image plus the nginx virtual host,
    then tests the nginx configuration and reloads it. Validation always
    runs, even with --force.

    Exit codes: 0 success, 1 pre-flight or staging failure, 2 copy failure
    (rolled back), 3 nginx check failure (config rolled back), 4 reload
    failure, 5 another deployment in progress.

    Examples:

        # Preview the deployment
        portal-deploy deploy --dry-run

        # Deploy without prompting
        portal-deploy deploy --force

        # Deploy pages only
        portal-deploy deploy --skip-nginx
    """
    try:
        deployer = Deployer(source_root=source_root, config_path=config_path)
    except PortalDeployError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(e.exit_code)

    def on_plan(unit, result):
        show_plan(unit, deployer.config)
        show_warnings(result.warnings)

    def confirm(unit):
        return Confirm.ask(f"\n[cyan]{PROMPT_CONFIRM_DEPLOY}[/cyan]", default=False)

    try:
        result = deployer.deploy(
            dry_run=dry_run,
            force=force,
            skip_reload=skip_nginx,
            on_plan=on_plan,
            confirm=confirm
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Deployment cancelled[/yellow]")
        sys.exit(130)

    format_deploy_result(result, deployer.config)
    sys.exit(result.exit_code)
