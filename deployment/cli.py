# deployment/cli.py
import json
import logging
import sys

import click

from deployment.pipeline.config import DeploySettings
from deployment.pipeline.errors import DeploymentError
from tasklist_api.cli import configure_logging
from tasklist_api.config.settings import get_settings

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Provision, test and deploy the tasklist app"""
    configure_logging(get_settings().log_level)


@cli.command()
@click.option("--branch", default=None, help="Branch being built (defaults to GITHUB_REF_NAME)")
@click.option("--project-dir", default=".", show_default=True, help="Project checkout to install and test")
def run(branch, project_dir):
    """Run install, test and (on the deploy branch) deploy"""
    from deployment.pipeline.runner import build_default_pipeline

    settings = DeploySettings()
    branch = branch or settings.branch
    result = build_default_pipeline(settings, project_dir=project_dir).run(branch)

    for stage in result.stages:
        click.echo(f"  {stage.name}: {stage.status.value}")
        if stage.error_message:
            click.echo(f"    {stage.error_message}")

    if not result.succeeded:
        sys.exit(1)


@cli.command()
def deploy():
    """Deploy to the server over SSH and reconcile the managed process"""
    from deployment.pipeline.runner import deploy_over_ssh

    try:
        actions = deploy_over_ssh(DeploySettings())
    except (DeploymentError, ValueError) as e:
        click.echo(f"❌ Deployment failed: {e}", err=True)
        sys.exit(1)

    click.echo("✅ Deployment completed")
    for action in actions:
        click.echo(f"  {action.value}")


@cli.command()
def plan():
    """Show the actions a deploy would take on the server"""
    from deployment.pipeline.reconcile import DeploymentReconciler, DesiredState
    from deployment.pipeline.remote import SSHRemoteShell, private_key_file

    settings = DeploySettings()
    try:
        settings.require_credentials()
        with private_key_file(settings.private_key.get_secret_value()) as key_path:
            shell = SSHRemoteShell(settings.host, settings.user, key_path, port=settings.port)
            reconciler = DeploymentReconciler(shell, DesiredState.from_settings(settings))
            observed = reconciler.observe()
            actions = reconciler.plan(observed)
    except (DeploymentError, ValueError) as e:
        click.echo(f"❌ Could not plan deployment: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps({
        'observed': {
            'checkout': observed.checkout.value,
            'supervisor_installed': observed.supervisor_installed,
            'process_running': observed.process_running,
        },
        'actions': [action.value for action in actions],
    }, indent=2))


@cli.group()
def infra():
    """Apply or inspect the static infrastructure declaration"""


@infra.command("show")
def infra_show():
    """Print the declared resources"""
    from deployment.aws.infrastructure.declaration import describe_declaration

    click.echo(json.dumps(describe_declaration(), indent=2))


@infra.command("apply")
@click.option("--no-wait", is_flag=True, help="Do not wait for the instance to reach running")
def infra_apply(no_wait):
    """Create the declared instance and bucket"""
    from deployment.aws.infrastructure.declaration import apply_declaration

    result = apply_declaration(wait=not no_wait)
    click.echo(json.dumps(result, indent=2))


@infra.command("destroy")
@click.confirmation_option(prompt="Terminate the instance and delete the bucket?")
def infra_destroy():
    """Terminate the declared instance and delete the bucket"""
    from deployment.aws.infrastructure.declaration import destroy_declaration

    result = destroy_declaration()
    click.echo(json.dumps(result, indent=2))


if __name__ == "__main__":
    cli()
