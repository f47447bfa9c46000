# cli.py
import logging

import click

from tasklist_api.config.settings import get_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str) -> None:
    """Configure root logging once for a CLI entry point."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@click.group()
def cli():
    """CLI commands for running the tasklist app"""
    configure_logging(get_settings().log_level)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to settings)")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to settings)")
def serve(host, port):
    """Run the HTTP server"""
    import uvicorn

    from tasklist_api.main import create_app

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    logger.info(f"Starting {settings.app_name} on {host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    click.echo(f"  App Name: {settings.app_name}")
    click.echo(f"  Deployment Mode: {settings.deployment_mode}")
    click.echo(f"  Listen: {settings.host}:{settings.port}")
    click.echo(f"  AWS Region: {settings.aws_region}")
    click.echo(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    click.echo(f"  Log Level: {settings.log_level}")


if __name__ == "__main__":
    cli()
