"""
cicd_monitor.cli

Command line entrypoint (`cicd-monitor`).

Responsibilities:
- `serve`: run the tick loop with the health/status API under uvicorn.
- `tick`: run exactly one tick and print its outcome (cron jobs, debugging).
- Exit before any loop starts on fatal configuration errors.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from cicd_monitor.api.app import create_app
from cicd_monitor.clients.pat import EnvPatProvider
from cicd_monitor.monitor.engine import TickResult
from cicd_monitor.monitor.errors import ConfigurationError
from cicd_monitor.observability.logging import configure_logging
from cicd_monitor.services.wiring import open_engine
from cicd_monitor.settings import Settings, load_settings

EXIT_CONFIG_ERROR = 2

app = typer.Typer(help="Nightly CI/CD promotion monitor", no_args_is_help=True)

ConfigOption = typer.Option(
    None, "--config", "-c", help="JSON config file (organization, project, definitions...)"
)


def _settings_or_exit(config: Optional[Path]) -> Settings:
    try:
        settings = load_settings(config)
        settings.validate_for_run()
        # Credential check runs here so `serve` fails before uvicorn starts.
        EnvPatProvider(settings.pat_env_var).get_pat()
    except ConfigurationError as e:
        typer.echo(f"configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from e
    return settings


@app.command()
def serve(config: Optional[Path] = ConfigOption) -> None:
    """Run the promotion loop and the health/status API."""
    settings = _settings_or_exit(config)
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog
    )


@app.command()
def tick(config: Optional[Path] = ConfigOption) -> None:
    """Run a single load -> dispatch -> persist cycle for today's record."""
    settings = _settings_or_exit(config)
    configure_logging(service_name=settings.service_name, level=settings.log_level)
    try:
        result = asyncio.run(_tick_once(settings))
    except ConfigurationError as e:
        typer.echo(f"configuration error: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from e

    typer.echo(json.dumps(result.as_dict(), indent=2))
    if not result.ok:
        raise typer.Exit(code=1)


async def _tick_once(settings: Settings) -> TickResult:
    async with open_engine(settings) as engine:
        return await engine.tick()


def main() -> None:
    app()
