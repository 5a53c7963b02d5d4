"""Command-line interface for the health-stats reproduction harness."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import Settings, settings
from .errors import ExitCode, SetupError
from .fanout import fan_out, overall_exit_code, run_command
from .harness import ReproHarness, report
from .utils import setup_logging

app = typer.Typer(
    name="health-stats-repro",
    help="Reproduce Docker API hangs on health-checked containers under stats load",
    add_completion=False,
)

console = Console()
logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


def load_settings(config: Optional[Path]) -> Settings:
    return Settings.from_yaml(config) if config else settings


def settings_or_exit(config: Optional[Path]) -> Settings:
    """Load settings, exiting with the setup-failure code when they are invalid."""
    try:
        return load_settings(config)
    except (OSError, yaml.YAMLError, ValidationError) as e:
        setup_logging()
        logger.error(f"Invalid settings: {e}")
        raise typer.Exit(int(ExitCode.SETUP_FAILURE))


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file"),
):
    """Run one reproduction attempt."""
    cfg = settings_or_exit(config)
    setup_logging(cfg.log_level, cfg.log_file)

    harness = ReproHarness(cfg)
    try:
        result = run_async(harness.run())
    except (SetupError, OSError) as e:
        logger.error(str(e))
        raise typer.Exit(int(ExitCode.SETUP_FAILURE))

    raise typer.Exit(int(report(result)))


@app.command()
def fanout(
    runs: Optional[int] = typer.Option(None, "--runs", "-n", help="Number of concurrent runs"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file"),
):
    """Launch many runs at once and summarize their exit codes."""
    cfg = settings_or_exit(config)
    setup_logging(cfg.log_level, cfg.log_file)

    count = runs or cfg.fanout_runs
    results = run_async(fan_out(count, run_command(config)))

    table = Table(title=f"{count} runs")
    table.add_column("Run", justify="right")
    table.add_column("PID", justify="right")
    table.add_column("Exit", justify="right")

    for r in results:
        style = "green" if r.returncode == 0 else "red"
        table.add_row(str(r.index), str(r.pid), f"[{style}]{r.returncode}[/{style}]")

    console.print(table)

    code = overall_exit_code(results)
    console.print(f"Exited {code}")
    raise typer.Exit(code)


if __name__ == "__main__":
    app()
