"""
dataset-monitor scan-once - Run exactly one pass.
"""

from pathlib import Path

import typer

from dataset_monitor.monitor.instants import format_instant
from dataset_monitor.service.runner import run_single_pass

app = typer.Typer(name="scan-once", help="Run a single monitor pass", invoke_without_command=True)


@app.callback()
def scan_once(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    bucket: str | None = typer.Option(None, "--bucket", help="S3 bucket (overrides monitor.bucket)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Scan for the oldest pending data set and process it, then exit.
    """
    if ctx.invoked_subcommand is None:
        code, result = run_single_pass(project_dir=project_dir, env=env, bucket=bucket, verbose=verbose)
        if result is None:
            typer.echo("Error: invalid configuration", err=True)
        else:
            line = f"Pass status: {result.status.value}"
            if result.timestamp is not None:
                line += f" (data set {format_instant(result.timestamp)})"
            typer.echo(line)
            if result.error is not None:
                typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(code)
