"""
dataset-monitor run - Long-running monitor.

Polls the bucket until interrupted (SIGINT/SIGTERM) or a pass fails.
"""

from pathlib import Path

import typer

from dataset_monitor.service.runner import run_monitor

app = typer.Typer(name="run", help="Run the data set monitor until stopped", invoke_without_command=True)


@app.callback()
def run(
    ctx: typer.Context,
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    bucket: str | None = typer.Option(None, "--bucket", help="S3 bucket (overrides monitor.bucket)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Run the data set monitor.

    The first SIGINT/SIGTERM stops the monitor after the current pass; a
    second one also cancels a wait for a data set that is still uploading.
    Exits with 1 on bad configuration and 2 when a pass fails.
    """
    if ctx.invoked_subcommand is None:
        code = run_monitor(project_dir=project_dir, env=env, bucket=bucket, verbose=verbose)
        raise typer.Exit(code)
