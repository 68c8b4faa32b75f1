"""
Main CLI entry point.
"""

import typer

from dataset_monitor import __version__
from dataset_monitor.cli import run, scan


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"dataset-monitor version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="dataset-monitor",
    help="dataset-monitor - Picks up data sets uploaded to S3 and hands them to a loader",
    add_completion=True,
)

# Register subcommands
app.add_typer(run.app, name="run")
app.add_typer(scan.app, name="scan-once")


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        help="Show version and exit.",
    ),
):
    """
    dataset-monitor - Picks up data sets uploaded to S3 and hands them to a loader.

    Run 'dataset-monitor <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None:
        if not version:
            typer.echo(ctx.get_help())
            raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
