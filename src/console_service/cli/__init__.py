"""CLI package for console-service."""

import typer

from console_service.cli import log_cmd, run_cmd

app = typer.Typer(
    name="console-service",
    help="Run and inspect console-service programs",
    no_args_is_help=True,
)

app.add_typer(log_cmd.app, name="log", help="Service log files")

# Register run as a top-level command
app.command(name="run", help="Run the heartbeat service")(run_cmd.run)


@app.command()
def version():
    """Show version information."""
    from console_service import __version__
    typer.echo(f"console-service {__version__}")


if __name__ == "__main__":
    app()
