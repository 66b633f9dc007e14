"""Run command: start the heartbeat service in either run mode."""

import typer
from rich.console import Console

from console_service.daemon.controller import ControllerExistsError
from console_service.daemon.logging_setup import setup_logging
from console_service.demo import HeartbeatService

console = Console()


def run(
    name: str = typer.Argument("heartbeat", help="Service name"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Run as a console program instead of under the SCM"),
    interval: float = typer.Option(5.0, "--interval", "-i", min=0.1, help="Seconds between heartbeats"),
):
    """Run the heartbeat service and exit with its exit code."""
    setup_logging(service_mode=not debug)

    try:
        service = HeartbeatService(name, interval=interval)
    except ControllerExistsError as e:
        console.print(f"[red]Cannot start:[/red] {e}")
        raise typer.Exit(code=1)

    with service:
        if debug:
            console.print(f"[dim]Logging to {service.log_filename}[/dim]")
        rc = service.start(["/debug"] if debug else [])

    if rc != 0:
        console.print(f"[red]{name} exited with code {rc}[/red]")
    raise typer.Exit(code=rc)
