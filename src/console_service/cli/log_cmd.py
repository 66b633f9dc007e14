"""Log subcommand group: locate and read service log files."""

import typer
from rich.console import Console

from console_service.daemon.paths import get_log_file_path
from console_service.log.sink import read_log_lines

app = typer.Typer(help="Service log files")
console = Console()


@app.command()
def path(name: str = typer.Argument(..., help="Service name")):
    """Print the default log file path of a service."""
    typer.echo(str(get_log_file_path(name)))


@app.command()
def show(
    name: str = typer.Argument(..., help="Service name"),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of trailing lines to show"),
):
    """Show the end of a service's log file."""
    log_file = get_log_file_path(name)
    try:
        content = read_log_lines(log_file)
    except FileNotFoundError:
        console.print(f"[yellow]No log file at {log_file}[/yellow]")
        raise typer.Exit(code=1)
    except OSError as e:
        console.print(f"[red]Cannot read {log_file}:[/red] {e}")
        raise typer.Exit(code=1)

    for line in content[-lines:]:
        console.print(line, markup=False, highlight=False)
