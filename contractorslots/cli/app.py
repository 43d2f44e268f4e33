"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.fixture_loader import load_fixture
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..domain.models import SlotGenerationResult
from ..domain.timezones import is_valid_iana_zone, offset_hours_for
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="contractorslots",
    help="Generate bookable time slots from contractor availability",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
DataOption = Annotated[
    Optional[Path],
    typer.Option("--data", help="Availability fixture (YAML/JSON). Defaults to data_file from the config")
]


def _load_config(config_file: Optional[Path]) -> Tuple[AppConfig, Optional[Path]]:
    """Load the explicit config, else ./config.yaml if present, else defaults."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file), config_file

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path), default_path

    return AppConfig(), None


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_service(config: AppConfig, config_path: Optional[Path], data: Optional[Path]) -> AvailabilityService:
    data_path = data or config.resolve_data_file(config_path)
    repository = load_fixture(data_path)
    return AvailabilityService(
        data_source=repository,
        repository=repository,
        settings=config.availability_settings(),
    )


def _render_slots(result: SlotGenerationResult) -> None:
    if not result.slots:
        console.print(
            "[yellow]⚠ No available slots found.[/yellow]\n"
            "Try a longer date range or a shorter service duration."
        )
        return

    table = Table(
        title=f"{result.total} available slot(s) ({result.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold")
    table.add_column("Day")
    table.add_column("Local", style="bold yellow")
    table.add_column("UTC", style="dim")
    table.add_column("Min", justify="right")

    for slot in result.slots:
        table.add_row(
            slot.date.to_date_string(),
            slot.date.format("ddd"),
            f"{slot.start_time} - {slot.end_time}",
            f"{slot.start_time_utc.format('HH:mm')} - {slot.end_time_utc.format('HH:mm')}",
            str(slot.duration_minutes),
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def slots(
    contractor_id: Annotated[str, typer.Argument(help="Contractor profile id")],
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD). Defaults to today")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD). Defaults to start + 6 days")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    config_file: ConfigOption = None,
    data: DataOption = None,
    json_output: Annotated[bool, typer.Option("--json", help="Print the result as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """
    Generate available slots for a contractor.

    Examples:

        contractorslots slots contractor-1 --start 2024-11-25 --end 2024-12-01

        contractorslots slots contractor-1 --duration 60 --json
    """
    try:
        config, config_path = _load_config(config_file)
        _configure_logging(config, verbose)

        start_date = start or pendulum.today(config.timezone).to_date_string()
        end_date = end or pendulum.from_format(start_date, "YYYY-MM-DD").add(days=6).to_date_string()
        service_duration = duration if duration is not None else config.defaults.service_duration_minutes

        service = _build_service(config, config_path, data)
        result = asyncio.run(
            service.generate_slots(contractor_id, start_date, end_date, service_duration)
        )
    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    _render_slots(result)


@app.command()
def check(
    contractor_id: Annotated[str, typer.Argument(help="Contractor profile id")],
    day: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    start_time: Annotated[str, typer.Argument(help="Start time (HH:mm, contractor local time)")],
    end_time: Annotated[str, typer.Argument(help="End time (HH:mm, contractor local time)")],
    config_file: ConfigOption = None,
    data: DataOption = None,
):
    """
    Check whether a contractor is free for a whole local interval.
    """
    try:
        config, config_path = _load_config(config_file)
        _configure_logging(config, verbose=False)

        service = _build_service(config, config_path, data)
        available = asyncio.run(service.is_available(contractor_id, day, start_time, end_time))
    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if available:
        console.print(f"[green]✓ Available[/green] {day} {start_time}-{end_time}")
    else:
        console.print(f"[yellow]✗ Not available[/yellow] {day} {start_time}-{end_time}")
        raise typer.Exit(2)


@app.command()
def timezone(
    zone: Annotated[str, typer.Argument(help="IANA timezone, e.g. America/Mexico_City")],
    day: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD). Defaults to today")] = None,
):
    """
    Validate a timezone and show its UTC offset on a date.
    """
    if not is_valid_iana_zone(zone):
        console.print(f"[bold red]Error:[/bold red] Unknown IANA timezone: {zone}")
        raise typer.Exit(1)

    day = day or pendulum.today(zone).to_date_string()
    try:
        offset = offset_hours_for(zone, day)
    except AvailabilityError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold]Timezone:[/bold] {zone}\n"
        f"[bold]Date:[/bold] {day}\n"
        f"[bold]UTC offset:[/bold] {offset:+g} h",
        title="✓ Valid timezone"
    ))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]contractorslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
