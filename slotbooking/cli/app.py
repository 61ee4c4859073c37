"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.email_notifier import build_notifier
from ..adapters.sql_repository import SqlBookingRepository
from ..config import AppConfig, load_config
from ..domain.exceptions import Conflict, InvalidRequest, StorageFailure
from ..domain.models import BookingRequest
from ..services.booking_service import BookingService

app = typer.Typer(
    name="slotbooking",
    help="Book interview slots inside the configured daily window",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path]) -> AppConfig:
    try:
        return load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _build_service(config: AppConfig) -> Tuple[BookingService, SqlBookingRepository]:
    """Wire the repository, notifier and service from configuration."""
    window = config.get_window()
    try:
        repository = SqlBookingRepository.from_url(
            config.database_url,
            granularity_minutes=window.granularity_minutes,
        )
    except StorageFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    service = BookingService(
        repository=repository,
        window=window,
        notifier=build_notifier(config.notifier),
        timezone=config.timezone,
        locale=config.locale,
    )
    return service, repository


@app.command()
def slots(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List the slots that are still free.
    """
    _setup_logging(verbose)
    config = _load(config_file)
    service, repository = _build_service(config)

    try:
        available = asyncio.run(service.list_available_slots())
    except StorageFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    finally:
        repository.dispose()

    if not available:
        console.print("[yellow]No free slots left in the configured window.[/yellow]")
        return

    table = Table(
        title=f"Available slots ({len(available)})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time (ISO-8601)", style="bold yellow", no_wrap=True)
    table.add_column("Formatted", style="dim")

    for slot in available:
        data = slot.to_dict()
        table.add_row(data["time"], data["formattedTime"])

    console.print()
    console.print(table)
    console.print()


@app.command()
def book(
    name: Annotated[str, typer.Option("--name", help="Candidate name")] = "",
    email: Annotated[str, typer.Option("--email", help="Candidate email")] = "",
    phone: Annotated[str, typer.Option("--phone", help="Phone number")] = "",
    year: Annotated[str, typer.Option("--year", help="One of '1st Year' .. '4th Year'")] = "",
    branch: Annotated[str, typer.Option("--branch", help="Branch of study")] = "",
    time: Annotated[str, typer.Option("--time", help="Slot start, e.g. 2024-01-01T09:15:00Z")] = "",
    resume_url: Annotated[str, typer.Option("--resume-url", help="Link to the resume")] = "",
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Book a slot for a candidate.

    Exits with code 1 for invalid requests and 2 for conflicts.
    """
    _setup_logging(verbose)
    config = _load(config_file)
    service, repository = _build_service(config)

    request = BookingRequest.from_mapping({
        "name": name,
        "email": email,
        "phoneNo": phone,
        "year": year,
        "branch": branch,
        "preferredTime": time,
        "resumeUrl": resume_url,
    })

    async def _book():
        try:
            return await service.book(request)
        finally:
            await service.wait_for_notifications()

    try:
        record = asyncio.run(_book())
    except InvalidRequest as e:
        console.print(f"[bold red]Invalid request:[/bold red] {e.rule}")
        for key, value in e.details.items():
            console.print(f"   {key}: {value}")
        raise typer.Exit(1)
    except Conflict as e:
        console.print(f"[bold red]Conflict:[/bold red] {e.reason}")
        raise typer.Exit(2)
    except StorageFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    finally:
        repository.dispose()

    data = record.to_dict()
    console.print(Panel.fit(
        f"[bold green]✓ Interview slot booked successfully[/bold green]\n\n"
        f"[bold]ID:[/bold] {data['id']}\n"
        f"[bold]Name:[/bold] {data['name']}\n"
        f"[bold]E-Mail:[/bold] {data['email']}\n"
        f"[bold]Time:[/bold] {data['formattedTime']}",
        title="Booking"
    ))


@app.command()
def bookings(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List all bookings ordered by slot time.
    """
    _setup_logging(verbose)
    config = _load(config_file)
    service, repository = _build_service(config)

    try:
        records = asyncio.run(service.list_bookings())
    except StorageFailure as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    finally:
        repository.dispose()

    if not records:
        console.print("[yellow]No bookings yet.[/yellow]")
        return

    table = Table(
        title="Bookings",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold yellow")
    table.add_column("Name", no_wrap=True)
    table.add_column("E-Mail", style="dim")
    table.add_column("Phone", style="dim")
    table.add_column("Year")
    table.add_column("Branch")
    table.add_column("Resume", style="dim")

    for record in records:
        data = record.to_dict()
        table.add_row(
            data["formattedTime"],
            data["name"],
            data["email"],
            data["phoneNo"],
            data["year"],
            data["branch"],
            data["resumeUrl"],
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
