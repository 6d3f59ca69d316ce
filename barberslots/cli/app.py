"""
Main CLI application using Typer.
"""

import asyncio
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..adapters.mock_store import MockStoreClient
from ..adapters.supabase_client import SupabaseStoreClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BarberSlotsError
from ..domain.models import WEEKDAY_NAMES, Barber
from ..domain.slot_calculator import SlotCalculator
from ..logging_config import setup_logging
from ..services.booking_slots import BookingSlotService, BookingStoreProtocol

app = typer.Typer(
    name="barberslots",
    help="Find bookable appointment slots for a barber",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Usar dados de teste em vez do Supabase."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """
    Horários disponíveis para agendamento na barbearia.
    """
    setup_logging("DEBUG" if verbose else "WARNING")


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load the config file; mock mode falls back to defaults when it is missing."""
    config_path = config_file or get_default_config_path()

    if mock and not config_path.exists():
        return AppConfig()

    return AppConfig.load_from_yaml(config_path)


def _build_store(config: AppConfig, mock: bool) -> BookingStoreProtocol:
    if mock:
        console.print("[yellow]⚠  MODO MOCK: usando dados de teste[/yellow]\n")
        return MockStoreClient()

    config.require_supabase()
    return SupabaseStoreClient(
        base_url=config.supabase_url,
        api_key=config.supabase_key,
        timeout=config.defaults.request_timeout_seconds,
    )


def _parse_date(value: Optional[str], tz: str) -> date:
    if not value:
        return pendulum.today(tz).date()

    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Erro ao interpretar a data: {e}[/red]")
        raise typer.Exit(1)


def _clamp_to_booking_window(day: date, days: int, config: AppConfig) -> int:
    """
    Validate the requested range against the booking window.

    Returns the number of days that can be searched from ``day``.
    """
    today = pendulum.today(config.timezone).date()
    last_bookable = today.add(days=config.booking_window_days)

    if day < today or day > last_bookable:
        console.print(
            f"[red]Data fora do período de agendamento "
            f"({today.format('DD/MM/YYYY')} - {last_bookable.format('DD/MM/YYYY')}).[/red]"
        )
        raise typer.Exit(1)

    available_days = (last_bookable - day).in_days() + 1
    if days > available_days:
        console.print(
            f"[yellow]Limitando a busca a {available_days} dia(s) "
            f"(agendamentos até {last_bookable.format('DD/MM/YYYY')}).[/yellow]"
        )
        return available_days

    return days


@app.command()
def slots(
    barber: Annotated[str, typer.Argument(help="Barber alias, id or name")],
    service: Annotated[str, typer.Option("--service", "-s", help="Service id or name")],
    day: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD). Defaults to today")] = None,
    days: Annotated[int, typer.Option("--days", "-n", min=1, help="Number of consecutive days to search")] = 1,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show the bookable start times for a service.

    Examples:

        barberslots slots joao --service corte --date 2024-11-25

        barberslots slots joao -s "Corte + Barba" --days 7

        barberslots slots 4f1c2a9e-7b3d-4c5e-9a1f-2b6d8e0c4a11 -s svc-corte --mock
    """
    try:
        config = _load_config(config_file, mock)
        tz = config.timezone

        start_date = _parse_date(day, tz)
        days = _clamp_to_booking_window(start_date, days, config)

        store = _build_store(config, mock)
        calculator = SlotCalculator(granularity_minutes=config.defaults.slot_granularity_minutes)
        booking = BookingSlotService(
            store,
            calculator,
            timezone=tz,
            min_lead_minutes=config.defaults.min_lead_minutes,
        )

        found_barber: Barber = asyncio.run(store.get_barber(config.resolve_barber(barber)))
        console.print(f"[bold cyan]💈 {found_barber.display_name()}[/bold cyan]\n")

        if days == 1:
            start_times = asyncio.run(
                booking.find_slots(barber_id=found_barber.id, service_id=service, day=start_date)
            )
            if not start_times:
                console.print("[yellow]Nenhum horário disponível para esta data.[/yellow]")
                return

            console.print(
                f"[bold green]✓ {len(start_times)} horário(s) disponível(is) em "
                f"{start_date.format('DD/MM/YYYY')}:[/bold green]\n"
            )
            console.print("  " + "  ".join(start_times))
        else:
            results = asyncio.run(
                booking.find_slots_in_range(
                    barber_id=found_barber.id,
                    service_id=service,
                    start_date=start_date,
                    days=days,
                )
            )
            if not results:
                console.print(
                    "[yellow]Nenhum horário disponível neste período.[/yellow]\n"
                    "Tente um período maior ou outro serviço."
                )
                return

            for day_slots in results:
                console.print(f"  {day_slots.format_display()}")

        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Erro:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def services(
    barber: Annotated[str, typer.Argument(help="Barber alias, id or name")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List the services offered by a barber.
    """
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)

        found_barber = asyncio.run(store.get_barber(config.resolve_barber(barber)))
        offered = asyncio.run(store.get_services(found_barber.id))

        if not offered:
            console.print("[yellow]Nenhum serviço cadastrado para este barbeiro.[/yellow]")
            return

        table = Table(
            title=f"Serviços - {found_barber.display_name()}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Serviço", style="bold yellow")
        table.add_column("ID", style="dim")
        table.add_column("Duração", justify="right")
        table.add_column("Preço", justify="right")

        for item in offered:
            table.add_row(item.name, item.id, f"{item.duration} min", item.format_price())

        console.print()
        console.print(table)
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Erro:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def hours(
    barber: Annotated[str, typer.Argument(help="Barber alias, id or name")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Show a barber's weekly working hours.
    """
    try:
        config = _load_config(config_file, mock)
        store = _build_store(config, mock)

        found_barber = asyncio.run(store.get_barber(config.resolve_barber(barber)))
        rules = {rule.day_of_week: rule for rule in asyncio.run(store.get_working_hours(found_barber.id))}

        table = Table(
            title=f"Horário de funcionamento - {found_barber.display_name()}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Dia", style="bold yellow")
        table.add_column("Horário")

        for weekday, name in WEEKDAY_NAMES.items():
            rule = rules.get(weekday)
            if rule is None or not rule.is_active:
                table.add_row(name, "[dim]Fechado[/dim]")
            else:
                table.add_row(name, f"{rule.start_time[:5]} - {rule.end_time[:5]}")

        console.print()
        console.print(table)
        console.print()

    except (BarberSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Erro:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]barberslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
