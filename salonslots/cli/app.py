"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.json_store import JsonSalonStore
from ..config import AppConfig
from ..domain.exceptions import SalonSlotsError
from ..domain.policies import can_cancel, evaluate_cancellation_fee
from ..domain.slot_calculator import UnavailableReason
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="salonslots",
    help="Find bookable appointment slots for a salon",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

REASON_MESSAGES = {
    UnavailableReason.PAST_DATE: "The requested date is in the past.",
    UnavailableReason.DAY_OFF: "The employee is on a day off on this date.",
    UnavailableReason.CLOSED_DAY: "The salon does not work on this weekday.",
    UnavailableReason.INVALID_SCHEDULE: "No usable working hours are configured.",
    UnavailableReason.INVALID_TIME: "The requested time is not a valid HH:MM time.",
    UnavailableReason.OUTSIDE_HOURS: "The service does not fit within working hours.",
    UnavailableReason.DURING_BREAK: "The service overlaps the break.",
    UnavailableReason.SLOT_TAKEN: "The slot conflicts with an existing appointment.",
}

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", "-f", help="Path to the salon data JSON file")]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _bootstrap(config_file: Optional[Path], data_file: Optional[Path]) -> tuple[AppConfig, JsonSalonStore]:
    """Load configuration, set up logging and open the salon data."""
    config = AppConfig.load(config_file)
    _configure_logging(config.log_level)

    data_path = data_file or config.data_file
    if data_path is None:
        raise SalonSlotsError("No salon data file given. Use --data or set data_file in config.yaml.")
    return config, JsonSalonStore(data_path)


def _build_service(config: AppConfig, store: JsonSalonStore) -> AvailabilityService:
    return AvailabilityService(
        data_source=store,
        calculator=config.slots.build_calculator(),
        timezone=config.timezone,
        pending_grace_minutes=config.slots.pending_grace_minutes,
    )


def _parse_day(value: Optional[str], tz: str):
    """Parse YYYY-MM-DD, defaulting to today in the salon timezone."""
    if value is None:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Could not parse date '{value}': {e}[/red]")
        raise typer.Exit(1)


@app.command()
def slots(
    merchant_id: Annotated[str, typer.Argument(help="Merchant (salon) id")],
    day: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    employee: Annotated[Optional[str], typer.Option("--employee", "-e", help="Employee id, or 'any'")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List free appointment slots for a date.

    Examples:

        salonslots slots m1 --date 2024-11-25 --duration 60

        salonslots slots m1 --employee e1 -f salon_data.json
    """
    try:
        config, store = _bootstrap(config_file, data_file)
        target_day = _parse_day(day, config.timezone)
        service_duration = duration if duration is not None else config.default_service_duration

        service = _build_service(config, store)
        free = asyncio.run(
            service.list_available_slots(
                merchant_id=merchant_id,
                day=target_day,
                service_duration=service_duration,
                employee_id=employee,
            )
        )

        console.print()
        if not free:
            console.print(
                f"[yellow]⚠ No free slots on {target_day.isoformat()}.[/yellow]\n"
                "The salon may be closed, fully booked or misconfigured for this date."
            )
        else:
            table = Table(
                title=f"Free slots on {target_day.isoformat()} ({service_duration} min)",
                show_header=True,
                header_style="bold cyan"
            )
            table.add_column("#", style="dim")
            table.add_column("Start", style="bold green")
            for idx, slot in enumerate(free, 1):
                table.add_row(str(idx), slot)
            console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    merchant_id: Annotated[str, typer.Argument(help="Merchant (salon) id")],
    employee_id: Annotated[str, typer.Argument(help="Employee id, or 'any'")],
    day: Annotated[str, typer.Option("--date", help="Date (YYYY-MM-DD)")],
    start: Annotated[str, typer.Option("--time", "-t", help="Start time (HH:MM)")],
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Service duration in minutes")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Check whether one slot can be booked.
    """
    try:
        config, store = _bootstrap(config_file, data_file)
        target_day = _parse_day(day, config.timezone)
        service_duration = duration if duration is not None else config.default_service_duration

        service = _build_service(config, store)
        reason = asyncio.run(
            service.find_unavailability(
                merchant_id=merchant_id,
                employee_id=employee_id,
                day=target_day,
                start=start,
                duration=service_duration,
            )
        )

        if reason is None:
            console.print(Panel.fit(
                f"[bold green]✓ {target_day.isoformat()} {start} is available[/bold green]",
                title="Availability"
            ))
        else:
            console.print(Panel.fit(
                f"[bold red]✗ {target_day.isoformat()} {start} is not available[/bold red]\n\n"
                f"{REASON_MESSAGES[reason]}",
                title="Availability"
            ))
            raise typer.Exit(2)

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def cancellation_fee(
    appointment_id: Annotated[str, typer.Argument(help="Appointment id")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show the fee a client would pay for cancelling now.
    """
    try:
        config, store = _bootstrap(config_file, data_file)

        appointment = store.get_appointment(appointment_id)
        if appointment is None:
            raise SalonSlotsError(f"Appointment not found: {appointment_id}")

        decision = can_cancel(appointment.status)
        if not decision.allowed:
            console.print(f"[yellow]⚠ {decision.reason}[/yellow]")
            raise typer.Exit(2)

        policy = store.get_cancellation_policy(appointment.merchant_id)
        if policy is None:
            raise SalonSlotsError(f"Merchant not found: {appointment.merchant_id}")

        starts_at = pendulum.datetime(
            appointment.date.year,
            appointment.date.month,
            appointment.date.day,
            appointment.start_time.hour,
            appointment.start_time.minute,
            tz=config.timezone,
        )
        fee = evaluate_cancellation_fee(policy, starts_at, pendulum.now(config.timezone))

        if fee.charged:
            console.print(
                f"[bold red]Cancellation fee: {fee.format_amount()}[/bold red] "
                f"({fee.hours_before:.1f}h before, policy {policy.policy_hours}h)"
            )
        else:
            console.print(f"[green]✓ Free cancellation[/green] ({fee.hours_before:.1f}h before)")

    except (FileNotFoundError, ValueError, SalonSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
