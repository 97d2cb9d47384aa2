"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.table import Table

from ..adapters.graph_store import GraphCalendarStore
from ..adapters.json_store import JsonCalendarStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..domain.models import DateRange, RankingPreferences
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="groupavailability",
    help="Find common free time across calendars and cache daily availability blocks",
    add_completion=False
)

console = Console()

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    Group availability engine.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, graph_token: Optional[str] = None) -> AvailabilityService:
    store = JsonCalendarStore(
        events_file=config.events_file,
        blocks_file=config.blocks_file,
        config=config,
    )
    busy_source = GraphCalendarStore(access_token=graph_token) if graph_token else store
    return AvailabilityService(busy_source=busy_source, block_store=store)


def _determine_date_range(
    *,
    tz: str,
    search_days: int,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
) -> DateRange:
    """
    Resolve the desired days based on shortcut flags or explicit dates.
    """
    if this_week and next_week:
        raise ValueError("--this-week and --next-week cannot be used together.")

    today = pendulum.today(tz)

    if this_week:
        return DateRange(start=today.date(), end=today.end_of("week").date())

    if next_week:
        next_monday = today.next(pendulum.MONDAY)
        return DateRange(start=next_monday.date(), end=next_monday.add(days=6).date())

    if start_option:
        start_date = pendulum.from_format(start_option, "YYYY-MM-DD", tz=tz)
    else:
        start_date = today

    if end_option:
        end_date = pendulum.from_format(end_option, "YYYY-MM-DD", tz=tz)
    else:
        end_date = start_date.add(days=search_days - 1)

    return DateRange(start=start_date.date(), end=end_date.date())


@app.command()
def find(
    participants: Annotated[List[str], typer.Argument(help="Participant names or email addresses.")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Minimum slot length in minutes")] = None,
    prefer: Annotated[Optional[List[str]], typer.Option("--prefer", help="Preferred window HH:MM-HH:MM (repeatable)")] = None,
    day: Annotated[Optional[List[int]], typer.Option("--day", help="Allowed weekday, Sunday=0 (repeatable)")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Search from today until the end of this week.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Search next week (Monday-Sunday).")] = False,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Show at most this many slots")] = 10,
    graph_token: Annotated[Optional[str], typer.Option("--graph-token", envvar="GRAPH_ACCESS_TOKEN", help="Read busy times from Microsoft Graph with this token.")] = None,
):
    """
    Find ranked common free time for a group.

    Examples:

        groupavailability find alice bob --duration 60

        groupavailability find alice bob --next-week --prefer 10:00-12:00 --day 1 --day 3
    """
    try:
        config = _load_config(config_file)
        tz = config.timezone

        date_range = _determine_date_range(
            tz=tz,
            search_days=config.defaults.search_days,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end,
        )
        search_range = date_range.bounds(tz)
        participant_emails = config.resolve_participants(participants)
        min_duration = duration if duration is not None else config.defaults.min_duration_minutes
        preferences = (
            RankingPreferences.from_strings(prefer) if prefer else config.ranking_preferences()
        )
        allowed_days = day if day else config.allowed_days

        console.print(f"[bold cyan]Participants:[/bold cyan] {', '.join(participant_emails)}")
        console.print(
            f"[bold cyan]Range:[/bold cyan] {date_range.start.isoformat()} - {date_range.end.isoformat()} ({tz})"
        )
        console.print(f"[bold cyan]Minimum duration:[/bold cyan] {min_duration} minutes\n")

        service = _build_service(config, graph_token)
        ranked = asyncio.run(
            service.find_slots(
                participants=participant_emails,
                search_range=search_range,
                min_duration_minutes=min_duration,
                preferences=preferences,
                allowed_days=allowed_days,
                timezone=tz,
            )
        )
    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not ranked:
        console.print(
            "[yellow]No common free time found.[/yellow]\n"
            "Try a longer range or a shorter minimum duration."
        )
        return

    console.print(f"[bold green]{len(ranked)} free slot(s) found[/bold green]\n")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Score", justify="right", style="bold yellow")
    table.add_column("Day")
    table.add_column("Slot")
    table.add_column("Minutes", justify="right", style="dim")

    for position, scored in enumerate(ranked[:limit], 1):
        local_start = scored.start.in_timezone(tz)
        local_end = scored.end.in_timezone(tz)
        table.add_row(
            str(position),
            str(scored.score),
            DAY_NAMES[local_start.isoweekday() % 7],
            f"{local_start.format('YYYY-MM-DD HH:mm')} - {local_end.format('HH:mm')}",
            str(int(scored.slot.duration_minutes())),
        )

    console.print(table)


@app.command()
def materialize(
    user: Annotated[str, typer.Argument(help="User name or email address.")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="First day (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="Last day (YYYY-MM-DD)")] = None,
    occupied: Annotated[bool, typer.Option("--occupied", help="Also store occupied blocks.")] = False,
):
    """
    Pre-compute and store a user's daily availability blocks.
    """
    try:
        config = _load_config(config_file)
        tz = config.timezone
        date_range = _determine_date_range(
            tz=tz,
            search_days=config.defaults.search_days,
            this_week=False,
            next_week=False,
            start_option=start,
            end_option=end,
        )
        user_id = config.resolve_participant(user)

        service = _build_service(config)
        blocks = asyncio.run(
            service.generate_availability_blocks(
                user_id=user_id,
                date_range=date_range,
                timezone=tz,
                include_occupied=occupied,
            )
        )
    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold green]{len(blocks)} block(s) generated for {user_id}[/bold green]")
    for block in blocks:
        local = block.start_time.in_timezone(tz)
        local_end = block.end_time.in_timezone(tz)
        status = "[green]free[/green]" if block.is_free else "[red]busy[/red]"
        console.print(f"  {local.format('YYYY-MM-DD HH:mm')} - {local_end.format('HH:mm')} {status}")


@app.command()
def list_participants(
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="Path to config file"
    )
):
    """
    List all configured participants.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.participants:
        console.print("[yellow]No participants defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured participants",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("E-mail", style="dim")

    for participant in config.participants:
        table.add_row(participant.name, participant.email)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]groupavailability[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
