"""Typer CLI entrypoint for the announcements dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Optional, Sequence

import typer
from typer import BadParameter
from rich import box
from rich.console import Console
from rich.table import Table

from .client import ApiClient
from .config import ConfigRepository, DashboardConfig
from .dashboard import Dashboard
from .engine import Announcement, Facets, FilterCriteria, StatsSnapshot, StatusFilter, parse_date
from .engine.filters import quick_filters_from_stats
from .engine.models import ALL, CONTACT_FIELDS
from .errors import ApiError, DashboardError, ExportError, ScrapeAlreadyRunning, ScrapingDisabled
from .logging_conf import available_logs, configure_logging, default_log_dir, tail_log
from .scheduler import ScrapeJobMonitor
from .ui import ProgressActivity

app = typer.Typer(
    help="EspaceAgro announcements dashboard",
    no_args_is_help=True,
    rich_markup_mode=None,
)
scrape_app = typer.Typer(
    name="scrape",
    help="Trigger and monitor the backend scraper",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Inspect dashboard configuration",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect dashboard logs",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    config: DashboardConfig
    client: ApiClient
    dashboard: Dashboard
    scheduler: Any = None


class QuickFilterChoice(str, Enum):
    UNCHECKED = "unchecked"
    CHECKED = "checked"
    TODAY = "today"
    LAST_7_DAYS = "last-7-days"


SearchOption = Annotated[
    str, typer.Option("--search", "-s", help="Text searched in title, description, location, products and company.")
]
TypeOption = Annotated[str, typer.Option("--type", "-t", help="Exact announcement type, or 'all'.")]
LocationOption = Annotated[str, typer.Option("--location", "-l", help="Exact location, or 'all'.")]
ProductOption = Annotated[str, typer.Option("--product", "-p", help="Product name contained in the products field, or 'all'.")]
StatusOption = Annotated[StatusFilter, typer.Option("--status", help="Checked status.")]
DateFromOption = Annotated[str, typer.Option("--date-from", help="Earliest announcement date (YYYY-MM-DD).")]
DateToOption = Annotated[str, typer.Option("--date-to", help="Latest announcement date (YYYY-MM-DD).")]
CompanyOption = Annotated[str, typer.Option("--company", "-c", help="Text contained in the company name.")]
QuickOption = Annotated[
    Optional[list[QuickFilterChoice]],
    typer.Option("--quick", "-q", help="Quick filter shortcut; may be repeated."),
]


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    config = repository.load_config()
    logger = configure_logging(verbose=verbose)
    client = ApiClient(config, logger=logger.bind(component="client"))
    dashboard = Dashboard(client, logger=logger.bind(component="dashboard"))
    return AppState(repository=repository, config=config, client=client, dashboard=dashboard)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _validate_date(value: str, option_name: str) -> str:
    text = value.strip()
    if text and parse_date(text) is None:
        raise BadParameter(f"{option_name} expects a date such as 2024-01-31, got {value!r}.")
    return text


def _build_criteria(
    search: str,
    type_: str,
    location: str,
    product: str,
    status: StatusFilter,
    date_from: str,
    date_to: str,
    company: str,
    quick: Sequence[QuickFilterChoice] | None,
) -> FilterCriteria:
    criteria = FilterCriteria(
        search=search,
        type=type_ or ALL,
        location=location or ALL,
        product=product or ALL,
        status=status,
        date_from=_validate_date(date_from, "--date-from"),
        date_to=_validate_date(date_to, "--date-to"),
        company=company,
    )
    for choice in quick or ():
        if choice is QuickFilterChoice.UNCHECKED:
            criteria.toggle_status(StatusFilter.UNCHECKED)
        elif choice is QuickFilterChoice.CHECKED:
            criteria.toggle_status(StatusFilter.CHECKED)
        elif choice is QuickFilterChoice.TODAY:
            criteria.only_today()
        elif choice is QuickFilterChoice.LAST_7_DAYS:
            criteria.last_seven_days()
    return criteria


def _ensure_scraping_enabled(config: DashboardConfig) -> None:
    if not config.scrape_enabled:
        raise ScrapingDisabled("Scraping is disabled in this environment.")


def _shorten(text: str, width: int) -> str:
    text = " ".join(text.split())
    if len(text) <= width:
        return text
    return text[: width - 1] + "…"


def _render_stats(stats: StatsSnapshot) -> Table:
    table = Table(title="Overview", box=box.SIMPLE_HEAD)
    table.add_column("Total", style="cyan", justify="right")
    table.add_column("Checked", style="green", justify="right")
    table.add_column("Unchecked", style="yellow", justify="right")
    table.add_column("Today", style="magenta", justify="right")
    table.add_row(str(stats.total), str(stats.checked), str(stats.unchecked), str(stats.today))
    return table


def _render_announcements_table(records: Sequence[Announcement]) -> Table:
    table = Table(title="Announcements", box=box.SIMPLE_HEAD, show_lines=False)
    table.add_column("✓", justify="center", no_wrap=True)
    table.add_column("ID", style="dim", justify="right", no_wrap=True)
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("Company", style="magenta")
    table.add_column("Type", style="yellow")
    table.add_column("Location")
    table.add_column("Products", style="green", overflow="fold")
    table.add_column("Date", no_wrap=True)
    for record in records:
        table.add_row(
            "✓" if record.is_checked else "",
            str(record.id),
            _shorten(record.announcement_title, 60),
            _shorten(record.company_name, 30),
            record.announcement_type,
            record.location,
            _shorten(record.products, 40),
            record.announcement_date,
        )
    return table


def _render_facets(facets: Facets) -> Table:
    table = Table(title="Filter values", box=box.SIMPLE_HEAD)
    table.add_column("Facet", style="cyan", no_wrap=True)
    table.add_column("Count", justify="right")
    table.add_column("Values", overflow="fold")
    for label, values in (
        ("Types", facets.types),
        ("Locations", facets.locations),
        ("Products", facets.products),
    ):
        table.add_row(label, str(len(values)), ", ".join(values) or "-")
    return table


def _render_contact(record: Announcement) -> Table:
    table = Table(title=f"Contact · #{record.id} {record.company_name}", box=box.MINIMAL_DOUBLE_HEAD, show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", style="cyan")
    for name, value in record.contact().model_dump().items():
        table.add_row(name, value or "-")
    return table


def _print_active_filters(criteria: FilterCriteria) -> None:
    active = criteria.active_filters()
    if active:
        console.print(
            "Active filters: " + " · ".join(f"{label}: {value}" for label, value in active),
            style="dim",
        )


app.add_typer(scrape_app, name="scrape", help="Start the backend scraper and follow its progress")
app.add_typer(config_app, name="config", help="Show the effective configuration")
app.add_typer(log_app, name="log", help="Show recent log lines")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging.", is_flag=True),
) -> None:
    state = build_state(verbose)
    ctx.obj = state
    ctx.call_on_close(state.client.close)


@app.command("list", help="Fetch announcements and show those matching the filters.")
def list_announcements(
    ctx: typer.Context,
    search: SearchOption = "",
    type_: TypeOption = ALL,
    location: LocationOption = ALL,
    product: ProductOption = ALL,
    status: StatusOption = StatusFilter.ALL,
    date_from: DateFromOption = "",
    date_to: DateToOption = "",
    company: CompanyOption = "",
    quick: QuickOption = None,
    limit: int = typer.Option(50, "--limit", min=1, help="Maximum number of rows to display."),
    with_stats: bool = typer.Option(True, "--stats/--no-stats", help="Show the overview counters."),
) -> None:
    state = _get_state(ctx)
    criteria = _build_criteria(search, type_, location, product, status, date_from, date_to, company, quick)
    dashboard = state.dashboard
    dashboard.criteria = criteria
    dashboard.refresh()
    if with_stats:
        console.print(_render_stats(dashboard.stats))
    _print_active_filters(criteria)
    view = dashboard.filtered_view()
    if not view:
        console.print("No announcements match the current filters.", style="yellow")
    else:
        console.print(_render_announcements_table(view[:limit]))
        if len(view) > limit:
            console.print(f"… {len(view) - limit} more rows not shown (use --limit).", style="dim")
    console.print(dashboard.summary_line(view))


@app.command("refresh", help="Re-fetch announcements and stats from the backend.")
def refresh_dashboard(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    dashboard = state.dashboard
    dashboard.refresh()
    console.print(_render_stats(dashboard.stats))
    console.print(dashboard.summary_line())


@app.command("facets", help="List the distinct types, locations and products available for filtering.")
def show_facets(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    state.dashboard.refresh_announcements()
    console.print(_render_facets(state.dashboard.facets()))


@app.command("stats", help="Show backend counters and top products/locations quick filters.")
def show_stats(
    ctx: typer.Context,
    top: int = typer.Option(5, "--top", min=1, help="Number of top products/locations to show."),
) -> None:
    state = _get_state(ctx)
    stats = state.dashboard.refresh_stats()
    console.print(_render_stats(stats))
    shortcuts = quick_filters_from_stats(stats, limit=top)
    if not shortcuts:
        console.print("The backend did not report top products or locations.", style="dim")
        return
    table = Table(title="Quick filters", box=box.SIMPLE_HEAD)
    table.add_column("Filter", style="cyan")
    table.add_column("Command", style="dim", overflow="fold")
    for shortcut in shortcuts:
        table.add_row(
            shortcut.label,
            f'agro-dashboard list --{shortcut.field} "{shortcut.value}"',
        )
    console.print(table)


@app.command("export", help="Export the filtered announcements to a dated CSV (or JSON lines) file.")
def export_announcements(
    ctx: typer.Context,
    search: SearchOption = "",
    type_: TypeOption = ALL,
    location: LocationOption = ALL,
    product: ProductOption = ALL,
    status: StatusOption = StatusFilter.ALL,
    date_from: DateFromOption = "",
    date_to: DateToOption = "",
    company: CompanyOption = "",
    quick: QuickOption = None,
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="csv or json (default from config)."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory receiving the file."),
) -> None:
    state = _get_state(ctx)
    fmt = (fmt or state.config.export_format).lower()
    if fmt not in ("csv", "json"):
        raise BadParameter("--format must be csv or json.")
    dashboard = state.dashboard
    dashboard.criteria = _build_criteria(
        search, type_, location, product, status, date_from, date_to, company, quick
    )
    dashboard.refresh_announcements()
    _print_active_filters(dashboard.criteria)
    if not dashboard.filtered_view():
        console.print("Nothing to export: no announcement matches the current filters.", style="yellow")
        raise typer.Exit(code=0)
    target_dir = output_dir or state.repository.export_dir()
    try:
        result = dashboard.export(target_dir, state.config.app_name, fmt)
    except ExportError as exc:
        console.print(f"Error exporting announcements: {exc}", style="red")
        raise typer.Exit(code=1)
    console.print(f"Exported {result.count} records to {result.path}", style="green")


def _set_checked(ctx: typer.Context, announcement_id: int, checked: bool | None) -> None:
    state = _get_state(ctx)
    dashboard = state.dashboard
    dashboard.refresh_announcements()
    try:
        if checked is None:
            record = dashboard.toggle_check(announcement_id)
        else:
            record = dashboard.set_checked(announcement_id, checked)
    except ApiError as exc:
        console.print(f"Could not update announcement {announcement_id}: {exc}", style="red")
        raise typer.Exit(code=1)
    except DashboardError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    label = "checked" if record.is_checked else "unchecked"
    console.print(f"Announcement {announcement_id} marked as {label}.", style="green")


@app.command("check", help="Mark an announcement as checked.")
def check(ctx: typer.Context, announcement_id: int = typer.Argument(..., help="Announcement ID.")) -> None:
    _set_checked(ctx, announcement_id, True)


@app.command("uncheck", help="Mark an announcement as unchecked.")
def uncheck(ctx: typer.Context, announcement_id: int = typer.Argument(..., help="Announcement ID.")) -> None:
    _set_checked(ctx, announcement_id, False)


@app.command("toggle", help="Flip the checked flag of an announcement.")
def toggle(ctx: typer.Context, announcement_id: int = typer.Argument(..., help="Announcement ID.")) -> None:
    _set_checked(ctx, announcement_id, None)


@app.command("contact", help="Show or edit the contact fields of an announcement.")
def contact(
    ctx: typer.Context,
    announcement_id: int = typer.Argument(..., help="Announcement ID."),
    prenom: Optional[str] = typer.Option(None, "--prenom", help="First name."),
    adresse: Optional[str] = typer.Option(None, "--adresse", help="Street address."),
    cod_postal: Optional[str] = typer.Option(None, "--cod-postal", help="Postal code."),
    ville: Optional[str] = typer.Option(None, "--ville", help="City."),
    mail: Optional[str] = typer.Option(None, "--mail", help="E-mail address."),
    tel: Optional[str] = typer.Option(None, "--tel", help="Phone number."),
    web_site: Optional[str] = typer.Option(None, "--web-site", help="Website."),
    ok: Optional[str] = typer.Option(None, "--ok", help="Free-text follow-up status."),
) -> None:
    state = _get_state(ctx)
    dashboard = state.dashboard
    dashboard.refresh_announcements()
    values = dict(zip(CONTACT_FIELDS, (prenom, adresse, cod_postal, ville, mail, tel, web_site, ok)))
    changes = {name: value for name, value in values.items() if value is not None}
    try:
        if changes:
            record = dashboard.save_contact(announcement_id, **changes)
            console.print("Contact information saved.", style="green")
        else:
            record = dashboard.store.get(announcement_id)
            if record is None:
                raise DashboardError(f"Announcement {announcement_id} is not loaded")
    except ApiError as exc:
        console.print(f"Error saving contact information: {exc}", style="red")
        raise typer.Exit(code=1)
    except DashboardError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    console.print(_render_contact(record))


@scrape_app.command("start", help="Start a scrape and follow it until the backend reports completion.")
def scrape_start(
    ctx: typer.Context,
    detach: bool = typer.Option(False, "--detach", help="Only trigger the job, do not poll.", is_flag=True),
    interval: Optional[float] = typer.Option(None, "--interval", min=0.1, help="Seconds between status polls."),
) -> None:
    state = _get_state(ctx)
    try:
        _ensure_scraping_enabled(state.config)
    except ScrapingDisabled as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    if detach:
        try:
            state.client.start_scrape()
        except ApiError as exc:
            console.print(f"Error starting scrape: {exc}", style="red")
            raise typer.Exit(code=1)
        console.print("Scrape started. Use `agro-dashboard scrape status` to follow it.", style="green")
        return

    monitor = ScrapeJobMonitor(
        state.client,
        on_refresh=state.dashboard.refresh,
        interval=interval or state.config.poll_interval,
        max_duration=state.config.max_poll_duration,
        on_complete=lambda message: console.print(message, style="green"),
        scheduler=state.scheduler,
    )
    activity = ProgressActivity(console=console)
    try:
        monitor.start()
    except (ApiError, ScrapeAlreadyRunning) as exc:
        console.print(f"Error starting scrape: {exc}", style="red")
        raise typer.Exit(code=1)
    activity.start("Scraping… press Ctrl+C to stop and show results so far")
    try:
        while not monitor.wait(timeout=0.5):
            if monitor.status_message:
                activity.update(f"Scraping… {monitor.status_message} (Ctrl+C to stop)")
    except KeyboardInterrupt:
        monitor.stop()
        # a completion already under way finishes its own refresh
        monitor.wait()
    finally:
        activity.close()
        monitor.shutdown()
    console.print(_render_stats(state.dashboard.stats))
    console.print(state.dashboard.summary_line())


@scrape_app.command("status", help="Ask the backend whether a scrape is running.")
def scrape_status(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    try:
        status = state.client.scrape_status()
    except ApiError as exc:
        console.print(f"Error reading scrape status: {exc}", style="red")
        raise typer.Exit(code=1)
    label = "running" if status.running else "idle"
    console.print(f"Scraper {label}. {status.message}".strip(), style="cyan" if status.running else "green")


@config_app.command("show", help="Print the effective configuration.")
def config_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    table = Table(title="Configuration", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for key, value in state.config.model_dump(mode="json").items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)
    console.print(f"File: {state.repository.locator.config_path()}", style="dim")


@log_app.command("show", help="Show the last lines of a log file.")
def log_show(
    name: str = typer.Argument("dashboard", help="Log name: dashboard or error."),
    tail: int = typer.Option(50, "--tail", min=1, help="Number of lines."),
) -> None:
    path = default_log_dir() / f"{name}.log"
    lines = tail_log(path, tail)
    if not lines:
        available = ", ".join(p.stem for p in available_logs()) or "none"
        console.print(f"No log lines in {path.name} (available: {available}).", style="dim")
        return
    console.print(f"==> {path} <==", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


__all__ = ["AppState", "app", "build_state"]
