import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

import typer

from .cache import ResultCache
from .client import HttpxTransport, ShopifyClient
from .dates import compute_range, format_offset, local_offset, parse_offset
from .formatters import get_formatter
from .messaging import StdioSender, serve as serve_requests
from .models import Credentials, Period, SalesFailure, SendResult
from .orchestrator import SalesOrchestrator
from .settings import SettingsStore
from .storage import JsonFileStore

APP_NAME = "watchsales"
STORE_FILENAME = "store.json"

app = typer.Typer(
    help="Store sales totals for a watch companion", no_args_is_help=True
)


class OutputFormat(str, Enum):
    """Output format options."""

    table = "table"
    json = "json"
    csv = "csv"


class PeriodOption(str, Enum):
    """Period options."""

    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


def _store(ctx: typer.Context) -> JsonFileStore:
    config_dir = ctx.obj.get("config_dir") if ctx.obj else None
    base = Path(config_dir) if config_dir else Path(typer.get_app_dir(APP_NAME))
    return JsonFileStore(base / STORE_FILENAME)


def _build_orchestrator(
    ctx: typer.Context,
    sender,
    transport: HttpxTransport,
    use_stub_when_unconfigured: bool = False,
    clock=None,
) -> SalesOrchestrator:
    store = _store(ctx)

    def client_factory(credentials: Credentials) -> ShopifyClient:
        return ShopifyClient(credentials.domain, credentials.token, transport)

    kwargs = {"clock": clock} if clock else {}
    return SalesOrchestrator(
        settings=SettingsStore(store),
        cache=ResultCache(store),
        client_factory=client_factory,
        sender=sender,
        use_stub_when_unconfigured=use_stub_when_unconfigured,
        **kwargs,
    )


class _NullSender:
    """Sender for one-shot queries, where the result is printed instead."""

    def send(self, message: dict) -> SendResult:
        return SendResult(ok=True)


@app.command()
def configure(
    ctx: typer.Context,
    domain: str = typer.Option(
        ...,
        "--domain",
        "-d",
        prompt="Store domain",
        help="Store domain without https://, e.g. my-shop.myshopify.com.",
    ),
    token: str = typer.Option(
        ...,
        "--token",
        "-t",
        prompt="Admin API access token",
        hide_input=True,
        help="Admin API access token (scope: read_orders).",
    ),
    timezone_offset: Optional[str] = typer.Option(
        None,
        "--timezone",
        "-z",
        help="UTC offset (+HH:MM) for day boundaries. Defaults to the local offset.",
    ),
):
    """
    Save the store connection settings.
    """
    if timezone_offset is None:
        timezone_offset = format_offset(local_offset(datetime.now(timezone.utc)))
    elif parse_offset(timezone_offset.strip()) is None:
        print(f"Invalid timezone '{timezone_offset}'. Use +HH:MM or -HH:MM.")
        raise typer.Exit(code=1)

    store = _store(ctx)
    credentials = SettingsStore(store).save(domain, token, timezone_offset)
    ResultCache(store).clear()
    print(f"✓ Settings saved for {credentials.domain}")


@app.command()
def logout(ctx: typer.Context):
    """
    Clear stored settings, access token and cached totals.
    """
    store = _store(ctx)
    domain = SettingsStore(store).forget()
    ResultCache(store).clear()
    if domain:
        print(f"✓ Cleared settings for {domain}")
    else:
        print("No stored settings found.")


@app.command(name="clear-cache")
def clear_cache(ctx: typer.Context):
    """
    Drop cached sales totals.
    """
    ResultCache(_store(ctx)).clear()
    print("✓ Cache cleared")


@app.command()
def sales(
    ctx: typer.Context,
    period: PeriodOption = typer.Option(
        PeriodOption.daily, "--period", "-p", help="Aggregation window."
    ),
    output_format: OutputFormat = typer.Option(
        OutputFormat.table, "--format", "-f", help="Output format."
    ),
    no_cache: bool = typer.Option(
        False, "--no-cache", help="Always query the store, ignoring cached totals."
    ),
    stub: bool = typer.Option(
        False,
        "--stub-when-unconfigured",
        help="Report a placeholder total instead of failing when settings are missing.",
    ),
):
    """
    Show the sales total for today, this week or this month.
    """
    selected = Period.parse(period.value)
    now = datetime.now(timezone.utc)
    with HttpxTransport() as transport:
        orchestrator = _build_orchestrator(
            ctx,
            _NullSender(),
            transport,
            use_stub_when_unconfigured=stub,
            clock=lambda: now,
        )
        outcome = orchestrator.resolve(selected, use_cache=not no_cache)

    if isinstance(outcome, SalesFailure):
        print(f"Error fetching sales: {outcome.error}")
        raise typer.Exit(code=1)

    credentials = orchestrator.settings.load()
    date_range = compute_range(selected, now, credentials.timezone)
    formatter = get_formatter(output_format.value)
    print(formatter.format_sales(outcome, date_range))


@app.command()
def serve(
    ctx: typer.Context,
    stub: bool = typer.Option(
        False,
        "--stub-when-unconfigured",
        help="Report a placeholder total instead of failing when settings are missing.",
    ),
):
    """
    Answer period requests read as JSON lines from stdin, one reply line each.
    """
    with HttpxTransport() as transport:
        orchestrator = _build_orchestrator(
            ctx, StdioSender(sys.stdout), transport, use_stub_when_unconfigured=stub
        )
        serve_requests(orchestrator, sys.stdin)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show detailed status messages during execution."
    ),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        envvar="WATCHSALES_CONFIG_DIR",
        help="Directory holding settings and cached totals.",
    ),
):
    """
    Store sales totals for a watch companion
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        force=True,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"verbose": verbose, "config_dir": config_dir}
