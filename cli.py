#!/usr/bin/env python3
import argparse
import logging
import os
import select
import sys
import termios
import tty
from datetime import date
from decimal import Decimal
from functools import partial
from io import StringIO
from typing import Callable, TypeVar

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from rich.text import Text

from stocktracker import (
    ChartBucket,
    HoldingValuation,
    Portfolio,
    PortfolioSummary,
    TimeRange,
    closed_positions,
    concentration_buckets,
)
from stocktracker.feeds import YahooPriceFeed
from stocktracker.history import (
    HistoryPoint,
    portfolio_history,
    portfolio_start_date,
    start_date_for_range,
)
from stocktracker.loaders import load_ledger_json
from stocktracker.portfolio import active_holdings

logger = logging.getLogger(__name__)
console = Console()

# ANSI escape codes for terminal styling
ANSI_BOLD_CYAN = "\033[1;36m"
ANSI_DIM = "\033[2m"
ANSI_RESET = "\033[0m"
ANSI_MOVE_UP = "\033[{}A"
ANSI_CLEAR_LINE = "\033[2K\n"

DEFAULT_RANGE_INDEX = 1
HISTORY_PREVIEW_ROWS = 10

TIME_RANGES: list[TimeRange] = list(TimeRange)
TIME_RANGE_LABELS: dict[TimeRange, str] = {
    TimeRange.FIVE_DAY: "5 days",
    TimeRange.ONE_MONTH: "1 month",
    TimeRange.THREE_MONTH: "3 months",
    TimeRange.SIX_MONTH: "6 months",
    TimeRange.ONE_YEAR: "1 year",
    TimeRange.FIVE_YEAR: "5 years",
    TimeRange.ALL: "All time",
}

T = TypeVar("T")


def _pl_color(value: Decimal) -> str:
    if value > 0:
        return "green"
    return "red" if value < 0 else "white"


def _pl_text(value: Decimal, percent: Decimal) -> Text:
    return Text(f"{value:+,.2f} ({percent:+.2f}%)", style=_pl_color(value))


def summary_panel(summary: PortfolioSummary, source: str) -> Panel:
    """Build a Rich panel with the portfolio totals."""
    t = Table.grid(padding=(0, 3))
    t.add_column(style="dim")
    t.add_column(justify="right")
    t.add_row("Market value", f"${summary.total_market_value:,.2f}")
    t.add_row("Cash", f"${summary.cash_balance:,.2f}")
    t.add_row("Total assets", f"[bold]${summary.total_assets:,.2f}[/bold]")
    t.add_row("Daily P&L", _pl_text(summary.total_daily_pl, summary.total_daily_pl_percent))
    t.add_row(
        "Holding P&L", _pl_text(summary.total_holding_pl, summary.total_holding_pl_percent)
    )
    t.add_row("Total P&L", _pl_text(summary.total_pl, summary.total_pl_percent))
    return Panel(t, title="Portfolio", subtitle=source, box=box.ROUNDED)


def holdings_table(valuations: list[HoldingValuation], title: str) -> Table:
    """Build a Rich table showing open holdings and their P&L."""
    t = Table(title=title, box=box.ROUNDED, title_style="bold white")
    t.add_column("Ticker", style="cyan")
    t.add_column("Name", style="dim")
    t.add_column("Shares", justify="right")
    t.add_column("Price", justify="right")
    t.add_column("Cost basis", justify="right")
    t.add_column("Value", justify="right")
    t.add_column("Daily", justify="right")
    t.add_column("Holding P&L", justify="right")
    t.add_column("Total P&L", justify="right")
    t.add_column("Dividends", justify="right", style="yellow")

    for v in active_holdings(valuations):
        t.add_row(
            v.ticker,
            v.name,
            str(v.total_quantity),
            f"${v.current_price:,.2f}",
            f"${v.cost_basis:,.2f}",
            f"${v.market_value:,.2f}",
            _pl_text(v.daily_pl, v.daily_pl_percent),
            _pl_text(v.holding_pl, v.holding_pl_percent),
            _pl_text(v.total_pl, v.total_pl_percent),
            f"${v.cumulative_dividend:,.2f}",
        )
    return t


def buckets_table(buckets: list[ChartBucket]) -> Table:
    """Build a Rich table acting as the concentration chart legend."""
    t = Table(title="Concentration", box=box.ROUNDED, title_style="bold white")
    t.add_column("Holding", style="cyan")
    t.add_column("Value", justify="right")
    t.add_column("Share", justify="right", style="yellow")
    t.add_column("", no_wrap=True)

    for b in buckets:
        bar = "█" * int(b.share_percent // 5)
        t.add_row(b.label, f"${b.value:,.2f}", f"{b.share_percent:.2f}%", Text(bar, style="blue"))
    return t


def closed_table(valuations: list[HoldingValuation]) -> Table:
    """Build a Rich table showing fully sold positions."""
    t = Table(title="Closed positions", box=box.ROUNDED, title_style="bold white")
    t.add_column("Ticker", style="cyan")
    t.add_column("Name", style="dim")
    t.add_column("Last trade", justify="right")
    t.add_column("Sold for", justify="right")
    t.add_column("Total P&L", justify="right")

    for v in closed_positions(valuations):
        t.add_row(
            v.ticker,
            v.name,
            v.last_trade_date.isoformat() if v.last_trade_date else "",
            f"${v.total_sold_value:,.2f}",
            _pl_text(v.total_pl, v.total_pl_percent),
        )
    return t


def history_table(points: list[HistoryPoint], title: str) -> Table:
    """Build a Rich table with the most recent points of a P&L history."""
    t = Table(title=title, box=box.ROUNDED, title_style="bold white")
    t.add_column("Date", style="cyan")
    t.add_column("Assets", justify="right")
    t.add_column("Invested", justify="right", style="dim")
    t.add_column("P&L", justify="right")

    for p in points[-HISTORY_PREVIEW_ROWS:]:
        t.add_row(
            p.date.isoformat(),
            f"${p.total_assets:,.2f}",
            f"${p.net_investment:,.2f}",
            Text(f"{p.pl_percent:+.2f}%", style=_pl_color(p.pl_percent)),
        )
    return t


def _rich_to_str(renderable) -> str:
    """Convert a Rich renderable to a string with ANSI codes."""
    buf = StringIO()
    Console(file=buf, width=console.width, force_terminal=True).print(renderable)
    return buf.getvalue().rstrip("\n")


def _getch() -> str:
    """Read a single keypress from stdin, handling escape sequences."""
    fd = sys.stdin.fileno()
    old = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        ch = os.read(fd, 1).decode()
        if ch == "\x1b" and select.select([fd], [], [], 0.05)[0]:
            ch += os.read(fd, 1).decode()
            if select.select([fd], [], [], 0.05)[0]:
                ch += os.read(fd, 1).decode()
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old)
    return ch


def _render_menu(options: list[T], labels: dict[T, str], selected: int) -> str:
    lines = []
    for i, opt in enumerate(options):
        if i == selected:
            lines.append(f"{ANSI_BOLD_CYAN}  ▸ {labels[opt]}{ANSI_RESET}")
        else:
            lines.append(f"{ANSI_DIM}    {labels[opt]}{ANSI_RESET}")
    return "\n".join(lines)


def _full_render(
    options: list[T],
    labels: dict[T, str],
    selected: int,
    preview: Callable[[T], Table] | None,
) -> str:
    parts = []
    if preview:
        parts.append(_rich_to_str(preview(options[selected])))
    parts.append(_render_menu(options, labels, selected))
    return "\n".join(parts) + "\n"


def _clear_lines(count: int) -> None:
    sys.stdout.write(
        ANSI_MOVE_UP.format(count)
        + "".join(ANSI_CLEAR_LINE for _ in range(count))
        + ANSI_MOVE_UP.format(count)
    )


def pick(
    options: list[T],
    labels: dict[T, str],
    default: int = 0,
    preview: Callable[[T], Table] | None = None,
) -> T:
    """Interactive picker with arrow-key navigation and a live preview."""
    selected = default

    output = _full_render(options, labels, selected, preview)
    sys.stdout.write(output)
    sys.stdout.flush()
    prev_lines = output.count("\n")

    while True:
        key = _getch()
        if key == "\x1b[A":
            selected = (selected - 1) % len(options)
        elif key == "\x1b[B":
            selected = (selected + 1) % len(options)
        elif key in ("\r", "\n"):
            break
        else:
            continue

        _clear_lines(prev_lines)
        output = _full_render(options, labels, selected, preview)
        sys.stdout.write(output)
        sys.stdout.flush()
        prev_lines = output.count("\n")

    _clear_lines(prev_lines)
    sys.stdout.flush()

    console.print(f"  [bold cyan]▸ {labels[options[selected]]}[/bold cyan]")
    return options[selected]


def _history_preview(
    time_range: TimeRange,
    portfolio: Portfolio,
    closes: dict[str, dict[date, Decimal]],
    today: date,
) -> Table:
    holdings = list(portfolio.holdings.values())
    first_day = portfolio_start_date(holdings, portfolio.cash_transactions) or today
    start = start_date_for_range(time_range, first_day, today)
    points = portfolio_history(holdings, portfolio.cash_transactions, closes, start, today)
    return history_table(points, f"P&L history · {TIME_RANGE_LABELS[time_range]}")


def fetch_history_closes(
    feed: YahooPriceFeed, portfolio: Portfolio, today: date
) -> dict[str, dict[date, Decimal]]:
    """Fetch daily closes for every holding since the portfolio's first entry."""
    holdings = list(portfolio.holdings.values())
    first_day = portfolio_start_date(holdings, portfolio.cash_transactions) or today
    return {h.id: feed.fetch_history(h.id, first_day, today) for h in holdings}


def display_portfolio(portfolio: Portfolio, quotes: dict, today: date, source: str) -> None:
    """Print the summary, holdings, concentration and closed positions."""
    valuations, summary = portfolio.snapshot().summarize(quotes, today)

    console.print(summary_panel(summary, source))
    console.print()
    console.print(holdings_table(valuations, "Holdings"))

    buckets = concentration_buckets(valuations)
    if buckets:
        console.print()
        console.print(buckets_table(buckets))

    if closed_positions(valuations):
        console.print()
        console.print(closed_table(valuations))


def run_history_loop(portfolio: Portfolio, closes: dict, today: date) -> None:
    preview_fn = partial(_history_preview, portfolio=portfolio, closes=closes, today=today)

    while True:
        console.print()
        console.print("[bold]History range:[/bold]")
        pick(TIME_RANGES, TIME_RANGE_LABELS, default=DEFAULT_RANGE_INDEX, preview=preview_fn)

        console.print()
        if not Confirm.ask("  View another range?", default=False):
            break


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stock portfolio P&L tracker")
    parser.add_argument("ledger", help="JSON ledger file")
    parser.add_argument(
        "--offline", action="store_true", help="use stored prices instead of fetching quotes"
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="valuation date (YYYY-MM-DD), defaults to the current date",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the CLI application."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    today = args.today or date.today()

    try:
        portfolio = load_ledger_json(args.ledger)
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not load ledger:[/red] {e}")
        sys.exit(1)

    console.print()
    console.print(Panel("[bold]Stock Tracker[/bold] · FIFO P&L", box=box.DOUBLE))
    console.print()

    quotes = {}
    source = "stored prices (offline)"
    if not args.offline:
        feed = YahooPriceFeed()
        with console.status("[bold]Fetching quotes from Yahoo Finance...[/bold]"):
            quotes = feed.fetch_quotes(portfolio.holdings.keys())
        missing = len(portfolio.holdings) - len(quotes)
        source = f"Yahoo Finance · {today.isoformat()}"
        if missing:
            logger.warning("No quote for %d holding(s); using stored prices", missing)
            source += f" · {missing} stored price(s)"

    display_portfolio(portfolio, quotes, today, source)

    if args.offline or not sys.stdin.isatty():
        return

    portfolio.apply_quotes(quotes)
    with console.status("[bold]Fetching price history...[/bold]"):
        closes = fetch_history_closes(feed, portfolio, today)
    run_history_loop(portfolio, closes, today)


if __name__ == "__main__":
    main()
