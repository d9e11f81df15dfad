#!/usr/bin/env python3
"""
Recovery Score CLI.

Score readiness from a JSON snapshot of recent readings and inspect the
stored daily trend.

Usage:
    recovery-score score snapshot.json             # Score and record today
    recovery-score score snapshot.json --no-record # Score without recording
    recovery-score trend                           # Show the stored trend
    recovery-score weekly-load snapshot.json       # Training load summary
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import get_settings
from .exceptions import ValidationError
from .insights import baseline_status, delta_vs_yesterday, display_trend, get_readiness_recommendation, trend_message
from .models import to_local_time
from .resolution import ReadinessState
from .service import ReadinessReport, create_service
from .snapshot import load_snapshot
from .trend import TrendStore
from .weekly_load import daily_loads, seven_day_load, seven_day_workouts, training_monotony, weekly_load_baseline

console = Console()


def get_zone_color(zone: Optional[str]) -> str:
    """Get rich color for a readiness zone."""
    colors = {
        "green": "green",
        "yellow": "yellow",
        "red": "red",
    }
    return colors.get(zone or "", "white")


def parse_now(value: str) -> datetime:
    """argparse type for --now (ISO 8601)."""
    try:
        return to_local_time(datetime.fromisoformat(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO 8601 timestamp: {value!r}")


def print_report(report: ReadinessReport) -> None:
    """Render a scoring report."""
    if report.is_invalid:
        console.print(Panel(
            "\n".join(f"[red]- {v}[/red]" for v in report.violations),
            title="Implausible data, not scored",
            box=box.ROUNDED,
        ))
        return

    if report.state is ReadinessState.AWAITING_MANDATORY:
        console.print(Panel(
            f"[bold red]0/100[/bold red]\n\n{report.error_message}",
            title="Readiness",
            box=box.ROUNDED,
        ))
    else:
        color = get_zone_color(report.zone)
        text = (
            f"[{color}]{report.score}/100 ({report.zone.upper()})[/{color}]\n"
            f"[cyan]Recommendation:[/cyan] {get_readiness_recommendation(report.score)}"
        )
        if report.warning_message:
            text += f"\n\n[yellow]{report.warning_message}[/yellow]"
        console.print(Panel(text, title="Readiness", box=box.ROUNDED))

    if report.breakdown and report.breakdown.adjustments:
        table = Table(title="Rule Breakdown", box=box.ROUNDED)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Rule")
        table.add_column("Delta", justify="right")
        for a in report.breakdown.adjustments:
            style = "green" if a.delta > 0 else "red"
            table.add_row(str(a.rule), a.label, f"[{style}]{a.delta:+d}[/{style}]")
        console.print(table)

    if report.helped or report.hurt:
        table = Table(title="Drivers", box=box.ROUNDED)
        table.add_column("Factor")
        table.add_column("Change", justify="right")
        table.add_column("Effect")
        for d in report.helped:
            table.add_row(d.name, d.change, "[green]helped[/green]")
        for d in report.hurt:
            table.add_row(d.name, d.change, "[red]hurt[/red]")
        console.print(table)

    status = baseline_status(report.baseline)
    if not status.complete:
        console.print(
            f"[dim]Baselines ready: {status.ready}/{status.total} "
            f"(missing: {', '.join(status.missing)})[/dim]"
        )

    note = report.trend_note
    if note:
        console.print(f"[dim]{note}[/dim]")


def cmd_score(args) -> None:
    """Run one scoring pass over a snapshot."""
    settings = get_settings()
    try:
        snapshot = load_snapshot(args.snapshot)
    except (OSError, ValidationError) as e:
        console.print(f"[red]Error loading snapshot: {e}[/red]")
        sys.exit(1)

    if args.now:
        snapshot = snapshot.model_copy(update={"now": args.now})
    now = snapshot.reference_time()

    service = create_service(snapshot.to_provider(), settings, record_trend=not args.no_record)
    report = asyncio.run(service.run(now=now, record=not args.no_record))

    if args.json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        console.print()
        console.print(Panel(f"[bold]Recovery Score - {now:%Y-%m-%d %H:%M}[/bold]"))
        print_report(report)

    if report.is_invalid:
        sys.exit(2)


def cmd_trend(args) -> None:
    """Show the stored daily trend."""
    settings = get_settings()
    store = TrendStore(settings.trend_db_path, retention_days=settings.trend_retention_days)
    entries = store.entries()
    scores = [e.score for e in entries]

    console.print()
    console.print(Panel("[bold]Recovery Score - Trend[/bold]"))

    if entries:
        table = Table(box=box.ROUNDED)
        table.add_column("Day")
        table.add_column("Score", justify="right")
        for entry in entries:
            table.add_row(entry.key, str(entry.score))
        console.print(table)

        delta = delta_vs_yesterday(entries)
        if delta is not None:
            console.print(f"[cyan]vs yesterday:[/cyan] {delta:+d}")

    chart = display_trend(scores)
    if chart.synthetic:
        console.print(f"[dim]Chart: {chart.points} (padded)[/dim]")
    note = trend_message(scores)
    if note:
        console.print(f"[dim]{note}[/dim]")


def cmd_weekly_load(args) -> None:
    """Summarise training load for a snapshot's workouts."""
    try:
        snapshot = load_snapshot(args.snapshot)
    except (OSError, ValidationError) as e:
        console.print(f"[red]Error loading snapshot: {e}[/red]")
        sys.exit(1)

    now = snapshot.reference_time()
    workouts = [w.to_record() for w in snapshot.workouts]
    baseline = weekly_load_baseline(workouts, now, args.weeks)
    recent = seven_day_workouts(workouts, now)
    loads = daily_loads(workouts, now)
    monotony = training_monotony(loads)

    console.print()
    console.print(Panel("[bold]Recovery Score - Training Load[/bold]"))

    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Workouts (7d)", str(len(recent)))
    table.add_row("Load (7d)", f"{seven_day_load(workouts, now):.0f}")
    table.add_row(f"Weekly baseline ({args.weeks} wk)", f"{baseline:.0f}" if baseline > 0 else "none yet")
    table.add_row("Monotony", f"{monotony:.2f}" if monotony is not None else "-")
    console.print(table)

    if loads:
        day_table = Table(title="Daily Load (7d)", box=box.ROUNDED)
        day_table.add_column("Day")
        day_table.add_column("Load", justify="right")
        for day, load in loads.items():
            day_table.add_row(day.isoformat(), f"{load:.0f}")
        console.print(day_table)


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Recovery Score - daily training readiness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  recovery-score score today.json
  recovery-score score today.json --now 2024-05-15T07:30 --no-record
  recovery-score trend
  recovery-score weekly-load today.json --weeks 4
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Score command
    score_p = subparsers.add_parser("score", help="Score readiness from a snapshot")
    score_p.add_argument("snapshot", help="Path to a JSON snapshot")
    score_p.add_argument("--now", type=parse_now, help="Reference time (ISO 8601)")
    score_p.add_argument(
        "--no-record", action="store_true", help="Do not write the score to the trend"
    )
    score_p.add_argument("--json", action="store_true", help="Print the report as JSON")

    # Trend command
    subparsers.add_parser("trend", help="Show the stored readiness trend")

    # Weekly load command
    load_p = subparsers.add_parser("weekly-load", help="Show training load summary")
    load_p.add_argument("snapshot", help="Path to a JSON snapshot")
    load_p.add_argument(
        "--weeks", "-w", type=int, default=get_settings().weekly_load_weeks,
        help="Number of prior weeks in the baseline",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Route to appropriate command
    if args.command == "score":
        cmd_score(args)
    elif args.command == "trend":
        cmd_trend(args)
    elif args.command == "weekly-load":
        cmd_weekly_load(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
