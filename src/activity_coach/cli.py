#!/usr/bin/env python3
"""
Activity Coach CLI.

Trend verdicts and training recommendations from recent activities.

Usage:
    activity-coach trends --range month
    activity-coach recommend speed --enhanced
    activity-coach summary --file activities.json
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from . import __version__
from .analysis.aggregation import TimeRange
from .config import get_settings
from .exceptions import ActivityCoachError
from .integrations.base import ActivitySource
from .integrations.strava import FileActivitySource, StravaActivitySource
from .llm.providers import close_llm_client
from .models.recommendation import AdviceSource, MetricKind, TrendVerdict
from .services.dashboard import DashboardService


console = Console()


def get_verdict_color(verdict: TrendVerdict) -> str:
    """Get rich color for a trend verdict."""
    colors = {
        TrendVerdict.IMPROVEMENT: "green",
        TrendVerdict.DECLINE: "red",
        TrendVerdict.CONSTANT: "yellow",
        TrendVerdict.INSUFFICIENT_DATA: "dim",
    }
    return colors.get(verdict, "white")


def format_verdict(verdict: TrendVerdict) -> Text:
    label = verdict.value.replace("_", " ").title()
    return Text(label, style=get_verdict_color(verdict))


def build_source(args) -> Optional[ActivitySource]:
    """Source from --file, then ACTIVITIES_FILE, then the Strava token."""
    settings = get_settings()
    path = args.file or settings.activities_file
    if path:
        return FileActivitySource(path)
    if settings.strava_access_token:
        return StravaActivitySource(
            access_token=settings.strava_access_token,
            base_url=settings.strava_base_url,
            per_page=settings.strava_per_page,
        )
    return None


async def load_service(args) -> DashboardService:
    source = build_source(args)
    if source is None:
        console.print("[yellow]No activity source configured.[/yellow]")
        console.print("Pass --file or set ACTIVITIES_FILE / STRAVA_ACCESS_TOKEN.")
        console.print()

    service = DashboardService(source=source)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task("Loading activities...", total=None)
            await service.refresh()
    finally:
        if source is not None:
            await source.close()
    return service


async def cmd_trends(args) -> int:
    """Show the trend verdict of every metric."""
    time_range = TimeRange.parse(args.range)
    service = await load_service(args)

    console.print()
    console.print(Panel(f"[bold]Activity Coach - Trends[/bold] ({time_range.description})"))

    table = Table(box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Points", justify="right")
    table.add_column("Trend")
    for kind in MetricKind:
        series = service.get_filtered_series(kind, time_range)
        table.add_row(kind.title, str(len(series)), format_verdict(service.classify_trend(kind, time_range)))
    console.print(table)

    issues = len(service.snapshot.issues)
    if issues:
        console.print(f"[dim]{issues} activity fields skipped as missing or invalid[/dim]")
    console.print()
    return 0


async def cmd_recommend(args) -> int:
    """Show a recommendation for one metric."""
    time_range = TimeRange.parse(args.range)
    metric_kind = MetricKind.parse(args.metric)
    service = await load_service(args)

    if args.enhanced:
        try:
            with console.status("Generating advice..."):
                recommendation = await service.get_enhanced_recommendation(metric_kind, time_range)
        finally:
            await close_llm_client()
    else:
        recommendation = service.get_local_recommendation(metric_kind, time_range)

    subtitle = {
        AdviceSource.TEMPLATE: "local advice",
        AdviceSource.LLM: "generated advice",
        AdviceSource.FALLBACK: "[yellow]generation unavailable, local advice[/yellow]",
    }[recommendation.source]

    console.print()
    console.print(
        Panel(
            recommendation.advice,
            title=f"[bold]{recommendation.headline}[/bold]",
            subtitle=subtitle,
            border_style=get_verdict_color(recommendation.trend_verdict),
        )
    )
    console.print(Text.assemble("Trend: ", format_verdict(recommendation.trend_verdict)))
    console.print()
    return 0


async def cmd_summary(args) -> int:
    """Show averages and pace distribution for the window."""
    time_range = TimeRange.parse(args.range)
    service = await load_service(args)
    summary = service.summary(time_range)

    console.print()
    console.print(Panel(f"[bold]Activity Coach - Summary[/bold] ({time_range.description})"))

    table = Table(box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Activities", str(summary.activity_count))
    table.add_row("Average speed", f"{summary.average_speed * 3.6:.2f} km/h")
    table.add_row("Average distance", f"{summary.average_distance / 1000:.2f} km")
    table.add_row("Average elevation gain", f"{summary.average_elevation:.0f} m")
    table.add_row("Max elevation gain", f"{summary.max_elevation:.0f} m")
    console.print(table)

    pace = Table(title="Pace Distribution", box=box.ROUNDED)
    pace.add_column("Bucket")
    pace.add_column("Runs", justify="right")
    pace.add_row("Fast (>12 km/h)", str(summary.pace["fast"]))
    pace.add_row("Moderate (8-12 km/h)", str(summary.pace["moderate"]))
    pace.add_row("Slow (<8 km/h)", str(summary.pace["slow"]))
    console.print(pace)
    console.print()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="activity-coach",
        description="Activity Coach - trends and training recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  activity-coach trends --range month
  activity-coach recommend speed --enhanced
  activity-coach summary --file activities.json
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--range", "-r",
        choices=[r.value for r in TimeRange],
        default=get_settings().default_time_range,
        help="Time window to analyze",
    )
    common.add_argument("--file", "-f", help="JSON file of activities (overrides Strava)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("trends", parents=[common], help="Show trend verdicts")

    recommend_p = subparsers.add_parser("recommend", parents=[common], help="Show a recommendation")
    recommend_p.add_argument(
        "metric",
        nargs="?",
        default=MetricKind.PERFORMANCE.value,
        help="speed, distance, elevation, pace-distribution or performance",
    )
    recommend_p.add_argument(
        "--enhanced", "-e",
        action="store_true",
        help="Generate advice with the configured language model",
    )

    subparsers.add_parser("summary", parents=[common], help="Show window summary")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, get_settings().log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "trends": cmd_trends,
        "recommend": cmd_recommend,
        "summary": cmd_summary,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    try:
        return asyncio.run(command(args))
    except ActivityCoachError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
