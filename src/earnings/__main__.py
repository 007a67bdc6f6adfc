"""CLI entry point for the earnings insight pipeline."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError
from rich.console import Console

from src.core.config import settings
from src.core.database import get_engine, init_db
from src.core.exceptions import MalformedQuarterLabel
from src.earnings import service
from src.earnings.analyzers import compute_trend
from src.earnings.models import QuarterInsights
from src.earnings.report_table import TrendReportRenderer

logger = logging.getLogger(__name__)
console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.earnings",
        description=f"Earnings call insight pipeline for {settings.company_name} ({settings.company_ticker})",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Collect, analyze and print trends for the last 4 quarters
  python -m src.earnings analyze --quarters 4

  # Force re-analysis and print JSON
  python -m src.earnings analyze --reanalyze --format json

  # Recompute trends from a saved insights file
  python -m src.earnings trends --input insights.json

  # Check the analysis service credentials and JSON responses
  python -m src.earnings check-analysis

  # Run the HTTP API
  python -m src.earnings serve --port 8000
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Collect transcripts, analyze them and compute trends")
    analyze.add_argument("--quarters", type=int, default=4, help="Number of quarters (default: 4)")
    analyze.add_argument("--reanalyze", action="store_true", help="Re-analyze transcripts that already have insights")
    analyze.add_argument("--format", choices=["table", "json"], default="table", help="Output format (default: table)")

    collect = sub.add_parser("collect", help="Collection smoke test: fetch and store transcripts only")
    collect.add_argument("--quarters", type=int, default=2, help="Number of quarters (default: 2)")

    trends = sub.add_parser("trends", help="Compute a trend report from saved insights")
    trends.add_argument("--input", required=True, type=Path, help="JSON array of insights, or saved analyze --format json output")
    trends.add_argument("--format", choices=["table", "json"], default="table", help="Output format (default: table)")

    sub.add_parser("check-analysis", help="Live analysis service check: completion plus sentiment and themes JSON")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


async def _run_with_store(handler, args) -> int:
    """Run one command against the configured store; SQL tables are created first, as the API lifespan does."""
    sql_backend = settings.store_backend == "sql"
    if sql_backend:
        await init_db()
    try:
        return await handler(args, service.build_store())
    finally:
        if sql_backend:
            await get_engine().dispose()


async def _analyze(args, store) -> int:
    result = await service.run_analysis(store, quarters=args.quarters, reanalyze=args.reanalyze)
    if args.format == "json":
        print(result.model_dump_json(indent=2))
        return 0

    renderer = TrendReportRenderer(console)
    console.print(
        f"\n[bold blue]📊 {settings.company_name} earnings insights[/bold blue] "
        f"({result.summary.transcripts_processed} transcripts, {result.summary.synthetic_transcripts} synthetic)\n"
    )
    if result.summary.synthetic_transcripts:
        console.print("[yellow]⚠ Synthetic placeholder transcripts in use: no real source was reachable.[/yellow]\n")
    renderer.render_insights(result.insights)
    if result.trends:
        renderer.render_trends(result.trends)
    return 0


async def _collect(args, store) -> int:
    report = await service.test_collection(store, quarters=args.quarters)
    console.print_json(json.dumps(report))
    return 0


async def _check_analysis(args) -> int:
    report = await service.test_analysis()
    console.print_json(json.dumps(report))
    if not report["api_key_configured"]:
        console.print("[red]OPENAI_API_KEY is not set.[/red]")
    return 0 if report["success"] else 1


def _load_insights(path: Path) -> List[QuarterInsights]:
    """Insights from a bare JSON array or from saved `analyze --format json` output."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict) and "insights" in raw:
        raw = raw["insights"]
    return TypeAdapter(List[QuarterInsights]).validate_python(raw)


def _trends(args) -> int:
    try:
        records = _load_insights(args.input)
        report = compute_trend(records)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Could not read insights from {args.input}: {e}[/red]")
        return 2
    except MalformedQuarterLabel as e:
        console.print(f"[red]{e}[/red]")
        return 2

    if args.format == "json":
        print(report.model_dump_json(indent=2))
    else:
        TrendReportRenderer(console).render_trends(report)
    return 0


def _serve(args) -> int:
    import uvicorn

    uvicorn.run("src.web.app:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def main(argv=None) -> int:
    """Main CLI function."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.command == "analyze":
            return asyncio.run(_run_with_store(_analyze, args))
        if args.command == "collect":
            return asyncio.run(_run_with_store(_collect, args))
        if args.command == "check-analysis":
            return asyncio.run(_check_analysis(args))
        if args.command == "trends":
            return _trends(args)
        return _serve(args)
    except KeyboardInterrupt:
        print("\n\nCancelled.")
        return 1


if __name__ == "__main__":
    sys.exit(main())
