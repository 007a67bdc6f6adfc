"""Console rendering of insights and trend reports using Rich."""

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.earnings.models import QuarterInsights, SentimentPoint, TrendReport

SIGNIFICANCE_STYLE = {"major": "bold red", "moderate": "yellow", "minor": "dim"}
TREND_EMOJI = {"improving": "📈", "declining": "📉", "stable": "➡️"}


class TrendReportRenderer:
    """Print pipeline output to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render_insights(self, insights: List[QuarterInsights]):
        table = Table(show_header=True, header_style="bold magenta", title="Quarterly Insights")
        table.add_column("Quarter", width=9)
        table.add_column("Mgmt", justify="right", width=14)
        table.add_column("Q&A", justify="right", width=14)
        table.add_column("Themes", width=50)
        table.add_column("Revenue", width=10)

        for record in insights:
            table.add_row(
                record.quarter,
                self._sentiment_cell(record.management_sentiment.sentiment, record.management_sentiment.score,
                                     record.management_sentiment.is_fallback),
                self._sentiment_cell(record.qa_sentiment.sentiment, record.qa_sentiment.score,
                                     record.qa_sentiment.is_fallback),
                ", ".join(record.theme_names),
                record.key_metrics.revenue or "-",
            )
        self.console.print(table)

    def render_trends(self, report: TrendReport):
        summary = report.overall_trend_summary
        text = (
            f"[bold]Quarters:[/bold] {', '.join(report.quarters) or '-'}\n"
            f"[bold]Management:[/bold] {TREND_EMOJI[summary.management_trend]} {summary.management_trend}   "
            f"[bold]Q&A:[/bold] {TREND_EMOJI[summary.qa_trend]} {summary.qa_trend}\n"
            f"[bold]Strategic shift:[/bold] {summary.strategic_shift}\n\n"
            f"[bold]Management series:[/bold] {sentiment_series(report.sentiment_trend.management) or '-'}\n"
            f"[bold]Q&A series:[/bold] {sentiment_series(report.sentiment_trend.qa) or '-'}"
        )
        self.console.print(Panel(text, title="📊 Trend Summary", border_style="blue"))

        if report.quarter_over_quarter_changes:
            table = Table(show_header=True, header_style="bold magenta", title="Quarter-over-Quarter")
            table.add_column("Transition", width=20)
            table.add_column("Mgmt Δ", justify="right")
            table.add_column("Mgmt shift")
            table.add_column("Q&A Δ", justify="right")
            table.add_column("Q&A shift")
            for change in report.quarter_over_quarter_changes:
                mgmt, qa = change.management_change, change.qa_change
                table.add_row(
                    f"{change.previous_quarter} → {change.quarter}",
                    f"[{SIGNIFICANCE_STYLE[mgmt.significance]}]{mgmt.score_delta:+.2f}[/]",
                    mgmt.sentiment_shift + (" ⚠" if mgmt.direction_disagrees else ""),
                    f"[{SIGNIFICANCE_STYLE[qa.significance]}]{qa.score_delta:+.2f}[/]",
                    qa.sentiment_shift + (" ⚠" if qa.direction_disagrees else ""),
                )
            self.console.print(table)

        if report.strategic_evolution:
            table = Table(show_header=True, header_style="bold magenta", title="Theme Evolution")
            table.add_column("Quarter", width=9)
            table.add_column("Emerging", style="green")
            table.add_column("Declining", style="red")
            table.add_column("Consistent")
            for evolution in report.strategic_evolution:
                table.add_row(
                    evolution.quarter,
                    ", ".join(evolution.emerging_themes) or "-",
                    ", ".join(evolution.declining_themes) or "-",
                    ", ".join(evolution.consistent_themes) or "-",
                )
            self.console.print(table)

        self.console.print("\n[bold]Key changes[/bold]")
        for line in summary.key_changes:
            self.console.print(f"  • {line}")

    def _sentiment_cell(self, sentiment: str, score: float, is_fallback: bool) -> str:
        color = {"positive": "green", "negative": "red"}.get(sentiment, "white")
        cell = f"[{color}]{sentiment} {score:+.2f}[/]"
        return cell + " [dim](fallback)[/]" if is_fallback else cell


def sentiment_series(points: List[SentimentPoint]) -> str:
    return " → ".join(f"{p.quarter}: {p.score:+.2f}" for p in points)
