# ABOUTME: Provides a CLI that turns saved GraphQL query results into a learner dashboard report.
# ABOUTME: Prints the report as rich tables and optionally writes the JSON consumed by the web view.

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from src.aggregators.audit_ratio import PERFORMANCE_LABELS, audit_performance
from src.aggregators.skill_ranking import rank_skills
from src.common.errors import DashboardError
from src.common.normalization import normalize_collection, normalize_transaction
from src.common.schemas import Report, TransactionKind
from src.common.settings import DEFAULT_CONFIG_PATH, DashboardConfig, load_config
from src.common.skill_names import load_skill_table
from src.dashboard.collect import Fetcher, build_dashboard_report_sync, static_source
from src.dashboard.export import format_date, format_xp, write_report_json
from src.dashboard.report import REQUIRED_COLLECTIONS

console = Console()
app = typer.Typer(help="Aggregate a learner's XP, projects, audits and skills into a dashboard report.")


def _load_payload(path: Path) -> Dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc}", param_hint="--payload") from exc
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict):
        raise typer.BadParameter("Payload must be a JSON object.", param_hint="--payload")
    return payload


def _payload_sources(payload: Dict[str, Any]) -> Tuple[Dict[str, Fetcher], List[Fetcher]]:
    sources = {name: static_source(payload[name]) for name in REQUIRED_COLLECTIONS if payload.get(name) is not None}
    # The user record carries auditRatio/totalUp/totalDown when no audit block was saved.
    fallbacks = [static_source(payload["user"])] if payload.get("user") is not None else []
    return sources, fallbacks


@app.command()
def build(
    payload: Path = typer.Option(..., "--payload", exists=True, dir_okay=False, help="JSON file with the five query results."),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", exists=True, dir_okay=False, help="Dashboard config YAML."),
    output: Optional[Path] = typer.Option(None, "--output", help="Write the report JSON to this path."),
    strict: bool = typer.Option(False, "--strict", help="Abort on the first malformed record instead of skipping it."),
) -> None:
    """
    Build the full dashboard report for one learner.
    """
    config = load_config(config_path)
    sources, fallbacks = _payload_sources(_load_payload(payload))
    try:
        report = build_dashboard_report_sync(
            sources,
            audit_fallbacks=fallbacks,
            config=config,
            on_error="raise" if strict else "skip",
        )
    except DashboardError as exc:
        console.print(f"[red]Failed to build report: {exc}[/red]")
        raise typer.Exit(code=1)

    _render_report(report, config)

    if output is not None:
        write_report_json(report, output, config)
        typer.echo(f"[report] Wrote dashboard report to {output}")


@app.command()
def skills(
    payload: Path = typer.Option(..., "--payload", exists=True, dir_okay=False, help="JSON file with skill_transactions."),
    config_path: Path = typer.Option(DEFAULT_CONFIG_PATH, "--config", exists=True, dir_okay=False, help="Dashboard config YAML."),
    top_n: Optional[int] = typer.Option(None, "--top-n", min=1, help="Number of skills to keep (defaults to top_skills from the config)."),
    skill_table: Optional[Path] = typer.Option(None, "--skill-table", exists=True, dir_okay=False, help="Skill name table YAML (defaults to the config table)."),
) -> None:
    """
    Rank skills only, without requiring the other collections.
    """
    config = load_config(config_path)
    raws = _load_payload(payload).get("skill_transactions")
    if raws is None:
        console.print("[red]Payload has no skill_transactions collection[/red]")
        raise typer.Exit(code=1)

    try:
        batch = normalize_collection(raws, lambda r: normalize_transaction(r, TransactionKind.SKILL))
    except DashboardError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    ranked = rank_skills(
        batch.records,
        top_n=top_n if top_n is not None else config.top_skills,
        table=load_skill_table(skill_table or config.skill_table_path),
    )
    console.print(_skills_table(ranked))
    if batch.skipped:
        console.print(f"[yellow]Skipped {len(batch.skipped)} malformed skill records[/yellow]")


def _render_report(report: Report, config: DashboardConfig) -> None:
    user = report.user
    console.rule(f"[bold blue]Dashboard for {user.login}[/bold blue]")
    console.print(f"[bold]User ID:[/] {user.id}")
    console.print(f"[bold]Email:[/] {user.email}")
    console.print(f"[bold]Member since:[/] {format_date(user.created_at)}")
    console.print()

    performance = audit_performance(report.audit_ratio, config.audit_balanced_low, config.audit_balanced_high)
    stats = Table(show_header=True, header_style="bold magenta")
    stats.add_column("Total XP")
    stats.add_column("Growth")
    stats.add_column("Projects")
    stats.add_column("Success")
    stats.add_column("Audit ratio")
    stats.add_row(
        format_xp(report.total_xp),
        f"{report.xp_growth:+.1f}%",
        str(report.projects_done),
        f"{report.success_rate}%",
        f"{report.audit_ratio:.2f} ({PERFORMANCE_LABELS[performance]})",
    )
    console.print(stats)

    console.print()
    console.print("[bold green]XP Progress[/bold green]")
    timeline = Table(show_header=True, header_style="bold magenta")
    timeline.add_column("Month")
    timeline.add_column("Cumulative XP", justify="right")
    for point in report.xp_timeline:
        timeline.add_row(point.period, f"{point.cumulative_xp:,}")
    console.print(timeline)

    console.print()
    console.print("[bold yellow]Recent Projects[/bold yellow]")
    projects = Table(show_header=True, header_style="bold magenta")
    projects.add_column("Project")
    projects.add_column("Status")
    projects.add_column("Date")
    projects.add_column("XP", justify="right")
    for outcome in report.recent_outcomes:
        color = "green" if outcome.status == "passed" else "red"
        projects.add_row(
            outcome.name,
            f"[{color}]{outcome.status.upper()}[/{color}]",
            format_date(outcome.updated_at),
            format_xp(outcome.xp),
        )
    console.print(projects)

    console.print()
    console.print("[bold cyan]Skills[/bold cyan]")
    console.print(_skills_table(report.skills))

    counts = report.audit_counts
    suffix = " (estimated)" if counts.approximate else ""
    console.print(f"[bold]Audits given:[/] {counts.given:,}  [bold]received:[/] {counts.received:,}{suffix}")
    for collection, skipped in report.skipped_records.items():
        console.print(f"[yellow]Skipped {skipped} malformed records in {collection}[/yellow]")


def _skills_table(ranked) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Skill")
    table.add_column("XP", justify="right")
    table.add_column("Level", justify="right")
    for skill in ranked:
        table.add_row(skill.display_name, f"{skill.accumulated_magnitude:,}", str(skill.normalized_level))
    return table


def main():
    app()


if __name__ == "__main__":
    main()
