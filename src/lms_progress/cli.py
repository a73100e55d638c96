from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from lms_progress.data_models import HierarchyNode, NodeLevel
from lms_progress.errors import TransportFailure
from lms_progress.learning import HierarchyFilter, ItemFilter, Viewer
from lms_progress.system import ProgressSystem

app = typer.Typer(help="Inspect resolved assessment state and supervisory progress from a fixture.")
console = Console()

candidate_paths = [Path.cwd() / ".env"]
module_env = Path(__file__).resolve().parents[2] / ".env"
if module_env not in candidate_paths:
    candidate_paths.append(module_env)
for env_path in candidate_paths:
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
        break


def _load_system(config: Optional[Path], fixture: Optional[Path], learner_id: Optional[str] = None) -> ProgressSystem:
    """Instantiate `ProgressSystem`, turning configuration and fixture problems into CLI errors."""
    try:
        return ProgressSystem.from_config(config, fixture=fixture, learner_id=learner_id)
    except (ValueError, FileNotFoundError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    except TransportFailure as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc


def _refresh_learner(system: ProgressSystem, learner_id: str) -> None:
    try:
        system.run_refresh(learner_id)
    except TransportFailure as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc


def _refresh_hierarchy(system: ProgressSystem) -> None:
    try:
        system.run_refresh_hierarchy()
    except TransportFailure as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc


def _fmt(value: object) -> str:
    return "-" if value is None else str(value)


@app.command()
def items(
    learner_id: str = typer.Argument(..., help="Learner whose items are resolved."),
    search: Optional[str] = typer.Option(None, help="Case-insensitive text to look for."),
    status: Optional[str] = typer.Option(None, help="Only items in this status."),
    kind: Optional[str] = typer.Option(None, help="assignment or examination."),
    subject: Optional[str] = typer.Option(None, help="Only items of this subject id."),
    overdue: Optional[bool] = typer.Option(None, "--overdue/--not-overdue", help="Filter on the overdue flag."),
    fixture: Optional[Path] = typer.Option(None, help="Fixture JSON with source payloads."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """
    List a learner's assessment items with their resolved status.

    Runs one pass through `ProgressSystem.refresh`, filters the published items with
    `ItemFilter` and renders them as a Rich table.
    """
    system = _load_system(config, fixture, learner_id)
    _refresh_learner(system, learner_id)
    try:
        criteria = ItemFilter.from_params(
            {"search_text": search, "status": status, "kind": kind, "subject_id": subject, "overdue": overdue}
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    table = Table(title=f"Assessment items for {learner_id}")
    for column in ("Subject", "Kind", "Title", "Status", "Score", "Days left"):
        table.add_column(column)
    for item in system.items(criteria):
        table.add_row(
            item.subject_code or item.subject_name or item.subject_id,
            item.kind.value,
            item.title,
            item.status.value,
            _fmt(item.derived_score),
            _fmt(getattr(item, "days_remaining", None)),
        )
    console.print(table)


@app.command()
def summary(
    learner_id: str = typer.Argument(...),
    fixture: Optional[Path] = typer.Option(None),
    config: Optional[Path] = typer.Option(None),
):
    """Print per-status counts and enrolment figures for one learner."""
    system = _load_system(config, fixture, learner_id)
    _refresh_learner(system, learner_id)
    data = system.summary()

    enrollment = data["enrollment"]
    console.print(f"[bold]{learner_id}[/bold]")
    console.print(
        f"Subjects: {enrollment['total_subjects']} "
        f"(completed {enrollment['completed_subjects']}, "
        f"in progress {enrollment['in_progress_subjects']}, "
        f"not started {enrollment['not_started_subjects']})"
    )
    console.print(f"Average completion: {enrollment['average_completion']}%")
    for heading in ("assignments", "examinations"):
        counts = ", ".join(f"{name} {count}" for name, count in data[heading].items())
        console.print(f"{heading.capitalize()}: {counts}")
    if data["failed_lookups"]:
        console.print(f"[yellow]Lookups that failed: {', '.join(data['failed_lookups'])}[/yellow]")


def _add_node(table: Table, node: HierarchyNode, system: ProgressSystem, depth: int) -> None:
    stats = node.stats
    table.add_row(
        "  " * depth + node.name,
        node.level.value,
        str(stats.total_learners),
        str(stats.active_learners),
        str(stats.participating_learners),
        str(stats.pending_learners),
        f"{stats.completion_percentage}%",
        system.band(node).value,
    )
    for child in node.children:
        _add_node(table, child, system, depth + 1)


def _stats_table(title: str) -> Table:
    table = Table(title=title)
    for column in ("Node", "Level", "Learners", "Active", "Participating", "Pending", "Completion", "Band"):
        table.add_column(column)
    return table


@app.command()
def hierarchy(
    institution: Optional[str] = typer.Option(None, help="Institution id."),
    course: Optional[str] = typer.Option(None, help="Course id."),
    department: Optional[str] = typer.Option(None, help="Department id."),
    year: Optional[int] = typer.Option(None, help="Year of study."),
    section: Optional[str] = typer.Option(None, help="Section name."),
    learner_status: Optional[str] = typer.Option(None, help="active or inactive."),
    search: Optional[str] = typer.Option(None, help="Search course, department or learner details."),
    role: Optional[str] = typer.Option(None, help="Viewer role: principal, hod or staff."),
    viewer_institution: Optional[str] = typer.Option(None, help="Viewer's institution id."),
    viewer_department: Optional[str] = typer.Option(None, help="Viewer's department id."),
    class_in_charge: Optional[str] = typer.Option(None, help="Section the viewer is in charge of."),
    fixture: Optional[Path] = typer.Option(None),
    config: Optional[Path] = typer.Option(None),
):
    """
    Show the course → department → year → section forest with aggregated statistics.

    Filters combine with AND; a viewer role pins the dimensions that role is confined to.
    """
    system = _load_system(config, fixture)
    _refresh_hierarchy(system)
    viewer = None
    if role:
        viewer = Viewer(
            role=role,
            institution_id=viewer_institution,
            department_id=viewer_department,
            class_in_charge=class_in_charge,
        )
    params = {
        "institution_id": institution,
        "course_id": course,
        "department_id": department,
        "year": year,
        "section": section,
        "learner_status": learner_status,
        "search_text": search,
    }
    try:
        criteria = HierarchyFilter.from_params(params, viewer)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    forest = system.hierarchy(criteria)
    table = _stats_table("Progress by hierarchy")
    for node in forest:
        _add_node(table, node, system, 0)
    console.print(table)
    totals = system.totals(forest)
    console.print(
        f"Total learners: {totals.total_learners}, participating: {totals.participating_learners} "
        f"({totals.completion_percentage}%)"
    )


@app.command()
def rankings(
    order: str = typer.Option("top", help="top or lowest."),
    level: str = typer.Option(NodeLevel.DEPARTMENT.value, help="course, department, year or section."),
    limit: Optional[int] = typer.Option(None, help="How many nodes to list; defaults to the configured limit."),
    fixture: Optional[Path] = typer.Option(None),
    config: Optional[Path] = typer.Option(None),
):
    """Rank hierarchy nodes of one level by completion percentage."""
    if order not in ("top", "lowest"):
        raise typer.BadParameter("order must be one of: top, lowest")
    try:
        node_level = NodeLevel(level)
    except ValueError as exc:
        raise typer.BadParameter("level must be one of: " + ", ".join(m.value for m in NodeLevel)) from exc

    system = _load_system(config, fixture)
    _refresh_hierarchy(system)
    table = _stats_table(f"{order.capitalize()} performing {node_level.value}s")
    for node in system.rankings(order, level=node_level, limit=limit):
        table.add_row(
            node.name,
            node.level.value,
            str(node.stats.total_learners),
            str(node.stats.active_learners),
            str(node.stats.participating_learners),
            str(node.stats.pending_learners),
            f"{node.stats.completion_percentage}%",
            system.band(node).value,
        )
    console.print(table)


if __name__ == "__main__":
    app()
