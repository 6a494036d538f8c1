import csv
import io
from typing import Any, Dict, Iterable, List

from app.models.entities import BusinessDriver, Project, Resource, Task
from app.utils.scoring import alignment_score


DRIVER_HEADERS = ["id", "name", "weight"]
PROJECT_HEADERS = ["id", "name", "description", "budget", "risk", "startWeek", "duration", "alignmentScore"]
RESOURCE_HEADERS = ["id", "name", "capacity"]
TASK_HEADERS = ["id", "projectId", "name", "estimatedHours", "resourceId", "startWeek", "duration"]


def rows_to_csv(rows: Iterable[Dict[str, Any]], headers: List[str]) -> str:
    """Header line plus one line per row; None becomes an empty field, no trailing newline."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")


def _number(value: float):
    # 8.0 -> 8, keeps fractional values as-is
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def driver_row(d: BusinessDriver) -> Dict[str, Any]:
    return {"id": d.id, "name": d.name, "weight": d.weight}


def project_row(p: Project, drivers: List[BusinessDriver]) -> Dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "budget": _number(p.budget),
        "risk": _number(p.risk),
        "startWeek": p.start_week,
        "duration": p.duration,
        "alignmentScore": f"{alignment_score(p, drivers):.2f}",
    }


def resource_row(r: Resource) -> Dict[str, Any]:
    return {"id": r.id, "name": r.name, "capacity": _number(r.capacity)}


def task_row(t: Task) -> Dict[str, Any]:
    return {
        "id": t.id,
        "projectId": t.project_id,
        "name": t.name,
        "estimatedHours": _number(t.estimated_hours),
        "resourceId": t.resource_id,
        "startWeek": t.start_week,
        "duration": t.duration,
    }


def export_portfolio_csv(
    drivers: List[BusinessDriver],
    projects: List[Project],
    resources: List[Resource],
    tasks: List[Task],
) -> str:
    """Four labelled CSV blocks separated by blank lines."""
    return "\n".join([
        "DRIVERS",
        rows_to_csv((driver_row(d) for d in drivers), DRIVER_HEADERS),
        "",
        "PROJECTS",
        rows_to_csv((project_row(p, drivers) for p in projects), PROJECT_HEADERS),
        "",
        "RESOURCES",
        rows_to_csv((resource_row(r) for r in resources), RESOURCE_HEADERS),
        "",
        "TASKS",
        rows_to_csv((task_row(t) for t in tasks), TASK_HEADERS),
    ])
