"""
Resource Allocation and Leveling Engine.

Aggregates task hours into a per-resource, per-week grid and proposes simple
corrective actions for over-allocated cells.

Allocation model:
- A task spreads its estimated hours evenly over its duration
  (hours_per_week = estimated_hours / duration)
- It occupies weeks [start_week, start_week + duration - 1]
- Unassigned tasks (resource_id is None) occupy nothing

Suggestions for an over-allocated cell, in order:
1. Delay each task in the cell by one week
2. Reassign each task in the cell to another resource that is under
   capacity that week and can absorb the task's weekly hours
The combined list is truncated to max_suggestions.

Everything here is a pure function of the current resources and tasks; the
grid is rebuilt from scratch on every call.
"""

from dataclasses import replace
from typing import Dict, Iterable, List, Optional
import logging

from app.config.settings import get_settings
from app.models.entities import (
    AllocationCell,
    CellStatus,
    Project,
    Resource,
    Suggestion,
    SuggestionType,
    Task,
)


settings = get_settings()
logger = logging.getLogger(__name__)

AllocationMatrix = Dict[str, Dict[int, AllocationCell]]


def build_allocation_matrix(resources: List[Resource], tasks: List[Task]) -> AllocationMatrix:
    """
    Sum weekly hours per resource.

    Returns {resource_id: {week: AllocationCell}}. Every resource gets an
    entry, weeks with no work are simply absent.
    """
    matrix: AllocationMatrix = {r.id: {} for r in resources}

    for task in tasks:
        if task.resource_id is None:
            continue
        resource_alloc = matrix.get(task.resource_id)
        if resource_alloc is None:
            logger.warning(f"Task {task.id} references unknown resource {task.resource_id}, skipped")
            continue

        hours_per_week = task.hours_per_week
        for week in task.weeks:
            cell = resource_alloc.setdefault(week, AllocationCell())
            cell.total_hours += hours_per_week
            cell.tasks.append(task)

    return matrix


def cell_hours(matrix: AllocationMatrix, resource_id: str, week: int) -> float:
    cell = matrix.get(resource_id, {}).get(week)
    return cell.total_hours if cell else 0.0


def classify_cell(hours: float, capacity: float, under_ratio: Optional[float] = None) -> CellStatus:
    """Classify a cell as over, under or optimal relative to capacity."""
    if under_ratio is None:
        under_ratio = settings.under_utilization_ratio
    if hours > capacity:
        return CellStatus.OVER
    if 0 < hours < capacity * under_ratio:
        return CellStatus.UNDER
    return CellStatus.OPTIMAL


def cell_display_status(hours: float, capacity: float) -> CellStatus:
    """Like classify_cell, but an idle week shows as empty."""
    if hours == 0:
        return CellStatus.EMPTY
    return classify_cell(hours, capacity)


def total_weeks(projects: Iterable[Project], tasks: Iterable[Task]) -> int:
    """Planning horizon: the latest end week across projects and tasks (0 if none)."""
    ends = [p.end_week for p in projects]
    ends.extend(t.start_week + t.duration for t in tasks)
    return max(ends, default=0)


def resource_utilization(resources: List[Resource], matrix: AllocationMatrix) -> Dict[str, Dict[str, float]]:
    """Peak weekly load and count of over-allocated weeks per resource."""
    summary = {}
    for res in resources:
        cells = matrix.get(res.id, {})
        peak = max((c.total_hours for c in cells.values()), default=0.0)
        over_weeks = sum(1 for c in cells.values() if c.total_hours > res.capacity)
        summary[res.id] = {"peak_hours": peak, "over_allocated_weeks": over_weeks}
    return summary


def generate_suggestions(
    resources: List[Resource],
    tasks: List[Task],
    resource_id: str,
    week: int,
    max_suggestions: Optional[int] = None,
) -> List[Suggestion]:
    """
    Propose fixes for the cell (resource_id, week).

    Returns an empty list unless the cell holds more hours than its resource's
    capacity. Order is deterministic: delays for every task in the cell, then
    feasible reassignments task by task, each task trying resources in the
    order they are listed.
    """
    if max_suggestions is None:
        max_suggestions = settings.max_suggestions

    matrix = build_allocation_matrix(resources, tasks)
    cell = matrix.get(resource_id, {}).get(week)
    resource = next((r for r in resources if r.id == resource_id), None)

    if cell is None or resource is None or cell.total_hours <= resource.capacity:
        return []

    suggestions: List[Suggestion] = []

    for task in cell.tasks:
        suggestions.append(Suggestion(
            type=SuggestionType.DELAY,
            task_id=task.id,
            task_name=task.name,
            message=f'Delay "{task.name}" by 1 week.',
            new_start_week=task.start_week + 1,
        ))

    under_allocated = [
        r for r in resources
        if r.id != resource_id and cell_hours(matrix, r.id, week) < r.capacity
    ]

    for task in cell.tasks:
        hours_per_week = task.hours_per_week
        for res in under_allocated:
            usage = cell_hours(matrix, res.id, week)
            if usage + hours_per_week <= res.capacity:
                suggestions.append(Suggestion(
                    type=SuggestionType.REASSIGN,
                    task_id=task.id,
                    task_name=task.name,
                    message=f'Reassign "{task.name}" to {res.name}.',
                    target_resource_id=res.id,
                ))

    logger.debug(
        f"Cell {resource_id}/week {week}: {cell.total_hours:.1f}h > {resource.capacity}h, "
        f"{len(suggestions)} candidate fixes"
    )
    return suggestions[:max_suggestions]


def apply_suggestion(tasks: List[Task], suggestion: Suggestion) -> List[Task]:
    """
    Return a new task list with the suggestion applied.

    Only the target task changes: start_week + 1 for a delay, resource_id for
    a reassignment.
    """
    updated = []
    for task in tasks:
        if task.id != suggestion.task_id:
            updated.append(task)
        elif suggestion.type == SuggestionType.DELAY:
            updated.append(replace(task, start_week=task.start_week + 1))
        else:
            updated.append(replace(task, resource_id=suggestion.target_resource_id))
    return updated
