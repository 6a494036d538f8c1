from dataclasses import replace
from typing import List, Tuple

from app.models.entities import BusinessDriver, Project


def alignment_score(project: Project, drivers: List[BusinessDriver]) -> float:
    """Weighted average of a project's driver scores using current driver weights."""
    total_weight = sum(d.weight for d in drivers)
    if total_weight == 0:
        return 0.0
    weights = {d.id: d.weight for d in drivers}
    weighted = sum(s.score * weights.get(s.driver_id, 0) for s in project.scores)
    return weighted / total_weight


def rank_projects(projects: List[Project], drivers: List[BusinessDriver]) -> List[Tuple[Project, float]]:
    scored = [(p, alignment_score(p, drivers)) for p in projects]
    return sorted(scored, key=lambda pair: pair[1], reverse=True)


def update_driver_weight(drivers: List[BusinessDriver], driver_id: str, weight: int) -> List[BusinessDriver]:
    if not any(d.id == driver_id for d in drivers):
        raise KeyError(driver_id)
    return [replace(d, weight=weight) if d.id == driver_id else d for d in drivers]
