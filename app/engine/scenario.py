"""
What-if scenario modeling.

A scenario is an independent working copy of the project list where each
project may carry a schedule delay and a budget change. Metrics are computed
for the baseline and the scenario so the two can be compared side by side.

Risk model (scenario only):
    adjusted = clamp(risk + delay * 0.2 - budget_change / budget * 2, 1, 10)
A project with zero budget gets no budget term.
"""

from dataclasses import replace
from typing import Dict, List, Optional
import logging

from app.models.entities import Project
from app.models.scenario import PortfolioMetrics, ScenarioProject


logger = logging.getLogger(__name__)

DELAY_RISK_PER_WEEK = 0.2
BUDGET_RISK_FACTOR = 2.0
MIN_RISK = 1.0
MAX_RISK = 10.0


def adjusted_risk(sp: ScenarioProject) -> float:
    p = sp.project
    modifier = sp.delay * DELAY_RISK_PER_WEEK
    if p.budget:
        modifier -= sp.budget_change / p.budget * BUDGET_RISK_FACTOR
    return max(MIN_RISK, min(MAX_RISK, p.risk + modifier))


def baseline_metrics(projects: List[Project]) -> PortfolioMetrics:
    if not projects:
        return PortfolioMetrics(total_budget=0.0, timeline=0, avg_risk=0.0)
    return PortfolioMetrics(
        total_budget=sum(p.budget for p in projects),
        timeline=max(p.end_week for p in projects),
        avg_risk=sum(p.risk for p in projects) / len(projects),
    )


def scenario_metrics(scenario: List[ScenarioProject]) -> PortfolioMetrics:
    if not scenario:
        return PortfolioMetrics(total_budget=0.0, timeline=0, avg_risk=0.0)
    return PortfolioMetrics(
        total_budget=sum(sp.project.budget + sp.budget_change for sp in scenario),
        timeline=max(sp.project.start_week + sp.delay + sp.project.duration for sp in scenario),
        avg_risk=sum(adjusted_risk(sp) for sp in scenario) / len(scenario),
    )


def comparison_rows(baseline: PortfolioMetrics, scenario: PortfolioMetrics) -> List[Dict]:
    """Rows for the baseline vs. scenario bar chart."""
    return [
        {"name": "Total Budget", "baseline": baseline.total_budget, "scenario": scenario.total_budget},
        {"name": "Timeline (Weeks)", "baseline": baseline.timeline, "scenario": scenario.timeline},
        {"name": "Avg. Risk Score", "baseline": baseline.avg_risk, "scenario": scenario.avg_risk},
    ]


class ScenarioModeler:
    """Holds the scenario working copy; never writes back to the baseline."""

    def __init__(self, projects: Optional[List[Project]] = None):
        self.projects: List[ScenarioProject] = []
        self.selected_project_id: Optional[str] = None
        self.reset(projects or [])

    def reset(self, projects: List[Project]) -> None:
        self.projects = [ScenarioProject(project=p) for p in projects]
        self.selected_project_id = projects[0].id if projects else None

    def get(self, project_id: str) -> Optional[ScenarioProject]:
        return next((sp for sp in self.projects if sp.id == project_id), None)

    def select(self, project_id: str) -> ScenarioProject:
        sp = self.get(project_id)
        if sp is None:
            raise KeyError(project_id)
        self.selected_project_id = project_id
        return sp

    def apply_change(self, project_id: str, delay: int, budget_change: float) -> ScenarioProject:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        sp = self.get(project_id)
        if sp is None:
            raise KeyError(project_id)

        updated = replace(sp, delay=delay, budget_change=budget_change)
        self.projects = [updated if s.id == project_id else s for s in self.projects]
        self.selected_project_id = project_id
        logger.info(f"Scenario change for {project_id}: delay={delay}w, budget_change={budget_change:+.0f}")
        return updated

    def metrics(self) -> PortfolioMetrics:
        return scenario_metrics(self.projects)
