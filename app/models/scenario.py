from dataclasses import dataclass

from app.models.entities import Project


@dataclass(frozen=True)
class ScenarioProject:
    project: Project
    delay: int = 0  # weeks
    budget_change: float = 0.0

    @property
    def id(self) -> str:
        return self.project.id


@dataclass(frozen=True)
class PortfolioMetrics:
    total_budget: float
    timeline: int  # latest end week
    avg_risk: float
