from dataclasses import dataclass, field
from functools import lru_cache

from app.engine.leveling import LevelingSession
from app.engine.scenario import ScenarioModeler
from app.models.entities import ViewMode


@dataclass
class DashboardState:
    """Per-process UI state that is not part of the shared portfolio data."""

    view: ViewMode = ViewMode.ALIGNMENT
    leveling: LevelingSession = field(default_factory=LevelingSession)
    scenario: ScenarioModeler = field(default_factory=ScenarioModeler)
    scenario_initialized: bool = False

    def reset(self) -> None:
        self.view = ViewMode.ALIGNMENT
        self.leveling = LevelingSession()
        self.scenario = ScenarioModeler()
        self.scenario_initialized = False


@lru_cache(maxsize=1)
def get_dashboard_state() -> DashboardState:
    return DashboardState()
