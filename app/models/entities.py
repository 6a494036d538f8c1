from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class CellStatus(str, Enum):
    UNDER = "under"
    OPTIMAL = "optimal"
    OVER = "over"
    EMPTY = "empty"  # display only; classified as OPTIMAL


class SuggestionType(str, Enum):
    DELAY = "DELAY"
    REASSIGN = "REASSIGN"


class ViewMode(str, Enum):
    ALIGNMENT = "alignment"
    SCENARIO = "scenario"
    LEVELING = "leveling"


@dataclass(frozen=True)
class BusinessDriver:
    id: str
    name: str
    weight: int  # 0-10

    def __post_init__(self):
        if not 0 <= self.weight <= 10:
            raise ValueError(f"driver {self.id}: weight must be between 0 and 10")


@dataclass(frozen=True)
class ProjectScore:
    driver_id: str
    score: float  # 1-10

    def __post_init__(self):
        if not 1 <= self.score <= 10:
            raise ValueError(f"score for driver {self.driver_id} must be between 1 and 10")


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: str
    budget: float
    scores: List[ProjectScore]
    risk: float  # 1-10, lower is better
    start_week: int
    duration: int  # weeks

    def __post_init__(self):
        if self.budget < 0:
            raise ValueError(f"project {self.id}: budget cannot be negative")
        if not 1 <= self.risk <= 10:
            raise ValueError(f"project {self.id}: risk must be between 1 and 10")
        if self.duration < 1:
            raise ValueError(f"project {self.id}: duration must be at least one week")

    @property
    def end_week(self) -> int:
        return self.start_week + self.duration


@dataclass(frozen=True)
class Resource:
    id: str
    name: str
    capacity: float  # hours per week

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError(f"resource {self.id}: capacity must be positive")


@dataclass(frozen=True)
class Task:
    id: str
    project_id: str
    name: str
    estimated_hours: float
    resource_id: Optional[str]  # None = unassigned
    start_week: int  # 1-based
    duration: int  # weeks

    def __post_init__(self):
        if self.duration < 1:
            raise ValueError(f"task {self.id}: duration must be at least one week")

    @property
    def hours_per_week(self) -> float:
        return self.estimated_hours / self.duration

    @property
    def weeks(self) -> range:
        return range(self.start_week, self.start_week + self.duration)


@dataclass
class AllocationCell:
    total_hours: float = 0.0
    tasks: List[Task] = field(default_factory=list)


@dataclass(frozen=True)
class CellRef:
    resource_id: str
    week: int


@dataclass(frozen=True)
class Suggestion:
    type: SuggestionType
    task_id: str
    task_name: str
    message: str
    new_start_week: Optional[int] = None
    target_resource_id: Optional[str] = None
