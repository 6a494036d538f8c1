from typing import Dict, List, Optional
import logging

from fastapi import APIRouter, HTTPException, Depends, Response
from pydantic import BaseModel, Field, field_validator

from app.engine.allocation import (
    build_allocation_matrix,
    cell_display_status,
    cell_hours,
    resource_utilization,
    total_weeks,
)
from app.engine.scenario import adjusted_risk, baseline_metrics, comparison_rows
from app.models.entities import (
    BusinessDriver,
    Project,
    Resource,
    Suggestion,
    SuggestionType,
    Task,
    ViewMode,
)
from app.models.scenario import PortfolioMetrics, ScenarioProject
from app.utils.scoring import rank_projects, update_driver_weight
from app.utils.export import export_portfolio_csv
from app.storage.database import get_db
from app.storage.repositories import (
    DriverRepository,
    ProjectRepository,
    ResourceRepository,
    TaskRepository,
)
from app.storage.state import DashboardState, get_dashboard_state
from app.config.settings import get_settings
from sqlalchemy.orm import Session

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


class DriverDTO(BaseModel):
    id: str
    name: str
    weight: int

    @classmethod
    def from_domain(cls, d: BusinessDriver) -> "DriverDTO":
        return cls(id=d.id, name=d.name, weight=d.weight)


class WeightUpdate(BaseModel):
    weight: int = Field(..., ge=0, le=10)


class ProjectScoreDTO(BaseModel):
    driver_id: str
    score: float


class ProjectDTO(BaseModel):
    id: str
    name: str
    description: str
    budget: float
    risk: float
    start_week: int
    duration: int
    scores: List[ProjectScoreDTO]

    @classmethod
    def from_domain(cls, p: Project) -> "ProjectDTO":
        return cls(
            id=p.id,
            name=p.name,
            description=p.description,
            budget=p.budget,
            risk=p.risk,
            start_week=p.start_week,
            duration=p.duration,
            scores=[ProjectScoreDTO(driver_id=s.driver_id, score=s.score) for s in p.scores],
        )


class RankedProjectDTO(BaseModel):
    rank: int
    project: ProjectDTO
    alignment_score: float


class ResourceDTO(BaseModel):
    id: str
    name: str
    capacity: float

    @classmethod
    def from_domain(cls, r: Resource) -> "ResourceDTO":
        return cls(id=r.id, name=r.name, capacity=r.capacity)


class TaskDTO(BaseModel):
    id: str
    project_id: str
    name: str
    estimated_hours: float = Field(..., ge=0)
    resource_id: Optional[str] = None
    start_week: int = Field(..., ge=1)
    duration: int

    @field_validator("duration")
    @classmethod
    def validate_duration(cls, v: int):
        """A task spreads its hours over at least one whole week."""
        if v < 1:
            raise ValueError("duration must be at least 1 week")
        return v

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            estimated_hours=self.estimated_hours,
            resource_id=self.resource_id,
            start_week=self.start_week,
            duration=self.duration,
        )

    @classmethod
    def from_domain(cls, t: Task) -> "TaskDTO":
        return cls(
            id=t.id,
            project_id=t.project_id,
            name=t.name,
            estimated_hours=t.estimated_hours,
            resource_id=t.resource_id,
            start_week=t.start_week,
            duration=t.duration,
        )


class AllocationCellDTO(BaseModel):
    week: int
    hours: float
    status: str
    task_ids: List[str]


class ResourceAllocationDTO(BaseModel):
    resource: ResourceDTO
    peak_hours: float
    over_allocated_weeks: int
    cells: List[AllocationCellDTO]


class AllocationResponse(BaseModel):
    total_weeks: int
    weeks: List[int]
    rows: List[ResourceAllocationDTO]


class CellSelection(BaseModel):
    resource_id: str
    week: int = Field(..., ge=1)


class SuggestionDTO(BaseModel):
    index: int
    type: SuggestionType
    task_id: str
    task_name: str
    message: str
    new_start_week: Optional[int] = None
    target_resource_id: Optional[str] = None

    @classmethod
    def from_domain(cls, index: int, s: Suggestion) -> "SuggestionDTO":
        return cls(
            index=index,
            type=s.type,
            task_id=s.task_id,
            task_name=s.task_name,
            message=s.message,
            new_start_week=s.new_start_week,
            target_resource_id=s.target_resource_id,
        )


class SelectionResponse(BaseModel):
    selected: Optional[CellSelection] = None
    suggestions: List[SuggestionDTO] = []


class ApplyResponse(BaseModel):
    applied: SuggestionDTO
    task: TaskDTO
    selected: Optional[CellSelection] = None


class MetricsDTO(BaseModel):
    total_budget: float
    timeline: int
    avg_risk: float

    @classmethod
    def from_domain(cls, m: PortfolioMetrics) -> "MetricsDTO":
        return cls(total_budget=m.total_budget, timeline=m.timeline, avg_risk=m.avg_risk)


class ScenarioProjectDTO(BaseModel):
    project_id: str
    name: str
    delay: int
    budget_change: float
    adjusted_risk: float

    @classmethod
    def from_domain(cls, sp: ScenarioProject) -> "ScenarioProjectDTO":
        return cls(
            project_id=sp.id,
            name=sp.project.name,
            delay=sp.delay,
            budget_change=sp.budget_change,
            adjusted_risk=adjusted_risk(sp),
        )


class ScenarioResponse(BaseModel):
    selected_project_id: Optional[str]
    projects: List[ScenarioProjectDTO]
    metrics: MetricsDTO


class ScenarioSelection(BaseModel):
    project_id: str


class ScenarioChangeRequest(BaseModel):
    project_id: str
    delay: int = Field(0, ge=0)
    budget_change: float = 0.0


class ComparisonRow(BaseModel):
    name: str
    baseline: float
    scenario: float


class ComparisonResponse(BaseModel):
    baseline: MetricsDTO
    scenario: MetricsDTO
    rows: List[ComparisonRow]


class ViewDTO(BaseModel):
    view: ViewMode


def _selection_response(state: DashboardState, db: Session) -> Dict:
    selected = state.leveling.selected
    if selected is None:
        return {"selected": None, "suggestions": []}
    resources = ResourceRepository(db).list_all()
    tasks = TaskRepository(db).list_all()
    suggestions = state.leveling.suggestions(resources, tasks)
    return {
        "selected": CellSelection(resource_id=selected.resource_id, week=selected.week),
        "suggestions": [SuggestionDTO.from_domain(i, s) for i, s in enumerate(suggestions)],
    }


def _scenario_state(state: DashboardState, db: Session) -> DashboardState:
    if not state.scenario_initialized:
        state.scenario.reset(ProjectRepository(db).list_all())
        state.scenario_initialized = True
    return state


def _scenario_response(state: DashboardState) -> Dict:
    modeler = state.scenario
    return {
        "selected_project_id": modeler.selected_project_id,
        "projects": [ScenarioProjectDTO.from_domain(sp) for sp in modeler.projects],
        "metrics": MetricsDTO.from_domain(modeler.metrics()),
    }


# --- Strategic alignment ---------------------------------------------------

@router.get("/drivers", response_model=List[DriverDTO], summary="List business drivers")
def list_drivers(db: Session = Depends(get_db)):
    return [DriverDTO.from_domain(d) for d in DriverRepository(db).list_all()]


@router.put("/drivers/{driver_id}/weight", response_model=DriverDTO, summary="Change a driver's weight")
def set_driver_weight(driver_id: str, req: WeightUpdate, db: Session = Depends(get_db)):
    repo = DriverRepository(db)
    try:
        drivers = update_driver_weight(repo.list_all(), driver_id, req.weight)
    except KeyError:
        logger.warning(f"Weight change for unknown driver {driver_id}")
        raise HTTPException(status_code=404, detail=f"Unknown driver {driver_id}")

    updated = next(d for d in drivers if d.id == driver_id)
    repo.save(updated)
    logger.info(f"Driver {driver_id} weight set to {req.weight}")
    return DriverDTO.from_domain(updated)


@router.get("/projects", response_model=List[ProjectDTO], summary="List baseline projects")
def list_projects(db: Session = Depends(get_db)):
    return [ProjectDTO.from_domain(p) for p in ProjectRepository(db).list_all()]


@router.get("/projects/ranking", response_model=List[RankedProjectDTO], summary="Rank projects by alignment")
def project_ranking(db: Session = Depends(get_db)):
    """
    Projects sorted by alignment score (highest first).

    The score is the weighted average of each project's driver scores using
    the current driver weights; it is 0 when every weight is 0.
    """
    drivers = DriverRepository(db).list_all()
    ranked = rank_projects(ProjectRepository(db).list_all(), drivers)
    return [
        RankedProjectDTO(rank=i, project=ProjectDTO.from_domain(p), alignment_score=score)
        for i, (p, score) in enumerate(ranked, start=1)
    ]


# --- Resources and tasks ---------------------------------------------------

@router.get("/resources", response_model=List[ResourceDTO], summary="List resources")
def list_resources(db: Session = Depends(get_db)):
    return [ResourceDTO.from_domain(r) for r in ResourceRepository(db).list_all()]


@router.get("/tasks", response_model=List[TaskDTO], summary="List tasks")
def list_tasks(db: Session = Depends(get_db)):
    return [TaskDTO.from_domain(t) for t in TaskRepository(db).list_all()]


@router.post("/tasks", response_model=TaskDTO, status_code=201, summary="Add a task")
def create_task(req: TaskDTO, db: Session = Depends(get_db)):
    task_repo = TaskRepository(db)
    if task_repo.get_by_id(req.id) is not None:
        logger.warning(f"Task {req.id} already exists")
        raise HTTPException(status_code=409, detail=f"Task {req.id} already exists")
    if ProjectRepository(db).get_by_id(req.project_id) is None:
        logger.warning(f"Task {req.id} references unknown project {req.project_id}")
        raise HTTPException(status_code=400, detail=f"Task {req.id} references unknown project {req.project_id}")
    if req.resource_id is not None and ResourceRepository(db).get_by_id(req.resource_id) is None:
        logger.warning(f"Task {req.id} references unknown resource {req.resource_id}")
        raise HTTPException(status_code=400, detail=f"Task {req.id} requires unknown resource {req.resource_id}")

    task = req.to_domain()
    task_repo.save(task)
    logger.info(f"Task {task.id} added ({task.hours_per_week:.1f}h/week over {task.duration} weeks)")
    return TaskDTO.from_domain(task)


# --- Resource leveling ------------------------------------------------------

@router.get("/allocation", response_model=AllocationResponse, summary="Weekly allocation grid")
def allocation(db: Session = Depends(get_db)):
    """
    Hours committed per resource per week, with each cell classified as
    over, under, optimal or empty relative to the resource's capacity.
    """
    resources = ResourceRepository(db).list_all()
    tasks = TaskRepository(db).list_all()
    horizon = total_weeks(ProjectRepository(db).list_all(), tasks)
    weeks = list(range(1, horizon + 1))

    matrix = build_allocation_matrix(resources, tasks)
    utilization = resource_utilization(resources, matrix)

    rows = []
    for res in resources:
        cells = []
        for week in weeks:
            hours = cell_hours(matrix, res.id, week)
            cell = matrix[res.id].get(week)
            cells.append(AllocationCellDTO(
                week=week,
                hours=hours,
                status=cell_display_status(hours, res.capacity).value,
                task_ids=[t.id for t in cell.tasks] if cell else [],
            ))
        rows.append(ResourceAllocationDTO(
            resource=ResourceDTO.from_domain(res),
            peak_hours=utilization[res.id]["peak_hours"],
            over_allocated_weeks=utilization[res.id]["over_allocated_weeks"],
            cells=cells,
        ))

    return {"total_weeks": horizon, "weeks": weeks, "rows": rows}


@router.get("/allocation/selection", response_model=SelectionResponse, summary="Current cell and suggestions")
def get_selection(db: Session = Depends(get_db), state: DashboardState = Depends(get_dashboard_state)):
    return _selection_response(state, db)


@router.put("/allocation/selection", response_model=SelectionResponse, summary="Select a cell")
def select_cell(req: CellSelection, db: Session = Depends(get_db), state: DashboardState = Depends(get_dashboard_state)):
    """
    Select a (resource, week) cell. Suggestions are only produced when the
    cell holds more hours than the resource's weekly capacity.
    """
    if ResourceRepository(db).get_by_id(req.resource_id) is None:
        logger.warning(f"Selection of unknown resource {req.resource_id}")
        raise HTTPException(status_code=404, detail=f"Unknown resource {req.resource_id}")
    state.leveling.select(req.resource_id, req.week)
    return _selection_response(state, db)


@router.delete("/allocation/selection", response_model=SelectionResponse, summary="Clear the selection")
def clear_selection(state: DashboardState = Depends(get_dashboard_state)):
    state.leveling.clear()
    return {"selected": None, "suggestions": []}


@router.get("/allocation/suggestions", response_model=List[SuggestionDTO], summary="Suggestions for the selection")
def list_suggestions(db: Session = Depends(get_db), state: DashboardState = Depends(get_dashboard_state)):
    return _selection_response(state, db)["suggestions"]


@router.post("/allocation/suggestions/{index}/apply", response_model=ApplyResponse, summary="Apply a suggestion")
def apply_suggestion_endpoint(
    index: int,
    db: Session = Depends(get_db),
    state: DashboardState = Depends(get_dashboard_state),
):
    """
    Apply one suggestion for the selected cell.

    A delay moves the task's start week by one; a reassignment changes its
    resource. Nothing else changes. The selection is cleared afterwards.

    **Error Handling:**
    - 409: No cell selected
    - 404: No suggestion with that index
    """
    task_repo = TaskRepository(db)
    resources = ResourceRepository(db).list_all()
    tasks = task_repo.list_all()

    try:
        suggestion, updated = state.leveling.apply(index, resources, tasks)
    except IndexError as exc:
        logger.warning(f"Apply rejected: {exc}")
        raise HTTPException(status_code=404, detail=str(exc))
    except LookupError as exc:
        logger.warning(f"Apply rejected: {exc}")
        raise HTTPException(status_code=409, detail="No cell selected")

    changed = next(t for t in updated if t.id == suggestion.task_id)
    task_repo.save(changed)
    return {
        "applied": SuggestionDTO.from_domain(index, suggestion),
        "task": TaskDTO.from_domain(changed),
        "selected": None,
    }


# --- Scenario modeling ------------------------------------------------------

@router.get("/scenario", response_model=ScenarioResponse, summary="Scenario working copy")
def get_scenario(db: Session = Depends(get_db), state: DashboardState = Depends(get_dashboard_state)):
    return _scenario_response(_scenario_state(state, db))


@router.post("/scenario/changes", response_model=ScenarioResponse, summary="Apply a what-if change")
def apply_scenario_change(
    req: ScenarioChangeRequest,
    db: Session = Depends(get_db),
    state: DashboardState = Depends(get_dashboard_state),
):
    _scenario_state(state, db)
    try:
        state.scenario.apply_change(req.project_id, req.delay, req.budget_change)
    except KeyError:
        logger.warning(f"Scenario change for unknown project {req.project_id}")
        raise HTTPException(status_code=404, detail=f"Unknown project {req.project_id}")
    return _scenario_response(state)


@router.put("/scenario/selection", response_model=ScenarioResponse, summary="Pick the project being edited")
def select_scenario_project(
    req: ScenarioSelection,
    db: Session = Depends(get_db),
    state: DashboardState = Depends(get_dashboard_state),
):
    """Select a scenario project; its current delay and budget change are returned with it."""
    _scenario_state(state, db)
    try:
        state.scenario.select(req.project_id)
    except KeyError:
        logger.warning(f"Scenario selection of unknown project {req.project_id}")
        raise HTTPException(status_code=404, detail=f"Unknown project {req.project_id}")
    return _scenario_response(state)


@router.post("/scenario/reset", response_model=ScenarioResponse, summary="Reset the scenario to baseline")
def reset_scenario(db: Session = Depends(get_db), state: DashboardState = Depends(get_dashboard_state)):
    state.scenario.reset(ProjectRepository(db).list_all())
    state.scenario_initialized = True
    logger.info("Scenario reset to baseline")
    return _scenario_response(state)


@router.get("/scenario/comparison", response_model=ComparisonResponse, summary="Baseline vs. scenario")
def scenario_comparison(db: Session = Depends(get_db), state: DashboardState = Depends(get_dashboard_state)):
    _scenario_state(state, db)
    baseline = baseline_metrics(ProjectRepository(db).list_all())
    scenario = state.scenario.metrics()
    return {
        "baseline": MetricsDTO.from_domain(baseline),
        "scenario": MetricsDTO.from_domain(scenario),
        "rows": comparison_rows(baseline, scenario),
    }


# --- Export and view ----------------------------------------------------------

@router.get("/export/csv", summary="Download the portfolio as CSV")
def export_csv(db: Session = Depends(get_db)):
    content = export_portfolio_csv(
        DriverRepository(db).list_all(),
        ProjectRepository(db).list_all(),
        ResourceRepository(db).list_all(),
        TaskRepository(db).list_all(),
    )
    logger.info(f"CSV export: {len(content)} bytes")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={settings.export_filename}"},
    )


@router.get("/view", response_model=ViewDTO, summary="Current dashboard view")
def get_view(state: DashboardState = Depends(get_dashboard_state)):
    return {"view": state.view}


@router.put("/view", response_model=ViewDTO, summary="Switch dashboard view")
def set_view(req: ViewDTO, state: DashboardState = Depends(get_dashboard_state)):
    state.view = req.view
    return {"view": state.view}
