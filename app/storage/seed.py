import logging

from sqlalchemy.orm import Session

from app.models.entities import BusinessDriver, Project, ProjectScore, Resource, Task
from app.storage.database import DriverModel
from app.storage.repositories import (
    DriverRepository,
    ProjectRepository,
    ResourceRepository,
    TaskRepository,
)


logger = logging.getLogger(__name__)


def _scores(*values):
    return [ProjectScore(driver_id=f"d{i}", score=v) for i, v in enumerate(values, start=1)]


INITIAL_DRIVERS = [
    BusinessDriver(id="d1", name="Increase ROI", weight=8),
    BusinessDriver(id="d2", name="Market Impact", weight=7),
    BusinessDriver(id="d3", name="Reduce Operational Risk", weight=5),
    BusinessDriver(id="d4", name="Improve Customer Satisfaction", weight=6),
]

INITIAL_PROJECTS = [
    Project(id="p1", name="QuantumLeap CRM", description="Next-gen customer relationship management platform.",
            budget=500000, risk=4, start_week=1, duration=12, scores=_scores(9, 8, 3, 7)),
    Project(id="p2", name="Project Nebula", description="Cloud infrastructure migration and optimization.",
            budget=750000, risk=7, start_week=3, duration=16, scores=_scores(7, 5, 9, 4)),
    Project(id="p3", name="Orion Analytics", description="Data analytics platform for sales forecasting.",
            budget=300000, risk=3, start_week=1, duration=8, scores=_scores(8, 7, 5, 6)),
    Project(id="p4", name="Helios Mobile App", description="A new consumer-facing mobile application.",
            budget=400000, risk=6, start_week=6, duration=10, scores=_scores(6, 9, 2, 8)),
]

INITIAL_RESOURCES = [
    Resource(id="r1", name="Alice", capacity=40),
    Resource(id="r2", name="Bob", capacity=40),
    Resource(id="r3", name="Charlie", capacity=30),
    Resource(id="r4", name="Diana", capacity=40),
]

INITIAL_TASKS = [
    # QuantumLeap CRM
    Task(id="t1", project_id="p1", name="UI/UX Design", resource_id="r1", start_week=1, duration=4, estimated_hours=160),
    Task(id="t2", project_id="p1", name="API Development", resource_id="r2", start_week=2, duration=6, estimated_hours=240),
    Task(id="t3", project_id="p1", name="Frontend Dev", resource_id="r1", start_week=5, duration=8, estimated_hours=320),
    Task(id="t4", project_id="p1", name="QA Testing", resource_id="r3", start_week=10, duration=3, estimated_hours=90),
    # Project Nebula
    Task(id="t5", project_id="p2", name="Infra Audit", resource_id="r4", start_week=3, duration=4, estimated_hours=160),
    Task(id="t6", project_id="p2", name="Migration Plan", resource_id="r2", start_week=5, duration=2, estimated_hours=80),
    Task(id="t7", project_id="p2", name="Execution Phase 1", resource_id="r2", start_week=7, duration=8, estimated_hours=320),
    Task(id="t8", project_id="p2", name="Execution Phase 2", resource_id="r4", start_week=9, duration=8, estimated_hours=320),
    # Orion Analytics
    Task(id="t9", project_id="p3", name="Data Modeling", resource_id="r3", start_week=1, duration=4, estimated_hours=120),
    Task(id="t10", project_id="p3", name="Dashboard Dev", resource_id="r1", start_week=3, duration=6, estimated_hours=240),
    # Helios Mobile App
    Task(id="t11", project_id="p4", name="Prototyping", resource_id="r3", start_week=6, duration=4, estimated_hours=120),
    Task(id="t12", project_id="p4", name="Backend Services", resource_id="r2", start_week=8, duration=8, estimated_hours=320),
]


def seed_db(db: Session) -> bool:
    """Load the initial portfolio into an empty database. Returns False if data already exists."""
    if db.query(DriverModel).first() is not None:
        logger.info("Database already seeded")
        return False

    driver_repo = DriverRepository(db)
    project_repo = ProjectRepository(db)
    resource_repo = ResourceRepository(db)
    task_repo = TaskRepository(db)
    for driver in INITIAL_DRIVERS:
        driver_repo.save(driver)
    for project in INITIAL_PROJECTS:
        project_repo.save(project)
    for resource in INITIAL_RESOURCES:
        resource_repo.save(resource)
    for task in INITIAL_TASKS:
        task_repo.save(task)

    logger.info(
        f"Seeded {len(INITIAL_DRIVERS)} drivers, {len(INITIAL_PROJECTS)} projects, "
        f"{len(INITIAL_RESOURCES)} resources, {len(INITIAL_TASKS)} tasks"
    )
    return True
