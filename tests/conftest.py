import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.entities import BusinessDriver, Project, ProjectScore, Resource, Task
from app.storage.database import reset_db
from app.storage.state import get_dashboard_state


@pytest.fixture
def client():
    """API client over a freshly seeded database and clean dashboard state."""
    reset_db()
    get_dashboard_state().reset()
    with TestClient(app) as c:
        yield c
    get_dashboard_state().reset()


@pytest.fixture
def team():
    """Three resources with different weekly capacities."""
    return [
        Resource(id="alice", name="Alice", capacity=40),
        Resource(id="bob", name="Bob", capacity=40),
        Resource(id="carol", name="Carol", capacity=30),
    ]


@pytest.fixture
def contended_tasks():
    """Two tasks putting 30h each on Alice in week 5; Bob lightly loaded."""
    return [
        Task(id="t1", project_id="p1", name="Design", estimated_hours=90,
             resource_id="alice", start_week=3, duration=3),
        Task(id="t2", project_id="p1", name="Build", estimated_hours=60,
             resource_id="alice", start_week=5, duration=2),
        Task(id="t3", project_id="p2", name="Review", estimated_hours=10,
             resource_id="bob", start_week=5, duration=1),
        Task(id="t4", project_id="p2", name="Backlog", estimated_hours=50,
             resource_id=None, start_week=1, duration=5),
    ]


@pytest.fixture
def drivers():
    return [
        BusinessDriver(id="d1", name="ROI", weight=8),
        BusinessDriver(id="d2", name="Market Impact", weight=2),
    ]


@pytest.fixture
def projects():
    return [
        Project(id="p1", name="Alpha", description="First", budget=100000, risk=4,
                start_week=1, duration=10,
                scores=[ProjectScore("d1", 5), ProjectScore("d2", 10)]),
        Project(id="p2", name="Beta", description="Second", budget=200000, risk=8,
                start_week=4, duration=12,
                scores=[ProjectScore("d1", 9), ProjectScore("d2", 1)]),
    ]
