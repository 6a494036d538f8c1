from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.entities import BusinessDriver, Project, ProjectScore, Resource, Task
from app.storage.database import DriverModel, ProjectModel, ResourceModel, TaskModel


def _next_position(db: Session, model) -> int:
    current = db.query(func.max(model.position)).scalar()
    return 0 if current is None else current + 1


class DriverRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, driver_id: str) -> Optional[BusinessDriver]:
        model = self.db.query(DriverModel).filter(DriverModel.id == driver_id).first()
        if not model:
            return None
        return self._model_to_driver(model)

    def list_all(self) -> List[BusinessDriver]:
        models = self.db.query(DriverModel).order_by(DriverModel.position).all()
        return [self._model_to_driver(m) for m in models]

    def save(self, driver: BusinessDriver) -> None:
        existing = self.db.query(DriverModel).filter(DriverModel.id == driver.id).first()
        if existing:
            existing.name = driver.name
            existing.weight = driver.weight
        else:
            self.db.add(DriverModel(
                id=driver.id,
                position=_next_position(self.db, DriverModel),
                name=driver.name,
                weight=driver.weight,
            ))
        self.db.commit()

    @staticmethod
    def _model_to_driver(model: DriverModel) -> BusinessDriver:
        return BusinessDriver(id=model.id, name=model.name, weight=model.weight)


class ProjectRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, project_id: str) -> Optional[Project]:
        model = self.db.query(ProjectModel).filter(ProjectModel.id == project_id).first()
        if not model:
            return None
        return self._model_to_project(model)

    def list_all(self) -> List[Project]:
        models = self.db.query(ProjectModel).order_by(ProjectModel.position).all()
        return [self._model_to_project(m) for m in models]

    def save(self, project: Project) -> None:
        scores = [{"driver_id": s.driver_id, "score": s.score} for s in project.scores]
        existing = self.db.query(ProjectModel).filter(ProjectModel.id == project.id).first()
        if existing:
            existing.name = project.name
            existing.description = project.description
            existing.budget = project.budget
            existing.scores = scores
            existing.risk = project.risk
            existing.start_week = project.start_week
            existing.duration = project.duration
        else:
            self.db.add(ProjectModel(
                id=project.id,
                position=_next_position(self.db, ProjectModel),
                name=project.name,
                description=project.description,
                budget=project.budget,
                scores=scores,
                risk=project.risk,
                start_week=project.start_week,
                duration=project.duration,
            ))
        self.db.commit()

    @staticmethod
    def _model_to_project(model: ProjectModel) -> Project:
        return Project(
            id=model.id,
            name=model.name,
            description=model.description,
            budget=model.budget,
            scores=[ProjectScore(driver_id=s["driver_id"], score=s["score"]) for s in model.scores],
            risk=model.risk,
            start_week=model.start_week,
            duration=model.duration,
        )


class ResourceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, resource_id: str) -> Optional[Resource]:
        model = self.db.query(ResourceModel).filter(ResourceModel.id == resource_id).first()
        if not model:
            return None
        return self._model_to_resource(model)

    def list_all(self) -> List[Resource]:
        models = self.db.query(ResourceModel).order_by(ResourceModel.position).all()
        return [self._model_to_resource(m) for m in models]

    def save(self, resource: Resource) -> None:
        existing = self.db.query(ResourceModel).filter(ResourceModel.id == resource.id).first()
        if existing:
            existing.name = resource.name
            existing.capacity = resource.capacity
        else:
            self.db.add(ResourceModel(
                id=resource.id,
                position=_next_position(self.db, ResourceModel),
                name=resource.name,
                capacity=resource.capacity,
            ))
        self.db.commit()

    @staticmethod
    def _model_to_resource(model: ResourceModel) -> Resource:
        return Resource(id=model.id, name=model.name, capacity=model.capacity)


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, task_id: str) -> Optional[Task]:
        model = self.db.query(TaskModel).filter(TaskModel.id == task_id).first()
        if not model:
            return None
        return self._model_to_task(model)

    def list_all(self) -> List[Task]:
        models = self.db.query(TaskModel).order_by(TaskModel.position).all()
        return [self._model_to_task(m) for m in models]

    def save(self, task: Task) -> None:
        existing = self.db.query(TaskModel).filter(TaskModel.id == task.id).first()
        if existing:
            existing.project_id = task.project_id
            existing.name = task.name
            existing.estimated_hours = task.estimated_hours
            existing.resource_id = task.resource_id
            existing.start_week = task.start_week
            existing.duration = task.duration
        else:
            self.db.add(TaskModel(
                id=task.id,
                position=_next_position(self.db, TaskModel),
                project_id=task.project_id,
                name=task.name,
                estimated_hours=task.estimated_hours,
                resource_id=task.resource_id,
                start_week=task.start_week,
                duration=task.duration,
            ))
        self.db.commit()

    @staticmethod
    def _model_to_task(model: TaskModel) -> Task:
        return Task(
            id=model.id,
            project_id=model.project_id,
            name=model.name,
            estimated_hours=model.estimated_hours,
            resource_id=model.resource_id,
            start_week=model.start_week,
            duration=model.duration,
        )
