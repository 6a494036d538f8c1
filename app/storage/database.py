from sqlalchemy import create_engine, Column, String, Integer, Float, JSON, DateTime
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from datetime import datetime
from app.config.settings import get_settings

settings = get_settings()


def _make_engine(url: str):
    if url.startswith("sqlite"):
        # One shared connection so an in-memory database survives across sessions.
        # Requests served from the threadpool share that connection and its
        # transaction; fine for a single-user dashboard, point DATABASE_URL at a
        # server database for concurrent users.
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    return create_engine(url, pool_pre_ping=True, echo=False)


engine = _make_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    weight = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    budget = Column(Float, nullable=False)
    scores = Column(JSON, nullable=False)  # List[{"driver_id", "score"}]
    risk = Column(Float, nullable=False)
    start_week = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)


class ResourceModel(Base):
    __tablename__ = "resources"

    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    capacity = Column(Float, nullable=False)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    project_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    estimated_hours = Column(Float, nullable=False)
    resource_id = Column(String, nullable=True)
    start_week = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


def init_db():
    Base.metadata.create_all(bind=engine)


def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
