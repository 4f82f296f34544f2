import os
import sys
from pathlib import Path
import time

import pytest
from fastapi.testclient import TestClient

backend_dir = Path(__file__).resolve().parents[1]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

# The app module creates its engine at import time; never point it at a real server.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db import session as session_module
from app.main import create_app
from app.core.security import create_admin_token
from app.services.simulation_store import (
    CandidateExamRecord,
    SimulationQuestionRow,
    SimulationRecord,
)

# Import models so that they are registered in Base.metadata before create_all.
import app.models  # noqa: F401


class _MemoryRedis:
    def __init__(self):
        self._data: dict[str, tuple[str, float | None]] = {}

    def ping(self):
        return True

    def _now(self) -> float:
        return time.time()

    def _get_entry(self, key: str):
        v = self._data.get(key)
        if not v:
            return None
        value, exp = v
        if exp is not None and exp <= self._now():
            self._data.pop(key, None)
            return None
        return value, exp

    def get(self, key: str):
        entry = self._get_entry(key)
        return entry[0] if entry else None

    def set(self, key: str, value: str, ex: int | None = None, nx: bool = False):
        if nx and self._get_entry(key):
            return None
        exp = (self._now() + int(ex)) if ex else None
        self._data[key] = (value, exp)
        return True

    def incr(self, key: str):
        cur = self.get(key)
        n = int(cur or 0) + 1
        _, exp = self._data.get(key, ("", None))
        self._data[key] = (str(n), exp)
        return n

    def expire(self, key: str, seconds: int):
        entry = self._get_entry(key)
        if not entry:
            return False
        value, _ = entry
        self._data[key] = (value, self._now() + int(seconds))
        return True

    def ttl(self, key: str):
        entry = self._get_entry(key)
        if not entry:
            return -2
        _, exp = entry
        if exp is None:
            return -1
        return max(0, int(exp - self._now()))

    def flushall(self):
        self._data.clear()


class InMemorySimulationStore:
    """SimulationStore fake; ``fail_on`` names methods that raise like a dropped connection."""

    def __init__(
        self,
        sims: dict[int, list[int]] | None = None,
        *,
        titles: dict[int, str | None] | None = None,
        exams: list[CandidateExamRecord] | None = None,
        question_points: dict[int, int] | None = None,
        fail_on: tuple[str, ...] = (),
    ):
        self.sims = {int(k): list(v) for k, v in (sims or {}).items()}
        self.titles = dict(titles or {})
        self.exams = list(exams or [])
        self.points = question_points
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, tuple]] = []

    def _call(self, name: str, *args) -> None:
        self.calls.append((name, args))
        if name in self.fail_on:
            raise ConnectionError(f"{name} unavailable")

    def _rows(self, sim_ids) -> list[SimulationQuestionRow]:
        return [SimulationQuestionRow(simulation_id=s, question_id=q) for s in sim_ids for q in self.sims.get(s, [])]

    def all_pairs(self):
        self._call("all_pairs")
        return self._rows(sorted(self.sims))

    def pairs_for_questions(self, question_ids):
        self._call("pairs_for_questions", tuple(question_ids))
        wanted = set(question_ids)
        return [r for r in self._rows(sorted(self.sims)) if r.question_id in wanted]

    def pairs_for_simulations(self, simulation_ids):
        self._call("pairs_for_simulations", tuple(simulation_ids))
        return self._rows(list(simulation_ids))

    def simulations(self):
        self._call("simulations")
        return [SimulationRecord(id=s, title=self.titles.get(s)) for s in sorted(self.sims)]

    def candidate_exams(self):
        self._call("candidate_exams")
        return list(self.exams)

    def candidate_exam(self, exam_id):
        self._call("candidate_exam", exam_id)
        return next((e for e in self.exams if e.id == exam_id), None)

    def existing_question_ids(self, question_ids):
        self._call("existing_question_ids", tuple(question_ids))
        if self.points is None:
            return set(question_ids)
        return {q for q in question_ids if q in self.points}

    def question_points(self, question_ids):
        self._call("question_points", tuple(question_ids))
        if self.points is None:
            return len(list(question_ids))
        return sum(self.points.get(q, 0) for q in question_ids)

    def insert_simulation(self, title, question_ids):
        self._call("insert_simulation", title, tuple(question_ids))
        new_id = max(self.sims, default=0) + 1
        self.sims[new_id] = list(question_ids)
        self.titles[new_id] = title
        return new_id


# Configure test DB (SQLite in-memory) at import time so all tests importing
# app.db.session.SessionLocal will get the patched version.
_engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
Base.metadata.create_all(bind=_engine)
session_module.engine = _engine
session_module.SessionLocal = session_module.sessionmaker(autocommit=False, autoflush=False, bind=_engine)


# Stub Redis at import time (rate limiting + readiness).
_mem_redis = _MemoryRedis()
import app.core.redis_client as redis_client_module

redis_client_module.get_redis = lambda: _mem_redis

import app.core.rate_limit as rate_limit_module
rate_limit_module.get_redis = lambda: _mem_redis

import app.routers.health as health_router_module
health_router_module.get_redis = lambda: _mem_redis


@pytest.fixture(autouse=True)
def _clean_state():
    yield
    _mem_redis.flushall()
    with session_module.SessionLocal() as db:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()


@pytest.fixture(scope="session")
def client():
    app = create_app()

    # Ensure app dependencies use our session factory.
    def _get_db_override():
        db = session_module.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[session_module.get_db] = _get_db_override
    return TestClient(app)


@pytest.fixture()
def db():
    with session_module.SessionLocal() as session:
        yield session


@pytest.fixture()
def admin_headers():
    return {"Authorization": f"Bearer {create_admin_token('test-admin')}"}


@pytest.fixture()
def memory_store():
    return InMemorySimulationStore
