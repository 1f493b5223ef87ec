import os

# Point the cached settings at a private in-memory database before anything imports them.
os.environ["TRAINERHUB_DATABASE_URL"] = "sqlite://"

import pytest

from trainerhub.domain.models import LocationType, RequestStatus, TrainingStatus
from trainerhub.storage.database import get_engine, get_sessionmaker
from trainerhub.storage.models import (
    Base,
    CompanyDB,
    TrainerDB,
    TrainerTopicDB,
    TrainingDB,
    TrainingLocationDB,
    TrainingRequestDB,
)


class Factory:
    """Small row builder; every method flushes so ids are available, callers commit."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def _add(self, row):
        self.db.add(row)
        self.db.flush()
        return row

    def company(self, **kw) -> CompanyDB:
        n = self._next()
        kw.setdefault("company_name", f"Company {n}")
        kw.setdefault("email", f"company{n}@example.test")
        return self._add(CompanyDB(**kw))

    def trainer(self, *, topics: list[str] | None = None, **kw) -> TrainerDB:
        n = self._next()
        kw.setdefault("first_name", f"Trainer{n}")
        kw.setdefault("last_name", "Example")
        kw.setdefault("email", f"trainer{n}@example.test")
        kw.setdefault("delivery_types", [])
        trainer = TrainerDB(**kw)
        trainer.topics = [TrainerTopicDB(name=t) for t in (topics or [])]
        return self._add(trainer)

    def location(self, **kw) -> TrainingLocationDB:
        kw.setdefault("type", LocationType.PHYSICAL)
        return self._add(TrainingLocationDB(**kw))

    def training(self, company: CompanyDB, **kw) -> TrainingDB:
        n = self._next()
        kw.setdefault("title", f"Training {n}")
        kw.setdefault("topic", "Python")
        kw.setdefault("daily_rate", 850.0)
        kw.setdefault("status", TrainingStatus.PUBLISHED)
        return self._add(TrainingDB(company_id=company.id, **kw))

    def request(self, training: TrainingDB, trainer: TrainerDB, **kw) -> TrainingRequestDB:
        kw.setdefault("status", RequestStatus.PENDING)
        return self._add(TrainingRequestDB(training_id=training.id, trainer_id=trainer.id, **kw))


@pytest.fixture
def engine():
    eng = get_engine()
    Base.metadata.drop_all(eng)
    Base.metadata.create_all(eng)
    yield eng


@pytest.fixture
def session_factory(engine):
    return get_sessionmaker()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make(db):
    return Factory(db)
