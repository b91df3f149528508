import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tryout_app.application.access_policy import ActingIdentity, Role
from tryout_app.application.questions.question_service import QuestionService
from tryout_app.application.tryouts.tryout_service import TryoutService
from tryout_app.infrastructure.db.base import Base
from tryout_app.infrastructure.db.models import ProfileModel, SchoolModel
from tryout_app.infrastructure.db.session import enable_sqlite_foreign_keys
from tryout_app.infrastructure.repositories.question_repository import QuestionRepository
from tryout_app.infrastructure.repositories.tryout_repository import TryoutRepository

from tests.factories import question_data, tryout_input


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    session.add_all([
        SchoolModel(id="school-1", name="SMA 1"),
        SchoolModel(id="school-2", name="SMA 2"),
    ])
    session.flush()
    session.add_all([
        ProfileModel(id="admin", name="Admin", email="admin@example.com", role="admin"),
        ProfileModel(id="guru1", name="Guru Satu", email="guru1@example.com", role="guru", school_id="school-1"),
        ProfileModel(id="guru2", name="Guru Dua", email="guru2@example.com", role="guru", school_id="school-1"),
        ProfileModel(id="guru3", name="Guru Tiga", email="guru3@example.com", role="guru", school_id="school-2"),
        ProfileModel(id="siswa1", name="Siswa Satu", email="siswa1@example.com", role="siswa", school_id="school-1"),
        ProfileModel(id="siswa2", name="Siswa Dua", email="siswa2@example.com", role="siswa", school_id="school-2"),
    ])
    session.commit()
    yield session
    session.close()


@pytest.fixture
def admin():
    return ActingIdentity(id="admin", role=Role.ADMIN)


@pytest.fixture
def guru1():
    return ActingIdentity(id="guru1", role=Role.GURU, school_id="school-1")


@pytest.fixture
def guru2():
    return ActingIdentity(id="guru2", role=Role.GURU, school_id="school-1")


@pytest.fixture
def guru3():
    return ActingIdentity(id="guru3", role=Role.GURU, school_id="school-2")


@pytest.fixture
def siswa1():
    return ActingIdentity(id="siswa1", role=Role.SISWA, school_id="school-1")


@pytest.fixture
def siswa2():
    return ActingIdentity(id="siswa2", role=Role.SISWA, school_id="school-2")


@pytest.fixture
def tryout_service(db):
    return TryoutService(db, TryoutRepository(db), QuestionRepository(db))


@pytest.fixture
def question_service(db):
    return QuestionService(db, QuestionRepository(db), TryoutRepository(db))


@pytest.fixture
def make_tryout(tryout_service):
    def _make(actor, **overrides):
        result = tryout_service.create(tryout_input(**overrides), actor)
        assert result.success, result.error
        return result.data
    return _make


@pytest.fixture
def make_question(question_service):
    def _make(actor, tryout_id, question_type="multiple_choice", **overrides):
        payload = {
            "tryout_id": tryout_id,
            "question_type": question_type,
            "question_data": question_data(question_type),
            "score": 10,
        }
        payload.update(overrides)
        result = question_service.create(payload, actor)
        assert result.success, result.error
        return result.data
    return _make
