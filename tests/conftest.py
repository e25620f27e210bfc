import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import docdot.models  # noqa: F401  registers tables on Base
from docdot.core.security import get_password_hash
from docdot.db.base import Base
from docdot.db.repository import Repository
from docdot.db.sessions import get_db
from docdot.main import app
from docdot.routes.tutor import get_tutor_service


class FakeTutor:
    def __init__(self):
        self.questions = []

    def ask(self, question, markdown=False):
        self.questions.append(question)
        return f"Answer to: {question}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repo(db):
    return Repository(db)


@pytest.fixture
def fake_tutor():
    return FakeTutor()


@pytest.fixture
def client(session_factory, fake_tutor):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_tutor_service] = lambda: fake_tutor
    # no context manager: startup (schema on the real DB, seeding, bot) is skipped
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(repo):
    user = repo.create_user(
        username="alice",
        password_hash=get_password_hash("secret"),
        first_name="Alice",
    )
    repo.commit()
    return user


@pytest.fixture
def make_question(repo):
    def make(answer=True, category="Anatomy", subcategory="Thorax", explanation="Because."):
        question = repo.create_question(
            question=f"{category} {subcategory} statement",
            answer=answer,
            explanation=explanation,
            category=category,
            subcategory=subcategory,
        )
        repo.commit()
        return question

    return make


@pytest.fixture
def make_image(repo):
    def make(correct_answer="Aorta", category="Anatomy", subcategory="Thorax"):
        item = repo.create_image_item(
            category=category,
            subcategory=subcategory,
            image_url="https://example.com/image.png",
            correct_answer=correct_answer,
            options=[correct_answer, "Vena cava", "Trachea", "Esophagus"],
            explanation="Largest artery.",
        )
        repo.commit()
        return item

    return make
