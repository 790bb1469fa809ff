"""Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import os
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set required environment variables for tests BEFORE importing app modules
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PLATFORM_API_BASE_URL", "http://platform.test")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from survey_insights.models.database import Base, init_db
from survey_insights.schemas.response import ResponseStatus, SurveyResponse
from survey_insights.schemas.survey import Survey
from survey_insights.services.local_store import LocalResponseStore


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine with SQLite in-memory database.

    Yields:
        Engine: SQLAlchemy engine for testing

    Note:
        StaticPool keeps the in-memory database on one connection so every
        session of a test sees the same tables.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    init_db(engine)

    yield engine

    # Drop all tables after test
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(
        bind=db_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session.

    Note:
        Session is rolled back after each test to ensure isolation.
    """
    session = session_factory()

    yield session

    session.rollback()
    session.close()


@pytest.fixture
def local_store(session_factory) -> LocalResponseStore:
    """Local response store backed by the test database."""
    return LocalResponseStore(session_factory)


@pytest.fixture
def sample_survey_id() -> str:
    """Provide a sample survey ID for testing.

    Returns:
        str: Survey identifier
    """
    return "s1"


@pytest.fixture
def sample_survey(sample_survey_id) -> Survey:
    """Survey with one question of every type."""
    return Survey.model_validate({
        "id": sample_survey_id,
        "title": "Team Feedback",
        "description": "Quarterly feedback",
        "sections": [
            {
                "id": "sec1",
                "title": "General",
                "questions": [
                    {"id": "q_yesno", "type": "yesno", "question": "Recommend us?",
                     "options": ["Yes", "No"]},
                    {"id": "q_radio", "type": "radio", "question": "Favourite colour?",
                     "options": ["Red", "Blue"]},
                    {"id": "q_checkbox", "type": "checkbox", "question": "Tools used?",
                     "options": ["A", "B", "C"]},
                ],
            },
            {
                "id": "sec2",
                "title": "Scales",
                "order": 1,
                "questions": [
                    {"id": "q_rating", "type": "rating", "question": "Rate us"},
                    {"id": "q_likert", "type": "likert", "question": "Meetings help",
                     "options": ["Strongly Disagree", "Disagree", "Neutral", "Agree",
                                 "Strongly Agree"]},
                    {"id": "q_rank", "type": "ranking", "question": "Rank these",
                     "options": ["x", "y", "z"]},
                    {"id": "q_text", "type": "text", "question": "Comments?"},
                ],
            },
        ],
    })


@pytest.fixture
def make_response(sample_survey_id):
    """Factory for canonical responses with sensible defaults."""
    counter = {"n": 0}

    def _make(answers=None, **overrides) -> SurveyResponse:
        counter["n"] += 1
        fields = {
            "id": f"r{counter['n']}",
            "survey_id": sample_survey_id,
            "survey_title": "Team Feedback",
            "answers": answers or {},
            "timestamp": "2024-06-01T10:00:00Z",
            "status": ResponseStatus.COMPLETED,
        }
        fields.update(overrides)
        return SurveyResponse(**fields)

    return _make
