"""Test configuration."""
import os
from typing import Generator, List

import pytest

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Import after environment setup
from sqlalchemy.orm import Session

from conjubot.catalog import get_verb
from conjubot.models.base import Base, SessionLocal, engine, init_db
from conjubot.models.quiz_models import Prompt, SessionState


class ScriptedRandom:
    """Randomness that replays a fixed list of choices."""

    def __init__(self, choices: List[int]):
        self.choices = list(choices)
        self.calls: List[int] = []

    def uniform(self, n: int) -> int:
        self.calls.append(n)
        value = self.choices.pop(0) if self.choices else 0
        assert 0 <= value < n, f"scripted choice {value} out of range for {n}"
        return value


def make_prompt(verb: str = "hablar", tense: str = "Presente", pronoun: str = "yo") -> Prompt:
    return Prompt(verb=get_verb(verb), tense=tense, pronoun=pronoun)


def make_state(verb: str = "hablar", tense: str = "Presente", pronoun: str = "yo", **kwargs) -> SessionState:
    return SessionState(prompt=make_prompt(verb, tense, pronoun), **kwargs)


@pytest.fixture(autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """Give every test empty tables."""
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def scripted_rng():
    """Factory for randomness that replays the given choices."""
    return ScriptedRandom


@pytest.fixture
def prompt_factory():
    return make_prompt


@pytest.fixture
def state_factory():
    return make_state
