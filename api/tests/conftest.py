from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from francopath.core.clock import Clock, get_clock
from francopath.core.database import get_session
from francopath.core.exceptions import AdvisoryUnavailableError
from francopath.main import app
from francopath.models import models  # noqa: F401
from francopath.models.models import CardStatus, User, UserCard, Word
from francopath.services.plan_advisor import AdvisorProposal, get_plan_advisor

# 15:00 UTC is 11:00 in Toronto, so the plan day is 2026-03-10
NOW = datetime(2026, 3, 10, 15, 0, 0)

VALID_PLAN = {
    "targetLevel": "B1",
    "levelBand": {"primary": "B1", "support": "A2", "supportCapPct": 20},
    "mix": {"reviewPct": 70, "newPct": 30},
    "focusTags": ["travel"],
    "difficultyBias": "balanced",
    "rationale": "Steady accuracy at B1 with light A2 support.",
}


class FrozenClock(Clock):
    """Clock pinned to a fixed naive-UTC moment."""

    def __init__(self, moment: datetime = NOW, tz_name: str = "America/Toronto"):
        super().__init__(tz_name)
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


class StubAdvisor:
    """Plan advisor returning a canned payload or raising a canned error."""

    def __init__(self, payload=None, error: Exception = None, tokens_used: int = 42):
        self.payload = VALID_PLAN if payload is None else payload
        self.error = error
        self.tokens_used = tokens_used
        self.requests = []

    def propose(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return AdvisorProposal(payload=self.payload, tokens_used=self.tokens_used, model_name="stub")

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def session():
    """Provide an in-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def advisor():
    return StubAdvisor()


@pytest.fixture
def unavailable_advisor():
    return StubAdvisor(error=AdvisoryUnavailableError("advisor down"))


@pytest.fixture
def make_user(session):
    def _make_user(**kwargs):
        values = {"name": "Camille", "current_level": "B1"}
        values.update(kwargs)
        user = User(**values)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def make_word(session):
    counter = {"n": 0}

    def _make_word(cefr_level="B1", category="travel", **kwargs):
        counter["n"] += 1
        values = {
            "french": f"mot{counter['n']}",
            "english": f"word{counter['n']}",
            "cefr_level": cefr_level,
            "category": category,
        }
        values.update(kwargs)
        word = Word(**values)
        session.add(word)
        session.commit()
        session.refresh(word)
        return word
    return _make_word


@pytest.fixture
def make_card(session, make_word):
    """Create a card; times_seen > 0 makes it a review candidate."""
    def _make_card(user, word=None, **kwargs):
        if word is None:
            word = make_word()
        values = {
            "user_id": user.id,
            "word_id": word.id,
            "next_review": NOW,
            "created_at": NOW,
            "updated_at": NOW,
            "status": CardStatus.NEW.value,
        }
        values.update(kwargs)
        card = UserCard(**values)
        session.add(card)
        session.commit()
        session.refresh(card)
        return card
    return _make_card


@pytest.fixture
def client(session, clock, advisor):
    """TestClient wired to the test session, frozen clock and stub advisor."""
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_plan_advisor] = lambda: advisor
    yield TestClient(app)
    app.dependency_overrides.clear()
