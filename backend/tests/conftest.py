from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from codearena.core.database import Base
from codearena.models.contest import Contest, ContestParticipant
from codearena.models.player import Player
from codearena.models.problem import Problem
from codearena.models.user import User
from codearena.schemas.enums import ContestStatus
from codearena.services.notifications import InMemorySink, notification_dispatcher


def _make_session():
    engine = create_engine("sqlite:///:memory:")
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)
    return SessionLocal()


@pytest.fixture
def db():
    session = _make_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sink():
    """Route the process-wide dispatcher into an in-memory sink for one test."""
    previous = notification_dispatcher.sink
    memory = InMemorySink()
    notification_dispatcher.configure(memory)
    try:
        yield memory
    finally:
        notification_dispatcher.configure(previous)


@pytest.fixture
def make_player(db):
    counter = {"n": 0}

    def _make(username=None, xp=0, **fields):
        counter["n"] += 1
        user = User(username=username or f"player{counter['n']}", role="player", is_active=True)
        db.add(user)
        db.flush()
        player = Player(user_id=user.id, xp=xp, **fields)
        db.add(player)
        db.commit()
        db.refresh(player)
        return player

    return _make


@pytest.fixture
def make_organizer(db):
    def _make(username="organizer"):
        user = User(username=username, role="organizer", is_active=True)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_problem(db):
    def _make(difficulty="EASY", points=100, title=None):
        problem = Problem(title=title or f"{difficulty.title()} problem", difficulty=difficulty, points=points, tags=[])
        db.add(problem)
        db.commit()
        db.refresh(problem)
        return problem

    return _make


@pytest.fixture
def make_contest(db):
    def _make(status=ContestStatus.LIVE, problems=(), is_public=True, invite_code=None):
        start = datetime(2026, 10, 1, 12, 0, 0)
        contest = Contest(
            title="Weekly Round",
            problem_ids=[p.id for p in problems],
            start_time=start,
            end_time=start + timedelta(minutes=90),
            duration_mins=90,
            is_public=is_public,
            invite_code=invite_code,
            status=ContestStatus(status).value,
        )
        db.add(contest)
        db.commit()
        db.refresh(contest)
        return contest

    return _make


@pytest.fixture
def add_participant(db):
    """Participant row without join side effects, for scoring-only tests."""
    def _add(contest, player, mode="GRINDER", **fields):
        participant = ContestParticipant(contest_id=contest.id, player_id=player.id, mode=mode, **fields)
        db.add(participant)
        db.commit()
        db.refresh(participant)
        return participant

    return _add
