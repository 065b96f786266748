import os

# Keep test runs off any real database or broker configured in .env
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite://")
os.environ.setdefault("REMINDER_CELERY_BROKER_URL", "memory://")

from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dreamseeker.db.base import Base
from dreamseeker.models import Action, Dream
from dreamseeker.reminders.dispatcher import PushSender

T0 = 1_700_000_000_000


class FakeClock:
    def __init__(self, start: int = T0):
        self.now = start

    def __call__(self) -> int:
        return self.now


class FakeHandle:
    def __init__(self, when: int, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Just enough of asyncio's loop for call_later-driven components, on a fake clock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.handles: List[FakeHandle] = []

    def call_later(self, delay: float, callback, *args) -> FakeHandle:
        handle = FakeHandle(self.clock.now + int(round(delay * 1000)), callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def run_next(self) -> int:
        """Jump the clock to the earliest pending handle and run it. Returns its delay."""
        handle = min(self.pending, key=lambda h: h.when)
        self.handles.remove(handle)
        delay = handle.when - self.clock.now
        self.clock.now = handle.when
        handle.callback(*handle.args)
        return delay

    def advance(self, ms: int) -> None:
        target = self.clock.now + ms
        while True:
            due = [h for h in self.pending if h.when <= target]
            if not due:
                break
            self.run_next()
        self.clock.now = target


class RecordingPush(PushSender):
    def __init__(self, fail_for: Optional[set] = None):
        self.sent: List[Dict] = []
        self.fail_for = fail_for or set()

    def send(self, user_id, title, body, data=None) -> None:
        if user_id in self.fail_for:
            raise RuntimeError(f"broker unavailable for {user_id}")
        self.sent.append({"user_id": user_id, "title": title, "body": body, "data": data})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def loop(clock) -> FakeLoop:
    return FakeLoop(clock)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def push() -> RecordingPush:
    return RecordingPush()


@pytest.fixture
def make_dream(db):
    def _make(title="Run a marathon", user_id="user-1", status="active", **kwargs) -> Dream:
        dream = Dream(title=title, user_id=user_id, status=status, **kwargs)
        db.add(dream)
        db.commit()
        return dream
    return _make


@pytest.fixture
def make_action(db):
    def _make(dream, text="Buy running shoes", reminder=T0 - 1000, user_id=None, **kwargs) -> Action:
        action = Action(
            text=text,
            dream_id=dream.id if isinstance(dream, Dream) else dream,
            user_id=user_id or (dream.user_id if isinstance(dream, Dream) else "user-1"),
            reminder=reminder,
            **kwargs,
        )
        db.add(action)
        db.commit()
        return action
    return _make
