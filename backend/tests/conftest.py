"""Shared fixtures: isolated SQLite databases and user factories.

Settings are read once at import time, so the environment must be
prepared before anything from `videotube` is imported.
"""

import os
import tempfile

_TMP_ROOT = tempfile.mkdtemp(prefix="videotube_tests_")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_INIT_MODE", "off")
os.environ.setdefault("MEDIA_ROOT", os.path.join(_TMP_ROOT, "media"))
os.environ.setdefault("LOG_FILE", os.path.join(_TMP_ROOT, "logs", "test.log"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from videotube.core.database import Base
from videotube.core.security import get_password_hash
from videotube.models.user import User
from videotube.models.video import Video
from videotube.models.subscription import Subscription
from videotube.services.media_storage import UploadResult
from videotube.services.rate_limiter import rate_limiter


@pytest.fixture
def db_engine():
    # StaticPool: every session (and TestClient worker thread) sees the same in-memory DB
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


def create_user(db, username="alice", password="secret123", email=None, full_name=None) -> User:
    user = User(
        username=username,
        email=email or f"{username}@example.com",
        full_name=full_name or username.title(),
        password_hash=get_password_hash(password),
        avatar_url=f"/media/{username}.png",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_video(db, owner: User, title="clip") -> Video:
    video = Video(
        owner_id=owner.id,
        video_file_url=f"/media/{title}.mp4",
        thumbnail_url=f"/media/{title}.jpg",
        title=title,
        description=f"{title} description",
        duration=12.5,
    )
    db.add(video)
    db.commit()
    db.refresh(video)
    return video


def subscribe(db, subscriber: User, channel: User) -> Subscription:
    edge = Subscription(subscriber_id=subscriber.id, channel_id=channel.id)
    db.add(edge)
    db.commit()
    return edge


class FakeStorage:
    """Media storage double: hands out URLs, or fails for paths listed in `failing`."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.uploaded = []

    def upload(self, local_path):
        if not local_path or local_path in self.failing:
            return UploadResult.failure("Upload failed")
        self.uploaded.append(local_path)
        return UploadResult.success(f"https://cdn.example.com/{os.path.basename(local_path)}")
