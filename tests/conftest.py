import random

import pytest

from vibe_survey import db
from vibe_survey.identity import User


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.setattr(db, "DB_PATH", str(tmp_path / "test.db"))
    db.init_db()
    return db


@pytest.fixture
def user():
    return User(uid="u-123", email="ada@uni.minerva.edu", display_name="Ada")


@pytest.fixture
def rng():
    return random.Random(1234)
