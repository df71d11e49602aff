"""Shared fixtures: a fixed clock, a temporary local backend and a controller wired to it."""

from datetime import datetime, timedelta, timezone

import pytest

from src.client.controller import ApiKeyController
from src.client.database import LocalBackend
from src.core.models import ApiKeyRecord, AuthUser

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class StepClock:
    """Returns NOW, then NOW + 1s, NOW + 2s, ... so every mutation gets a distinct time."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


@pytest.fixture
def user():
    return AuthUser(id="user-1", email="ada@example.com", display_name="Ada Lovelace")


@pytest.fixture
def backend(tmp_path, user):
    return LocalBackend(f"sqlite:///{(tmp_path / 'keys.db').as_posix()}", user)


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def controller(backend, notifications):
    ctrl = ApiKeyController(backend, "api_keys", notify=notifications.append, clock=StepClock())
    ctrl.attach()
    yield ctrl
    ctrl.detach()


def make_record(**overrides) -> ApiKeyRecord:
    data = {
        "id": "key_1",
        "user_id": "user-1",
        "name": "OpenAI",
        "api_key": "sk-abc123xyz789",
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return ApiKeyRecord(**data)
