import pytest

from backend.api.tests.helpers import COORDINATOR_CPF, RecordingPublisher
from backend.mongo.repository import use_in_memory_storage


@pytest.fixture(autouse=True)
def memory_storage(monkeypatch):
    use_in_memory_storage()
    monkeypatch.setattr("backend.auth.basic.BCRYPT_ROUNDS", 4)
    yield
    use_in_memory_storage()


@pytest.fixture
def api_env(monkeypatch):
    from backend.api.app import timetable_service, user_service
    publisher = RecordingPublisher()
    monkeypatch.setattr(timetable_service, "publisher", publisher)
    monkeypatch.setattr(user_service, "coordinator_cpfs", {COORDINATOR_CPF})
    return publisher
