"""Shared fixtures: a store on a temp file, a service over it, and an API client."""
import pytest
from fastapi.testclient import TestClient

from db import AppointmentStore
from services import AppointmentService


@pytest.fixture
def store(tmp_path):
    store = AppointmentStore(str(tmp_path / "data" / "appointments.json"))
    store.ensure_initialized()
    return store


@pytest.fixture
def service(store):
    return AppointmentService(store)


@pytest.fixture
def client(service):
    """FastAPI test client wired to the temp-file service."""
    from main import app, get_service

    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def booking():
    """Factory for a complete booking form payload."""
    def _make(**overrides):
        data = {
            "service": "manicura",
            "serviceName": "Manicura semipermanente",
            "servicePrice": "$8000",
            "date": "2024-05-01",
            "time": "10:00",
            "name": "Lucia Perez",
            "phone": "1155550101",
            "email": "lucia@example.com",
            "comments": "",
        }
        data.update(overrides)
        return data

    return _make
