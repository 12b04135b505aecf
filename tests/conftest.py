import pytest
from fastapi.testclient import TestClient

from fakes import ANON_KEY, BASE_URL, FakeBackend
from genstudio.core.config import get_settings


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    monkeypatch.setenv("BACKEND_URL", BASE_URL)
    monkeypatch.setenv("BACKEND_ANON_KEY", ANON_KEY)
    monkeypatch.setenv("GENERATION_API_URL", "")
    monkeypatch.setenv("SIMULATED_DELAY_SECONDS", "0")
    monkeypatch.setenv("PROGRESS_TICK_SECONDS", "0.01")
    monkeypatch.setenv("PROJECT_RETENTION_MINUTES", "60")
    monkeypatch.setenv("PLAN_TERM_DAYS", "30")
    s = get_settings(reload=True)
    yield s
    monkeypatch.undo()
    get_settings(reload=True)


@pytest.fixture
def fake():
    return FakeBackend().seed_plans()


@pytest.fixture
def member(fake):
    user_id, token = fake.add_user("member@example.com", full_name="Mia Member")
    return {"id": user_id, "token": token, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def admin(fake):
    user_id, token = fake.add_user("admin@example.com", full_name="Ada Admin", role="admin")
    return {"id": user_id, "token": token, "headers": {"Authorization": f"Bearer {token}"}, "profile": {"id": user_id, "role": "admin"}}


@pytest.fixture
def client(fake):
    from genstudio.auth.deps import get_backend
    from genstudio.generations.routes import get_generator
    from genstudio.generations.upstream import SimulatedGenerator
    from genstudio.main import app

    app.dependency_overrides[get_backend] = lambda: fake.client()
    app.dependency_overrides[get_generator] = lambda: SimulatedGenerator(delay=0)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
