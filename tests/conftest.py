from dataclasses import replace
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from src.workhub.workhub.container import build_services
from src.workhub.workhub.core.enums import Role
from tests.fakes import ADMIN_EMAIL, ADMIN_PASSWORD, FixedClock, InMemoryUnitOfWork, add_user, session_for


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def uow(clock):
    return InMemoryUnitOfWork(clock=clock)


@pytest.fixture
def services(uow, clock):
    return build_services(uow, clock=clock)


@pytest.fixture
def org(services, uow):
    """An organization founded through registration, with one member per role."""
    admin = services.registration_service.register(
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        first_name="Ada",
        last_name="Admin",
        organization_name="Acme",
    )
    org_id = admin.organization_id

    def member(role, first_name):
        return add_user(uow, organization_id=org_id, role=role, shift_id=admin.shift_id, first_name=first_name)

    ids = SimpleNamespace(
        id=org_id,
        shift_id=admin.shift_id,
        admin=admin.user_id,
        hr=member(Role.HR_ADMIN, "Hana"),
        pm=member(Role.PROJECT_ADMIN, "Paul"),
        lead=member(Role.TEAM_LEAD, "Lena"),
        employee=member(Role.EMPLOYEE, "Emil"),
        colleague=member(Role.EMPLOYEE, "Cora"),
        contractor=member(Role.CONTRACTOR, "Carl"),
        leave_types={lt.name: lt.leave_type_id for lt in uow.repositories().leave.list_leave_types(org_id)},
    )
    return ids


@pytest.fixture
def as_user(uow):
    def _session(user_id):
        return session_for(uow, user_id)

    return _session


@pytest.fixture
def app(services, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.workhub.workhub.main import create_app

    return create_app(services)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client, uow):
    """Sign a member in through the API; fixture members get ADMIN_PASSWORD on first use."""

    def _login(user_id):
        user = uow.store.users[user_id]
        if user.password_hash == "x":
            uow.store.users[user_id] = replace(user, password_hash=generate_password_hash(ADMIN_PASSWORD))
        return client.post("/api/auth/login", json={"email": user.email, "password": ADMIN_PASSWORD})

    return _login
