"""
Pytest fixtures for QuickPOS backend tests.

Provides a fresh app (memory backends) per test, seeded tenants, a logged-in
client and backends whose calls can be made to fail on demand.
"""

import uuid
from decimal import Decimal

import pytest

from quickpos import create_app
from quickpos.backend import EXTENSION_KEY, BackendError, Backends
from quickpos.backend.memory import MemoryAuthBackend, MemoryQueryBackend
from quickpos.config import TestConfig
from quickpos.extensions import db
from quickpos.services import catalog_service

PASSWORD = "Password123!"


class FailingQueryBackend(MemoryQueryBackend):
    """
    Memory query backend that records every call and raises BackendError
    for the (operation, table) pairs registered with fail().
    """

    def __init__(self, tables=None):
        super().__init__(tables)
        self.calls = []
        self.failures = []

    def fail(self, op, table, message="simulated backend failure", when=None):
        """when(payload) narrows the rule; payload is the filters or the rows."""
        self.failures.append((op, table, message, when))

    def _check(self, op, table, payload):
        self.calls.append((op, table, payload))
        for rule_op, rule_table, message, when in self.failures:
            if rule_op == op and rule_table == table and (when is None or when(payload)):
                raise BackendError(message)

    def select(self, table, filters=None, *, order_by=None, desc=False):
        self._check("select", table, filters)
        return super().select(table, filters, order_by=order_by, desc=desc)

    def insert(self, table, rows):
        rows = list(rows)
        self._check("insert", table, rows)
        return super().insert(table, rows)

    def update(self, table, patch, filters):
        self._check("update", table, filters)
        return super().update(table, patch, filters)

    def delete(self, table, filters):
        self._check("delete", table, filters)
        return super().delete(table, filters)

    def calls_to(self, op, table):
        return [c for c in self.calls if c[0] == op and c[1] == table]


class FailingAuthBackend(MemoryAuthBackend):
    """Memory auth backend that records deletes and can refuse them."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.deleted = []
        self.fail_delete = False
        self.fail_sign_out = False

    def delete_user(self, user_id):
        self.deleted.append(user_id)
        if self.fail_delete:
            raise BackendError("simulated delete failure")
        super().delete_user(user_id)

    def sign_out(self, access_token):
        if self.fail_sign_out:
            raise BackendError("simulated sign-out failure")
        super().sign_out(access_token)


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)
    app.extensions[EXTENSION_KEY] = Backends(
        query=FailingQueryBackend(),
        auth=FailingAuthBackend(bcrypt_rounds=app.config["BCRYPT_ROUNDS"]),
    )

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def query_backend(app):
    return app.extensions[EXTENSION_KEY].query


@pytest.fixture(scope='function')
def auth_backend(app):
    return app.extensions[EXTENSION_KEY].auth


@pytest.fixture(scope='function')
def store_a(query_backend):
    """Create Store A (first tenant)."""
    return query_backend.insert("stores", [{"name": "Loja A"}])[0]


@pytest.fixture(scope='function')
def store_b(query_backend):
    """Create Store B (second tenant)."""
    return query_backend.insert("stores", [{"name": "Loja B"}])[0]


def create_member(query_backend, auth_backend, email, store):
    user = auth_backend.create_user(email, PASSWORD)
    query_backend.insert("store_memberships", [{"user_id": user.id, "store_id": store["id"]}])
    return user


@pytest.fixture(scope='function')
def user_a(query_backend, auth_backend, store_a):
    """Cashier of Store A."""
    return create_member(query_backend, auth_backend, "caixa@loja-a.com", store_a)


@pytest.fixture(scope='function')
def user_b(query_backend, auth_backend, store_b):
    """Cashier of Store B."""
    return create_member(query_backend, auth_backend, "caixa@loja-b.com", store_b)


@pytest.fixture(scope='function')
def orphan_user(auth_backend):
    """Account with no store membership."""
    return auth_backend.create_user("sem-loja@example.com", PASSWORD)


def login(client, email, password=PASSWORD):
    return client.post("/login", data={"email": email, "password": password})


@pytest.fixture(scope='function')
def auth_client(client, user_a):
    """Client logged in as user_a (auth cookie kept by the client)."""
    response = login(client, user_a.email)
    assert response.status_code == 303
    return client


@pytest.fixture(scope='function')
def make_product(query_backend):
    """Factory: make_product(store, name=..., price=..., stock=...) -> row."""
    def _make(store, name="Café", price="4.50", stock=10):
        return catalog_service.create_product(
            query_backend,
            store["id"],
            {"name": name, "price": Decimal(price), "stock": stock},
        )
    return _make


@pytest.fixture
def random_id():
    return str(uuid.uuid4())


@pytest.fixture(scope='function')
def login_as(client):
    """login_as(email, password=PASSWORD) -> response of POST /login."""
    def _login(email, password=PASSWORD):
        return login(client, email, password)
    return _login
