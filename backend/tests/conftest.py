from __future__ import annotations

import asyncio
import base64
import time
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from azure.cosmos.exceptions import CosmosResourceNotFoundError
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt
from starlette.testclient import TestClient

from ems.core.dependencies import get_current_user
from ems.main import app
from ems.models.auth import UserInfo
from ems.models.employee import Employee
from ems.services.employee_mirror import EmployeeMirror

TEST_TENANT_ID = "test-tenant-00000000-0000-0000-0000-000000000000"
TEST_CLIENT_ID = "test-client-00000000-0000-0000-0000-000000000000"
TEST_KID = "test-kid-1"


def _int_to_base64url(value: int) -> str:
    byte_length = (value.bit_length() + 7) // 8
    return base64.urlsafe_b64encode(value.to_bytes(byte_length, byteorder="big")).rstrip(b"=").decode("ascii")


def make_employee(
    employee_id: str,
    full_name: str,
    *,
    email: str | None = None,
    department: str = "Engineering",
    role: str = "Engineer",
    salary: float = 80000,
    status: str = "Active",
    join_date: date = date(2022, 3, 1),
) -> Employee:
    return Employee(
        id=employee_id,
        full_name=full_name,
        email=email or f"{full_name.split()[0].lower()}@nexus.io",
        role=role,
        department=department,
        join_date=join_date,
        salary=salary,
        status=status,
    )


# Nine employees, three of them in Engineering, already ordered by name
SAMPLE_EMPLOYEES: list[Employee] = [
    make_employee("e1", "Alice Moreau", department="Engineering", salary=120000),
    make_employee("e2", "Bruno Diaz", department="Sales", salary=65000),
    make_employee("e3", "Chen Wei", department="Finance", salary=90000, status="Inactive"),
    make_employee("e4", "Dana Kim", department="Engineering", salary=105000),
    make_employee("e5", "Elif Yilmaz", department="HR", salary=70000),
    make_employee("e6", "Farah Haddad", department="Marketing", salary=72000),
    make_employee("e7", "Gus Olsen", department="Legal", salary=98000),
    make_employee("e8", "Hana Sato", department="Engineering", salary=110000),
    make_employee("e9", "Ivan Petrov", department="Sales", email="ivan.p@partner.org", salary=60000),
]


class FakeEmployeeContainer:
    """In-memory stand-in for a Cosmos container partitioned on /id."""

    def __init__(self, docs: list[dict[str, Any]] | None = None) -> None:
        self.docs: dict[str, dict[str, Any]] = {d["id"]: d for d in docs or []}
        self.query_error: Exception | None = None

    async def query_items(self, query: str, **kwargs):
        if self.query_error is not None:
            raise self.query_error
        if "COUNT(1)" in query:
            yield len(self.docs)
            return
        for doc in sorted(self.docs.values(), key=lambda d: d.get("fullName", "")):
            yield dict(doc)

    async def create_item(self, body: dict[str, Any]) -> dict[str, Any]:
        self.docs[body["id"]] = dict(body)
        return body

    async def replace_item(self, item: str, body: dict[str, Any]) -> dict[str, Any]:
        if item not in self.docs:
            raise CosmosResourceNotFoundError(status_code=404, message="Entity with the specified id does not exist")
        self.docs[item] = dict(body)
        return body

    async def delete_item(self, item: str, partition_key: str) -> None:
        if item not in self.docs:
            raise CosmosResourceNotFoundError(status_code=404, message="Entity with the specified id does not exist")
        del self.docs[item]


def build_loaded_mirror(employees: list[Employee]) -> EmployeeMirror:
    store = MagicMock()
    store.initialized = True
    store.fetch_all = AsyncMock(return_value=list(employees))
    mirror = EmployeeMirror(store)
    asyncio.run(mirror.refresh())
    return mirror


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _auth_settings():
    from ems.core.config import settings

    original_tenant = settings.AZURE_AD_TENANT_ID
    original_client = settings.AZURE_AD_CLIENT_ID
    settings.AZURE_AD_TENANT_ID = TEST_TENANT_ID
    settings.AZURE_AD_CLIENT_ID = TEST_CLIENT_ID
    yield
    settings.AZURE_AD_TENANT_ID = original_tenant
    settings.AZURE_AD_CLIENT_ID = original_client


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def rsa_test_keys():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("utf-8")

    pub = private_key.public_key().public_numbers()
    jwk_dict = {
        "kty": "RSA",
        "kid": TEST_KID,
        "use": "sig",
        "alg": "RS256",
        "n": _int_to_base64url(pub.n),
        "e": _int_to_base64url(pub.e),
    }
    return private_pem, {"keys": [jwk_dict]}


def _make_token(
    private_pem: str,
    *,
    oid: str = "test-oid-123",
    name: str = "Test User",
    email: str = "test@nexus.io",
    roles: list[str] | None = None,
    expired: bool = False,
) -> str:
    now = int(time.time())
    claims = {
        "oid": oid,
        "name": name,
        "preferred_username": email,
        "roles": roles or [],
        "iss": f"https://login.microsoftonline.com/{TEST_TENANT_ID}/v2.0",
        "aud": TEST_CLIENT_ID,
        "exp": now - 3600 if expired else now + 3600,
        "iat": now - 60,
        "nbf": now - 60,
    }
    return jwt.encode(claims, private_pem, algorithm="RS256", headers={"kid": TEST_KID})


@pytest.fixture
def mock_user_admin():
    return UserInfo(id="admin-1", name="Admin User", email="admin@nexus.io", roles=["admin"])


@pytest.fixture
def authenticated_client(mock_user_admin):
    app.dependency_overrides[get_current_user] = lambda: mock_user_admin
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def loaded_mirror():
    return build_loaded_mirror(SAMPLE_EMPLOYEES)
