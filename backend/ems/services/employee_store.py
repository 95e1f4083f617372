"""Cosmos DB employee record store.

The store is the single source of truth. Writes go straight to Cosmos and
never touch the local mirror; the mirror picks them up on its next refresh.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from azure.core.exceptions import AzureError
from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError
from pydantic import ValidationError

from ems.core.config import Settings
from ems.models.employee import Employee, EmployeeDraft

logger = logging.getLogger(__name__)

# Python attribute names → Cosmos document keys
_FIELD_MAP: list[tuple[str, str]] = [
    ("full_name", "fullName"),
    ("email", "email"),
    ("role", "role"),
    ("department", "department"),
    ("join_date", "joinDate"),
    ("salary", "salary"),
    ("status", "status"),
]

_ORDERED_QUERY = "SELECT * FROM c ORDER BY c.fullName ASC"


class EmployeeStoreError(Exception):
    pass


class EmployeeNotFoundError(EmployeeStoreError):
    pass


class EmployeeStore:
    def __init__(self) -> None:
        self.client: CosmosClient | None = None
        self.container: Any = None
        self.initialized: bool = False

    async def initialize(self, settings: Settings) -> None:
        if self.initialized:
            return

        if not settings.COSMOS_DB_ENDPOINT or not settings.COSMOS_DB_KEY:
            logger.warning("Cosmos DB credentials missing, EmployeeStore not initialized")
            return

        self.client = CosmosClient(settings.COSMOS_DB_ENDPOINT, settings.COSMOS_DB_KEY)
        db = self.client.get_database_client(settings.COSMOS_DB_DATABASE)
        self.container = db.get_container_client(settings.COSMOS_DB_EMPLOYEES_CONTAINER)
        self.initialized = True
        logger.info("EmployeeStore initialized (container=%s)", settings.COSMOS_DB_EMPLOYEES_CONTAINER)

    async def close(self) -> None:
        if self.client:
            await self.client.close()
        self.client = None
        self.container = None
        self.initialized = False

    def _require_container(self) -> Any:
        if not self.container:
            raise EmployeeStoreError("EmployeeStore not initialized")
        return self.container

    async def fetch_all(self) -> list[Employee]:
        """Return every employee ordered by full name ascending."""
        container = self._require_container()

        results: list[Employee] = []
        try:
            async for item in container.query_items(
                query=_ORDERED_QUERY,
                enable_cross_partition_query=True,
            ):
                employee = self._transform_employee(item)
                if employee is not None:
                    results.append(employee)
        except AzureError as e:
            raise EmployeeStoreError(f"Failed to query employees: {e.message}") from e
        return results

    async def create(self, draft: EmployeeDraft) -> Employee:
        container = self._require_container()
        employee = Employee(id=uuid.uuid4().hex, **draft.model_dump())
        try:
            await container.create_item(body=self._to_document(employee))
        except AzureError as e:
            raise EmployeeStoreError(f"Failed to create employee: {e.message}") from e
        logger.info("Created employee %s", employee.id)
        return employee

    async def replace(self, employee_id: str, draft: EmployeeDraft) -> Employee:
        container = self._require_container()
        employee = Employee(id=employee_id, **draft.model_dump())
        try:
            await container.replace_item(item=employee_id, body=self._to_document(employee))
        except CosmosResourceNotFoundError as e:
            raise EmployeeNotFoundError(f"Employee '{employee_id}' not found") from e
        except AzureError as e:
            raise EmployeeStoreError(f"Failed to update employee: {e.message}") from e
        logger.info("Replaced employee %s", employee_id)
        return employee

    async def delete(self, employee_id: str) -> None:
        container = self._require_container()
        try:
            await container.delete_item(item=employee_id, partition_key=employee_id)
        except CosmosResourceNotFoundError as e:
            raise EmployeeNotFoundError(f"Employee '{employee_id}' not found") from e
        except AzureError as e:
            raise EmployeeStoreError(f"Failed to delete employee: {e.message}") from e
        logger.info("Deleted employee %s", employee_id)

    async def check_connection(self) -> bool:
        if not self.container:
            return False
        try:
            async for _ in self.container.query_items(
                query="SELECT VALUE COUNT(1) FROM c",
                enable_cross_partition_query=True,
            ):
                return True
            return True
        except Exception:
            logger.exception("Cosmos DB connection check failed")
            return False

    def _to_document(self, employee: Employee) -> dict[str, Any]:
        values = employee.model_dump(mode="json")
        doc: dict[str, Any] = {"id": employee.id}
        for python_key, cosmos_key in _FIELD_MAP:
            doc[cosmos_key] = values[python_key]
        return doc

    def _transform_employee(self, raw: dict[str, Any]) -> Employee | None:
        data: dict[str, Any] = {"id": raw.get("id")}
        for python_key, cosmos_key in _FIELD_MAP:
            if cosmos_key in raw:
                data[python_key] = raw[cosmos_key]

        try:
            return Employee(**data)
        except ValidationError as e:
            logger.warning("Skipping malformed employee document %s: %s", raw.get("id"), e.error_count())
            return None


employee_store = EmployeeStore()
