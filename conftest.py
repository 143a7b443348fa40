"""
Shared fixtures: an in-memory RemoteGateway that behaves like the hosted
store closely enough for the client layer (unique constraints, defaults,
ordering, injected failures).
"""

import copy
import itertools
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytest
import pytest_asyncio

from edtech.core.config import Settings
from edtech.core.exceptions import UNIQUE_VIOLATION, RemoteUnavailableError
from edtech.core.gateway import RemoteGateway
from edtech.models.user import Principal
from edtech.services.course_store import CourseStore
from edtech.services.identity import IdentityContext

UNIQUE_PAIRS = {
    "enrollments": ("course_id", "user_id"),
    "reviews": ("course_id", "user_id"),
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryGateway(RemoteGateway):
    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables = copy.deepcopy(tables or {})
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self._ids = itertools.count(1000)
        self.closed = False

    def _check(self, method: str, table: str) -> None:
        self.calls.append((method, table))
        if self.fail_with is not None:
            raise self.fail_with

    def writes(self) -> List[tuple]:
        return [c for c in self.calls if c[0] != "select"]

    async def select(
        self,
        table: str,
        columns: str = "*",
        eq: Optional[Dict[str, Any]] = None,
        in_: Optional[Dict[str, Iterable[Any]]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ):
        self._check("select", table)
        rows = self.tables.get(table, [])
        for column, value in (eq or {}).items():
            rows = [r for r in rows if str(r.get(column)) == str(value)]
        for column, values in (in_ or {}).items():
            wanted = {str(v) for v in values}
            rows = [r for r in rows if str(r.get(column)) in wanted]
        if order_by:
            rows = sorted(rows, key=lambda r: str(r.get(order_by)), reverse=descending)
        return copy.deepcopy(rows)

    async def insert(self, table: str, payload):
        self._check("insert", table)
        rows = self.tables.setdefault(table, [])
        pair = UNIQUE_PAIRS.get(table)
        if pair and any(all(r.get(k) == payload.get(k) for k in pair) for r in rows):
            raise RemoteUnavailableError(
                "duplicate key value violates unique constraint",
                code=UNIQUE_VIOLATION,
                status=409,
            )

        row = {"id": str(next(self._ids)), "created_at": _now()}
        if table == "courses":
            row.update(rating=0, students_count=0)
        row.update(copy.deepcopy(payload))
        rows.append(row)
        return copy.deepcopy(row)

    async def update(self, table: str, row_id: str, patch):
        self._check("update", table)
        for row in self.tables.get(table, []):
            if str(row["id"]) == str(row_id):
                row.update(copy.deepcopy(patch))
                return copy.deepcopy(row)
        return {}

    async def delete(self, table: str, row_id: str) -> None:
        self._check("delete", table)
        self.tables[table] = [
            r for r in self.tables.get(table, []) if str(r["id"]) != str(row_id)
        ]

    async def close(self) -> None:
        self.closed = True


STUDENT = Principal(id="u-1", email="ana.souza@example.com")
OTHER_STUDENT = Principal(id="u-2", email="bruno@example.com")
ADMIN = Principal(id="u-admin", email="admin@example.com")


def seed_tables() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "courses": [
            {
                "id": "c-1",
                "title": "Python para Iniciantes",
                "description": "Aprenda Python do zero",
                "category": "programming",
                "instructor": "Carlos Lima",
                "thumbnail": "https://cdn.example.com/python.png",
                "duration": "12h",
                "lessons": "24",
                "status": "published",
                "price": "99.90",
                "rating": "4.5",
                "students_count": 3,
                "created_at": "2024-01-10T09:00:00+00:00",
            },
            {
                "id": "c-2",
                "title": "UI Design Essentials",
                "description": "Layouts, tipografia e cor",
                "category": "design",
                "instructor": "Marina Reis",
                "thumbnail": "",
                "duration": "8h",
                "lessons": 16,
                "status": "published",
                "price": 100,
                "rating": 4.0,
                "students_count": 2,
                "created_at": "2024-02-05T12:30:00+00:00",
            },
            {
                "id": "c-3",
                "title": "Advanced Python Patterns",
                "description": "",
                "category": "programming",
                "instructor": "Carlos Lima",
                "thumbnail": None,
                "duration": "6h",
                "lessons": 10,
                "status": "draft",
                "price": "150.00",
                "rating": 0,
                "students_count": 0,
                "created_at": "2024-03-01T08:00:00+00:00",
            },
        ],
        "enrollments": [
            {
                "id": "e-1",
                "course_id": "c-1",
                "user_id": "u-1",
                "status": "active",
                "progress": 40,
                "enrolled_at": "2024-04-01T10:00:00+00:00",
                "completed_at": None,
            },
            {
                "id": "e-2",
                "course_id": "c-2",
                "user_id": "u-2",
                "status": "completed",
                "progress": 100,
                "enrolled_at": "2024-04-02T10:00:00+00:00",
                "completed_at": "2024-05-02T18:45:00+00:00",
            },
        ],
        "reviews": [
            {
                "id": "r-1",
                "course_id": "c-2",
                "user_id": "u-2",
                "rating": 4,
                "comment": "Muito bom",
                "created_at": "2024-05-03T09:00:00+00:00",
                "helpful": 2,
            },
        ],
        "profiles": [
            {
                "id": "u-1",
                "name": "Ana Souza",
                "email": "ana.souza@example.com",
                "avatar": None,
                "created_at": "2024-01-01T00:00:00+00:00",
            },
            {
                "id": "u-2",
                "name": "Bruno Alves",
                "email": "bruno@example.com",
                "avatar": "https://cdn.example.com/bruno.png",
                "created_at": "2024-01-02T00:00:00+00:00",
            },
            {
                "id": "u-admin",
                "name": "Admin",
                "email": "admin@example.com",
                "avatar": None,
                "created_at": "2024-01-01T00:00:00+00:00",
            },
        ],
        "user_roles": [
            {"id": "ur-1", "user_id": "u-1", "role": "student"},
            {"id": "ur-2", "user_id": "u-2", "role": "student"},
            {"id": "ur-3", "user_id": "u-admin", "role": "admin"},
        ],
    }


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def gateway():
    return InMemoryGateway(seed_tables())


@pytest.fixture
def identity(gateway, settings):
    return IdentityContext(gateway, settings)


@pytest.fixture
def store(gateway, identity, settings):
    return CourseStore(gateway, identity, settings)


@pytest_asyncio.fixture
async def student_store(store, identity):
    """Store with the seeded student signed in and loaded."""
    await identity.sign_in(STUDENT)
    return store


@pytest_asyncio.fixture
async def admin_store(store, identity):
    await identity.sign_in(ADMIN)
    return store
