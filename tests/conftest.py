import asyncio
import os
import uuid

import pytest

# Must be set before app.* is imported: the module-level engine reads it.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./family_graph_unused.db")
os.environ.setdefault("RUN_DB_CREATE_ALL", "0")

from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.database import Base, get_db
from app.main import app
from app.services.relationships import RelationshipRegistry


# ---------------------------
# SQLite-backed app
# ---------------------------
def _sqlite_engine(path, foreign_keys=False):
    eng = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    if foreign_keys:
        # SQLite only checks foreign keys when asked to, per connection
        @event.listens_for(eng.sync_engine, "connect")
        def _fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    async def _create():
        async with eng.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    return eng


@pytest.fixture
def engine(tmp_path):
    eng = _sqlite_engine(tmp_path / "family_graph.db")
    yield eng
    asyncio.run(eng.dispose())


@pytest.fixture
def session_maker(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
def fk_session_maker(tmp_path):
    eng = _sqlite_engine(tmp_path / "family_graph_fk.db", foreign_keys=True)
    yield sessionmaker(eng, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    asyncio.run(eng.dispose())


@pytest.fixture
def run_db(session_maker):
    """Run ``fn(session)`` to completion on a fresh session and return its result."""
    def _run(fn):
        async def _inner():
            async with session_maker() as session:
                return await fn(session)
        return asyncio.run(_inner())
    return _run


@pytest.fixture
def client(session_maker):
    async def _get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return {"Authorization": "Bearer user-owner"}


@pytest.fixture
def other_headers():
    return {"Authorization": "Bearer user-other"}


@pytest.fixture
def make_tree(client, owner_headers):
    def _make(name="Test Tree", headers=None, **extra):
        resp = client.post("/api/family-trees", json={"name": name, **extra}, headers=headers or owner_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


@pytest.fixture
def make_person(client):
    def _make(tree_id, name, **extra):
        resp = client.post("/api/people", json={"name": name, "tree_id": tree_id, **extra})
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


# ---------------------------
# In-memory stores
# ---------------------------
class FakeDB:
    """Shared state behind the fake stores.

    Writes since the last commit can be rolled back. ``fail_create_at``
    and ``fail_delete_many`` inject store failures. ``reject_create_at``
    raises a constraint violation instead, first committing
    ``committed_elsewhere`` (if set) as a concurrent writer would.
    """

    def __init__(self, people=()):
        self.people = set(people)
        self.rows = []
        self.writes = 0
        self.commits = 0
        self.rollbacks = 0
        self.creates = 0
        self.fail_create_at = None
        self.fail_delete_many = False
        self.reject_create_at = None
        self.committed_elsewhere = None
        self._snapshot = None

    def begin_write(self):
        if self._snapshot is None:
            self._snapshot = list(self.rows)
        self.writes += 1

    def commit(self):
        self._snapshot = None
        self.commits += 1

    def rollback(self):
        if self._snapshot is not None:
            self.rows = self._snapshot
        self._snapshot = None
        self.rollbacks += 1

    def tuples(self):
        return sorted(
            (r.from_person_id, r.to_person_id, r.relationship_type.value, r.tree_id) for r in self.rows
        )


def _boom():
    return OperationalError("INSERT INTO relationship", {}, Exception("store unavailable"))


def _constraint_violation():
    return IntegrityError("INSERT INTO relationship", {}, Exception("UNIQUE constraint failed"))


class FakePersonStore:
    def __init__(self, fdb: FakeDB):
        self.fdb = fdb

    async def find_existing(self, person_ids):
        return {pid for pid in person_ids if pid in self.fdb.people}

    async def exists(self, person_id):
        return person_id in self.fdb.people


class FakeRelationshipStore:
    def __init__(self, fdb: FakeDB):
        self.fdb = fdb

    @staticmethod
    def _match(r, from_person_id, to_person_id, relationship_type, tree_id):
        return (r.from_person_id, r.to_person_id, r.relationship_type, r.tree_id) == (
            from_person_id, to_person_id, relationship_type, tree_id
        )

    async def create(self, row):
        self.fdb.creates += 1
        if self.fdb.fail_create_at == self.fdb.creates:
            raise _boom()
        if self.fdb.reject_create_at == self.fdb.creates:
            if self.fdb.committed_elsewhere is not None:
                self.fdb.rows.append(self.fdb.committed_elsewhere)
            raise _constraint_violation()
        self.fdb.begin_write()
        row.id = row.id or str(uuid.uuid4())
        self.fdb.rows.append(row)
        return row

    async def find_exact_match(self, from_person_id, to_person_id, relationship_type, tree_id):
        for r in self.fdb.rows:
            if self._match(r, from_person_id, to_person_id, relationship_type, tree_id):
                return r
        return None

    async def find_by_id(self, relationship_id):
        return next((r for r in self.fdb.rows if r.id == relationship_id), None)

    async def delete(self, row):
        self.fdb.begin_write()
        self.fdb.rows = [r for r in self.fdb.rows if r is not row]

    async def delete_many(self, from_person_id, to_person_id, relationship_type, tree_id):
        if self.fdb.fail_delete_many:
            raise _boom()
        self.fdb.begin_write()
        keep = [r for r in self.fdb.rows if not self._match(r, from_person_id, to_person_id, relationship_type, tree_id)]
        removed = len(self.fdb.rows) - len(keep)
        self.fdb.rows = keep
        return removed

    async def find_all_touching(self, person_id, with_people=False):
        return [r for r in self.fdb.rows if person_id in (r.from_person_id, r.to_person_id)]

    async def find_by_tree(self, tree_id, with_people=False):
        return [r for r in self.fdb.rows if r.tree_id == tree_id]

    async def commit(self):
        self.fdb.commit()

    async def rollback(self):
        self.fdb.rollback()


@pytest.fixture
def fake_db():
    return FakeDB(people={"alice", "bob", "carol"})


@pytest.fixture
def registry(fake_db):
    return RelationshipRegistry(FakePersonStore(fake_db), FakeRelationshipStore(fake_db))


@pytest.fixture
def strict_registry(fake_db):
    return RelationshipRegistry(FakePersonStore(fake_db), FakeRelationshipStore(fake_db), enforce_consistency=True)
