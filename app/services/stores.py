# services/stores.py
"""SQLAlchemy-backed record stores used by the relationship registry.

Writes only flush; the caller owns the transaction and decides when to
``commit()`` or ``rollback()``.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Person, Relationship, RelationshipType


class PersonStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, person_id: str) -> Optional[Person]:
        return await self.db.get(Person, person_id)

    async def exists(self, person_id: str) -> bool:
        return bool(await self.db.scalar(select(Person.id).where(Person.id == person_id).limit(1)))

    async def find_existing(self, person_ids: Iterable[str]) -> Set[str]:
        ids = {pid for pid in person_ids if pid}
        if not ids:
            return set()
        rows = (await self.db.execute(select(Person.id).where(Person.id.in_(ids)))).scalars().all()
        return set(rows)

    async def create(self, person: Person) -> Person:
        self.db.add(person)
        await self.db.flush()
        return person

    async def find_many(self, tree_id: str, query: Optional[str] = None) -> List[Person]:
        stmt = select(Person).where(Person.tree_id == tree_id)
        q = (query or "").strip().lower()
        if q:
            like = f"%{q}%"
            stmt = stmt.where(or_(
                func.lower(Person.name).like(like),
                func.lower(Person.email).like(like),
                func.lower(Person.occupation).like(like),
            ))
        rows = (await self.db.execute(stmt.order_by(Person.name.asc()))).scalars().all()
        return list(rows)

    async def delete(self, person: Person) -> None:
        # Relationship rows go with the person even where the backend
        # does not enforce ON DELETE CASCADE (SQLite without the pragma).
        await self.db.execute(
            delete(Relationship).where(or_(
                Relationship.from_person_id == person.id,
                Relationship.to_person_id == person.id,
            ))
        )
        await self.db.delete(person)
        await self.db.flush()


class RelationshipStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, row: Relationship) -> Relationship:
        self.db.add(row)
        await self.db.flush()
        return row

    async def find_exact_match(
        self,
        from_person_id: str,
        to_person_id: str,
        relationship_type: RelationshipType,
        tree_id: str,
    ) -> Optional[Relationship]:
        return (await self.db.execute(
            select(Relationship).where(
                Relationship.from_person_id == from_person_id,
                Relationship.to_person_id == to_person_id,
                Relationship.relationship_type == relationship_type,
                Relationship.tree_id == tree_id,
            ).limit(1)
        )).scalars().first()

    async def find_by_id(self, relationship_id: str) -> Optional[Relationship]:
        return await self.db.get(Relationship, relationship_id)

    async def delete(self, row: Relationship) -> None:
        await self.db.delete(row)
        await self.db.flush()

    async def delete_many(
        self,
        from_person_id: str,
        to_person_id: str,
        relationship_type: RelationshipType,
        tree_id: str,
    ) -> int:
        res = await self.db.execute(
            delete(Relationship).where(
                Relationship.from_person_id == from_person_id,
                Relationship.to_person_id == to_person_id,
                Relationship.relationship_type == relationship_type,
                Relationship.tree_id == tree_id,
            )
        )
        return int(res.rowcount or 0)

    async def find_all_touching(self, person_id: str, with_people: bool = False) -> List[Relationship]:
        stmt = select(Relationship).where(or_(
            Relationship.from_person_id == person_id,
            Relationship.to_person_id == person_id,
        ))
        if with_people:
            stmt = stmt.options(selectinload(Relationship.from_person), selectinload(Relationship.to_person))
        return list((await self.db.execute(stmt.order_by(Relationship.created_at))).scalars().all())

    async def find_by_tree(self, tree_id: str, with_people: bool = False) -> List[Relationship]:
        stmt = select(Relationship).where(Relationship.tree_id == tree_id)
        if with_people:
            stmt = stmt.options(selectinload(Relationship.from_person), selectinload(Relationship.to_person))
        return list((await self.db.execute(stmt.order_by(Relationship.created_at))).scalars().all())

    async def commit(self) -> None:
        await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()


__all__ = ["PersonStore", "RelationshipStore"]
