from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.errors import Conflict, InvalidArgument, NotFound, PersistenceFailure
from app.models import Relationship, RelationshipType
from app.services.relationship_types import conflicts_with, inverse_of
from app.services.stores import PersonStore, RelationshipStore

logger = logging.getLogger(__name__)


class RelationshipRegistry:
    """Creates and removes relationships together with their inverse rows.

    A pair of people moves absent -> forward -> forward+inverse on
    ``create`` and back to absent on ``remove``. Both writes of a pair go
    through one transaction: a failure on the inverse row rolls the
    forward row back as well.

    ``validate_relationship_consistency`` is advisory. ``create`` only
    consults it when ``enforce_consistency`` is on.
    """

    def __init__(self, people: PersonStore, relationships: RelationshipStore,
                 enforce_consistency: bool = False):
        self.people = people
        self.relationships = relationships
        self.enforce_consistency = enforce_consistency

    async def create(
        self,
        from_person_id: str,
        to_person_id: str,
        relationship_type: RelationshipType,
        tree_id: str,
        custom_relationship_name: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> Relationship:
        relationship_type = RelationshipType(relationship_type)

        found = await self.people.find_existing([from_person_id, to_person_id])
        if from_person_id not in found or to_person_id not in found:
            logger.warning("Relationship rejected: unknown person in %s -> %s", from_person_id, to_person_id)
            raise NotFound("One or both people do not exist")

        if from_person_id == to_person_id:
            logger.warning("Relationship rejected: self-relationship for %s", from_person_id)
            raise InvalidArgument("A person cannot have a relationship with themselves")

        existing = await self.relationships.find_exact_match(from_person_id, to_person_id, relationship_type, tree_id)
        if existing:
            raise Conflict("This relationship already exists")

        if self.enforce_consistency and not await self.validate_relationship_consistency(
            from_person_id, to_person_id, relationship_type
        ):
            raise Conflict("Relationship conflicts with an existing relationship")

        fwd = Relationship(
            from_person_id=from_person_id,
            to_person_id=to_person_id,
            relationship_type=relationship_type,
            custom_relationship_name=custom_relationship_name,
            start_date=start_date,
            end_date=end_date,
            notes=notes,
            tree_id=tree_id,
        )
        try:
            fwd = await self.relationships.create(fwd)
        except IntegrityError:
            await self.relationships.rollback()
            # a concurrent identical create committed first
            if await self.relationships.find_exact_match(from_person_id, to_person_id, relationship_type, tree_id):
                raise Conflict("This relationship already exists")
            logger.exception("Constraint violation writing relationship %s -> %s in tree %s",
                             from_person_id, to_person_id, tree_id)
            raise PersistenceFailure("Failed to create relationship")
        except SQLAlchemyError:
            await self.relationships.rollback()
            logger.exception("Failed to write relationship %s -> %s", from_person_id, to_person_id)
            raise PersistenceFailure("Failed to create relationship")

        inv_type = inverse_of(relationship_type)
        try:
            if inv_type is not None:
                already = await self.relationships.find_exact_match(to_person_id, from_person_id, inv_type, tree_id)
                if not already:
                    # the inverse carries structural fields only
                    await self.relationships.create(Relationship(
                        from_person_id=to_person_id,
                        to_person_id=from_person_id,
                        relationship_type=inv_type,
                        tree_id=tree_id,
                    ))
            await self.relationships.commit()
        except SQLAlchemyError:
            await self.relationships.rollback()
            logger.exception("Failed to write inverse %s for relationship %s -> %s",
                             inv_type, from_person_id, to_person_id)
            raise PersistenceFailure("Failed to create relationship")

        logger.info("Relationship %s created: %s %s %s (inverse %s)",
                    fwd.id, from_person_id, relationship_type.value, to_person_id,
                    inv_type.value if inv_type else None)
        return fwd

    async def remove(self, relationship_id: str) -> None:
        rel = await self.relationships.find_by_id(relationship_id)
        if not rel:
            raise NotFound(f"Relationship with ID {relationship_id} not found")

        from_id, to_id, tree_id = rel.from_person_id, rel.to_person_id, rel.tree_id
        inv_type = inverse_of(rel.relationship_type)
        try:
            await self.relationships.delete(rel)
            removed = 0
            if inv_type is not None:
                removed = await self.relationships.delete_many(to_id, from_id, inv_type, tree_id)
            await self.relationships.commit()
        except SQLAlchemyError:
            await self.relationships.rollback()
            logger.exception("Failed to delete relationship %s", relationship_id)
            raise PersistenceFailure("Failed to delete relationship")
        logger.info("Relationship %s deleted with %d inverse row(s)", relationship_id, removed)

    async def validate_relationship_consistency(
        self,
        from_person_id: str,
        to_person_id: str,
        relationship_type: RelationshipType,
    ) -> bool:
        for rel in await self.relationships.find_all_touching(from_person_id):
            other = rel.to_person_id if rel.from_person_id == from_person_id else rel.from_person_id
            if other == to_person_id and conflicts_with(rel.relationship_type, relationship_type):
                return False
        return True

    async def find_all(self, tree_id: str) -> List[Relationship]:
        return await self.relationships.find_by_tree(tree_id, with_people=True)

    async def find_person_relationships(self, person_id: str) -> List[Relationship]:
        return await self.relationships.find_all_touching(person_id, with_people=True)


__all__ = ["RelationshipRegistry"]
