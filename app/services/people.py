import logging
from typing import Optional, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidArgument, NotFound, PersistenceFailure
from app.models import FamilyTree, Person, Relationship, RelationshipType
from app.schemas import PersonBase, PersonCreate, PersonUpdate
from app.services.relationships import RelationshipRegistry
from app.services.stores import PersonStore, RelationshipStore

logger = logging.getLogger(__name__)

# NOT NULL columns; an explicit null in an update leaves them as they are
_REQUIRED_PERSON_FIELDS = ("name", "position_x", "position_y", "is_alive")


async def _new_person(db: AsyncSession, tree_id: str, payload: PersonBase) -> Person:
    if not await db.get(FamilyTree, tree_id):
        raise NotFound(f"Family tree with ID {tree_id} not found")
    data = payload.model_dump(exclude={"tree_id"})
    p = Person(tree_id=tree_id, **data)
    p.name = p.name.strip()
    try:
        return await PersonStore(db).create(p)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to create person in tree %s", tree_id)
        raise PersistenceFailure("Failed to create person")


async def create_person(db: AsyncSession, payload: PersonCreate) -> Person:
    p = await _new_person(db, payload.tree_id, payload)
    await db.commit()
    logger.info("Person %s created in tree %s", p.id, p.tree_id)
    return p


async def list_people(db: AsyncSession, tree_id: str) -> List[Person]:
    return await PersonStore(db).find_many(tree_id)


async def search_people(db: AsyncSession, tree_id: str, query: str) -> List[Person]:
    """Case-insensitive substring match on name, email and occupation."""
    return await PersonStore(db).find_many(tree_id, query=query)


async def get_person(db: AsyncSession, person_id: str) -> Person:
    p = await PersonStore(db).find_by_id(person_id)
    if not p:
        raise NotFound(f"Person with ID {person_id} not found")
    return p


async def update_person(db: AsyncSession, person_id: str, payload: PersonUpdate) -> Person:
    p = await get_person(db, person_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in _REQUIRED_PERSON_FIELDS:
            continue
        if field == "name":
            value = value.strip()
            if not value:
                raise InvalidArgument("Person name cannot be blank")
        setattr(p, field, value)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to update person %s", person_id)
        raise PersistenceFailure("Failed to update person")
    return p


async def delete_person(db: AsyncSession, person_id: str) -> None:
    p = await get_person(db, person_id)
    try:
        await PersonStore(db).delete(p)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to delete person %s", person_id)
        raise PersistenceFailure("Failed to delete person")
    logger.info("Person %s deleted", person_id)


async def add_family_member_from_node(
    db: AsyncSession,
    person_id: str,
    relationship_type: RelationshipType,
    payload: PersonBase,
    enforce_consistency: bool = False,
) -> Tuple[Person, Relationship]:
    """
    Create a new person in the anchor's tree and link anchor -> new person.
    The registry commits person, relationship and inverse together.
    """
    anchor = await get_person(db, person_id)
    new_person = await _new_person(db, anchor.tree_id, payload)
    registry = RelationshipRegistry(PersonStore(db), RelationshipStore(db), enforce_consistency=enforce_consistency)
    rel = await registry.create(anchor.id, new_person.id, relationship_type, anchor.tree_id)
    return new_person, rel
