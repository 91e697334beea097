from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import RelationshipType
from app.schemas import (
    RelationshipCheck,
    RelationshipCreate,
    RelationshipRead,
    RelationshipTypeInfo,
    RelationshipWithPeople,
)
from app.services.relationship_types import inverse_of, is_self_inverse
from app.services.relationships import RelationshipRegistry
from app.services.stores import PersonStore, RelationshipStore
from app.settings.config import settings

router = APIRouter(prefix="/api/relationships", tags=["relationships"])


async def get_registry(db: AsyncSession = Depends(get_db)) -> RelationshipRegistry:
    return RelationshipRegistry(
        PersonStore(db),
        RelationshipStore(db),
        enforce_consistency=settings.ENFORCE_RELATIONSHIP_CONSISTENCY,
    )


@router.post("", response_model=RelationshipRead, status_code=status.HTTP_201_CREATED)
async def api_relationship_create(payload: RelationshipCreate, registry: RelationshipRegistry = Depends(get_registry)):
    return await registry.create(
        payload.from_person_id,
        payload.to_person_id,
        payload.relationship_type,
        payload.tree_id,
        custom_relationship_name=payload.custom_relationship_name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        notes=payload.notes,
    )


@router.get("", response_model=List[RelationshipWithPeople])
async def api_relationships_in_tree(tree_id: str = Query(...), registry: RelationshipRegistry = Depends(get_registry)):
    return await registry.find_all(tree_id)


@router.get("/types", response_model=List[RelationshipTypeInfo])
async def api_relationship_types():
    return [
        {"type": t, "inverse": inverse_of(t), "self_inverse": is_self_inverse(t)}
        for t in RelationshipType
    ]


@router.post("/validate")
async def api_relationship_validate(payload: RelationshipCheck, registry: RelationshipRegistry = Depends(get_registry)):
    ok = await registry.validate_relationship_consistency(
        payload.from_person_id, payload.to_person_id, payload.relationship_type
    )
    return {"consistent": ok}


@router.get("/person/{person_id}", response_model=List[RelationshipWithPeople])
async def api_person_relationships(person_id: str, registry: RelationshipRegistry = Depends(get_registry)):
    return await registry.find_person_relationships(person_id)


@router.delete("/{relationship_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_relationship_delete(relationship_id: str, registry: RelationshipRegistry = Depends(get_registry)):
    await registry.remove(relationship_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
