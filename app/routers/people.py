from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas import FamilyMemberCreate, FamilyMemberRead, PersonCreate, PersonRead, PersonUpdate
from app.services import people as people_svc
from app.settings.config import settings

router = APIRouter(prefix="/api/people", tags=["people"])


@router.post("", response_model=PersonRead, status_code=status.HTTP_201_CREATED)
async def api_person_create(payload: PersonCreate, db: AsyncSession = Depends(get_db)):
    return await people_svc.create_person(db, payload)


@router.get("", response_model=List[PersonRead])
async def api_people_list(tree_id: str = Query(...), db: AsyncSession = Depends(get_db)):
    return await people_svc.list_people(db, tree_id)


@router.get("/search", response_model=List[PersonRead])
async def api_people_search(tree_id: str = Query(...), q: str = Query(""), db: AsyncSession = Depends(get_db)):
    return await people_svc.search_people(db, tree_id, q)


@router.get("/{person_id}", response_model=PersonRead)
async def api_person_get(person_id: str, db: AsyncSession = Depends(get_db)):
    return await people_svc.get_person(db, person_id)


@router.patch("/{person_id}", response_model=PersonRead)
async def api_person_update(person_id: str, payload: PersonUpdate, db: AsyncSession = Depends(get_db)):
    return await people_svc.update_person(db, person_id, payload)


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_person_delete(person_id: str, db: AsyncSession = Depends(get_db)):
    await people_svc.delete_person(db, person_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{person_id}/family-member", response_model=FamilyMemberRead, status_code=status.HTTP_201_CREATED)
async def api_person_add_family_member(person_id: str, payload: FamilyMemberCreate, db: AsyncSession = Depends(get_db)):
    person, rel = await people_svc.add_family_member_from_node(
        db,
        person_id,
        payload.relationship_type,
        payload.person,
        enforce_consistency=settings.ENFORCE_RELATIONSHIP_CONSISTENCY,
    )
    return {"person": person, "relationship": rel}
