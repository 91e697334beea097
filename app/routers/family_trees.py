from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas import (
    FamilyInsights,
    FamilyTreeCreate,
    FamilyTreeDetail,
    FamilyTreeRead,
    FamilyTreeStats,
    FamilyTreeSummary,
    FamilyTreeUpdate,
    PersonRead,
    RelationshipRead,
    TreeShareCreate,
    TreeShareRead,
)
from app.services import family_trees as trees_svc
from app.users import current_user_id

router = APIRouter(prefix="/api/family-trees", tags=["family-trees"])


@router.post("", response_model=FamilyTreeRead, status_code=status.HTTP_201_CREATED)
async def api_tree_create(payload: FamilyTreeCreate, user_id: str = Depends(current_user_id),
                          db: AsyncSession = Depends(get_db)):
    return await trees_svc.create_tree(db, payload, user_id)


@router.get("", response_model=List[FamilyTreeSummary])
async def api_tree_list(user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    rows = await trees_svc.list_trees(db, user_id)
    out = []
    for tree, people_count, rel_count in rows:
        item = FamilyTreeSummary.model_validate(tree)
        item.people_count = people_count
        item.relationships_count = rel_count
        out.append(item)
    return out


@router.get("/{tree_id}", response_model=FamilyTreeDetail)
async def api_tree_get(tree_id: str, user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    tree, people, rels, shares = await trees_svc.get_tree(db, tree_id, user_id)
    detail = FamilyTreeDetail.model_validate(tree)
    detail.people = [PersonRead.model_validate(p) for p in people]
    detail.relationships = [RelationshipRead.model_validate(r) for r in rels]
    detail.shared_with = [TreeShareRead.model_validate(s) for s in shares]
    return detail


@router.get("/{tree_id}/stats", response_model=FamilyTreeStats)
async def api_tree_stats(tree_id: str, user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    return await trees_svc.tree_stats(db, tree_id, user_id)


@router.get("/{tree_id}/insights", response_model=FamilyInsights)
async def api_tree_insights(tree_id: str, user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    data = await trees_svc.tree_insights(db, tree_id, user_id)
    for key in ("oldest_person", "youngest_person", "most_connected_person"):
        if data[key] is not None:
            data[key] = PersonRead.model_validate(data[key])
    return data


@router.patch("/{tree_id}", response_model=FamilyTreeRead)
async def api_tree_update(tree_id: str, payload: FamilyTreeUpdate, user_id: str = Depends(current_user_id),
                          db: AsyncSession = Depends(get_db)):
    return await trees_svc.update_tree(db, tree_id, payload, user_id)


@router.delete("/{tree_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_tree_delete(tree_id: str, user_id: str = Depends(current_user_id), db: AsyncSession = Depends(get_db)):
    await trees_svc.delete_tree(db, tree_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{tree_id}/shares", response_model=TreeShareRead, status_code=status.HTTP_201_CREATED)
async def api_tree_share(tree_id: str, payload: TreeShareCreate, user_id: str = Depends(current_user_id),
                         db: AsyncSession = Depends(get_db)):
    return await trees_svc.share_tree(db, tree_id, user_id, payload.user_id, payload.permission)


@router.delete("/{tree_id}/shares/{shared_user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_tree_unshare(tree_id: str, shared_user_id: str, user_id: str = Depends(current_user_id),
                           db: AsyncSession = Depends(get_db)):
    await trees_svc.unshare_tree(db, tree_id, user_id, shared_user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
