# services/family_trees.py
from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import delete, exists, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidArgument, NotFound, PersistenceFailure
from app.models import FamilyTree, Person, Relationship, RelationshipType, SharePermission, TreeShare
from app.schemas import FamilyTreeCreate, FamilyTreeUpdate

logger = logging.getLogger(__name__)


def _visible_to(user_id: str):
    shared = exists(
        select(TreeShare.id)
        .where(TreeShare.tree_id == FamilyTree.id)
        .where(TreeShare.user_id == user_id)
    )
    return or_(FamilyTree.user_id == user_id, FamilyTree.is_public.is_(True), shared)


async def _load_visible(db: AsyncSession, tree_id: str, user_id: str) -> FamilyTree:
    tree = (await db.execute(
        select(FamilyTree).where(FamilyTree.id == tree_id).where(_visible_to(user_id))
    )).scalars().first()
    if not tree:
        raise NotFound(f"Family tree with ID {tree_id} not found or access denied")
    return tree


async def _load_owned(db: AsyncSession, tree_id: str, user_id: str, allow_editors: bool = False) -> FamilyTree:
    tree = await db.get(FamilyTree, tree_id)
    if tree and tree.user_id == user_id:
        return tree
    if tree and allow_editors:
        perm = await db.scalar(
            select(TreeShare.permission)
            .where(TreeShare.tree_id == tree_id, TreeShare.user_id == user_id)
            .limit(1)
        )
        if perm == SharePermission.EDIT:
            return tree
    raise NotFound(f"Family tree with ID {tree_id} not found or access denied")


async def _commit(db: AsyncSession, what: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to %s", what)
        raise PersistenceFailure(f"Failed to {what}")


# ---------------------------
# CRUD
# ---------------------------
async def create_tree(db: AsyncSession, payload: FamilyTreeCreate, user_id: str) -> FamilyTree:
    t = FamilyTree(user_id=user_id, **payload.model_dump())
    t.name = t.name.strip()
    db.add(t)
    await _commit(db, "create family tree")
    logger.info("Family tree %s created by %s", t.id, user_id)
    return t


async def list_trees(db: AsyncSession, user_id: str) -> List[Tuple[FamilyTree, int, int]]:
    """Trees the user owns, has been shared, or that are public; newest first."""
    people_count = (
        select(func.count(Person.id)).where(Person.tree_id == FamilyTree.id)
        .correlate(FamilyTree).scalar_subquery()
    )
    rel_count = (
        select(func.count(Relationship.id)).where(Relationship.tree_id == FamilyTree.id)
        .correlate(FamilyTree).scalar_subquery()
    )
    rows = (await db.execute(
        select(FamilyTree, people_count, rel_count)
        .where(_visible_to(user_id))
        .order_by(FamilyTree.created_at.desc())
    )).all()
    return [(t, int(pc or 0), int(rc or 0)) for t, pc, rc in rows]


async def get_tree(db: AsyncSession, tree_id: str, user_id: str):
    tree = await _load_visible(db, tree_id, user_id)
    people = (await db.execute(
        select(Person).where(Person.tree_id == tree_id).order_by(Person.name)
    )).scalars().all()
    rels = (await db.execute(select(Relationship).where(Relationship.tree_id == tree_id))).scalars().all()
    shares = (await db.execute(select(TreeShare).where(TreeShare.tree_id == tree_id))).scalars().all()
    return tree, list(people), list(rels), list(shares)


async def update_tree(db: AsyncSession, tree_id: str, payload: FamilyTreeUpdate, user_id: str) -> FamilyTree:
    tree = await _load_owned(db, tree_id, user_id, allow_editors=True)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "tree_type", "is_public"):
            continue
        setattr(tree, field, value)
    await _commit(db, "update family tree")
    return tree


async def delete_tree(db: AsyncSession, tree_id: str, user_id: str) -> None:
    tree = await _load_owned(db, tree_id, user_id)
    try:
        await db.execute(delete(Relationship).where(Relationship.tree_id == tree_id))
        await db.execute(delete(Person).where(Person.tree_id == tree_id))
        await db.execute(delete(TreeShare).where(TreeShare.tree_id == tree_id))
        await db.delete(tree)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Failed to delete family tree %s", tree_id)
        raise PersistenceFailure("Failed to delete family tree")
    await _commit(db, "delete family tree")
    logger.info("Family tree %s deleted by %s", tree_id, user_id)


# ---------------------------
# Sharing
# ---------------------------
async def share_tree(
    db: AsyncSession, tree_id: str, owner_id: str, user_id: str,
    permission: SharePermission = SharePermission.VIEW,
) -> TreeShare:
    await _load_owned(db, tree_id, owner_id)
    user_id = (user_id or "").strip()
    if not user_id:
        raise InvalidArgument("A user id is required to share a tree")
    if user_id == owner_id:
        raise InvalidArgument("A tree cannot be shared with its owner")
    existing = (await db.execute(
        select(TreeShare).where(TreeShare.tree_id == tree_id, TreeShare.user_id == user_id)
    )).scalars().first()
    if existing:
        existing.permission = permission
        share = existing
    else:
        share = TreeShare(tree_id=tree_id, user_id=user_id, permission=permission)
        db.add(share)
    await _commit(db, "share family tree")
    logger.info("Family tree %s shared with %s (%s)", tree_id, user_id, permission.value)
    return share


async def unshare_tree(db: AsyncSession, tree_id: str, owner_id: str, user_id: str) -> None:
    await _load_owned(db, tree_id, owner_id)
    res = await db.execute(delete(TreeShare).where(TreeShare.tree_id == tree_id, TreeShare.user_id == user_id))
    if not res.rowcount:
        raise NotFound(f"Family tree {tree_id} is not shared with {user_id}")
    await _commit(db, "unshare family tree")


# ---------------------------
# Stats & insights
# ---------------------------
def generation_levels(person_ids: Iterable[str], relationships: Iterable[Relationship]) -> Dict[str, int]:
    """
    Level of every person counted from the oldest known ancestor (1 = top).
    Parent links come from PARENT edges and reversed CHILD edges; a cycle
    in bad data is cut where it closes.
    """
    parents: Dict[str, Set[str]] = {pid: set() for pid in person_ids}
    for r in relationships:
        if r.relationship_type == RelationshipType.PARENT:
            parent, child = r.from_person_id, r.to_person_id
        elif r.relationship_type == RelationshipType.CHILD:
            child, parent = r.from_person_id, r.to_person_id
        else:
            continue
        parents.setdefault(child, set()).add(parent)
        parents.setdefault(parent, set())

    level: Dict[str, int] = {}
    for start in parents:
        if start in level:
            continue
        stack = [(start, iter(parents[start]))]
        on_path = {start}
        while stack:
            node, it = stack[-1]
            nxt = next((p for p in it if p not in level and p not in on_path), None)
            if nxt is not None:
                on_path.add(nxt)
                stack.append((nxt, iter(parents[nxt])))
                continue
            stack.pop()
            on_path.discard(node)
            level[node] = 1 + max((level[p] for p in parents[node] if p in level), default=0)
    return level


async def _tree_contents(db: AsyncSession, tree_id: str) -> Tuple[List[Person], List[Relationship]]:
    if not await db.get(FamilyTree, tree_id):
        raise NotFound(f"Family tree with ID {tree_id} not found")
    people = (await db.execute(select(Person).where(Person.tree_id == tree_id))).scalars().all()
    rels = (await db.execute(select(Relationship).where(Relationship.tree_id == tree_id))).scalars().all()
    return list(people), list(rels)


async def tree_stats(db: AsyncSession, tree_id: str, user_id: str) -> dict:
    await _load_visible(db, tree_id, user_id)
    people, rels = await _tree_contents(db, tree_id)
    total_people = len(people)
    total_relationships = len(rels)
    breakdown = Counter(r.relationship_type.value for r in rels)
    levels = generation_levels((p.id for p in people), rels)
    return {
        "total_people": total_people,
        "total_relationships": total_relationships,
        "generations": max(1, max(levels.values(), default=1)),
        "average_relationships_per_person": (total_relationships / total_people) if total_people else 0.0,
        "relationship_type_breakdown": dict(breakdown),
    }


async def tree_insights(db: AsyncSession, tree_id: str, user_id: str, today: Optional[date] = None) -> dict:
    await _load_visible(db, tree_id, user_id)
    people, rels = await _tree_contents(db, tree_id)
    today = today or date.today()

    dated = [p for p in people if p.birth_date]
    oldest = min(dated, key=lambda p: p.birth_date, default=None)
    youngest = max(dated, key=lambda p: p.birth_date, default=None)
    ages = [today.year - p.birth_date.year for p in dated]

    touches: Counter = Counter()
    for r in rels:
        touches[r.from_person_id] += 1
        touches[r.to_person_id] += 1
    most_connected = None
    for p in people:
        if most_connected is None or touches[p.id] > touches[most_connected.id]:
            most_connected = p

    levels = generation_levels((p.id for p in people), rels)
    per_level = Counter(levels[p.id] for p in people if p.id in levels)

    return {
        "largest_generation": max(per_level.values(), default=0),
        "oldest_person": oldest,
        "youngest_person": youngest,
        "most_connected_person": most_connected,
        "family_size": len(people),
        "average_age": (sum(ages) / len(ages)) if ages else None,
    }
