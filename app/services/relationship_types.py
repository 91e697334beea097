from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from app.models import RelationshipType as RT


# Forward -> inverse. Types missing here (CUSTOM) have no inverse row.
INVERSE_TYPES: Dict[RT, RT] = {
    # Immediate family
    RT.PARENT: RT.CHILD,
    RT.CHILD: RT.PARENT,
    RT.SIBLING: RT.SIBLING,
    RT.SPOUSE: RT.SPOUSE,
    # Grandparents
    RT.GRANDPARENT: RT.GRANDCHILD,
    RT.GRANDCHILD: RT.GRANDPARENT,
    RT.GREAT_GRANDPARENT: RT.GREAT_GRANDCHILD,
    RT.GREAT_GRANDCHILD: RT.GREAT_GRANDPARENT,
    # Aunts/uncles
    RT.AUNT: RT.NIECE,
    RT.UNCLE: RT.NEPHEW,
    RT.NIECE: RT.AUNT,
    RT.NEPHEW: RT.UNCLE,
    RT.GREAT_AUNT: RT.GREAT_NIECE,
    RT.GREAT_UNCLE: RT.GREAT_NEPHEW,
    RT.GREAT_NIECE: RT.GREAT_AUNT,
    RT.GREAT_NEPHEW: RT.GREAT_UNCLE,
    RT.COUSIN: RT.COUSIN,
    # In-laws
    RT.MOTHER_IN_LAW: RT.DAUGHTER_IN_LAW,
    RT.FATHER_IN_LAW: RT.SON_IN_LAW,
    RT.DAUGHTER_IN_LAW: RT.MOTHER_IN_LAW,
    RT.SON_IN_LAW: RT.FATHER_IN_LAW,
    RT.SISTER_IN_LAW: RT.SISTER_IN_LAW,
    RT.BROTHER_IN_LAW: RT.BROTHER_IN_LAW,
    # Step / half / adoptive
    RT.STEPPARENT: RT.STEPCHILD,
    RT.STEPCHILD: RT.STEPPARENT,
    RT.STEPSIBLING: RT.STEPSIBLING,
    RT.HALF_SIBLING: RT.HALF_SIBLING,
    RT.ADOPTED_PARENT: RT.ADOPTED_CHILD,
    RT.ADOPTED_CHILD: RT.ADOPTED_PARENT,
    # Godfamily / social
    RT.GODPARENT: RT.GODCHILD,
    RT.GODCHILD: RT.GODPARENT,
    RT.CLOSE_FRIEND: RT.CLOSE_FRIEND,
    RT.FAMILY_FRIEND: RT.FAMILY_FRIEND,
    RT.MENTOR: RT.MENTEE,
    RT.MENTEE: RT.MENTOR,
}

# Between the same two people at most one of these may hold.
CORE_FAMILY_TYPES: FrozenSet[RT] = frozenset({RT.PARENT, RT.CHILD, RT.SIBLING, RT.SPOUSE})

CONFLICTING_PAIRS: FrozenSet[FrozenSet[RT]] = frozenset(
    frozenset({a, b}) for a in CORE_FAMILY_TYPES for b in CORE_FAMILY_TYPES if a != b
)


def inverse_of(rel_type: RT | str) -> Optional[RT]:
    """Return the type the other person holds back, or None if no inverse row is kept."""
    return INVERSE_TYPES.get(RT(rel_type))


def has_inverse(rel_type: RT | str) -> bool:
    return inverse_of(rel_type) is not None


def is_self_inverse(rel_type: RT | str) -> bool:
    return inverse_of(rel_type) == RT(rel_type)


def conflicts_with(existing: RT | str, proposed: RT | str) -> bool:
    """True when both types can't be recorded between the same two people."""
    return frozenset({RT(existing), RT(proposed)}) in CONFLICTING_PAIRS


__all__ = [
    "INVERSE_TYPES",
    "CORE_FAMILY_TYPES",
    "CONFLICTING_PAIRS",
    "inverse_of",
    "has_inverse",
    "is_self_inverse",
    "conflicts_with",
]
