import pytest

from app.models import RelationshipType as RT
from app.services.relationship_types import (
    CORE_FAMILY_TYPES,
    INVERSE_TYPES,
    conflicts_with,
    has_inverse,
    inverse_of,
    is_self_inverse,
)

WITH_INVERSE = [t for t in RT if t in INVERSE_TYPES]


def test_every_type_but_custom_has_an_inverse():
    assert set(RT) - set(INVERSE_TYPES) == {RT.CUSTOM}
    assert inverse_of(RT.CUSTOM) is None
    assert not has_inverse(RT.CUSTOM)


@pytest.mark.parametrize("rel_type", WITH_INVERSE, ids=lambda t: t.value)
def test_inverse_round_trip(rel_type):
    assert inverse_of(inverse_of(rel_type)) == rel_type


@pytest.mark.parametrize("forward,inverse", [
    (RT.PARENT, RT.CHILD),
    (RT.GRANDCHILD, RT.GRANDPARENT),
    (RT.GREAT_GRANDPARENT, RT.GREAT_GRANDCHILD),
    (RT.AUNT, RT.NIECE),
    (RT.UNCLE, RT.NEPHEW),
    (RT.GREAT_NEPHEW, RT.GREAT_UNCLE),
    (RT.MOTHER_IN_LAW, RT.DAUGHTER_IN_LAW),
    (RT.SON_IN_LAW, RT.FATHER_IN_LAW),
    (RT.STEPPARENT, RT.STEPCHILD),
    (RT.ADOPTED_CHILD, RT.ADOPTED_PARENT),
    (RT.GODPARENT, RT.GODCHILD),
    (RT.MENTOR, RT.MENTEE),
])
def test_directional_pairs(forward, inverse):
    assert inverse_of(forward) == inverse
    assert not is_self_inverse(forward)


def test_self_inverse_types():
    expected = {
        RT.SIBLING, RT.SPOUSE, RT.COUSIN, RT.SISTER_IN_LAW, RT.BROTHER_IN_LAW,
        RT.STEPSIBLING, RT.HALF_SIBLING, RT.CLOSE_FRIEND, RT.FAMILY_FRIEND,
    }
    assert {t for t in RT if is_self_inverse(t)} == expected


def test_inverse_accepts_plain_strings():
    assert inverse_of("PARENT") == RT.CHILD
    with pytest.raises(ValueError):
        inverse_of("ARCH_NEMESIS")


def test_core_family_types_conflict_pairwise():
    for a in CORE_FAMILY_TYPES:
        for b in CORE_FAMILY_TYPES:
            assert conflicts_with(a, b) is (a != b)


def test_same_type_does_not_conflict():
    for t in RT:
        assert not conflicts_with(t, t)


def test_types_outside_the_core_never_conflict():
    outside = [t for t in RT if t not in CORE_FAMILY_TYPES]
    for a in RT:
        for b in outside:
            assert not conflicts_with(a, b)
            assert not conflicts_with(b, a)


def test_conflict_examples():
    assert conflicts_with(RT.PARENT, RT.SPOUSE)
    assert conflicts_with("SIBLING", "CHILD")
    assert not conflicts_with(RT.PARENT, RT.GODPARENT)
