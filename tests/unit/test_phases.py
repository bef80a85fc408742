import pytest

from ingestion.phases import (
    PHASE_DEPENDENCIES, PHASE_ORDER, Phase, missing_dependencies, next_phase, parse_phase
)

L, C, B, V, VAL = PHASE_ORDER


def test_declared_order():
    assert PHASE_ORDER == [Phase.LEGISLATORS, Phase.COMMITTEES, Phase.BILLS,
                           Phase.VOTES, Phase.VALIDATE]


def test_validate_depends_on_every_other_phase():
    assert PHASE_DEPENDENCIES[VAL] >= {L, C, B, V}


def test_resolver_picks_bills_after_legislators_and_committees():
    assert next_phase({L, C}) == B


@pytest.mark.parametrize("completed, expected", [
    (set(), L),
    ({L}, C),
    ({L, C, B}, V),
    ({L, C, B, V}, VAL),
    ({L, C, B, V, VAL}, None),
])
def test_resolver_sequence(completed, expected):
    assert next_phase(completed) == expected


def test_resolver_returns_none_when_nothing_is_eligible():
    cyclic = {L: frozenset({C}), C: frozenset({L})}
    assert next_phase(set(), cyclic) is None


def test_missing_dependencies_in_declared_order():
    assert missing_dependencies(V, {L}) == [B]
    assert missing_dependencies(VAL, {L}) == [C, B, V]
    assert missing_dependencies(L, set()) == []


def test_parse_phase():
    assert parse_phase(" Bills ") == Phase.BILLS
    with pytest.raises(ValueError):
        parse_phase("amendments")
