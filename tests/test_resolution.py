from datetime import datetime

import pytest

from intervals_deduper.models import ScoringConfig, Weights
from intervals_deduper.resolution import resolve_cluster, size_mismatch
from intervals_deduper.scoring import ScoringEngine

from conftest import make_detail

T0 = datetime(2025, 3, 1, 9, 0, 0)
T1 = datetime(2025, 3, 1, 10, 0, 0)
T2 = datetime(2025, 3, 1, 11, 0, 0)


@pytest.fixture
def power_engine():
    return ScoringEngine(ScoringConfig(weights=Weights(power=10)))


def test_requires_at_least_two_details(power_engine):
    with pytest.raises(ValueError):
        resolve_cluster([make_detail("only")], power_engine)
    with pytest.raises(ValueError):
        resolve_cluster([], power_engine)


def test_highest_score_wins_and_losers_follow_rank(power_engine):
    details = [
        make_detail("low", updated_at=T0),
        make_detail("high", streams=("watts",)),
        make_detail("mid", updated_at=T2),
    ]
    decision = resolve_cluster(details, power_engine)
    assert decision.winner.detail.id == "high"
    assert [l.detail.id for l in decision.losers] == ["mid", "low"]


def test_tie_break_on_last_updated(power_engine):
    older = make_detail("older", updated_at=T0, created_at=T2)
    newer = make_detail("newer", updated_at=T1, created_at=T0)
    decision = resolve_cluster([older, newer], power_engine)
    assert decision.winner.detail.id == "newer"


def test_tie_break_on_created_when_updated_equal(power_engine):
    first = make_detail("first", updated_at=T1, created_at=T0)
    second = make_detail("second", updated_at=T1, created_at=T2)
    decision = resolve_cluster([first, second], power_engine)
    assert decision.winner.detail.id == "second"


def test_missing_timestamps_sort_oldest(power_engine):
    stamped = make_detail("stamped", updated_at=T0)
    blank = make_detail("blank", updated_at=None, created_at=None)
    decision = resolve_cluster([blank, stamped], power_engine)
    assert decision.winner.detail.id == "stamped"


def test_generic_winner_adopts_best_loser_name(power_engine):
    details = [
        make_detail("winner", name="Morning Ride", streams=("watts",)),
        make_detail("a", name="Cycling"),
        make_detail("b", name="Ellisville - Weldon"),
    ]
    decision = resolve_cluster(details, power_engine)
    assert decision.winner.detail.id == "winner"
    assert decision.name_adoption == "Ellisville - Weldon"


def test_custom_winner_name_is_kept(power_engine):
    details = [
        make_detail("winner", name="Fox Creek Trails", streams=("watts",)),
        make_detail("a", name="Ellisville - Weldon"),
    ]
    assert resolve_cluster(details, power_engine).name_adoption is None


def test_no_name_adoption_when_losers_are_generic(power_engine):
    details = [
        make_detail("winner", name="Untitled", streams=("watts",)),
        make_detail("a", name="Morning Ride"),
        make_detail("b", name=""),
    ]
    assert resolve_cluster(details, power_engine).name_adoption is None


def test_metadata_merge_fills_each_field_once_in_rank_order(power_engine):
    winner = make_detail("winner", streams=("watts",))
    first_loser = make_detail("l1", rpe=6, description="  legs heavy  ", updated_at=T2)
    second_loser = make_detail("l2", rpe=9, feel=3, description="other", updated_at=T1)
    decision = resolve_cluster([second_loser, winner, first_loser], power_engine)

    assert [l.detail.id for l in decision.losers] == ["l1", "l2"]
    assert decision.metadata_updates == {
        "icu_rpe": 6,
        "description": "legs heavy",
        "feel": 3,
    }
    assert decision.metadata_reasons == ("RPE: 6", "Description", "Feel: 3")
    # The fetched winner record itself is never touched.
    assert winner.rpe == 0
    assert decision.winner.detail.description == ""


def test_metadata_merge_never_overwrites_winner_fields(power_engine):
    winner = make_detail("winner", streams=("watts",), rpe=5, feel=2, description="mine")
    loser = make_detail("loser", rpe=8, feel=4, description="theirs")
    decision = resolve_cluster([winner, loser], power_engine)
    assert decision.metadata_updates == {}
    assert decision.metadata_reasons == ()


def test_size_mismatch_thresholds():
    winner = make_detail("w", distance=10000.0, moving_time=3600)
    assert size_mismatch(winner, make_detail("l", distance=4000.0, moving_time=3600)) == (True, False)
    assert size_mismatch(winner, make_detail("l", distance=10000.0, moving_time=4600)) == (False, True)
    assert size_mismatch(winner, make_detail("l", distance=9000.0, moving_time=4400)) == (False, False)


def test_size_mismatch_guards_zero_winner_values():
    winner = make_detail("w", distance=0.0, moving_time=0)
    assert size_mismatch(winner, make_detail("l", distance=0.4, moving_time=0)) == (False, False)
    assert size_mismatch(winner, make_detail("l", distance=5.0, moving_time=60)) == (True, True)


def test_mismatched_loser_is_flagged_not_dropped(power_engine):
    winner = make_detail("w", streams=("watts",), distance=10000.0)
    short = make_detail("short", distance=4000.0)
    same = make_detail("same", distance=9800.0)
    decision = resolve_cluster([winner, short, same], power_engine)
    flags = {l.detail.id: l.size_mismatch for l in decision.losers}
    assert flags == {"short": True, "same": False}
    assert [l.detail.id for l in decision.deletable] == ["same"]
