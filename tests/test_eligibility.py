import pytest
from types import SimpleNamespace

from levelup.services.eligibility import Eligibility, MeetMode, evaluate, is_met, roster_includes


def test_unconfigured_threshold_is_never_met():
    assert not is_met(100, None)


def test_zero_threshold_counts_as_configured():
    assert is_met(0, 0)
    assert is_met(None, 0)


def test_evaluate_against_threshold():
    threshold = SimpleNamespace(required_points=12, required_credits=None)
    assert evaluate(12, 50, threshold) == Eligibility(point_met=True, credit_met=False)
    assert evaluate(12, 50, None) == Eligibility(point_met=False, credit_met=False)


@pytest.mark.parametrize("mode,point_met,credit_met,expected", [
    (MeetMode.POINT, True, False, True),
    (MeetMode.CREDIT, True, False, False),
    (MeetMode.BOTH, True, False, False),
    (MeetMode.BOTH, True, True, True),
    (MeetMode.ANY, False, True, True),
    (MeetMode.ANY, False, False, False),
])
def test_meet_modes(mode, point_met, credit_met, expected):
    assert Eligibility(point_met, credit_met).satisfies(mode) is expected


def test_any_mode_keeps_curated_entries():
    nothing = Eligibility(False, False)
    assert roster_includes(nothing, MeetMode.ANY, manually_curated=True)
    assert not roster_includes(nothing, MeetMode.BOTH, manually_curated=True)
