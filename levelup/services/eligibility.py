import enum
from dataclasses import dataclass
from typing import Optional


class MeetMode(str, enum.Enum):
    POINT = "point"
    CREDIT = "credit"
    BOTH = "both"
    ANY = "any"


def is_met(cumulative: Optional[float], required: Optional[float]) -> bool:
    # An unconfigured threshold is never met.
    if required is None:
        return False
    return (cumulative or 0.0) >= required


@dataclass(frozen=True)
class Eligibility:
    point_met: bool
    credit_met: bool

    def satisfies(self, mode: MeetMode) -> bool:
        if mode == MeetMode.POINT:
            return self.point_met
        if mode == MeetMode.CREDIT:
            return self.credit_met
        if mode == MeetMode.BOTH:
            return self.point_met and self.credit_met
        return self.point_met or self.credit_met


def evaluate(point_cumulative: Optional[float], credit_cumulative: Optional[float], threshold) -> Eligibility:
    """``threshold`` is a LevelThreshold-like object or None."""
    if threshold is None:
        return Eligibility(point_met=False, credit_met=False)
    return Eligibility(
        point_met=is_met(point_cumulative, threshold.required_points),
        credit_met=is_met(credit_cumulative, threshold.required_credits),
    )


def roster_includes(eligibility: Eligibility, mode: MeetMode, manually_curated: bool = False) -> bool:
    """'any' additionally keeps entries that were curated by hand."""
    if mode == MeetMode.ANY and manually_curated:
        return True
    return eligibility.satisfies(mode)
