import pytest

from levelup.core.permissions import Role
from levelup.models.review import ReviewerRole
from levelup.services.consensus import (
    effective_recommendation,
    has_authority,
    resolve_reviewer_role,
    reviewer_display_name,
)


@pytest.mark.parametrize("role,department,expected", [
    (Role.DEPARTMENT_HEAD, "Engineering", ReviewerRole.OWN_DEPARTMENT_HEAD),
    (Role.DEPARTMENT_HEAD, "Sales", ReviewerRole.OTHER_DEPARTMENT_HEAD),
    (Role.DEPARTMENT_HEAD, "", ReviewerRole.OTHER_DEPARTMENT_HEAD),
    (Role.HR, "Engineering", ReviewerRole.HR_LEAD),
    (Role.ADMIN, "", ReviewerRole.HR_LEAD),
])
def test_resolve_reviewer_role(role, department, expected):
    assert resolve_reviewer_role(role, department, "Engineering") == expected


def test_authority_precedence():
    assert has_authority(ReviewerRole.OWN_DEPARTMENT_HEAD, own_head_decided=True)
    assert has_authority(ReviewerRole.OTHER_DEPARTMENT_HEAD, own_head_decided=False)
    assert not has_authority(ReviewerRole.OTHER_DEPARTMENT_HEAD, own_head_decided=True)
    assert not has_authority(ReviewerRole.HR_LEAD, own_head_decided=False)


def test_hr_recommendation_is_dropped():
    assert effective_recommendation(ReviewerRole.HR_LEAD, True) is None
    assert effective_recommendation(ReviewerRole.OTHER_DEPARTMENT_HEAD, False) is False


def test_display_names():
    assert reviewer_display_name(ReviewerRole.HR_LEAD, "People") == "HR Lead"
    assert reviewer_display_name(ReviewerRole.OWN_DEPARTMENT_HEAD, "Sales") == "Sales Head"
