from types import SimpleNamespace

import pytest

from models.user import ADMIN, CANDIDATE, INTERVIEWER
from services.errors import ForbiddenError
from services.policy import (
    DENY, INTERVIEW_BOOK, INTERVIEW_CANCEL, INTERVIEW_DELETE, INTERVIEW_VIEW,
    SLOT_CREATE, SLOT_VIEW, AuthorizationPolicy, Principal, owner_ids,
)

policy = AuthorizationPolicy()
interview = SimpleNamespace(candidate_id=1, interviewer_id=2)


def who(user_id, role):
    return Principal(requester_id=user_id, requester_role=role)


class TestAuthorizationPolicy:
    def test_admin_is_allowed_everything(self):
        for op in (SLOT_CREATE, INTERVIEW_BOOK, INTERVIEW_DELETE):
            policy.authorize(who(99, ADMIN), op, interview)

    def test_participants_own_interview(self):
        assert policy.is_allowed(who(1, CANDIDATE), INTERVIEW_CANCEL, owner_ids(interview))
        assert policy.is_allowed(who(2, INTERVIEWER), INTERVIEW_CANCEL, owner_ids(interview))
        assert not policy.is_allowed(who(3, CANDIDATE), INTERVIEW_VIEW, owner_ids(interview))

    def test_candidate_never_deletes(self):
        with pytest.raises(ForbiddenError) as exc:
            policy.authorize(who(1, CANDIDATE), INTERVIEW_DELETE, interview)
        assert exc.value.details == {"operation": INTERVIEW_DELETE}

    def test_slots_visible_to_every_role(self):
        policy.authorize(who(1, CANDIDATE), SLOT_VIEW, owners={2})
        policy.authorize(who(3, INTERVIEWER), SLOT_VIEW, owners={2})

    def test_interviewer_creates_only_own_slots(self):
        policy.authorize(who(2, INTERVIEWER), SLOT_CREATE, owners={2})
        with pytest.raises(ForbiddenError):
            policy.authorize(who(2, INTERVIEWER), SLOT_CREATE, owners={5})

    def test_unknown_role_and_operation_are_denied(self):
        assert not policy.is_allowed(who(1, "guest"), SLOT_VIEW)
        assert policy.rule_for("slot.archive", ADMIN) == DENY

    def test_custom_rules(self):
        strict = AuthorizationPolicy({INTERVIEW_BOOK: {CANDIDATE: DENY}})
        with pytest.raises(ForbiddenError):
            strict.authorize(who(1, CANDIDATE), INTERVIEW_BOOK, owners={1})
