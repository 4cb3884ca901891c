import pytest

from conftest import at
from models import db
from models.interview import CANCELLED, COMPLETED, RESCHEDULED, SCHEDULED, Interview
from repositories import InterviewRepository, SlotRepository
from repositories.interview_repository import can_transition
from services.errors import ConflictError, StateError, ValidationError


@pytest.fixture
def repo(app):
    return InterviewRepository(db.session)


@pytest.fixture
def slot(app, interviewer):
    slot = SlotRepository(db.session).create_slot(interviewer.id, at(9), at(9, 45))
    db.session.commit()
    return slot


def _interview(repo, slot, candidate, interviewer, **kw):
    fields = dict(
        title="Backend interview",
        candidate_id=candidate.id,
        interviewer_id=interviewer.id,
        slot_id=slot.id,
        start=slot.start_time,
        end=slot.end_time,
    )
    fields.update(kw)
    interview = repo.create(**fields)
    db.session.commit()
    return interview


class TestCreate:
    def test_starts_scheduled(self, repo, slot, candidate, interviewer):
        interview = _interview(repo, slot, candidate, interviewer)
        assert interview.status == SCHEDULED
        assert interview.start_time == at(9)

    def test_second_live_interview_on_slot_conflicts(self, repo, slot, candidate, interviewer, make_user):
        _interview(repo, slot, candidate, interviewer)
        other = make_user()
        with pytest.raises(ConflictError):
            _interview(repo, slot, other, interviewer)
        assert Interview.query.count() == 1

    def test_cancelled_interview_frees_the_slot_index(self, repo, slot, candidate, interviewer, make_user):
        first = _interview(repo, slot, candidate, interviewer)
        repo.update_status(first, CANCELLED)
        db.session.commit()
        second = _interview(repo, slot, make_user(), interviewer)
        assert second.id != first.id

    def test_inverted_times_are_invalid(self, repo, slot, candidate, interviewer):
        with pytest.raises(ValidationError):
            repo.create(title="x", candidate_id=candidate.id, interviewer_id=interviewer.id,
                        slot_id=slot.id, start=at(10), end=at(9))


class TestSchedulingConflict:
    def test_back_to_back_counts_as_conflict(self, repo, slot, candidate, interviewer):
        existing = _interview(repo, slot, candidate, interviewer)
        found = repo.find_scheduling_conflict(candidate.id, interviewer.id, at(9, 45), at(10, 30))
        assert found.id == existing.id

    def test_either_participant_conflicts(self, repo, slot, candidate, interviewer, make_user):
        _interview(repo, slot, candidate, interviewer)
        other_candidate = make_user()
        other_interviewer = make_user("interviewer")
        assert repo.find_scheduling_conflict(other_candidate.id, interviewer.id, at(9), at(9, 45))
        assert repo.find_scheduling_conflict(candidate.id, other_interviewer.id, at(9), at(9, 45))
        assert repo.find_scheduling_conflict(other_candidate.id, other_interviewer.id,
                                             at(9), at(9, 45)) is None

    def test_cancelled_interviews_are_ignored(self, repo, slot, candidate, interviewer):
        interview = _interview(repo, slot, candidate, interviewer)
        repo.update_status(interview, CANCELLED)
        db.session.commit()
        assert repo.find_scheduling_conflict(candidate.id, interviewer.id, at(9), at(9, 45)) is None

    def test_disjoint_times(self, repo, slot, candidate, interviewer):
        _interview(repo, slot, candidate, interviewer)
        assert repo.find_scheduling_conflict(candidate.id, interviewer.id, at(11), at(12)) is None


class TestStatus:
    @pytest.mark.parametrize("current,new,ok", [
        (SCHEDULED, COMPLETED, True),
        (SCHEDULED, CANCELLED, True),
        (SCHEDULED, RESCHEDULED, True),
        (RESCHEDULED, CANCELLED, True),
        (COMPLETED, CANCELLED, False),
        (CANCELLED, SCHEDULED, False),
        (RESCHEDULED, COMPLETED, False),
    ])
    def test_transitions(self, current, new, ok):
        assert can_transition(current, new) is ok

    def test_completed_is_terminal(self, repo, slot, candidate, interviewer):
        interview = _interview(repo, slot, candidate, interviewer)
        repo.update_status(interview, COMPLETED)
        with pytest.raises(StateError):
            repo.update_status(interview, CANCELLED)

    def test_same_status_is_noop(self, repo, slot, candidate, interviewer):
        interview = _interview(repo, slot, candidate, interviewer)
        assert repo.update_status(interview, SCHEDULED).status == SCHEDULED

    def test_unknown_status(self, repo, slot, candidate, interviewer):
        interview = _interview(repo, slot, candidate, interviewer)
        with pytest.raises(ValidationError):
            repo.update_status(interview, "POSTPONED")


def test_list_filters_by_participant_and_status(repo, slot, candidate, interviewer, make_user):
    mine = _interview(repo, slot, candidate, interviewer)
    rows, total = repo.list_interviews(candidate_id=candidate.id)
    assert total == 1 and rows[0].id == mine.id

    rows, total = repo.list_interviews(candidate_id=make_user().id)
    assert total == 0 and rows == []

    rows, total = repo.list_interviews(interviewer_id=interviewer.id, status=CANCELLED)
    assert total == 0
