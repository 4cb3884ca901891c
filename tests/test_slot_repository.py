"""Slot repository: non-overlap rule and held-slot protection."""

import pytest

from conftest import at
from models import db
from models.slot import Slot
from repositories import SlotRepository
from services.errors import ConflictError, NotFoundError, StateError, ValidationError


@pytest.fixture
def repo(app):
    return SlotRepository(db.session)


def _create(repo, interviewer, start, end):
    slot = repo.create_slot(interviewer.id, start, end)
    db.session.commit()
    return slot


class TestCreateSlot:
    def test_new_slot_is_available(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        assert slot.is_available is True
        assert slot.interview_id is None
        assert slot.state == "AVAILABLE"

    def test_overlapping_slot_is_rejected(self, repo, interviewer):
        _create(repo, interviewer, at(9), at(9, 45))
        with pytest.raises(ConflictError):
            repo.create_slot(interviewer.id, at(9, 30), at(10, 15))
        db.session.rollback()
        assert Slot.query.count() == 1

    def test_enclosing_slot_is_rejected(self, repo, interviewer):
        _create(repo, interviewer, at(9), at(9, 45))
        with pytest.raises(ConflictError):
            repo.create_slot(interviewer.id, at(8), at(11))

    def test_touching_slots_do_not_overlap(self, repo, interviewer):
        _create(repo, interviewer, at(9), at(9, 45))
        later = _create(repo, interviewer, at(9, 45), at(10, 30))
        earlier = _create(repo, interviewer, at(8, 15), at(9))
        assert {later.id, earlier.id} <= {s.id for s in Slot.query.all()}

    def test_other_interviewers_may_overlap(self, repo, make_user):
        a = make_user("interviewer")
        b = make_user("interviewer")
        _create(repo, a, at(9), at(9, 45))
        _create(repo, b, at(9), at(9, 45))
        assert Slot.query.count() == 2

    def test_end_before_start_is_invalid(self, repo, interviewer):
        with pytest.raises(ValidationError):
            repo.create_slot(interviewer.id, at(10), at(9))


class TestUpdateSlotTime:
    def test_moves_free_slot(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        repo.update_slot_time(slot.id, new_start=at(13), new_end=at(13, 45))
        db.session.commit()
        assert db.session.get(Slot, slot.id).start_time == at(13)

    def test_only_end_changes(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        updated = repo.update_slot_time(slot.id, new_end=at(10))
        assert updated.start_time == at(9)
        assert updated.end_time == at(10)

    def test_overlap_with_other_slot_excluding_itself(self, repo, interviewer):
        first = _create(repo, interviewer, at(9), at(9, 45))
        _create(repo, interviewer, at(10), at(10, 45))
        # overlapping its own old range is fine
        repo.update_slot_time(first.id, new_start=at(9, 15), new_end=at(9, 55))
        with pytest.raises(ConflictError):
            repo.update_slot_time(first.id, new_end=at(10, 30))

    def test_held_slot_time_is_frozen(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        assert repo.claim(slot.id, at(9), at(9, 45))
        repo.attach_interview(slot.id, 42)
        db.session.commit()
        with pytest.raises(StateError):
            repo.update_slot_time(slot.id, new_start=at(11), new_end=at(11, 45))

    def test_missing_slot(self, repo):
        with pytest.raises(NotFoundError):
            repo.update_slot_time(999, new_start=at(9))


class TestAvailabilityAndDelete:
    def test_manual_hold_and_release_of_unbooked_slot(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        assert repo.set_availability(slot.id, False).state == "UNAVAILABLE"
        assert repo.set_availability(slot.id, True).state == "AVAILABLE"

    def test_marking_held_slot_unavailable_is_noop(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        repo.claim(slot.id, at(9), at(9, 45))
        repo.attach_interview(slot.id, 7)
        db.session.commit()
        assert repo.set_availability(slot.id, False).interview_id == 7

    def test_held_slot_cannot_be_freed_directly(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        repo.claim(slot.id, at(9), at(9, 45))
        repo.attach_interview(slot.id, 7)
        db.session.commit()
        with pytest.raises(StateError):
            repo.set_availability(slot.id, True)

    def test_delete_booked_slot_conflicts(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        repo.claim(slot.id, at(9), at(9, 45))
        repo.attach_interview(slot.id, 7)
        db.session.commit()
        with pytest.raises(ConflictError):
            repo.delete_slot(slot.id)
        assert db.session.get(Slot, slot.id) is not None

    def test_delete_free_slot(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        repo.delete_slot(slot.id)
        db.session.commit()
        assert db.session.get(Slot, slot.id) is None


class TestClaimAndRelease:
    def test_second_claim_loses(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        assert repo.claim(slot.id, at(9), at(9, 45)) is True
        assert repo.claim(slot.id, at(9), at(9, 45)) is False

    def test_claim_fails_when_times_moved(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        assert repo.claim(slot.id, at(8), at(8, 45)) is False

    def test_release_ignores_other_interview(self, repo, interviewer):
        slot = _create(repo, interviewer, at(9), at(9, 45))
        repo.claim(slot.id, at(9), at(9, 45))
        repo.attach_interview(slot.id, 7)
        db.session.commit()

        assert repo.release(slot.id, 8) is False
        assert repo.release(slot.id, 7) is True
        db.session.commit()

        slot = db.session.get(Slot, slot.id)
        db.session.refresh(slot)
        assert slot.is_available is True
        assert slot.interview_id is None


def test_find_conflicting_uses_half_open_intervals(app, interviewer):
    repo = SlotRepository(db.session)
    slot = _create(repo, interviewer, at(9), at(10))
    assert repo.find_conflicting(interviewer.id, at(10), at(11)) is None
    assert repo.find_conflicting(interviewer.id, at(9, 59), at(11)).id == slot.id
    assert repo.find_conflicting(interviewer.id, at(9), at(10), exclude_slot_id=slot.id) is None
