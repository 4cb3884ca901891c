from sqlalchemy import select, update

from models.slot import Slot
from models.user import User
from repositories.base import paginate, storage_errors
from services.errors import ConflictError, NotFoundError, StateError, ValidationError
from utils.timeutil import utcnow


class SlotRepository:
    """
    Stores slots and enforces the per-interviewer non-overlap rule.

    The repository flushes but never commits: the calling service owns the
    transaction. Overlap checks lock the interviewer row (PostgreSQL) and are
    re-run after the flush so two concurrent writers for the same interviewer
    cannot both pass (SQLite serialises writers at the flush).
    """

    def __init__(self, session):
        self.session = session

    # ---------- reads ----------
    def get(self, slot_id: int):
        with storage_errors(self.session, "load slot", slot_id=slot_id):
            return self.session.get(Slot, slot_id)

    def get_or_404(self, slot_id: int) -> Slot:
        slot = self.get(slot_id)
        if slot is None:
            raise NotFoundError("Slot not found", details={"slot_id": slot_id})
        return slot

    def find_conflicting(self, interviewer_id: int, start, end, exclude_slot_id: int = None):
        # half-open [start, end): touching slots do not overlap
        q = Slot.query.filter(
            Slot.interviewer_id == interviewer_id,
            Slot.start_time < end,
            Slot.end_time > start,
        )
        if exclude_slot_id is not None:
            q = q.filter(Slot.id != exclude_slot_id)
        with storage_errors(self.session, "find conflicting slot", interviewer_id=interviewer_id):
            return q.order_by(Slot.start_time.asc()).first()

    def list_slots(self, interviewer_id=None, start_date=None, end_date=None,
                   available=None, page: int = 1, limit: int = 10):
        q = Slot.query
        if interviewer_id is not None:
            q = q.filter(Slot.interviewer_id == interviewer_id)
        if start_date is not None:
            q = q.filter(Slot.start_time >= start_date)
        if end_date is not None:
            q = q.filter(Slot.start_time <= end_date)
        if available is not None:
            q = q.filter(Slot.is_available.is_(available))

        with storage_errors(self.session, "list slots"):
            return paginate(q.order_by(Slot.start_time.asc()), page, limit)

    # ---------- writes ----------
    def create_slot(self, interviewer_id: int, start, end) -> Slot:
        if end <= start:
            raise ValidationError("end_time must be after start_time", field="end_time")

        self._lock_interviewer(interviewer_id)
        self._raise_if_conflicting(interviewer_id, start, end)

        slot = Slot(interviewer_id=interviewer_id, start_time=start, end_time=end, is_available=True)
        with storage_errors(self.session, "create slot", interviewer_id=interviewer_id):
            self.session.add(slot)
            self.session.flush()

        self._raise_if_conflicting(interviewer_id, start, end, exclude_slot_id=slot.id)
        return slot

    def update_slot_time(self, slot_id: int, new_start=None, new_end=None) -> Slot:
        slot = self.get_or_404(slot_id)
        if self._is_held(slot):
            raise StateError(
                "Cannot change the time of a slot that has a scheduled interview",
                details={"slot_id": slot_id, "interview_id": slot.interview_id},
            )

        start = new_start or slot.start_time
        end = new_end or slot.end_time
        if end <= start:
            raise ValidationError("end_time must be after start_time", field="end_time")

        self._lock_interviewer(slot.interviewer_id)
        self._raise_if_conflicting(slot.interviewer_id, start, end, exclude_slot_id=slot.id)

        # Guarded on the slot still being unbooked so a concurrent booking claim
        # and a time edit cannot both apply.
        stmt = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.interview_id.is_(None))
            .values(start_time=start, end_time=end, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with storage_errors(self.session, "update slot time", slot_id=slot_id):
            applied = self.session.execute(stmt).rowcount == 1
        if not applied:
            raise StateError("Slot was booked while it was being edited", details={"slot_id": slot_id})

        self._raise_if_conflicting(slot.interviewer_id, start, end, exclude_slot_id=slot.id)
        self.session.refresh(slot)
        return slot

    def set_availability(self, slot_id: int, is_available: bool) -> Slot:
        slot = self.get_or_404(slot_id)

        if slot.interview_id is not None:
            if not is_available:
                # already held by its interview; nothing to do
                return slot
            raise StateError(
                "Cannot make slot available while it has a scheduled interview",
                details={"slot_id": slot_id, "interview_id": slot.interview_id},
            )

        slot.is_available = bool(is_available)
        with storage_errors(self.session, "set slot availability", slot_id=slot_id):
            self.session.flush()
        return slot

    def delete_slot(self, slot_id: int) -> None:
        slot = self.get_or_404(slot_id)
        if slot.interview_id is not None:
            raise ConflictError(
                "Cannot delete slot that has a scheduled interview",
                details={"slot_id": slot_id, "interview_id": slot.interview_id},
            )
        with storage_errors(self.session, "delete slot", slot_id=slot_id):
            self.session.delete(slot)
            self.session.flush()

    # ---------- booking hooks (Booking Service only) ----------
    def claim(self, slot_id: int, start, end) -> bool:
        """
        Atomically flip AVAILABLE -> unavailable. Returns whether this caller won.

        The expected bounds are part of the condition, so a time edit that lands
        between validation and claim makes the claim fail instead of binding an
        interview to times the slot no longer has.
        """
        stmt = (
            update(Slot)
            .where(
                Slot.id == slot_id,
                Slot.is_available.is_(True),
                Slot.interview_id.is_(None),
                Slot.start_time == start,
                Slot.end_time == end,
            )
            .values(is_available=False, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with storage_errors(self.session, "claim slot", slot_id=slot_id):
            return self.session.execute(stmt).rowcount == 1

    def attach_interview(self, slot_id: int, interview_id: int) -> None:
        stmt = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.is_available.is_(False), Slot.interview_id.is_(None))
            .values(interview_id=interview_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with storage_errors(self.session, "attach interview", slot_id=slot_id):
            applied = self.session.execute(stmt).rowcount == 1
        if not applied:
            raise StateError("Slot is no longer claimable", details={"slot_id": slot_id})

    def release(self, slot_id: int, interview_id: int) -> bool:
        """
        Free the slot held by ``interview_id``. A slot already re-booked by a
        different interview is left untouched.
        """
        stmt = (
            update(Slot)
            .where(Slot.id == slot_id, Slot.interview_id == interview_id)
            .values(is_available=True, interview_id=None, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        with storage_errors(self.session, "release slot", slot_id=slot_id, interview_id=interview_id):
            return self.session.execute(stmt).rowcount == 1

    # ---------- helpers ----------
    @staticmethod
    def _is_held(slot: Slot) -> bool:
        return slot.interview_id is not None

    def _lock_interviewer(self, interviewer_id: int) -> None:
        # FOR UPDATE is a no-op on SQLite, where the post-flush re-check covers it
        stmt = select(User.id).where(User.id == interviewer_id).with_for_update()
        with storage_errors(self.session, "lock interviewer", interviewer_id=interviewer_id):
            self.session.execute(stmt)

    def _raise_if_conflicting(self, interviewer_id, start, end, exclude_slot_id=None):
        existing = self.find_conflicting(interviewer_id, start, end, exclude_slot_id=exclude_slot_id)
        if existing is not None:
            raise ConflictError(
                "Time slot conflict with existing slot",
                details={
                    "conflicting_slot_id": existing.id,
                    "start_time": existing.start_time.isoformat(),
                    "end_time": existing.end_time.isoformat(),
                },
            )
