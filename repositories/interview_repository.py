from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from models.interview import (
    CANCELLED, COMPLETED, RESCHEDULED, SCHEDULED, STATUSES, Interview,
)
from models.user import User
from repositories.base import paginate, storage_errors
from services.errors import ConflictError, NotFoundError, StateError, ValidationError

# SCHEDULED -> RESCHEDULED is a plain status edge; RESCHEDULED -> SCHEDULED only
# happens by booking again, so it is not listed here.
ALLOWED_TRANSITIONS = {
    SCHEDULED: {COMPLETED, CANCELLED, RESCHEDULED},
    RESCHEDULED: {CANCELLED},
    COMPLETED: set(),
    CANCELLED: set(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


class InterviewRepository:
    """Stores interviews; flushes inside the caller's transaction, never commits."""

    def __init__(self, session):
        self.session = session

    def get(self, interview_id: int):
        with storage_errors(self.session, "load interview", interview_id=interview_id):
            return self.session.get(Interview, interview_id)

    def get_or_404(self, interview_id: int) -> Interview:
        interview = self.get(interview_id)
        if interview is None:
            raise NotFoundError("Interview not found", details={"interview_id": interview_id})
        return interview

    def get_by_idempotency_key(self, key: str):
        with storage_errors(self.session, "load interview by idempotency key"):
            return Interview.query.filter_by(idempotency_key=key).first()

    def find_scheduling_conflict(self, candidate_id: int, interviewer_id: int, start, end,
                                 exclude_interview_id: int = None):
        """
        Any non-cancelled interview of either participant touching [start, end].

        Bounds are inclusive, so back-to-back interviews for the same person
        also count as a conflict.
        """
        q = Interview.query.filter(
            or_(Interview.candidate_id == candidate_id, Interview.interviewer_id == interviewer_id),
            Interview.start_time <= end,
            Interview.end_time >= start,
            Interview.status != CANCELLED,
        )
        if exclude_interview_id is not None:
            q = q.filter(Interview.id != exclude_interview_id)
        with storage_errors(self.session, "find scheduling conflict",
                            candidate_id=candidate_id, interviewer_id=interviewer_id):
            return q.order_by(Interview.start_time.asc()).first()

    def lock_participants(self, *user_ids) -> None:
        """
        Row-lock the participants' user rows, lowest id first, so concurrent
        bookings sharing a candidate or interviewer run their conflict check
        one after the other. FOR UPDATE is a no-op on SQLite, which serialises
        writers at the first write instead.
        """
        ids = sorted({uid for uid in user_ids if uid is not None})
        stmt = select(User.id).where(User.id.in_(ids)).order_by(User.id.asc()).with_for_update()
        with storage_errors(self.session, "lock participants", user_ids=ids):
            self.session.execute(stmt).all()

    def list_interviews(self, candidate_id=None, interviewer_id=None, status=None,
                        page: int = 1, limit: int = 10):
        q = Interview.query
        if candidate_id is not None:
            q = q.filter(Interview.candidate_id == candidate_id)
        if interviewer_id is not None:
            q = q.filter(Interview.interviewer_id == interviewer_id)
        if status:
            q = q.filter(Interview.status == status)
        with storage_errors(self.session, "list interviews"):
            return paginate(q.order_by(Interview.start_time.asc()), page, limit)

    def create(self, *, title, candidate_id, interviewer_id, slot_id, start, end,
               description=None, video_link=None, idempotency_key=None) -> Interview:
        if end <= start:
            raise ValidationError("end_time must be after start_time", field="end_time")

        interview = Interview(
            title=title,
            description=description,
            start_time=start,
            end_time=end,
            status=SCHEDULED,
            video_link=video_link,
            candidate_id=candidate_id,
            interviewer_id=interviewer_id,
            slot_id=slot_id,
            idempotency_key=idempotency_key,
        )
        self.session.add(interview)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # uq_interview_slot_live or the idempotency key: last line of defence
            self.session.rollback()
            raise ConflictError(
                "Slot already has an interview",
                details={"slot_id": slot_id},
            ) from exc
        return interview

    def update_status(self, interview: Interview, new_status: str) -> Interview:
        if new_status not in STATUSES:
            raise ValidationError(
                f"status must be one of {', '.join(STATUSES)}", field="status",
            )
        if new_status == interview.status:
            return interview
        if not can_transition(interview.status, new_status):
            raise StateError(
                f"Cannot change interview from {interview.status} to {new_status}",
                details={"interview_id": interview.id, "status": interview.status},
            )
        interview.status = new_status
        with storage_errors(self.session, "update interview status", interview_id=interview.id):
            self.session.flush()
        return interview

    def delete(self, interview: Interview) -> None:
        with storage_errors(self.session, "delete interview", interview_id=interview.id):
            self.session.delete(interview)
            self.session.flush()
