"""
Booking Service.

Books slots into interviews and keeps slot availability and interview status
consistent:

* a slot is claimed with one conditional UPDATE (``is_available`` true ->
  false); only the caller whose UPDATE applied may insert the interview, and
  the partial unique index on ``interviews.slot_id`` backs that up;
* the claim, the interview insert, the slot back-reference and the audit row
  commit or roll back together;
* the participant overlap check runs again inside that transaction, after the
  participants' user rows are locked and the new interview is flushed;
* cancel and delete release the slot in the same transaction that changes
  the interview, and only if the slot is still held by that interview.

Notifications run after the commit through a ``NotificationDispatcher`` and
can never fail a booking.
"""
import logging

from models.interview import CANCELLED, COMPLETED, STATUSES
from models.user import CANDIDATE, User
from repositories import InterviewRepository, SlotRepository, storage_errors, transaction
from services.errors import (
    ConflictError, NotFoundError, StateError, StorageError, ValidationError,
)
from services.notifications import (
    NotificationDispatcher, RecordingNotificationPort, contact_for, summarize,
)
from services.policy import (
    INTERVIEW_BOOK, INTERVIEW_CANCEL, INTERVIEW_DELETE, INTERVIEW_UPDATE, INTERVIEW_VIEW,
    AuthorizationPolicy,
)
from services.video import make_video_link_generator
from utils.audit import log_event
from utils.timeutil import to_naive_utc

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "description", "status", "video_link", "notes"})


class BookingService:
    def __init__(self, session, policy=None, notifier=None, video_link_generator=None):
        self.session = session
        self.slots = SlotRepository(session)
        self.interviews = InterviewRepository(session)
        self.policy = policy or AuthorizationPolicy()
        self.notifier = notifier or NotificationDispatcher(RecordingNotificationPort())
        self.video_link_generator = video_link_generator or make_video_link_generator()

    # ---------- booking ----------
    def book_interview(self, principal, *, interviewer_id, slot_id, title, start, end,
                       candidate_id=None, description=None, idempotency_key=None):
        candidate_id = self._resolve_candidate(principal, candidate_id)
        self.policy.authorize(principal, INTERVIEW_BOOK, owners={candidate_id})

        if not (title or "").strip():
            raise ValidationError("title is required", field="title")
        start, end = to_naive_utc(start), to_naive_utc(end)

        if idempotency_key:
            existing = self.interviews.get_by_idempotency_key(idempotency_key)
            if existing is not None:
                return self._replay(existing, candidate_id, slot_id)

        slot = self.slots.get_or_404(slot_id)
        if slot.state != "AVAILABLE":
            raise StateError("Slot is not available", details={"slot_id": slot_id})
        if slot.interviewer_id != interviewer_id:
            raise ValidationError(
                "Slot does not belong to the specified interviewer", field="interviewer_id",
            )
        if slot.start_time != start or slot.end_time != end:
            raise ValidationError(
                "Interview time must match slot time",
                field="start_time",
                details={
                    "slot_start_time": slot.start_time.isoformat(),
                    "slot_end_time": slot.end_time.isoformat(),
                },
            )

        # Independent of slot availability: a participant may already hold an
        # overlapping interview on a different slot.
        self._raise_if_scheduling_conflict(candidate_id, interviewer_id, start, end)

        try:
            with transaction(self.session, "book interview", slot_id=slot_id):
                self.interviews.lock_participants(candidate_id, interviewer_id)
                if not self.slots.claim(slot_id, start, end):
                    raise StateError("Slot is not available", details={"slot_id": slot_id})
                interview = self.interviews.create(
                    title=title.strip(),
                    description=description,
                    start=start,
                    end=end,
                    candidate_id=candidate_id,
                    interviewer_id=interviewer_id,
                    slot_id=slot_id,
                    video_link=self.video_link_generator(),
                    idempotency_key=idempotency_key,
                )
                # Re-run after the insert: a concurrent booking for the same
                # participant has either committed by now or waits behind us.
                self._raise_if_scheduling_conflict(
                    candidate_id, interviewer_id, start, end, exclude_interview_id=interview.id,
                )
                self.slots.attach_interview(slot_id, interview.id)
                log_event("INTERVIEW_BOOK", user_id=principal.requester_id, entity="interview",
                          entity_id=interview.id,
                          metadata={"slot_id": slot_id, "candidate_id": candidate_id}, commit=False)
        except ConflictError as exc:
            if idempotency_key:
                # lost a race against a retry carrying the same key
                existing = self.interviews.get_by_idempotency_key(idempotency_key)
                if existing is not None:
                    return self._replay(existing, candidate_id, slot_id)
            reason = "SCHEDULING_CONFLICT" if "conflicting_interview_id" in exc.details else "ALREADY_BOOKED"
            self._audit_failure(principal, slot_id, reason)
            raise
        except StateError:
            self._audit_failure(principal, slot_id, "SLOT_TAKEN")
            raise

        logger.info("interview %s booked on slot %s for candidate %s", interview.id, slot_id, candidate_id)

        self.notifier.booked(
            contact_for(interview.candidate), contact_for(interview.interviewer), summarize(interview),
        )
        return interview

    # ---------- lifecycle ----------
    def cancel_interview(self, principal, interview_id: int, reason: str = None):
        interview = self.interviews.get_or_404(interview_id)
        self.policy.authorize(principal, INTERVIEW_CANCEL, interview)

        if interview.status == CANCELLED:
            # repeated cancel is a no-op returning the current state
            return interview
        if interview.status == COMPLETED:
            raise StateError(
                "Completed interviews cannot be cancelled",
                details={"interview_id": interview_id, "status": interview.status},
            )

        with transaction(self.session, "cancel interview", interview_id=interview_id):
            self.interviews.update_status(interview, CANCELLED)
            self.slots.release(interview.slot_id, interview.id)
            log_event("INTERVIEW_CANCEL", user_id=principal.requester_id, entity="interview",
                      entity_id=interview_id, metadata={"reason": reason}, commit=False)

        self._notify_cancelled(interview, reason or "Interview cancelled by user")
        return interview

    def delete_interview(self, principal, interview_id: int) -> None:
        interview = self.interviews.get_or_404(interview_id)
        self.policy.authorize(principal, INTERVIEW_DELETE, interview)

        slot_id = interview.slot_id
        with transaction(self.session, "delete interview", interview_id=interview_id):
            self.slots.release(slot_id, interview.id)
            self.interviews.delete(interview)
            log_event("INTERVIEW_DELETE", user_id=principal.requester_id, entity="interview",
                      entity_id=interview_id, metadata={"slot_id": slot_id}, commit=False)

    def update_interview(self, principal, interview_id: int, patch: dict):
        patch = dict(patch or {})
        unknown = sorted(set(patch) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                "Only title, description, status, video_link and notes can be changed; "
                "cancel and book again to move an interview",
                field=unknown[0],
                details={"fields": unknown},
            )

        interview = self.interviews.get_or_404(interview_id)
        self.policy.authorize(principal, INTERVIEW_UPDATE, interview)

        if "title" in patch and not (patch["title"] or "").strip():
            raise ValidationError("title cannot be empty", field="title")

        new_status = patch.pop("status", None)
        if new_status is not None and new_status not in STATUSES:
            raise ValidationError(f"status must be one of {', '.join(STATUSES)}", field="status")
        cancelling = new_status == CANCELLED and interview.status != CANCELLED

        with transaction(self.session, "update interview", interview_id=interview_id):
            for field, value in patch.items():
                setattr(interview, field, value)
            if new_status is not None:
                self.interviews.update_status(interview, new_status)
                if cancelling:
                    self.slots.release(interview.slot_id, interview.id)
            log_event("INTERVIEW_UPDATE", user_id=principal.requester_id, entity="interview",
                      entity_id=interview_id,
                      metadata={"fields": sorted(patch), "status": new_status}, commit=False)

        if cancelling:
            self._notify_cancelled(interview, "Interview cancelled by interviewer")
        return interview

    # ---------- reads ----------
    def get_interview(self, principal, interview_id: int):
        interview = self.interviews.get_or_404(interview_id)
        self.policy.authorize(principal, INTERVIEW_VIEW, interview)
        return interview

    def list_interviews(self, principal, status=None, page: int = 1, limit: int = 10):
        if status and status not in STATUSES:
            raise ValidationError(f"status must be one of {', '.join(STATUSES)}", field="status")

        filters = {}
        if not principal.is_admin:
            if principal.requester_role == CANDIDATE:
                filters["candidate_id"] = principal.requester_id
            else:
                filters["interviewer_id"] = principal.requester_id
        return self.interviews.list_interviews(status=status, page=page, limit=limit, **filters)

    # ---------- helpers ----------
    def _resolve_candidate(self, principal, candidate_id):
        if not principal.is_admin:
            # a candidate naming someone else is rejected by the policy table
            return candidate_id if candidate_id is not None else principal.requester_id
        if candidate_id is None:
            raise ValidationError("candidate_id is required when booking on behalf of a candidate",
                                  field="candidate_id")
        with storage_errors(self.session, "load candidate", candidate_id=candidate_id):
            user = self.session.get(User, candidate_id)
        if user is None or user.role != CANDIDATE:
            raise NotFoundError("Candidate not found", details={"candidate_id": candidate_id})
        return candidate_id

    @staticmethod
    def _replay(existing, candidate_id, slot_id):
        if existing.candidate_id != candidate_id or existing.slot_id != slot_id:
            raise ConflictError(
                "Idempotency key already used for a different booking",
                details={"interview_id": existing.id},
            )
        return existing

    def _notify_cancelled(self, interview, reason):
        self.notifier.cancelled(
            contact_for(interview.candidate), summarize(interview), reason,
            contact_for(interview.interviewer),
        )

    def _raise_if_scheduling_conflict(self, candidate_id, interviewer_id, start, end,
                                      exclude_interview_id=None):
        conflict = self.interviews.find_scheduling_conflict(
            candidate_id, interviewer_id, start, end, exclude_interview_id=exclude_interview_id,
        )
        if conflict is not None:
            raise ConflictError(
                "Scheduling conflict detected",
                details={"conflicting_interview_id": conflict.id},
            )

    def _audit_failure(self, principal, slot_id, reason):
        # Called while a booking error is propagating; that error is what the
        # caller gets, an audit write failure is only logged by storage_errors.
        try:
            with storage_errors(self.session, "audit failed booking", slot_id=slot_id):
                log_event("INTERVIEW_BOOK_FAIL", user_id=principal.requester_id, entity="slot",
                          entity_id=slot_id, metadata={"reason": reason})
        except StorageError:
            pass
