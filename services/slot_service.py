from models.user import INTERVIEWER, User
from repositories import SlotRepository, storage_errors, transaction
from services.errors import NotFoundError, ValidationError
from services.policy import (
    SLOT_CREATE, SLOT_DELETE, SLOT_UPDATE, SLOT_VIEW, AuthorizationPolicy,
)
from utils.audit import log_event
from utils.timeutil import to_naive_utc


class SlotService:
    """Interviewer-side slot management, checked against the policy table."""

    def __init__(self, session, policy=None):
        self.session = session
        self.slots = SlotRepository(session)
        self.policy = policy or AuthorizationPolicy()

    def create_slot(self, principal, start, end, interviewer_id=None):
        if interviewer_id is None:
            if principal.is_admin:
                raise ValidationError("interviewer_id is required", field="interviewer_id")
            interviewer_id = principal.requester_id
        self.policy.authorize(principal, SLOT_CREATE, owners={interviewer_id})
        self._require_interviewer(interviewer_id)

        with transaction(self.session, "create slot", interviewer_id=interviewer_id):
            slot = self.slots.create_slot(interviewer_id, to_naive_utc(start), to_naive_utc(end))
            log_event("SLOT_CREATE", user_id=principal.requester_id, entity="slot", entity_id=slot.id,
                      commit=False)

        return slot

    def get_slot(self, principal, slot_id: int):
        slot = self.slots.get_or_404(slot_id)
        self.policy.authorize(principal, SLOT_VIEW, slot)
        return slot

    def list_slots(self, principal, interviewer_id=None, start_date=None, end_date=None,
                   available=None, page: int = 1, limit: int = 10):
        if interviewer_id is None and principal.requester_role == INTERVIEWER:
            interviewer_id = principal.requester_id
        if interviewer_id is not None:
            self.policy.authorize(principal, SLOT_VIEW, owners={interviewer_id})
        return self.slots.list_slots(
            interviewer_id=interviewer_id, start_date=start_date, end_date=end_date,
            available=available, page=page, limit=limit,
        )

    def update_slot(self, principal, slot_id: int, start=None, end=None, is_available=None):
        slot = self.slots.get_or_404(slot_id)
        self.policy.authorize(principal, SLOT_UPDATE, slot)

        with transaction(self.session, "update slot", slot_id=slot_id):
            if start is not None or end is not None:
                slot = self.slots.update_slot_time(
                    slot_id,
                    new_start=to_naive_utc(start) if start is not None else None,
                    new_end=to_naive_utc(end) if end is not None else None,
                )
            if is_available is not None:
                slot = self.slots.set_availability(slot_id, is_available)
            log_event("SLOT_UPDATE", user_id=principal.requester_id, entity="slot", entity_id=slot_id,
                      commit=False)
        return slot

    def delete_slot(self, principal, slot_id: int) -> None:
        slot = self.slots.get_or_404(slot_id)
        self.policy.authorize(principal, SLOT_DELETE, slot)

        with transaction(self.session, "delete slot", slot_id=slot_id):
            self.slots.delete_slot(slot_id)
            log_event("SLOT_DELETE", user_id=principal.requester_id, entity="slot", entity_id=slot_id,
                      commit=False)

    def _require_interviewer(self, interviewer_id: int) -> None:
        with storage_errors(self.session, "load interviewer", interviewer_id=interviewer_id):
            user = self.session.get(User, interviewer_id)
        if user is None or user.role != INTERVIEWER:
            raise NotFoundError("Interviewer not found", details={"interviewer_id": interviewer_id})
