"""
Who may do what.

One table maps ``(operation, role)`` to a rule instead of role checks spread
across the routes. The services receive an ``AuthorizationPolicy`` and call
``authorize`` before touching a record.
"""
from dataclasses import dataclass

from models.user import ADMIN, CANDIDATE, INTERVIEWER, ROLES
from services.errors import ForbiddenError

ALLOW = "ALLOW"
OWNER = "OWNER"
DENY = "DENY"

SLOT_CREATE = "slot.create"
SLOT_VIEW = "slot.view"
SLOT_UPDATE = "slot.update"
SLOT_DELETE = "slot.delete"
INTERVIEW_BOOK = "interview.book"
INTERVIEW_VIEW = "interview.view"
INTERVIEW_UPDATE = "interview.update"
INTERVIEW_CANCEL = "interview.cancel"
INTERVIEW_DELETE = "interview.delete"

DEFAULT_RULES = {
    SLOT_CREATE:      {CANDIDATE: DENY,  INTERVIEWER: OWNER, ADMIN: ALLOW},
    SLOT_VIEW:        {CANDIDATE: ALLOW, INTERVIEWER: ALLOW, ADMIN: ALLOW},
    SLOT_UPDATE:      {CANDIDATE: DENY,  INTERVIEWER: OWNER, ADMIN: ALLOW},
    SLOT_DELETE:      {CANDIDATE: DENY,  INTERVIEWER: OWNER, ADMIN: ALLOW},
    INTERVIEW_BOOK:   {CANDIDATE: OWNER, INTERVIEWER: DENY,  ADMIN: ALLOW},
    INTERVIEW_VIEW:   {CANDIDATE: OWNER, INTERVIEWER: OWNER, ADMIN: ALLOW},
    INTERVIEW_UPDATE: {CANDIDATE: DENY,  INTERVIEWER: OWNER, ADMIN: ALLOW},
    INTERVIEW_CANCEL: {CANDIDATE: OWNER, INTERVIEWER: OWNER, ADMIN: ALLOW},
    INTERVIEW_DELETE: {CANDIDATE: DENY,  INTERVIEWER: OWNER, ADMIN: ALLOW},
}


@dataclass(frozen=True)
class Principal:
    """Identity resolved by the access-control guard before any service call."""

    requester_id: int
    requester_role: str

    @property
    def is_admin(self) -> bool:
        return self.requester_role == ADMIN


def owner_ids(record) -> set:
    """Ids that own a slot (its interviewer) or an interview (both participants)."""
    ids = set()
    for attr in ("candidate_id", "interviewer_id"):
        value = getattr(record, attr, None)
        if value is not None:
            ids.add(value)
    return ids


class AuthorizationPolicy:
    def __init__(self, rules=None):
        self.rules = rules or DEFAULT_RULES

    def rule_for(self, operation: str, role: str) -> str:
        return self.rules.get(operation, {}).get(role, DENY)

    def is_allowed(self, principal: Principal, operation: str, owners=None) -> bool:
        if principal is None or principal.requester_role not in ROLES:
            return False
        rule = self.rule_for(operation, principal.requester_role)
        if rule == ALLOW:
            return True
        if rule == OWNER:
            return principal.requester_id in set(owners or ())
        return False

    def authorize(self, principal: Principal, operation: str, record=None, owners=None) -> None:
        if owners is None and record is not None:
            owners = owner_ids(record)
        if not self.is_allowed(principal, operation, owners):
            raise ForbiddenError("Access denied", details={"operation": operation})
