from models.db import db
from utils.timeutil import utcnow


class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    interviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    is_available = db.Column(db.Boolean, default=True, nullable=False, index=True)

    # Weak back-reference for lookups only; the interview row is the authority
    # on which slot it occupies, so there is no foreign key here.
    interview_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    interviewer = db.relationship("User", foreign_keys=[interviewer_id], lazy="joined")

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_slot_time_order"),
        db.Index("ix_slots_interviewer_start", "interviewer_id", "start_time"),
        db.Index("ix_slots_start_end", "start_time", "end_time"),
    )

    @property
    def state(self) -> str:
        if self.interview_id is not None:
            return "HELD"
        return "AVAILABLE" if self.is_available else "UNAVAILABLE"
