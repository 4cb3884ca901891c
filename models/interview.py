from sqlalchemy import text

from models.db import db
from utils.timeutil import utcnow

SCHEDULED = "SCHEDULED"
COMPLETED = "COMPLETED"
CANCELLED = "CANCELLED"
RESCHEDULED = "RESCHEDULED"
STATUSES = (SCHEDULED, COMPLETED, CANCELLED, RESCHEDULED)


class Interview(db.Model):
    __tablename__ = "interviews"

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)

    # Frozen copy of the slot bounds at booking time; later slot edits never move it.
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=SCHEDULED)
    video_link = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.String(1000), nullable=True)

    candidate_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    interviewer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    # No foreign key: cancelled interviews outlive a deleted slot as history.
    slot_id = db.Column(db.Integer, nullable=False)

    idempotency_key = db.Column(db.String(128), nullable=True, unique=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    candidate = db.relationship("User", foreign_keys=[candidate_id], lazy="joined")
    interviewer = db.relationship("User", foreign_keys=[interviewer_id], lazy="joined")

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_interview_time_order"),
        db.Index("ix_interviews_candidate_start", "candidate_id", "start_time"),
        db.Index("ix_interviews_interviewer_start", "interviewer_id", "start_time"),
        # Hard business-rule: one live interview per slot (prevents double booking).
        # Cancelled rows stay for history and drop out of the index so the freed
        # slot can be booked again.
        db.Index(
            "uq_interview_slot_live",
            "slot_id",
            unique=True,
            sqlite_where=text("status != 'CANCELLED'"),
            postgresql_where=text("status != 'CANCELLED'"),
        ),
    )
