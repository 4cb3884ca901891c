from flask import Blueprint, request, jsonify

from routes.deps import booking_service
from services.booking_service import UPDATABLE_FIELDS
from utils.auth_context import current_principal, login_required
from utils.payloads import (
    datetime_field, int_field, page_args, pagination, text_field, url_field,
)
from utils.serializers import interview_to_dict

interviews_bp = Blueprint("interviews", __name__, url_prefix="/interviews")


# ---------- CANDIDATE/ADMIN: book a slot (DOUBLE-BOOKING SAFE) ----------
@interviews_bp.post("")
@login_required
def book_interview():
    data = request.get_json(silent=True) or {}
    title = text_field(data, "title", required=True, min_len=3, max_len=100)
    description = text_field(data, "description", max_len=500) or None
    start = datetime_field(data, "start_time", future=True)
    end = datetime_field(data, "end_time")
    interviewer_id = int_field(data, "interviewer_id")
    slot_id = int_field(data, "slot_id")
    candidate_id = int_field(data, "candidate_id", required=False)
    idempotency_key = (request.headers.get("Idempotency-Key") or "").strip()[:128] or None

    interview = booking_service().book_interview(
        current_principal(),
        candidate_id=candidate_id,
        interviewer_id=interviewer_id,
        slot_id=slot_id,
        title=title,
        description=description,
        start=start,
        end=end,
        idempotency_key=idempotency_key,
    )
    return jsonify(message="Interview scheduled successfully", interview=interview_to_dict(interview)), 201


# ---------- ROLE-SCOPED: candidates and interviewers see their own ----------
@interviews_bp.get("")
@login_required
def list_interviews():
    status = (request.args.get("status") or "").strip().upper() or None
    page, limit = page_args(request.args)
    rows, total = booking_service().list_interviews(current_principal(), status=status, page=page, limit=limit)
    return jsonify(
        interviews=[interview_to_dict(i) for i in rows],
        pagination=pagination(page, limit, total),
    ), 200


@interviews_bp.get("/<int:interview_id>")
@login_required
def get_interview(interview_id: int):
    interview = booking_service().get_interview(current_principal(), interview_id)
    return jsonify(interview=interview_to_dict(interview)), 200


@interviews_bp.put("/<int:interview_id>")
@login_required
def update_interview(interview_id: int):
    data = request.get_json(silent=True) or {}
    # keys outside UPDATABLE_FIELDS go through untouched; the service rejects them
    patch = {key: data[key] for key in set(data) - UPDATABLE_FIELDS}
    if "title" in data:
        patch["title"] = text_field(data, "title", required=True, min_len=3, max_len=100)
    if "description" in data:
        patch["description"] = text_field(data, "description", max_len=500) or None
    if "status" in data:
        patch["status"] = (text_field(data, "status", required=True) or "").upper()
    if "video_link" in data:
        patch["video_link"] = url_field(data, "video_link") or None
    if "notes" in data:
        patch["notes"] = text_field(data, "notes", max_len=1000) or None

    interview = booking_service().update_interview(current_principal(), interview_id, patch)
    return jsonify(message="Interview updated successfully", interview=interview_to_dict(interview)), 200


@interviews_bp.patch("/<int:interview_id>/cancel")
@login_required
def cancel_interview(interview_id: int):
    data = request.get_json(silent=True) or {}
    reason = text_field(data, "reason", max_len=255) or None
    interview = booking_service().cancel_interview(current_principal(), interview_id, reason=reason)
    return jsonify(message="Interview cancelled successfully", interview=interview_to_dict(interview)), 200


@interviews_bp.delete("/<int:interview_id>")
@login_required
def delete_interview(interview_id: int):
    booking_service().delete_interview(current_principal(), interview_id)
    return jsonify(message="Interview deleted successfully"), 200
