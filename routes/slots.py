from flask import Blueprint, request, jsonify

from routes.deps import slot_service
from utils.auth_context import current_principal, login_required
from utils.payloads import (
    bool_value, datetime_field, int_field, page_args, pagination,
)
from utils.serializers import slot_to_dict

slots_bp = Blueprint("slots", __name__, url_prefix="/slots")


# ---------- INTERVIEWER/ADMIN: create slots ----------
@slots_bp.post("")
@login_required
def create_slot():
    data = request.get_json(silent=True) or {}
    start = datetime_field(data, "start_time", future=True)
    end = datetime_field(data, "end_time")
    interviewer_id = int_field(data, "interviewer_id", required=False)

    slot = slot_service().create_slot(current_principal(), start, end, interviewer_id=interviewer_id)
    return jsonify(message="Time slot created successfully", slot=slot_to_dict(slot)), 201


# ---------- ANY ROLE: view slots (interviewers default to their own) ----------
@slots_bp.get("")
@login_required
def list_slots():
    args = request.args
    interviewer_id = int_field(args, "interviewer_id", required=False)
    start_date = datetime_field(args, "start_date", required=False)
    end_date = datetime_field(args, "end_date", required=False)
    available = bool_value(args.get("available"), "available")
    page, limit = page_args(args)

    rows, total = slot_service().list_slots(
        current_principal(),
        interviewer_id=interviewer_id,
        start_date=start_date,
        end_date=end_date,
        available=available,
        page=page,
        limit=limit,
    )
    return jsonify(
        slots=[slot_to_dict(s) for s in rows],
        pagination=pagination(page, limit, total),
    ), 200


@slots_bp.get("/<int:slot_id>")
@login_required
def get_slot(slot_id: int):
    slot = slot_service().get_slot(current_principal(), slot_id)
    return jsonify(slot=slot_to_dict(slot)), 200


# ---------- OWNER/ADMIN: edit or remove unbooked slots ----------
@slots_bp.put("/<int:slot_id>")
@login_required
def update_slot(slot_id: int):
    data = request.get_json(silent=True) or {}
    start = datetime_field(data, "start_time", required=False, future=True)
    end = datetime_field(data, "end_time", required=False)
    is_available = bool_value(data.get("is_available"), "is_available")

    slot = slot_service().update_slot(
        current_principal(), slot_id, start=start, end=end, is_available=is_available,
    )
    return jsonify(message="Slot updated successfully", slot=slot_to_dict(slot)), 200


@slots_bp.delete("/<int:slot_id>")
@login_required
def delete_slot(slot_id: int):
    slot_service().delete_slot(current_principal(), slot_id)
    return jsonify(message="Slot deleted successfully"), 200
