from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import CANDIDATE, INTERVIEWER, ROLES, User
from security.password import MIN_PASSWORD_LENGTH, hash_password, verify_password
from security.rbac import require_roles
from security.session import bearer_token_from_request, create_session, revoke_session
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import user_to_dict

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

SELF_REGISTER_ROLES = {CANDIDATE, INTERVIEWER}


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()
    role = (data.get("role") or "").strip().lower()

    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify(error=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"), 400
    if len(name) < 2:
        return jsonify(error="name must be at least 2 characters"), 400
    if role not in SELF_REGISTER_ROLES:
        return jsonify(error="role must be candidate or interviewer"), 400

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="User already exists with this email"), 409

    pw_hash = hash_password(password, current_app.config.get("BCRYPT_ROUNDS", 12))
    user = User(email=email, password_hash=pw_hash, name=name, role=role)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="User already exists with this email"), 409

    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": role})
    token = create_session(user.id)
    return jsonify(user=user_to_dict(user), token=token), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    token = create_session(user.id)
    log_event("LOGIN_SUCCESS", user_id=user.id)
    return jsonify(user=user_to_dict(user), token=token), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(bearer_token_from_request())
    log_event("LOGOUT", user_id=g.user.id)
    return jsonify(message="Logged out"), 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user=user_to_dict(g.user)), 200


@auth_bp.get("/users")
@require_roles("admin")
def list_users():
    role = (request.args.get("role") or "").strip().lower()
    q = User.query
    if role:
        if role not in ROLES:
            return jsonify(error="Unknown role"), 400
        q = q.filter(User.role == role)
    users = q.order_by(User.created_at.desc()).limit(200).all()
    return jsonify([user_to_dict(u) for u in users]), 200
