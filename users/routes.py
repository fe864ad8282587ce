from datetime import date

from flask import Blueprint, Response, current_app, request, jsonify
from flask_jwt_extended import (
    create_access_token, set_access_cookies, unset_jwt_cookies, jwt_required
)

from extensions import db
from users.cohorts import active_members, get_cohort_report, members_with_debt, suspended_today
from users.export import member_to_dict, members_to_csv
from users.models import Role, User
from users.service import MemberValidationError, persist_member, save_member
from users.status import suspend, unsuspend
from users.utils import admin_required, current_user
from utils.time_utils import add_months, utcnow

users_bp = Blueprint('users', __name__, url_prefix='/api/users')

# fields a member may change on their own profile
PROFILE_FIELDS = ("email", "hacker_comment", "first_name", "last_name")
# extra fields only admins may change
ADMIN_FIELDS = PROFILE_FIELDS + (
    "telegram_username", "github_username", "alice_greeting", "bepaid_number",
    "tariff_id", "guarantor1_id", "guarantor2_id", "account_banned", "is_learner",
    "last_seen_in_hackerspace",
)


def _permitted(data, allowed):
    return {k: v for k, v in (data or {}).items() if k in allowed}


def _member_response(user, status=200):
    body = member_to_dict(user)
    if user.errors:
        body["warnings"] = list(user.errors)
    return jsonify(body), status


def _parse_date(value, default=None):
    if not value:
        return default
    return date.fromisoformat(value)


# ✅ Login Route (tracks sign-ins, used by the "active" cohort)
@users_bp.route('/login', methods=['POST'])
def login_user():
    data = request.get_json() or {}
    email = (data.get('email') or '').strip()
    password = data.get('password')

    if not email or not password:
        return jsonify({'error': 'Missing credentials'}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not user.check_password(password):
        return jsonify({'error': 'Invalid credentials'}), 401

    now = utcnow()
    user.sign_in_count = (user.sign_in_count or 0) + 1
    user.last_sign_in_at = user.current_sign_in_at or now
    user.current_sign_in_at = now
    persist_member(user, now)

    access_token = create_access_token(identity=str(user.id))
    resp = jsonify({
        'message': 'Login successful',
        'id': user.id,
        'roles': [r.name for r in user.roles],
        'access_token': access_token,
    })
    set_access_cookies(resp, access_token)
    return resp, 200


# ✅ Logout Route
@users_bp.route('/logout', methods=['POST'])
def logout_user():
    resp = jsonify({"message": "Logout successful"})
    unset_jwt_cookies(resp)
    return resp, 200


@users_bp.route('/me', methods=['GET'])
@jwt_required()
def get_me():
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404
    return _member_response(user)


# -------- Members list (JSON or CSV) --------
@users_bp.route('/', methods=['GET'])
@jwt_required()
def list_members():
    users = User.query.order_by(User.id).all()
    if request.args.get("format") == "csv":
        with_nfc = request.args.get("nfc") in ("1", "true")
        if with_nfc:
            # door controllers (device role) and admins only
            actor = current_user()
            if actor is None or not (actor.is_admin or actor.is_device):
                return jsonify({"error": "Forbidden"}), 403
        csv_body = members_to_csv(users, with_nfc=with_nfc)
        return Response(
            csv_body,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=hackers.csv"},
        )
    return jsonify([member_to_dict(u) for u in users]), 200


# -------- Register a member (admin) --------
@users_bp.route('/', methods=['POST'])
@admin_required
def create_member():
    data = request.get_json() or {}
    user = User()
    if data.get("password"):
        user.set_password(data["password"])

    role_names = data.get("roles") or ["hacker"]
    user.roles = Role.query.filter(Role.name.in_(role_names)).all()

    try:
        save_member(user, _permitted(data, ADMIN_FIELDS), actor_id=current_user().id)
    except MemberValidationError as e:
        db.session.rollback()
        return jsonify({"errors": e.errors}), 422

    current_app.logger.info(f"Member {user.id} registered")
    return _member_response(user, 201)


@users_bp.route('/<int:user_id>', methods=['GET'])
@jwt_required()
def show_member(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return _member_response(user)


# -------- Profile update --------
@users_bp.route('/<int:user_id>', methods=['PATCH', 'PUT'])
@jwt_required()
def update_member(user_id):
    actor = current_user()
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    if actor is None or (actor.id != user.id and not actor.is_admin):
        return jsonify({"error": "Forbidden"}), 403

    allowed = ADMIN_FIELDS if actor.is_admin else PROFILE_FIELDS
    try:
        save_member(user, _permitted(request.get_json(), allowed), actor_id=actor.id)
    except MemberValidationError as e:
        return jsonify({"errors": e.errors}), 422

    return _member_response(user)


# -------- Suspension (admin) --------
@users_bp.route('/<int:user_id>/suspend', methods=['POST'])
@admin_required
def suspend_member(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    if not user.account_suspended:
        suspend(user)
    return _member_response(user)


@users_bp.route('/<int:user_id>/unsuspend', methods=['POST'])
@admin_required
def unsuspend_member(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    if user.account_suspended:
        unsuspend(user)
    return _member_response(user)


# -------- Telegram auth token --------
@users_bp.route('/me/tg-token', methods=['POST'])
@jwt_required()
def issue_tg_token():
    user = current_user()
    if not user:
        return jsonify({"error": "User not found"}), 404
    token = user.generate_tg_auth_token()
    persist_member(user)
    return jsonify({
        "token": token,
        "expires_at": user.tg_auth_token_expiry.isoformat(),
    }), 200


@users_bp.route('/by-tg-token/<token>', methods=['GET'])
@admin_required
def find_by_tg_token(token):
    user = User.find_by_auth_token(token)
    if not user:
        return jsonify({"error": "Token not found or expired"}), 404
    return _member_response(user)


# -------- Reports --------
@users_bp.route('/reports/active', methods=['GET'])
@admin_required
def report_active():
    return jsonify([member_to_dict(u) for u in active_members()]), 200


@users_bp.route('/reports/debtors', methods=['GET'])
@admin_required
def report_debtors():
    return jsonify([member_to_dict(u) for u in members_with_debt()]), 200


@users_bp.route('/reports/suspended-today', methods=['GET'])
@admin_required
def report_suspended_today():
    return jsonify([member_to_dict(u) for u in suspended_today()]), 200


@users_bp.route('/reports/paid-graph', methods=['GET'])
@admin_required
def report_paid_graph():
    try:
        end = _parse_date(request.args.get("end"), utcnow().date())
        start = _parse_date(request.args.get("start"), add_months(end, -12))
    except ValueError:
        return jsonify({"error": "start/end must be ISO dates (YYYY-MM-DD)"}), 400
    if start > end:
        return jsonify({"error": "start must not be after end"}), 400

    graph = get_cohort_report().paid_users_graph(start, end)
    return jsonify([{"month": d.isoformat(), "members": count} for d, count in graph]), 200
