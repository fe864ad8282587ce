# payments/routes.py
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from flask import Blueprint, current_app, request, jsonify
from flask_jwt_extended import jwt_required

from extensions import db
from payments.ledger import payments_for
from payments.service import PaymentRejected, confirm_payment
from users.models import User, get_config
from users.utils import admin_required, current_user

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


def _parse_paid_at(value):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _notification_authorized():
    """bePaid signs notifications with the shop id / secret as basic auth."""
    cfg = current_app.config
    shop_id = get_config("bePaid_ID", cfg.get("BEPAID_SHOP_ID"))
    secret = get_config("bePaid_secret", cfg.get("BEPAID_SECRET"))
    auth = request.authorization
    if not shop_id or not secret or auth is None:
        return False
    return auth.username == str(shop_id) and auth.password == str(secret)


@payments_bp.route("/bepaid/notify", methods=["POST"])
def bepaid_notify():
    """
    bePaid ERIP notification. A successful transaction becomes one Payment
    for the member whose id is the ERIP account number.
    """
    if not _notification_authorized():
        return jsonify({"error": "Unauthorized"}), 401

    data = request.get_json(silent=True) or {}
    tx = data.get("transaction") or {}
    uid = tx.get("uid")
    status = tx.get("status")

    if status != "successful":
        current_app.logger.info(f"bePaid notify: ignoring transaction {uid} with status {status}")
        return jsonify({"message": "ignored", "status": status}), 200

    account = (tx.get("erip") or {}).get("account_number") or tx.get("order_id")
    try:
        user = db.session.get(User, int(account))
    except (TypeError, ValueError):
        user = None
    if not user:
        current_app.logger.warning(f"⚠️ bePaid notify: no member for account {account} (tx {uid})")
        return jsonify({"error": "member not found"}), 404

    try:
        amount = Decimal(str(tx.get("amount"))) / 100
    except (InvalidOperation, TypeError):
        return jsonify({"error": "invalid amount"}), 400

    try:
        payment, created = confirm_payment(
            user,
            amount,
            paid_at=_parse_paid_at(tx.get("paid_at")),
            transaction_uid=uid,
            raw=data,
        )
    except PaymentRejected as e:
        current_app.logger.warning(f"bePaid notify rejected for member {user.id}: {e}")
        return jsonify({"error": str(e)}), 422

    return jsonify({"payment": payment.to_dict(), "created": created}), 201 if created else 200


@payments_bp.route("/manual", methods=["POST"])
@admin_required
def record_manual_payment():
    """Cash payment entered by an admin: { "user_id": int, "amount": "50.00" }."""
    data = request.get_json() or {}
    try:
        user = db.session.get(User, int(data.get("user_id")))
        amount = Decimal(str(data.get("amount")))
    except (TypeError, ValueError, InvalidOperation):
        return jsonify({"error": "user_id and amount required"}), 400
    if not user:
        return jsonify({"error": "member not found"}), 404

    try:
        payment, _ = confirm_payment(
            user, amount, paid_at=_parse_paid_at(data.get("paid_at")), payment_type="cash"
        )
    except PaymentRejected as e:
        return jsonify({"error": str(e)}), 422
    return jsonify(payment.to_dict()), 201


@payments_bp.route("/<int:user_id>", methods=["GET"])
@jwt_required()
def member_payments(user_id):
    actor = current_user()
    if actor is None or (actor.id != user_id and not actor.is_admin):
        return jsonify({"error": "Forbidden"}), 403
    return jsonify([p.to_dict() for p in payments_for(user_id)]), 200
