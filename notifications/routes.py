# notifications/routes.py
from flask import Blueprint, request, jsonify
from notifications.models import TelegramSubscriber
from notifications.utils import subscribe, unsubscribe
from users.utils import admin_required

notifications_bp = Blueprint("notifications", __name__)


# -------- List Telegram subscribers --------
@notifications_bp.route("/subscribers", methods=["GET"])
@admin_required
def list_subscribers():
    subs = TelegramSubscriber.query.order_by(TelegramSubscriber.id).all()
    return jsonify([s.to_dict() for s in subs]), 200


# -------- Add a chat to broadcasts --------
@notifications_bp.route("/subscribers", methods=["POST"])
@admin_required
def add_subscriber():
    data = request.get_json() or {}
    try:
        chat_id = int(data.get("chat_id"))
    except (TypeError, ValueError):
        return jsonify({"error": "chat_id required"}), 400

    sub, created = subscribe(chat_id, data.get("username"))
    return jsonify(sub.to_dict()), 201 if created else 200


# -------- Remove a chat --------
@notifications_bp.route("/subscribers/<int:chat_id>", methods=["DELETE"])
@admin_required
def remove_subscriber(chat_id):
    if not unsubscribe(chat_id):
        return jsonify({"error": "Subscriber not found"}), 404
    return jsonify({"message": "Unsubscribed", "chat_id": chat_id}), 200
