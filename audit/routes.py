from flask import Blueprint, jsonify, request
from audit.models import AuditLog
from users.utils import admin_required

audit_bp = Blueprint('audit', __name__, url_prefix='/api/audit')


@audit_bp.route('/logs', methods=['GET'])
@admin_required
def get_all_logs():
    query = AuditLog.query
    record_id = request.args.get("record_id", type=int)
    if record_id is not None:
        query = query.filter_by(table_name="User", record_id=record_id)
    logs = query.order_by(AuditLog.timestamp.desc()).all()
    return jsonify([log.to_dict() for log in logs]), 200
