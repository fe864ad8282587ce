# utils/audit_logger.py
import json
import logging

from audit.models import AuditLog
from extensions import db
from utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def log_audit_action(user_id, action, table_name, record_id=None, old=None, new=None):
    """
    Record an admin action in the audit table (best-effort).
    A failing audit write never breaks the caller's already-committed change.
    """
    old_json = json.dumps(old, default=str) if old else None
    new_json = json.dumps(new, default=str) if new else None

    try:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            table_name=table_name,
            record_id=record_id,
            old_value=old_json,
            new_value=new_json,
            timestamp=utcnow(),
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    except Exception as db_err:
        db.session.rollback()
        logger.warning("[Audit Logger] Failed to save locally: %s", db_err)
        return None
