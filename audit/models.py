# audit/models.py

from extensions import db
from utils.time_utils import utcnow


class AuditLog(db.Model):
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False)          # who made the change
    action = db.Column(db.String(255), nullable=False)       # e.g., "update member"
    table_name = db.Column(db.String(100), nullable=False)   # e.g., "User"
    record_id = db.Column(db.Integer, nullable=True)
    old_value = db.Column(db.Text)                           # JSON string (before update)
    new_value = db.Column(db.Text)                           # JSON string (after update)
    timestamp = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "timestamp": self.timestamp.strftime("%Y-%m-%d %H:%M:%S") if self.timestamp else None
        }
