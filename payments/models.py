# payments/models.py

from extensions import db
from utils.time_utils import utcnow


class Payment(db.Model):
    """One interval of paid coverage. Rows are appended, never edited."""
    __tablename__ = "payments"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    start_date = db.Column(db.Date, nullable=False, index=True)
    end_date = db.Column(db.Date, nullable=False, index=True)
    paid_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=True)
    payment_type = db.Column(db.String(32), default="erip")   # erip / cash / other
    erip_transaction_id = db.Column(db.String(64), unique=True, nullable=True)  # bePaid transaction uid
    raw_payload = db.Column(db.Text, nullable=True)           # full JSON from bePaid

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "paid_at": self.paid_at.strftime("%Y-%m-%d %H:%M:%S") if self.paid_at else None,
            "amount": float(self.amount) if self.amount is not None else None,
            "payment_type": self.payment_type,
            "erip_transaction_id": self.erip_transaction_id,
        }

    def __repr__(self):
        return f"<Payment user={self.user_id} {self.start_date}..{self.end_date}>"
