# notifications/models.py
from extensions import db
from utils.time_utils import utcnow


class TelegramSubscriber(db.Model):
    """A Telegram chat that receives membership broadcasts."""
    __tablename__ = "telegram_subscribers"

    id         = db.Column(db.Integer, primary_key=True)
    chat_id    = db.Column(db.BigInteger, unique=True, nullable=False)
    username   = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "username": self.username,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        }

    def __repr__(self) -> str:
        return f"<TelegramSubscriber chat_id={self.chat_id}>"
