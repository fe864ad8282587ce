# notifications/utils.py
from extensions import db
from notifications.models import TelegramSubscriber


def subscribe(chat_id: int, username: str | None = None):
    sub = TelegramSubscriber.query.filter_by(chat_id=chat_id).first()
    if sub:
        return sub, False
    sub = TelegramSubscriber(chat_id=chat_id, username=(username or None))
    db.session.add(sub)
    db.session.commit()
    return sub, True


def unsubscribe(chat_id: int) -> bool:
    sub = TelegramSubscriber.query.filter_by(chat_id=chat_id).first()
    if not sub:
        return False
    db.session.delete(sub)
    db.session.commit()
    return True


def subscriber_chat_ids() -> list[int]:
    return [row.chat_id for row in TelegramSubscriber.query.order_by(TelegramSubscriber.id).all()]
