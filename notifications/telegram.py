# notifications/telegram.py
import logging

import requests
from flask import current_app

from events import member_unsuspended
from notifications.utils import subscriber_chat_ids
from users.status import paid_until

logger = logging.getLogger(__name__)


class TelegramNotifier:
    def __init__(self, token=None, api_url=None, timeout=None):
        cfg = current_app.config
        self.token = token or cfg.get("TELEGRAM_BOT_TOKEN")
        self.api_url = (api_url or cfg.get("TELEGRAM_API_URL", "https://api.telegram.org")).rstrip("/")
        self.timeout = timeout or cfg.get("TELEGRAM_TIMEOUT", 10)
        if not self.token:
            raise RuntimeError("TELEGRAM_BOT_TOKEN not configured")

    def send_message(self, chat_id, text):
        url = f"{self.api_url}/bot{self.token}/sendMessage"
        r = requests.post(url, json={"chat_id": chat_id, "text": text}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def send_message_to_all(self, text):
        return [self.send_message(chat_id, text) for chat_id in subscriber_chat_ids()]


def unsuspend_message(member):
    tg = f" @{member.telegram_username}" if member.telegram_username else ""
    return (
        f"Участник №{member.id} ({member.full_name}{tg}) снова с нами! "
        f"Оплачено по {paid_until(member)}."
    )


def notify_unsuspended(member):
    """Broadcast that the member is back. Failures are logged, never raised."""
    try:
        TelegramNotifier().send_message_to_all(unsuspend_message(member))
        return True
    except Exception as e:
        logger.warning("Telegram notification failed: %s", e)
        return False


def on_member_unsuspended(member, **extra):
    notify_unsuspended(member)


def init_notifications(app):
    member_unsuspended.connect(on_member_unsuspended)
