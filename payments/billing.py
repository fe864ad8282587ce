# payments/billing.py
import json
import logging

from flask import current_app

from events import member_saved
from payments.bepaid import BePaidClient
from users.models import get_config
from users.status import monthly_payment_amount

logger = logging.getLogger(__name__)

BILL_FAILED_MESSAGE = "Не удалось создать счёт в bePaid, проверьте лог"


def bepaid_client():
    cfg = current_app.config
    return BePaidClient(
        get_config("bePaid_baseURL", cfg.get("BEPAID_BASE_URL")),
        get_config("bePaid_ID", cfg.get("BEPAID_SHOP_ID")),
        get_config("bePaid_secret", cfg.get("BEPAID_SECRET")),
        timeout=cfg.get("BEPAID_TIMEOUT", 10),
    )


def build_bill_request(member):
    """ERIP bill for one month of the member's tariff. Amount is in kopecks."""
    cfg = current_app.config
    amount = monthly_payment_amount(member)
    return {
        "request": {
            "amount": int(round(amount * 100)),
            "currency": cfg.get("BILLING_CURRENCY", "BYN"),
            "description": cfg.get("BILLING_DESCRIPTION"),
            "email": member.email,
            "notification_url": cfg.get("BEPAID_NOTIFICATION_URL"),
            "ip": "127.0.0.1",
            "order_id": member.id,
            "customer": {
                "first_name": member.first_name,
                "last_name": member.last_name,
            },
            "payment_method": {
                "type": "erip",
                "account_number": member.id,
                "permanent": "true",
                "editable_amount": "true",
                "service_no": get_config("bePaid_serviceNo", cfg.get("BEPAID_SERVICE_NO")),
            },
        }
    }


def create_bepaid_bill(member):
    """
    Best-effort bill creation. On failure the error is logged and attached
    to member.errors; the member row stays as committed.
    """
    try:
        bill = build_bill_request(member)
        res = bepaid_client().post_bill(bill)
        logger.debug(json.dumps(res, indent=2, ensure_ascii=False))
        return res
    except Exception as e:
        logger.error(str(e) or repr(e))
        if getattr(e, "http_body", None):
            logger.error(e.http_body)
        member.errors.append(BILL_FAILED_MESSAGE)
        return None


def on_member_saved(member, **extra):
    # Don't touch real web services from tests
    if not current_app.config.get("BILLING_ENABLED", True):
        return
    create_bepaid_bill(member)


def init_billing(app):
    member_saved.connect(on_member_saved)
