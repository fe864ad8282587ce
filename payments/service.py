# payments/service.py
import json
import logging
import math
from datetime import timedelta

from flask import current_app

from extensions import db
from payments.ledger import find_by_transaction, record_payment
from users.cohorts import get_cohort_report
from users.status import apply_suspension_policy, monthly_payment_amount, paid_until
from utils.time_utils import add_months, as_date, utcnow

logger = logging.getLogger(__name__)


class PaymentRejected(ValueError):
    pass


def coverage_for(member, amount, paid_on):
    """
    Interval covered by a payment of `amount`.

    Coverage continues from paid_until when the member is still inside the
    proration window (the gap was charged by expected_payment_amount),
    otherwise it starts on the payment day. Whole tariff months extend by
    calendar months, the remainder by 30-day proration.
    """
    monthly = monthly_payment_amount(member)
    if not monthly:
        raise PaymentRejected(f"member {member.id} has no priced tariff")

    cfg = current_app.config
    paid_on = as_date(paid_on)
    until = paid_until(member)
    if until is not None and (paid_on - until).days < cfg["PRORATION_GRACE_DAYS"]:
        start = until + timedelta(days=1)
    else:
        start = paid_on

    months, rest = divmod(float(amount), float(monthly))
    extra_days = math.floor(rest / monthly * cfg["PRORATION_PERIOD_DAYS"])
    end = add_months(start, int(months)) + timedelta(days=extra_days) - timedelta(days=1)
    if end < start:
        raise PaymentRejected(f"amount {amount} covers no days")
    return start, end


def confirm_payment(member, amount, paid_at=None, transaction_uid=None, raw=None,
                    payment_type="erip"):
    """
    Append a payment for a confirmed bill. Idempotent on transaction_uid.
    Returns (payment, created).
    """
    paid_at = paid_at or utcnow()
    if transaction_uid:
        # a replayed notification returns the stored row untouched
        existing = find_by_transaction(transaction_uid)
        if existing:
            return existing, False

    start, end = coverage_for(member, amount, paid_at)
    payment, created = record_payment(
        member.id,
        start,
        end,
        paid_at=paid_at,
        amount=amount,
        payment_type=payment_type,
        erip_transaction_id=transaction_uid,
        raw_payload=json.dumps(raw, default=str) if raw else None,
    )
    db.session.commit()

    if created:
        logger.info("Payment %s recorded for member %s: %s..%s", payment.id, member.id, start, end)
        get_cohort_report().clear()
        apply_suspension_policy(member)
    return payment, created
