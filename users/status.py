# users/status.py
"""
Membership payment-status engine.

Derives paid_until / expected amount / active flags from the payment ledger
and the tariff, and decides when a member gets suspended. All writes of the
suspension flag go through users.service.write_status_columns, never through
save_member, so applying the policy can't re-trigger itself.
"""
import logging
from datetime import datetime, time, timedelta
from decimal import Decimal, ROUND_CEILING

from flask import current_app, has_app_context

from config import Config
from events import member_unsuspended
from payments.ledger import last_payment_for
from utils.time_utils import add_months, as_date, utcnow

logger = logging.getLogger(__name__)


class NoPaymentError(ValueError):
    """Raised when a computation needs paid_until but the member never paid."""


def _policy(name):
    if has_app_context():
        return current_app.config.get(name, getattr(Config, name))
    return getattr(Config, name)


def ceil2(value) -> float:
    """Round up to two decimals (16.661 -> 16.67)."""
    if value is None:
        return 0.0
    return float(Decimal(repr(float(value))).quantize(Decimal("0.01"), rounding=ROUND_CEILING))


# --- ledger-derived fields ---

def last_payment(member):
    if member.id is None:
        return None
    return last_payment_for(member.id)


def paid_until(member):
    """Last day covered by the most recent payment, or None."""
    payment = last_payment(member)
    return payment.end_date if payment else None


def monthly_payment_amount(member):
    tariff = member.tariff
    if tariff is None or tariff.monthly_price is None:
        return 0
    return tariff.monthly_price


def expected_payment_amount(member, today=None):
    """
    Amount to ask for now: one full month, plus a prorated top-up for the
    days since paid_until while still inside the proration grace window.
    """
    until = paid_until(member)
    if until is None:
        raise NoPaymentError(f"member {member.id} has no payments")

    today = as_date(today) if today is not None else utcnow().date()
    monthly = monthly_payment_amount(member)
    unpaid_days = (today - until).days

    if unpaid_days < _policy("PRORATION_GRACE_DAYS"):
        missing = ceil2(monthly * float(unpaid_days) / _policy("PRORATION_PERIOD_DAYS"))
    else:
        missing = 0
    return round(missing + monthly, 2)


# --- access flags ---

def is_inactive(member):
    return bool(member.account_suspended) or bool(member.account_banned)


def is_active(member):
    return not is_inactive(member)


def access_allowed(member):
    tariff = member.tariff
    return is_active(member) and bool(tariff and tariff.access_allowed)


# --- suspension transition ---

def should_suspend(member, now=None):
    if not is_active(member):
        return False

    now = now or utcnow()
    payment = last_payment(member)
    if payment is None:
        created = member.created_at or now
        never_paid_cutoff = add_months(now, -_policy("NEVER_PAID_GRACE_MONTHS"))
        return created < never_paid_cutoff

    # end_date counts from its midnight, so day 15 overdue already suspends
    overdue_cutoff = now - timedelta(days=_policy("SUSPENSION_GRACE_DAYS"))
    return datetime.combine(payment.end_date, time.min) < overdue_cutoff


def apply_suspension_policy(member, now=None):
    """Suspend the member when overdue. Safe to call any number of times."""
    if should_suspend(member, now):
        suspend(member, now)
        return True
    return False


def suspend(member, now=None):
    from users.service import write_status_columns

    write_status_columns(
        member,
        account_suspended=True,
        suspended_changed_at=now or utcnow(),
    )
    logger.info("Member %s suspended (paid until %s)", member.id, paid_until(member))


def unsuspend(member, now=None):
    from users.service import write_status_columns

    write_status_columns(
        member,
        account_suspended=False,
        suspended_changed_at=now or utcnow(),
    )
    logger.info("Member %s unsuspended", member.id)
    member_unsuspended.send(member)

