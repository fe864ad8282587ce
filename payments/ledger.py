# payments/ledger.py
from sqlalchemy import select

from extensions import db
from payments.models import Payment


def last_payment_for(user_id):
    """Latest payment by paid_at, or None."""
    return (
        Payment.query.filter_by(user_id=user_id)
        .order_by(Payment.paid_at.desc(), Payment.id.desc())
        .first()
    )


def payments_for(user_id):
    return Payment.query.filter_by(user_id=user_id).order_by(Payment.paid_at.desc()).all()


def paid_user_ids_query():
    return select(Payment.user_id).distinct()


def user_ids_paid_within(start_date, end_date):
    """Distinct user ids having a payment interval overlapping [start_date, end_date]."""
    stmt = (
        select(Payment.user_id)
        .where(Payment.start_date <= end_date, Payment.end_date >= start_date)
        .distinct()
        .order_by(Payment.user_id)
    )
    return [row[0] for row in db.session.execute(stmt)]


def find_by_transaction(erip_transaction_id):
    return Payment.query.filter_by(erip_transaction_id=erip_transaction_id).first()


def record_payment(user_id, start_date, end_date, paid_at=None, amount=None,
                   payment_type="erip", erip_transaction_id=None, raw_payload=None):
    """
    Append a payment. A repeated erip_transaction_id returns the existing row
    instead of inserting a duplicate. Caller commits.
    """
    if erip_transaction_id:
        existing = find_by_transaction(erip_transaction_id)
        if existing:
            return existing, False

    payment = Payment(
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        amount=amount,
        payment_type=payment_type,
        erip_transaction_id=erip_transaction_id,
        raw_payload=raw_payload,
    )
    if paid_at is not None:
        payment.paid_at = paid_at
    db.session.add(payment)
    db.session.flush()
    return payment, True
