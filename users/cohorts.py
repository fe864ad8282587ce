# users/cohorts.py
"""Member cohorts used by reports and exports."""
from datetime import timedelta

from flask import current_app
from sqlalchemy import or_

from payments.ledger import paid_user_ids_query, user_ids_paid_within
from users.models import User
from users.status import paid_until
from utils.cache import QueryCache
from utils.time_utils import as_date, beginning_of_month, end_of_month, utcnow


def _allowed():
    return [
        or_(User.account_suspended.is_(False), User.account_suspended.is_(None)),
        or_(User.account_banned.is_(False), User.account_banned.is_(None)),
    ]


def active_members():
    """Members who paid at least once or ever signed in, and are neither suspended nor banned."""
    return (
        User.query.filter(*_allowed())
        .filter(or_(User.id.in_(paid_user_ids_query()), User.last_sign_in_at.isnot(None)))
        .order_by(User.id)
        .all()
    )


# to be optimized: one paid_until query per member
def members_with_debt(today=None):
    today = as_date(today) if today is not None else utcnow().date()
    debtors = []
    for user in active_members():
        until = paid_until(user)
        if until is not None and until < today:
            debtors.append(user)
    return debtors


def suspended_today(now=None):
    now = now or utcnow()
    return (
        User.query.filter(User.account_suspended.is_(True))
        .filter(User.suspended_changed_at > now - timedelta(days=1))
        .order_by(User.suspended_changed_at.desc())
        .all()
    )


def month_boundaries(start_date, end_date):
    """
    First day of every month from start_date's month through end_date's
    month, followed by the last day of end_date's month.
    """
    start = beginning_of_month(as_date(start_date))
    end = end_of_month(as_date(end_date))

    dates = []
    current = start
    while current <= end:
        dates.append(current)
        current = end_of_month(current) + timedelta(days=1)
    if end not in dates:
        dates.append(end)
    return dates


class CohortReport:
    """Payment cohort reports, memoized per (start, end)."""

    def __init__(self, cache=None):
        self.cache = cache if cache is not None else QueryCache()

    def paid_member_ids_within_period(self, start_date, end_date):
        key = (start_date, end_date, "paid_within_period")
        return self.cache.get_or_compute(
            key, lambda: tuple(user_ids_paid_within(start_date, end_date))
        )

    def paid_within_period(self, start_date, end_date):
        ids = self.paid_member_ids_within_period(start_date, end_date)
        if not ids:
            return []
        return User.query.filter(User.id.in_(ids)).order_by(User.id).all()

    def paid_users_graph(self, start_date, end_date):
        """[(month_start, distinct paying members), ...] one point per month boundary."""
        key = (start_date, end_date, "paid_users_graph")

        def compute():
            dates = month_boundaries(start_date, end_date)
            return [
                (dates[i], len(self.paid_member_ids_within_period(dates[i], dates[i + 1])))
                for i in range(len(dates) - 1)
            ]

        return self.cache.get_or_compute(key, compute)

    def clear(self):
        self.cache.clear()


def get_cohort_report(app=None):
    app = app or current_app
    return app.extensions["cohort_report"]
