from datetime import date, timedelta
from unittest.mock import patch

from extensions import db
from users.cohorts import (
    CohortReport,
    active_members,
    members_with_debt,
    month_boundaries,
    suspended_today,
)
from users.status import suspend
from utils.cache import QueryCache
from utils.time_utils import utcnow


def test_active_members_union_without_duplicates(make_member, add_payment):
    today = utcnow().date()
    paid = make_member()
    add_payment(paid, end_date=today + timedelta(days=10))

    signed_in = make_member()
    signed_in.last_sign_in_at = utcnow()

    both = make_member()
    both.last_sign_in_at = utcnow()
    add_payment(both, end_date=today + timedelta(days=10))
    add_payment(both, end_date=today + timedelta(days=40))

    make_member()  # never paid, never signed in

    banned = make_member()
    banned.last_sign_in_at = utcnow()
    banned.account_banned = True
    db.session.commit()

    suspended = make_member()
    add_payment(suspended, end_date=today)
    suspend(suspended)

    ids = [u.id for u in active_members()]
    assert ids == sorted({paid.id, signed_in.id, both.id})


def test_members_with_debt(make_member, add_payment):
    today = utcnow().date()
    debtor = make_member()
    add_payment(debtor, end_date=today - timedelta(days=3))
    settled = make_member()
    add_payment(settled, end_date=today)
    signed_in = make_member()
    signed_in.last_sign_in_at = utcnow()
    db.session.commit()

    assert [u.id for u in members_with_debt(today)] == [debtor.id]


def test_suspended_today(make_member):
    recent = make_member()
    suspend(recent)
    old = make_member()
    suspend(old, now=utcnow() - timedelta(days=2))

    assert [u.id for u in suspended_today()] == [recent.id]


def test_paid_within_period_uses_overlap(make_member, add_payment):
    before = make_member()
    add_payment(before, start_date=date(2026, 1, 1), end_date=date(2026, 1, 31))
    overlapping = make_member()
    add_payment(overlapping, start_date=date(2026, 2, 20), end_date=date(2026, 3, 19))
    edge = make_member()
    add_payment(edge, start_date=date(2026, 3, 31), end_date=date(2026, 4, 29))
    twice = make_member()
    add_payment(twice, start_date=date(2026, 3, 1), end_date=date(2026, 3, 15))
    add_payment(twice, start_date=date(2026, 3, 16), end_date=date(2026, 4, 15))

    report = CohortReport()
    users = report.paid_within_period(date(2026, 3, 1), date(2026, 3, 31))

    assert [u.id for u in users] == [overlapping.id, edge.id, twice.id]


def test_paid_within_period_is_cached_per_range(make_member, add_payment):
    member = make_member()
    add_payment(member, start_date=date(2026, 3, 1), end_date=date(2026, 3, 31))
    report = CohortReport()

    first = report.paid_within_period(date(2026, 3, 1), date(2026, 3, 31))
    with patch("users.cohorts.user_ids_paid_within") as query:
        second = report.paid_within_period(date(2026, 3, 1), date(2026, 3, 31))
        query.assert_not_called()

        query.return_value = []
        assert report.paid_within_period(date(2026, 4, 1), date(2026, 4, 30)) == []
        query.assert_called_once_with(date(2026, 4, 1), date(2026, 4, 30))

    assert [u.id for u in first] == [u.id for u in second] == [member.id]


def test_month_boundaries():
    assert month_boundaries(date(2026, 1, 15), date(2026, 3, 10)) == [
        date(2026, 1, 1),
        date(2026, 2, 1),
        date(2026, 3, 1),
        date(2026, 3, 31),
    ]
    assert month_boundaries(date(2025, 12, 5), date(2025, 12, 20)) == [
        date(2025, 12, 1),
        date(2025, 12, 31),
    ]


def test_paid_users_graph_has_one_point_per_month(make_member, add_payment):
    jan = make_member()
    add_payment(jan, start_date=date(2026, 1, 5), end_date=date(2026, 1, 20))
    long_member = make_member()
    add_payment(long_member, start_date=date(2026, 1, 10), end_date=date(2026, 3, 9))

    graph = CohortReport().paid_users_graph(date(2026, 1, 15), date(2026, 3, 10))

    assert graph == [
        (date(2026, 1, 1), 2),
        (date(2026, 2, 1), 1),
        (date(2026, 3, 1), 1),
    ]


def test_query_cache_keys_on_exact_tuple():
    cache = QueryCache()
    calls = []

    def compute():
        calls.append(1)
        return len(calls)

    assert cache.get_or_compute((1, 2), compute) == 1
    assert cache.get_or_compute((1, 2), compute) == 1
    assert cache.get_or_compute((2, 1), compute) == 2
    assert len(cache) == 2
    cache.clear()
    assert len(cache) == 0
