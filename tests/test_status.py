from datetime import timedelta

import pytest

from events import member_saved, member_unsuspended
from extensions import db
from users.models import User
from users.service import save_member
from users.status import (
    NoPaymentError,
    access_allowed,
    apply_suspension_policy,
    ceil2,
    expected_payment_amount,
    is_active,
    last_payment,
    monthly_payment_amount,
    paid_until,
    should_suspend,
    suspend,
    unsuspend,
)
from utils.time_utils import utcnow


def test_ceil2_rounds_up():
    assert ceil2(16.661) == 16.67
    assert ceil2(50 * 10 / 30) == 16.67
    assert ceil2(15.0) == 15.0
    assert ceil2(0) == 0.0


def test_member_without_payments_has_no_paid_until(make_member):
    member = make_member()
    assert last_payment(member) is None
    assert paid_until(member) is None
    with pytest.raises(NoPaymentError):
        expected_payment_amount(member)


def test_last_payment_is_latest_by_paid_at(make_member, add_payment):
    member = make_member()
    today = utcnow().date()
    now = utcnow()
    add_payment(member, end_date=today + timedelta(days=60), paid_at=now - timedelta(days=5))
    newest = add_payment(member, end_date=today + timedelta(days=10), paid_at=now)

    assert last_payment(member).id == newest.id
    assert paid_until(member) == today + timedelta(days=10)


def test_monthly_amount_falls_back_to_zero_without_tariff(make_member, tariff):
    assert monthly_payment_amount(make_member()) == 50.0
    assert monthly_payment_amount(make_member(with_tariff=False)) == 0


def test_expected_amount_prorates_inside_grace_window(make_member, add_payment):
    member = make_member()
    today = utcnow().date()
    add_payment(member, end_date=today - timedelta(days=10))

    assert expected_payment_amount(member, today=today) == pytest.approx(50 + 16.67)


def test_expected_amount_is_one_month_after_grace_window(make_member, add_payment):
    member = make_member()
    today = utcnow().date()
    add_payment(member, end_date=today - timedelta(days=20))

    assert expected_payment_amount(member, today=today) == 50


@pytest.mark.parametrize("days,expected", [(13, 50 + 21.67), (14, 50), (0, 50)])
def test_expected_amount_boundaries(make_member, add_payment, days, expected):
    member = make_member()
    today = utcnow().date()
    add_payment(member, end_date=today - timedelta(days=days))

    assert expected_payment_amount(member, today=today) == pytest.approx(expected)


def test_new_member_without_payments_is_not_suspended(make_member):
    member = make_member()
    assert member.account_suspended is not True
    assert is_active(member)


def test_never_paid_member_is_suspended_after_a_month(make_member):
    member = make_member()
    member.created_at = utcnow() - timedelta(days=40)
    db.session.commit()

    save_member(member, {"hacker_comment": "poke"})

    assert member.account_suspended is True
    assert member.suspended_changed_at is not None
    assert db.session.get(User, member.id).account_suspended is True


def test_overdue_member_is_suspended(make_member, add_payment):
    member = make_member()
    add_payment(member, end_date=(utcnow() - timedelta(days=16)).date())

    save_member(member, {})

    assert member.account_suspended is True
    assert not is_active(member)


def test_member_inside_suspension_grace_stays_active(make_member, add_payment):
    member = make_member()
    add_payment(member, end_date=(utcnow() - timedelta(days=14)).date())

    save_member(member, {})

    assert not member.account_suspended
    assert is_active(member)


def test_suspension_boundary_is_measured_from_midnight(make_member, add_payment):
    member = make_member()
    now = utcnow().replace(hour=12, minute=0, second=0, microsecond=0)
    add_payment(member, end_date=(now - timedelta(days=15)).date())

    assert should_suspend(member, now) is True
    assert should_suspend(member, now.replace(hour=0)) is False


def test_policy_is_idempotent(make_member, add_payment):
    member = make_member()
    add_payment(member, end_date=(utcnow() - timedelta(days=30)).date())

    assert apply_suspension_policy(member) is True
    changed_at = member.suspended_changed_at
    assert apply_suspension_policy(member) is False
    assert member.suspended_changed_at == changed_at


def test_banned_member_is_not_touched_by_policy(make_member, add_payment):
    member = make_member()
    add_payment(member, end_date=(utcnow() - timedelta(days=30)).date())
    member.account_banned = True
    db.session.commit()

    assert should_suspend(member) is False


def test_access_allowed_needs_active_member_and_tariff(make_member, tariff):
    member = make_member()
    assert access_allowed(member)

    tariff.access_allowed = False
    db.session.commit()
    assert not access_allowed(member)

    assert not access_allowed(make_member(with_tariff=False))


def test_suspend_writes_status_without_save_hooks(make_member):
    member = make_member()
    updated_at = db.session.get(User, member.id).updated_at
    saved = []

    def receiver(sender, **extra):
        saved.append(sender)

    member_saved.connect(receiver)
    try:
        suspend(member)
    finally:
        member_saved.disconnect(receiver)

    fresh = db.session.get(User, member.id)
    assert fresh.account_suspended is True
    assert fresh.updated_at == updated_at
    assert saved == []


def test_unsuspend_emits_event(make_member):
    member = make_member()
    suspend(member)
    received = []

    def receiver(sender, **extra):
        received.append(sender.id)

    member_unsuspended.connect(receiver)
    try:
        unsuspend(member)
    finally:
        member_unsuspended.disconnect(receiver)

    assert member.account_suspended is False
    assert received == [member.id]
