# users/export.py
import csv
import io

from users.status import (
    access_allowed,
    expected_payment_amount,
    is_active,
    last_payment,
    monthly_payment_amount,
    paid_until,
)

CSV_FIELDS = [
    "id",
    "first_name",
    "last_name",
    "email",
    "hacker_comment",
    "bepaid_number",
    "monthly_payment_amount",
    "sign_in_count",
    "last_sign_in_at",
    "created_at",
    "last_seen_in_hackerspace",
    "telegram_username",
    "alice_greeting",
    "account_suspended",
    "account_banned",
    "github_username",
    "is_learner",
    "guarantor1",
    "guarantor2",
    "paid_until",
]

CSV_FIELDS_WITH_NFC = CSV_FIELDS + ["nfc_keys"]


def _cell(value):
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def member_row(user, with_nfc=False):
    row = {}
    for field in CSV_FIELDS:
        if field == "monthly_payment_amount":
            value = monthly_payment_amount(user)
        elif field == "paid_until":
            value = paid_until(user)
        elif field in ("guarantor1", "guarantor2"):
            guarantor = getattr(user, field)
            value = guarantor.full_name_with_id if guarantor else None
        else:
            value = getattr(user, field)
        row[field] = _cell(value)
    if with_nfc:
        row["nfc_keys"] = " ".join(k.key for k in user.nfc_keys)
    return row


def members_to_csv(users, with_nfc=False) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_FIELDS_WITH_NFC if with_nfc else CSV_FIELDS)
    writer.writeheader()
    for user in users:
        writer.writerow(member_row(user, with_nfc=with_nfc))
    return buf.getvalue()


def member_to_dict(user):
    until = paid_until(user)
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "full_name": user.full_name,
        "hacker_comment": user.hacker_comment,
        "telegram_username": user.telegram_username,
        "github_username": user.github_username,
        "is_learner": bool(user.is_learner),
        "roles": [r.name for r in user.roles],
        "tariff_id": user.tariff_id,
        "guarantor1_id": user.guarantor1_id,
        "guarantor2_id": user.guarantor2_id,
        "account_suspended": bool(user.account_suspended),
        "account_banned": bool(user.account_banned),
        "suspended_changed_at": user.suspended_changed_at.isoformat() if user.suspended_changed_at else None,
        "is_active": is_active(user),
        "access_allowed": access_allowed(user),
        "monthly_payment_amount": monthly_payment_amount(user),
        "paid_until": until.isoformat() if until else None,
        # only meaningful once the member has paid at least once
        "expected_payment_amount": expected_payment_amount(user) if last_payment(user) else None,
        "avatar_url": user.avatar_url(),
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
