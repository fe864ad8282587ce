# users/service.py
"""
Member write paths.

save_member is the general-purpose path: validation, commit, suspension
policy, member_saved event. persist_member is the same minus validation.
write_status_columns is the internal path for the suspension flag: a
direct UPDATE with no validation and no events.
"""
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from events import member_saved
from extensions import db
from users.models import User
from users.status import apply_suspension_policy
from utils.audit_logger import log_audit_action

logger = logging.getLogger(__name__)

EMAIL_MAX_LENGTH = 255


class MemberValidationError(Exception):
    def __init__(self, errors):
        self.errors = errors
        super().__init__("; ".join(f"{k} {', '.join(v)}" for k, v in errors.items()))


def normalize_tg_nickname(member):
    if member.telegram_username:
        member.telegram_username = member.telegram_username.strip().removeprefix("@")


def validate_member(member):
    errors = {}

    def add(field, message):
        errors.setdefault(field, []).append(message)

    email = (member.email or "").strip()
    if not email:
        add("email", "can't be blank")
    elif len(email) > EMAIL_MAX_LENGTH:
        add("email", "is too long")
    else:
        with db.session.no_autoflush:
            taken = User.query.filter(User.email == email)
            if member.id is not None:
                taken = taken.filter(User.id != member.id)
            if taken.first():
                add("email", "has already been taken")

    if member.guarantor1_id is not None and member.guarantor1_id == member.id:
        add("guarantor1_id", "is invalid")
    if member.guarantor2_id is not None and member.guarantor2_id == member.id:
        add("guarantor2_id", "is invalid")
    if member.guarantor1_id is not None and member.guarantor1_id == member.guarantor2_id:
        add("guarantor1_id", "shouldn't be same as Guarantor2")

    return errors


def _snapshot(member, fields):
    return {f: getattr(member, f, None) for f in fields}


def save_member(member, fields=None, actor_id=None, now=None):
    """
    Assign fields, validate and commit the member, then run the suspension
    policy and emit member_saved. Raises MemberValidationError, in which case
    nothing is persisted.
    """
    fields = dict(fields or {})
    is_new = member.id is None
    old = _snapshot(member, fields) if not is_new else {}

    for name, value in fields.items():
        setattr(member, name, value)
    normalize_tg_nickname(member)

    errors = validate_member(member)
    if errors:
        if not is_new:
            db.session.rollback()
        raise MemberValidationError(errors)

    db.session.add(member)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise MemberValidationError({"email": ["has already been taken"]})

    if actor_id is not None and not is_new:
        log_audit_action(
            user_id=actor_id,
            action="update member",
            table_name="User",
            record_id=member.id,
            old=old,
            new=_snapshot(member, fields),
        )

    _after_commit(member, now)
    return member


def persist_member(member, now=None):
    """
    Commit changes that need no validation (sign-in tracking, Telegram auth
    token) and run the same post-commit hooks as save_member.
    """
    db.session.add(member)
    db.session.commit()
    _after_commit(member, now)
    return member


def _after_commit(member, now=None):
    apply_suspension_policy(member, now)
    member_saved.send(member)


def write_status_columns(member, **columns):
    """
    Direct column write for status fields. Skips validation, audit,
    events and the updated_at bump.
    """
    stmt = (
        update(User)
        .where(User.id == member.id)
        .values(updated_at=User.updated_at, **columns)
        .execution_options(synchronize_session=False)
    )
    try:
        db.session.execute(stmt)
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception("Status write failed for member %s", member.id)
        raise

    for name, value in columns.items():
        set_committed_value(member, name, value)
