# users/jobs.py
import logging

from sqlalchemy import or_

from extensions import db
from users.models import ROLES, Role, User
from users.status import apply_suspension_policy
from utils.time_utils import utcnow

logger = logging.getLogger(__name__)


def sweep_suspensions(now=None):
    """
    Re-apply the suspension policy to every active member, so overdue
    members get suspended even when nobody edits their profile.
    Returns ids of members suspended by this run.
    """
    now = now or utcnow()
    logger.info("Suspension sweep started")
    suspended = []
    candidates = User.query.filter(
        or_(User.account_suspended.is_(False), User.account_suspended.is_(None)),
        or_(User.account_banned.is_(False), User.account_banned.is_(None)),
    ).order_by(User.id).all()

    for user in candidates:
        try:
            if apply_suspension_policy(user, now):
                suspended.append(user.id)
        except Exception:
            db.session.rollback()
            logger.exception("Suspension sweep failed for member %s", user.id)

    logger.info("Suspension sweep finished, %d suspended", len(suspended))
    return suspended


def ensure_roles():
    existing = {r.name for r in Role.query.all()}
    for name in ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()
