import hashlib
import secrets
import string
from datetime import timedelta

from extensions import db
from werkzeug.security import generate_password_hash, check_password_hash

from utils.time_utils import utcnow

ROLES = ("hacker", "admin", "device")

users_roles = db.Table(
    "users_roles",
    db.Column("user_id", db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    db.Column("role_id", db.Integer, db.ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class Role(db.Model):
    __tablename__ = "roles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), unique=True, nullable=False)   # hacker / admin / device

    def __repr__(self):
        return f"<Role {self.name}>"


class Tariff(db.Model):
    __tablename__ = "tariffs"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    monthly_price = db.Column(db.Float, nullable=False, default=0)
    access_allowed = db.Column(db.Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Tariff {self.name} {self.monthly_price}>"


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")

    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    hacker_comment = db.Column(db.String(255))
    bepaid_number = db.Column(db.Integer)
    telegram_username = db.Column(db.String(64))
    alice_greeting = db.Column(db.String(255))
    github_username = db.Column(db.String(64))
    ssh_public_key = db.Column(db.Text)
    is_learner = db.Column(db.Boolean, default=False)

    # 🔹 Sign-in tracking
    sign_in_count = db.Column(db.Integer, nullable=False, default=0)
    current_sign_in_at = db.Column(db.DateTime)
    last_sign_in_at = db.Column(db.DateTime)
    last_seen_in_hackerspace = db.Column(db.DateTime)

    # 🔹 Access status (written only through users.service.write_status_columns)
    account_suspended = db.Column(db.Boolean, default=False)
    account_banned = db.Column(db.Boolean, default=False)
    suspended_changed_at = db.Column(db.DateTime)

    tariff_id = db.Column(db.Integer, db.ForeignKey("tariffs.id"), nullable=True)
    guarantor1_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    guarantor2_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    tg_auth_token = db.Column(db.String(32), nullable=True, index=True)
    tg_auth_token_expiry = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    tariff = db.relationship("Tariff", backref="users")
    roles = db.relationship("Role", secondary=users_roles, backref="users", lazy="selectin")
    guarantor1 = db.relationship("User", foreign_keys=[guarantor1_id], remote_side=[id])
    guarantor2 = db.relationship("User", foreign_keys=[guarantor2_id], remote_side=[id])
    payments = db.relationship("Payment", backref="user", lazy="dynamic")
    nfc_keys = db.relationship("NfcKey", backref="user", lazy="selectin", order_by="NfcKey.id")

    def __repr__(self):
        return f'<User {self.id} {self.email}>'

    # --- non-fatal errors attached after save (e.g. billing failures) ---
    @property
    def errors(self):
        if not hasattr(self, "_errors"):
            self._errors = []
        return self._errors

    # --- Password helpers ---
    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    # --- Roles ---
    def check_role(self, role):
        return role in [r.name for r in self.roles]

    @property
    def is_admin(self):
        return self.check_role("admin")

    @property
    def is_device(self):
        return self.check_role("device")

    # --- Names ---
    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}"

    @property
    def full_name_with_id(self):
        return f"{self.id}. {self.full_name}"

    @property
    def full_name_with_id_tg(self):
        tg = f" @{self.telegram_username}" if self.telegram_username else ""
        return self.full_name_with_id + tg

    def avatar_url(self, size=60):
        digest = hashlib.md5((self.email or "").lower().encode()).hexdigest()
        return f"https://gravatar.com/avatar/{digest}?d=robohash&size={size}"

    # --- Payment status (see users/status.py) ---
    @property
    def last_payment(self):
        from users.status import last_payment
        return last_payment(self)

    @property
    def paid_until(self):
        from users.status import paid_until
        return paid_until(self)

    @property
    def monthly_payment_amount(self):
        from users.status import monthly_payment_amount
        return monthly_payment_amount(self)

    @property
    def is_active(self):
        from users.status import is_active
        return is_active(self)

    # --- Telegram auth tokens ---
    def generate_tg_auth_token(self):
        """
        Return the current token while it is valid, otherwise issue a new one
        that lives for one day. Caller commits.
        """
        now = utcnow()
        if self.tg_auth_token and self.tg_auth_token_expiry and now < self.tg_auth_token_expiry:
            return self.tg_auth_token

        alphabet = string.ascii_letters + string.digits
        self.tg_auth_token = "".join(secrets.choice(alphabet) for _ in range(20))
        self.tg_auth_token_expiry = now + timedelta(days=1)
        return self.tg_auth_token

    @classmethod
    def find_by_auth_token(cls, token):
        if not token:
            return None
        return cls.query.filter(
            cls.tg_auth_token == token,
            cls.tg_auth_token_expiry > utcnow(),
        ).first()


class NfcKey(db.Model):
    __tablename__ = "nfc_keys"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    key = db.Column(db.String(64), unique=True, nullable=False)

    def __str__(self):
        return self.key


class SystemConfig(db.Model):
    __tablename__ = "system_config"

    key = db.Column(db.String(50), primary_key=True)
    value = db.Column(db.String(200), nullable=False)

    def __repr__(self):
        return f"<Config {self.key}={self.value}>"


# --- convenience helpers (import these where needed) ---
def get_config(key: str, default: str = None):
    row = db.session.get(SystemConfig, key)
    return row.value if row else default


def set_config(key: str, value: str):
    row = db.session.get(SystemConfig, key)
    if row:
        row.value = value
    else:
        row = SystemConfig(key=key, value=value)
        db.session.add(row)
    db.session.commit()
    return row
