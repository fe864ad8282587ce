from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token

from app import create_app
from config import TestConfig
from extensions import db as _db
from payments.ledger import record_payment
from users.jobs import ensure_roles
from users.models import Role, Tariff, User
from users.service import save_member
from utils.time_utils import utcnow


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        ensure_roles()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def tariff(db):
    t = Tariff(name="Regular", monthly_price=50.0, access_allowed=True)
    db.session.add(t)
    db.session.commit()
    return t


@pytest.fixture
def make_member(db, tariff):
    counter = {"n": 0}

    def _make(roles=("hacker",), with_tariff=True, password=None, **fields):
        counter["n"] += 1
        fields.setdefault("email", f"hacker{counter['n']}@example.com")
        fields.setdefault("first_name", "Hacker")
        fields.setdefault("last_name", f"No{counter['n']}")
        # query before building the user so no autoflush sees a half-made row
        role_rows = Role.query.filter(Role.name.in_(roles)).all()
        user = User()
        if with_tariff:
            user.tariff_id = tariff.id
        if password:
            user.set_password(password)
        user.roles = role_rows
        return save_member(user, fields)

    return _make


@pytest.fixture
def add_payment(db):
    def _add(user, end_date, start_date=None, paid_at=None, **kwargs):
        start_date = start_date or end_date - timedelta(days=29)
        payment, _ = record_payment(
            user.id, start_date, end_date, paid_at=paid_at or utcnow(), **kwargs
        )
        db.session.commit()
        return payment

    return _add


@pytest.fixture
def admin(make_member):
    return make_member(roles=("hacker", "admin"), password="secret-pass", email="admin@example.com")


@pytest.fixture
def admin_headers(admin):
    token = create_access_token(identity=str(admin.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(identity=str(user.id))}"}

    return _headers
