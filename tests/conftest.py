"""
Pytest configuration and fixtures.

- pure engine tests need nothing from here
- store/overdue tests use ``app`` + ``db`` (SQLite file per test)
- API tests use ``client`` with JWT headers
"""
from datetime import date
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from fleetcore_backend import create_app
from fleetcore_backend.config import TestingConfig
from fleetcore_backend.extensions import db as _db
from fleetcore_backend.models import Agreement


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'billing.db'}"

    app = create_app(Config)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_agreement(db):
    counter = iter(range(1, 1000))

    def _make(rent="3000", daily_late_fee="120", status="active", **kwargs):
        agreement = Agreement(
            agreement_number=kwargs.pop("agreement_number", f"AGR-{next(counter):04d}"),
            rent_amount=Decimal(rent),
            daily_late_fee=Decimal(daily_late_fee) if daily_late_fee is not None else None,
            status=status,
            start_date=kwargs.pop("start_date", date(2024, 1, 1)),
            **kwargs,
        )
        db.session.add(agreement)
        db.session.commit()
        return agreement

    return _make


@pytest.fixture
def agreement(make_agreement):
    return make_agreement()


def _headers(role):
    token = create_access_token(identity="1", additional_claims={"role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(app):
    return _headers("admin")


@pytest.fixture
def agent_headers(app):
    return _headers("agent")
