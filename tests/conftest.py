"""
Shared pytest fixtures for the Onboarding Request Service test suite.

Provides:
    - app: Flask application (session-scoped, routing runs eagerly)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - make_request: factory inserting an OnboardingRequest directly (no routing)
"""

import pytest

from app import create_app
from app.models import db as _db
from app.models.onboarding import OnboardingRequest, STATUS_NEW
from app.services.code_generator import generate_reference_number
from app.services.onboarding_lifecycle import completion_for_status


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def make_request():
    """Insert an OnboardingRequest row directly, bypassing routing.

    Usage::

        req = make_request(trading_name="ACME Corp", status="In Progress")
    """

    def _make(**overrides):
        status = overrides.pop("status", STATUS_NEW)
        fields = {
            "trading_name": "Northwind Traders",
            "contact_name": "Dana Whitfield",
            "contact_email": "dana@northwind.co.uk",
        }
        fields.update(overrides)
        req = OnboardingRequest(
            reference_number=generate_reference_number(),
            status=status,
            completion_percentage=completion_for_status(status),
            **fields,
        )
        _db.session.add(req)
        _db.session.commit()
        return req

    return _make
