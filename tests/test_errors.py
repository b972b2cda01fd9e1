"""
Tests for error classification and startup schema detection
"""

from types import SimpleNamespace
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError, OperationalError

from conftest import test_engine
from restopos.core.database import detect_capabilities
from restopos.core.errors import (
    BusinessRuleViolation,
    ConflictError,
    InfrastructureError,
    Reason,
    ValidationError,
    from_db_error,
)


def db_error(cls, **orig):
    return cls("UPDATE discounts ...", {}, SimpleNamespace(**orig))


def test_serialization_failures_are_conflicts():
    assert isinstance(from_db_error(db_error(OperationalError, sqlstate="40001")), ConflictError)
    assert isinstance(from_db_error(db_error(OperationalError, pgcode="40P01")), ConflictError)
    assert isinstance(from_db_error(db_error(OperationalError, sqlite_errorcode=5)), ConflictError)


def test_unique_violation_is_conflict():
    assert isinstance(from_db_error(db_error(IntegrityError, sqlstate="23505")), ConflictError)
    assert isinstance(from_db_error(db_error(IntegrityError, sqlite_errorcode=2067)), ConflictError)


def test_other_constraint_violations_are_not_retried():
    for orig in ({"sqlstate": "23514"}, {"pgcode": "23503"}, {"sqlite_errorcode": 275}):
        error = from_db_error(db_error(IntegrityError, **orig))
        assert isinstance(error, ValidationError)
        assert not error.retryable


def test_other_failures_are_infrastructure():
    error = from_db_error(db_error(OperationalError, sqlstate="08006"))
    assert isinstance(error, InfrastructureError)
    assert error.retryable
    assert error.http_status == 503


def test_envelope():
    error = BusinessRuleViolation(Reason.EXPIRED, "This discount has expired.")
    assert error.to_dict() == {
        "code": "business_rule_violation",
        "message": "This discount has expired.",
        "reason": "expired",
        "retryable": False,
    }


def test_detect_capabilities_full_schema(db):
    capabilities = detect_capabilities(test_engine)
    assert capabilities.stock_tracking
    assert capabilities.loyalty_ledger


def test_detect_capabilities_legacy_schema():
    engine = create_engine("sqlite:///:memory:")
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE products (id CHAR(32) PRIMARY KEY, name VARCHAR, price NUMERIC)"))

    capabilities = detect_capabilities(engine)
    assert not capabilities.stock_tracking
    assert not capabilities.loyalty_ledger
