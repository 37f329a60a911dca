"""Tests for per-operation throttles (login, registration, password flows)."""

import logging

import pytest

from app.core.errors import ValidationAppError
from app.core.logging import hash_identifier
from app.services.operation_limits import DEFAULT_POLICIES, OperationPolicy, OperationThrottle


@pytest.fixture
def throttle(clock) -> OperationThrottle:
    return OperationThrottle(clock=clock)


def test_default_operations(throttle):
    assert set(throttle.operations) == {"login", "register", "password_reset", "password_change"}
    assert DEFAULT_POLICIES["login"].points == 5


def test_login_blocks_after_five_attempts(throttle):
    results = [throttle.check("login", "ada@example.com") for _ in range(6)]

    assert [r.allowed for r in results] == [True] * 5 + [False]
    blocked = results[-1]
    assert blocked.error == "Too many login attempts. Please try again in 15 minute(s)."
    assert blocked.retry_after_ms == 900_000


def test_registration_message_uses_label(throttle):
    for _ in range(3):
        assert throttle.check("register", "ada@example.com").allowed

    blocked = throttle.check("register", "ada@example.com")
    assert blocked.error == "Too many registration attempts. Please try again in 60 minute(s)."


def test_block_lifts_after_block_period(throttle, clock):
    for _ in range(6):
        throttle.check("login", "ada@example.com")

    clock.advance(899)
    assert throttle.check("login", "ada@example.com").allowed is False

    clock.advance(1)
    assert throttle.check("login", "ada@example.com").allowed is True


def test_minutes_round_up(clock):
    throttle = OperationThrottle(
        {"login": OperationPolicy("login", points=1, window_seconds=90, block_seconds=0)},
        clock=clock,
    )
    throttle.check("login", "x")

    blocked = throttle.check("login", "x")
    assert blocked.error == "Too many login attempts. Please try again in 2 minute(s)."


def test_identifiers_and_operations_are_independent(throttle):
    for _ in range(5):
        throttle.check("login", "ada@example.com")

    assert throttle.check("login", "ada@example.com").allowed is False
    assert throttle.check("login", "grace@example.com").allowed is True
    assert throttle.check("password_change", "ada@example.com").allowed is True


def test_reset_clears_attempts(throttle):
    for _ in range(6):
        throttle.check("login", "ada@example.com")

    throttle.reset("login", "ada@example.com")

    assert throttle.check("login", "ada@example.com").allowed is True


def test_unknown_operation(throttle):
    with pytest.raises(ValidationAppError) as exc_info:
        throttle.check("delete_account", "ada@example.com")

    assert exc_info.value.code == "unknown_operation"

    with pytest.raises(ValidationAppError):
        throttle.reset("delete_account", "ada@example.com")


def test_rejection_emits_security_event(throttle, caplog):
    with caplog.at_level(logging.WARNING, logger="app.security"):
        for _ in range(6):
            throttle.check("login", "ada@example.com")

    records = [r for r in caplog.records if r.name == "app.security"]
    assert len(records) == 1
    record = records[0]
    assert record.getMessage() == "security.suspicious_activity"
    assert record.operation == "login"
    assert record.identifier_hash == hash_identifier("ada@example.com")
    assert "ada@example.com" not in caplog.text
