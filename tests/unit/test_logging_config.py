"""Tests for logging configuration."""

from purchase_register.config.logging import redact_secrets


def test_secrets_are_masked():
    event = redact_secrets(
        None,
        "info",
        {"event": "sunat_login", "claveSol": "hunter2", "password": "pw", "ruc": "20100000001"},
    )

    assert event["claveSol"] == "***"
    assert event["password"] == "***"
    assert event["ruc"] == "20100000001"


def test_events_without_secrets_untouched():
    event = {"event": "invoices_reconciled", "count": 3}
    assert redact_secrets(None, "info", dict(event)) == event
