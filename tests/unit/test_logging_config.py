"""
Unit tests for logging_config.py processors.
"""

from __future__ import annotations

import pytest

from amoria_admin.logging_config import mask_emails


@pytest.mark.unit
def test_mask_emails_in_values() -> None:
    event = {"event": "email_sent", "recipient": "jane.doe@example.com", "count": 2}

    assert mask_emails(None, "info", event) == {
        "event": "email_sent",
        "recipient": "j***@example.com",
        "count": 2,
    }


@pytest.mark.unit
def test_mask_emails_inside_longer_text() -> None:
    event = {"error": "Brevo rejected bob@mail.example.org: invalid"}

    assert mask_emails(None, "error", event)["error"] == "Brevo rejected b***@mail.example.org: invalid"


@pytest.mark.unit
def test_already_masked_addresses_pass_through() -> None:
    event = {"email": "ad***@example.com"}

    assert mask_emails(None, "info", event)["email"] == "ad***@example.com"
