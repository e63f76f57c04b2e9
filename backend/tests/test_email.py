from datetime import datetime, timedelta

import pytest

from docshare.utils import email


@pytest.fixture(autouse=True)
def empty_store():
    email.reset_tokens.clear()
    yield
    email.reset_tokens.clear()


def test_storing_a_token_prunes_expired_records():
    email.reset_tokens["stale@example.com"] = {
        "token": "old",
        "expires_at": datetime.now() - timedelta(minutes=1),
        "attempts": 0,
    }
    email.store_reset_token("fresh@example.com", "new")
    assert "stale@example.com" not in email.reset_tokens
    assert email.reset_tokens["fresh@example.com"]["token"] == "new"


def test_unexpired_records_survive_pruning():
    email.store_reset_token("first@example.com", "one")
    email.store_reset_token("second@example.com", "two")
    assert set(email.reset_tokens) == {"first@example.com", "second@example.com"}
    assert email.verify_reset_token("first@example.com", "one")
