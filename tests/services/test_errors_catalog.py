import pytest

from fireprov.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("key_file_missing", path="api/service-account-key.json")

    assert "Failed to download service account key" in message
    assert "api/service-account-key.json" in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("no_such_code")
