import pytest

from dr_preinstall.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("module_failed", module="extract_binaries")

    assert "Module extract_binaries failed." in message
    assert "Suggested action:" in message
    assert "--only extract_binaries" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("does_not_exist")
