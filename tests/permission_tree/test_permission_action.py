"""Unit tests for the permission_action module."""

import pytest

from gitperms.permission_tree.permission_action import PermissionAction


def test_permission_action_enum():
    """Test the PermissionAction enum values."""
    assert PermissionAction.RAISE == "raise"
    assert PermissionAction.WARN == "warn"
    assert PermissionAction.IGNORE == "ignore"

    assert PermissionAction("raise") == PermissionAction.RAISE
    assert PermissionAction("warn") == PermissionAction.WARN
    assert PermissionAction("ignore") == PermissionAction.IGNORE


def test_permission_action_rejects_unknown_values():
    with pytest.raises(ValueError):
        PermissionAction("fail")
