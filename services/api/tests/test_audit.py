"""Audit stamping and ownership checks."""

from types import SimpleNamespace

import pytest

from cookbook.core.audit import can_edit, require_ownership, stamp_create, stamp_update
from cookbook.errors import AccessDenied


def _doc():
    return stamp_create(SimpleNamespace(), "group-a")


def test_stamp_create_sets_both_sides():
    doc = _doc()
    assert doc.created_at == doc.updated_at
    assert doc.created_at.tzinfo is not None
    assert doc.created_by_group_id == doc.updated_by_group_id == "group-a"
    assert doc.is_archived is False


def test_stamp_update_keeps_creation_fields():
    doc = _doc()
    created_at = doc.created_at

    stamp_update(doc, "group-b")

    assert doc.created_at == created_at
    assert doc.created_by_group_id == "group-a"
    assert doc.updated_by_group_id == "group-b"
    assert doc.updated_at >= created_at


def test_can_edit_only_for_creator():
    doc = _doc()
    assert can_edit(doc, "group-a") is True
    assert can_edit(doc, "group-b") is False


def test_require_ownership_message_is_actionable():
    doc = _doc()
    require_ownership(doc, "group-a", "recipe", "r1", "recipesDuplicate")

    with pytest.raises(AccessDenied) as exc:
        require_ownership(doc, "group-b", "recipe", "r1", "recipesDuplicate")

    message = exc.value.message
    assert "'r1'" in message
    assert "group 'group-a'" in message
    assert "recipesDuplicate" in message
    assert exc.value.status_code == 400
