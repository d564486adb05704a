"""Suggestion endpoints, including vote toggling and ordering."""

import pytest


@pytest.fixture
def make_suggestion(as_group):
    def _make(group_id="group-a", **overrides):
        body = {"title": "Dark mode", "description": "Please add a dark theme"}
        body.update(overrides)
        resp = as_group(group_id, "suggestionsCreate", body)
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _make


def test_create_defaults(make_suggestion):
    s = make_suggestion()
    assert s["category"] == "feature"
    assert s["priority"] == "medium"
    assert s["status"] == "submitted"
    assert s["votes"] == 0
    assert s["votedByGroups"] == []
    assert s["relatedRecipeId"] is None


def test_create_rejects_unknown_category(as_group):
    resp = as_group("group-a", "suggestionsCreate", {
        "title": "x", "description": "y", "category": "wish",
    })
    assert resp.status_code == 400
    assert "category" in resp.json()["error"]


def test_vote_toggles(make_suggestion, as_group):
    s = make_suggestion()

    first = as_group("group-b", "suggestionsVote", {"id": s["id"]}).json()
    assert first["voted"] is True
    assert first["votes"] == 1
    assert first["votedByGroups"] == ["group-b"]
    assert first["updatedByGroupId"] == "group-b"
    # Voting is not an ownership change
    assert first["createdByGroupId"] == "group-a"

    other = as_group("group-c", "suggestionsVote", {"id": s["id"]}).json()
    assert other["votes"] == 2

    undone = as_group("group-b", "suggestionsVote", {"id": s["id"]}).json()
    assert undone["voted"] is False
    assert undone["votes"] == 1
    assert undone["votedByGroups"] == ["group-c"]


def test_vote_on_archived_is_not_found(make_suggestion, as_group):
    s = make_suggestion()
    as_group("group-a", "suggestionsDelete", {"id": s["id"]})
    assert as_group("group-b", "suggestionsVote", {"id": s["id"]}).status_code == 404


def test_list_orders_by_votes_then_newest(make_suggestion, as_group):
    old = make_suggestion(title="old")
    popular = make_suggestion(title="popular")
    new = make_suggestion(title="new")
    as_group("group-b", "suggestionsVote", {"id": popular["id"]})

    items = as_group("group-a", "suggestionsList", {}).json()["items"]
    assert [i["id"] for i in items] == [popular["id"], new["id"], old["id"]]


def test_list_status_filter(make_suggestion, as_group):
    s = make_suggestion()
    make_suggestion(title="other")
    as_group("group-a", "suggestionsUpdate", {"id": s["id"], "status": "accepted"})

    items = as_group("group-b", "suggestionsList", {"status": "accepted"}).json()["items"]
    assert [i["id"] for i in items] == [s["id"]]
    assert items[0]["canBeEditedByYou"] is False


def test_update_and_delete_are_owner_only(make_suggestion, as_group):
    s = make_suggestion()

    denied = as_group("group-b", "suggestionsUpdate", {"id": s["id"], "priority": "high"})
    assert denied.status_code == 400
    assert "suggestionsDuplicate" in denied.json()["error"]
    assert as_group("group-b", "suggestionsDelete", {"id": s["id"]}).status_code == 400

    ok = as_group("group-a", "suggestionsUpdate", {"id": s["id"], "priority": "high"})
    assert ok.json()["priority"] == "high"
    assert ok.json()["title"] == "Dark mode"


def test_duplicate_resets_lifecycle(make_suggestion, as_group):
    s = make_suggestion()
    as_group("group-a", "suggestionsUpdate", {"id": s["id"], "status": "accepted"})
    as_group("group-b", "suggestionsVote", {"id": s["id"]})

    copy = as_group("group-b", "suggestionsDuplicate", {"id": s["id"], "priority": "low"})
    assert copy.status_code == 201
    data = copy.json()
    assert data["variantOf"] == s["id"]
    assert data["status"] == "submitted"
    assert data["votes"] == 0
    assert data["votedByGroups"] == []
    assert data["priority"] == "low"
    assert data["title"] == "Dark mode"
    assert data["createdByGroupId"] == "group-b"


def test_list_without_body(make_suggestion, client):
    s = make_suggestion()
    resp = client.post("/api/suggestionsList", headers={"x-group-id": "group-b"})
    assert resp.status_code == 200, resp.text
    assert [i["id"] for i in resp.json()["items"]] == [s["id"]]
