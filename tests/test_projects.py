"""Tests for projects and labels."""

import pytest

from momentum.models import Issue, Project
from momentum.utils.project_service import derive_project_key, rename_project


@pytest.mark.parametrize("name,key", [
    ("Quality Engineering", "QE"),
    ("web app platform team", "WAP"),
    ("Mobile", "M"),
    ("  spaced   out  ", "SO"),
    ("#general 2nd try", "2T"),
    ("!!! ???", "PRJ"),
    ("", "PRJ"),
])
def test_derive_project_key(name, key) -> None:
    assert derive_project_key(name) == key


class TestProjects:
    """Tests for the project endpoints."""

    def test_create(self, client, alice) -> None:
        response = client.post(
            f"/workspaces/{alice.workspace_id}/projects",
            json={"name": "Quality Engineering", "color": "#112233", "description": "QA"},
            headers=alice.headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert (data["key"], data["color"], data["issue_counter"]) == ("QE", "#112233", 0)

    def test_default_color(self, client, alice) -> None:
        data = client.post(f"/workspaces/{alice.workspace_id}/projects", json={"name": "X"}, headers=alice.headers).json()
        assert data["color"] == "#9D58BF"

    def test_bad_color(self, client, alice) -> None:
        response = client.post(
            f"/workspaces/{alice.workspace_id}/projects",
            json={"name": "X", "color": "red"},
            headers=alice.headers,
        )
        assert response.status_code == 422

    def test_listing_is_ordered_by_name(self, client, alice) -> None:
        for name in ("Zeta", "Alpha"):
            client.post(f"/workspaces/{alice.workspace_id}/projects", json={"name": name}, headers=alice.headers)
        names = [p["name"] for p in client.get(f"/workspaces/{alice.workspace_id}/projects", headers=alice.headers).json()]
        assert names == ["Alpha", "My Project", "Zeta"]

    def test_rename_keeps_key(self, client, alice, project) -> None:
        response = client.patch(f"/projects/{project['id']}", json={"name": "Quality Engineering"}, headers=alice.headers)
        assert response.json()["name"] == "Quality Engineering"
        assert response.json()["key"] == "PRJ"

    def test_rename_project_service(self, db, dispatcher, project) -> None:
        row = db.get(Project, project["id"])
        renamed = rename_project(db, row, "Web App Platform", dispatcher)
        assert (renamed.name, renamed.key) == ("Web App Platform", "PRJ")
        assert renamed.issue_counter == project["issue_counter"]

    def test_explicit_key(self, client, alice, project) -> None:
        response = client.patch(f"/projects/{project['id']}", json={"key": "core"}, headers=alice.headers)
        assert response.json()["key"] == "CORE"

    def test_lead_must_be_member(self, client, alice, bob, project) -> None:
        response = client.patch(f"/projects/{project['id']}", json={"lead_id": bob.id}, headers=alice.headers)
        assert response.status_code == 400

        ok = client.patch(f"/projects/{project['id']}", json={"lead_id": alice.id}, headers=alice.headers)
        assert ok.json()["lead"]["id"] == alice.id

    def test_foreign_project_looks_missing(self, client, bob, project) -> None:
        response = client.get(f"/projects/{project['id']}", headers=bob.headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Project not found"


class TestLabels:
    """Tests for the label endpoints."""

    def test_create_and_list_sorted(self, client, alice) -> None:
        response = client.post(
            f"/workspaces/{alice.workspace_id}/labels",
            json={"name": "Docs", "color": "#00AAFF"},
            headers=alice.headers,
        )
        assert response.status_code == 201
        names = [l["name"] for l in client.get(f"/workspaces/{alice.workspace_id}/labels", headers=alice.headers).json()]
        assert names == ["Bug", "Docs", "Feature", "Improvement"]

    def test_color_validated(self, client, alice) -> None:
        response = client.post(
            f"/workspaces/{alice.workspace_id}/labels",
            json={"name": "Bad", "color": "#GGGGGG"},
            headers=alice.headers,
        )
        assert response.status_code == 422

    def test_update(self, client, alice, labels) -> None:
        response = client.patch(f"/labels/{labels['Bug']['id']}", json={"color": "#000000"}, headers=alice.headers)
        assert response.json() == {**labels["Bug"], "color": "#000000"}

    def test_delete_keeps_issues(self, client, db, alice, labels, create_issue) -> None:
        issue = create_issue("Tagged", labels=[labels["Bug"]["id"], labels["Feature"]["id"]])
        response = client.delete(f"/labels/{labels['Bug']['id']}", headers=alice.headers)
        assert response.status_code == 200

        remaining = client.get(f"/issues/{issue['id']}", headers=alice.headers).json()
        assert [l["name"] for l in remaining["labels"]] == ["Feature"]
        assert db.query(Issue).count() == 1

    def test_foreign_label_looks_missing(self, client, bob, labels) -> None:
        response = client.delete(f"/labels/{labels['Bug']['id']}", headers=bob.headers)
        assert response.status_code == 404
