"""Tests for issue creation, update, deletion and listing."""

import threading

from momentum.models import Issue, Project, User
from momentum.schemas import IssueCreateRequest
from momentum.utils import issue_service


class TestIdentifiers:
    """Tests for per-project identifier allocation."""

    def test_sequential_identifiers(self, create_issue, project) -> None:
        first = create_issue("First")
        second = create_issue("Second")
        assert first["identifier"] == f"{project['key']}-1"
        assert second["identifier"] == f"{project['key']}-2"

    def test_counters_are_per_project(self, client, alice, create_issue) -> None:
        response = client.post(
            f"/workspaces/{alice.workspace_id}/projects",
            json={"name": "Quality Engineering"},
            headers=alice.headers,
        )
        qe = response.json()
        create_issue("Default project issue")
        issue = create_issue("QE issue", project_id=qe["id"])
        assert issue["identifier"] == "QE-1"

    def test_concurrent_creation_yields_distinct_identifiers(self, session_factory, dispatcher, alice, project) -> None:
        """Parallel creators in separate sessions never share a number."""
        workers = 8
        results, errors = [], []
        barrier = threading.Barrier(workers)

        def worker(n: int) -> None:
            session = session_factory()
            try:
                user = session.get(User, alice.id)
                target = session.get(Project, project["id"])
                barrier.wait()
                issue = issue_service.create_issue(
                    session, user, target, IssueCreateRequest(title=f"Parallel {n}"), dispatcher
                )
                results.append(issue.identifier)
            except Exception as e:
                errors.append(e)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(results, key=lambda i: int(i.split("-")[1])) == [f"PRJ-{n}" for n in range(1, workers + 1)]

        session = session_factory()
        try:
            assert session.get(Project, project["id"]).issue_counter == workers
        finally:
            session.close()


class TestCreateIssue:
    """Tests for issue creation validation."""

    def test_defaults(self, create_issue, alice) -> None:
        issue = create_issue("Defaults")
        assert issue["status"] == "backlog"
        assert issue["priority"] == "none"
        assert issue["creator_id"] == alice.id
        assert issue["labels"] == []

    def test_with_labels_and_assignee(self, create_issue, alice, labels) -> None:
        issue = create_issue(
            "Labelled",
            labels=[labels["Feature"]["id"], labels["Bug"]["id"]],
            assignee_id=alice.id,
            priority="high",
        )
        assert [label["name"] for label in issue["labels"]] == ["Bug", "Feature"]
        assert issue["assignee_id"] == alice.id

    def test_assignee_must_be_member(self, client, alice, bob, project) -> None:
        response = client.post(
            f"/projects/{project['id']}/issues",
            json={"title": "Nope", "assignee_id": bob.id},
            headers=alice.headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("assignee_id")

    def test_label_from_other_workspace_rejected(self, client, alice, bob, project) -> None:
        bob_labels = client.get(f"/workspaces/{bob.workspace_id}/labels", headers=bob.headers).json()
        response = client.post(
            f"/projects/{project['id']}/issues",
            json={"title": "Nope", "labels": [bob_labels[0]["id"]]},
            headers=alice.headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("labels")

    def test_empty_title_rejected(self, client, alice, project) -> None:
        response = client.post(f"/projects/{project['id']}/issues", json={"title": ""}, headers=alice.headers)
        assert response.status_code == 422

    def test_invalid_status_rejected(self, client, alice, project) -> None:
        response = client.post(
            f"/projects/{project['id']}/issues",
            json={"title": "Bad", "status": "blocked"},
            headers=alice.headers,
        )
        assert response.status_code == 422

    def test_failed_validation_does_not_consume_number(self, client, alice, bob, project, create_issue) -> None:
        client.post(
            f"/projects/{project['id']}/issues",
            json={"title": "Nope", "assignee_id": bob.id},
            headers=alice.headers,
        )
        assert create_issue("Real")["identifier"] == "PRJ-1"


class TestUpdateIssue:
    """Tests for partial updates."""

    def test_absent_field_is_untouched(self, client, alice, create_issue) -> None:
        issue = create_issue("Assigned", assignee_id=alice.id, estimate=3)
        response = client.patch(f"/issues/{issue['id']}", json={"title": "Renamed"}, headers=alice.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert data["assignee_id"] == alice.id
        assert data["estimate"] == 3

    def test_explicit_null_clears(self, client, alice, create_issue) -> None:
        issue = create_issue("Assigned", assignee_id=alice.id, estimate=3)
        response = client.patch(
            f"/issues/{issue['id']}",
            json={"assignee_id": None, "estimate": None},
            headers=alice.headers,
        )
        data = response.json()
        assert data["assignee_id"] is None
        assert data["estimate"] is None
        assert data["title"] == "Assigned"

    def test_null_title_rejected(self, client, alice, create_issue) -> None:
        issue = create_issue()
        response = client.patch(f"/issues/{issue['id']}", json={"title": None}, headers=alice.headers)
        assert response.status_code == 422

    def test_labels_replace_whole_set(self, client, alice, labels, create_issue) -> None:
        issue = create_issue(labels=[labels["Bug"]["id"], labels["Feature"]["id"]])
        response = client.patch(
            f"/issues/{issue['id']}",
            json={"labels": [labels["Improvement"]["id"]]},
            headers=alice.headers,
        )
        assert [label["name"] for label in response.json()["labels"]] == ["Improvement"]

    def test_updated_at_always_refreshed(self, client, alice, create_issue) -> None:
        issue = create_issue()
        response = client.patch(f"/issues/{issue['id']}", json={}, headers=alice.headers)
        assert response.status_code == 200
        assert response.json()["updated_at"] >= issue["updated_at"]

    def test_status_change(self, client, alice, create_issue) -> None:
        issue = create_issue()
        response = client.patch(f"/issues/{issue['id']}", json={"status": "done"}, headers=alice.headers)
        assert response.json()["status"] == "done"


class TestDeleteIssue:
    """Tests for issue deletion and the detail view."""

    def test_delete(self, client, alice, create_issue) -> None:
        issue = create_issue()
        response = client.delete(f"/issues/{issue['id']}", headers=alice.headers)
        assert response.status_code == 200
        assert client.get(f"/issues/{issue['id']}", headers=alice.headers).status_code == 404

    def test_sub_issues_survive_parent_deletion(self, client, alice, create_issue) -> None:
        parent = create_issue("Parent")
        child = create_issue("Child", parent_id=parent["id"])

        detail = client.get(f"/issues/{parent['id']}", headers=alice.headers).json()
        assert [sub["id"] for sub in detail["sub_issues"]] == [child["id"]]

        client.delete(f"/issues/{parent['id']}", headers=alice.headers)
        remaining = client.get(f"/issues/{child['id']}", headers=alice.headers).json()
        assert remaining["parent_id"] is None

    def test_project_deletion_removes_issues(self, client, db, alice, project, create_issue) -> None:
        create_issue()
        create_issue()
        response = client.delete(f"/projects/{project['id']}", headers=alice.headers)
        assert response.status_code == 200
        assert db.query(Issue).count() == 0


class TestListIssues:
    """Tests for issue listing, views and the board."""

    def test_newest_first(self, client, alice, create_issue) -> None:
        create_issue("Older")
        create_issue("Newer")
        titles = [i["title"] for i in client.get("/issues", headers=alice.headers).json()]
        assert titles == ["Newer", "Older"]

    def test_view_with_adhoc_status(self, client, alice, create_issue) -> None:
        create_issue("Working", status="in_progress")
        create_issue("Finished", status="done")
        response = client.get(
            "/issues",
            params={"view": "view-active", "status": ["done"]},
            headers=alice.headers,
        )
        assert [i["title"] for i in response.json()] == ["Finished"]

    def test_search_and_labels(self, client, alice, labels, create_issue) -> None:
        create_issue("Crash on save", labels=[labels["Bug"]["id"]])
        create_issue("Dark mode", labels=[labels["Feature"]["id"]])
        by_search = client.get("/issues", params={"search": "CRASH"}, headers=alice.headers).json()
        by_label = client.get("/issues", params={"labels": [labels["Feature"]["id"]]}, headers=alice.headers).json()
        assert [i["title"] for i in by_search] == ["Crash on save"]
        assert [i["title"] for i in by_label] == ["Dark mode"]

    def test_unknown_view(self, client, alice) -> None:
        response = client.get("/issues", params={"view": "view-unknown"}, headers=alice.headers)
        assert response.status_code == 400

    def test_board_has_six_columns(self, client, alice, create_issue) -> None:
        create_issue("Todo", status="todo")
        board = client.get("/issues/board", headers=alice.headers).json()
        assert [column["status"] for column in board] == [
            "backlog", "todo", "in_progress", "in_review", "done", "cancelled"
        ]
        assert board[1]["count"] == 1

        compact = client.get("/issues/board", params={"hide_empty": True}, headers=alice.headers).json()
        assert [column["status"] for column in compact] == ["todo"]

    def test_views_listing(self, client, alice) -> None:
        views = client.get("/issues/views", headers=alice.headers).json()
        assert views[0]["id"] == "view-inbox"
        assert "cancelled" not in views[0]["filter"]["status"]
