"""Tests for the client-side query cache and optimistic mutations."""

import pytest

from momentum.client import IssueCache, MomentumAPIError, MomentumClient, QueryCache, optimistic


class TestQueryCache:
    """Tests for the cache primitives."""

    def test_set_get_and_staleness(self) -> None:
        cache = QueryCache()
        assert cache.is_stale(("issues", 1))
        cache.set(("issues", 1), {"title": "A"})
        assert not cache.is_stale(("issues", 1))
        cache.invalidate(("issues",))
        assert cache.is_stale(("issues", 1))
        assert cache.get(("issues", 1)) == {"title": "A"}

    def test_prefix_scoping(self) -> None:
        cache = QueryCache()
        cache.set(("issues", 1), 1)
        cache.set(("projects", 1), 2)
        cache.invalidate(("issues",))
        assert cache.is_stale(("issues", 1))
        assert not cache.is_stale(("projects", 1))

    def test_subscribe_and_unsubscribe(self) -> None:
        cache = QueryCache()
        seen = []
        unsubscribe = cache.subscribe(seen.append)
        cache.set(("a",), 1)
        unsubscribe()
        cache.set(("b",), 2)
        assert seen == [("a",)]


class TestOptimistic:
    """Tests for the commit-or-revert wrapper."""

    def test_success_keeps_change_and_invalidates(self) -> None:
        cache = QueryCache()
        cache.set(("issues", "list"), ["a"])

        result = optimistic(
            cache, ("issues",),
            lambda c: c.set_matching(("issues",), lambda key, value: value + ["b"]),
            lambda: "ok",
        )
        assert result == "ok"
        assert cache.get(("issues", "list")) == ["a", "b"]
        assert cache.is_stale(("issues", "list"))

    def test_failure_restores_snapshot(self) -> None:
        cache = QueryCache()
        cache.set(("issues", "list"), [{"id": 1, "title": "Original"}])

        def apply(c):
            c.set_matching(("issues",), lambda key, value: [{**i, "title": "Tentative"} for i in value])
            c.set(("issues", "extra"), ["tentative entry"])

        def mutate():
            assert cache.get(("issues", "list"))[0]["title"] == "Tentative"
            raise RuntimeError("server said no")

        with pytest.raises(RuntimeError):
            optimistic(cache, ("issues",), apply, mutate)

        assert cache.get(("issues", "list")) == [{"id": 1, "title": "Original"}]
        assert not cache.has(("issues", "extra"))
        assert cache.is_stale(("issues", "list"))


class TestIssueCache:
    """Tests for cached issue queries against the API."""

    @pytest.fixture
    def issues(self, client, alice) -> IssueCache:
        return IssueCache(MomentumClient(client=client, token=alice.token))

    def test_list_is_cached_until_invalidated(self, issues, create_issue) -> None:
        create_issue("First")
        assert [i["title"] for i in issues.list_issues()] == ["First"]

        create_issue("Behind the cache's back")
        assert [i["title"] for i in issues.list_issues()] == ["First"]

        issues.cache.invalidate()
        assert len(issues.list_issues()) == 2

    def test_optimistic_create(self, issues, project) -> None:
        issues.list_issues()
        seen = []
        issues.cache.subscribe(lambda key: seen.append(issues.cache.get(("issues", "list", ()))))

        created = issues.create_issue(project["id"], title="Fresh")

        assert any(value and value[0]["identifier"] == "NEW" for value in seen)
        assert created["identifier"] == "PRJ-1"
        assert [i["identifier"] for i in issues.list_issues()] == ["PRJ-1"]

    def test_tentative_row_follows_view(self, issues, project) -> None:
        """A new backlog issue shows up in the unfiltered list but never in the Active view."""
        active_key = ("issues", "list", (("view", "view-active"),))
        all_key = ("issues", "list", ())
        issues.list_issues(view="view-active")
        issues.list_issues()
        seen = []
        issues.cache.subscribe(lambda key: seen.append(
            (issues.cache.get(active_key), issues.cache.get(all_key))
        ))

        issues.create_issue(project["id"], title="Parked", status="backlog")

        assert any(everything and everything[0]["identifier"] == "NEW" for _, everything in seen)
        assert all(active == [] for active, _ in seen)
        assert issues.list_issues(view="view-active") == []

    def test_tentative_row_follows_personal_view(self, issues, alice, project) -> None:
        mine_key = ("issues", "list", (("view", "view-my-issues"),))
        issues.list_issues(view="view-my-issues")
        seen = []
        issues.cache.subscribe(lambda key: seen.append(issues.cache.get(mine_key)))

        issues.create_issue(project["id"], title="Unassigned")
        issues.create_issue(project["id"], title="Mine", assignee_id=alice.id)

        assert issues.client.user_id == alice.id
        assert any(value and value[0]["title"] == "Mine" and value[0]["identifier"] == "NEW" for value in seen)
        assert not any(value and value[0]["title"] == "Unassigned" for value in seen)

    def test_optimistic_update(self, issues, create_issue) -> None:
        issue = create_issue("Before")
        issues.list_issues()
        issues.update_issue(issue["id"], title="After")
        assert issues.list_issues()[0]["title"] == "After"

    def test_failed_update_rolls_back(self, issues, bob, create_issue) -> None:
        issue = create_issue("Unchanged")
        before = issues.list_issues()

        with pytest.raises(MomentumAPIError) as error:
            issues.update_issue(issue["id"], title="Changed", assignee_id=bob.id)

        assert error.value.status_code == 400
        key = ("issues", "list", ())
        assert issues.cache.get(key) == before
        assert issues.cache.is_stale(key)
        assert issues.list_issues()[0]["title"] == "Unchanged"

    def test_optimistic_delete(self, issues, create_issue) -> None:
        issue = create_issue()
        issues.list_issues()
        issues.delete_issue(issue["id"])
        assert issues.list_issues() == []
