"""
Python client for the Momentum HTTP API.

``MomentumClient`` is a thin wrapper over ``httpx.Client``; pass any
``httpx.Client`` (a FastAPI ``TestClient`` included) to reuse its transport.
``IssueCache`` layers cached reads and optimistic writes on top of it.
"""
import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from momentum.client.cache import QueryCache, optimistic
from momentum.utils.filters import FilterCriteria, filter_issues, get_view, resolve_criteria

logger = logging.getLogger(__name__)

ISSUES = ("issues",)
PENDING_IDENTIFIER = "NEW"


class MomentumAPIError(Exception):
    """Non-2xx response from the API"""

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


class MomentumClient:
    """Client for the Momentum REST API."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        token: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, ignored when `client` is given
            token: Bearer token from login or signup
            client: Pre-built httpx client to send requests through
            timeout: Request timeout for the client built here
        """
        self.http = client or httpx.Client(base_url=base_url, timeout=timeout)
        self.token = token
        self.user_id: Optional[int] = None

    def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(method, path, headers=headers, **kwargs)
        if response.is_error:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            raise MomentumAPIError(response.status_code, detail)
        return response.json()

    # ---------------- AUTH ---------------- #

    def signup(self, name: str, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/signup", json={
            "name": name, "email": email, "password": password,
        })
        self.token = data["access_token"]
        self.user_id = data["user"]["id"]
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        self.user_id = data["user"]["id"]
        return data

    def me(self) -> dict:
        data = self._request("GET", "/auth/me")
        self.user_id = data["id"]
        return data

    # ---------------- CATALOG ---------------- #

    def list_workspaces(self) -> List[dict]:
        return self._request("GET", "/workspaces")

    def list_projects(self, workspace_id: int) -> List[dict]:
        return self._request("GET", f"/workspaces/{workspace_id}/projects")

    def create_project(self, workspace_id: int, name: str, **fields) -> dict:
        return self._request("POST", f"/workspaces/{workspace_id}/projects", json={"name": name, **fields})

    def list_labels(self, workspace_id: int) -> List[dict]:
        return self._request("GET", f"/workspaces/{workspace_id}/labels")

    # ---------------- ISSUES ---------------- #

    def list_issues(self, **params) -> List[dict]:
        """
        Args:
            params: Query parameters: view, status, priority, assignee_id,
                project_id, search, labels, workspace_id
        """
        query = {k: v for k, v in params.items() if v is not None}
        return self._request("GET", "/issues", params=query)

    def get_issue(self, issue_id: int) -> dict:
        return self._request("GET", f"/issues/{issue_id}")

    def create_issue(self, project_id: int, **fields) -> dict:
        return self._request("POST", f"/projects/{project_id}/issues", json=fields)

    def update_issue(self, issue_id: int, **changes) -> dict:
        return self._request("PATCH", f"/issues/{issue_id}", json=changes)

    def delete_issue(self, issue_id: int) -> dict:
        return self._request("DELETE", f"/issues/{issue_id}")

    def close(self):
        self.http.close()


def _freeze(params: Dict[str, Any]) -> tuple:
    frozen = []
    for name, value in sorted(params.items()):
        if value is None:
            continue
        if isinstance(value, list):
            value = tuple(value)
        frozen.append((name, value))
    return tuple(frozen)


def _many(value) -> list:
    if value is None:
        return []
    if isinstance(value, (str, int)):
        return [value]
    return list(value)


def _local_criteria(params: tuple, user_id: Optional[int] = None) -> FilterCriteria:
    """
    Effective filter of a cached list query, for placing tentative rows.
    Resolved the same way the server resolves it, view included.
    """
    values = dict(params)
    return resolve_criteria(
        view_id=values.get("view"),
        current_user_id=user_id,
        status=_many(values.get("status")),
        priority=_many(values.get("priority")),
        assignee_id=values.get("assignee_id"),
        project_id=values.get("project_id"),
        search=values.get("search"),
        label_ids=_many(values.get("labels")),
    )


class IssueCache:
    """
    Cached issue queries with optimistic mutations.

    Lists live under ``("issues", "list", <params>)`` and details under
    ``("issues", "detail", <id>)``. Mutations edit those entries before the
    server answers, roll them back on failure and mark them stale either way.
    """

    def __init__(self, client: MomentumClient, cache: Optional[QueryCache] = None):
        self.client = client
        self.cache = cache or QueryCache()
        self._temp_ids = itertools.count(-1, -1)

    def _user_id_for(self, list_keys: list) -> Optional[int]:
        """The caller's id, fetched only when a cached list uses a personal view."""
        personal = any(
            getattr(get_view(dict(key[2]).get("view") or ""), "mine", False) for key in list_keys
        )
        if personal and self.client.user_id is None:
            self.client.me()
        return self.client.user_id

    def list_issues(self, **params) -> List[dict]:
        key = ISSUES + ("list", _freeze(params))
        if self.cache.is_stale(key):
            self.cache.set(key, self.client.list_issues(**params))
        return self.cache.get(key)

    def get_issue(self, issue_id: int) -> dict:
        key = ISSUES + ("detail", issue_id)
        if self.cache.is_stale(key):
            self.cache.set(key, self.client.get_issue(issue_id))
        return self.cache.get(key)

    def create_issue(self, project_id: int, **fields) -> dict:
        tentative = {
            "id": next(self._temp_ids),
            "identifier": PENDING_IDENTIFIER,
            "project_id": project_id,
            "status": "backlog",
            "priority": "none",
            "assignee_id": None,
            "description": None,
            "labels": [],
            **fields,
        }
        # Label ids are sent as ints but cached issues carry label objects
        tentative["labels"] = [{"id": label_id} for label_id in fields.get("labels", [])]

        user_id = self._user_id_for(self.cache.keys(ISSUES + ("list",)))

        def apply(cache: QueryCache):
            def add(key, issues):
                if key[1] != "list" or not filter_issues([tentative], _local_criteria(key[2], user_id)):
                    return issues
                return [tentative] + list(issues)
            cache.set_matching(ISSUES, add)

        return optimistic(
            self.cache, ISSUES, apply,
            lambda: self.client.create_issue(project_id, **fields),
        )

    def update_issue(self, issue_id: int, **changes) -> dict:
        local = {k: v for k, v in changes.items() if k != "labels"}

        def apply(cache: QueryCache):
            def patch(key, value):
                if key[1] == "detail":
                    return {**value, **local} if key[2] == issue_id and value else value
                return [{**i, **local} if i["id"] == issue_id else i for i in value]
            cache.set_matching(ISSUES, patch)

        return optimistic(
            self.cache, ISSUES, apply,
            lambda: self.client.update_issue(issue_id, **changes),
        )

    def delete_issue(self, issue_id: int) -> dict:
        def apply(cache: QueryCache):
            for key in cache.keys(ISSUES + ("detail", issue_id)):
                cache.set(key, None)
            cache.set_matching(
                ISSUES + ("list",),
                lambda key, issues: [i for i in issues if i["id"] != issue_id],
            )

        return optimistic(
            self.cache, ISSUES, apply,
            lambda: self.client.delete_issue(issue_id),
        )
