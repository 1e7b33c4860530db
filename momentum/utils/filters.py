"""
Filter and view engine.

Pure functions over issue collections. Issues may be ORM rows or the plain
dicts produced by ``issue_to_dict``, so the same rules run on the server and
in the client cache.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from momentum.constants import IssueStatuses

PROJECT_VIEW_PREFIX = "project-"


@dataclass
class FilterCriteria:
    status: List[str] = field(default_factory=list)
    priority: List[str] = field(default_factory=list)
    assignee_id: Optional[int] = None
    project_id: Optional[int] = None
    search: Optional[str] = None
    label_ids: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class View:
    id: str
    name: str
    icon: str
    status: tuple = ()
    priority: tuple = ()
    mine: bool = False

    def to_dict(self) -> dict:
        data = {"id": self.id, "name": self.name, "icon": self.icon}
        static = {}
        if self.status:
            static["status"] = list(self.status)
        if self.priority:
            static["priority"] = list(self.priority)
        if static:
            data["filter"] = static
        return data


BUILTIN_VIEWS = [
    View(
        "view-inbox",
        "Inbox",
        "inbox",
        status=tuple(s for s in IssueStatuses.ALL if s != IssueStatuses.CANCELLED),
    ),
    View("view-my-issues", "My Issues", "user", mine=True),
    View(
        "view-active",
        "Active",
        "circle-dot",
        status=(IssueStatuses.IN_PROGRESS, IssueStatuses.IN_REVIEW),
    ),
    View("view-backlog", "Backlog", "layers", status=(IssueStatuses.BACKLOG,)),
]
VIEWS_BY_ID = {view.id: view for view in BUILTIN_VIEWS}


def get_view(view_id: str) -> Optional[View]:
    return VIEWS_BY_ID.get(view_id)


def project_view_id(project_id: int) -> str:
    return f"{PROJECT_VIEW_PREFIX}{project_id}"


def resolve_criteria(
    view_id: Optional[str] = None,
    current_user_id: Optional[int] = None,
    status: Optional[Iterable[str]] = None,
    priority: Optional[Iterable[str]] = None,
    assignee_id: Optional[int] = None,
    project_id: Optional[int] = None,
    search: Optional[str] = None,
    label_ids: Optional[Iterable[int]] = None,
) -> FilterCriteria:
    """
    Combines a named view with ad-hoc filters.

    The view's static filter is applied first. Every ad-hoc field that is
    supplied then replaces the view's value for that field; the two are never
    intersected.

    Args:
        view_id: Built-in view id, ``project-<id>``, or None
        current_user_id: Caller, used by the My Issues view
        status, priority, assignee_id, project_id, search, label_ids: Ad-hoc filters

    Returns:
        FilterCriteria: The effective criteria

    Raises:
        ValueError: If view_id names no known view
    """
    criteria = FilterCriteria()

    if view_id:
        if view_id.startswith(PROJECT_VIEW_PREFIX):
            try:
                criteria.project_id = int(view_id[len(PROJECT_VIEW_PREFIX):])
            except ValueError:
                raise ValueError(f"Unknown view: {view_id}")
        else:
            view = get_view(view_id)
            if view is None:
                raise ValueError(f"Unknown view: {view_id}")
            criteria.status = list(view.status)
            criteria.priority = list(view.priority)
            if view.mine:
                criteria.assignee_id = current_user_id

    status = list(status or [])
    priority = list(priority or [])
    if status:
        criteria.status = status
    if priority:
        criteria.priority = priority
    if assignee_id is not None:
        criteria.assignee_id = assignee_id
    if project_id is not None:
        criteria.project_id = project_id
    if search:
        criteria.search = search
    if label_ids:
        criteria.label_ids = list(label_ids)

    return criteria


def _get(issue, name):
    if isinstance(issue, dict):
        return issue.get(name)
    return getattr(issue, name, None)


def _label_ids(issue) -> set:
    ids = set()
    for label in _get(issue, "labels") or []:
        ids.add(label["id"] if isinstance(label, dict) else getattr(label, "id", label))
    return ids


def _matches_search(issue, needle: str) -> bool:
    needle = needle.lower()
    for name in ("title", "identifier", "description"):
        value = _get(issue, name)
        if value and needle in value.lower():
            return True
    return False


def matches(issue, criteria: FilterCriteria) -> bool:
    if criteria.status and _get(issue, "status") not in criteria.status:
        return False
    if criteria.priority and _get(issue, "priority") not in criteria.priority:
        return False
    if criteria.assignee_id is not None and _get(issue, "assignee_id") != criteria.assignee_id:
        return False
    if criteria.project_id is not None and _get(issue, "project_id") != criteria.project_id:
        return False
    if criteria.label_ids and not _label_ids(issue) & set(criteria.label_ids):
        return False
    if criteria.search and not _matches_search(issue, criteria.search):
        return False
    return True


def filter_issues(issues: Iterable, criteria: Optional[FilterCriteria] = None) -> list:
    """Returns the issues satisfying every criterion, preserving input order."""
    if criteria is None:
        return list(issues)
    return [issue for issue in issues if matches(issue, criteria)]


def group_by_status(issues: Iterable) -> "OrderedDict[str, list]":
    """
    Partitions issues into the six status buckets in display order.
    Every bucket is present, empty or not.
    """
    groups = OrderedDict((status, []) for status in IssueStatuses.ALL)
    for issue in issues:
        groups[_get(issue, "status")].append(issue)
    return groups


def non_empty_groups(groups: "OrderedDict[str, list]") -> "OrderedDict[str, list]":
    return OrderedDict((status, items) for status, items in groups.items() if items)

