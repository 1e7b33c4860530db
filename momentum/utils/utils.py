from typing import Optional


def _iso(value):
    return value.isoformat() if value else None


def user_to_dict(u):
    if not u: return None
    return {
        "id": u.id,
        "name": u.name,
        "email": u.email,
        "initials": u.initials,
        "created_at": _iso(u.created_at),
    }


def member_to_dict(m):
    data = user_to_dict(m.user)
    data.update({"role": m.role, "joined_at": _iso(m.joined_at)})
    return data


def workspace_to_dict(w, role: Optional[str] = None):
    data = {
        "id": w.id,
        "name": w.name,
        "slug": w.slug,
        "icon": w.icon,
        "owner_id": w.owner_id,
        "created_at": _iso(w.created_at),
        "updated_at": _iso(w.updated_at),
    }
    if role is not None:
        data["role"] = role
    return data


def project_to_dict(p):
    if not p: return None
    return {
        "id": p.id,
        "workspace_id": p.workspace_id,
        "name": p.name,
        "key": p.key,
        "color": p.color,
        "description": p.description,
        "lead_id": p.lead_id,
        "lead": user_to_dict(p.lead),
        "issue_counter": p.issue_counter,
        "created_at": _iso(p.created_at),
        "updated_at": _iso(p.updated_at),
    }


def label_to_dict(l):
    return {
        "id": l.id,
        "workspace_id": l.workspace_id,
        "name": l.name,
        "color": l.color,
    }


def issue_to_dict(s, include_sub_issues: bool = False):
    if not s: return None
    data = {
        "id": s.id,
        "identifier": s.identifier,
        "title": s.title,
        "description": s.description,
        "status": s.status,
        "priority": s.priority,
        "project_id": s.project_id,
        "assignee_id": s.assignee_id,
        "creator_id": s.creator_id,
        "parent_id": s.parent_id,
        "estimate": s.estimate,
        "due_date": _iso(s.due_date),
        "labels": [label_to_dict(l) for l in s.labels],
        "created_at": _iso(s.created_at),
        "updated_at": _iso(s.updated_at),
    }
    if include_sub_issues:
        data["sub_issues"] = [issue_to_dict(child) for child in s.sub_issues]
    return data


def webhook_to_dict(w):
    if not w: return None
    return {
        "id": w.id,
        "workspace_id": w.workspace_id,
        "url": w.url,
        "secret": w.secret,
        "enabled": w.enabled,
        "events": list(w.events or []),
        "created_at": _iso(w.created_at),
        "updated_at": _iso(w.updated_at),
    }


def compute_changes(old: dict, new: dict, fields: list) -> Optional[dict]:
    """
    Builds the before/after map for the tracked fields that differ.

    Args:
        old: Serialized resource before the mutation
        new: Serialized resource after the mutation
        fields: Field names to compare

    Returns:
        dict: ``{field: {"old": ..., "new": ...}}``, or None when nothing changed
    """
    changes = {}
    for field in fields:
        if field in new and old.get(field) != new[field]:
            changes[field] = {"old": old.get(field), "new": new[field]}
    return changes or None
