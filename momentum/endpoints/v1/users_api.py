from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import User
from momentum.auth.dependencies import get_current_user
from momentum.utils.utils import user_to_dict
from momentum.utils.workspace_service import list_visible_users

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
def get_users(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Users sharing at least one workspace with the caller, for assignee pickers"""
    return [user_to_dict(u) for u in list_visible_users(db, user)]
