import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from momentum.database.session import get_db
from momentum.models import User
from momentum.auth.auth_utils import (
    hash_password,
    verify_password,
    create_access_token,
    validate_password,
    normalize_email
)
from momentum.auth.dependencies import get_current_user
from momentum.constants import ErrorMessages, SuccessMessages
from momentum.schemas import LoginRequest, SignupRequest, UserUpdate
from momentum.utils.utils import user_to_dict, workspace_to_dict
from momentum.utils.workspace_service import delete_user, ensure_default_workspace

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_response(user: User) -> dict:
    return {
        "access_token": create_access_token({"user_id": user.id, "email": user.email}),
        "token_type": "bearer",
        "user": user_to_dict(user),
    }


@router.post("/signup", status_code=201)
def signup(
    request: SignupRequest,
    db: Session = Depends(get_db)
):
    """
    Registers a new user and bootstraps their first workspace.
    """
    email = normalize_email(request.email)
    validate_password(request.password)

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail=ErrorMessages.EMAIL_EXISTS)

    user = User(
        name=request.name,
        email=email,
        hashed_password=hash_password(request.password)
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} signed up")

    workspace = ensure_default_workspace(db, user)

    response = _token_response(user)
    response["workspace"] = workspace_to_dict(workspace, role="owner")
    return response


@router.post("/login")
def login(
    request: LoginRequest,
    db: Session = Depends(get_db)
):
    """Validates credentials and returns a bearer token"""
    user = db.query(User).filter(User.email == request.email.strip().lower()).first()
    if not user or not verify_password(request.password, user.hashed_password):
        raise HTTPException(status_code=401, detail=ErrorMessages.INVALID_CREDENTIALS)
    return _token_response(user)


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    return user_to_dict(user)


@router.put("/me")
def update_me(
    request: UserUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """
    Updates the caller's name and/or email.
    """
    if request.email is not None:
        email = normalize_email(request.email)
        if email != user.email and db.query(User).filter(User.email == email).first():
            raise HTTPException(status_code=400, detail=ErrorMessages.EMAIL_EXISTS)
        user.email = email
    if request.name is not None:
        user.name = request.name

    db.commit()
    db.refresh(user)
    return user_to_dict(user)


@router.delete("/me")
def delete_me(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    delete_user(db, user)
    return {"message": SuccessMessages.USER_DELETED}
