from fastapi import APIRouter
from momentum.endpoints.v1 import (
    auth_api,
    users_api,
    workspaces_api,
    projects_api,
    labels_api,
    issues_api,
    webhooks_api
)

api_router = APIRouter()

api_router.include_router(auth_api.router)
api_router.include_router(users_api.router)
api_router.include_router(workspaces_api.router)
api_router.include_router(projects_api.router)
api_router.include_router(labels_api.router)
api_router.include_router(issues_api.router)
api_router.include_router(webhooks_api.router)
