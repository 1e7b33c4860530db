import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from momentum.endpoints.router import api_router
from momentum.database.session import engine
from momentum.database.base import Base
from momentum.config.settings import settings
from momentum.utils.webhook_service import WebhookDispatcher

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.webhook_dispatcher = WebhookDispatcher()

# Include API Router
app.include_router(api_router)

@app.on_event("startup")
def startup_event():
    # Create tables if they don't exist
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.PROJECT_NAME} {settings.PROJECT_VERSION} started")

@app.on_event("shutdown")
def shutdown_event():
    app.state.webhook_dispatcher.shutdown(wait=True)

@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}"}
