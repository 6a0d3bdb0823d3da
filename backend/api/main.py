"""FastAPI application for the Queso API.

Routers:
- /health: load balancer health check
- /api/users: signup, listing, lookup and self-deletion
- /api/auth: password login, session info, logout and Google sign-in
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.version import __version__
from api.errors import register_exception_handlers
from api.routers import auth, health, users
from api.services.database import close_db
from common.config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(f"{settings.app_name} API {__version__} starting ({settings.environment})")
    yield
    await close_db()
    logger.info("Database engine disposed")


app = FastAPI(
    title="Queso API",
    description="User accounts and authentication for Queso",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)

for module, tag in ((health, "Health"), (users, "Users"), (auth, "Auth")):
    app.include_router(module.router, tags=[tag])
