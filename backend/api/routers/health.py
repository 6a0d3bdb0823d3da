"""Health check endpoint used by the ALB target group."""

from fastapi import APIRouter
from pydantic import BaseModel

from api.version import __version__
from common.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report liveness. Does not touch the database, so a slow Aurora
    failover does not take every task out of the target group."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.environment,
    )
