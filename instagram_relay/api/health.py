"""Health check endpoints."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from instagram_relay.constants import ROOT_HEALTH_MESSAGE

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    """Plain-text liveness message."""
    return ROOT_HEALTH_MESSAGE


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
