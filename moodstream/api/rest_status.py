"""REST endpoints for health, session status and control."""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException
from fastapi.requests import HTTPConnection
from pydantic import BaseModel
from moodstream.services.capture_service import CaptureService
from moodstream.core.logging import logger

router = APIRouter()


class SensitivityUpdate(BaseModel):
    """Request body for sensitivity changes."""
    value: float


def get_capture_service(connection: HTTPConnection) -> CaptureService:
    """Service created by the app lifespan, for both HTTP and WebSocket routes."""
    return connection.app.state.capture_service


Capture = Annotated[CaptureService, Depends(get_capture_service)]


def status_payload(service: CaptureService) -> dict:
    status = service.status()
    return {
        "active": status.active,
        "sensitivity": status.sensitivity,
        "mood": status.mood.value,
        "subscribers": status.subscribers,
        "frames_published": status.frames_published,
    }


@router.get("/health")
async def health_check():
    """
    Health check endpoint.

    Returns:
        Status and version information
    """
    return {
        "status": "ok",
        "version": "0.1.0"
    }


@router.get("/session")
async def get_session(service: Capture):
    """Current state of the microphone analysis session."""
    return status_payload(service)


@router.post("/session/start")
async def start_session(service: Capture):
    """
    Start microphone capture and the frame loop.

    Raises:
        HTTPException: 503 if the capture device cannot be acquired
    """
    success, message = await service.start()
    if not success:
        raise HTTPException(status_code=503, detail=message)

    payload = status_payload(service)
    payload["message"] = message
    return payload


@router.post("/session/stop")
async def stop_session(service: Capture):
    """Stop the session. Stopping an inactive session is a no-op."""
    await service.stop()
    return status_payload(service)


@router.put("/session/sensitivity")
async def set_sensitivity(update: SensitivityUpdate, service: Capture):
    """Set the global sensitivity; out-of-range values are clamped to [0, 1]."""
    value = service.set_sensitivity(update.value)
    logger.info(f"Sensitivity set to {value:.2f} (requested {update.value})")
    return {"sensitivity": value}
