"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from moodstream.api import ws_analysis, rest_status
from moodstream.api.rest_status import Capture
from moodstream.services.capture_service import CaptureService
from moodstream.core.config import settings
from moodstream.core.logging import setup_logging, logger

# Setup logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, release capture on shutdown."""
    logger.info(f"Starting Moodstream on {settings.host}:{settings.port}")
    logger.info(
        f"Sample rate: {settings.sample_rate} Hz, FFT size: {settings.fft_size}, "
        f"frame rate: {settings.frame_rate_hz} Hz"
    )

    app.state.capture_service = CaptureService()

    if settings.autostart_capture:
        success, message = await app.state.capture_service.start()
        if success:
            logger.info("Microphone capture started on boot")
        else:
            logger.warning(f"Autostart failed, capture can be started via POST /session/start: {message}")

    yield

    logger.info("Shutting down Moodstream")
    await app.state.capture_service.stop()


# Create FastAPI app
app = FastAPI(
    title="Moodstream",
    description="Real-time audio feature extraction and mood classification",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware (visualizer front-ends run on other origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using "*" origins
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(rest_status.router)


@app.websocket("/ws/analysis")
async def analysis_websocket(websocket: WebSocket, service: Capture):
    """Stream results of the server-side microphone session."""
    await ws_analysis.websocket_analysis_endpoint(websocket, service)


@app.websocket("/ws/audio")
async def audio_websocket(websocket: WebSocket):
    """Analyse PCM audio streamed by the client."""
    await ws_analysis.websocket_audio_endpoint(websocket)


def run() -> None:
    """Console entry point."""
    import uvicorn
    uvicorn.run(
        "moodstream.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
