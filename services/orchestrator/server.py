"""
Logo Studio HTTP + SSE Server

FastAPI server that puts the studio in front of a browser:
- GET /state - Current studio state
- POST /logo - Generate a logo from a description
- POST /upload - Use an uploaded image as the logo
- POST /animate - Animate the current logo
- POST /credentials - Select an API key
- GET /image - Current logo image
- GET /video - Current animation
- GET /events - SSE stream of state changes
- GET /health - Health check

Generation and animation run in the background; the browser follows
/events (or polls /state). Action endpoints answer 409 while a workflow is
running.

Usage:
    # Start server
    python -m uvicorn services.orchestrator.server:app --host 0.0.0.0 --port 8765

    # Or via main.py
    python main.py server
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, File, HTTPException, Response, UploadFile
from fastapi.responses import FileResponse, StreamingResponse
from pydantic import BaseModel

from core.credentials import EnvCredentialProvider
from services.generation.models import AspectRatio
from .state import StudioState
from .studio import LogoStudio

logger = logging.getLogger(__name__)

# Single studio per process (one user session)
_studio: Optional[LogoStudio] = None

# SSE subscriber queues
_subscribers: set[asyncio.Queue] = set()


def _broadcast(state: StudioState):
    payload = state.to_dict()
    for queue in list(_subscribers):
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning("SSE subscriber queue full, dropping update")


def get_studio() -> LogoStudio:
    if _studio is None:
        raise HTTPException(status_code=503, detail="Studio not started")
    return _studio


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    global _studio

    logger.info("Starting Logo Studio server...")
    if _studio is None:
        _studio = LogoStudio()
    _studio.on_change(_broadcast)
    await _studio.refresh_credential()

    yield

    logger.info("Shutting down Logo Studio server...")
    await _studio.close()
    _studio = None


app = FastAPI(
    title="Logo Studio API",
    description="Design a logo, then bring it to life",
    version="1.0.0",
    lifespan=lifespan,
)


# Request/Response Models
class LogoRequest(BaseModel):
    """Request to generate a logo."""
    description: Optional[str] = None


class AnimateRequest(BaseModel):
    """Request to animate the current logo."""
    aspect_ratio: Optional[AspectRatio] = None


class CredentialRequest(BaseModel):
    """Select an API key."""
    api_key: str


def _ensure_idle(studio: LogoStudio):
    if not studio.state.actions_enabled:
        raise HTTPException(
            status_code=409,
            detail="A generation is already running",
        )


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Logo Studio",
        "version": "1.0.0",
        "endpoints": {
            "GET /state": "Current studio state",
            "POST /logo": "Generate a logo from a description",
            "POST /upload": "Upload an image to animate",
            "POST /animate": "Animate the current logo",
            "POST /credentials": "Select an API key",
            "GET /image": "Current logo image",
            "GET /video": "Current animation",
            "GET /events": "SSE stream of state changes",
            "GET /health": "Health check",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    studio = get_studio()
    return {
        "status": "healthy",
        "busy": not studio.state.actions_enabled,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/state")
async def get_state() -> dict[str, Any]:
    return get_studio().state.to_dict()


@app.post("/logo", status_code=202)
async def generate_logo(request: LogoRequest, response: Response):
    """Start logo generation. Validation errors are reported in the state."""
    studio = get_studio()
    _ensure_idle(studio)

    description = request.description if request.description is not None else studio.state.prompt
    if not description.strip():
        response.status_code = 200
        return (await studio.generate_logo(description)).to_dict()

    studio.start_generate_logo(description)
    return studio.state.to_dict()


@app.post("/upload")
async def upload_logo(file: UploadFile = File(...)):
    """Use an uploaded image as the current logo."""
    studio = get_studio()
    _ensure_idle(studio)

    raw = await file.read()
    return studio.upload_bytes(raw, file.content_type).to_dict()


@app.post("/animate", status_code=202)
async def animate_logo(request: AnimateRequest, response: Response):
    """Start animating the current logo."""
    studio = get_studio()
    _ensure_idle(studio)

    if studio.state.image is None:
        response.status_code = 200
        return (await studio.animate_logo(request.aspect_ratio)).to_dict()

    studio.start_animate_logo(request.aspect_ratio)
    return studio.state.to_dict()


@app.post("/credentials")
async def select_credential(request: CredentialRequest):
    """Select the API key used for the next calls."""
    studio = get_studio()
    if not isinstance(studio.credentials, EnvCredentialProvider):
        raise HTTPException(status_code=400, detail="Key selection is handled by the host")
    if not request.api_key.strip():
        raise HTTPException(status_code=422, detail="api_key must not be empty")

    studio.credentials.select_key(request.api_key)
    await studio.refresh_credential()
    return studio.state.to_dict()


@app.get("/image")
async def get_image():
    image = get_studio().state.image
    if image is None:
        raise HTTPException(status_code=404, detail="No logo yet")
    return Response(content=image.to_bytes(), media_type=image.mime_type)


@app.get("/video")
async def get_video():
    video = get_studio().state.video
    if video is None or not video.exists:
        raise HTTPException(status_code=404, detail="No animation yet")
    return FileResponse(video.path, media_type=video.mime_type)


@app.get("/events")
async def events():
    """
    SSE endpoint for state changes.

    Sends the current state on connect, then every change.

    Usage:
        curl -N http://localhost:8765/events
    """
    studio = get_studio()
    queue: asyncio.Queue = asyncio.Queue(maxsize=100)
    _subscribers.add(queue)

    async def event_stream():
        try:
            yield f"event: state\ndata: {json.dumps(studio.state.to_dict())}\n\n"
            while True:
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=30.0)
                    yield f"event: state\ndata: {json.dumps(payload)}\n\n"
                except asyncio.TimeoutError:
                    yield ": heartbeat\n\n"
        finally:
            _subscribers.discard(queue)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# Module-level run function for main.py
def run_server(host: str = "0.0.0.0", port: int = 8765):
    """Run the server using uvicorn."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
