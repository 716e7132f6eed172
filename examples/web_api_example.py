"""
Example Web API for polygon annotation.

This demonstrates how the modular architecture allows
creating a web interface using the same core logic.

Requirements:
    pip install -e .[web]

Usage:
    python examples/web_api_example.py

Then visit http://localhost:8000/docs for API documentation.
"""

import base64
import tempfile
import uuid
from pathlib import Path
from typing import Optional

import cv2
from fastapi import FastAPI, File, HTTPException, UploadFile
from pydantic import BaseModel

from video_polygon_annotation.core.annotation import (
    AnnotationSession,
    ExportSerializer,
)
from video_polygon_annotation.core.capture import OpenCVFrameCapture, to_display
from video_polygon_annotation.errors import FrameNotReady, SourceOpenError
from video_polygon_annotation.interfaces import OpenCVRenderPort


class Point(BaseModel):
    """Click position on the display canvas."""

    x: float
    y: float


# Global session storage (in production, use Redis or database)
sessions = {}
serializer = ExportSerializer()

app = FastAPI(
    title="Video Polygon Annotation API",
    description="Web API for drawing polygons on a video frame",
    version="1.0.0",
)


def get_session_data(session_id: str):
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail="Session not found")
    return sessions[session_id]


def session_summary(session_id: str):
    session = sessions[session_id]["session"]
    return {
        "session_id": session_id,
        "state": session.to_dict(),
    }


@app.post("/session/create")
async def create_session(
    video: UploadFile = File(...),
    position_ms: Optional[float] = None,
    display_width: int = 800,
    display_height: int = 600,
):
    """
    Create a new annotation session from an uploaded video.

    Args:
        video: Video file to annotate
        position_ms: Timestamp of the frame to annotate
        display_width: Width of the canvas clicks refer to
        display_height: Height of the canvas clicks refer to

    Returns:
        Session ID and initial state
    """
    suffix = Path(video.filename or "").suffix or ".mp4"
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as f:
        f.write(await video.read())
        video_path = Path(f.name)

    try:
        with OpenCVFrameCapture(video_path) as capture:
            if position_ms is not None:
                capture.seek(position_ms)
            frame = capture.capture_current_frame()
    except (SourceOpenError, FrameNotReady) as e:
        raise HTTPException(status_code=422, detail=str(e))
    finally:
        video_path.unlink()

    session = AnnotationSession(display_size=(display_width, display_height))
    session.load_new_source(frame.size, source=video.filename)

    session_id = str(uuid.uuid4())
    sessions[session_id] = {
        "session": session,
        "background": to_display(frame, session.display_size),
    }

    return session_summary(session_id)


@app.post("/session/{session_id}/start")
async def start_drawing(session_id: str, clear_committed: Optional[bool] = None):
    """Begin a new polygon."""
    session = get_session_data(session_id)["session"]
    session.start_drawing(clear_committed=clear_committed)
    return session_summary(session_id)


@app.post("/session/{session_id}/click")
async def add_vertex(session_id: str, point: Point):
    """
    Add a vertex to the polygon being drawn.

    Clicking close to the first vertex closes and commits the polygon.
    """
    session = get_session_data(session_id)["session"]
    accepted = session.add_vertex((point.x, point.y))
    return {"accepted": accepted, **session_summary(session_id)}


@app.post("/session/{session_id}/end")
async def end_drawing(session_id: str):
    """Finish the polygon being drawn."""
    session = get_session_data(session_id)["session"]
    committed = session.end_drawing()
    return {"committed": committed, **session_summary(session_id)}


@app.post("/session/{session_id}/cancel")
async def cancel_drawing(session_id: str):
    """Abandon the polygon being drawn."""
    session = get_session_data(session_id)["session"]
    return {"cancelled": session.cancel_drawing()}


@app.get("/session/{session_id}/visualization")
async def get_visualization(session_id: str):
    """Frame with polygon overlays as a base64 PNG."""
    session_data = get_session_data(session_id)
    port = OpenCVRenderPort(background=session_data["background"])
    canvas = port.render(session_data["session"].get_render_description())

    _, buffer = cv2.imencode(".png", canvas)
    return {"visualization_base64": base64.b64encode(buffer).decode("utf-8")}


@app.get("/session/{session_id}/export")
async def export_polygons(session_id: str):
    """Committed polygons in video coordinates."""
    session = get_session_data(session_id)["session"]
    return {"polygons": serializer.from_session(session)}


@app.delete("/session/{session_id}")
async def delete_session(session_id: str):
    """Delete annotation session."""
    get_session_data(session_id)
    del sessions[session_id]
    return {"success": True}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "active_sessions": len(sessions),
    }


if __name__ == "__main__":
    import uvicorn

    print("Starting Video Polygon Annotation API...")
    print("Visit http://localhost:8000/docs for API documentation")

    uvicorn.run(app, host="0.0.0.0", port=8000)
