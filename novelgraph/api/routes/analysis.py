"""Character analysis endpoints and progress WebSocket."""

import json
import logging
import uuid
from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field

from novelgraph.analysis import (
    AnalysisOrchestrator,
    GutenbergFetcher,
    OpenAIOracle,
    ProgressReporter,
    RunState,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Subscribers for all sessions served by this process
reporter = ProgressReporter()


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    """Get the shared orchestrator instance."""
    return AnalysisOrchestrator(
        fetcher=GutenbergFetcher(),
        oracle=OpenAIOracle(),
        reporter=reporter,
    )


class AnalyzeRequest(BaseModel):
    """Request body for starting an analysis."""

    model_config = ConfigDict(populate_by_name=True)

    book_id: str = Field(alias="bookID", min_length=1)
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class AnalyzeResponse(BaseModel):
    """Acknowledgment for a started analysis."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    session_id: str = Field(alias="sessionId")
    instructions: str


class SessionStatus(BaseModel):
    """Status of an analysis session."""

    session_id: str
    document_id: str
    state: RunState
    character_count: int
    batches_completed: int
    total_batches: int
    dropped_interactions: int
    error: Optional[str] = None


class WebSocketSubscriber:
    """Progress subscriber backed by a WebSocket connection."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.subscriber_id = str(uuid.uuid4())

    async def send(self, event: str, data: dict[str, Any]) -> None:
        await self.websocket.send_json({"event": event, "data": data})


@router.post("/analyze-streaming", response_model=AnalyzeResponse)
async def analyze_streaming(
    request: AnalyzeRequest,
    background_tasks: BackgroundTasks,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> AnalyzeResponse:
    """Start a character network analysis.

    Returns immediately; progress is streamed to subscribers of the session
    on the /ws endpoint.
    """
    session_id = request.session_id or str(uuid.uuid4())

    background_tasks.add_task(orchestrator.run, session_id, request.book_id)

    return AnalyzeResponse(
        message="Analysis started",
        session_id=session_id,
        instructions="Connect to WebSocket to receive real-time updates",
    )


@router.get("/sessions/{session_id}", response_model=SessionStatus)
async def get_session_status(
    session_id: str,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> SessionStatus:
    """Get the status of an analysis session."""
    run = orchestrator.get_run(session_id)
    if run is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")

    return SessionStatus(**run.model_dump(exclude={"result", "started_at", "finished_at"}))


@router.websocket("/ws")
async def progress_websocket(websocket: WebSocket):
    """WebSocket endpoint for session progress.

    Clients send ``{"event": "join", "sessionId": ...}`` to subscribe and
    then receive ``analysis_update`` events for that session. A bare JSON
    string is taken as a join for that session id.
    """
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket)
    logger.info(f"Client connected: {subscriber.subscriber_id}")

    try:
        while True:
            try:
                data = json.loads(await websocket.receive_text())
            except json.JSONDecodeError:
                await subscriber.send("error", {"message": "Messages must be JSON"})
                continue

            if isinstance(data, str):
                data = {"event": "join", "sessionId": data}
            elif not isinstance(data, dict):
                await subscriber.send("error", {"message": "Messages must be a JSON object or session id"})
                continue

            event = data.get("event")
            session_id = data.get("sessionId")

            if event not in ("join", "leave"):
                await subscriber.send("error", {"message": f"Unknown event: {event}"})
                continue
            if not session_id:
                await subscriber.send("error", {"message": "sessionId is required"})
                continue

            if event == "join":
                reporter.join(session_id, subscriber)
                await subscriber.send(
                    "joined",
                    {"sessionId": session_id, "message": "Successfully joined room"},
                )
            else:
                reporter.leave(subscriber, session_id)
                await subscriber.send("left", {"sessionId": session_id})

    except WebSocketDisconnect:
        logger.info(f"Client disconnected: {subscriber.subscriber_id}")
    finally:
        reporter.leave(subscriber)
