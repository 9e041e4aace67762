"""FastAPI application exposing the lesson engine to a browser front-end."""

from __future__ import annotations

import asyncio
import logging
import threading
from functools import lru_cache
from typing import Any, Callable, Dict, List

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from lingoraft.config import load_settings
from lingoraft.data_models import LessonListItem, Response
from lingoraft.engine import RESET_SENTINEL
from lingoraft.system import CONFIG_PATH_ENV, LingoRaftSystem, path_from_env

logger = logging.getLogger(__name__)


class EngineGateway:
    """Runs engine calls one at a time; the engine itself is single-threaded."""

    def __init__(self, system: LingoRaftSystem):
        self.system = system
        self._lock = threading.Lock()

    def call(self, fn: Callable[..., Any], *args: Any) -> Any:
        with self._lock:
            return fn(*args)

    def boot(self) -> Response:
        return self.call(self.system.engine.boot_response)

    def send(self, text: str) -> Response:
        return self.call(self.system.engine.handle_message, text)

    def reset(self) -> Response:
        return self.call(self.system.engine.handle_message, RESET_SENTINEL)

    def lessons(self) -> List[LessonListItem]:
        return self.call(self.system.engine.lessons_list_view)


@lru_cache(maxsize=1)
def _get_gateway_singleton() -> EngineGateway:
    """Create the process-wide engine gateway."""
    logger.info("Initializing LingoRaftSystem for FastAPI service")
    return EngineGateway(LingoRaftSystem.from_env())


async def get_gateway() -> EngineGateway:
    """FastAPI dependency that returns the shared EngineGateway."""
    return _get_gateway_singleton()


class MessageRequest(BaseModel):
    text: str = Field(..., description="Learner input: a command, lesson control, attempt or chat text")


app = FastAPI(
    title="LingoRaft API",
    description="Typing-lesson tutor engine over HTTP",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=load_settings(path_from_env(CONFIG_PATH_ENV)).api.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    """Tag log events emitted while handling a request with its method and path."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
    return await call_next(request)


@app.get("/health", summary="Health check")
async def health() -> Dict[str, str]:
    """Return service health information."""
    return {"status": "ok"}


@app.get("/session", response_model=Response, summary="Initial view for a (re)loaded page")
async def boot(gateway: EngineGateway = Depends(get_gateway)) -> Response:
    return await asyncio.to_thread(gateway.boot)


@app.post("/messages", response_model=Response, summary="Send one line of learner input")
async def send_message(
    payload: MessageRequest,
    gateway: EngineGateway = Depends(get_gateway),
) -> Response:
    """Route learner input through the lesson engine."""
    try:
        return await asyncio.to_thread(gateway.send, payload.text)
    except Exception as exc:  # pragma: no cover - surface underlying error
        logger.exception("Error handling message: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/session/reset", response_model=Response, summary="Clear the stored session")
async def reset_session(gateway: EngineGateway = Depends(get_gateway)) -> Response:
    return await asyncio.to_thread(gateway.reset)


@app.get("/lessons", response_model=List[LessonListItem], summary="Lesson list with completion state")
async def list_lessons(gateway: EngineGateway = Depends(get_gateway)) -> List[LessonListItem]:
    return await asyncio.to_thread(gateway.lessons)
