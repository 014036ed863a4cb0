"""
REST API server for the chef coach.

Lets a game client that is not written in Python drive a coach over HTTP:
create a session, send per-frame ticks and player events, read back what
the coach says and its diagnostics.

Run with:
    chef-coach serve --port 8000
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .catalog import Catalog, DEFAULT_CATALOG
from .coach import CoachOrchestrator
from .config import CoachConfig, get_preset, list_presets
from .learning.persistence_hooks import LearningPersistence
from .types import Item, RoundSnapshot, Step, StepAction, Utterance

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# ============================================================================
# Pydantic Models for API
# ============================================================================

class StepModel(BaseModel):
    """One required step of a round."""
    action: StepAction
    description: str = ""
    required_item: Optional[str] = None
    station: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0)

    def to_step(self) -> Step:
        return Step(
            action=self.action,
            description=self.description,
            required_item=self.required_item,
            station=self.station,
            duration=self.duration,
        )


class ItemModel(BaseModel):
    name: str
    category: str
    quantity: int = Field(3, ge=0)

    def to_item(self) -> Item:
        return Item(name=self.name, category=self.category, quantity=self.quantity)


class SnapshotModel(BaseModel):
    """Round state as reported by the game."""
    task_id: str
    current_step: Optional[StepModel] = None
    steps: List[StepModel] = []
    step_index: int = Field(0, ge=0)
    step_in_progress: bool = False
    available_items: List[ItemModel] = []
    progress: float = Field(0.0, ge=0.0, le=1.0)
    mistakes: int = Field(0, ge=0)
    streak: int = Field(0, ge=0)
    time_remaining: float = Field(0.0, ge=0.0)
    time_limit: float = Field(1.0, gt=0.0)
    score: int = 0
    completed: bool = False
    failed: bool = False

    def to_snapshot(self) -> RoundSnapshot:
        return RoundSnapshot(
            task_id=self.task_id,
            current_step=self.current_step.to_step() if self.current_step else None,
            steps=tuple(s.to_step() for s in self.steps),
            step_index=self.step_index,
            step_in_progress=self.step_in_progress,
            available_items=tuple(i.to_item() for i in self.available_items),
            progress=self.progress,
            mistakes=self.mistakes,
            streak=self.streak,
            time_remaining=self.time_remaining,
            time_limit=self.time_limit,
            score=self.score,
            completed=self.completed,
            failed=self.failed,
        )


class SessionCreateRequest(BaseModel):
    """Request to create or reset a coach session."""
    preset: Optional[str] = Field(None, description="Built-in preset name")
    seed: Optional[int] = Field(None, description="Session PRNG seed")
    restore: bool = Field(False, description="Load the last snapshot if one exists")


class TickRequest(BaseModel):
    dt: float = Field(..., gt=0.0, description="Seconds since the previous tick")
    snapshot: Optional[SnapshotModel] = None


class EventRequest(BaseModel):
    snapshot: SnapshotModel
    step: Optional[StepModel] = Field(None, description="Step the action was checked against (defaults to the step just completed)")
    item_name: Optional[str] = None


class UtteranceModel(BaseModel):
    text: str
    duration: float
    kind: str


class CoachStatus(BaseModel):
    """What the presentation layer needs after a tick or event."""
    stance: Optional[str]
    emotion: str
    utterance: Optional[UtteranceModel] = None
    auto_assist: bool = False


def _utterance_model(utterance: Optional[Utterance]) -> Optional[UtteranceModel]:
    if utterance is None:
        return None
    return UtteranceModel(text=utterance.text, duration=utterance.duration, kind=utterance.kind)


# ============================================================================
# API Server
# ============================================================================

class CoachSession:
    """
    One coach plus the lock that serializes access to it.

    Value tables are not safe for concurrent writers, so every request
    touching the coach holds the lock for its whole duration.
    """

    def __init__(self, session_id: str, coach: CoachOrchestrator):
        self.session_id = session_id
        self.coach = coach
        self.lock = threading.Lock()


class CoachAPIServer:
    """
    FastAPI-based REST server for coach sessions.

    Manages multiple sessions and provides endpoints for:
    - Session creation/reset
    - Per-frame ticks and player events
    - Diagnostics
    - Snapshots of learned state
    """

    def __init__(
        self,
        preset: str = "default",
        data_dir: str = "./.chef_coach",
        catalog: Catalog = DEFAULT_CATALOG,
    ):
        """
        Args:
            preset: Preset used when a session is created without one
            data_dir: Directory for learned-state snapshots
            catalog: Reference data shared by every session
        """
        self.preset = preset
        self.catalog = catalog
        self.persistence = LearningPersistence(data_dir)
        self.sessions: Dict[str, CoachSession] = {}
        self._sessions_lock = threading.Lock()

        self.app = FastAPI(
            title="Chef Coach API",
            description="Adaptive Q-learning coach for a cooking game",
            version=API_VERSION,
        )
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        self._register_routes()

    def _build_config(self, preset: Optional[str], seed: Optional[int]) -> CoachConfig:
        name = preset or self.preset
        config = get_preset(name)
        if config is None:
            raise HTTPException(status_code=400, detail=f"Unknown preset: {name}")
        if seed is not None:
            config.prng_seed = seed
        return config

    def create_session(self, session_id: str, request: Optional[SessionCreateRequest] = None) -> CoachSession:
        request = request or SessionCreateRequest()
        config = self._build_config(request.preset, request.seed)
        coach = CoachOrchestrator(config, self.catalog, session_id=session_id)

        if request.restore:
            state = self.persistence.restore(session_id)
            if state is not None:
                coach.import_state(state)

        session = CoachSession(session_id, coach)
        with self._sessions_lock:
            self.sessions[session_id] = session
        logger.info(f"Session {session_id} created (preset={request.preset or self.preset})")
        return session

    @contextmanager
    def _locked(self, session_id: str) -> Iterator[CoachOrchestrator]:
        with self._sessions_lock:
            session = self.sessions.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
        with session.lock:
            yield session.coach

    @staticmethod
    def _status(
        coach: CoachOrchestrator,
        said: Optional[Utterance] = None,
        snapshot: Optional[RoundSnapshot] = None,
    ) -> CoachStatus:
        return CoachStatus(
            stance=coach.current_stance.value if coach.current_stance else None,
            emotion=coach.emotion.value,
            utterance=_utterance_model(said),
            auto_assist=coach.should_auto_assist(snapshot) if snapshot else False,
        )

    def _register_routes(self):
        """Register all API routes."""

        @self.app.get("/")
        async def root():
            """API health check."""
            return {
                "status": "ok",
                "service": "chef-coach",
                "version": API_VERSION,
                "sessions": len(self.sessions),
            }

        @self.app.get("/presets", response_model=List[str])
        async def get_presets():
            """List available coach presets."""
            return list_presets()

        @self.app.post("/sessions/{session_id}")
        async def create_session(session_id: str, request: Optional[SessionCreateRequest] = None):
            """Create or reset a coach session."""
            session = self.create_session(session_id, request)
            return {
                "status": "created",
                "session_id": session_id,
                "seed": session.coach.config.prng_seed,
            }

        @self.app.post("/sessions/{session_id}/tick", response_model=CoachStatus)
        async def tick(session_id: str, request: TickRequest):
            """Advance the coach by one frame."""
            snapshot = request.snapshot.to_snapshot() if request.snapshot else None
            with self._locked(session_id) as coach:
                said = coach.update(request.dt, snapshot)
                return self._status(coach, said, snapshot)

        @self.app.post("/sessions/{session_id}/events/start", response_model=CoachStatus)
        async def round_start(session_id: str, request: EventRequest):
            """Player started a round."""
            snapshot = request.snapshot.to_snapshot()
            with self._locked(session_id) as coach:
                said = coach.start_round(snapshot)
                return self._status(coach, said, snapshot)

        @self.app.post("/sessions/{session_id}/events/success", response_model=CoachStatus)
        async def player_success(session_id: str, request: EventRequest):
            """Player performed an action correctly."""
            snapshot = request.snapshot.to_snapshot()
            step = request.step.to_step() if request.step else None
            with self._locked(session_id) as coach:
                coach.on_player_success(snapshot, step, request.item_name)
                return self._status(coach, None, snapshot)

        @self.app.post("/sessions/{session_id}/events/mistake", response_model=CoachStatus)
        async def player_mistake(session_id: str, request: EventRequest):
            """Player performed an action incorrectly."""
            snapshot = request.snapshot.to_snapshot()
            step = request.step.to_step() if request.step else None
            with self._locked(session_id) as coach:
                coach.on_player_mistake(snapshot, step, request.item_name)
                return self._status(coach, None, snapshot)

        @self.app.post("/sessions/{session_id}/events/round-complete")
        async def round_complete(session_id: str, request: EventRequest):
            """Round finished, successfully or not."""
            snapshot = request.snapshot.to_snapshot()
            with self._locked(session_id) as coach:
                summary = coach.on_round_complete(snapshot)
                return summary.to_dict()

        @self.app.get("/sessions/{session_id}/stats")
        async def get_stats(session_id: str) -> Dict[str, Any]:
            """Per-policy diagnostics."""
            with self._locked(session_id) as coach:
                return coach.stats()

        @self.app.post("/sessions/{session_id}/snapshot")
        async def snapshot(session_id: str):
            """Write the session's learned state to disk."""
            with self._locked(session_id) as coach:
                saved = self.persistence.snapshot(session_id, coach)
            if not saved:
                raise HTTPException(status_code=500, detail="Snapshot failed")
            return {"status": "saved", "session_id": session_id}


def create_app(
    preset: str = "default",
    data_dir: str = "./.chef_coach",
    catalog: Catalog = DEFAULT_CATALOG,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    server = CoachAPIServer(preset=preset, data_dir=data_dir, catalog=catalog)
    return server.app
