"""REST API for the plugin registry and song generation."""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from song_studio.data.presets import SONG_PRESETS, SongPreset
from song_studio.models.generation import (
    LyricAnalysisResult,
    LyricsGenerationParams,
    SongEvaluationMetrics,
)
from song_studio.models.plugin import PluginInfo, PluginType, RegistrySummary
from song_studio.models.song import SectionNotFoundError, SongArtifact
from song_studio.plugins.errors import (
    BackendResponseError,
    DuplicatePluginError,
    NoActivePluginError,
    PluginConfigError,
    PluginError,
    PluginNotFoundError,
    PluginNotReadyError,
)
from song_studio.services.bootstrap import (
    create_default_registry,
    initialize_registry,
)
from song_studio.services.registry import ModelRegistry
from song_studio.services.song_service import SongGenerator

log = logging.getLogger(__name__)


class JobStatus(BaseModel):
    job_id: str
    status: str  # "processing", "completed", "failed"
    result: Optional[SongArtifact] = None
    error: Optional[str] = None


class InitializeRequest(BaseModel):
    config: dict[str, Any] = Field(default_factory=dict)


class EditCoverRequest(BaseModel):
    edit_prompt: str


def _http_error(e: Exception) -> HTTPException:
    """Translate a plugin or song error into an HTTP error."""
    if isinstance(e, PluginNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (DuplicatePluginError, NoActivePluginError, PluginNotReadyError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (PluginConfigError, SectionNotFoundError, ValueError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, BackendResponseError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def create_app(registry: ModelRegistry | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Without an explicit ``registry`` the default backend is registered and
    initialized from the environment at startup. Plugins that cannot be
    initialized stay registered and can be configured through the API.
    """
    owns_registry = registry is None
    registry = registry if registry is not None else create_default_registry()
    generator = SongGenerator(registry)
    jobs: dict[str, dict] = {}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if owns_registry:
            try:
                await initialize_registry(registry)
            except PluginConfigError as e:
                log.warning("Plugins not initialized at startup: %s", e)
        yield
        if owns_registry:
            registry.dispose()

    app = FastAPI(
        title="Song Studio API",
        description="REST API for pluggable AI song generation",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.jobs = jobs

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Registry ───────────────────────────────────────

    @app.get("/api/plugins")
    async def list_plugins() -> dict:
        return {
            "summary": registry.get_summary().model_dump(mode="json"),
            "plugins": [
                PluginInfo.from_entry(e).model_dump(mode="json")
                for e in registry.registered_plugins
            ],
        }

    @app.get("/api/plugins/summary")
    async def plugin_summary() -> RegistrySummary:
        return registry.get_summary()

    @app.get("/api/plugins/types/{plugin_type}")
    async def plugins_by_type(plugin_type: PluginType) -> list[PluginInfo]:
        return [PluginInfo.from_entry(e) for e in registry.get_plugins_by_type(plugin_type)]

    @app.post("/api/plugins/{plugin_id}/initialize")
    async def initialize_plugin(plugin_id: str, body: InitializeRequest) -> PluginInfo:
        try:
            await registry.initialize_plugin(plugin_id, body.config)
        except PluginError as e:
            raise _http_error(e)
        return PluginInfo.from_entry(registry.get_entry(plugin_id))

    @app.post("/api/plugins/{plugin_id}/activate")
    async def activate_plugin(plugin_id: str) -> PluginInfo:
        try:
            registry.activate_plugin(plugin_id)
        except PluginNotFoundError as e:
            raise _http_error(e)
        return PluginInfo.from_entry(registry.get_entry(plugin_id))

    @app.post("/api/plugins/{plugin_id}/deactivate")
    async def deactivate_plugin(plugin_id: str) -> PluginInfo:
        try:
            registry.deactivate_plugin(plugin_id)
        except PluginNotFoundError as e:
            raise _http_error(e)
        return PluginInfo.from_entry(registry.get_entry(plugin_id))

    @app.delete("/api/plugins/{plugin_id}")
    async def unregister_plugin(plugin_id: str) -> dict:
        registry.unregister_plugin(plugin_id)
        return {"plugin_id": plugin_id, "registered": False}

    # ── Songs ──────────────────────────────────────────

    @app.get("/api/presets")
    async def list_presets() -> list[SongPreset]:
        return SONG_PRESETS

    @app.post("/api/songs")
    async def generate_song(
        params: LyricsGenerationParams, background_tasks: BackgroundTasks
    ) -> dict:
        """Start generating a song; poll ``/api/songs/{job_id}`` for the result."""
        job_id = str(uuid.uuid4())
        jobs[job_id] = {"status": "processing", "result": None, "error": None}
        background_tasks.add_task(_run_generation, generator, jobs, job_id, params)
        return {"job_id": job_id, "status": "processing"}

    @app.get("/api/songs/{job_id}")
    async def get_song(job_id: str) -> JobStatus:
        job = _get_job(jobs, job_id)
        return JobStatus(job_id=job_id, **job)

    @app.post("/api/songs/{job_id}/analyze")
    async def analyze_song(job_id: str) -> LyricAnalysisResult:
        song = _get_song(jobs, job_id)
        try:
            return await generator.analyze(song)
        except (PluginError, ValueError) as e:
            raise _http_error(e)

    @app.post("/api/songs/{job_id}/apply-suggestion")
    async def apply_song_suggestion(job_id: str) -> SongArtifact:
        song = _get_song(jobs, job_id)
        try:
            generator.apply_suggestion(song)
        except ValueError as e:
            raise _http_error(e)
        return song

    @app.post("/api/songs/{job_id}/evaluate")
    async def evaluate_song(job_id: str) -> SongEvaluationMetrics:
        song = _get_song(jobs, job_id)
        try:
            return await generator.evaluate(song)
        except PluginError as e:
            raise _http_error(e)

    @app.post("/api/songs/{job_id}/edit-cover")
    async def edit_cover(job_id: str, body: EditCoverRequest) -> SongArtifact:
        song = _get_song(jobs, job_id)
        try:
            await generator.edit_cover_art(song, body.edit_prompt)
        except (PluginError, ValueError) as e:
            raise _http_error(e)
        return song

    @app.get("/api/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "plugins": len(registry)}

    return app


def _get_job(jobs: dict[str, dict], job_id: str) -> dict:
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")
    return jobs[job_id]


def _get_song(jobs: dict[str, dict], job_id: str) -> SongArtifact:
    job = _get_job(jobs, job_id)
    if job["status"] != "completed":
        raise HTTPException(status_code=409, detail=f"Job is {job['status']}")
    return job["result"]


async def _run_generation(
    generator: SongGenerator,
    jobs: dict[str, dict],
    job_id: str,
    params: LyricsGenerationParams,
) -> None:
    """Run song generation in the background and record the outcome."""
    try:
        log.info(f"[{job_id}] Starting song generation: {params.genre} / {params.lyric_theme}")
        song = await generator.generate_song(params)
        jobs[job_id] = {"status": "completed", "result": song, "error": None}
        log.info(f"[{job_id}] Completed song '{song.title}'")
    except Exception as e:
        log.error(f"[{job_id}] Song generation failed: {e}", exc_info=True)
        jobs[job_id] = {"status": "failed", "result": None, "error": str(e)}
