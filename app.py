"""
MdTex FastAPI Application

A REST API over the MdTex conversion pipeline.
Provides endpoints for managing profiles, building pandoc commands,
converting notes and listing cross-reference labels.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from mdtex import __version__
from mdtex.config import Config
from mdtex.core.graph import FileSystemGraph
from mdtex.core.process import AsyncSubprocessRunner
from mdtex.models import BuildInvocation, BuildPaths, ConversionResult, OutputFormat, Profile
from mdtex.services.command_builder import build_pandoc_command, parse_draft_flag
from mdtex.services.converter import ConvertService
from mdtex.services.labels import LabelInfo, extract_labels
from mdtex.services.profile_manager import ProfileEvent, ProfileStore, apply_event
from mdtex.utils.exceptions import DocumentReadError, NotFoundError, ValidationError
from mdtex.utils.logger import get_logger, setup_logging

# Global service instances
service: ConvertService | None = None
store: ProfileStore | None = None
logger = get_logger(__name__)


# Pydantic models for API
class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service_initialized: bool
    vault_root: str | None = None
    active_profile: str | None = None


class ProfilesResponse(BaseModel):
    """Profile store contents."""

    active_profile: str
    profiles: dict[str, Profile]


class ProfileEventRequest(BaseModel):
    """Request wrapping one profile event."""

    event: ProfileEvent


class CommandRequest(BaseModel):
    """Request model for building a pandoc command."""

    paths: BuildPaths
    format: OutputFormat | None = Field(default=None, description="Defaults to the profile's format")
    profile_name: str | None = Field(default=None, description="Stored profile to use")
    profile: Profile | None = Field(default=None, description="Inline profile, overrides profile_name")
    lua_filters: list[str] = Field(default_factory=list)


class ConvertRequest(BaseModel):
    """Request model for converting a note."""

    note_path: str = Field(..., min_length=1, description="Vault-relative note path")
    format: OutputFormat | None = None
    profile: str | None = Field(default=None, description="Profile name, active profile when omitted")


def _require_service() -> ConvertService:
    if not service:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


def _profile_by_name(name: str | None) -> Profile:
    settings = _require_service().settings
    if name is None:
        return settings.get_active()
    if name not in settings.profiles:
        raise HTTPException(status_code=404, detail=f"Profile not found: {name}")
    return settings.profiles[name]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    global service, store

    config = Config.from_env()

    setup_logging(
        level=config.logging.level,
        log_to_file=config.logging.log_to_file,
        log_dir=config.logging.log_dir,
        file_rotation=config.logging.file_rotation,
        file_retention=config.logging.file_retention,
        compression=config.logging.compression,
        serialize=config.logging.serialize,
    )

    logger.info("Starting MdTex server")
    logger.info(f"Configuration: vault={config.vault.root}, settings={config.vault.settings_path}")

    graph = FileSystemGraph(config.vault.root)
    store = ProfileStore(config.vault.settings_path)
    settings = store.load()
    logger.info(f"Loaded {len(settings.profiles)} profile(s), active: {settings.active_profile}")

    service = ConvertService(graph=graph, runner=AsyncSubprocessRunner(), settings=settings)

    yield

    logger.info("Shutting down MdTex server")
    service = None
    store = None


# Create FastAPI app
app = FastAPI(
    title="MdTex API",
    description="Markdown note to LaTeX/PDF/DOCX conversion through pandoc",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoint
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    root = service.graph.root if service else None
    return HealthResponse(
        status="healthy" if service else "initializing",
        service_initialized=service is not None,
        vault_root=str(root) if root else None,
        active_profile=service.settings.active_profile if service else None,
    )


# Profile endpoints
@app.get("/profiles", response_model=ProfilesResponse)
async def list_profiles():
    """List stored profiles and the active profile name."""
    settings = _require_service().settings
    return ProfilesResponse(active_profile=settings.active_profile, profiles=settings.profiles)


@app.post("/profiles/events", response_model=ProfilesResponse)
async def apply_profile_event(request: ProfileEventRequest):
    """
    Apply a profile event (add, remove, rename, set_active, update) and persist.

    Invalid events (duplicate names, removing the last profile, unknown
    fields) leave the profiles unchanged.
    """
    current = _require_service()
    settings = apply_event(current.settings, request.event)
    if settings is not current.settings:
        current.settings = settings
        if store:
            store.save(settings)
        logger.info(f"Applied profile event: {request.event.type}")
    return ProfilesResponse(active_profile=settings.active_profile, profiles=settings.profiles)


# Conversion endpoints
@app.post("/command", response_model=BuildInvocation)
async def build_command(request: CommandRequest):
    """
    Build the pandoc command for a profile without running it.

    The profile's --draft flag is removed from the extra arguments, as it is
    during conversion.
    """
    profile = request.profile or _profile_by_name(request.profile_name)
    extras, _ = parse_draft_flag(profile.pandoc_extra_args)
    return build_pandoc_command(
        profile,
        request.format or profile.output_format,
        request.paths,
        extras,
        request.lua_filters,
    )


@app.post("/convert", response_model=ConversionResult)
async def convert_note(request: ConvertRequest):
    """
    Convert a vault note with pandoc.

    Compiler failures are reported in the result status together with
    stderr and diagnostics mapped back to note lines.
    """
    current = _require_service()
    profile = _profile_by_name(request.profile)

    try:
        return await current.convert_note(request.note_path, profile, request.format)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except (DocumentReadError, NotFoundError) as e:
        raise HTTPException(status_code=404, detail=e.message) from e


@app.get("/labels/{note_path:path}", response_model=list[LabelInfo])
async def list_labels(note_path: str):
    """List fig/tbl/lst/eq labels defined in a note."""
    current = _require_service()
    try:
        text = await current.graph.read_document(note_path)
    except DocumentReadError as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    return extract_labels(text)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "MdTex API",
        "version": __version__,
        "description": "Markdown note to LaTeX/PDF/DOCX conversion through pandoc",
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
