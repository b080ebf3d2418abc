"""Context session API routes."""

import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from api.sessions import SessionRegistry, SessionLimitError
from compaction import ContextCompressionEngine, ConfigurationError

logger = logging.getLogger(__name__)
router = APIRouter()


# Request/Response Models
class CreateSessionRequest(BaseModel):
    """Engine options for a new session; unset fields fall back to settings."""
    session_id: Optional[str] = Field(default=None, description="Optional explicit session ID")
    max_size: Optional[float] = Field(default=None, description="Capacity in size units")
    preserve_instructions: Optional[bool] = Field(default=None, description="Pin instructions at the start")
    instructions: Optional[str] = Field(default=None, description="Pinned instructions text")
    archive_threshold: Optional[float] = Field(default=None, description="Default cutoff for archive-below")
    critical_priority_cutoff: Optional[float] = Field(default=None, description="Priority above which fragments are never evicted")


class AddFragmentRequest(BaseModel):
    """Fragment to add to a session."""
    content: str = Field(description="Fragment text")
    priority: float = Field(default=0.5, allow_inf_nan=False, description="Importance in [0, 1]; clamped")


class UpdatePriorityRequest(BaseModel):
    """Priority change for a resident fragment."""
    priority: float = Field(allow_inf_nan=False, description="New priority; clamped to [0, 1]")
    recompact: bool = Field(default=False, description="Run compaction after the update")


class ArchiveBelowRequest(BaseModel):
    """Archive resident fragments under a priority threshold."""
    threshold: Optional[float] = Field(default=None, description="Priority cutoff (session default if omitted)")


class CapacityRequest(BaseModel):
    """New capacity for a session."""
    max_size: float = Field(description="Capacity in size units")


class InstructionsRequest(BaseModel):
    """New pinned instructions for a session."""
    instructions: str = Field(description="Pinned instructions text")
    recompact: bool = Field(default=True, description="Run compaction after the change")


class FragmentResponse(BaseModel):
    """Added fragment with the compaction report of the insert."""
    fragment: dict
    report: dict


class SessionResponse(BaseModel):
    """Session id with current statistics."""
    session_id: str
    stats: dict


def get_registry(request: Request) -> SessionRegistry:
    """Session registry attached to the running app."""
    return request.app.state.sessions


def get_engine(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> ContextCompressionEngine:
    """Resolve a session id to its engine or 404."""
    engine = registry.get(session_id)
    if engine is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return engine


@router.post("/sessions", response_model=SessionResponse)
async def create_session(
    body: CreateSessionRequest,
    request: Request,
    registry: SessionRegistry = Depends(get_registry)
):
    """Create a new context session with its own engine."""
    if body.session_id and body.session_id in registry:
        raise HTTPException(status_code=409, detail="Session already exists")

    overrides = body.model_dump(exclude_none=True, exclude={"session_id"})
    try:
        engine = ContextCompressionEngine.from_settings(request.app.state.settings, **overrides)
        session_id = registry.create(engine, session_id=body.session_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SessionLimitError as e:
        raise HTTPException(status_code=429, detail=str(e))

    return SessionResponse(session_id=session_id, stats=engine.stats().to_dict())


@router.get("/sessions")
async def list_sessions(registry: SessionRegistry = Depends(get_registry)):
    """List live session ids."""
    return {"sessions": registry.session_ids()}


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, engine: ContextCompressionEngine = Depends(get_engine)):
    """Get session statistics."""
    return SessionResponse(session_id=session_id, stats=engine.stats().to_dict())


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Delete a context session."""
    if registry.delete(session_id):
        return {"status": "deleted", "session_id": session_id}
    raise HTTPException(status_code=404, detail="Session not found")


@router.get("/sessions/{session_id}/fragments")
async def list_fragments(session_id: str, engine: ContextCompressionEngine = Depends(get_engine)):
    """Resident and archived fragments."""
    return {
        "session_id": session_id,
        "items": [f.to_dict() for f in engine.items],
        "archived_items": [f.to_dict() for f in engine.archived_items]
    }


@router.post("/sessions/{session_id}/fragments", response_model=FragmentResponse)
async def add_fragment(body: AddFragmentRequest, engine: ContextCompressionEngine = Depends(get_engine)):
    """Add a fragment; the response carries the resulting compaction report."""
    fragment = engine.add(body.content, body.priority)
    return FragmentResponse(fragment=fragment.to_dict(), report=engine.last_result.to_dict())


@router.post("/sessions/{session_id}/fragments/batch")
async def add_fragments(
    body: List[AddFragmentRequest],
    engine: ContextCompressionEngine = Depends(get_engine)
):
    """Add several fragments in order."""
    fragments = engine.add_many([item.model_dump() for item in body])
    return {
        "fragments": [f.to_dict() for f in fragments],
        "report": engine.last_result.to_dict() if engine.last_result else None
    }


@router.patch("/sessions/{session_id}/fragments/{fragment_id}")
async def update_fragment_priority(
    fragment_id: str,
    body: UpdatePriorityRequest,
    engine: ContextCompressionEngine = Depends(get_engine)
):
    """Change a resident fragment's priority."""
    if not engine.update_priority(fragment_id, body.priority):
        raise HTTPException(status_code=404, detail="Resident fragment not found")

    report = engine.compact().to_dict() if body.recompact else None
    return {"fragment": engine.get(fragment_id).to_dict(), "report": report}


@router.delete("/sessions/{session_id}/fragments/{fragment_id}")
async def remove_fragment(fragment_id: str, engine: ContextCompressionEngine = Depends(get_engine)):
    """Delete a resident fragment."""
    if not engine.remove(fragment_id):
        raise HTTPException(status_code=404, detail="Resident fragment not found")
    return {"status": "removed", "fragment_id": fragment_id}


@router.post("/sessions/{session_id}/fragments/{fragment_id}/restore")
async def restore_fragment(fragment_id: str, engine: ContextCompressionEngine = Depends(get_engine)):
    """Move an archived fragment back into the resident set."""
    if not engine.restore(fragment_id):
        raise HTTPException(status_code=404, detail="Archived fragment not found")
    return {
        "fragment": engine.get(fragment_id).to_dict(),
        "report": engine.last_result.to_dict()
    }


@router.post("/sessions/{session_id}/archive-below")
async def archive_below(body: ArchiveBelowRequest, engine: ContextCompressionEngine = Depends(get_engine)):
    """Archive resident fragments below a priority threshold."""
    moved = engine.archive_below(body.threshold)
    return {"archived": moved, "stats": engine.stats().to_dict()}


@router.put("/sessions/{session_id}/capacity")
async def set_capacity(body: CapacityRequest, engine: ContextCompressionEngine = Depends(get_engine)):
    """Change capacity and compact."""
    try:
        report = engine.set_max_size(body.max_size)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"report": report.to_dict(), "stats": engine.stats().to_dict()}


@router.put("/sessions/{session_id}/instructions")
async def set_instructions(body: InstructionsRequest, engine: ContextCompressionEngine = Depends(get_engine)):
    """Replace the pinned instructions."""
    engine.set_instructions(body.instructions)
    report = engine.compact().to_dict() if body.recompact else None
    return {"instructions": engine.instructions, "report": report}


@router.get("/sessions/{session_id}/render")
async def render_context(session_id: str, engine: ContextCompressionEngine = Depends(get_engine)):
    """Prompt-ready context text."""
    return {"session_id": session_id, "context": engine.render()}


@router.get("/sessions/{session_id}/archive/summary")
async def archive_summary(
    session_id: str,
    request: Request,
    limit: Optional[int] = None,
    engine: ContextCompressionEngine = Depends(get_engine)
):
    """Newest-first previews of archived fragments."""
    if limit is None:
        limit = request.app.state.settings.summary_limit
    return {"session_id": session_id, "summary": engine.summarize_archive(limit)}


@router.post("/sessions/{session_id}/clear")
async def clear_session(
    session_id: str,
    archived_only: bool = False,
    engine: ContextCompressionEngine = Depends(get_engine)
):
    """Clear all fragments, or only the archive."""
    if archived_only:
        engine.clear_archived()
    else:
        engine.clear()
    logger.info(f"Cleared session {session_id} (archived_only={archived_only})")
    return {"status": "cleared", "stats": engine.stats().to_dict()}
