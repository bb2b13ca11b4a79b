"""FastAPI application exposing the lightning talks sync layer to a UI."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from pydantic import BaseModel

from ingest.local_store import LocalOverrideStore
from ingest.schemas import Event, Talk, TalkSuggestion
from ingest.store_client import InMemoryStoreClient
from sync.event_service import EventService
from views.sort_filter import EventFilter, SortOption, filter_events, requires_identity, sort_talks
from views.view_state import collect_my_talks, summarize_my_talks

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Without a configured store client the service runs on the in-memory one.
    service = getattr(app.state, "service", None) or EventService(InMemoryStoreClient(), LocalOverrideStore())
    app.state.service = service
    await service.start()
    try:
        yield
    finally:
        await service.stop()


app = FastAPI(
    title="Lightning Talks API",
    description="Events, talk submissions and votes merged from the decentralized store",
    version=VERSION,
    lifespan=lifespan,
)


def get_service(request: Request) -> EventService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Event service is not running")
    return service


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: str
    version: str


class CreateEventRequest(BaseModel):
    title: str
    description: str = ""
    event_date: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    contact: Optional[str] = None
    banner_image: Optional[str] = None
    announce: bool = True
    use_external_wallet: bool = False


class CreateTalkRequest(BaseModel):
    title: str
    description: str = ""
    speaker: str = ""
    bio: Optional[str] = None
    use_external_wallet: bool = False


class AcceptTalkRequest(BaseModel):
    feedback: Optional[str] = None


class ProfileModel(BaseModel):
    name: str = ""
    bio: str = ""


class ApiKeyRequest(BaseModel):
    api_key: str


class CreatedResponse(BaseModel):
    id: str


class CommandResponse(BaseModel):
    success: bool


class MyTalkEntry(BaseModel):
    talk: Talk
    event_id: str
    event_title: str
    event_date: str


class MyTalksResponse(BaseModel):
    talks: List[MyTalkEntry]
    stats: Dict[str, int]


def _require(success: bool, detail: str) -> CommandResponse:
    if not success:
        raise HTTPException(status_code=400, detail=detail)
    return CommandResponse(success=True)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
    )


@app.get("/events", response_model=List[Event])
async def list_events(
    event_filter: EventFilter = Query(EventFilter.ALL, alias="filter"),
    service: EventService = Depends(get_service),
):
    """List merged events, optionally narrowed by one of the UI filters."""
    if requires_identity(event_filter) and not service.identity:
        raise HTTPException(status_code=409, detail=f"Filter '{event_filter.value}' requires a connected wallet")
    events = await service.fetch_events()
    return filter_events(events, event_filter)


@app.get("/events/{event_id}", response_model=Event)
async def get_event(event_id: str, sort: SortOption = SortOption.VOTES, service: EventService = Depends(get_service)):
    event = await service.fetch_event_by_id(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event.model_copy(update={"talks": sort_talks(event.talks, sort)})


@app.post("/events", response_model=CreatedResponse)
async def create_event(request: CreateEventRequest, service: EventService = Depends(get_service)):
    event_id = await service.create_event(
        request.title,
        request.description,
        event_date=request.event_date,
        location=request.location,
        website=request.website,
        contact=request.contact,
        banner_image=request.banner_image,
        announce=request.announce,
        use_external_wallet=request.use_external_wallet,
    )
    if not event_id:
        raise HTTPException(status_code=400, detail="Failed to create event")
    return CreatedResponse(id=event_id)


@app.post("/events/{event_id}/talks", response_model=CreatedResponse)
async def create_talk(event_id: str, request: CreateTalkRequest, service: EventService = Depends(get_service)):
    talk_id = await service.create_talk(
        event_id,
        request.title,
        request.description,
        request.speaker,
        request.bio,
        request.use_external_wallet,
    )
    if not talk_id:
        raise HTTPException(status_code=400, detail="Failed to submit talk")
    return CreatedResponse(id=talk_id)


@app.post("/events/{event_id}/talks/{talk_id}/vote", response_model=CommandResponse)
async def vote_talk(event_id: str, talk_id: str, service: EventService = Depends(get_service)):
    return _require(await service.upvote_talk(event_id, talk_id), "Failed to record vote")


@app.post("/events/{event_id}/close", response_model=CommandResponse)
async def close_event(event_id: str, service: EventService = Depends(get_service)):
    return _require(await service.close_event(event_id), "Failed to close event")


@app.post("/events/{event_id}/talks/{talk_id}/accept", response_model=CommandResponse)
async def accept_talk(
    event_id: str,
    talk_id: str,
    request: AcceptTalkRequest,
    service: EventService = Depends(get_service),
):
    return _require(await service.accept_talk(event_id, talk_id, request.feedback), "Failed to accept talk")


@app.post("/events/{event_id}/announce", response_model=CommandResponse)
async def announce_event(event_id: str, service: EventService = Depends(get_service)):
    return _require(await service.announce_event(event_id), "Failed to announce event")


@app.post("/events/{event_id}/suggestion", response_model=TalkSuggestion)
async def suggest_talk(event_id: str, service: EventService = Depends(get_service)):
    """Generate a talk idea that complements the event's current submissions."""
    event = await service.fetch_event_by_id(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    if not service.overrides.has_api_key():
        raise HTTPException(status_code=400, detail="API key not set")
    suggestion = await service.generate_suggestion(event.talks, event)
    if suggestion is None:
        raise HTTPException(status_code=502, detail="Failed to generate a talk suggestion")
    return suggestion


@app.get("/my-talks", response_model=MyTalksResponse)
async def my_talks(service: EventService = Depends(get_service)):
    entries = collect_my_talks(await service.fetch_events(), service.identity)
    return MyTalksResponse(talks=entries, stats=summarize_my_talks(entries))


@app.get("/profile", response_model=ProfileModel)
async def get_profile(service: EventService = Depends(get_service)):
    profile = service.overrides.get_user_profile()
    return ProfileModel(name=profile.name, bio=profile.bio)


@app.put("/profile", response_model=ProfileModel)
async def save_profile(request: ProfileModel, service: EventService = Depends(get_service)):
    service.overrides.save_user_profile(request.name, request.bio)
    return request


@app.put("/api-key", response_model=CommandResponse)
async def save_api_key(request: ApiKeyRequest, service: EventService = Depends(get_service)):
    service.overrides.save_api_key(request.api_key)
    return CommandResponse(success=service.overrides.has_api_key())


@app.post("/hidden/{event_id}", response_model=CommandResponse)
async def hide_event(event_id: str, service: EventService = Depends(get_service)):
    service.overrides.hide_event(event_id)
    return CommandResponse(success=True)


@app.delete("/hidden/{event_id}", response_model=CommandResponse)
async def unhide_event(event_id: str, service: EventService = Depends(get_service)):
    service.overrides.unhide_event(event_id)
    return CommandResponse(success=True)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Lightning Talks API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
