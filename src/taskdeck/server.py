import logging
import os
import signal
import threading
import time
from contextlib import asynccontextmanager
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from taskdeck.application.collection_service import CollectionService
from taskdeck.application.config import AppConfig, resolve_config
from taskdeck.application.factory import get_collection_service, get_review_service
from taskdeck.application.review_service import ReviewService
from taskdeck.consts import VERSION
from taskdeck.domain.constants import SHUTDOWN_DELAY
from taskdeck.domain.errors import (
    DeckNotFoundError,
    InvalidActionError,
    TaskdeckError,
)

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("taskdeck.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    config = get_config()
    logger.info(
        f"taskdeck server v{VERSION} starting up "
        f"(collection={config.collection_path}, blocking_deck={config.blocking_deck_id})"
    )
    yield
    # Shutdown
    logger.info("taskdeck server shutting down...")


app = FastAPI(
    title="taskdeck",
    description="Task review queue over an Anki collection.",
    version=VERSION,
    lifespan=lifespan,
)


@lru_cache
def get_config() -> AppConfig:
    """Configuration is resolved once per process."""
    return resolve_config()


def review_service(config: AppConfig = Depends(get_config)) -> ReviewService:
    return get_review_service(config)


def collection_service(config: AppConfig = Depends(get_config)) -> CollectionService:
    return get_collection_service(config)


def _status_for(e: TaskdeckError) -> int:
    if isinstance(e, InvalidActionError):
        return 400
    if isinstance(e, LookupError):
        return 404
    return 500


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------


@app.get("/review")
async def get_review_queue(
    include_all: bool = Query(False, alias="all"),
    deck_id: int | None = None,
    service: ReviewService = Depends(review_service),
):
    """
    Get the review queue.

    With `deck_id`, only that deck's due cards are returned and the
    blocking deck does not apply.
    """
    try:
        if deck_id is not None:
            cards = service.get_deck_queue(deck_id)
            return {
                "cards": cards,
                "urgent_count": service.urgent_count(),
                "is_blocking": False,
                "urgent_deck_id": service.blocking_deck_id,
            }

        queue = service.get_queue(include_all=include_all)
        return {
            "cards": queue.cards,
            "urgent_count": queue.urgent_count,
            "is_blocking": queue.is_blocking,
            "urgent_deck_id": queue.blocking_deck_id,
        }
    except Exception as e:
        logger.error(f"Failed to fetch review queue: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/review/decks")
async def get_review_decks(service: ReviewService = Depends(review_service)):
    """Decks with due cards, blocking deck first."""
    try:
        return {"decks": service.deck_due_counts(), "urgent_deck_id": service.blocking_deck_id}
    except Exception as e:
        logger.error(f"Failed to count due cards: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


class ReviewRequest(BaseModel):
    card_id: int
    action: str


@app.post("/review")
async def record_review(req: ReviewRequest, service: ReviewService = Depends(review_service)):
    """Record one of the actions: repeat, soon, later, complete."""
    try:
        result = service.record_action(req.card_id, req.action)
        return {
            "success": True,
            "remaining_cards": result.remaining_cards,
            "urgent_count": result.urgent_count,
            "is_blocking": result.is_blocking,
        }
    except TaskdeckError as e:
        status = _status_for(e)
        if status == 500:
            logger.error(f"Review failed: {e}", exc_info=True)
        raise HTTPException(status_code=status, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to update card schedule: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


# ---------------------------------------------------------------------------
# Decks, cards, notes
# ---------------------------------------------------------------------------


@app.get("/decks")
async def list_decks(service: CollectionService = Depends(collection_service)):
    try:
        return service.list_decks()
    except Exception as e:
        logger.error(f"Error fetching decks: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/cards")
async def list_cards(
    deck_id: int | None = None,
    q: str | None = None,
    service: CollectionService = Depends(collection_service),
):
    try:
        return service.list_cards(deck_id=deck_id, query=q)
    except Exception as e:
        logger.error(f"Error fetching cards: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


class CreateCardRequest(BaseModel):
    deck_id: int
    front: str
    back: str = ""
    tags: str = ""


@app.post("/cards")
async def create_card(
    req: CreateCardRequest, service: CollectionService = Depends(collection_service)
):
    try:
        card_id, note_id = service.create_card(req.deck_id, req.front, req.back, req.tags)
        return {"card_id": card_id, "note_id": note_id}
    except DeckNotFoundError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error creating card: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.delete("/cards/{card_id}")
async def delete_card(card_id: int, service: CollectionService = Depends(collection_service)):
    try:
        service.delete_card(card_id)
        return {"success": True}
    except TaskdeckError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error deleting card: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


class MoveCardRequest(BaseModel):
    deck_id: int


@app.patch("/cards/{card_id}")
async def move_card(
    card_id: int,
    req: MoveCardRequest,
    service: CollectionService = Depends(collection_service),
):
    try:
        service.move_card(card_id, req.deck_id)
        return {"success": True}
    except TaskdeckError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error moving card: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.get("/notes/{note_id}")
async def get_note(note_id: int, service: CollectionService = Depends(collection_service)):
    try:
        return service.get_note(note_id)
    except TaskdeckError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error fetching note: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


class UpdateNoteRequest(BaseModel):
    fields: list[str]
    tags: str = ""


@app.put("/notes/{note_id}")
async def update_note(
    note_id: int,
    req: UpdateNoteRequest,
    service: CollectionService = Depends(collection_service),
):
    try:
        service.update_note(note_id, req.fields, req.tags)
        return {"success": True}
    except TaskdeckError as e:
        raise HTTPException(status_code=_status_for(e), detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error updating note: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e)) from e


@app.post("/shutdown")
async def shutdown_server():
    """
    Gracefully shuts down the server.
    """
    logger.info("Received shutdown request.")

    def kill():
        time.sleep(SHUTDOWN_DELAY)  # Give time to return response
        logger.info("Exiting process...")
        os.kill(os.getpid(), signal.SIGTERM)

    threading.Thread(target=kill).start()
    return {"message": "Server shutting down..."}
