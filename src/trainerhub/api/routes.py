"""
API routes.

Endpoints:
- PUT  `/api/training-requests/{id}`: negotiation update (counter-offers, accept, decline, book).
- GET  `/api/training-requests`, `/api/training-requests/{id}`: list/read requests of the caller.
- POST `/api/training-requests`: company sends a training to several trainers.
- POST `/api/trainings/{id}/apply`: trainer applies to a published training.
- GET  `/api/trainings`: the caller company's trainings.
- GET  `/api/trainings/{id}`: training with its assigned trainer.
- POST/GET `/api/locations`, GET `/api/locations/{id}`: company-owned training locations.
- GET  `/api/trainers/search`: trainer search with distance/online annotations.
- GET  `/api/distance`: great-circle distance between two points.
- `/api/training-request-messages`: messages between the two parties of a request.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from trainerhub.api.deps import get_caller
from trainerhub.config.settings import get_settings
from trainerhub.core.geo import distance_km
from trainerhub.domain.errors import TrainerHubError
from trainerhub.domain.models import (
    Caller,
    LocationType,
    MessageCreate,
    MessageRead,
    MessageReadUpdate,
    TrainerSearchResult,
    TrainingApplication,
    TrainingLocationCreate,
    TrainingLocationRead,
    TrainingOverview,
    TrainingRead,
    TrainingRequestCreate,
    TrainingRequestRead,
    TrainingRequestUpdate,
    TrainingStatus,
)
from trainerhub.matching.search import resolve_location, search_trainers
from trainerhub.messaging import service as messaging
from trainerhub.negotiation import service as negotiation
from trainerhub.storage.database import get_session
from trainerhub.trainings import service as trainings

router = APIRouter()


@contextmanager
def _domain_errors() -> Iterator[None]:
    """Translate domain rejections into HTTP errors with a `{code, message}` detail."""
    try:
        yield
    except TrainerHubError as e:
        raise HTTPException(status_code=e.http_status, detail=e.as_detail()) from e


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/api/distance")
def get_distance(
    from_lat: float = Query(..., ge=-90, le=90),
    from_lon: float = Query(..., ge=-180, le=180),
    to_lat: float = Query(..., ge=-90, le=90),
    to_lon: float = Query(..., ge=-180, le=180),
) -> dict:
    """Return the Haversine distance in km (1 decimal)."""
    return {"distance_km": distance_km(from_lat, from_lon, to_lat, to_lon)}


@router.get("/api/trainers/search", response_model=TrainerSearchResult)
def get_trainer_search(
    topic: str | None = None,
    topic_exact: str | None = None,
    country: str | None = None,
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    location_id: int | None = None,
    training_id: int | None = None,
    location_type: LocationType | None = None,
    lat: float | None = Query(default=None, ge=-90, le=90),
    lon: float | None = Query(default=None, ge=-180, le=180),
    page: int = 1,
    limit: int | None = None,
    db: Session = Depends(get_session),
) -> TrainerSearchResult:
    """Search active trainers; with a location, flag (not drop) trainers that cannot serve it."""
    with _domain_errors():
        location = resolve_location(
            db,
            location_id=location_id,
            training_id=training_id,
            location_type=location_type,
            lat=lat,
            lon=lon,
        )
        return search_trainers(
            db,
            settings=get_settings(),
            topic=topic,
            topic_exact=topic_exact,
            country=country,
            min_price=min_price,
            max_price=max_price,
            location=location,
            page=page,
            limit=limit,
        )


@router.get("/api/training-requests", response_model=list[TrainingRequestRead])
def list_training_requests(
    training_id: int | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> list[TrainingRequestRead]:
    with _domain_errors():
        rows = negotiation.list_requests(db, caller, training_id=training_id)
    return [TrainingRequestRead.model_validate(r) for r in rows]


@router.get("/api/training-requests/{request_id}", response_model=TrainingRequestRead)
def get_training_request(
    request_id: int,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> TrainingRequestRead:
    with _domain_errors():
        return TrainingRequestRead.model_validate(negotiation.get_request(db, caller, request_id))


@router.post("/api/training-requests", status_code=201)
def post_training_requests(
    payload: TrainingRequestCreate,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> dict:
    """Create one PENDING request per trainer and publish the training."""
    with _domain_errors():
        created = negotiation.send_requests(db, caller, payload)
    return {
        "requests": [TrainingRequestRead.model_validate(r).model_dump(mode="json") for r in created],
        "message": f"Training requests sent to {len(created)} trainer(s)",
    }


@router.put("/api/training-requests/{request_id}", response_model=TrainingRequestRead)
def put_training_request(
    request_id: int,
    update: TrainingRequestUpdate,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> TrainingRequestRead:
    """Negotiation update: counter-offers and/or a status change by one of the two parties."""
    with _domain_errors():
        outcome = negotiation.update_request(db, request_id, caller, update, settings=get_settings())
    return TrainingRequestRead.model_validate(outcome.request)


@router.post("/api/trainings/{training_id}/apply", response_model=TrainingRequestRead, status_code=201)
def post_training_application(
    training_id: int,
    payload: TrainingApplication | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> TrainingRequestRead:
    with _domain_errors():
        request = negotiation.apply_to_training(db, caller, training_id, payload or TrainingApplication())
    return TrainingRequestRead.model_validate(request)


@router.get("/api/trainings/{training_id}", response_model=TrainingOverview)
def get_training(
    training_id: int,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> TrainingOverview:
    with _domain_errors():
        return negotiation.get_training_overview(db, caller, training_id)


@router.post("/api/training-request-messages", response_model=MessageRead, status_code=201)
def post_message(
    payload: MessageCreate,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> MessageRead:
    with _domain_errors():
        return MessageRead.model_validate(messaging.send_message(db, caller, payload))


@router.get("/api/training-request-messages", response_model=list[MessageRead])
def get_messages(
    training_request_id: int | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> list[MessageRead]:
    with _domain_errors():
        rows = messaging.list_messages(db, caller, training_request_id=training_request_id)
    return [MessageRead.model_validate(m) for m in rows]


@router.patch("/api/training-request-messages/{message_id}", response_model=MessageRead)
def patch_message(
    message_id: int,
    payload: MessageReadUpdate,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> MessageRead:
    with _domain_errors():
        return MessageRead.model_validate(messaging.mark_read(db, caller, message_id, is_read=payload.is_read))


@router.post("/api/locations", response_model=TrainingLocationRead, status_code=201)
def post_location(
    payload: TrainingLocationCreate,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> TrainingLocationRead:
    with _domain_errors():
        return TrainingLocationRead.model_validate(trainings.create_location(db, caller, payload))


@router.get("/api/locations", response_model=list[TrainingLocationRead])
def get_locations(
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> list[TrainingLocationRead]:
    with _domain_errors():
        rows = trainings.list_locations(db, caller)
    return [TrainingLocationRead.model_validate(r) for r in rows]


@router.get("/api/locations/{location_id}", response_model=TrainingLocationRead)
def get_location(
    location_id: int,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> TrainingLocationRead:
    with _domain_errors():
        return TrainingLocationRead.model_validate(trainings.get_location(db, caller, location_id))


@router.get("/api/trainings", response_model=list[TrainingRead])
def get_trainings(
    status: TrainingStatus | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_session),
) -> list[TrainingRead]:
    with _domain_errors():
        rows = trainings.list_trainings(db, caller, status=status)
    return [TrainingRead.model_validate(r) for r in rows]
