"""
Trainer search with location matching.

Filters (topic, country, daily-rate range) narrow the candidate set in SQL. When a target
location is supplied, each remaining trainer is annotated by the capability matcher:
- PHYSICAL -> `distance_info` (is_within_radius + km)
- ONLINE   -> `online_training_info` (offers_online)

Non-matching trainers stay in the result ("near misses"); with `search.rank_matches_first`
they are ordered after the matching ones.
"""

from __future__ import annotations

import logging
import math

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from trainerhub.config.settings import Settings
from trainerhub.domain.errors import NotFoundError, ValidationError
from trainerhub.domain.models import (
    DeliveryType,
    LocationType,
    Pagination,
    TrainerSearchResult,
    TrainerStatus,
    TrainerSummary,
)
from trainerhub.matching.matcher import MatchResult, TargetLocation, match_trainer
from trainerhub.storage.models import TrainerDB, TrainerTopicDB, TrainingDB, TrainingLocationDB

logger = logging.getLogger(__name__)


def resolve_location(
    db: Session,
    *,
    location_id: int | None = None,
    training_id: int | None = None,
    location_type: LocationType | None = None,
    lat: float | None = None,
    lon: float | None = None,
) -> TargetLocation | None:
    """Turn the search inputs into a `TargetLocation` (or None when no location was requested)."""
    if training_id is not None:
        training = db.get(TrainingDB, training_id)
        if training is None:
            raise NotFoundError("Training not found")
        if training.location_id is None:
            raise ValidationError("Training has no location")
        location_id = training.location_id

    if location_id is not None:
        row = db.get(TrainingLocationDB, location_id)
        if row is None:
            raise NotFoundError("Training location not found")
        return TargetLocation(type=row.type, lat=row.latitude, lon=row.longitude)

    if location_type is None:
        if lat is not None or lon is not None:
            raise ValidationError("location_type is required when lat/lon are given")
        return None
    if location_type is LocationType.PHYSICAL and (lat is None or lon is None):
        raise ValidationError("lat and lon are required for a PHYSICAL location")
    return TargetLocation(type=location_type, lat=lat, lon=lon)


def _summary(trainer: TrainerDB, match: MatchResult | None) -> TrainerSummary:
    delivery_types = []
    for value in trainer.delivery_types or []:
        try:
            delivery_types.append(DeliveryType(value))
        except ValueError:
            logger.warning("Ignoring unknown delivery type %r on trainer %s", value, trainer.id)
    return TrainerSummary(
        id=trainer.id,
        first_name=trainer.first_name,
        last_name=trainer.last_name,
        email=trainer.email,
        bio=trainer.bio or "",
        daily_rate=trainer.daily_rate,
        country_code=trainer.country_code,
        topics=sorted(t.name for t in trainer.topics),
        delivery_types=delivery_types,
        travel_radius_km=trainer.travel_radius_km,
        distance_info=match.distance_info if match else None,
        online_training_info=match.online_training_info if match else None,
        is_match=match.is_match if match else None,
    )


def _rank_key(item: tuple[TrainerDB, MatchResult]) -> tuple:
    trainer, match = item
    distance = match.distance_info.distance if match.distance_info else None
    return (
        0 if match.is_match else 1,
        distance if distance is not None else math.inf,
        -trainer.created_at.timestamp() if trainer.created_at else 0.0,
        -trainer.id,
    )


def search_trainers(
    db: Session,
    *,
    settings: Settings,
    topic: str | None = None,
    topic_exact: str | None = None,
    country: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    location: TargetLocation | None = None,
    page: int = 1,
    limit: int | None = None,
) -> TrainerSearchResult:
    """Search ACTIVE trainers and annotate them against `location` when given."""
    if page < 1:
        raise ValidationError("page must be >= 1")
    limit = int(limit or settings.search.default_page_size)
    if limit < 1 or limit > settings.search.max_page_size:
        raise ValidationError(f"limit must be between 1 and {settings.search.max_page_size}")
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError("min_price must not exceed max_price")

    stmt = select(TrainerDB).where(TrainerDB.status == TrainerStatus.ACTIVE)
    if topic:
        stmt = stmt.where(TrainerDB.topics.any(func.lower(TrainerTopicDB.name).contains(topic.strip().lower())))
    if topic_exact:
        stmt = stmt.where(TrainerDB.topics.any(func.lower(TrainerTopicDB.name) == topic_exact.strip().lower()))
    if country:
        stmt = stmt.where(TrainerDB.country_code == country.strip().upper())
    if min_price is not None:
        stmt = stmt.where(TrainerDB.daily_rate >= min_price)
    if max_price is not None:
        stmt = stmt.where(TrainerDB.daily_rate <= max_price)

    total_count = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    offset = (page - 1) * limit
    newest_first = (TrainerDB.created_at.desc(), TrainerDB.id.desc())

    if location is not None and settings.search.rank_matches_first:
        # Ranking depends on the match result, so it has to happen before pagination: every
        # filtered ACTIVE trainer is loaded and matched here. Narrow with topic/country/price
        # filters on large catalogs, or set `search.rank_matches_first: false` to page in SQL.
        trainers = db.execute(stmt.order_by(*newest_first)).scalars().all()
        ranked = sorted(((t, match_trainer(t, location)) for t in trainers), key=_rank_key)
        items = [_summary(t, m) for t, m in ranked[offset : offset + limit]]
    else:
        trainers = db.execute(stmt.order_by(*newest_first).offset(offset).limit(limit)).scalars().all()
        items = [_summary(t, match_trainer(t, location) if location else None) for t in trainers]

    logger.info(
        "Trainer search topic=%s country=%s location=%s -> %s hits",
        topic or topic_exact,
        country,
        location.type.value if location else None,
        total_count,
    )
    return TrainerSearchResult(
        trainers=items,
        pagination=Pagination(
            page=page,
            limit=limit,
            total_count=total_count,
            total_pages=math.ceil(total_count / limit) if total_count else 0,
        ),
    )
