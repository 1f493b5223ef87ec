"""
Company-owned training locations and the company's training list.

Locations are the targets the matcher consumes: PHYSICAL rows need coordinates (callers
supply lat/lon, nothing is geocoded here), ONLINE rows never store any.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from trainerhub.domain.errors import AuthorizationError, NotFoundError, ValidationError
from trainerhub.domain.models import Caller, LocationType, TrainingLocationCreate, TrainingStatus
from trainerhub.storage.models import TrainingDB, TrainingLocationDB

logger = logging.getLogger(__name__)


def _require_company(caller: Caller) -> None:
    if not caller.is_company:
        raise AuthorizationError("Only training companies manage locations and trainings")


def create_location(db: Session, caller: Caller, payload: TrainingLocationCreate) -> TrainingLocationDB:
    _require_company(caller)
    if payload.type is LocationType.PHYSICAL:
        if payload.latitude is None or payload.longitude is None:
            raise ValidationError("latitude and longitude are required for PHYSICAL locations")
        lat, lon = payload.latitude, payload.longitude
    else:
        lat = lon = None

    location = TrainingLocationDB(
        company_id=caller.id,
        name=payload.name.strip(),
        type=payload.type,
        city=payload.city,
        latitude=lat,
        longitude=lon,
    )
    db.add(location)
    db.commit()
    logger.info("Company %s created %s location %s", caller.id, location.type.value, location.id)
    return location


def list_locations(db: Session, caller: Caller) -> list[TrainingLocationDB]:
    _require_company(caller)
    stmt = (
        select(TrainingLocationDB)
        .where(TrainingLocationDB.company_id == caller.id)
        .order_by(TrainingLocationDB.created_at.desc(), TrainingLocationDB.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def get_location(db: Session, caller: Caller, location_id: int) -> TrainingLocationDB:
    _require_company(caller)
    location = db.get(TrainingLocationDB, location_id)
    if location is None:
        raise NotFoundError("Training location not found")
    if location.company_id != caller.id:
        raise AuthorizationError("You can only view your own locations")
    return location


def list_trainings(db: Session, caller: Caller, *, status: TrainingStatus | None = None) -> list[TrainingDB]:
    """The caller company's trainings, newest first."""
    _require_company(caller)
    stmt = select(TrainingDB).where(TrainingDB.company_id == caller.id)
    if status is not None:
        stmt = stmt.where(TrainingDB.status == status)
    stmt = stmt.order_by(TrainingDB.created_at.desc(), TrainingDB.id.desc())
    return list(db.execute(stmt).scalars().all())
