# src/trainerhub/matching/matcher.py
"""
Capability matcher (trainer <-> training location).

This module answers one question: "can this trainer serve this location?"
- PHYSICAL locations: the trainer needs coordinates and a travel radius; the location must be
  within that radius (inclusive boundary).
- ONLINE locations: purely capability based; the trainer must list ONLINE among delivery types.

Important scope note:
- A non-match is a *result*, not an error. Search keeps non-matching trainers and flags them
  so the UI can show "near misses".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from trainerhub.core.geo import distance_km
from trainerhub.domain.models import DeliveryType, DistanceInfo, LocationType, OnlineTrainingInfo


def check_within_radius(
    trainer_lat: float | None,
    trainer_lon: float | None,
    travel_radius_km: float | None,
    location_lat: float | None,
    location_lon: float | None,
) -> DistanceInfo:
    """Return whether the location lies inside the trainer's travel radius.

    Any missing input means the check cannot be evaluated; that is reported as a non-match
    with `distance=None`. Zero is a valid coordinate and a valid radius.
    """
    if None in (trainer_lat, trainer_lon, travel_radius_km, location_lat, location_lon):
        return DistanceInfo(is_within_radius=False, distance=None)

    distance = distance_km(trainer_lat, trainer_lon, location_lat, location_lon)
    return DistanceInfo(is_within_radius=distance <= travel_radius_km, distance=distance)


def offers_online(delivery_types: Iterable[DeliveryType | str] | None) -> OnlineTrainingInfo:
    """Return whether ONLINE is among the trainer's delivery types."""
    values: set[DeliveryType] = set()
    for t in delivery_types or []:
        try:
            values.add(DeliveryType(t))
        except ValueError:
            continue
    return OnlineTrainingInfo(offers_online=DeliveryType.ONLINE in values)


@dataclass(frozen=True)
class TargetLocation:
    """Where a training takes place; lat/lon are only meaningful for PHYSICAL."""

    type: LocationType
    lat: float | None = None
    lon: float | None = None


@dataclass(frozen=True)
class MatchResult:
    """Exactly one of `distance_info` / `online_training_info` is set."""

    distance_info: DistanceInfo | None = None
    online_training_info: OnlineTrainingInfo | None = None

    @property
    def is_match(self) -> bool:
        if self.distance_info is not None:
            return self.distance_info.is_within_radius
        if self.online_training_info is not None:
            return self.online_training_info.offers_online
        return False


def match_trainer(trainer, location: TargetLocation) -> MatchResult:
    """Match a trainer record (`latitude`, `longitude`, `travel_radius_km`, `delivery_types`)."""
    if location.type is LocationType.ONLINE:
        return MatchResult(online_training_info=offers_online(getattr(trainer, "delivery_types", None)))

    return MatchResult(
        distance_info=check_within_radius(
            getattr(trainer, "latitude", None),
            getattr(trainer, "longitude", None),
            getattr(trainer, "travel_radius_km", None),
            location.lat,
            location.lon,
        )
    )
