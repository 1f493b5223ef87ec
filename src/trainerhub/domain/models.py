"""
Domain models (enums + Pydantic schemas).

These types represent the stable "contract" between layers:
- status/role enums shared by the ORM, the state machine and the API
- API/CLI inputs (`TrainingRequestUpdate`, `TrainingRequestCreate`, `MessageCreate`)
- outputs (`TrainingRequestRead`, `TrainerSearchResult`, `MessageRead`, `TrainingOverview`)

Keeping these models in one place helps:
- validation (reject malformed prices and unknown statuses early),
- consistent JSON output across CLI/API.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trainerhub.core.time import ensure_tz


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    GEBUCHT = "GEBUCHT"

    @classmethod
    def parse(cls, value: str | RequestStatus) -> RequestStatus:
        """Accept any casing plus the English alias `booked` for GEBUCHT."""
        if isinstance(value, RequestStatus):
            return value
        normalized = str(value).strip().upper()
        if normalized == "BOOKED":
            return cls.GEBUCHT
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown request status '{value}'") from None


class PartyRole(str, enum.Enum):
    TRAINER = "TRAINER"
    TRAINING_COMPANY = "TRAINING_COMPANY"


class DeliveryType(str, enum.Enum):
    ONLINE = "ONLINE"
    HYBRID = "HYBRID"
    ON_SITE = "ON_SITE"


class LocationType(str, enum.Enum):
    ONLINE = "ONLINE"
    PHYSICAL = "PHYSICAL"


class TrainingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TrainerStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class MessageType(str, enum.Enum):
    TRAINING_REQUEST = "TRAINING_REQUEST"
    NOTIFICATION = "NOTIFICATION"


class Caller(BaseModel):
    """Who is performing an operation; passed explicitly into every service call."""

    role: PartyRole
    id: int = Field(..., ge=1)

    @property
    def is_trainer(self) -> bool:
        return self.role is PartyRole.TRAINER

    @property
    def is_company(self) -> bool:
        return self.role is PartyRole.TRAINING_COMPANY


class TrainingRequestUpdate(BaseModel):
    """Input of the negotiation update operation."""

    status: RequestStatus | None = None
    counter_price: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    company_counter_price: float | None = Field(default=None, gt=0, allow_inf_nan=False)
    message: str | None = Field(default=None, max_length=5000)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        if value is None or value == "":
            return None
        return RequestStatus.parse(value)


class TrainingRequestCreate(BaseModel):
    training_id: int = Field(..., ge=1)
    trainer_ids: list[int] = Field(..., min_length=1)
    message: str | None = Field(default=None, max_length=5000)

    @field_validator("trainer_ids")
    @classmethod
    def _unique_ids(cls, ids: list[int]) -> list[int]:
        if any(i < 1 for i in ids):
            raise ValueError("trainer_ids must be positive")
        if len(set(ids)) != len(ids):
            raise ValueError("trainer_ids must not contain duplicates")
        return ids


class TrainingApplication(BaseModel):
    message: str | None = Field(default=None, max_length=5000)


class TrainingRequestRead(BaseModel):
    id: int
    training_id: int
    trainer_id: int
    status: RequestStatus
    counter_price: float | None = None
    company_counter_price: float | None = None
    trainer_accepted: bool
    message: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_tz(value)


class TrainingLocationCreate(BaseModel):
    """A reusable training location. PHYSICAL locations carry coordinates (no geocoding here)."""

    name: str = Field(..., min_length=1, max_length=200)
    type: LocationType
    city: str | None = Field(default=None, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class TrainingLocationRead(BaseModel):
    id: int
    company_id: int | None = None
    name: str | None = None
    type: LocationType
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    model_config = ConfigDict(from_attributes=True)


class TrainingRead(BaseModel):
    id: int
    company_id: int
    title: str
    topic: str
    status: TrainingStatus
    daily_rate: float | None = None
    location_id: int | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_tz(value)


class DistanceInfo(BaseModel):
    is_within_radius: bool
    distance: float | None = None


class OnlineTrainingInfo(BaseModel):
    offers_online: bool


class TrainerSummary(BaseModel):
    """One search hit; matching annotations are present only when a location was given."""

    id: int
    first_name: str
    last_name: str
    email: str
    bio: str = ""
    daily_rate: float | None = None
    country_code: str | None = None
    topics: list[str] = Field(default_factory=list)
    delivery_types: list[DeliveryType] = Field(default_factory=list)
    travel_radius_km: float | None = None
    distance_info: DistanceInfo | None = None
    online_training_info: OnlineTrainingInfo | None = None
    is_match: bool | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class TrainerSearchResult(BaseModel):
    trainers: list[TrainerSummary]
    pagination: Pagination


class MessageCreate(BaseModel):
    training_request_id: int = Field(..., ge=1)
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=10000)


class MessageReadUpdate(BaseModel):
    is_read: bool


class MessageRead(BaseModel):
    id: int
    training_request_id: int
    sender_id: int | None = None
    sender_type: PartyRole | None = None
    recipient_id: int
    recipient_type: PartyRole
    subject: str
    body: str
    is_read: bool
    message_type: MessageType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_tz(value)


class AssignedTrainer(BaseModel):
    id: int
    first_name: str
    last_name: str
    full_name: str
    request_id: int
    request_status: RequestStatus


class TrainingOverview(BaseModel):
    id: int
    title: str
    topic: str
    status: TrainingStatus
    daily_rate: float | None = None
    company_id: int
    location_type: LocationType | None = None
    assigned_trainer: AssignedTrainer | None = None
