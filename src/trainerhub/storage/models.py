from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from trainerhub.core.time import utcnow
from trainerhub.domain.models import (
    LocationType,
    MessageType,
    PartyRole,
    RequestStatus,
    TrainerStatus,
    TrainingStatus,
)


def _enum(enum_cls) -> Enum:
    return Enum(enum_cls, native_enum=False, length=32, validate_strings=True)


class Base(DeclarativeBase):
    pass


class CompanyDB(Base):
    __tablename__ = "companies"
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    contact_name: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    trainings: Mapped[list[TrainingDB]] = relationship(back_populates="company")


class TrainerDB(Base):
    __tablename__ = "trainers"
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    bio: Mapped[str | None] = mapped_column(Text)
    daily_rate: Mapped[float | None] = mapped_column(Float)
    country_code: Mapped[str | None] = mapped_column(String(2), index=True)
    status: Mapped[TrainerStatus] = mapped_column(_enum(TrainerStatus), default=TrainerStatus.ACTIVE)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    travel_radius_km: Mapped[float | None] = mapped_column(Float)
    # Stored as a list of DeliveryType values, e.g. ["ONLINE", "ON_SITE"].
    delivery_types: Mapped[list[str]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    topics: Mapped[list[TrainerTopicDB]] = relationship(
        back_populates="trainer", cascade="all, delete-orphan", lazy="selectin"
    )
    requests: Mapped[list[TrainingRequestDB]] = relationship(back_populates="trainer")


class TrainerTopicDB(Base):
    __tablename__ = "trainer_topics"
    __table_args__ = (UniqueConstraint("trainer_id", "name", name="uq_trainer_topic"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    trainer_id: Mapped[int] = mapped_column(ForeignKey("trainers.id"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)

    trainer: Mapped[TrainerDB] = relationship(back_populates="topics")


class TrainingLocationDB(Base):
    __tablename__ = "training_locations"
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int | None] = mapped_column(ForeignKey("companies.id"))
    name: Mapped[str | None] = mapped_column(String(200))
    type: Mapped[LocationType] = mapped_column(_enum(LocationType), nullable=False)
    city: Mapped[str | None] = mapped_column(String(200))
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class TrainingDB(Base):
    __tablename__ = "trainings"
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey("companies.id"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    topic: Mapped[str] = mapped_column(String(200), nullable=False)
    daily_rate: Mapped[float | None] = mapped_column(Float)
    status: Mapped[TrainingStatus] = mapped_column(_enum(TrainingStatus), default=TrainingStatus.DRAFT)
    location_id: Mapped[int | None] = mapped_column(ForeignKey("training_locations.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    company: Mapped[CompanyDB] = relationship(back_populates="trainings")
    location: Mapped[TrainingLocationDB | None] = relationship()
    requests: Mapped[list[TrainingRequestDB]] = relationship(back_populates="training")


class TrainingRequestDB(Base):
    __tablename__ = "training_requests"
    __table_args__ = (UniqueConstraint("training_id", "trainer_id", name="uq_training_trainer"),)
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    training_id: Mapped[int] = mapped_column(ForeignKey("trainings.id"), index=True, nullable=False)
    trainer_id: Mapped[int] = mapped_column(ForeignKey("trainers.id"), index=True, nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        _enum(RequestStatus), default=RequestStatus.PENDING, nullable=False
    )
    counter_price: Mapped[float | None] = mapped_column(Float)
    company_counter_price: Mapped[float | None] = mapped_column(Float)
    trainer_accepted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    message: Mapped[str | None] = mapped_column(Text)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    training: Mapped[TrainingDB] = relationship(back_populates="requests")
    trainer: Mapped[TrainerDB] = relationship(back_populates="requests")

    # Every UPDATE is conditional on the version read; a concurrent writer raises StaleDataError.
    __mapper_args__ = {"version_id_col": version}


class MessageDB(Base):
    __tablename__ = "messages"
    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    training_request_id: Mapped[int] = mapped_column(
        ForeignKey("training_requests.id"), index=True, nullable=False
    )
    sender_id: Mapped[int | None] = mapped_column(Integer)
    sender_type: Mapped[PartyRole | None] = mapped_column(_enum(PartyRole))
    recipient_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    recipient_type: Mapped[PartyRole] = mapped_column(_enum(PartyRole), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    message_type: Mapped[MessageType] = mapped_column(
        _enum(MessageType), default=MessageType.TRAINING_REQUEST, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
