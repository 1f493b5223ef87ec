from __future__ import annotations

# This module is the "orchestrator" for training-request negotiation.
# It wires together:
# - caller identity (explicit `Caller`, never looked up from ambient session state)
# - persistence (SQLAlchemy session + ORM rows)
# - the pure transition rules in `state_machine`
# - side effects of an acceptance (declining competing requests, notifications)
#
# Transaction rules:
# - One operation == one transaction. Any rejection rolls back everything the call touched.
# - Sibling declines commit together with the acceptance that caused them.
# - Each notification runs in its own SAVEPOINT; a failing notification is logged and dropped
#   without undoing the state change.
# - Request rows are versioned; a concurrent writer surfaces as `ConflictError`.

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from trainerhub.config.settings import NotificationTemplate, Settings
from trainerhub.domain.errors import (
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TrainerHubError,
    ValidationError,
)
from trainerhub.domain.models import (
    AssignedTrainer,
    Caller,
    RequestStatus,
    TrainerStatus,
    TrainingApplication,
    TrainingOverview,
    TrainingRequestCreate,
    TrainingRequestUpdate,
    TrainingStatus,
)
from trainerhub.messaging.service import notify
from trainerhub.negotiation import state_machine
from trainerhub.negotiation.parties import require_party
from trainerhub.negotiation.state_machine import Transition
from trainerhub.storage.models import TrainerDB, TrainingDB, TrainingRequestDB

logger = logging.getLogger(__name__)

BOOKED_STATES = (RequestStatus.ACCEPTED, RequestStatus.GEBUCHT)


@dataclass
class NegotiationOutcome:
    """Result of `update_request`: the row plus what the call caused."""

    request: TrainingRequestDB
    transition: Transition
    declined_request_ids: list[int] = field(default_factory=list)
    notifications_sent: int = 0


def _get_request(db: Session, request_id: int) -> TrainingRequestDB:
    request = db.get(TrainingRequestDB, request_id)
    if request is None:
        raise NotFoundError("Training request not found")
    return request


def _get_training(db: Session, training_id: int) -> TrainingDB:
    training = db.get(TrainingDB, training_id)
    if training is None:
        raise NotFoundError("Training not found")
    return training


def _booked_sibling(db: Session, request: TrainingRequestDB) -> TrainingRequestDB | None:
    stmt = select(TrainingRequestDB).where(
        TrainingRequestDB.training_id == request.training_id,
        TrainingRequestDB.id != request.id,
        TrainingRequestDB.status.in_(BOOKED_STATES),
    )
    return db.execute(stmt).scalars().first()


def _training_is_booked(db: Session, training_id: int) -> bool:
    stmt = select(TrainingRequestDB.id).where(
        TrainingRequestDB.training_id == training_id,
        TrainingRequestDB.status.in_(BOOKED_STATES),
    )
    return db.execute(stmt).first() is not None


def _apply_update(
    db: Session, request: TrainingRequestDB, caller: Caller, update: TrainingRequestUpdate
) -> Transition:
    # Start with a no-op transition; every step below may replace it.
    transition = Transition(request.status, request.status)

    # Prices first, so "counter + accept" in one call locks in the new price.
    if update.counter_price is not None:
        if not caller.is_trainer:
            raise AuthorizationError("Only the trainer can set counter_price")
        transition = state_machine.trainer_counter_offer(request, update.counter_price)

    if update.company_counter_price is not None:
        if not caller.is_company:
            raise AuthorizationError("Only the company can set company_counter_price")
        transition = state_machine.company_counter_offer(request, update.company_counter_price)

    if update.message is not None:
        request.message = update.message

    target = update.status
    if target is None:
        return transition

    previous = request.status
    if target is RequestStatus.PENDING:
        if previous is not RequestStatus.PENDING:
            raise InvalidTransitionError(f"Cannot move a {previous.value} request back to PENDING")
        return Transition(previous, previous)

    if target is RequestStatus.DECLINED:
        return state_machine.decline(request)

    if target is RequestStatus.ACCEPTED:
        if caller.is_trainer:
            return state_machine.trainer_accept(request)
        if previous is RequestStatus.PENDING and _booked_sibling(db, request) is not None:
            raise InvalidTransitionError("Another trainer has already been accepted for this training")
        return state_machine.company_accept(request)

    # GEBUCHT
    if not caller.is_company:
        raise AuthorizationError("Only the company can confirm a booking")
    return state_machine.confirm_booking(request)


def _decline_pending_siblings(db: Session, request: TrainingRequestDB) -> list[TrainingRequestDB]:
    stmt = select(TrainingRequestDB).where(
        TrainingRequestDB.training_id == request.training_id,
        TrainingRequestDB.id != request.id,
        TrainingRequestDB.status == RequestStatus.PENDING,
    )
    siblings = list(db.execute(stmt).scalars().all())
    for sibling in siblings:
        state_machine.decline(sibling)
    return siblings


def _send_notifications(db: Session, notices: list[tuple[TrainingRequestDB, NotificationTemplate]]) -> int:
    sent = 0
    for request, template in notices:
        try:
            with db.begin_nested():
                notify(db, request=request, template=template)
            sent += 1
        except Exception as exc:
            # Notifications are best-effort; the savepoint already undid this one.
            logger.warning(
                "Notification for request %s (trainer %s) failed: %s",
                request.id,
                request.trainer_id,
                exc,
            )
    return sent


def update_request(
    db: Session,
    request_id: int,
    caller: Caller,
    update: TrainingRequestUpdate,
    *,
    settings: Settings,
) -> NegotiationOutcome:
    """Apply counter-offers and/or a status change requested by `caller`."""
    if update.status is None and update.counter_price is None and update.company_counter_price is None and (
        update.message is None
    ):
        raise ValidationError("Nothing to update")

    try:
        request = _get_request(db, request_id)
        require_party(request, caller)
        transition = _apply_update(db, request, caller, update)
        outcome = NegotiationOutcome(request=request, transition=transition)

        if transition.newly_accepted:
            declined = _decline_pending_siblings(db, request)
            db.flush()
            outcome.declined_request_ids = [s.id for s in declined]
            notices = [(s, settings.notifications.declined) for s in declined]
            notices.append((request, settings.notifications.accepted))
            outcome.notifications_sent = _send_notifications(db, notices)
        else:
            db.flush()

        db.commit()
    except TrainerHubError:
        db.rollback()
        raise
    except StaleDataError as exc:
        db.rollback()
        raise ConflictError("Training request was modified concurrently; reload and retry") from exc

    if transition.changed:
        logger.info(
            "Request %s %s -> %s by %s:%s (declined siblings=%s)",
            request.id,
            transition.previous.value,
            transition.current.value,
            caller.role.value,
            caller.id,
            outcome.declined_request_ids,
        )
    return outcome


def send_requests(db: Session, caller: Caller, payload: TrainingRequestCreate) -> list[TrainingRequestDB]:
    """Company asks several trainers for one training; the training becomes PUBLISHED."""
    if not caller.is_company:
        raise AuthorizationError("Only training companies can send requests")
    training = _get_training(db, payload.training_id)
    if training.company_id != caller.id:
        raise AuthorizationError("You can only send requests for your own trainings")
    if training.status in (TrainingStatus.COMPLETED, TrainingStatus.CANCELLED):
        raise InvalidTransitionError(f"Training is {training.status.value}")
    if _training_is_booked(db, training.id):
        raise InvalidTransitionError("Training already has an accepted trainer")

    trainers = db.execute(select(TrainerDB).where(TrainerDB.id.in_(payload.trainer_ids))).scalars().all()
    found = {t.id: t for t in trainers}
    missing = [i for i in payload.trainer_ids if i not in found]
    if missing:
        raise NotFoundError(f"Trainer(s) not found: {missing}")
    inactive = [t.id for t in trainers if t.status is not TrainerStatus.ACTIVE]
    if inactive:
        raise ValidationError(f"Trainer(s) not active: {sorted(inactive)}")

    existing = db.execute(
        select(TrainingRequestDB.trainer_id).where(
            TrainingRequestDB.training_id == training.id,
            TrainingRequestDB.trainer_id.in_(payload.trainer_ids),
        )
    ).scalars().all()
    if existing:
        raise ConflictError(f"Request already exists for trainer(s): {sorted(existing)}")

    created = [
        TrainingRequestDB(training_id=training.id, trainer_id=trainer_id, message=payload.message)
        for trainer_id in payload.trainer_ids
    ]
    db.add_all(created)
    training.status = TrainingStatus.PUBLISHED
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Request already exists for this training and trainer") from exc

    logger.info("Company %s sent %s request(s) for training %s", caller.id, len(created), training.id)
    return created


def apply_to_training(
    db: Session, caller: Caller, training_id: int, payload: TrainingApplication
) -> TrainingRequestDB:
    """Trainer applies to a published training."""
    if not caller.is_trainer:
        raise AuthorizationError("Only trainers can apply to trainings")
    training = _get_training(db, training_id)
    if training.status is not TrainingStatus.PUBLISHED:
        raise InvalidTransitionError("Training is not open for applications")
    if _training_is_booked(db, training.id):
        raise InvalidTransitionError("Training already has an accepted trainer")
    if db.get(TrainerDB, caller.id) is None:
        raise NotFoundError("Trainer not found")

    request = TrainingRequestDB(training_id=training.id, trainer_id=caller.id, message=payload.message)
    db.add(request)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("You already have a request for this training") from exc

    logger.info("Trainer %s applied to training %s (request %s)", caller.id, training.id, request.id)
    return request


def get_request(db: Session, caller: Caller, request_id: int) -> TrainingRequestDB:
    request = _get_request(db, request_id)
    require_party(request, caller)
    return request


def list_requests(db: Session, caller: Caller, *, training_id: int | None = None) -> list[TrainingRequestDB]:
    stmt = select(TrainingRequestDB)
    if training_id is not None:
        training = _get_training(db, training_id)
        if caller.is_company and training.company_id != caller.id:
            raise AuthorizationError("You can only list requests of your own trainings")
        stmt = stmt.where(TrainingRequestDB.training_id == training_id)

    if caller.is_trainer:
        stmt = stmt.where(TrainingRequestDB.trainer_id == caller.id)
    else:
        stmt = stmt.join(TrainingDB).where(TrainingDB.company_id == caller.id)

    stmt = stmt.order_by(TrainingRequestDB.created_at.desc(), TrainingRequestDB.id.desc())
    return list(db.execute(stmt).scalars().all())


def get_training_overview(db: Session, caller: Caller, training_id: int) -> TrainingOverview:
    """Training plus its assigned trainer (booked request first, then the accepted one)."""
    training = _get_training(db, training_id)
    requests = list(training.requests)
    if caller.is_company:
        if training.company_id != caller.id:
            raise AuthorizationError("You can only view your own trainings")
    elif not any(r.trainer_id == caller.id for r in requests):
        raise AuthorizationError("You have no request for this training")

    # Rows written before GEBUCHT existed only ever reached ACCEPTED.
    assigned = next((r for r in requests if r.status is RequestStatus.GEBUCHT), None)
    if assigned is None:
        assigned = next((r for r in requests if r.status is RequestStatus.ACCEPTED), None)

    assigned_trainer = None
    if assigned is not None:
        trainer = assigned.trainer
        assigned_trainer = AssignedTrainer(
            id=trainer.id,
            first_name=trainer.first_name,
            last_name=trainer.last_name,
            full_name=f"{trainer.first_name} {trainer.last_name}",
            request_id=assigned.id,
            request_status=assigned.status,
        )

    return TrainingOverview(
        id=training.id,
        title=training.title,
        topic=training.topic,
        status=training.status,
        daily_rate=training.daily_rate,
        company_id=training.company_id,
        location_type=training.location.type if training.location else None,
        assigned_trainer=assigned_trainer,
    )
