"""
Training-request messages and system notifications.

Messages always connect the two parties of one training request; the recipient is derived
from the request, never taken from the caller. Negotiation side effects use `notify()` to
leave a NOTIFICATION message for a trainer.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from trainerhub.config.settings import NotificationTemplate
from trainerhub.domain.errors import AuthorizationError, NotFoundError
from trainerhub.domain.models import Caller, MessageCreate, MessageType, PartyRole
from trainerhub.negotiation.parties import counterparty, require_party
from trainerhub.storage.models import MessageDB, TrainingRequestDB

logger = logging.getLogger(__name__)


def _get_request(db: Session, request_id: int) -> TrainingRequestDB:
    request = db.get(TrainingRequestDB, request_id)
    if request is None:
        raise NotFoundError("Training request not found")
    return request


def notify(db: Session, *, request: TrainingRequestDB, template: NotificationTemplate) -> MessageDB:
    """Add a system message for the request's trainer (flushes, does not commit)."""
    title = request.training.title
    message = MessageDB(
        training_request_id=request.id,
        sender_id=None,
        sender_type=None,
        recipient_id=request.trainer_id,
        recipient_type=PartyRole.TRAINER,
        subject=template.subject.format(training_title=title),
        body=template.body.format(training_title=title),
        message_type=MessageType.NOTIFICATION,
    )
    db.add(message)
    db.flush()
    return message


def send_message(db: Session, caller: Caller, payload: MessageCreate) -> MessageDB:
    request = _get_request(db, payload.training_request_id)
    recipient_id, recipient_type = counterparty(request, caller)
    message = MessageDB(
        training_request_id=request.id,
        sender_id=caller.id,
        sender_type=caller.role,
        recipient_id=recipient_id,
        recipient_type=recipient_type,
        subject=payload.subject,
        body=payload.body,
        message_type=MessageType.TRAINING_REQUEST,
    )
    db.add(message)
    db.commit()
    logger.info("Message %s on request %s from %s:%s", message.id, request.id, caller.role.value, caller.id)
    return message


def list_messages(db: Session, caller: Caller, *, training_request_id: int | None = None) -> list[MessageDB]:
    if training_request_id is not None:
        request = _get_request(db, training_request_id)
        require_party(request, caller)
        stmt = (
            select(MessageDB)
            .where(MessageDB.training_request_id == training_request_id)
            .order_by(MessageDB.created_at.asc(), MessageDB.id.asc())
        )
        return list(db.execute(stmt).scalars().all())

    stmt = (
        select(MessageDB)
        .where(
            or_(
                (MessageDB.sender_id == caller.id) & (MessageDB.sender_type == caller.role),
                (MessageDB.recipient_id == caller.id) & (MessageDB.recipient_type == caller.role),
            )
        )
        .order_by(MessageDB.created_at.desc(), MessageDB.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def mark_read(db: Session, caller: Caller, message_id: int, *, is_read: bool) -> MessageDB:
    message = db.get(MessageDB, message_id)
    if message is None:
        raise NotFoundError("Message not found")
    if message.recipient_id != caller.id or message.recipient_type != caller.role:
        raise AuthorizationError("Only the recipient can change the read state")
    message.is_read = is_read
    db.commit()
    return message
