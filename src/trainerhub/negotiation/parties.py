from __future__ import annotations

from trainerhub.domain.errors import AuthorizationError
from trainerhub.domain.models import Caller, PartyRole
from trainerhub.storage.models import TrainingRequestDB


def is_party(request: TrainingRequestDB, caller: Caller) -> bool:
    if caller.is_trainer:
        return request.trainer_id == caller.id
    return request.training.company_id == caller.id


def require_party(request: TrainingRequestDB, caller: Caller) -> None:
    if not is_party(request, caller):
        raise AuthorizationError("Caller is not a party to this training request")


def counterparty(request: TrainingRequestDB, caller: Caller) -> tuple[int, PartyRole]:
    """Return (id, role) of the other side of the request."""
    require_party(request, caller)
    if caller.is_trainer:
        return request.training.company_id, PartyRole.TRAINING_COMPANY
    return request.trainer_id, PartyRole.TRAINER
