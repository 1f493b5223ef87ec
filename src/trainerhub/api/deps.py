"""
Request-scoped dependencies.

Caller identity is read from two explicit headers (`X-Caller-Role`, `X-Caller-Id`) and handed
to the services as a `Caller` value. Token issuance and session cookies live in front of this
service; by the time a request arrives here the identity is already established.
"""

from __future__ import annotations

from fastapi import Header, HTTPException
from pydantic import ValidationError as PydanticValidationError

from trainerhub.domain.models import Caller, PartyRole


def get_caller(
    x_caller_role: str | None = Header(default=None),
    x_caller_id: str | None = Header(default=None),
) -> Caller:
    if not x_caller_role or not x_caller_id:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHENTICATED", "message": "X-Caller-Role and X-Caller-Id headers are required"},
        )
    try:
        return Caller(role=PartyRole(x_caller_role.strip().upper()), id=int(x_caller_id))
    except (ValueError, PydanticValidationError) as e:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHENTICATED", "message": f"Invalid caller identity: {e}"},
        ) from e
