"""
API dependencies: bearer-token → `Actor`.
"""
from __future__ import annotations

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.models.actor import Actor
from services.auth import actor_from_token

security = HTTPBearer(auto_error=True)


def get_current_actor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Actor:
    """
    Expects:
        Authorization: Bearer <jwt>   with claims sub / role / patient_id
    """
    try:
        return actor_from_token(credentials.credentials)
    except (jwt.PyJWTError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc
