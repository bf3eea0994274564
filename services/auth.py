from datetime import datetime, timedelta, timezone

import jwt

from config import settings
from core.models.actor import Actor, Role


def create_token(
    user_id: str,
    role: Role | str,
    patient_id: str | None = None,
    ttl_minutes: int | None = None,
) -> str:
    exp = datetime.now(timezone.utc) + timedelta(
        minutes=ttl_minutes or settings.token_ttl_minutes
    )
    payload = {"sub": user_id, "role": Role(role).value, "exp": exp}
    if patient_id:
        payload["patient_id"] = patient_id
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def actor_from_token(token: str) -> Actor:
    """Decode a bearer token into the calling `Actor`.

    Raises `jwt.PyJWTError` for bad/expired tokens and `ValueError` for
    tokens whose claims do not describe a known role.
    """
    payload = verify_token(token)
    try:
        return Actor(
            id=str(payload["sub"]),
            role=Role(payload["role"]),
            patient_id=payload.get("patient_id"),
        )
    except KeyError as exc:
        raise ValueError(f"token is missing claim {exc}") from exc
