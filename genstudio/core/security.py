from datetime import datetime, timezone

from jose import jwt
from jose.exceptions import JWTError


def token_claims(token: str) -> dict:
    """
    Claims of a backend-issued access token.

    The signing secret stays with the backend, so the signature is not checked
    here; callers must validate the token against the auth API first.
    """
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return {}


def token_subject(token: str) -> str | None:
    sub = token_claims(token).get("sub")
    return str(sub) if sub else None


def token_expiry(token: str) -> datetime | None:
    exp = token_claims(token).get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None
