"""Signed, expiring URLs for stored blobs."""

from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from jose import JWTError, jwt

from hoteldocs.app.errors import InvalidInputError

ALGORITHM = "HS256"
BLOB_URL_PATH = "/api/blobs"


def sign_blob_token(path: str, secret: str, ttl_seconds: int) -> str:
    """Create a token granting read access to one blob until it expires."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
    return jwt.encode({"path": path, "exp": expire}, secret, algorithm=ALGORITHM)


def sign_blob_url(path: str, secret: str, ttl_seconds: int) -> str:
    """Relative download URL for a blob, valid for ttl_seconds."""
    token = sign_blob_token(path, secret, ttl_seconds)
    return f"{BLOB_URL_PATH}?{urlencode({'token': token})}"


def verify_blob_token(token: str, secret: str) -> str:
    """Return the blob path a token grants access to.

    Raises:
        InvalidInputError: If the token is malformed, tampered with or expired
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidInputError(str(e), summary="Invalid or expired link") from e

    path = payload.get("path")
    if not isinstance(path, str) or not path:
        raise InvalidInputError("Token carries no blob path", summary="Invalid or expired link")
    return path
