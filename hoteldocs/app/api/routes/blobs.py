"""Signed blob download - GET /api/blobs?token=..."""

import mimetypes
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from hoteldocs.app.api.deps import get_blob_store
from hoteldocs.app.config import Settings, get_settings
from hoteldocs.app.storage.blobs import BlobStore
from hoteldocs.app.storage.signing import verify_blob_token

router = APIRouter(prefix="/api", tags=["blobs"])


@router.get("/blobs", response_class=Response)
async def download_blob(
    token: Annotated[str, Query(min_length=1)],
    blobs: Annotated[BlobStore, Depends(get_blob_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Response:
    """Return the blob a signed token grants access to."""
    path = verify_blob_token(token, settings.blob_signing_secret)
    data = await blobs.get(path)
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)
