"""Re-chunk and re-embed every stored document of a hotel.

Usage: python -m scripts.reindex_documents <hotel_id>

Needed after changing the embedding model or chunking settings.
"""

import asyncio
import logging
import sys
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from hoteldocs.app.config import get_settings
from hoteldocs.app.db.context import HotelContext
from hoteldocs.app.db.engine import get_async_engine
from hoteldocs.app.db.sql_repositories import SqlDocumentStore
from hoteldocs.app.docs.ingest import reprocess_document
from hoteldocs.app.embeddings.service import get_embedding_service
from hoteldocs.app.storage.blobs import LocalBlobStore
from hoteldocs.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


async def reindex(hotel_id: uuid.UUID) -> int:
    """Reprocess all non-archived documents of hotel_id; returns the count."""
    settings = get_settings()
    context = HotelContext(hotel_id=hotel_id, admin_id=uuid.UUID(int=0))
    blobs = LocalBlobStore(settings.blob_root)
    embeddings = get_embedding_service()

    reindexed = 0
    async with AsyncSession(get_async_engine(), expire_on_commit=False) as session:
        store = SqlDocumentStore(session)
        offset = 0
        while True:
            documents, _ = await store.list_documents(hotel_id, limit=PAGE_SIZE, offset=offset)
            if not documents:
                break
            for document in documents:
                result = await reprocess_document(
                    store=store,
                    blobs=blobs,
                    embeddings=embeddings,
                    context=context,
                    document_id=document.id,
                    settings=settings,
                )
                logger.info(f"[reindex] {document.id} '{document.title}' chunks={result.chunk_count}")
                reindexed += 1
            offset += PAGE_SIZE

    return reindexed


def main() -> None:
    if len(sys.argv) != 2:
        print("Usage: python -m scripts.reindex_documents <hotel_id>")
        sys.exit(2)

    configure_logging(get_settings().log_level)
    count = asyncio.run(reindex(uuid.UUID(sys.argv[1])))
    print(f"Reindexed {count} documents")


if __name__ == "__main__":
    main()
