#!/usr/bin/env python3
"""
Blob Container Setup Script for the Document Manager

Creates the configured blob container (Azure) or bucket (GCS) when it does
not exist yet and reports how many documents and attachments it holds.

Usage:
    python scripts/setup_storage.py

    # With custom configuration
    STORAGE_BACKEND=gcs GCP_PROJECT_ID=my-project BLOB_CONTAINER_NAME=my-bucket \\
        python scripts/setup_storage.py

Reads the same environment variables (and .env file) as the service.
"""

import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).resolve().parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def setup_storage() -> int:
    # Settings are validated on import; a ConfigurationError surfaces here
    try:
        from doc_manager.core.config import settings
        from doc_manager.core.blob_store import BlobStoreError, build_blob_store
        from doc_manager.services.document.document_listing import partition_keys

        store = build_blob_store(settings)
    except Exception as e:
        logger.error(f"Configuration error: {e}")
        return 2

    try:
        created = await store.ensure_container()
        partition = partition_keys(await store.list())
    except BlobStoreError as e:
        logger.error(f"Storage setup failed: {e}")
        return 1

    state = "created" if created else "already exists"
    logger.info(f"{store.backend_name} container '{settings.BLOB_CONTAINER_NAME}' {state}")
    logger.info(
        f"Documents: {len(partition.primary_keys)}, "
        f"attachments: {sum(len(keys) for keys in partition.attachments.values())}, "
        f"orphaned attachments: {len(partition.orphaned_attachments)}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(setup_storage()))
