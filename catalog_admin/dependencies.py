"""
Storage backend selection and dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request

from catalog_admin.config import Settings
from catalog_admin.db import CatalogStore, LocalFileStore, SqlCatalogStore
from catalog_admin.storage import ImageStorage, LocalImageStorage, S3ImageStorage

logger = logging.getLogger(__name__)

REMOTE = "remote"
LOCAL = "local"


@dataclass
class CatalogBackend:
    """Record store and image storage chosen together at startup."""

    mode: str
    store: CatalogStore
    images: ImageStorage

    @property
    def is_remote(self) -> bool:
        return self.mode == REMOTE


def build_backend(settings: Settings) -> CatalogBackend:
    if settings.use_remote_store:
        backend = CatalogBackend(
            mode=REMOTE,
            store=SqlCatalogStore(settings.database_url),
            images=S3ImageStorage(
                bucket=settings.storage_bucket,
                access_key_id=settings.aws_access_key_id or "",
                secret_access_key=settings.aws_secret_access_key or "",
                region=settings.storage_region or "",
                endpoint=settings.storage_endpoint or "",
                public_url=settings.storage_public_url or "",
            ),
        )
        logger.info("Remote store connected (bucket %s)", settings.storage_bucket)
    else:
        backend = CatalogBackend(
            mode=LOCAL,
            store=LocalFileStore(settings.data_dir),
            images=LocalImageStorage(settings.public_dir),
        )
        logger.warning(
            "Remote store not configured (using local JSON files in %s)",
            settings.data_dir,
        )
    return backend


def get_backend(request: Request) -> CatalogBackend:
    return request.app.state.backend


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
