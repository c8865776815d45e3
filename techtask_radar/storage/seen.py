from __future__ import annotations

import json
from typing import Iterable, Set

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from techtask_radar.config import Settings
from techtask_radar.db.database import get_engine, init_db
from techtask_radar.errors import PersistenceError
from techtask_radar.storage.blobs import BlobStore, DatabaseBlobStore, NetlifyBlobStore


class SeenStore:
    """Links already delivered, kept as one JSON array under a single key."""

    def __init__(self, blob_store: BlobStore, key: str):
        self.blob_store = blob_store
        self.key = key

    def load(self) -> Set[str]:
        try:
            raw = self.blob_store.get(self.key)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not read {self.key}: {e}") from e
        if raw is None:
            return set()

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Could not decode {self.key}, starting fresh: {e}")
            return set()

        if not isinstance(data, list):
            logger.warning(f"{self.key} is not a JSON array, starting fresh")
            return set()

        seen = {item for item in data if isinstance(item, str) and item}
        logger.info(f"Loaded {len(seen)} seen links from {self.key}")
        return seen

    def save(self, seen: Iterable[str]) -> None:
        payload = json.dumps(sorted(set(seen)), ensure_ascii=False).encode("utf-8")
        try:
            self.blob_store.set(self.key, payload)
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            raise PersistenceError(f"Could not write {self.key}: {e}") from e
        logger.info(f"Saved seen links to {self.key}")


def build_seen_store(settings: Settings) -> SeenStore:
    if settings.storage_backend == "netlify":
        blob_store: BlobStore = NetlifyBlobStore(
            site_id=settings.netlify_site_id,
            token=settings.netlify_api_token,
            store_name=settings.seen_store_name,
        )
    else:
        engine = get_engine(settings.database_url)
        init_db(engine)
        blob_store = DatabaseBlobStore(engine, namespace=settings.seen_store_name)
    return SeenStore(blob_store, settings.seen_key)
